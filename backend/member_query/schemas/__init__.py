"""Pydantic Schemas — projections and API contracts.

Invariants:
    - Schemas validate at system boundary (query parameters, API responses)
    - MemberTeamDto is also the repository's read projection

Design Decisions:
    - Separate from models: schemas are read contracts, models are persistence
"""
