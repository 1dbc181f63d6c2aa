"""Repositories — SQLAlchemy-backed predicate building and query execution.

Invariants:
    - Repositories never commit; transaction boundaries belong to the session owner
    - Statements are built from ORM attributes, never from raw query text
"""
