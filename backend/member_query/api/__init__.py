"""API Layer — FastAPI routes and error handlers.

Invariants:
    - Routes are thin: parse parameters, call the repository, shape the response
    - All errors flow through api/error_handlers.py
"""
