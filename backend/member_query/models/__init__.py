"""ORM Models — SQLAlchemy declarative models for members and teams.

Invariants:
    - All models inherit from Base (db/base.py)
    - Member -> Team is many-to-one and optional; Team never owns Member lifetime

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from member_query.models.team import Team  # noqa: F401
from member_query.models.member import Member  # noqa: F401
