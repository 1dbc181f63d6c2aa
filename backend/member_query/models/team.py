"""Team ORM — a named group that members may belong to.

Invariants:
    - name is non-nullable
    - members is a navigational back-collection only (no cascade delete)

Design Decisions:
    - lazy="selectin" on members: async sessions cannot lazy-load on attribute access
"""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from member_query.db.base import Base


class Team(Base):
    """Team entity — referenced by zero or more members."""
    __tablename__ = "teams"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    members: Mapped[list["Member"]] = relationship(
        "Member", back_populates="team", lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"Team(id={self.id!r}, name={self.name!r})"
