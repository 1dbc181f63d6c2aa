"""Member ORM — a person with an age, optionally assigned to a team.

Invariants:
    - username is nullable; age is non-nullable
    - team_id is nullable: a member without a team is valid and must still be searchable

Design Decisions:
    - change_team() keeps both sides of the relationship in sync in memory
    - Bulk statements (repositories/member_repository.py) bypass these instances
"""

from typing import Optional

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from member_query.db.base import Base


class Member(Base):
    """Member entity — the primary search target."""
    __tablename__ = "members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str | None] = mapped_column(String(255), nullable=True)
    age: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    team_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("teams.id"), nullable=True, index=True,
    )

    team: Mapped[Optional["Team"]] = relationship(
        "Team", back_populates="members", lazy="selectin",
    )

    def __init__(
        self, username: str | None = None, age: int = 0, team: "Team | None" = None,
    ):
        super().__init__(username=username, age=age)
        if team is not None:
            self.change_team(team)

    def change_team(self, team: "Team") -> None:
        """Assign the team and register this member in its back-collection."""
        self.team = team
        if self not in team.members:
            team.members.append(self)

    def __repr__(self) -> str:
        return f"Member(id={self.id!r}, username={self.username!r}, age={self.age!r})"
