import enum
from sqlalchemy import String, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import TYPE_CHECKING

from app.core.db.base import BaseModel

if TYPE_CHECKING:
    from app.modules.reports.models import ReportGroup


class Role(str, enum.Enum):
    """User role enum"""

    ADMIN = "ADMIN"
    ACCOUNTANT = "ACCOUNTANT"


class User(BaseModel):
    """
    Report owner. Accounts are provisioned outside this service; the API
    only needs the row so report groups can reference their owner.
    """

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, index=True
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    role: Mapped[Role] = mapped_column(
        SQLEnum(
            Role,
            name="users_role_enum",
            native_enum=False,
        ),
        nullable=False,
        default=Role.ACCOUNTANT,
        server_default=Role.ACCOUNTANT.value,
    )

    report_groups: Mapped[list["ReportGroup"]] = relationship(
        "ReportGroup", back_populates="owner", passive_deletes=True
    )

    def __repr__(self) -> str:
        return (
            f"<User(id={self.id}, username='{self.username}', role={self.role.value})>"
        )
