from datetime import date
from sqlalchemy import BigInteger, Date, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import TYPE_CHECKING

from app.core.db.base import BaseModel

if TYPE_CHECKING:
    from app.modules.users.models import User


class ReportGroup(BaseModel):
    """
    A named, dated report ("achot") owned by a user.
    Extends BaseModel which provides: id, created_at, updated_at, deleted_at
    """

    __tablename__ = "report_groups"

    __table_args__ = (
        Index("idx_report_group_user_date", "user_id", "report_date"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    report_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", name="fk_report_group_user_id", ondelete="CASCADE"),
        nullable=False,
    )

    # Relationships
    owner: Mapped["User"] = relationship("User", back_populates="report_groups")

    rows: Mapped[list["ReportRowRecord"]] = relationship(
        "ReportRowRecord",
        back_populates="group",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ReportRowRecord.position",
    )

    def __repr__(self) -> str:
        return f"<ReportGroup(id={self.id}, name='{self.name}', date={self.report_date})>"


class ReportRowRecord(BaseModel):
    """
    One stored line of a report. Amounts are whole numbers; an amount that
    was never entered is stored as 0.
    """

    __tablename__ = "reports"

    __table_args__ = (
        Index("idx_report_row_group_position", "group_id", "position"),
    )

    group_id: Mapped[int] = mapped_column(
        ForeignKey("report_groups.id", name="fk_report_row_group_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    sabablar: Mapped[str] = mapped_column(Text, nullable=False, default="")

    tovar: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0, server_default="0")
    ok: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0, server_default="0")
    rasxod: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0, server_default="0")
    vazvirat: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0, server_default="0")
    pul: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0, server_default="0")
    kilik_ozi: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0, server_default="0")

    group: Mapped["ReportGroup"] = relationship("ReportGroup", back_populates="rows")

    def __repr__(self) -> str:
        return f"<ReportRowRecord(id={self.id}, group={self.group_id}, sabablar='{self.sabablar}')>"
