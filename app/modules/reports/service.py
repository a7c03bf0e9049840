"""
ReportsService - Business logic for report groups and their rows.
"""

import logging
from typing import List, Optional
from sqlalchemy import delete, desc, or_, select, cast, String
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.modules.users.auth import TokenData
from app.modules.users.service import UsersService
from .models import ReportGroup, ReportRowRecord
from .schemas import (
    CreateReportGroupDto,
    UpdateReportGroupDto,
    UpsertReportRowsDto,
    ReportRowResponse,
    ReportTotalsResponse,
)
from .totals import NUMERIC_FIELDS, ReportRow, calculate_itog, compute_totals

logger = logging.getLogger(__name__)


def record_to_row(record: ReportRowRecord) -> ReportRow:
    """Stored row -> editor row (0 amounts become unset)."""
    data = {name: getattr(record, name) for name in NUMERIC_FIELDS}
    data["sabablar"] = record.sabablar
    data["id"] = record.id
    return ReportRow.from_mapping(data)


def record_to_response(record: ReportRowRecord) -> ReportRowResponse:
    response = ReportRowResponse.model_validate(record)
    response.itog = calculate_itog(record_to_row(record))
    return response


class ReportsService:
    """
    Report groups are always scoped to their owner: a group id that belongs
    to somebody else is reported as not found.
    """

    @staticmethod
    async def list_groups(
        db: AsyncSession, user_id: int, search: Optional[str] = None
    ) -> List[ReportGroup]:
        """
        List the user's report groups, newest report date first.

        Args:
            db: Database session
            user_id: Owner id
            search: Optional case-insensitive match on name or ISO date

        Returns:
            List of report groups
        """
        query = select(ReportGroup).where(ReportGroup.user_id == user_id)

        if search and search.strip():
            pattern = f"%{search.strip()}%"
            query = query.where(
                or_(
                    ReportGroup.name.ilike(pattern),
                    cast(ReportGroup.report_date, String).like(pattern),
                )
            )

        query = query.order_by(desc(ReportGroup.report_date), desc(ReportGroup.id))
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def get_group(db: AsyncSession, user_id: int, group_id: int) -> ReportGroup:
        """
        Raises:
            NotFoundError: If the group does not exist or belongs to another user
        """
        result = await db.execute(
            select(ReportGroup).where(
                ReportGroup.id == group_id, ReportGroup.user_id == user_id
            )
        )
        group = result.scalar_one_or_none()
        if group is None:
            raise NotFoundError("Report group", group_id)
        return group

    @staticmethod
    async def create_group(
        db: AsyncSession, current_user: TokenData, dto: CreateReportGroupDto
    ) -> ReportGroup:
        owner = await UsersService.ensure_user(db, current_user)
        group = ReportGroup(name=dto.name, report_date=dto.report_date, user_id=owner.id)
        db.add(group)
        await db.flush()
        await db.refresh(group)
        logger.info("Created report group %s '%s' for user %s", group.id, group.name, owner.id)
        return group

    @staticmethod
    async def update_group(
        db: AsyncSession, user_id: int, group_id: int, dto: UpdateReportGroupDto
    ) -> ReportGroup:
        group = await ReportsService.get_group(db, user_id, group_id)

        if dto.name is not None:
            group.name = dto.name
        if dto.report_date is not None:
            group.report_date = dto.report_date

        await db.flush()
        await db.refresh(group)
        return group

    @staticmethod
    async def delete_group(db: AsyncSession, user_id: int, group_id: int) -> None:
        """Delete a group together with all of its rows."""
        group = await ReportsService.get_group(db, user_id, group_id)
        await db.execute(delete(ReportRowRecord).where(ReportRowRecord.group_id == group.id))
        await db.delete(group)
        await db.flush()
        logger.info("Deleted report group %s", group_id)

    @staticmethod
    async def list_rows(db: AsyncSession, user_id: int, group_id: int) -> List[ReportRowRecord]:
        await ReportsService.get_group(db, user_id, group_id)
        result = await db.execute(
            select(ReportRowRecord)
            .where(ReportRowRecord.group_id == group_id)
            .order_by(ReportRowRecord.position, ReportRowRecord.id)
        )
        return list(result.scalars().all())

    @staticmethod
    async def upsert_rows(
        db: AsyncSession, user_id: int, group_id: int, dto: UpsertReportRowsDto
    ) -> List[ReportRowRecord]:
        """
        Make the stored rows of a group mirror the given list.

        Workflow:
        1. Rows with an id that belongs to the group are updated in place
        2. Rows without an id (or with an unknown one) are inserted
        3. Stored rows missing from the payload are deleted
        4. position follows payload order

        Returns:
            The group's rows in display order
        """
        group = await ReportsService.get_group(db, user_id, group_id)

        result = await db.execute(
            select(ReportRowRecord).where(ReportRowRecord.group_id == group.id)
        )
        existing = {record.id: record for record in result.scalars().all()}
        kept_ids = set()

        for position, row in enumerate(dto.rows):
            values = row.model_dump(exclude={"id"})
            record = existing.get(row.id) if row.id is not None else None
            if record is None or record.id in kept_ids:
                record = ReportRowRecord(group_id=group.id, user_id=group.user_id)
                db.add(record)
            else:
                kept_ids.add(record.id)
            record.position = position
            for name, value in values.items():
                setattr(record, name, value)

        stale_ids = [record_id for record_id in existing if record_id not in kept_ids]
        if stale_ids:
            await db.execute(delete(ReportRowRecord).where(ReportRowRecord.id.in_(stale_ids)))

        await db.flush()
        logger.info(
            "Saved %d rows for report group %s (%d removed)",
            len(dto.rows), group.id, len(stale_ids),
        )
        return await ReportsService.list_rows(db, user_id, group.id)

    @staticmethod
    async def delete_rows(db: AsyncSession, user_id: int, group_id: int) -> None:
        await ReportsService.get_group(db, user_id, group_id)
        await db.execute(delete(ReportRowRecord).where(ReportRowRecord.group_id == group_id))
        await db.flush()

    @staticmethod
    async def get_totals(db: AsyncSession, user_id: int, group_id: int) -> ReportTotalsResponse:
        records = await ReportsService.list_rows(db, user_id, group_id)
        totals = compute_totals(record_to_row(record) for record in records)
        return ReportTotalsResponse(
            row_count=totals.row_count,
            itog=totals.itog,
            **totals.columns,
        )
