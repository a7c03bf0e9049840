"""
Reports Router - REST endpoints for report groups, their rows and exports.
"""

from typing import List, Literal, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db.engine import get_db_util
from app.core.response_interceptor import CustomAPIRoute
from app.modules.users.auth import TokenData, get_current_user
from .export_service import ExportService
from .service import ReportsService, record_to_response
from .schemas import (
    CreateReportGroupDto,
    UpdateReportGroupDto,
    UpsertReportRowsDto,
    ReportGroupResponse,
    ReportRowResponse,
    ReportTotalsResponse,
)

router = APIRouter(prefix="/reports", tags=["reports"], route_class=CustomAPIRoute)


@router.get("/groups", response_model=List[ReportGroupResponse])
async def list_groups(
    search: Optional[str] = Query(None, description="Search in report name or date (YYYY-MM-DD)"),
    db: AsyncSession = Depends(get_db_util),
    current_user: TokenData = Depends(get_current_user),
):
    """
    List the caller's saved reports, newest report date first.

    Examples:
    - GET /reports/groups
    - GET /reports/groups?search=fevral
    - GET /reports/groups?search=2026-02
    """
    return await ReportsService.list_groups(db, current_user.user_id, search)


@router.post("/groups", response_model=ReportGroupResponse, status_code=201)
async def create_group(
    dto: CreateReportGroupDto,
    db: AsyncSession = Depends(get_db_util),
    current_user: TokenData = Depends(get_current_user),
):
    """
    Create a report group. Called on the first save of a new report.
    """
    return await ReportsService.create_group(db, current_user, dto)


@router.patch("/groups/{group_id}", response_model=ReportGroupResponse)
async def update_group(
    group_id: int,
    dto: UpdateReportGroupDto,
    db: AsyncSession = Depends(get_db_util),
    current_user: TokenData = Depends(get_current_user),
):
    """
    Rename or re-date a report group.
    """
    return await ReportsService.update_group(db, current_user.user_id, group_id, dto)


@router.delete("/groups/{group_id}", status_code=204)
async def delete_group(
    group_id: int,
    db: AsyncSession = Depends(get_db_util),
    current_user: TokenData = Depends(get_current_user),
):
    """
    Delete a report group and all of its rows.
    """
    await ReportsService.delete_group(db, current_user.user_id, group_id)
    return Response(status_code=204)


@router.get("/groups/{group_id}/rows", response_model=List[ReportRowResponse])
async def list_rows(
    group_id: int,
    db: AsyncSession = Depends(get_db_util),
    current_user: TokenData = Depends(get_current_user),
):
    """
    Rows of a report in display order, each with its computed itog.
    """
    records = await ReportsService.list_rows(db, current_user.user_id, group_id)
    return [record_to_response(record) for record in records]


@router.put("/groups/{group_id}/rows", response_model=List[ReportRowResponse])
async def upsert_rows(
    group_id: int,
    dto: UpsertReportRowsDto,
    db: AsyncSession = Depends(get_db_util),
    current_user: TokenData = Depends(get_current_user),
):
    """
    Replace the row set of a report.

    Rows carrying an id are updated, rows without one are inserted and
    stored rows missing from the body are removed. Returns the stored rows
    with their ids.
    """
    records = await ReportsService.upsert_rows(db, current_user.user_id, group_id, dto)
    return [record_to_response(record) for record in records]


@router.delete("/groups/{group_id}/rows", status_code=204)
async def delete_rows(
    group_id: int,
    db: AsyncSession = Depends(get_db_util),
    current_user: TokenData = Depends(get_current_user),
):
    """
    Remove every row of a report, keeping the group.
    """
    await ReportsService.delete_rows(db, current_user.user_id, group_id)
    return Response(status_code=204)


@router.get("/groups/{group_id}/totals", response_model=ReportTotalsResponse)
async def get_totals(
    group_id: int,
    db: AsyncSession = Depends(get_db_util),
    current_user: TokenData = Depends(get_current_user),
):
    """
    Column sums and grand itog of a stored report.
    """
    return await ReportsService.get_totals(db, current_user.user_id, group_id)


@router.get("/groups/{group_id}/export/{fmt}")
async def export_group(
    group_id: int,
    fmt: Literal["pdf", "xlsx"],
    db: AsyncSession = Depends(get_db_util),
    current_user: TokenData = Depends(get_current_user),
):
    """
    Download a stored report as PDF or Excel.
    Blank rows are left out; totals cover the exported rows.
    """
    exported = await ExportService.export_group(db, current_user.user_id, group_id, fmt)
    return Response(
        content=exported.content,
        media_type=exported.media_type,
        headers={
            "Content-Disposition": f"attachment; filename*=UTF-8''{quote(exported.filename)}",
        },
    )
