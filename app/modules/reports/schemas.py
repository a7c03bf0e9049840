"""
Report DTOs (Data Transfer Objects)
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime, date

from .totals import MAX_AMOUNT


# ============================================================================
# Request DTOs
# ============================================================================


class CreateReportGroupDto(BaseModel):
    """DTO for creating a report group (first save of a new report)"""

    name: str = Field(..., min_length=1, max_length=255, description="Report name")
    report_date: date = Field(..., description="Report date (YYYY-MM-DD)")

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Report name must not be blank")
        return value


class UpdateReportGroupDto(BaseModel):
    """DTO for renaming / re-dating a report group"""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    report_date: Optional[date] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("Report name must not be blank")
        return value


class ReportRowDto(BaseModel):
    """One row of a report; rows without id are inserted, rows with id updated"""

    id: Optional[int] = Field(None, gt=0)
    sabablar: str = Field(default="", max_length=2000)
    tovar: int = Field(default=0, ge=0, le=MAX_AMOUNT)
    ok: int = Field(default=0, ge=0, le=MAX_AMOUNT)
    rasxod: int = Field(default=0, ge=0, le=MAX_AMOUNT)
    vazvirat: int = Field(default=0, ge=0, le=MAX_AMOUNT)
    pul: int = Field(default=0, ge=0, le=MAX_AMOUNT)
    kilik_ozi: int = Field(default=0, ge=0, le=MAX_AMOUNT)


class UpsertReportRowsDto(BaseModel):
    """Full row set of a report, in display order"""

    rows: List[ReportRowDto] = Field(default_factory=list)


# ============================================================================
# Response DTOs
# ============================================================================


class ReportGroupResponse(BaseModel):
    """Response model for a report group"""

    id: int
    name: str
    report_date: date
    user_id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ReportRowResponse(BaseModel):
    """Response model for a stored report row"""

    id: int
    group_id: int
    position: int
    sabablar: str
    tovar: int
    ok: int
    rasxod: int
    vazvirat: int
    pul: int
    kilik_ozi: int
    itog: int = 0

    class Config:
        from_attributes = True


class ReportTotalsResponse(BaseModel):
    """Footer totals of a report"""

    row_count: int
    tovar: int
    ok: int
    rasxod: int
    vazvirat: int
    pul: int
    kilik_ozi: int
    itog: int
