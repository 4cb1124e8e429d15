"""
Pydantic schemas for the reports and monthly trainings API.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

# ══════════════════════════════════════════════════════════════════════
# Reports
# ══════════════════════════════════════════════════════════════════════


class CreateReportRequest(BaseModel):
    """Request schema for publishing a report.

    Attributes:
        type: text, video or mixed.
        content: Plain text is converted to paragraph HTML; HTML is kept.
        category: trader-call, smart-money, cash-flow or general.
    """

    title: str = Field(..., min_length=1, max_length=200)
    type: str = Field(default="text")
    content: str = Field(..., min_length=1)
    summary: str = Field(..., min_length=1, max_length=1000)
    category: str = Field(default="general")
    is_feature: bool = False
    cover_image: str | None = None
    articles: list[dict[str, Any]] = Field(default_factory=list)
    images: list[dict[str, Any]] = Field(default_factory=list)


class ReportSummaryItem(BaseModel):
    id: UUID
    title: str
    type: str
    category: str
    summary: str
    is_feature: bool
    author: str
    cover_image: str | None = None
    views: int
    published_at: datetime | None = None


class ReportResponse(ReportSummaryItem):
    """A full report with its body."""

    content: str
    articles: list[dict[str, Any]]
    images: list[dict[str, Any]]
    status: str
    created_at: datetime


class ReportListResponse(BaseModel):
    reports: list[ReportSummaryItem]
    page: int
    limit: int


# ══════════════════════════════════════════════════════════════════════
# Monthly trainings
# ══════════════════════════════════════════════════════════════════════


class ClassRequest(BaseModel):
    date: datetime
    start_time: str = Field(..., pattern=r"^\d{2}:\d{2}$")
    title: str = Field(..., min_length=1, max_length=200)
    end_time: str = ""
    meeting_link: str | None = None
    status: str = "scheduled"


class CreateTrainingRequest(BaseModel):
    """Request schema for scheduling a monthly training."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=2000)
    price: float = Field(..., gt=0)
    classes: list[ClassRequest] = Field(..., min_length=1)
    max_students: int = Field(default=10, gt=0)
    type: str = Field(default="swing-trading")
    registration_open_date: datetime | None = None
    registration_close_date: datetime | None = None


class UpdateTrainingRequest(BaseModel):
    """Fields to change; omitted fields stay as they are.

    With enrolled students only title, description, status and classes
    may change.
    """

    title: str | None = None
    description: str | None = None
    status: str | None = None
    classes: list[ClassRequest] | None = None
    month: int | None = None
    year: int | None = None
    price: float | None = None
    max_students: int | None = None
    registration_open_date: datetime | None = None
    registration_close_date: datetime | None = None


class ClassItem(BaseModel):
    id: UUID
    date: datetime
    start_time: str
    end_time: str
    title: str
    meeting_link: str | None = None
    status: str


class StudentItem(BaseModel):
    user_id: str
    name: str
    email: str
    phone: str | None = None
    enrolled_at: datetime
    payment_status: str
    payment_id: str | None = None
    experience_level: str


class TrainingItem(BaseModel):
    """A monthly training as listed publicly."""

    id: UUID
    title: str
    description: str
    type: str
    month: int
    month_name: str
    year: int
    price: float
    max_students: int
    available_spots: int
    status: str
    classes: list[ClassItem]
    registration_open_date: datetime | None = None
    registration_close_date: datetime | None = None


class AdminTrainingItem(TrainingItem):
    """A monthly training with its enrolled students."""

    students: list[StudentItem]
    created_by: str
    created_at: datetime


class AdminTrainingListResponse(BaseModel):
    trainings: list[AdminTrainingItem]


class TrainingListResponse(BaseModel):
    trainings: list[TrainingItem]


class EnrollRequest(BaseModel):
    phone: str | None = Field(default=None, max_length=30)
    experience_level: str = Field(default="principiante")
