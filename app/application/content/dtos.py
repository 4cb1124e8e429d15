"""
Data Transfer Objects for the content application layer.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional
from uuid import UUID


@dataclass(frozen=True)
class CreateReportCommand:
    """Input DTO for publishing a report.

    Attributes:
        title: Report title.
        type: `text`, `video` or `mixed`.
        content: Body text; plain text is converted to paragraph HTML.
        summary: Short summary shown in listings.
        category: `trader-call`, `smart-money`, `cash-flow` or `general`.
    """

    author: str
    author_id: str
    title: str
    type: str
    content: str
    summary: str
    category: str = "general"
    is_feature: bool = False
    cover_image: Optional[str] = None
    articles: list[dict[str, Any]] = field(default_factory=list)
    images: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class ClassInput:
    date: datetime
    start_time: str
    title: str
    end_time: str = ""
    meeting_link: Optional[str] = None
    status: str = "scheduled"


@dataclass(frozen=True)
class CreateTrainingCommand:
    """Input DTO for creating a monthly training."""

    created_by: str
    title: str
    description: str
    month: int
    year: int
    price: float
    classes: list[ClassInput]
    max_students: int = 10
    type: str = "swing-trading"
    registration_open_date: Optional[datetime] = None
    registration_close_date: Optional[datetime] = None


@dataclass(frozen=True)
class UpdateTrainingCommand:
    """Input DTO for editing a training. None means unchanged.

    Once students are enrolled only title, description, status and
    classes may change.
    """

    training_id: UUID
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    classes: Optional[list[ClassInput]] = None
    month: Optional[int] = None
    year: Optional[int] = None
    price: Optional[float] = None
    max_students: Optional[int] = None
    registration_open_date: Optional[datetime] = None
    registration_close_date: Optional[datetime] = None


@dataclass(frozen=True)
class TrainingFilter:
    training_id: Optional[UUID] = None
    month: Optional[int] = None
    year: Optional[int] = None
    status: Optional[str] = None


@dataclass(frozen=True)
class EnrollCommand:
    training_id: UUID
    user_id: str
    name: str
    email: str
    phone: Optional[str] = None
    experience_level: str = "principiante"
