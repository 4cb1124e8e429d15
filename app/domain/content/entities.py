"""
Domain entities for the content bounded context.

Reports are published analysis articles; monthly trainings are paid
swing-trading cohorts with scheduled classes and enrolled students.
No framework imports and no IO operations.
"""

from dataclasses import dataclass, field
from datetime import datetime, time, timezone, tzinfo
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from app.domain.content.errors import EnrollmentError, InvalidContentError

MONTH_NAMES = [
    "Enero", "Febrero", "Marzo", "Abril", "Mayo", "Junio",
    "Julio", "Agosto", "Septiembre", "Octubre", "Noviembre", "Diciembre",
]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def month_name(month: int) -> str:
    if 1 <= month <= 12:
        return MONTH_NAMES[month - 1]
    return "Mes inválido"


# ══════════════════════════════════════════════════════════════════════
# Reports
# ══════════════════════════════════════════════════════════════════════


class ReportType(Enum):
    TEXT = "text"
    VIDEO = "video"
    MIXED = "mixed"


class ReportCategory(Enum):
    TRADER_CALL = "trader-call"
    SMART_MONEY = "smart-money"
    CASH_FLOW = "cash-flow"
    GENERAL = "general"


class ReportStatus(Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


@dataclass
class Report:
    """A published analysis report."""

    title: str
    type: ReportType
    content: str
    summary: str
    id: UUID = field(default_factory=uuid4)
    category: ReportCategory = ReportCategory.GENERAL
    status: ReportStatus = ReportStatus.PUBLISHED
    is_feature: bool = False
    author: str = ""
    author_id: Optional[str] = None
    articles: list[dict[str, Any]] = field(default_factory=list)
    images: list[dict[str, Any]] = field(default_factory=list)
    cover_image: Optional[str] = None
    views: int = 0
    created_at: datetime = field(default_factory=_utcnow)
    published_at: Optional[datetime] = None


# ══════════════════════════════════════════════════════════════════════
# Monthly trainings
# ══════════════════════════════════════════════════════════════════════


class ClassStatus(Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class StudentPaymentStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class TrainingStatus(Enum):
    OPEN = "open"
    FULL = "full"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass
class TrainingClass:
    date: datetime
    start_time: str
    title: str
    id: UUID = field(default_factory=uuid4)
    end_time: str = ""
    meeting_link: Optional[str] = None
    status: ClassStatus = ClassStatus.SCHEDULED

    def starts_at(self, tz: tzinfo) -> datetime:
        """The class day of `date` at `start_time`, as an aware datetime in `tz`."""
        local = self.date.astimezone(tz) if self.date.tzinfo else self.date.replace(tzinfo=tz)
        try:
            hours, minutes = (int(part) for part in self.start_time.split(":")[:2])
            return datetime.combine(local.date(), time(hours, minutes), tzinfo=tz)
        except ValueError:
            return local


@dataclass
class Student:
    user_id: str
    name: str
    email: str
    phone: Optional[str] = None
    enrolled_at: datetime = field(default_factory=_utcnow)
    payment_status: StudentPaymentStatus = StudentPaymentStatus.PENDING
    payment_id: Optional[str] = None
    experience_level: str = "principiante"
    attendance: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class MonthlyTraining:
    """A monthly swing-trading cohort."""

    title: str
    description: str
    month: int
    year: int
    price: float
    id: UUID = field(default_factory=uuid4)
    type: str = "swing-trading"
    max_students: int = 10
    classes: list[TrainingClass] = field(default_factory=list)
    students: list[Student] = field(default_factory=list)
    status: TrainingStatus = TrainingStatus.OPEN
    registration_open_date: Optional[datetime] = None
    registration_close_date: Optional[datetime] = None
    created_by: str = ""
    created_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise InvalidContentError("Month must be between 1 and 12")

    @property
    def payment_range(self) -> str:
        return f"{self.type}-{self.year}-{self.month:02d}"

    @property
    def month_name(self) -> str:
        return month_name(self.month)

    @property
    def available_spots(self) -> int:
        return max(0, self.max_students - len(self.students))

    def registration_open(self, now: Optional[datetime] = None) -> bool:
        """Whether `now` falls inside the optional registration window."""
        now = now or _utcnow()
        if self.registration_open_date and self.registration_open_date > now:
            return False
        if self.registration_close_date and self.registration_close_date <= now:
            return False
        return True

    def can_enroll(self, now: Optional[datetime] = None) -> bool:
        return (
            self.status is TrainingStatus.OPEN
            and self.available_spots > 0
            and self.registration_open(now)
        )

    def find_student(self, user_id: str, email: str = "") -> Optional[Student]:
        email = email.lower()
        for student in self.students:
            if student.user_id == user_id or (email and student.email.lower() == email):
                return student
        return None

    def enroll(
        self,
        user_id: str,
        name: str,
        email: str,
        phone: Optional[str] = None,
        experience_level: str = "principiante",
        now: Optional[datetime] = None,
    ) -> Student:
        """Add a pending student; taking the last seat marks the training full.

        Raises:
            EnrollmentError: Window closed, not open, no seats, or already enrolled.
        """
        now = now or _utcnow()
        if self.registration_open_date and self.registration_open_date > now:
            raise EnrollmentError("Registration is not open yet")
        if self.registration_close_date and self.registration_close_date <= now:
            raise EnrollmentError("Registration is closed")
        if self.status is not TrainingStatus.OPEN:
            raise EnrollmentError("Training is not open for enrollment")
        if len(self.students) >= self.max_students:
            raise EnrollmentError("No seats available")
        if self.find_student(user_id, email) is not None:
            raise EnrollmentError("Already enrolled in this training")

        student = Student(
            user_id=user_id,
            name=name or "Usuario",
            email=email.lower(),
            phone=phone,
            enrolled_at=now,
            experience_level=experience_level,
            attendance=[{"class_id": str(c.id), "attended": False} for c in self.classes],
        )
        self.students.append(student)
        if len(self.students) >= self.max_students:
            self.status = TrainingStatus.FULL
        return student

    def complete_payment(self, user_id: str, payment_id: str) -> bool:
        """Flag the student's payment as completed. False when not enrolled."""
        student = self.find_student(user_id)
        if student is None:
            return False
        student.payment_status = StudentPaymentStatus.COMPLETED
        student.payment_id = payment_id
        return True
