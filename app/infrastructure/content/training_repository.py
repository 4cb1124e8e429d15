"""
Adapter: Monthly training repository.

Implements TrainingRepository port. Classes and students are JSON columns;
(month, year, type) is unique.
"""

import logging
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.engine import Engine

from app.domain.content.entities import (
    ClassStatus,
    MonthlyTraining,
    Student,
    StudentPaymentStatus,
    TrainingClass,
    TrainingStatus,
)
from app.domain.content.ports import TrainingRepository
from app.infrastructure.database import (
    from_db_datetime,
    from_json,
    to_db_datetime,
    to_json,
)

logger = logging.getLogger(__name__)

_COLUMNS = """
    id, type, title, description, month, year, max_students, price,
    classes, students, status, registration_open_date,
    registration_close_date, created_by, created_at
"""


def _class_to_dict(item: TrainingClass) -> dict[str, Any]:
    return {
        "id": str(item.id),
        "date": to_db_datetime(item.date),
        "start_time": item.start_time,
        "end_time": item.end_time,
        "title": item.title,
        "meeting_link": item.meeting_link,
        "status": item.status.value,
    }


def _class_from_dict(data: dict[str, Any]) -> TrainingClass:
    return TrainingClass(
        id=UUID(data["id"]),
        date=from_db_datetime(data["date"]),
        start_time=data.get("start_time", ""),
        end_time=data.get("end_time", ""),
        title=data.get("title", ""),
        meeting_link=data.get("meeting_link"),
        status=ClassStatus(data.get("status", "scheduled")),
    )


def _student_to_dict(student: Student) -> dict[str, Any]:
    return {
        "user_id": student.user_id,
        "name": student.name,
        "email": student.email,
        "phone": student.phone,
        "enrolled_at": to_db_datetime(student.enrolled_at),
        "payment_status": student.payment_status.value,
        "payment_id": student.payment_id,
        "experience_level": student.experience_level,
        "attendance": student.attendance,
    }


def _student_from_dict(data: dict[str, Any]) -> Student:
    return Student(
        user_id=data["user_id"],
        name=data.get("name", ""),
        email=data.get("email", ""),
        phone=data.get("phone"),
        enrolled_at=from_db_datetime(data.get("enrolled_at")),
        payment_status=StudentPaymentStatus(data.get("payment_status", "pending")),
        payment_id=data.get("payment_id"),
        experience_level=data.get("experience_level", "principiante"),
        attendance=data.get("attendance", []),
    )


def _row_to_training(row: Any) -> MonthlyTraining:
    return MonthlyTraining(
        id=UUID(row[0]),
        type=row[1],
        title=row[2],
        description=row[3],
        month=int(row[4]),
        year=int(row[5]),
        max_students=int(row[6]),
        price=float(row[7]),
        classes=[_class_from_dict(c) for c in from_json(row[8], [])],
        students=[_student_from_dict(s) for s in from_json(row[9], [])],
        status=TrainingStatus(row[10]),
        registration_open_date=from_db_datetime(row[11]),
        registration_close_date=from_db_datetime(row[12]),
        created_by=row[13] or "",
        created_at=from_db_datetime(row[14]),
    )


class TrainingRepositoryAdapter(TrainingRepository):
    """SQL adapter for the monthly_trainings table."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def get(self, training_id: UUID) -> Optional[MonthlyTraining]:
        query = text(f"SELECT {_COLUMNS} FROM monthly_trainings WHERE id = :id")
        with self._engine.connect() as conn:
            row = conn.execute(query, {"id": str(training_id)}).fetchone()
        return _row_to_training(row) if row else None

    def find(
        self,
        month: Optional[int] = None,
        year: Optional[int] = None,
        status: Optional[TrainingStatus] = None,
    ) -> list[MonthlyTraining]:
        """Trainings matching every given filter, latest month first.

        Args:
            month: Optional month filter (1-12).
            year: Optional year filter.
            status: Optional status filter.

        Returns:
            Matching trainings with their classes and students decoded.
        """
        clauses = []
        params: dict[str, Any] = {}
        if month is not None:
            clauses.append("month = :month")
            params["month"] = month
        if year is not None:
            clauses.append("year = :year")
            params["year"] = year
        if status is not None:
            clauses.append("status = :status")
            params["status"] = status.value
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        query = text(
            f"SELECT {_COLUMNS} FROM monthly_trainings {where} ORDER BY year DESC, month DESC"
        )
        with self._engine.connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [_row_to_training(r) for r in rows]

    def exists_for_month(self, month: int, year: int, training_type: str) -> bool:
        query = text(
            """
            SELECT 1 FROM monthly_trainings
            WHERE month = :month AND year = :year AND type = :type
            """
        )
        with self._engine.connect() as conn:
            row = conn.execute(
                query, {"month": month, "year": year, "type": training_type}
            ).fetchone()
        return row is not None

    def save(self, training: MonthlyTraining) -> None:
        query = text(
            """
            INSERT INTO monthly_trainings (
                id, type, title, description, month, year, max_students, price,
                classes, students, status, registration_open_date,
                registration_close_date, created_by, created_at
            )
            VALUES (
                :id, :type, :title, :description, :month, :year, :max_students, :price,
                :classes, :students, :status, :registration_open_date,
                :registration_close_date, :created_by, :created_at
            )
            ON CONFLICT (id)
            DO UPDATE SET
                title = EXCLUDED.title,
                description = EXCLUDED.description,
                month = EXCLUDED.month,
                year = EXCLUDED.year,
                max_students = EXCLUDED.max_students,
                price = EXCLUDED.price,
                classes = EXCLUDED.classes,
                students = EXCLUDED.students,
                status = EXCLUDED.status,
                registration_open_date = EXCLUDED.registration_open_date,
                registration_close_date = EXCLUDED.registration_close_date
            """
        )
        with self._engine.begin() as conn:
            conn.execute(
                query,
                {
                    "id": str(training.id),
                    "type": training.type,
                    "title": training.title,
                    "description": training.description,
                    "month": training.month,
                    "year": training.year,
                    "max_students": training.max_students,
                    "price": training.price,
                    "classes": to_json([_class_to_dict(c) for c in training.classes]),
                    "students": to_json([_student_to_dict(s) for s in training.students]),
                    "status": training.status.value,
                    "registration_open_date": to_db_datetime(training.registration_open_date),
                    "registration_close_date": to_db_datetime(training.registration_close_date),
                    "created_by": training.created_by,
                    "created_at": to_db_datetime(training.created_at),
                },
            )
        logger.debug("Saved training: id=%s students=%d", training.id, len(training.students))

    def delete(self, training_id: UUID) -> None:
        query = text("DELETE FROM monthly_trainings WHERE id = :id")
        with self._engine.begin() as conn:
            conn.execute(query, {"id": str(training_id)})
