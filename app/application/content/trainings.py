"""
Use cases: Manage monthly trainings and student enrollment.

Admin operations create, edit and delete cohorts; once students are
enrolled a cohort's month, price and capacity are frozen.
"""

import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from app.application.content.dtos import (
    ClassInput,
    CreateTrainingCommand,
    EnrollCommand,
    TrainingFilter,
    UpdateTrainingCommand,
)
from app.domain.content.entities import (
    ClassStatus,
    MonthlyTraining,
    Student,
    TrainingClass,
    TrainingStatus,
)
from app.domain.content.errors import (
    DuplicateTrainingError,
    InvalidContentError,
    TrainingLockedError,
    TrainingNotFoundError,
)
from app.domain.content.ports import TrainingRepository

logger = logging.getLogger(__name__)

FIELDS_EDITABLE_WITH_STUDENTS = frozenset({"title", "description", "status", "classes"})


def parse_training_status(value: str) -> TrainingStatus:
    try:
        return TrainingStatus(value)
    except ValueError as exc:
        raise InvalidContentError(f"Invalid training status: {value}") from exc


def build_classes(items: list[ClassInput]) -> list[TrainingClass]:
    """Turn class inputs into scheduled TrainingClass entities.

    Raises:
        InvalidContentError: A class lacks a title or start time, or has an
            unknown status.
    """
    classes = []
    for item in items:
        if not item.title.strip() or not item.start_time.strip():
            raise InvalidContentError("Every class needs a title and a start time")
        try:
            status = ClassStatus(item.status)
        except ValueError as exc:
            raise InvalidContentError(f"Invalid class status: {item.status}") from exc
        classes.append(
            TrainingClass(
                date=item.date,
                start_time=item.start_time,
                end_time=item.end_time,
                title=item.title.strip(),
                meeting_link=item.meeting_link,
                status=status,
            )
        )
    return classes


def load_training(repo: TrainingRepository, training_id: UUID) -> MonthlyTraining:
    training = repo.get(training_id)
    if training is None:
        raise TrainingNotFoundError(str(training_id))
    return training


class ListTrainingsUseCase:
    """Admin listing with optional id, month, year and status filters."""

    def __init__(self, training_repo: TrainingRepository) -> None:
        self._training_repo = training_repo

    def execute(self, query: TrainingFilter) -> list[MonthlyTraining]:
        if query.training_id is not None:
            return [load_training(self._training_repo, query.training_id)]
        status = parse_training_status(query.status) if query.status else None
        return self._training_repo.find(month=query.month, year=query.year, status=status)


class CreateTrainingUseCase:
    def __init__(self, training_repo: TrainingRepository) -> None:
        self._training_repo = training_repo

    def execute(self, command: CreateTrainingCommand) -> MonthlyTraining:
        """Validate and store a new cohort.

        Raises:
            InvalidContentError: Missing fields, bad month, no classes.
            DuplicateTrainingError: A cohort already exists for the month.
        """
        if not command.title.strip() or not command.description.strip():
            raise InvalidContentError("Title and description are required")
        if not 1 <= command.month <= 12:
            raise InvalidContentError("Month must be between 1 and 12")
        if command.year < 2000:
            raise InvalidContentError("Year is invalid")
        if command.price <= 0:
            raise InvalidContentError("Price must be greater than 0")
        if command.max_students <= 0:
            raise InvalidContentError("max_students must be greater than 0")
        if not command.classes:
            raise InvalidContentError("At least one class is required")
        if self._training_repo.exists_for_month(command.month, command.year, command.type):
            raise DuplicateTrainingError(command.month, command.year)

        training = MonthlyTraining(
            title=command.title.strip(),
            description=command.description.strip(),
            month=command.month,
            year=command.year,
            price=command.price,
            type=command.type,
            max_students=command.max_students,
            classes=build_classes(command.classes),
            registration_open_date=command.registration_open_date,
            registration_close_date=command.registration_close_date,
            created_by=command.created_by,
        )
        self._training_repo.save(training)
        logger.info(
            "Training created: id=%s range=%s classes=%d",
            training.id,
            training.payment_range,
            len(training.classes),
        )
        return training


class UpdateTrainingUseCase:
    def __init__(self, training_repo: TrainingRepository) -> None:
        self._training_repo = training_repo

    def execute(self, command: UpdateTrainingCommand) -> MonthlyTraining:
        """Apply the non-None fields of the command.

        Once students are enrolled only the title, description, status and
        classes may change.

        Args:
            command: Training id and the fields to change.

        Returns:
            The saved training.

        Raises:
            TrainingNotFoundError: If the training does not exist.
            TrainingLockedError: If a locked field is changed with students enrolled.
            InvalidContentError: If a new value is empty or out of range.
        """
        training = load_training(self._training_repo, command.training_id)
        requested = {
            name
            for name in (
                "title",
                "description",
                "status",
                "classes",
                "month",
                "year",
                "price",
                "max_students",
                "registration_open_date",
                "registration_close_date",
            )
            if getattr(command, name) is not None
        }
        if training.students:
            locked = requested - FIELDS_EDITABLE_WITH_STUDENTS
            if locked:
                raise TrainingLockedError(
                    "With enrolled students only title, description, status and "
                    f"classes can change (refused: {', '.join(sorted(locked))})"
                )

        if command.title is not None:
            if not command.title.strip():
                raise InvalidContentError("Title cannot be empty")
            training.title = command.title.strip()
        if command.description is not None:
            if not command.description.strip():
                raise InvalidContentError("Description cannot be empty")
            training.description = command.description.strip()
        if command.status is not None:
            training.status = parse_training_status(command.status)
        if command.classes is not None:
            if not command.classes:
                raise InvalidContentError("At least one class is required")
            training.classes = build_classes(command.classes)
        if command.price is not None:
            if command.price <= 0:
                raise InvalidContentError("Price must be greater than 0")
            training.price = command.price
        if command.max_students is not None:
            if command.max_students <= 0:
                raise InvalidContentError("max_students must be greater than 0")
            training.max_students = command.max_students
        if command.month is not None or command.year is not None:
            month = command.month if command.month is not None else training.month
            year = command.year if command.year is not None else training.year
            if not 1 <= month <= 12:
                raise InvalidContentError("Month must be between 1 and 12")
            if (month, year) != (training.month, training.year) and (
                self._training_repo.exists_for_month(month, year, training.type)
            ):
                raise DuplicateTrainingError(month, year)
            training.month, training.year = month, year
        if command.registration_open_date is not None:
            training.registration_open_date = command.registration_open_date
        if command.registration_close_date is not None:
            training.registration_close_date = command.registration_close_date

        self._training_repo.save(training)
        logger.info("Training %s updated: %s", training.id, ", ".join(sorted(requested)) or "-")
        return training


class DeleteTrainingUseCase:
    """Remove a cohort nobody has enrolled in."""

    def __init__(self, training_repo: TrainingRepository) -> None:
        self._training_repo = training_repo

    def execute(self, training_id: UUID) -> None:
        """Raises:
            TrainingNotFoundError: If the training does not exist.
            TrainingLockedError: If students are already enrolled.
        """
        training = load_training(self._training_repo, training_id)
        if training.students:
            raise TrainingLockedError(
                f"Cannot delete a training with {len(training.students)} enrolled students"
            )
        self._training_repo.delete(training_id)
        logger.info("Training %s deleted", training_id)


class ListOpenTrainingsUseCase:
    """Public listing: open cohorts whose registration window is current."""

    def __init__(self, training_repo: TrainingRepository) -> None:
        self._training_repo = training_repo

    def execute(self, now: Optional[datetime] = None) -> list[MonthlyTraining]:
        now = now or datetime.now(timezone.utc)
        trainings = self._training_repo.find(status=TrainingStatus.OPEN)
        return [training for training in trainings if training.registration_open(now)]


class EnrollInTrainingUseCase:
    """Reserve a seat in an open cohort."""

    def __init__(self, training_repo: TrainingRepository) -> None:
        self._training_repo = training_repo

    def execute(self, command: EnrollCommand, now: Optional[datetime] = None) -> Student:
        """Enroll the user as a pending student.

        Args:
            command: Training id and the student details.
            now: Reference instant for the registration window.

        Returns:
            The new Student; payment stays pending until checkout completes.

        Raises:
            TrainingNotFoundError: If the training does not exist.
            EnrollmentError: Window closed, training not open, full, or the
                user is already enrolled.
        """
        training = load_training(self._training_repo, command.training_id)
        student = training.enroll(
            user_id=command.user_id,
            name=command.name,
            email=command.email,
            phone=command.phone,
            experience_level=command.experience_level,
            now=now,
        )
        self._training_repo.save(training)
        logger.info(
            "Student enrolled: training=%s user=%s spots_left=%d",
            training.id,
            command.user_id,
            training.available_spots,
        )
        return student
