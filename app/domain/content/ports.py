"""
Port interfaces (ABCs) for the content bounded context.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from app.domain.content.entities import (
    MonthlyTraining,
    Report,
    ReportCategory,
    TrainingStatus,
)


class ReportRepository(ABC):
    """Port for persisting and querying reports."""

    @abstractmethod
    def get(self, report_id: UUID) -> Optional[Report]:
        raise NotImplementedError

    @abstractmethod
    def save(self, report: Report) -> None:
        raise NotImplementedError

    @abstractmethod
    def list_published(
        self, category: Optional[ReportCategory] = None, limit: int = 20, offset: int = 0
    ) -> list[Report]:
        """Return published reports, newest first."""
        raise NotImplementedError


class TrainingRepository(ABC):
    """Port for persisting and querying monthly trainings."""

    @abstractmethod
    def get(self, training_id: UUID) -> Optional[MonthlyTraining]:
        raise NotImplementedError

    @abstractmethod
    def find(
        self,
        month: Optional[int] = None,
        year: Optional[int] = None,
        status: Optional[TrainingStatus] = None,
    ) -> list[MonthlyTraining]:
        """Return trainings matching the filters, most recent month first."""
        raise NotImplementedError

    @abstractmethod
    def exists_for_month(self, month: int, year: int, training_type: str) -> bool:
        """Whether a training of `training_type` already exists for the month."""
        raise NotImplementedError

    @abstractmethod
    def save(self, training: MonthlyTraining) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, training_id: UUID) -> None:
        raise NotImplementedError


class ReportNotificationPort(ABC):
    """Port used by report use cases to announce new reports."""

    @abstractmethod
    def report_published(self, report: Report) -> None:
        raise NotImplementedError
