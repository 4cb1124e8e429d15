"""
Use cases: Publish, list and read analysis reports.

Publishing enqueues the subscriber announcement; an announcement failure
is logged and never fails the publication.
"""

import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from app.application.content.dtos import CreateReportCommand
from app.domain.content.entities import (
    Report,
    ReportCategory,
    ReportStatus,
    ReportType,
)
from app.domain.content.errors import InvalidContentError, ReportNotFoundError
from app.domain.content.formatting import format_content
from app.domain.content.ports import ReportNotificationPort, ReportRepository

logger = logging.getLogger(__name__)


def parse_category(value: str) -> ReportCategory:
    try:
        return ReportCategory(value)
    except ValueError as exc:
        raise InvalidContentError(f"Invalid report category: {value}") from exc


class CreateReportUseCase:
    """Publish a report and queue its announcement."""

    def __init__(
        self, report_repo: ReportRepository, notifier: ReportNotificationPort
    ) -> None:
        self._report_repo = report_repo
        self._notifier = notifier

    def execute(self, command: CreateReportCommand) -> Report:
        """Validate, format and publish a report.

        Raises:
            InvalidContentError: Missing required fields or unknown type/category.
        """
        if not all(
            value.strip()
            for value in (command.title, command.type, command.content, command.summary)
        ):
            raise InvalidContentError("Title, type, content and summary are required")
        try:
            report_type = ReportType(command.type)
        except ValueError as exc:
            raise InvalidContentError(f"Invalid report type: {command.type}") from exc

        now = datetime.now(timezone.utc)
        report = Report(
            title=command.title.strip(),
            type=report_type,
            content=format_content(command.content),
            summary=command.summary.strip(),
            category=parse_category(command.category),
            status=ReportStatus.PUBLISHED,
            is_feature=command.is_feature,
            author=command.author,
            author_id=command.author_id,
            articles=list(command.articles),
            images=list(command.images),
            cover_image=command.cover_image,
            created_at=now,
            published_at=now,
        )
        self._report_repo.save(report)
        logger.info("Report published: id=%s category=%s", report.id, report.category.value)

        try:
            self._notifier.report_published(report)
        except Exception:
            logger.exception("Could not enqueue announcement for report %s", report.id)
        return report


class ListReportsUseCase:
    def __init__(self, report_repo: ReportRepository) -> None:
        self._report_repo = report_repo

    def execute(
        self, category: Optional[str] = None, limit: int = 20, page: int = 1
    ) -> list[Report]:
        """Published reports, newest first.

        Args:
            category: Optional category filter.
            limit: Page size, clamped to [1, 100].
            page: 1-based page number.

        Returns:
            The reports of the page.

        Raises:
            InvalidContentError: If the category is unknown.
        """
        parsed = parse_category(category) if category else None
        limit = max(1, min(limit, 100))
        return self._report_repo.list_published(
            category=parsed, limit=limit, offset=(max(1, page) - 1) * limit
        )


class GetReportUseCase:
    """Return a published report and count the view."""

    def __init__(self, report_repo: ReportRepository) -> None:
        self._report_repo = report_repo

    def execute(self, report_id: UUID) -> Report:
        """Raises:
            ReportNotFoundError: Missing, draft or archived report.
        """
        report = self._report_repo.get(report_id)
        if report is None or report.status is not ReportStatus.PUBLISHED:
            raise ReportNotFoundError(str(report_id))
        report.views += 1
        self._report_repo.save(report)
        return report
