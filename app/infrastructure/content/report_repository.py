"""
Adapter: Report repository.

Implements ReportRepository port on the reports table.
"""

import logging
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.engine import Engine

from app.domain.content.entities import (
    Report,
    ReportCategory,
    ReportStatus,
    ReportType,
)
from app.domain.content.ports import ReportRepository
from app.infrastructure.database import (
    from_db_datetime,
    from_json,
    to_db_datetime,
    to_json,
)

logger = logging.getLogger(__name__)

_COLUMNS = """
    id, title, type, category, content, summary, status, is_feature,
    author, author_id, articles, images, cover_image, views,
    created_at, published_at
"""


def _row_to_report(row: Any) -> Report:
    return Report(
        id=UUID(row[0]),
        title=row[1],
        type=ReportType(row[2]),
        category=ReportCategory(row[3]),
        content=row[4],
        summary=row[5],
        status=ReportStatus(row[6]),
        is_feature=bool(row[7]),
        author=row[8] or "",
        author_id=row[9],
        articles=from_json(row[10], []),
        images=from_json(row[11], []),
        cover_image=row[12],
        views=int(row[13] or 0),
        created_at=from_db_datetime(row[14]),
        published_at=from_db_datetime(row[15]),
    )


class ReportRepositoryAdapter(ReportRepository):
    """SQL adapter for the reports table."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def get(self, report_id: UUID) -> Optional[Report]:
        query = text(f"SELECT {_COLUMNS} FROM reports WHERE id = :id")
        with self._engine.connect() as conn:
            row = conn.execute(query, {"id": str(report_id)}).fetchone()
        return _row_to_report(row) if row else None

    def save(self, report: Report) -> None:
        query = text(
            """
            INSERT INTO reports (
                id, title, type, category, content, summary, status, is_feature,
                author, author_id, articles, images, cover_image, views,
                created_at, published_at
            )
            VALUES (
                :id, :title, :type, :category, :content, :summary, :status, :is_feature,
                :author, :author_id, :articles, :images, :cover_image, :views,
                :created_at, :published_at
            )
            ON CONFLICT (id)
            DO UPDATE SET
                title = EXCLUDED.title,
                type = EXCLUDED.type,
                category = EXCLUDED.category,
                content = EXCLUDED.content,
                summary = EXCLUDED.summary,
                status = EXCLUDED.status,
                is_feature = EXCLUDED.is_feature,
                articles = EXCLUDED.articles,
                images = EXCLUDED.images,
                cover_image = EXCLUDED.cover_image,
                views = EXCLUDED.views,
                published_at = EXCLUDED.published_at
            """
        )
        with self._engine.begin() as conn:
            conn.execute(
                query,
                {
                    "id": str(report.id),
                    "title": report.title,
                    "type": report.type.value,
                    "category": report.category.value,
                    "content": report.content,
                    "summary": report.summary,
                    "status": report.status.value,
                    "is_feature": report.is_feature,
                    "author": report.author,
                    "author_id": report.author_id,
                    "articles": to_json(report.articles),
                    "images": to_json(report.images),
                    "cover_image": report.cover_image,
                    "views": report.views,
                    "created_at": to_db_datetime(report.created_at),
                    "published_at": to_db_datetime(report.published_at),
                },
            )

    def list_published(
        self, category: Optional[ReportCategory] = None, limit: int = 20, offset: int = 0
    ) -> list[Report]:
        where = "status = :status"
        params: dict[str, Any] = {
            "status": ReportStatus.PUBLISHED.value,
            "limit": limit,
            "offset": offset,
        }
        if category is not None:
            where += " AND category = :category"
            params["category"] = category.value
        query = text(
            f"""
            SELECT {_COLUMNS} FROM reports
            WHERE {where}
            ORDER BY published_at DESC, created_at DESC
            LIMIT :limit OFFSET :offset
            """
        )
        with self._engine.connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [_row_to_report(r) for r in rows]
