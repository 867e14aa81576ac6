"""Education hub articles."""

import math
from uuid import UUID

import structlog
from sqlalchemy import and_, insert, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from healthmate.core.completion import CONNECTION_FALLBACK, EMPTY_RESPONSE_FALLBACK
from healthmate.core.exceptions import AppException
from healthmate.models.articles import articles
from healthmate.schemas.education import ArticleCategory, ArticleResponse
from healthmate.services.assistant_service import AssistantService

logger = structlog.get_logger(__name__)

CHARS_PER_MINUTE = 1000


def read_time(content: str) -> int:
    """Estimated reading minutes, at least one."""
    return max(1, math.ceil(len(content) / CHARS_PER_MINUTE))


class EducationService:
    """Service for browsing and generating articles."""

    def __init__(self, db: AsyncSession, assistant: AssistantService | None = None):
        """Initialize service with database session and optional assistant."""
        self.db = db
        self.assistant = assistant

    async def list_articles(
        self,
        category: ArticleCategory | None = None,
        search: str | None = None,
        limit: int = 50,
    ) -> list[ArticleResponse]:
        """Articles trending first, then newest."""
        conditions = []
        if category:
            conditions.append(articles.c.category == category.value)
        if search:
            pattern = f"%{search}%"
            conditions.append(
                or_(articles.c.title.ilike(pattern), articles.c.content.ilike(pattern))
            )

        stmt = select(articles)
        if conditions:
            stmt = stmt.where(and_(*conditions))
        stmt = stmt.order_by(articles.c.trending.desc(), articles.c.created_at.desc()).limit(limit)

        rows = (await self.db.execute(stmt)).mappings().all()
        return [ArticleResponse.model_validate(dict(row)) for row in rows]

    async def generate_article(
        self, topic: str, category: ArticleCategory, author_id: UUID | None = None
    ) -> ArticleResponse:
        """
        Write an article about ``topic`` with the assistant and store it.

        Raises:
            AppException: 502 when the completion API gave no usable content
        """
        if self.assistant is None:
            raise AppException("Assistant is not configured", status_code=503)

        content = await self.assistant.educational_content(topic)
        if content in (CONNECTION_FALLBACK, EMPTY_RESPONSE_FALLBACK):
            raise AppException(content, status_code=502)

        stmt = (
            insert(articles)
            .values(
                title=f"AI Guide: {topic.strip()}",
                category=category.value,
                content=content,
                read_time=read_time(content),
                trending=False,
                author_id=author_id,
            )
            .returning(articles)
        )
        row = (await self.db.execute(stmt)).mappings().one()
        await self.db.commit()

        logger.info("article_generated", article_id=str(row["id"]), category=category.value)
        return ArticleResponse.model_validate(dict(row))
