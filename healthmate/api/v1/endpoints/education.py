"""Education hub endpoints."""

from fastapi import APIRouter, Query, status

from healthmate.dependencies import CompletionClientDep, CurrentUser, DatabaseSession
from healthmate.schemas.education import ArticleCategory, ArticleGenerateRequest, ArticleResponse
from healthmate.services.assistant_service import AssistantService
from healthmate.services.education_service import EducationService

router = APIRouter(prefix="/education")


@router.get(
    "/articles",
    response_model=list[ArticleResponse],
    status_code=status.HTTP_200_OK,
    summary="List articles",
)
async def list_articles(
    current_user: CurrentUser,
    db: DatabaseSession,
    category: ArticleCategory | None = Query(None),
    search: str | None = Query(None, max_length=200),
) -> list[ArticleResponse]:
    """Articles filtered by category and free text, trending first."""
    return await EducationService(db).list_articles(category, search)


@router.post(
    "/articles/generate",
    response_model=ArticleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Generate an article",
)
async def generate_article(
    data: ArticleGenerateRequest,
    current_user: CurrentUser,
    db: DatabaseSession,
    completion: CompletionClientDep,
) -> ArticleResponse:
    """
    Ask the assistant for an article about ``topic`` and add it to the hub.

    Responds 502 when the completion API is unreachable.
    """
    service = EducationService(db, AssistantService(completion))
    return await service.generate_article(data.topic, data.category, current_user["id"])
