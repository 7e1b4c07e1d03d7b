"""Saved external link endpoints."""
from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_user
from models.enums import Platform
from schemas.cached_user import CachedUser
from schemas.saved_link import (
    BulkDeleteRequest,
    BulkDeleteResponse,
    LinkPreviewRequest,
    LinkPreviewResponse,
    SavedLinkCreate,
    SavedLinkListResponse,
    SavedLinkResponse,
    SavedLinkStats,
    SavedLinkUpdate,
)
from services import query_service, saved_link_service
from services.query_service import SavedLinkSortBy

router = APIRouter(prefix="/saved-links", tags=["saved-links"])


@router.get("/", response_model=SavedLinkListResponse)
async def list_saved_links(
    q: str | None = Query(
        default=None, description="Search query for title, description, notes and tags",
    ),
    platform: Platform | Literal["all"] = Query(default="all", description="Platform filter"),
    tags: list[str] | None = Query(default=None, description="Filter by tags"),
    tag_match: Literal["all", "any"] = Query(
        default="any",
        description="Tag matching mode: 'all' requires all tags, 'any' requires any tag",
    ),
    sort_by: SavedLinkSortBy = Query(default="created_at", description="Field to sort by"),
    sort_order: Literal["asc", "desc"] = Query(default="desc", description="Sort direction"),
    page: int = Query(default=1, description="1-indexed page number"),
    page_size: int = Query(default=50, description="Items per page (1-100)"),
    current_user: CachedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> SavedLinkListResponse:
    """List the caller's saved links with filtering, sorting and pagination."""
    result = await query_service.search_saved_links(
        db,
        current_user.subject,
        query=q,
        platform=platform,
        tags=tags,
        tag_match=tag_match,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        page_size=page_size,
    )
    return SavedLinkListResponse(
        items=[SavedLinkResponse.model_validate(link) for link in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
        has_next=result.has_next,
        has_prev=result.has_prev,
    )


@router.post("/", response_model=SavedLinkResponse, status_code=201)
async def create_saved_link(
    data: SavedLinkCreate,
    current_user: CachedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> SavedLinkResponse:
    """Save a link. The platform is detected from the URL unless given."""
    link = await saved_link_service.create_saved_link(db, current_user.subject, data)
    return SavedLinkResponse.model_validate(link)


@router.get("/stats", response_model=SavedLinkStats)
async def get_saved_link_stats(
    current_user: CachedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> SavedLinkStats:
    stats = await saved_link_service.get_link_stats(db, current_user.subject)
    return SavedLinkStats(**stats)


@router.post("/preview", response_model=LinkPreviewResponse)
async def preview_link(
    data: LinkPreviewRequest,
    _: CachedUser = Depends(get_current_user),
) -> LinkPreviewResponse:
    """
    Fetch title, description and thumbnail for a URL before saving it.

    Fetch failures are not errors: the response carries fallback values and
    the reason in `error`.
    """
    preview = await saved_link_service.preview_link(str(data.url))
    return LinkPreviewResponse(
        url=preview.url,
        final_url=preview.final_url,
        platform=preview.platform,
        title=preview.title,
        description=preview.description,
        thumbnail=preview.thumbnail,
        metadata=preview.metadata,
        error=preview.error,
    )


@router.post("/bulk-delete", response_model=BulkDeleteResponse)
async def bulk_delete_saved_links(
    data: BulkDeleteRequest,
    current_user: CachedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> BulkDeleteResponse:
    """Delete the listed links the caller owns; other ids are skipped."""
    deleted = await saved_link_service.bulk_delete_saved_links(
        db, current_user.subject, data.ids,
    )
    return BulkDeleteResponse(deleted_count=deleted)


@router.get("/{link_id}", response_model=SavedLinkResponse)
async def get_saved_link(
    link_id: int,
    current_user: CachedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> SavedLinkResponse:
    link = await saved_link_service.get_saved_link(db, current_user.subject, link_id)
    return SavedLinkResponse.model_validate(link)


@router.patch("/{link_id}", response_model=SavedLinkResponse)
async def update_saved_link(
    link_id: int,
    data: SavedLinkUpdate,
    current_user: CachedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> SavedLinkResponse:
    link = await saved_link_service.update_saved_link(
        db, current_user.subject, link_id, data,
    )
    return SavedLinkResponse.model_validate(link)


@router.delete("/{link_id}", status_code=204)
async def delete_saved_link(
    link_id: int,
    current_user: CachedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> None:
    await saved_link_service.delete_saved_link(db, current_user.subject, link_id)


@router.post("/{link_id}/visit", response_model=SavedLinkResponse)
async def record_visit(
    link_id: int,
    current_user: CachedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> SavedLinkResponse:
    """Count a visit to the link."""
    link = await saved_link_service.record_visit(db, current_user.subject, link_id)
    return SavedLinkResponse.model_validate(link)
