"""Service layer for saved external recipe links."""
import logging
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.enums import Platform
from models.saved_link import SavedLink, SavedLinkTag
from schemas.saved_link import SavedLinkCreate, SavedLinkUpdate
from services import stats_service
from services.exceptions import InvalidRequestError, NotFoundError
from services.link_preview import LinkPreview, build_link_preview, detect_platform

logger = logging.getLogger(__name__)

TOP_TAGS_LIMIT = 20


def _resolve_platform(url: str, platform: Platform | None) -> Platform:
    """An explicit platform wins; missing or "other" is detected from the host."""
    if platform is None or platform == Platform.OTHER:
        return detect_platform(url)
    return platform


async def create_saved_link(
    db: AsyncSession,
    owner_subject: str,
    data: SavedLinkCreate,
) -> SavedLink:
    """Save a link for owner_subject. visit_count always starts at 0."""
    url = str(data.url)
    link = SavedLink(
        owner_subject=owner_subject,
        url=url,
        title=data.title,
        description=data.description,
        thumbnail=data.thumbnail,
        platform=_resolve_platform(url, data.platform),
        user_notes=data.user_notes,
        is_public=data.is_public,
        link_metadata=data.metadata.model_dump() if data.metadata else None,
        visit_count=0,
    )
    link.set_tags(data.tags)
    db.add(link)
    await db.flush()
    logger.info("saved_link_created", extra={"link_id": link.id, "platform": link.platform})
    return link


async def get_saved_link(db: AsyncSession, owner_subject: str, link_id: int) -> SavedLink:
    """
    Get one of the owner's links.

    Raises:
        NotFoundError: If the link does not exist or belongs to someone else.
    """
    link = await db.scalar(
        select(SavedLink)
        .where(SavedLink.id == link_id, SavedLink.owner_subject == owner_subject)
        .execution_options(populate_existing=True),
    )
    if link is None:
        raise NotFoundError("Saved link", link_id)
    return link


async def update_saved_link(
    db: AsyncSession,
    owner_subject: str,
    link_id: int,
    data: SavedLinkUpdate,
) -> SavedLink:
    """
    Apply a partial update to one of the owner's links.

    Changing the url without naming a platform re-detects the platform.
    """
    link = await get_saved_link(db, owner_subject, link_id)
    update_data = data.model_dump(exclude_unset=True)

    url_changed = update_data.get("url") is not None
    if url_changed:
        link.url = str(data.url)
    # A null platform counts as not given
    if url_changed or data.platform is not None:
        link.platform = _resolve_platform(link.url, data.platform)

    for field in ("title", "description", "user_notes", "is_public"):
        if update_data.get(field) is not None:
            setattr(link, field, update_data[field])
    if "thumbnail" in update_data:
        link.thumbnail = update_data["thumbnail"]
    if "metadata" in update_data:
        link.link_metadata = data.metadata.model_dump() if data.metadata else None
    if data.tags is not None:
        link.set_tags(data.tags)

    await db.flush()
    return link


async def delete_saved_link(db: AsyncSession, owner_subject: str, link_id: int) -> None:
    link = await get_saved_link(db, owner_subject, link_id)
    await db.delete(link)
    await db.flush()


async def bulk_delete_saved_links(
    db: AsyncSession,
    owner_subject: str,
    link_ids: list[int],
) -> int:
    """
    Delete every listed link the owner actually owns.

    Ids that are missing or owned by someone else are skipped silently.

    Returns:
        Number of links deleted.

    Raises:
        InvalidRequestError: If link_ids is empty.
    """
    if not link_ids:
        raise InvalidRequestError("ids must be a non-empty list")

    result = await db.execute(
        select(SavedLink).where(
            SavedLink.id.in_(set(link_ids)),
            SavedLink.owner_subject == owner_subject,
        ),
    )
    links = list(result.scalars().all())
    for link in links:
        await db.delete(link)
    await db.flush()
    logger.info(
        "saved_links_bulk_deleted",
        extra={"requested": len(link_ids), "deleted": len(links)},
    )
    return len(links)


async def record_visit(db: AsyncSession, owner_subject: str, link_id: int) -> SavedLink:
    """Count one visit to the owner's link and return the refreshed link."""
    visits = await stats_service.increment_link_visits(db, link_id, owner_subject)
    if visits is None:
        raise NotFoundError("Saved link", link_id)
    return await get_saved_link(db, owner_subject, link_id)


async def get_link_stats(db: AsyncSession, owner_subject: str) -> dict[str, Any]:
    """
    Aggregate the owner's links.

    Returns:
        Dict with total_links, links_by_platform, links_by_tag (top 20 tags,
        most used first) and total_visits.
    """
    totals = (
        await db.execute(
            select(
                func.count(SavedLink.id),
                func.coalesce(func.sum(SavedLink.visit_count), 0),
            ).where(SavedLink.owner_subject == owner_subject),
        )
    ).one()

    platform_rows = await db.execute(
        select(SavedLink.platform, func.count(SavedLink.id))
        .where(SavedLink.owner_subject == owner_subject)
        .group_by(SavedLink.platform),
    )

    tag_count = func.count(SavedLinkTag.id).label("tag_count")
    tag_rows = await db.execute(
        select(SavedLinkTag.name, tag_count)
        .join(SavedLink, SavedLinkTag.saved_link_id == SavedLink.id)
        .where(SavedLink.owner_subject == owner_subject)
        .group_by(SavedLinkTag.name)
        .order_by(tag_count.desc(), SavedLinkTag.name)
        .limit(TOP_TAGS_LIMIT),
    )

    return {
        "total_links": int(totals[0]),
        "links_by_platform": {platform: count for platform, count in platform_rows.all()},
        "links_by_tag": {name: count for name, count in tag_rows.all()},
        "total_visits": int(totals[1]),
    }


async def preview_link(url: str) -> LinkPreview:
    """Best-effort preview; fetch failures come back in LinkPreview.error."""
    return await build_link_preview(url)
