"""Tests for the saved-link service."""
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from models.enums import Platform
from schemas.saved_link import SavedLinkCreate, SavedLinkUpdate
from services import saved_link_service
from services.exceptions import InvalidRequestError, NotFoundError
from services.link_preview import LinkPreview


async def _create(db: AsyncSession, owner: str = "user-a", **fields: object) -> int:
    data = {"url": "https://example.com/recipe", "title": "A recipe"}
    data.update(fields)
    link = await saved_link_service.create_saved_link(db, owner, SavedLinkCreate(**data))
    return link.id


class TestCreateSavedLink:
    """Tests for create_saved_link."""

    async def test__create_saved_link__detects_youtube(
        self, db_session: AsyncSession,
    ) -> None:
        """A YouTube URL with no platform is classified as youtube."""
        link = await saved_link_service.create_saved_link(
            db_session,
            "user-a",
            SavedLinkCreate(url="https://www.youtube.com/watch?v=abc", title="Video"),
        )
        assert link.platform == Platform.YOUTUBE

    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("https://www.instagram.com/p/xyz/", Platform.INSTAGRAM),
            ("https://www.tiktok.com/@chef/video/1", Platform.TIKTOK),
            ("https://youtu.be/abc", Platform.YOUTUBE),
            ("https://www.pinterest.com/pin/1/", Platform.PINTEREST),
            ("https://cooking.example.com/pie", Platform.WEBSITE),
        ],
    )
    async def test__create_saved_link__platform_from_host(
        self, db_session: AsyncSession, url: str, expected: Platform,
    ) -> None:
        """Known hosts map to their platform; anything else is a website."""
        link = await saved_link_service.create_saved_link(
            db_session, "user-a", SavedLinkCreate(url=url, title="Link"),
        )
        assert link.platform == expected

    async def test__create_saved_link__explicit_platform_wins(
        self, db_session: AsyncSession,
    ) -> None:
        """An explicit platform other than "other" is kept as given."""
        link = await saved_link_service.create_saved_link(
            db_session,
            "user-a",
            SavedLinkCreate(url="https://example.com/x", title="X", platform="pinterest"),
        )
        assert link.platform == Platform.PINTEREST

    async def test__create_saved_link__defaults(
        self, db_session: AsyncSession,
    ) -> None:
        """New links start private with no visits and trimmed, de-duplicated tags."""
        link = await saved_link_service.create_saved_link(
            db_session,
            "user-a",
            SavedLinkCreate(
                url="https://example.com/x",
                title="X",
                tags=[" Dinner ", "Dinner", ""],
                visit_count=50,
                owner_subject="someone-else",
            ),
        )
        assert link.owner_subject == "user-a"
        assert link.visit_count == 0
        assert link.is_public is False
        assert link.tags == ["Dinner"]


class TestOwnerScoping:
    """Owner-scoped lookups hide other owners' links."""

    async def test__get_saved_link__foreign_link_not_found(
        self, db_session: AsyncSession,
    ) -> None:
        """A link owned by someone else looks exactly like a missing one."""
        link_id = await _create(db_session, owner="user-a")
        with pytest.raises(NotFoundError):
            await saved_link_service.get_saved_link(db_session, "user-b", link_id)

    async def test__delete_saved_link__foreign_link_not_found(
        self, db_session: AsyncSession,
    ) -> None:
        """Deleting someone else's link fails and keeps the link."""
        link_id = await _create(db_session, owner="user-a")
        with pytest.raises(NotFoundError):
            await saved_link_service.delete_saved_link(db_session, "user-b", link_id)
        link = await saved_link_service.get_saved_link(db_session, "user-a", link_id)
        assert link.id == link_id

    async def test__record_visit__foreign_link_not_found(
        self, db_session: AsyncSession,
    ) -> None:
        """Visits are only counted on the caller's own links."""
        link_id = await _create(db_session, owner="user-a")
        with pytest.raises(NotFoundError):
            await saved_link_service.record_visit(db_session, "user-b", link_id)


class TestUpdateSavedLink:
    """Tests for update_saved_link."""

    async def test__update_saved_link__new_url_redetects_platform(
        self, db_session: AsyncSession,
    ) -> None:
        """Changing the url without a platform re-detects the platform."""
        link_id = await _create(db_session)
        link = await saved_link_service.update_saved_link(
            db_session,
            "user-a",
            link_id,
            SavedLinkUpdate(url="https://www.tiktok.com/@chef/video/1"),
        )
        assert link.platform == Platform.TIKTOK
        assert link.url == "https://www.tiktok.com/@chef/video/1"

    async def test__update_saved_link__new_url_with_null_platform_redetects(
        self, db_session: AsyncSession,
    ) -> None:
        """An explicit null platform is treated as no platform."""
        link_id = await _create(db_session, url="https://www.youtube.com/watch?v=abc")
        link = await saved_link_service.update_saved_link(
            db_session,
            "user-a",
            link_id,
            SavedLinkUpdate.model_validate(
                {"url": "https://www.tiktok.com/@chef/video/1", "platform": None},
            ),
        )
        assert link.platform == Platform.TIKTOK

    async def test__update_saved_link__new_url_with_explicit_platform_kept(
        self, db_session: AsyncSession,
    ) -> None:
        """A platform given alongside a new url wins over detection."""
        link_id = await _create(db_session)
        link = await saved_link_service.update_saved_link(
            db_session,
            "user-a",
            link_id,
            SavedLinkUpdate(
                url="https://www.tiktok.com/@chef/video/1", platform=Platform.PINTEREST,
            ),
        )
        assert link.platform == Platform.PINTEREST

    async def test__update_saved_link__partial_fields(
        self, db_session: AsyncSession,
    ) -> None:
        """Only provided fields change."""
        link_id = await _create(db_session, description="Keep me", tags=["a"])
        link = await saved_link_service.update_saved_link(
            db_session,
            "user-a",
            link_id,
            SavedLinkUpdate(title="Renamed", tags=["a", "b"]),
        )
        assert link.title == "Renamed"
        assert link.description == "Keep me"
        assert link.tags == ["a", "b"]


class TestBulkDelete:
    """Tests for bulk_delete_saved_links."""

    async def test__bulk_delete__only_owned_subset(
        self, db_session: AsyncSession,
    ) -> None:
        """Mixed owned/foreign/missing ids delete only the owned links."""
        mine_1 = await _create(db_session, owner="user-a")
        mine_2 = await _create(db_session, owner="user-a")
        theirs = await _create(db_session, owner="user-b")

        deleted = await saved_link_service.bulk_delete_saved_links(
            db_session, "user-a", [mine_1, mine_2, theirs, 9999],
        )
        assert deleted == 2

        with pytest.raises(NotFoundError):
            await saved_link_service.get_saved_link(db_session, "user-a", mine_1)
        survivor = await saved_link_service.get_saved_link(db_session, "user-b", theirs)
        assert survivor.id == theirs

    async def test__bulk_delete__empty_list_rejected(
        self, db_session: AsyncSession,
    ) -> None:
        """An empty id list is an invalid request."""
        with pytest.raises(InvalidRequestError):
            await saved_link_service.bulk_delete_saved_links(db_session, "user-a", [])


class TestVisitsAndStats:
    """Tests for record_visit and get_link_stats."""

    async def test__record_visit__increments(
        self, db_session: AsyncSession,
    ) -> None:
        """Each visit adds one to visit_count."""
        link_id = await _create(db_session)
        await saved_link_service.record_visit(db_session, "user-a", link_id)
        link = await saved_link_service.record_visit(db_session, "user-a", link_id)
        assert link.visit_count == 2

    async def test__get_link_stats__aggregates(
        self, db_session: AsyncSession,
    ) -> None:
        """Stats count links per platform and tag and sum visits."""
        video = await _create(
            db_session, url="https://www.youtube.com/watch?v=1", tags=["dinner", "quick"],
        )
        await _create(db_session, url="https://example.com/1", tags=["dinner"])
        await _create(db_session, owner="user-b", url="https://example.com/2", tags=["dinner"])
        await saved_link_service.record_visit(db_session, "user-a", video)

        stats = await saved_link_service.get_link_stats(db_session, "user-a")
        assert stats == {
            "total_links": 2,
            "links_by_platform": {"youtube": 1, "website": 1},
            "links_by_tag": {"dinner": 2, "quick": 1},
            "total_visits": 1,
        }

    async def test__get_link_stats__empty(
        self, db_session: AsyncSession,
    ) -> None:
        """An owner with no links gets zeroed stats."""
        stats = await saved_link_service.get_link_stats(db_session, "user-a")
        assert stats == {
            "total_links": 0,
            "links_by_platform": {},
            "links_by_tag": {},
            "total_visits": 0,
        }


async def test__preview_link__delegates_to_link_preview() -> None:
    """preview_link returns the preview built from the fetched page."""
    preview = LinkPreview(
        url="https://example.com/pie",
        final_url="https://example.com/pie",
        platform=Platform.WEBSITE,
        title="Pie",
        description="",
    )
    with patch(
        "services.saved_link_service.build_link_preview",
        new=AsyncMock(return_value=preview),
    ) as mock_build:
        result = await saved_link_service.preview_link("https://example.com/pie")
    mock_build.assert_awaited_once_with("https://example.com/pie")
    assert result is preview
