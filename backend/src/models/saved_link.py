"""Saved external link model and its tag rows."""
from typing import Any

from sqlalchemy import JSON, CheckConstraint, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin
from models.enums import Platform


class SavedLinkTag(Base):
    """A single tag on a saved link."""

    __tablename__ = "saved_link_tags"
    __table_args__ = (
        UniqueConstraint("saved_link_id", "name", name="uq_saved_link_tags_link_name"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    saved_link_id: Mapped[int] = mapped_column(
        ForeignKey("saved_links.id", ondelete="CASCADE"),
        index=True,
    )
    name: Mapped[str] = mapped_column(String(30), index=True)


class SavedLink(Base, TimestampMixin):
    """
    A third-party recipe URL bookmarked by a user.

    Owned by subject only; there is no foreign key to users.
    """

    __tablename__ = "saved_links"
    __table_args__ = (
        Index("ix_saved_links_owner_created", "owner_subject", "created_at"),
        Index("ix_saved_links_owner_platform", "owner_subject", "platform"),
        CheckConstraint("visit_count >= 0", name="ck_saved_links_visit_count_nonneg"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    owner_subject: Mapped[str] = mapped_column(String(255), index=True)
    url: Mapped[str] = mapped_column(String(2048))
    title: Mapped[str] = mapped_column(String(200))
    description: Mapped[str] = mapped_column(String(1000), default="")
    thumbnail: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    platform: Mapped[str] = mapped_column(String(20), default=Platform.OTHER)
    user_notes: Mapped[str] = mapped_column(String(500), default="")
    visit_count: Mapped[int] = mapped_column(default=0, server_default="0")
    is_public: Mapped[bool] = mapped_column(default=False)
    # "metadata" is reserved on declarative classes
    link_metadata: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSON, nullable=True)

    tag_rows: Mapped[list[SavedLinkTag]] = relationship(
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by=SavedLinkTag.id,
    )

    @property
    def tags(self) -> list[str]:
        return [row.name for row in self.tag_rows]

    def set_tags(self, names: list[str]) -> None:
        """Replace tags, keeping rows whose name survives so unique keys never collide."""
        wanted = list(dict.fromkeys(names))
        kept = [row for row in self.tag_rows if row.name in wanted]
        existing = {row.name for row in kept}
        self.tag_rows = kept + [SavedLinkTag(name=name) for name in wanted if name not in existing]
