"""
Link repository

Owns every write to a link's traffic counters. The counters only move through
try_increment_with_cap, a single conditional UPDATE whose row count tells the
caller whether the click was admitted.
"""

from typing import List, Optional

from sqlalchemy import desc, or_
from sqlalchemy.orm import Session

from linkapi.models.link import Link as LinkModel
from linkapi.models.link import LinkStatus
from linkapi.repositories.base import BaseRepository
from linkapi.schemas.link import LinkSchema


class LinkRepository(BaseRepository[LinkModel, LinkSchema]):
    def __init__(self, db: Session):
        super().__init__(LinkModel, LinkSchema, db)

    def get_by_short_code(self, short_code: str) -> Optional[LinkSchema]:
        return self.get_by_field("short_code", short_code)

    def short_code_exists(self, short_code: str) -> bool:
        return (
            self.db.query(self.model_class.id)
            .filter(self.model_class.short_code == short_code)
            .first()
            is not None
        )

    def get_owned(self, user_id: int, link_id: int) -> Optional[LinkSchema]:
        """Link by id, only if it belongs to user_id."""
        link = (
            self._query()
            .filter(
                self.model_class.id == link_id,
                self.model_class.user_id == user_id,
            )
            .first()
        )
        return self._to_schema(link)

    def list_ids_for_user(self, user_id: int) -> List[int]:
        rows = (
            self.db.query(self.model_class.id)
            .filter(self.model_class.user_id == user_id)
            .all()
        )
        return [row[0] for row in rows]

    def get_top_by_clicks(self, user_id: int, limit: int) -> List[LinkSchema]:
        links = (
            self._query()
            .filter(self.model_class.user_id == user_id)
            .order_by(desc(self.model_class.clicks), self.model_class.id)
            .limit(limit)
            .all()
        )
        return self._to_schemas(links)

    def try_increment_with_cap(self, link_id: int, commit: bool = False) -> bool:
        """
        Admit one click if the link is still servable.

        clicks and views are bumped in the same UPDATE that re-asserts the
        active flags and, when the cap is enabled, clicks < max_clicks. Two
        concurrent requests can both pass an earlier stale read, but only the
        ones whose UPDATE matches a row are admitted.

        Returns:
            bool: True when exactly one row was updated
        """
        updated = (
            self.db.query(self.model_class)
            .filter(
                self.model_class.id == link_id,
                self.model_class.is_active.is_(True),
                self.model_class.status == LinkStatus.ACTIVE.value,
                or_(
                    self.model_class.limited_access_enabled.is_(False),
                    self.model_class.max_clicks.is_(None),
                    self.model_class.clicks < self.model_class.max_clicks,
                ),
            )
            .update(
                {
                    self.model_class.clicks: self.model_class.clicks + 1,
                    self.model_class.views: self.model_class.views + 1,
                },
                synchronize_session=False,
            )
        )

        if commit:
            self.db.commit()

        return updated == 1

    def set_active(
        self, link_id: int, is_active: bool, commit: bool = True
    ) -> Optional[LinkSchema]:
        status = LinkStatus.ACTIVE if is_active else LinkStatus.INACTIVE
        return self.update(
            link_id, is_active=is_active, status=status.value, commit=commit
        )
