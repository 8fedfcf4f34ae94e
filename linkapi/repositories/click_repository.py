from datetime import date, datetime
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from linkapi.models.link import ClickEvent as ClickEventModel
from linkapi.models.link import Link as LinkModel
from linkapi.repositories.base import BaseRepository
from linkapi.schemas.link import ClickEventSchema


class ClickRepository(BaseRepository[ClickEventModel, ClickEventSchema]):
    """Append-only store of click events plus the rollup queries over it."""

    def __init__(self, db: Session):
        super().__init__(ClickEventModel, ClickEventSchema, db)

    def _scoped(
        self,
        columns: tuple,
        user_id: Optional[int] = None,
        link_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        include_end: bool = True,
    ):
        query = self.db.query(*columns)

        if user_id is not None:
            query = query.join(
                LinkModel, LinkModel.id == self.model_class.link_id
            ).filter(LinkModel.user_id == user_id)
        if link_id is not None:
            query = query.filter(self.model_class.link_id == link_id)
        if start is not None:
            query = query.filter(self.model_class.timestamp >= start)
        if end is not None and include_end:
            query = query.filter(self.model_class.timestamp <= end)
        elif end is not None:
            query = query.filter(self.model_class.timestamp < end)

        return query

    def count_in_window(
        self,
        start: datetime,
        end: datetime,
        user_id: Optional[int] = None,
        link_id: Optional[int] = None,
        include_end: bool = True,
    ) -> int:
        return (
            self._scoped(
                (func.count(self.model_class.id),),
                user_id,
                link_id,
                start,
                end,
                include_end,
            )
            .scalar()
            or 0
        )

    def daily_counts(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        user_id: Optional[int] = None,
        link_id: Optional[int] = None,
    ) -> Dict[str, int]:
        """Sparse {"YYYY-MM-DD": count} for the events in the window."""
        day = func.date(self.model_class.timestamp)
        rows = (
            self._scoped(
                (day, func.count(self.model_class.id)), user_id, link_id, start, end
            )
            .group_by(day)
            .all()
        )
        # date() comes back as str on SQLite and as a date on Postgres
        return {
            (value.isoformat() if isinstance(value, date) else str(value)): count
            for value, count in rows
            if value is not None
        }

    def device_counts(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        user_id: Optional[int] = None,
        link_id: Optional[int] = None,
    ) -> Dict[str, int]:
        rows = (
            self._scoped(
                (self.model_class.device, func.count(self.model_class.id)),
                user_id,
                link_id,
                start,
                end,
            )
            .group_by(self.model_class.device)
            .all()
        )
        return {device: count for device, count in rows}

    def first_click_at(
        self, user_id: Optional[int] = None, link_id: Optional[int] = None
    ) -> Optional[datetime]:
        return self._scoped(
            (func.min(self.model_class.timestamp),), user_id, link_id
        ).scalar()

    def count_for_link(self, link_id: int) -> int:
        return self.count({"link_id": link_id})

    def delete_for_links(self, link_ids: Iterable[int], commit: bool = True) -> int:
        ids: List[int] = list(link_ids)
        if not ids:
            return 0
        deleted = (
            self.db.query(self.model_class)
            .filter(self.model_class.link_id.in_(ids))
            .delete(synchronize_session=False)
        )
        if commit:
            self.db.commit()
        return deleted

    def purge_older_than(self, cutoff: datetime, commit: bool = True) -> int:
        deleted = (
            self.db.query(self.model_class)
            .filter(self.model_class.timestamp < cutoff)
            .delete(synchronize_session=False)
        )
        if commit:
            self.db.commit()
        return deleted
