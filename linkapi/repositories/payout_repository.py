"""
Payout repository

Status changes are compare-and-set: the UPDATE names the status the caller
expects to move from, and a zero row count means someone else moved it first.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import desc, func
from sqlalchemy.orm import Session

from linkapi.models.ledger import Payout as PayoutModel
from linkapi.repositories.base import BaseRepository
from linkapi.schemas.payout import PayoutSchema
from linkapi.utils.money import to_money


class PayoutRepository(BaseRepository[PayoutModel, PayoutSchema]):
    def __init__(self, db: Session):
        super().__init__(PayoutModel, PayoutSchema, db)

    def sum_by_statuses(self, user_id: int, statuses: Sequence[str]) -> Decimal:
        total = (
            self.db.query(func.coalesce(func.sum(self.model_class.amount), 0))
            .filter(
                self.model_class.user_id == user_id,
                self.model_class.status.in_(list(statuses)),
            )
            .scalar()
        )
        return to_money(total)

    def get_owned(self, user_id: int, payout_id: int) -> Optional[PayoutSchema]:
        payout = (
            self._query()
            .filter(
                self.model_class.id == payout_id,
                self.model_class.user_id == user_id,
            )
            .first()
        )
        return self._to_schema(payout)

    def list_for_user(
        self,
        user_id: int,
        status: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[PayoutSchema]:
        query = self._query().filter(
            self.model_class.user_id == user_id
        )
        if status:
            query = query.filter(self.model_class.status == status)

        query = query.order_by(
            desc(self.model_class.created_at), desc(self.model_class.id)
        )
        if offset:
            query = query.offset(offset)
        if limit:
            query = query.limit(limit)

        return self._to_schemas(query.all())

    def count_for_user(self, user_id: int, status: Optional[str] = None) -> int:
        filters: Dict[str, Any] = {"user_id": user_id}
        if status:
            filters["status"] = status
        return self.count(filters)

    def compare_and_set_status(
        self,
        payout_id: int,
        expected_status: str,
        new_status: str,
        commit: bool = False,
        **fields: Any,
    ) -> bool:
        """Move payout_id from expected_status to new_status in one UPDATE."""
        values = {self.model_class.status: new_status}
        for key, value in fields.items():
            values[getattr(self.model_class, key)] = value

        updated = (
            self.db.query(self.model_class)
            .filter(
                self.model_class.id == payout_id,
                self.model_class.status == expected_status,
            )
            .update(values, synchronize_session=False)
        )
        if commit:
            self.db.commit()
        return updated == 1

