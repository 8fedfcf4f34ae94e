from decimal import Decimal
from typing import List

from sqlalchemy import desc, func
from sqlalchemy.orm import Session

from linkapi.models.ledger import Order as OrderModel
from linkapi.models.ledger import OrderPaymentStatus
from linkapi.repositories.base import BaseRepository
from linkapi.schemas.order import OrderSchema
from linkapi.utils.money import to_money


class OrderRepository(BaseRepository[OrderModel, OrderSchema]):
    """Read side of the revenue events; only completed orders are revenue."""

    def __init__(self, db: Session):
        super().__init__(OrderModel, OrderSchema, db)

    def sum_completed_revenue(self, seller_id: int) -> Decimal:
        total = (
            self.db.query(func.coalesce(func.sum(self.model_class.total_amount), 0))
            .filter(
                self.model_class.seller_id == seller_id,
                self.model_class.payment_status == OrderPaymentStatus.COMPLETED.value,
            )
            .scalar()
        )
        return to_money(total)

    def list_completed(self, seller_id: int) -> List[OrderSchema]:
        orders = (
            self._query()
            .filter(
                self.model_class.seller_id == seller_id,
                self.model_class.payment_status == OrderPaymentStatus.COMPLETED.value,
            )
            .order_by(desc(self.model_class.created_at))
            .all()
        )
        return self._to_schemas(orders)
