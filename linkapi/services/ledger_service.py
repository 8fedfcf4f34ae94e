"""
Earnings ledger

The available balance is derived on every read:

    completed order revenue - payouts in (pending, processing, completed)

Pending and processing payouts are subtracted too, which is what keeps a run
of payout requests from spending the same revenue twice.
"""

import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from linkapi.config import Settings
from linkapi.models.ledger import (
    RESERVED_PAYOUT_STATUSES,
    OrderPaymentStatus,
    PayoutStatus,
)
from linkapi.models.notification import NotificationType
from linkapi.repositories.order_repository import OrderRepository
from linkapi.repositories.payout_repository import PayoutRepository
from linkapi.repositories.user_repository import UserRepository
from linkapi.schemas.order import OrderSchema, SaleRecordRequest
from linkapi.schemas.pagination import PageMeta
from linkapi.schemas.payout import (
    PayoutStatsResponse,
    TransactionHistoryResponse,
    TransactionItem,
    TransactionType,
)
from linkapi.services.notification_service import NotificationService
from linkapi.utils.money import to_money
from linkapi.utils.pagination import merge_and_paginate
from linkapi.utils.timezone_utils import to_utc

logger = logging.getLogger(__name__)


class LedgerService:
    def __init__(
        self,
        db: Session,
        settings: Settings,
        notification_service: Optional[NotificationService] = None,
    ):
        self.db = db
        self.settings = settings
        self.order_repo = OrderRepository(db)
        self.payout_repo = PayoutRepository(db)
        self.user_repo = UserRepository(db)
        self.notification_service = notification_service or NotificationService(db)

    def available_balance(self, user_id: int) -> Decimal:
        revenue = self.order_repo.sum_completed_revenue(user_id)
        reserved = self.payout_repo.sum_by_statuses(user_id, RESERVED_PAYOUT_STATUSES)
        return to_money(revenue - reserved)

    def get_payout_stats(self, user_id: int) -> PayoutStatsResponse:
        total_earnings = self.order_repo.sum_completed_revenue(user_id)
        total_paid_out = self.payout_repo.sum_by_statuses(
            user_id, [PayoutStatus.COMPLETED.value]
        )
        pending_amount = self.payout_repo.sum_by_statuses(
            user_id, [PayoutStatus.PENDING.value, PayoutStatus.PROCESSING.value]
        )
        return PayoutStatsResponse(
            total_earnings=total_earnings,
            total_paid_out=total_paid_out,
            pending_amount=pending_amount,
            available_balance=to_money(
                total_earnings - total_paid_out - pending_amount
            ),
        )

    def _earning_items(self, user_id: int) -> List[TransactionItem]:
        return [
            TransactionItem(
                id=order.id,
                type=TransactionType.EARNING,
                amount=to_money(order.total_amount),
                description=f"Sale: {order.product_name or 'Product'}",
                status=order.payment_status.value,
                counterparty=order.buyer_name or "Unknown",
                date=order.created_at,
            )
            for order in self.order_repo.list_completed(user_id)
        ]

    def _payout_items(self, user_id: int) -> List[TransactionItem]:
        return [
            TransactionItem(
                id=payout.id,
                type=TransactionType.PAYOUT,
                amount=-to_money(payout.amount),
                description=f"Payout via {payout.provider.value}",
                status=payout.status.value,
                date=payout.created_at,
            )
            for payout in self.payout_repo.list_for_user(user_id)
        ]

    def transaction_history(
        self,
        user_id: int,
        page: int = 1,
        limit: int = 20,
        type_filter: Optional[TransactionType] = None,
    ) -> TransactionHistoryResponse:
        """Earnings and payouts merged into one date-descending page.

        Args:
            user_id: creator
            page: 1-based page number
            limit: page size
            type_filter: only earnings or only payouts; both when None

        Returns:
            TransactionHistoryResponse: page items and pagination meta
        """
        sources = []
        if type_filter in (None, TransactionType.EARNING):
            sources.append(self._earning_items(user_id))
        if type_filter in (None, TransactionType.PAYOUT):
            sources.append(self._payout_items(user_id))

        items, total = merge_and_paginate(
            sources,
            key=lambda item: (to_utc(item.date), item.id),
            page=page,
            limit=limit,
        )
        return TransactionHistoryResponse(
            transactions=items,
            pagination=PageMeta.build(total=total, page=page, limit=limit),
        )

    def record_sale(self, request: SaleRecordRequest) -> OrderSchema:
        """Store a completed sale for the seller and credit their cached earnings."""
        amount = to_money(request.amount)
        order = self.order_repo.create(
            commit=False,
            seller_id=request.seller_id,
            buyer_id=request.buyer_id,
            buyer_name=request.buyer_name,
            product_name=request.product_name,
            total_amount=amount,
            currency=self.settings.DEFAULT_CURRENCY,
            payment_status=OrderPaymentStatus.COMPLETED.value,
        )
        self.user_repo.add_earnings(request.seller_id, amount, commit=False)
        self.db.commit()

        logger.info(
            f"Recorded sale {order.id} of {amount} for user {request.seller_id}"
        )
        self.notification_service.notify(
            request.seller_id,
            NotificationType.SALE,
            title="New Sale",
            message=f"You sold {request.product_name} for ${amount}",
            action_url="/payments",
        )
        return order
