"""
Payout reconciler

Every payout write for a user runs inside that user's ledger lock (see
UserRepository.lock_ledger), so a balance check and the insert or status
change that depends on it cannot interleave with another payout write for
the same user. Writes are never retried: a request ends as a definite
success or a definite rejection.
"""

import logging
from decimal import Decimal
from typing import Dict, FrozenSet, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from linkapi.config import Settings
from linkapi.core.exceptions import NotFoundError
from linkapi.models.ledger import PayoutStatus
from linkapi.models.notification import NotificationType
from linkapi.models.user import PaymentProvider
from linkapi.repositories.payout_repository import PayoutRepository
from linkapi.repositories.user_repository import UserRepository
from linkapi.schemas.pagination import PageMeta
from linkapi.schemas.payout import (
    PayoutListResponse,
    PayoutRejectionReason,
    PayoutResult,
    PayoutSchema,
)
from linkapi.services.ledger_service import LedgerService
from linkapi.services.notification_service import NotificationService
from linkapi.utils.money import to_money
from linkapi.utils.timezone_utils import Clock, utc_now

logger = logging.getLogger(__name__)

# moves the payment provider may report; completed and failed are terminal
PROVIDER_TRANSITIONS: Dict[PayoutStatus, FrozenSet[PayoutStatus]] = {
    PayoutStatus.PENDING: frozenset({PayoutStatus.PROCESSING}),
    PayoutStatus.PROCESSING: frozenset({PayoutStatus.COMPLETED, PayoutStatus.FAILED}),
}


class PayoutService:
    def __init__(
        self,
        db: Session,
        settings: Settings,
        clock: Optional[Clock] = None,
        notification_service: Optional[NotificationService] = None,
    ):
        self.db = db
        self.settings = settings
        self.clock = clock or utc_now
        self.payout_repo = PayoutRepository(db)
        self.user_repo = UserRepository(db)
        self.notification_service = notification_service or NotificationService(db)
        self.ledger = LedgerService(
            db, settings, notification_service=self.notification_service
        )

    @staticmethod
    def _rejected(
        reason: PayoutRejectionReason,
        message: str,
        available_balance: Optional[Decimal] = None,
    ) -> PayoutResult:
        return PayoutResult(
            success=False,
            reason=reason,
            message=message,
            available_balance=available_balance,
        )

    def request_payout(
        self,
        user_id: int,
        amount: Decimal,
        provider: Union[PaymentProvider, str],
    ) -> PayoutResult:
        """
        Reserve amount from the creator's balance as a pending payout.

        Checks run in order: configured provider account, available balance,
        platform minimum. The balance check and the insert happen under the
        user's ledger lock.

        Args:
            user_id: creator
            amount: requested amount
            provider: payout rail; needs an active account for the user

        Returns:
            PayoutResult: the pending payout, or the rejection reason
        """
        amount = to_money(amount)
        try:
            provider = PaymentProvider(provider)
        except ValueError:
            return self._rejected(
                PayoutRejectionReason.NO_PROVIDER,
                f"Unsupported payment provider: {provider}",
            )

        account = self.user_repo.get_active_provider_account(user_id, provider.value)
        if account is None:
            return self._rejected(
                PayoutRejectionReason.NO_PROVIDER,
                "Payment provider not configured or inactive",
            )

        try:
            self.user_repo.lock_ledger(user_id)
            balance = self.ledger.available_balance(user_id)

            if amount > balance:
                self.db.rollback()
                logger.info(
                    f"Payout of {amount} rejected for user {user_id}: "
                    f"balance {balance}"
                )
                return self._rejected(
                    PayoutRejectionReason.INSUFFICIENT_BALANCE,
                    f"Insufficient balance. Available: ${balance}",
                    available_balance=balance,
                )

            minimum = to_money(self.settings.MINIMUM_PAYOUT)
            if amount < minimum:
                self.db.rollback()
                return self._rejected(
                    PayoutRejectionReason.BELOW_MINIMUM,
                    f"Minimum payout amount is ${minimum}",
                    available_balance=balance,
                )

            payout = self.payout_repo.create(
                commit=False,
                user_id=user_id,
                amount=amount,
                currency=self.settings.DEFAULT_CURRENCY,
                provider=provider.value,
                status=PayoutStatus.PENDING.value,
                account_details=account.snapshot(),
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Payout request failed for user {user_id}: {str(e)}")
            raise

        logger.info(f"Payout {payout.id} of {amount} requested by user {user_id}")
        self.notification_service.notify(
            user_id,
            NotificationType.PAYOUT,
            title="Payout Requested",
            message=f"Your payout request for ${amount} has been submitted",
            action_url="/payments",
        )

        return PayoutResult(
            success=True,
            payout=payout,
            message="Payout requested",
            available_balance=to_money(balance - amount),
        )

    def cancel_payout(self, user_id: int, payout_id: int) -> PayoutResult:
        """Cancel a pending payout; its amount returns to the balance."""
        payout = self.payout_repo.get_owned(user_id, payout_id)
        if payout is None:
            return self._rejected(
                PayoutRejectionReason.NOT_FOUND, "Payout not found"
            )
        if payout.status != PayoutStatus.PENDING:
            return self._rejected(
                PayoutRejectionReason.INVALID_STATE,
                "Can only cancel pending payouts",
            )

        try:
            self.user_repo.lock_ledger(user_id)
            moved = self.payout_repo.compare_and_set_status(
                payout_id, PayoutStatus.PENDING.value, PayoutStatus.CANCELLED.value
            )
            if not moved:
                self.db.rollback()
                return self._rejected(
                    PayoutRejectionReason.INVALID_STATE,
                    "Can only cancel pending payouts",
                )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Cancelling payout {payout_id} failed: {str(e)}")
            raise

        logger.info(f"Payout {payout_id} cancelled by user {user_id}")
        return PayoutResult(
            success=True,
            payout=self.payout_repo.get_owned(user_id, payout_id),
            message="Payout cancelled",
            available_balance=self.ledger.available_balance(user_id),
        )

    def update_status(
        self,
        payout_id: int,
        new_status: PayoutStatus,
        transaction_id: Optional[str] = None,
        failure_reason: Optional[str] = None,
    ) -> PayoutResult:
        """Apply a status reported by the payment provider.

        Only pending -> processing and processing -> completed|failed are
        accepted; anything else is INVALID_STATE.
        """
        new_status = PayoutStatus(new_status)
        payout = self.payout_repo.get_by_id(payout_id)
        if payout is None:
            return self._rejected(
                PayoutRejectionReason.NOT_FOUND, "Payout not found"
            )

        allowed = PROVIDER_TRANSITIONS.get(payout.status, frozenset())
        if new_status not in allowed:
            return self._rejected(
                PayoutRejectionReason.INVALID_STATE,
                f"Cannot move payout from {payout.status.value} to {new_status.value}",
            )

        now = self.clock()
        fields = {}
        if new_status == PayoutStatus.PROCESSING:
            fields["processed_at"] = now
        else:
            fields["completed_at"] = now
        if transaction_id:
            fields["transaction_id"] = transaction_id
        if new_status == PayoutStatus.FAILED:
            fields["failure_reason"] = failure_reason or "Payment provider failure"

        try:
            self.user_repo.lock_ledger(payout.user_id)
            moved = self.payout_repo.compare_and_set_status(
                payout_id, payout.status.value, new_status.value, **fields
            )
            if not moved:
                self.db.rollback()
                return self._rejected(
                    PayoutRejectionReason.INVALID_STATE,
                    "Payout status changed concurrently",
                )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Status update for payout {payout_id} failed: {str(e)}")
            raise

        logger.info(
            f"Payout {payout_id}: {payout.status.value} -> {new_status.value}"
        )
        if new_status in (PayoutStatus.COMPLETED, PayoutStatus.FAILED):
            self.notification_service.notify(
                payout.user_id,
                NotificationType.PAYOUT,
                title=f"Payout {new_status.value.capitalize()}",
                message=(
                    f"Your payout of ${to_money(payout.amount)} is {new_status.value}"
                ),
                action_url="/payments",
            )

        return PayoutResult(
            success=True,
            payout=self.payout_repo.get_by_id(payout_id),
            message=f"Payout {new_status.value}",
        )

    def list_payouts(
        self,
        user_id: int,
        page: int = 1,
        limit: int = 10,
        status: Optional[PayoutStatus] = None,
    ) -> PayoutListResponse:
        status_value = status.value if status else None
        payouts = self.payout_repo.list_for_user(
            user_id,
            status=status_value,
            limit=limit,
            offset=(max(page, 1) - 1) * limit,
        )
        total = self.payout_repo.count_for_user(user_id, status=status_value)
        return PayoutListResponse(
            payouts=payouts,
            pagination=PageMeta.build(total=total, page=page, limit=limit),
        )

    def get_payout(self, user_id: int, payout_id: int) -> PayoutSchema:
        payout = self.payout_repo.get_owned(user_id, payout_id)
        if payout is None:
            raise NotFoundError("Payout not found", details={"payout_id": payout_id})
        return payout
