from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from linkapi.models import User
from linkapi.models.notification import NotificationType
from linkapi.repositories.notification_repository import NotificationRepository
from linkapi.schemas.order import SaleRecordRequest
from linkapi.schemas.payout import TransactionType
from linkapi.services.ledger_service import LedgerService

from factories import make_order, make_payout, make_user


def day(n):
    return datetime(2026, 3, n, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def seller(db_session):
    return make_user(db_session)


@pytest.fixture
def service(db_session, settings):
    return LedgerService(db_session, settings)


class TestBalance:
    def test_available_balance_subtracts_reserved_payouts(
        self, service, db_session, seller
    ):
        # Arrange
        make_order(db_session, seller.id, "50.00")
        make_order(db_session, seller.id, "30.00")
        make_order(db_session, seller.id, "100.00", payment_status="pending")
        make_order(db_session, seller.id, "25.00", payment_status="refunded")
        make_payout(db_session, seller.id, "40.00", status="completed")
        make_payout(db_session, seller.id, "10.00", status="cancelled")
        make_payout(db_session, seller.id, "5.00", status="failed")

        # Act
        balance = service.available_balance(seller.id)

        # Assert
        assert balance == Decimal("40.00")

    def test_empty_ledger_is_zero(self, service, seller):
        assert service.available_balance(seller.id) == Decimal("0.00")

    def test_stats_split_paid_and_pending(self, service, db_session, seller):
        # Arrange
        make_order(db_session, seller.id, "80.00")
        make_payout(db_session, seller.id, "40.00", status="completed")
        make_payout(db_session, seller.id, "6.00", status="pending")
        make_payout(db_session, seller.id, "4.00", status="processing")

        # Act
        stats = service.get_payout_stats(seller.id)

        # Assert
        assert stats.total_earnings == Decimal("80.00")
        assert stats.total_paid_out == Decimal("40.00")
        assert stats.pending_amount == Decimal("10.00")
        assert stats.available_balance == Decimal("30.00")
        assert stats.available_balance == service.available_balance(seller.id)

    def test_balances_are_per_user(self, service, db_session, seller):
        other = make_user(db_session, email="other@example.com")
        make_order(db_session, other.id, "70.00")

        assert service.available_balance(seller.id) == Decimal("0.00")
        assert service.available_balance(other.id) == Decimal("70.00")


class TestTransactionHistory:
    @pytest.fixture
    def history(self, db_session, seller):
        make_order(db_session, seller.id, "20.00", created_at=day(1))
        make_payout(
            db_session, seller.id, "15.00", status="completed", created_at=day(2)
        )
        make_order(
            db_session, seller.id, "30.00", created_at=day(3), product_name="Course"
        )
        make_payout(db_session, seller.id, "12.00", created_at=day(4))
        make_order(
            db_session, seller.id, "99.00", payment_status="pending", created_at=day(5)
        )

    def test_merged_newest_first(self, service, seller, history):
        # Act
        page = service.transaction_history(seller.id, page=1, limit=10)

        # Assert
        assert page.pagination.total == 4
        assert [(t.type, t.amount) for t in page.transactions] == [
            (TransactionType.PAYOUT, Decimal("-12.00")),
            (TransactionType.EARNING, Decimal("30.00")),
            (TransactionType.PAYOUT, Decimal("-15.00")),
            (TransactionType.EARNING, Decimal("20.00")),
        ]
        assert page.transactions[1].description == "Sale: Course"
        assert page.transactions[1].counterparty == "Buyer"
        assert page.transactions[0].description == "Payout via paypal"

    def test_pages_follow_merged_order(self, service, seller, history):
        second = service.transaction_history(seller.id, page=2, limit=3)

        assert second.pagination.pages == 2
        assert [t.amount for t in second.transactions] == [Decimal("20.00")]

    def test_type_filter(self, service, seller, history):
        payouts = service.transaction_history(
            seller.id, type_filter=TransactionType.PAYOUT
        )

        assert payouts.pagination.total == 2
        assert {t.type for t in payouts.transactions} == {TransactionType.PAYOUT}


class TestRecordSale:
    def test_sale_becomes_balance_and_notifies(self, service, db_session, seller):
        # Act
        order = service.record_sale(
            SaleRecordRequest(
                seller_id=seller.id,
                amount=Decimal("19.99"),
                product_name="Preset pack",
                buyer_name="Sam",
            )
        )

        # Assert
        assert order.total_amount == Decimal("19.99")
        assert service.available_balance(seller.id) == Decimal("19.99")

        db_session.expire_all()
        assert db_session.get(User, seller.id).total_earnings == Decimal("19.99")

        notifications = NotificationRepository(db_session).find_all(
            {"user_id": seller.id}, order_by="id"
        )
        assert len(notifications) == 1
        assert notifications[0].type == NotificationType.SALE
        assert notifications[0].title == "New Sale"

    def test_notification_failure_keeps_sale(self, service, db_session, seller):
        with patch.object(
            service.notification_service.notification_repo,
            "create",
            side_effect=OperationalError("INSERT", {}, Exception("boom")),
        ):
            order = service.record_sale(
                SaleRecordRequest(
                    seller_id=seller.id, amount=Decimal("5.00"), product_name="Zine"
                )
            )

        assert order.id is not None
        assert service.available_balance(seller.id) == Decimal("5.00")
