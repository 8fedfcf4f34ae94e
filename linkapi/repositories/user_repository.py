from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from linkapi.models.user import PaymentProviderAccount, User as UserModel
from linkapi.repositories.base import BaseRepository
from linkapi.schemas.user import PaymentProviderAccountSchema, UserStatsSchema


class UserRepository(BaseRepository[UserModel, UserStatsSchema]):
    """Creator-side writes the core is allowed to make on the users table."""

    def __init__(self, db: Session):
        super().__init__(UserModel, UserStatsSchema, db)

    def increment_stats(
        self, user_id: int, clicks: int = 1, views: int = 1, commit: bool = True
    ) -> bool:
        updated = (
            self.db.query(self.model_class)
            .filter(self.model_class.id == user_id)
            .update(
                {
                    self.model_class.total_clicks: self.model_class.total_clicks
                    + clicks,
                    self.model_class.total_views: self.model_class.total_views + views,
                },
                synchronize_session=False,
            )
        )
        if commit:
            self.db.commit()
        return updated == 1

    def adjust_link_count(self, user_id: int, delta: int, commit: bool = True) -> None:
        query = self.db.query(self.model_class).filter(self.model_class.id == user_id)
        if delta < 0:
            query = query.filter(self.model_class.link_count >= -delta)
        query.update(
            {self.model_class.link_count: self.model_class.link_count + delta},
            synchronize_session=False,
        )
        if commit:
            self.db.commit()

    def add_earnings(
        self, user_id: int, amount: Decimal, commit: bool = True
    ) -> None:
        self.db.query(self.model_class).filter(self.model_class.id == user_id).update(
            {
                self.model_class.total_earnings: self.model_class.total_earnings
                + amount
            },
            synchronize_session=False,
        )
        if commit:
            self.db.commit()

    def lock_ledger(self, user_id: int) -> bool:
        """
        Take the per-user payout lock for the current transaction.

        The write holds a row lock on Postgres (and the database write lock on
        SQLite) until commit or rollback, so balance checks made after it
        cannot interleave with another payout write for the same user.
        Never commits.

        Returns:
            bool: False when the user does not exist
        """
        updated = (
            self.db.query(self.model_class)
            .filter(self.model_class.id == user_id)
            .update(
                {self.model_class.ledger_version: self.model_class.ledger_version + 1},
                synchronize_session=False,
            )
        )
        return updated == 1

    def get_active_provider_account(
        self, user_id: int, provider: str
    ) -> Optional[PaymentProviderAccountSchema]:
        account = (
            self.db.query(PaymentProviderAccount)
            .filter(
                PaymentProviderAccount.user_id == user_id,
                PaymentProviderAccount.provider == provider,
                PaymentProviderAccount.is_active.is_(True),
            )
            .first()
        )
        if account is None:
            return None
        return PaymentProviderAccountSchema.model_validate(account)
