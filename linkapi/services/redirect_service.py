"""
Redirect gateway

One call per inbound short-code request:

    lookup -> access gate -> conditional counter increment -> click event
           -> commit -> owner stats (best-effort) -> destination

The increment and the event share a transaction, so a click that loses the
cap race leaves neither a counter bump nor an event behind.
"""

import logging
from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from linkapi.config import Settings
from linkapi.core import access_gate
from linkapi.core.access_gate import AccessRule
from linkapi.repositories.link_repository import LinkRepository
from linkapi.repositories.user_repository import UserRepository
from linkapi.schemas.link import (
    AccessDenialReason,
    LinkSchema,
    RedirectResult,
    RequestMetadata,
)
from linkapi.services.click_recorder import ClickRecorder
from linkapi.utils.timezone_utils import Clock, utc_now

logger = logging.getLogger(__name__)

DENIAL_MESSAGES = {
    AccessDenialReason.NOT_FOUND: "Link not found",
    AccessDenialReason.UNAVAILABLE: "This link is not available",
    AccessDenialReason.LIMIT_REACHED: "This link has reached its access limit",
}


class RedirectService:
    def __init__(
        self,
        db: Session,
        settings: Settings,
        clock: Optional[Clock] = None,
        extra_rules: Optional[Sequence[AccessRule]] = None,
    ):
        self.db = db
        self.settings = settings
        self.clock = clock or utc_now
        self.link_repo = LinkRepository(db)
        self.user_repo = UserRepository(db)
        self.click_recorder = ClickRecorder(db, clock=self.clock)
        self.extra_rules = self._build_rules(extra_rules)

    def _build_rules(
        self, extra_rules: Optional[Sequence[AccessRule]]
    ) -> List[AccessRule]:
        rules: List[AccessRule] = []
        if self.settings.ENFORCE_SCHEDULING_WINDOW:
            rules.append(access_gate.scheduling_window_rule)
        rules.extend(extra_rules or ())
        return rules

    def handle(self, short_code: str, metadata: RequestMetadata) -> RedirectResult:
        """Resolve a short code and, if servable, count the click.

        Args:
            short_code: public token from the URL
            metadata: request details for the click event

        Returns:
            RedirectResult: destination on success, otherwise the denial reason
        """
        now = self.clock()
        link = self.link_repo.get_by_short_code(short_code)

        decision = access_gate.decide(link, now, self.extra_rules)
        if not decision.allowed:
            logger.info(f"Redirect denied for '{short_code}': {decision.reason.value}")
            return self._denied(decision.reason)

        if metadata.timestamp is None:
            metadata = metadata.model_copy(update={"timestamp": now})

        denial = self._count_click(link, metadata, now)
        if denial is not None:
            logger.info(
                f"Redirect for '{short_code}' lost the cap race: {denial.value}"
            )
            return self._denied(denial)

        return RedirectResult(
            success=True,
            url=link.url,
            title=link.title,
            message="OK",
        )

    def _count_click(
        self, link: LinkSchema, metadata: RequestMetadata, now: datetime
    ) -> Optional[AccessDenialReason]:
        """Increment counters and record the event in one transaction.

        Storage errors are retried STORAGE_RETRY_ATTEMPTS times. When every
        attempt fails the click is dropped and the redirect is still served.
        """
        attempts = 1 + max(self.settings.STORAGE_RETRY_ATTEMPTS, 0)

        for attempt in range(1, attempts + 1):
            try:
                if not self.link_repo.try_increment_with_cap(link.id, commit=False):
                    self.db.rollback()
                    return self._recheck(link.short_code, now)

                self.click_recorder.record(link.id, metadata, commit=False)
                self.db.commit()
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.warning(
                    f"Click storage failed for link {link.id} "
                    f"(attempt {attempt}/{attempts}): {str(e)}"
                )
                continue

            self._bump_owner_stats(link.user_id)
            return None

        logger.error(
            f"Click for link {link.id} dropped after {attempts} attempts; "
            f"serving destination anyway"
        )
        return None

    def _recheck(self, short_code: str, now: datetime) -> AccessDenialReason:
        """Reason for a click whose conditional increment matched no row."""
        current = self.link_repo.get_by_short_code(short_code)
        decision = access_gate.decide(current, now, self.extra_rules)
        if decision.reason is not None:
            return decision.reason
        return AccessDenialReason.LIMIT_REACHED

    def _bump_owner_stats(self, user_id: int) -> None:
        try:
            self.user_repo.increment_stats(user_id, clicks=1, views=1)
        except Exception as e:
            self.db.rollback()
            logger.warning(
                f"Failed to update cached stats for user {user_id}: {str(e)}"
            )

    @staticmethod
    def _denied(reason: AccessDenialReason) -> RedirectResult:
        return RedirectResult(
            success=False, reason=reason, message=DENIAL_MESSAGES[reason]
        )
