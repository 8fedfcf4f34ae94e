"""
Payout API

Creator endpoints (bearer token):
- GET  /payouts: payout history
- POST /payouts: request a payout
- GET  /payouts/stats: earnings, paid out, pending, available
- GET  /payouts/transactions: merged earnings and payouts
- GET  /payouts/{id}
- PUT  /payouts/{id}/cancel

Collaborator callbacks (AUTH_TOKEN):
- PUT  /payouts/{id}/status: payment provider status report
- POST /payouts/sales: order service records a completed sale
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from linkapi.core.auth_middleware import get_current_user_id, verify_internal_token
from linkapi.core.exceptions import (
    InvalidPayoutStateError,
    NotFoundError,
    PayoutRejectedError,
)
from linkapi.deps import get_ledger_service, get_payout_service
from linkapi.models.ledger import PayoutStatus
from linkapi.schemas.order import OrderSchema, SaleRecordRequest
from linkapi.schemas.pagination import PaginationLimits
from linkapi.schemas.payout import (
    PayoutCreateRequest,
    PayoutListResponse,
    PayoutRejectionReason,
    PayoutResult,
    PayoutSchema,
    PayoutStatsResponse,
    PayoutStatusUpdateRequest,
    TransactionHistoryResponse,
    TransactionType,
)
from linkapi.services.ledger_service import LedgerService
from linkapi.services.payout_service import PayoutService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payouts", tags=["payouts"])


def unwrap(result: PayoutResult) -> PayoutSchema:
    """Payout from a successful result; rejections become HTTP errors."""
    if result.success:
        return result.payout

    if result.reason == PayoutRejectionReason.NOT_FOUND:
        raise NotFoundError(result.message)
    if result.reason == PayoutRejectionReason.INVALID_STATE:
        raise InvalidPayoutStateError(result.message)

    details = {}
    if result.available_balance is not None:
        details["available_balance"] = str(result.available_balance)
    raise PayoutRejectedError(result.reason.value, result.message, details=details)


@router.get("/", response_model=PayoutListResponse)
def list_payouts(
    page: int = Query(1, ge=1),
    limit: int = Query(
        PaginationLimits.PAYOUTS["default"],
        ge=PaginationLimits.PAYOUTS["min"],
        le=PaginationLimits.PAYOUTS["max"],
    ),
    payout_status: Optional[PayoutStatus] = Query(None, alias="status"),
    user_id: int = Depends(get_current_user_id),
    payout_service: PayoutService = Depends(get_payout_service),
) -> PayoutListResponse:
    return payout_service.list_payouts(user_id, page, limit, payout_status)


@router.post("/", response_model=PayoutSchema, status_code=status.HTTP_201_CREATED)
def request_payout(
    request: PayoutCreateRequest,
    user_id: int = Depends(get_current_user_id),
    payout_service: PayoutService = Depends(get_payout_service),
) -> PayoutSchema:
    """
    Request a payout against the available balance.

    HTTP Status:
        201: pending payout created
        400: NO_PROVIDER, INSUFFICIENT_BALANCE or BELOW_MINIMUM
        401: missing or invalid token
    """
    result = payout_service.request_payout(user_id, request.amount, request.provider)
    return unwrap(result)


@router.get("/stats", response_model=PayoutStatsResponse)
def get_payout_stats(
    user_id: int = Depends(get_current_user_id),
    ledger_service: LedgerService = Depends(get_ledger_service),
) -> PayoutStatsResponse:
    return ledger_service.get_payout_stats(user_id)


@router.get("/transactions", response_model=TransactionHistoryResponse)
def get_transactions(
    page: int = Query(1, ge=1),
    limit: int = Query(
        PaginationLimits.TRANSACTIONS["default"],
        ge=PaginationLimits.TRANSACTIONS["min"],
        le=PaginationLimits.TRANSACTIONS["max"],
    ),
    type: Optional[TransactionType] = Query(None, description="earning | payout"),
    user_id: int = Depends(get_current_user_id),
    ledger_service: LedgerService = Depends(get_ledger_service),
) -> TransactionHistoryResponse:
    return ledger_service.transaction_history(user_id, page, limit, type)


@router.post(
    "/sales", response_model=OrderSchema, status_code=status.HTTP_201_CREATED
)
def record_sale(
    request: SaleRecordRequest,
    _: bool = Depends(verify_internal_token),
    ledger_service: LedgerService = Depends(get_ledger_service),
) -> OrderSchema:
    """Credit a completed sale to its seller and notify them."""
    return ledger_service.record_sale(request)


@router.get("/{payout_id}", response_model=PayoutSchema)
def get_payout(
    payout_id: int = Path(..., ge=1),
    user_id: int = Depends(get_current_user_id),
    payout_service: PayoutService = Depends(get_payout_service),
) -> PayoutSchema:
    return payout_service.get_payout(user_id, payout_id)


@router.put("/{payout_id}/cancel", response_model=PayoutSchema)
def cancel_payout(
    payout_id: int = Path(..., ge=1),
    user_id: int = Depends(get_current_user_id),
    payout_service: PayoutService = Depends(get_payout_service),
) -> PayoutSchema:
    """Cancel a pending payout (409 for any other status)."""
    return unwrap(payout_service.cancel_payout(user_id, payout_id))


@router.put("/{payout_id}/status", response_model=PayoutSchema)
def update_payout_status(
    request: PayoutStatusUpdateRequest,
    payout_id: int = Path(..., ge=1),
    _: bool = Depends(verify_internal_token),
    payout_service: PayoutService = Depends(get_payout_service),
) -> PayoutSchema:
    result = payout_service.update_status(
        payout_id,
        request.status,
        transaction_id=request.transaction_id,
        failure_reason=request.failure_reason,
    )
    logger.info(f"Provider callback for payout {payout_id}: {request.status.value}")
    return unwrap(result)
