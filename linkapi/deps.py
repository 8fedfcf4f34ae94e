from typing import Callable

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from sqlalchemy.orm import Session

from linkapi.containers import Container
from linkapi.database.session import get_db
from linkapi.services.analytics_service import AnalyticsService
from linkapi.services.ledger_service import LedgerService
from linkapi.services.link_service import LinkService
from linkapi.services.payout_service import PayoutService
from linkapi.services.redirect_service import RedirectService

# Each dependency binds the container's factory to the per-request session.


@inject
def get_redirect_service(
    db: Session = Depends(get_db),
    factory: Callable[..., RedirectService] = Depends(
        Provide[Container.services.redirect_service.provider]
    ),
) -> RedirectService:
    return factory(db=db)


@inject
def get_link_service(
    db: Session = Depends(get_db),
    factory: Callable[..., LinkService] = Depends(
        Provide[Container.services.link_service.provider]
    ),
) -> LinkService:
    return factory(db=db)


@inject
def get_analytics_service(
    db: Session = Depends(get_db),
    factory: Callable[..., AnalyticsService] = Depends(
        Provide[Container.services.analytics_service.provider]
    ),
) -> AnalyticsService:
    return factory(db=db)


@inject
def get_ledger_service(
    db: Session = Depends(get_db),
    factory: Callable[..., LedgerService] = Depends(
        Provide[Container.services.ledger_service.provider]
    ),
) -> LedgerService:
    return factory(db=db)


@inject
def get_payout_service(
    db: Session = Depends(get_db),
    factory: Callable[..., PayoutService] = Depends(
        Provide[Container.services.payout_service.provider]
    ),
) -> PayoutService:
    return factory(db=db)
