from dependency_injector import containers, providers

from linkapi.config import Settings
from linkapi.services.analytics_service import AnalyticsService
from linkapi.services.ledger_service import LedgerService
from linkapi.services.link_service import LinkService
from linkapi.services.notification_service import NotificationService
from linkapi.services.payout_service import PayoutService
from linkapi.services.redirect_service import RedirectService


class ConfigModule(containers.DeclarativeContainer):
    """Application configuration."""

    config = providers.Singleton(Settings)


class ServiceModule(containers.DeclarativeContainer):
    """Service factories; the request session is passed in as db=."""

    config = providers.DependenciesContainer()

    notification_service = providers.Factory(NotificationService)
    redirect_service = providers.Factory(RedirectService, settings=config.config)
    link_service = providers.Factory(LinkService, settings=config.config)
    analytics_service = providers.Factory(AnalyticsService, settings=config.config)
    ledger_service = providers.Factory(LedgerService, settings=config.config)
    payout_service = providers.Factory(PayoutService, settings=config.config)


class Container(containers.DeclarativeContainer):
    """Application container."""

    wiring_config = containers.WiringConfiguration(
        modules=["linkapi.deps"],
    )

    config = providers.Container(ConfigModule)
    services = providers.Container(ServiceModule, config=config)
