"""Application context wiring the shopdesk stores together."""

import logging

import httpx

from .cart_store import CartStore
from .catalog_store import ProductCatalogStore
from .checkout import Checkout
from .config import PRODUCTS_COLLECTION, USERS_COLLECTION, Settings
from .purchase import PurchaseWorkflow
from .resource_client import ResourceClient
from .session_store import Session, SessionStore
from .user_store import UserStore

logger = logging.getLogger(__name__)


class Dashboard:
    """
    One HTTP client, one session and the stores that share them.

    Everything that needs the current user or the caches goes through this
    object rather than reaching for globals.
    """

    def __init__(self, settings: Settings, http: httpx.Client):
        self.settings = settings
        self.http = http

        self.session = Session(SessionStore(settings.data_dir))
        self.catalog = ProductCatalogStore(ResourceClient(http, PRODUCTS_COLLECTION, kind="Product"))
        self.users = UserStore(
            ResourceClient(http, USERS_COLLECTION, kind="User"), self.catalog, self.session
        )
        self.cart = CartStore()
        self.purchases = PurchaseWorkflow(self.users, self.catalog)
        self.checkout = Checkout(self.cart, self.catalog)

    @classmethod
    def create(
        cls,
        settings: Settings | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> "Dashboard":
        """
        Build a dashboard and restore the persisted session.

        Args:
            settings: Defaults to Settings.from_env().
            transport: Override the HTTP transport (for testing).
        """
        settings = settings or Settings.from_env()
        http = httpx.Client(
            base_url=settings.api_url,
            timeout=settings.http_timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )
        dashboard = cls(settings, http)
        dashboard.session.load()
        logger.debug("Dashboard ready against %s", settings.api_url)
        return dashboard

    def refresh(self) -> None:
        """Reload users and products from the backend."""
        self.catalog.fetch_products()
        self.users.fetch_users()

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> "Dashboard":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
