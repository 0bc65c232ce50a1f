"""Cart checkout for shopdesk."""

import logging
from concurrent.futures import ThreadPoolExecutor

from .cart_store import CartStore
from .catalog_store import ProductCatalogStore
from .errors import ShopdeskError, ValidationFailedError
from .models import CartItem, CheckoutLineResult, CheckoutResult

logger = logging.getLogger(__name__)


class Checkout:
    """
    Pay for the cart by decrementing stock for every line.

    The per-line decrements run concurrently and succeed or fail
    independently. The cart is cleared afterwards whatever the outcome;
    failed lines are reported in the result, never dropped.
    """

    def __init__(self, cart: CartStore, catalog: ProductCatalogStore):
        self.cart = cart
        self.catalog = catalog

    def _decrement(self, item: CartItem) -> CheckoutLineResult:
        try:
            product = self.catalog.get(item.id, refresh=True)
            self.catalog.decrement_stock(product, item.quantity)
        except ShopdeskError as e:
            logger.error("Stock update failed for %s: %s", item.id, e)
            return CheckoutLineResult(item.id, item.title, item.quantity, ok=False, error=str(e))
        return CheckoutLineResult(item.id, item.title, item.quantity, ok=True)

    def pay(self) -> CheckoutResult:
        """
        Check out the whole cart.

        Raises:
            ValidationFailedError: If the cart is empty.
        """
        items = list(self.cart.items)
        if not items:
            raise ValidationFailedError("Your cart is empty.")

        with ThreadPoolExecutor(max_workers=len(items)) as executor:
            lines = list(executor.map(self._decrement, items))

        # only lines whose stock was taken count towards the total
        total = sum(item.subtotal for item, line in zip(items, lines) if line.ok)
        self.cart.clear_cart()
        result = CheckoutResult(lines=lines, total=total)
        if result.ok:
            logger.info("Checkout of %d line(s) completed", len(lines))
        else:
            logger.warning(
                "Checkout completed with %d of %d line(s) failed", len(result.failed), len(lines)
            )
        return result
