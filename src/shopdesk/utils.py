"""Utility functions for shopdesk."""

import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator

from .errors import ShopdeskError

if TYPE_CHECKING:
    from .models import Product, User


class RoundTripState:
    """
    Loading/error bookkeeping shared by the stores.

    ``loading`` is True while at least one backend round trip started by the
    store is in flight; ``error`` keeps the message of the last failure.
    """

    def __init__(self) -> None:
        self.error: str | None = None
        self._pending = 0
        self._pending_lock = threading.Lock()

    @property
    def loading(self) -> bool:
        return self._pending > 0

    @contextmanager
    def _round_trip(self) -> Iterator[None]:
        with self._pending_lock:
            self._pending += 1
        try:
            yield
            self.error = None
        except ShopdeskError as e:
            self.error = str(e)
            raise
        finally:
            with self._pending_lock:
                self._pending -= 1


def normalize_code(code: str | None) -> str:
    """Normalize a postal code for case-insensitive comparison."""
    return (code or "").strip().lower()


def format_money(amount: float) -> str:
    return f"{amount:,.2f}"


def format_user(user: "User", verbose: bool = False) -> str:
    """Format a user for display."""
    status = "active" if user.is_active else "inactive"
    result = f"{user.id}  {user.full_name} <{user.email}> ({status})"

    if verbose:
        if user.address:
            result += f"\n         Address: {user.address}"
        if user.purchased_products:
            result += (
                f"\n         Purchases: {user.total_items} item(s), "
                f"total {format_money(user.total_spent)}"
            )
            for line in user.purchased_products:
                result += (
                    f"\n           | {line.product_name} x{line.quantity} "
                    f"@ {format_money(line.price)}"
                )

    return result


def format_product(product: "Product") -> str:
    """Format a product for display."""
    stock = f"{product.quantity} in stock" if product.quantity > 0 else "out of stock"
    location = f" [{product.location}]" if product.location else ""
    zip_str = f" zip {product.zip}" if product.zip else ""
    return f"{product.id}  {product.title}  {format_money(product.price)} ({stock}){location}{zip_str}"
