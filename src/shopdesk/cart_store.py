"""In-memory shopping cart for shopdesk."""

from dataclasses import replace

from .errors import NotFoundError, ValidationFailedError
from .models import CartItem


class CartStore:
    """
    Cart lines held in memory only.

    There is at most one line per product id, and a line's quantity never
    exceeds the stock captured when the product was first added. The
    captured stock is not refreshed afterwards.
    """

    def __init__(self) -> None:
        self.items: list[CartItem] = []
        self.has_new_item = False

    def find(self, item_id: str) -> CartItem | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def add_to_cart(self, item: CartItem) -> CartItem:
        """
        Add units of a product, merging with an existing line.

        Returns the resulting line; its quantity is clamped to the captured stock.

        Raises:
            ValidationFailedError: If the quantity is not positive or the
                product is out of stock.
        """
        if item.quantity <= 0:
            raise ValidationFailedError("Please select a valid quantity")

        existing = self.find(item.id)
        if existing is not None:
            existing.quantity = min(existing.quantity + item.quantity, existing.stock)
            line = existing
        else:
            if item.stock <= 0:
                raise ValidationFailedError(f"{item.title} is out of stock")
            line = replace(item, quantity=min(item.quantity, item.stock))
            self.items.append(line)

        self.has_new_item = True
        return line

    def update_quantity(self, item_id: str, quantity: int) -> CartItem:
        """
        Set a line's quantity, clamped to its captured stock.

        Callers compare the returned quantity with the requested one to warn
        the user when it was clamped.

        Raises:
            NotFoundError: If the product is not in the cart.
            ValidationFailedError: If ``quantity`` is below 1.
        """
        item = self.find(item_id)
        if item is None:
            raise NotFoundError("Cart item", item_id)
        if quantity < 1:
            raise ValidationFailedError("Quantity must be at least 1")
        item.quantity = min(quantity, item.stock)
        return item

    def remove_from_cart(self, item_id: str) -> None:
        self.items = [i for i in self.items if i.id != item_id]

    def clear_cart(self) -> None:
        self.items = []

    def clear_notification(self) -> None:
        self.has_new_item = False

    @property
    def total_price(self) -> float:
        return sum(item.subtotal for item in self.items)

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def is_empty(self) -> bool:
        return not self.items
