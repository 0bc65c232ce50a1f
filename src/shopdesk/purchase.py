"""Purchase workflow: record a sale against product stock and user history."""

import logging
from dataclasses import replace

from .catalog_store import ProductCatalogStore
from .errors import (
    NotFoundError,
    PurchaseIncompleteError,
    RequestFailedError,
    ValidationFailedError,
)
from .models import Product, PurchaseLine, PurchaseReceipt, User
from .user_store import UserStore
from .utils import normalize_code

logger = logging.getLogger(__name__)


def merge_purchase(lines: list[PurchaseLine], product: Product, quantity: int) -> list[PurchaseLine]:
    """
    Return a new purchase history with ``quantity`` units of ``product`` added.

    An existing line for the product is incremented in place; otherwise a
    line is appended with the product's current title and price.
    """
    merged = []
    found = False
    for line in lines:
        if line.product_id == product.id:
            line = replace(line, quantity=line.quantity + quantity)
            found = True
        else:
            line = replace(line)
        merged.append(line)
    if not found:
        merged.append(
            PurchaseLine(
                product_id=product.id,
                product_name=product.title,
                quantity=quantity,
                price=product.price,
            )
        )
    return merged


class PurchaseWorkflow:
    """
    Buy a product on behalf of a user.

    Holds the transient selection (buyer, postal code, product, quantity).
    Confirming issues two independent writes, the stock decrement and then
    the user's purchase history; there is no rollback between them.
    """

    def __init__(self, users: UserStore, catalog: ProductCatalogStore):
        self.users = users
        self.catalog = catalog
        self.reset()

    def reset(self) -> None:
        """Clear the current selection."""
        self.selected_user_id = ""
        self.postal_code = ""
        self.selected_product_id = ""
        self.quantity = 1

    # --- selection ---

    def eligible_buyers(self) -> list[User]:
        return self.users.active_users()

    def available_products(self) -> list[Product]:
        """Products available near the entered postal code."""
        return self.catalog.products_near(self.postal_code)

    def select_user(self, user_id: str) -> User:
        user = self.users.find(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        if not user.is_active:
            raise ValidationFailedError(f"{user.full_name or user.email} is not an active user")
        self.selected_user_id = user_id
        return user

    def set_postal_code(self, postal_code: str) -> list[Product]:
        self.postal_code = postal_code.strip()
        selected = self.catalog.find(self.selected_product_id)
        if selected is not None and normalize_code(selected.zip) != normalize_code(self.postal_code):
            self.selected_product_id = ""
        return self.available_products()

    def select_product(self, product_id: str) -> Product:
        for product in self.available_products():
            if product.id == product_id:
                self.selected_product_id = product_id
                return product
        raise ValidationFailedError(f"Product {product_id} is not available at {self.postal_code!r}")

    def set_quantity(self, quantity: int) -> None:
        self.quantity = quantity

    # --- confirmation ---

    def check(self) -> tuple[User, Product]:
        """
        Validate the selection before asking for confirmation.

        Raises:
            ValidationFailedError: If something is missing, the product is out
                of stock, or the quantity is not in 1..stock.
            NotFoundError: If the selected user or product is gone.
        """
        if not self.selected_user_id or not self.postal_code or not self.selected_product_id:
            raise ValidationFailedError("Please select user, postal code, and product")

        product = self.catalog.find(self.selected_product_id)
        if product is None:
            raise NotFoundError("Product", self.selected_product_id)
        user = self.users.find(self.selected_user_id)
        if user is None:
            raise NotFoundError("User", self.selected_user_id)

        if product.quantity <= 0:
            raise ValidationFailedError("Out of stock!")
        if self.quantity <= 0:
            raise ValidationFailedError("Please select a valid quantity")
        if self.quantity > product.quantity:
            raise ValidationFailedError(f"Only {product.quantity} in stock")
        return user, product

    def confirm(self) -> PurchaseReceipt:
        """
        Record the purchase.

        Raises:
            ValidationFailedError: If the selection is no longer valid. No
                write has happened in that case.
            RequestFailedError: If the stock decrement fails.
            PurchaseIncompleteError: If the stock was decremented but the
                user's history could not be saved. The stock is not restored.
        """
        user, product = self.check()
        quantity = self.quantity

        saved_product = self.catalog.decrement_stock(product, quantity)

        buyer = replace(user, purchased_products=merge_purchase(user.purchased_products, product, quantity))
        try:
            saved_user = self.users.persist(buyer)
        except RequestFailedError as e:
            logger.error(
                "Stock of %s reduced by %d but purchase for user %s was not recorded: %s",
                product.id,
                quantity,
                user.id,
                e,
            )
            raise PurchaseIncompleteError(product.id, quantity, e) from e

        logger.info(
            "%s purchased %d x %s", saved_user.full_name or saved_user.email, quantity, product.title
        )
        self.reset()
        return PurchaseReceipt(user=saved_user, product=saved_product, quantity=quantity)

    def purchase(self, user_id: str, postal_code: str, product_id: str, quantity: int) -> PurchaseReceipt:
        """Select everything and confirm in one call."""
        self.select_user(user_id)
        self.set_postal_code(postal_code)
        self.select_product(product_id)
        self.set_quantity(quantity)
        return self.confirm()
