"""Product catalog store for shopdesk."""

import logging
import threading
from dataclasses import replace

from .errors import ValidationFailedError
from .models import Product
from .resource_client import ResourceClient
from .utils import RoundTripState, normalize_code

logger = logging.getLogger(__name__)

MAX_IMAGES = 4


class ProductCatalogStore(RoundTripState):
    """
    Cached view of the products collection.

    The cache only changes after the backend confirmed a create, replace
    or delete; a failed call leaves it untouched.
    """

    def __init__(self, client: ResourceClient):
        super().__init__()
        self.client = client
        self.products: list[Product] = []
        self._lock = threading.Lock()

    # --- cache helpers ---

    def _put(self, product: Product) -> None:
        with self._lock:
            for i, existing in enumerate(self.products):
                if existing.id == product.id:
                    self.products[i] = product
                    return
            self.products.append(product)

    def _drop(self, product_id: str) -> None:
        with self._lock:
            self.products = [p for p in self.products if p.id != product_id]

    def find(self, product_id: str) -> Product | None:
        """Return the cached product, if any."""
        for p in self.products:
            if p.id == product_id:
                return p
        return None

    # --- queries ---

    def fetch_products(self) -> list[Product]:
        """Reload the whole catalog from the backend."""
        with self._round_trip():
            records = self.client.list()
        products = [Product.from_dict(r) for r in records]
        with self._lock:
            self.products = products
        return products

    def get(self, product_id: str, refresh: bool = False) -> Product:
        """
        Get a product, from the cache unless ``refresh`` is set or it is missing.

        Raises:
            NotFoundError: If the backend has no such product.
        """
        if not refresh:
            cached = self.find(product_id)
            if cached is not None:
                return cached
        with self._round_trip():
            product = Product.from_dict(self.client.get(product_id))
        self._put(product)
        return product

    def products_near(self, postal_code: str) -> list[Product]:
        """Products whose zip matches ``postal_code`` case-insensitively."""
        code = normalize_code(postal_code)
        if not code:
            return []
        return [p for p in self.products if normalize_code(p.zip) == code]

    # --- mutations ---

    def _validate(self, product: Product) -> Product:
        if not product.title or not product.title.strip():
            raise ValidationFailedError("Title is required")
        images = [img for img in product.images if img]
        if not images:
            raise ValidationFailedError("Please upload at least one product image")
        if product.price < 0:
            raise ValidationFailedError("Price cannot be negative")
        if product.quantity < 0:
            raise ValidationFailedError("Quantity cannot be negative")
        images = images[:MAX_IMAGES]
        return replace(product, images=images, image=images[0])

    def add_product(self, product: Product) -> Product:
        """
        Create a product in the backend and cache the saved record.

        Raises:
            ValidationFailedError: If the title is blank or no image is given.
        """
        product = self._validate(product)
        with self._round_trip():
            saved = Product.from_dict(self.client.create(product.to_dict()))
        self._put(saved)
        logger.info("Added product %s (%s)", saved.id, saved.title)
        return saved

    def update_product(self, product: Product) -> Product:
        """Replace a product with the given complete record."""
        product = self._validate(product)
        with self._round_trip():
            saved = Product.from_dict(self.client.replace(product.id, product.to_dict()))
        self._put(saved)
        logger.info("Updated product %s", saved.id)
        return saved

    def delete_product(self, product_id: str) -> str:
        with self._round_trip():
            self.client.remove(product_id)
        self._drop(product_id)
        logger.info("Deleted product %s", product_id)
        return product_id

    def _write_quantity(self, product: Product, quantity: int) -> Product:
        updated = replace(product, quantity=quantity)
        with self._round_trip():
            saved = Product.from_dict(self.client.replace(product.id, updated.to_dict()))
        self._put(saved)
        return saved

    def decrement_stock(self, product: Product, quantity: int) -> Product:
        """
        Persist ``product`` with its quantity reduced by ``quantity``.

        Raises:
            ValidationFailedError: If ``quantity`` is not positive or exceeds
                the available stock. Nothing is written in that case.
        """
        if quantity <= 0:
            raise ValidationFailedError("Please select a valid quantity")
        if product.quantity <= 0:
            raise ValidationFailedError(f"{product.title} is out of stock")
        if quantity > product.quantity:
            raise ValidationFailedError(f"Only {product.quantity} of {product.title} in stock")
        saved = self._write_quantity(product, product.quantity - quantity)
        logger.info("Stock of %s reduced by %d to %d", product.id, quantity, saved.quantity)
        return saved

    def restock(self, product_id: str, quantity: int) -> Product:
        """
        Add ``quantity`` units back onto a product's stock.

        Always reads the current record from the backend first.

        Raises:
            NotFoundError: If the product no longer exists.
        """
        product = self.get(product_id, refresh=True)
        saved = self._write_quantity(product, product.quantity + quantity)
        logger.info("Stock of %s restored by %d to %d", product_id, quantity, saved.quantity)
        return saved
