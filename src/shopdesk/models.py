"""Data models for shopdesk."""

from dataclasses import dataclass, field
import time
from typing import Any

ADDRESS_FIELDS = ("address1", "address2", "city", "state", "zip", "country")

_USER_KEYS = {
    "id",
    "fullName",
    "email",
    "password",
    "phoneNumber",
    "gender",
    "profileImage",
    "isActive",
    "address",
    "purchasedProducts",
    *ADDRESS_FIELDS,
}

_PRODUCT_KEYS = {
    "id",
    "title",
    "description",
    "price",
    "quantity",
    "availabilityFrom",
    "availabilityTo",
    "image",
    "images",
    "postalCode",
    "stock",
    "status",
    *ADDRESS_FIELDS,
}


def _generate_id() -> str:
    """Generate a new time-based record ID (epoch milliseconds)."""
    return str(time.time_ns() // 1_000_000)


def combine_address(*parts: str | None) -> str:
    """Join address components with ", ", skipping empty ones."""
    return ", ".join(p for p in parts if p)


def _extra(data: dict[str, Any], known: set[str]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if k not in known}


@dataclass
class PurchaseLine:
    """Per-product aggregate of units bought by a user."""

    product_id: str
    product_name: str
    quantity: int
    price: float

    @property
    def subtotal(self) -> float:
        return self.quantity * self.price

    def to_dict(self) -> dict[str, Any]:
        return {
            "productId": self.product_id,
            "productName": self.product_name,
            "quantity": self.quantity,
            "price": self.price,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PurchaseLine":
        return cls(
            product_id=str(data["productId"]),
            product_name=data.get("productName") or "",
            quantity=int(data.get("quantity") or 0),
            price=data.get("price") or 0,
        )


@dataclass
class User:
    """A user account as stored in the users collection."""

    id: str
    full_name: str = ""
    email: str = ""
    password: str = ""
    phone_number: str = ""
    gender: str = ""
    profile_image: str | None = None
    is_active: bool = True
    address1: str = ""
    address2: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    country: str = ""
    address: str = ""
    purchased_products: list[PurchaseLine] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    def derive_address(self) -> str:
        """Recompute the combined display address from its components."""
        self.address = combine_address(
            self.address1, self.address2, self.city, self.state, self.zip, self.country
        )
        return self.address

    def find_purchase(self, product_id: str) -> PurchaseLine | None:
        for line in self.purchased_products:
            if line.product_id == product_id:
                return line
        return None

    @property
    def total_items(self) -> int:
        return sum(line.quantity for line in self.purchased_products)

    @property
    def total_spent(self) -> float:
        return sum(line.subtotal for line in self.purchased_products)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = dict(self.extra)
        result.update(
            {
                "id": self.id,
                "fullName": self.full_name,
                "email": self.email,
                "password": self.password,
                "phoneNumber": self.phone_number,
                "gender": self.gender,
                "isActive": self.is_active,
                "address1": self.address1,
                "address2": self.address2,
                "city": self.city,
                "state": self.state,
                "zip": self.zip,
                "country": self.country,
                "address": self.address,
                "purchasedProducts": [p.to_dict() for p in self.purchased_products],
            }
        )
        if self.profile_image is not None:
            result["profileImage"] = self.profile_image
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "User":
        return cls(
            id=str(data["id"]),
            full_name=data.get("fullName") or "",
            email=data.get("email") or "",
            password=data.get("password") or "",
            phone_number=data.get("phoneNumber") or "",
            gender=data.get("gender") or "",
            profile_image=data.get("profileImage"),
            is_active=bool(data.get("isActive", True)),
            address1=data.get("address1") or "",
            address2=data.get("address2") or "",
            city=data.get("city") or "",
            state=data.get("state") or "",
            zip=data.get("zip") or "",
            country=data.get("country") or "",
            address=data.get("address") or "",
            purchased_products=[
                PurchaseLine.from_dict(p) for p in data.get("purchasedProducts") or []
            ],
            extra=_extra(data, _USER_KEYS),
        )

    @classmethod
    def create(
        cls,
        full_name: str,
        email: str,
        password: str,
        phone_number: str = "",
        gender: str = "",
        profile_image: str | None = None,
        address1: str = "",
        address2: str = "",
        city: str = "",
        state: str = "",
        zip: str = "",
        country: str = "",
    ) -> "User":
        """Create a new active user with a generated ID and no purchases."""
        user = cls(
            id=_generate_id(),
            full_name=full_name,
            email=email,
            password=password,
            phone_number=phone_number,
            gender=gender,
            profile_image=profile_image,
            is_active=True,
            address1=address1,
            address2=address2,
            city=city,
            state=state,
            zip=zip,
            country=country,
            purchased_products=[],
        )
        user.derive_address()
        return user


@dataclass
class Product:
    """A sellable catalog item ("card")."""

    id: str
    title: str
    price: float = 0
    quantity: int = 0  # authoritative stock count
    description: str | None = None
    availability_from: str | None = None
    availability_to: str | None = None
    image: str | None = None
    images: list[str] = field(default_factory=list)
    address1: str = ""
    address2: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    country: str = ""
    # Legacy fields, kept for older records only
    postal_code: str | int = ""
    stock: int = 0
    status: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def location(self) -> str:
        return combine_address(self.city, self.state)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = dict(self.extra)
        result.update(
            {
                "id": self.id,
                "title": self.title,
                "price": self.price,
                "quantity": self.quantity,
                "images": list(self.images),
                "address1": self.address1,
                "address2": self.address2,
                "city": self.city,
                "state": self.state,
                "zip": self.zip,
                "country": self.country,
                "postalCode": self.postal_code,
                "stock": self.stock,
            }
        )
        optional = {
            "description": self.description,
            "availabilityFrom": self.availability_from,
            "availabilityTo": self.availability_to,
            "image": self.image,
            "status": self.status,
        }
        result.update({k: v for k, v in optional.items() if v is not None})
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Product":
        images = list(data.get("images") or [])
        if not images and data.get("image"):
            images = [data["image"]]
        return cls(
            id=str(data["id"]),
            title=data.get("title") or "",
            price=data.get("price") or 0,
            quantity=int(data.get("quantity") or 0),
            description=data.get("description"),
            availability_from=data.get("availabilityFrom"),
            availability_to=data.get("availabilityTo"),
            image=data.get("image"),
            images=images,
            address1=data.get("address1") or "",
            address2=data.get("address2") or "",
            city=data.get("city") or "",
            state=data.get("state") or "",
            zip=data.get("zip") or "",
            country=data.get("country") or "",
            postal_code=data.get("postalCode") or "",
            stock=int(data.get("stock") or 0),
            status=data.get("status"),
            extra=_extra(data, _PRODUCT_KEYS),
        )

    @classmethod
    def create(
        cls,
        title: str,
        price: float,
        quantity: int,
        images: list[str],
        description: str | None = None,
        availability_from: str | None = None,
        availability_to: str | None = None,
        address1: str = "",
        address2: str = "",
        city: str = "",
        state: str = "",
        zip: str = "",
        country: str = "",
    ) -> "Product":
        """Create a new product with a generated ID and legacy fields reset."""
        return cls(
            id=_generate_id(),
            title=title,
            price=price,
            quantity=quantity,
            description=description,
            availability_from=availability_from,
            availability_to=availability_to,
            image=images[0] if images else None,
            images=list(images),
            address1=address1,
            address2=address2,
            city=city,
            state=state,
            zip=zip,
            country=country,
            postal_code="",
            stock=0,
            status="",
        )


@dataclass
class CartItem:
    """A cart line; `stock` is the product quantity captured when it was added."""

    id: str
    title: str
    price: float
    quantity: int
    stock: int
    image: str | None = None

    @property
    def subtotal(self) -> float:
        return self.price * self.quantity

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "price": self.price,
            "image": self.image,
            "quantity": self.quantity,
            "stock": self.stock,
        }

    @classmethod
    def from_product(cls, product: Product, quantity: int = 1) -> "CartItem":
        return cls(
            id=product.id,
            title=product.title,
            price=product.price,
            quantity=quantity,
            stock=product.quantity,
            image=product.image,
        )


# Commands and results


@dataclass(frozen=True)
class RemovePurchaseLine:
    """Take `quantity` units of a product back out of a user's purchase history."""

    user_id: str
    product_id: str
    quantity: int


@dataclass
class PurchaseReceipt:
    """Outcome of a confirmed purchase."""

    user: User
    product: Product
    quantity: int

    @property
    def total(self) -> float:
        return self.product.price * self.quantity


@dataclass
class CheckoutLineResult:
    """Result of the stock decrement for one cart line."""

    item_id: str
    title: str
    quantity: int
    ok: bool
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "item_id": self.item_id,
            "title": self.title,
            "quantity": self.quantity,
            "ok": self.ok,
            "error": self.error,
        }


@dataclass
class CheckoutResult:
    """Per-line outcome of a cart checkout."""

    lines: list[CheckoutLineResult]
    total: float = 0

    @property
    def succeeded(self) -> list[CheckoutLineResult]:
        return [line for line in self.lines if line.ok]

    @property
    def failed(self) -> list[CheckoutLineResult]:
        return [line for line in self.lines if not line.ok]

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def partial(self) -> bool:
        return bool(self.failed) and bool(self.succeeded)
