"""FastAPI REST API for the shopdesk dashboard."""

import logging
from dataclasses import replace
from typing import Optional

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from . import __version__
from .dashboard import Dashboard
from .errors import (
    AccountInactiveError,
    DuplicateEmailError,
    InvalidCredentialsError,
    InvalidSchemaVersionError,
    NotFoundError,
    PurchaseIncompleteError,
    RequestFailedError,
    ShopdeskError,
    ValidationFailedError,
)
from .models import CartItem, CheckoutResult, Product, PurchaseLine, RemovePurchaseLine, User

logger = logging.getLogger(__name__)


# --- Pydantic Schemas ---


class PurchaseLineSchema(BaseModel):
    product_id: str
    product_name: str
    quantity: int = Field(..., gt=0)
    price: float


class UserSchema(BaseModel):
    id: str
    full_name: str
    email: str
    phone_number: str = ""
    gender: str = ""
    profile_image: Optional[str] = None
    is_active: bool
    address1: str = ""
    address2: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    country: str = ""
    address: str = ""
    purchased_products: list[PurchaseLineSchema]
    total_items: int
    total_spent: float


class UserListResponse(BaseModel):
    users: list[UserSchema]
    count: int


class SignupRequest(BaseModel):
    full_name: str
    email: str
    password: str
    phone_number: str = ""
    gender: str = ""
    profile_image: Optional[str] = None
    address1: str = ""
    address2: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    country: str = ""


class UserUpdateRequest(BaseModel):
    """Fields to change; omitted fields keep their stored value."""

    full_name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    phone_number: Optional[str] = None
    gender: Optional[str] = None
    profile_image: Optional[str] = None
    is_active: Optional[bool] = None
    address1: Optional[str] = None
    address2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None
    purchased_products: Optional[list[PurchaseLineSchema]] = Field(
        None,
        description="Complete purchase history; lines left out are restocked",
    )


class ActiveRequest(BaseModel):
    active: bool


class RemovePurchaseRequest(BaseModel):
    product_id: str
    quantity: int = Field(1, gt=0)


class LoginRequest(BaseModel):
    email: str
    password: str


class SessionResponse(BaseModel):
    authenticated: bool
    user: Optional[UserSchema] = None


class ProductSchema(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    price: float
    quantity: int
    availability_from: Optional[str] = None
    availability_to: Optional[str] = None
    image: Optional[str] = None
    images: list[str] = []
    address1: str = ""
    address2: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    country: str = ""


class ProductListResponse(BaseModel):
    products: list[ProductSchema]
    count: int


class ProductCreateRequest(BaseModel):
    title: str
    price: float = Field(..., ge=0)
    quantity: int = Field(..., ge=0)
    images: list[str] = Field(default_factory=list, description="Image URLs or data URLs; first is the cover")
    description: Optional[str] = None
    availability_from: Optional[str] = None
    availability_to: Optional[str] = None
    address1: str = ""
    address2: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    country: str = ""


class ProductUpdateRequest(BaseModel):
    """Fields to change; omitted fields keep their stored value."""

    title: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    quantity: Optional[int] = Field(None, ge=0)
    images: Optional[list[str]] = None
    description: Optional[str] = None
    availability_from: Optional[str] = None
    availability_to: Optional[str] = None
    address1: Optional[str] = None
    address2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None


class PurchaseRequest(BaseModel):
    user_id: str
    postal_code: str
    product_id: str
    quantity: int = 1


class PurchaseResponse(BaseModel):
    user: UserSchema
    product: ProductSchema
    quantity: int
    total: float


class CartItemSchema(BaseModel):
    id: str
    title: str
    price: float
    image: Optional[str] = None
    quantity: int
    stock: int


class CartResponse(BaseModel):
    items: list[CartItemSchema]
    item_count: int
    total_price: float
    has_new_item: bool


class CartAddRequest(BaseModel):
    product_id: str
    quantity: int = Field(1, gt=0)


class CartUpdateRequest(BaseModel):
    quantity: int = Field(..., ge=1)


class CartUpdateResponse(BaseModel):
    item: CartItemSchema
    requested: int
    clamped: bool


class CheckoutLineSchema(BaseModel):
    item_id: str
    title: str
    quantity: int
    ok: bool
    error: Optional[str] = None


class CheckoutResponse(BaseModel):
    ok: bool
    partial: bool
    total: float
    lines: list[CheckoutLineSchema]


# --- Helper Functions ---


_dashboard: Dashboard | None = None


def get_dashboard() -> Dashboard:
    """Get the process-wide Dashboard, creating it on first use."""
    global _dashboard
    if _dashboard is None:
        _dashboard = Dashboard.create()
    return _dashboard


def user_to_schema(user: User) -> UserSchema:
    return UserSchema(
        id=user.id,
        full_name=user.full_name,
        email=user.email,
        phone_number=user.phone_number,
        gender=user.gender,
        profile_image=user.profile_image,
        is_active=user.is_active,
        address1=user.address1,
        address2=user.address2,
        city=user.city,
        state=user.state,
        zip=user.zip,
        country=user.country,
        address=user.address,
        purchased_products=[
            PurchaseLineSchema(
                product_id=p.product_id,
                product_name=p.product_name,
                quantity=p.quantity,
                price=p.price,
            )
            for p in user.purchased_products
        ],
        total_items=user.total_items,
        total_spent=user.total_spent,
    )


def product_to_schema(product: Product) -> ProductSchema:
    return ProductSchema(
        id=product.id,
        title=product.title,
        description=product.description,
        price=product.price,
        quantity=product.quantity,
        availability_from=product.availability_from,
        availability_to=product.availability_to,
        image=product.image,
        images=product.images,
        address1=product.address1,
        address2=product.address2,
        city=product.city,
        state=product.state,
        zip=product.zip,
        country=product.country,
    )


def cart_to_response(dashboard: Dashboard) -> CartResponse:
    cart = dashboard.cart
    return CartResponse(
        items=[CartItemSchema(**item.to_dict()) for item in cart.items],
        item_count=cart.item_count,
        total_price=cart.total_price,
        has_new_item=cart.has_new_item,
    )


def checkout_to_response(result: CheckoutResult) -> CheckoutResponse:
    return CheckoutResponse(
        ok=result.ok,
        partial=result.partial,
        total=result.total,
        lines=[CheckoutLineSchema(**line.to_dict()) for line in result.lines],
    )


# --- FastAPI App ---


app = FastAPI(
    title="shopdesk API",
    description="REST API for managing users, products, purchases and the cart",
    version=__version__,
)

# CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Global Exception Handler ---


# Map exception types to HTTP status codes
ERROR_STATUS_CODES: dict[type, int] = {
    NotFoundError: 404,
    InvalidCredentialsError: 401,
    AccountInactiveError: 403,
    DuplicateEmailError: 409,
    ValidationFailedError: 400,
    RequestFailedError: 502,
    PurchaseIncompleteError: 502,
    InvalidSchemaVersionError: 500,
}


@app.exception_handler(ShopdeskError)
async def shopdesk_error_handler(request: Request, exc: ShopdeskError) -> JSONResponse:
    """Map ShopdeskError subclasses to appropriate HTTP responses."""
    status_code = ERROR_STATUS_CODES.get(type(exc), 500)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error_type": type(exc).__name__},
    )


# --- Endpoints ---


@app.get("/api/health")
def health_check():
    """
    Health check endpoint.

    Reports whether the resource store answers.
    """
    dashboard = get_dashboard()
    try:
        products = dashboard.catalog.fetch_products()
        return {"status": "ok", "product_count": len(products)}
    except ShopdeskError as e:
        return {"status": "error", "detail": str(e)}


# --- Session Endpoints ---


@app.get("/api/session", response_model=SessionResponse)
def get_session():
    user = get_dashboard().session.current_user
    return SessionResponse(
        authenticated=user is not None,
        user=user_to_schema(user) if user else None,
    )


@app.post("/api/session/login", response_model=SessionResponse)
def login(request: LoginRequest):
    user = get_dashboard().users.login(request.email, request.password)
    return SessionResponse(authenticated=True, user=user_to_schema(user))


@app.post("/api/session/logout", response_model=SessionResponse)
def logout():
    get_dashboard().users.logout()
    return SessionResponse(authenticated=False)


# --- User Endpoints ---


@app.get("/api/users", response_model=UserListResponse)
def list_users(q: str = Query(default="")):
    """List users, optionally filtered by a search term."""
    users = get_dashboard().users
    users.fetch_users()
    found = users.search(q)
    return UserListResponse(users=[user_to_schema(u) for u in found], count=len(found))


@app.post("/api/users", response_model=UserSchema, status_code=201)
def signup(request: SignupRequest):
    user = get_dashboard().users.signup(**request.model_dump())
    return user_to_schema(user)


@app.put("/api/users/{user_id}", response_model=UserSchema)
def update_user(user_id: str, request: UserUpdateRequest):
    """Update a user. Purchase lines dropped from the history are restocked."""
    users = get_dashboard().users
    existing = users.get(user_id)
    changes = request.model_dump(exclude_unset=True, exclude={"purchased_products"})
    lines = existing.purchased_products
    if request.purchased_products is not None:
        lines = [PurchaseLine(**p.model_dump()) for p in request.purchased_products]
    else:
        lines = [replace(p) for p in lines]
    updated = replace(existing, purchased_products=lines, **changes)
    return user_to_schema(users.update_user(updated))


@app.post("/api/users/{user_id}/active", response_model=UserSchema)
def set_user_active(user_id: str, request: ActiveRequest):
    return user_to_schema(get_dashboard().users.set_active(user_id, request.active))


@app.post("/api/users/{user_id}/purchases/remove", response_model=UserSchema)
def remove_purchase(user_id: str, request: RemovePurchaseRequest):
    """Take units out of a user's purchase history and restock them."""
    command = RemovePurchaseLine(user_id=user_id, product_id=request.product_id, quantity=request.quantity)
    return user_to_schema(get_dashboard().users.remove_purchase_line(command))


@app.delete("/api/users/{user_id}")
def delete_user(user_id: str):
    """Delete a user and give their purchases back to stock."""
    return {"deleted": get_dashboard().users.delete_user(user_id)}


# --- Product Endpoints ---


@app.get("/api/products", response_model=ProductListResponse)
def list_products(zip: str = Query(default="", description="Only products available at this postal code")):
    catalog = get_dashboard().catalog
    products = catalog.fetch_products()
    if zip:
        products = catalog.products_near(zip)
    return ProductListResponse(
        products=[product_to_schema(p) for p in products],
        count=len(products),
    )


@app.post("/api/products", response_model=ProductSchema, status_code=201)
def create_product(request: ProductCreateRequest):
    product = Product.create(**request.model_dump())
    return product_to_schema(get_dashboard().catalog.add_product(product))


@app.put("/api/products/{product_id}", response_model=ProductSchema)
def update_product(product_id: str, request: ProductUpdateRequest):
    catalog = get_dashboard().catalog
    existing = catalog.get(product_id, refresh=True)
    changes = request.model_dump(exclude_unset=True)
    if "images" in changes:
        changes["images"] = [img for img in changes["images"] if img]
        changes["image"] = changes["images"][0] if changes["images"] else None
    return product_to_schema(catalog.update_product(replace(existing, **changes)))


@app.delete("/api/products/{product_id}")
def delete_product(product_id: str):
    return {"deleted": get_dashboard().catalog.delete_product(product_id)}


# --- Purchase Endpoints ---


@app.post("/api/purchases", response_model=PurchaseResponse, status_code=201)
def create_purchase(request: PurchaseRequest):
    """Buy a product for a user: decrements stock and records the purchase."""
    dashboard = get_dashboard()
    dashboard.refresh()
    workflow = dashboard.purchases
    try:
        receipt = workflow.purchase(
            request.user_id, request.postal_code, request.product_id, request.quantity
        )
    finally:
        workflow.reset()
    return PurchaseResponse(
        user=user_to_schema(receipt.user),
        product=product_to_schema(receipt.product),
        quantity=receipt.quantity,
        total=receipt.total,
    )


# --- Cart Endpoints ---


@app.get("/api/cart", response_model=CartResponse)
def get_cart():
    dashboard = get_dashboard()
    response = cart_to_response(dashboard)
    dashboard.cart.clear_notification()
    return response


@app.post("/api/cart/items", response_model=CartItemSchema, status_code=201)
def add_cart_item(request: CartAddRequest):
    dashboard = get_dashboard()
    product = dashboard.catalog.get(request.product_id, refresh=True)
    item = dashboard.cart.add_to_cart(CartItem.from_product(product, request.quantity))
    return CartItemSchema(**item.to_dict())


@app.patch("/api/cart/items/{item_id}", response_model=CartUpdateResponse)
def update_cart_item(item_id: str, request: CartUpdateRequest):
    item = get_dashboard().cart.update_quantity(item_id, request.quantity)
    return CartUpdateResponse(
        item=CartItemSchema(**item.to_dict()),
        requested=request.quantity,
        clamped=item.quantity < request.quantity,
    )


@app.delete("/api/cart/items/{item_id}", response_model=CartResponse)
def remove_cart_item(item_id: str):
    dashboard = get_dashboard()
    dashboard.cart.remove_from_cart(item_id)
    return cart_to_response(dashboard)


@app.delete("/api/cart", response_model=CartResponse)
def clear_cart():
    dashboard = get_dashboard()
    dashboard.cart.clear_cart()
    return cart_to_response(dashboard)


@app.post("/api/cart/checkout", response_model=CheckoutResponse)
def checkout():
    """Pay for the cart. Lines are reported individually; the cart is always cleared."""
    return checkout_to_response(get_dashboard().checkout.pay())
