"""Tests for data models."""

from shopdesk.models import (
    CartItem,
    CheckoutLineResult,
    CheckoutResult,
    Product,
    PurchaseLine,
    User,
    combine_address,
)

from .conftest import product_record, purchase_line, user_record


class TestCombineAddress:
    def test_skips_empty_parts(self):
        user = User.create(
            full_name="Asha Rao",
            email="asha@example.com",
            password="secret",
            address1="1 Main St",
            address2="",
            city="Pune",
            state="MH",
            zip="411001",
            country="India",
        )
        assert user.address == "1 Main St, Pune, MH, 411001, India"

    def test_all_empty(self):
        assert combine_address("", None, "") == ""

    def test_keeps_order(self):
        assert combine_address("a", "b", None, "c") == "a, b, c"


class TestUser:
    def test_create_defaults(self):
        user = User.create(full_name="A", email="a@example.com", password="x")
        assert user.is_active is True
        assert user.purchased_products == []
        assert user.id.isdigit()

    def test_from_dict_reads_wire_names(self):
        user = User.from_dict(user_record(purchases=[purchase_line(quantity=3)]))
        assert user.full_name == "Asha Rao"
        assert user.phone_number == "9999999999"
        assert user.purchased_products == [
            PurchaseLine(product_id="p1", product_name="Widget", quantity=3, price=10)
        ]

    def test_unknown_fields_survive_to_dict(self):
        user = User.from_dict(user_record(role="admin"))
        data = user.to_dict()
        assert data["role"] == "admin"
        assert data["purchasedProducts"] == []
        assert data["isActive"] is True

    def test_profile_image_omitted_when_missing(self):
        user = User.from_dict(user_record())
        assert "profileImage" not in user.to_dict()

    def test_purchase_totals(self):
        user = User.from_dict(
            user_record(
                purchases=[
                    purchase_line("p1", quantity=2, price=10),
                    purchase_line("p2", quantity=1, price=5.5),
                ]
            )
        )
        assert user.total_items == 3
        assert user.total_spent == 25.5
        assert user.find_purchase("p2").quantity == 1
        assert user.find_purchase("missing") is None


class TestProduct:
    def test_create_sets_legacy_fields(self):
        product = Product.create(title="Lamp", price=12, quantity=4, images=["a.png", "b.png"])
        assert product.image == "a.png"
        assert product.stock == 0
        assert product.postal_code == ""
        assert product.status == ""

    def test_from_dict_falls_back_to_single_image(self):
        record = product_record()
        del record["images"]
        product = Product.from_dict(record)
        assert product.images == ["https://img.example/widget.png"]

    def test_to_dict_keeps_quantity_and_extras(self):
        product = Product.from_dict(product_record(quantity=7, rating=4.5))
        data = product.to_dict()
        assert data["quantity"] == 7
        assert data["rating"] == 4.5
        assert "description" not in data

    def test_location(self):
        assert Product.from_dict(product_record()).location == "Pune, MH"


class TestCartItem:
    def test_from_product_captures_stock(self):
        product = Product.from_dict(product_record(quantity=4, price=2.5))
        item = CartItem.from_product(product, quantity=2)
        assert item.stock == 4
        assert item.subtotal == 5.0


class TestCheckoutResult:
    def test_partial(self):
        result = CheckoutResult(
            lines=[
                CheckoutLineResult("p1", "A", 1, ok=True),
                CheckoutLineResult("p2", "B", 1, ok=False, error="boom"),
            ]
        )
        assert not result.ok
        assert result.partial
        assert [line.item_id for line in result.failed] == ["p2"]

    def test_all_failed_is_not_partial(self):
        result = CheckoutResult(lines=[CheckoutLineResult("p1", "A", 1, ok=False, error="x")])
        assert not result.ok
        assert not result.partial
