from decimal import Decimal

import pytest

from catalog_admin.api.base_controller import BaseController
from catalog_admin.exceptions import UnknownRequestSchema, ValidationError
from catalog_admin.requests.product_requests import StoreProductRequest, UpdateProductRequest
from catalog_admin.schemas.product_schema import ProductOut


def valid_payload(**overrides):
    payload = {
        "name": "Desk Lamp",
        "description": "LED lamp with dimmer",
        "price": 39.5,
        "stock_quantity": 12,
        "sku": "LAMP-1",
        "image": "https://cdn.example.com/lamp.jpg",
    }
    payload.update(overrides)
    return payload


def errors_for(request, payload, db, **kwargs):
    with pytest.raises(ValidationError) as exc:
        request.validate(payload, db, **kwargs)
    return exc.value.errors


def test_valid_payload_passes(db):
    data = StoreProductRequest().validate(valid_payload(), db)

    assert data["name"] == "Desk Lamp"
    assert data["price"] == Decimal("39.5")
    assert data["stock_quantity"] == 12
    assert data["image"] == "https://cdn.example.com/lamp.jpg"


def test_optional_fields_left_out_are_not_returned(db):
    payload = valid_payload()
    del payload["sku"]
    del payload["image"]

    data = StoreProductRequest().validate(payload, db)

    assert "sku" not in data
    assert "image" not in data


def test_unknown_fields_are_dropped(db):
    data = StoreProductRequest().validate(valid_payload(id=99, created_at="yesterday"), db)

    assert "id" not in data
    assert "created_at" not in data


def test_missing_required_fields_use_custom_messages(db):
    errors = errors_for(StoreProductRequest(), {}, db)

    assert errors["name"] == ["The product name is required."]
    assert errors["description"] == ["The description is required."]
    assert errors["price"] == ["The price of the product is required."]
    assert errors["stock_quantity"] == ["The stock quantity is required."]
    assert "sku" not in errors
    assert "image" not in errors


def test_blank_strings_count_as_missing(db):
    errors = errors_for(StoreProductRequest(), valid_payload(name="   ", description=""), db)

    assert errors["name"] == ["The product name is required."]
    assert errors["description"] == ["The description is required."]


def test_strings_are_trimmed(db):
    data = StoreProductRequest().validate(valid_payload(name="  Desk Lamp  "), db)

    assert data["name"] == "Desk Lamp"


def test_negative_price_and_stock_are_rejected(db):
    errors = errors_for(StoreProductRequest(), valid_payload(price=-1, stock_quantity=-3), db)

    assert errors["price"] == ["The price field must be at least 0."]
    assert errors["stock_quantity"] == ["The stock quantity field must be at least 0."]


def test_price_must_be_numeric(db):
    errors = errors_for(StoreProductRequest(), valid_payload(price="cheap"), db)

    assert errors["price"] == ["The price field must be a number."]


def test_price_allows_two_decimal_places_only(db):
    errors = errors_for(StoreProductRequest(), valid_payload(price="1.999"), db)

    assert errors["price"] == ["The price field must not have more than 2 decimal places."]


def test_stock_quantity_must_be_an_integer(db):
    errors = errors_for(StoreProductRequest(), valid_payload(stock_quantity=2.5), db)

    assert errors["stock_quantity"] == ["The stock quantity field must be an integer."]


def test_stock_quantity_is_capped_at_32_bit_range(db):
    errors = errors_for(StoreProductRequest(), valid_payload(stock_quantity=10**20), db)

    assert errors["stock_quantity"] == [
        "The stock quantity field must not be greater than 2147483647."
    ]


def test_form_style_strings_are_coerced(db):
    data = StoreProductRequest().validate(valid_payload(price="12.30", stock_quantity="4"), db)

    assert data["price"] == Decimal("12.30")
    assert data["stock_quantity"] == 4


def test_name_longer_than_255_is_rejected(db):
    errors = errors_for(StoreProductRequest(), valid_payload(name="x" * 256), db)

    assert errors["name"] == ["The name field must not be greater than 255 characters."]


def test_image_must_be_a_url(db):
    errors = errors_for(StoreProductRequest(), valid_payload(image="not a url"), db)

    assert errors["image"] == ["The image must be a valid URL."]


def test_blank_image_is_treated_as_absent(db):
    data = StoreProductRequest().validate(valid_payload(image=""), db)

    assert data["image"] is None


def test_sku_must_be_unique(db, product_factory):
    product_factory(sku="LAMP-1")

    errors = errors_for(StoreProductRequest(), valid_payload(), db)

    assert errors == {"sku": ["The SKU must be unique."]}


def test_update_ignores_own_sku(db, product_factory):
    product = product_factory(sku="LAMP-1")

    data = UpdateProductRequest().validate(valid_payload(), db, ignore_id=product.id)

    assert data["sku"] == "LAMP-1"


def test_update_rejects_another_products_sku(db, product_factory):
    product_factory(sku="LAMP-1")
    product = product_factory(sku="LAMP-2")

    errors = errors_for(UpdateProductRequest(), valid_payload(), db, ignore_id=product.id)

    assert errors == {"sku": ["The SKU must be unique."]}


def test_unique_check_runs_alongside_other_failures(db, product_factory):
    product_factory(sku="LAMP-1")

    errors = errors_for(StoreProductRequest(), valid_payload(price=-5), db)

    assert set(errors) == {"price", "sku"}


def test_body_must_be_an_object(db):
    errors = errors_for(StoreProductRequest(), ["not", "an", "object"], db)

    assert "body" in errors


def test_controller_refuses_missing_request_class():
    with pytest.raises(UnknownRequestSchema):
        BaseController(
            name="widgets",
            service_dependency=lambda: None,
            resource_schema=ProductOut,
            store_request=StoreProductRequest,
            update_request=None,
        )


def test_controller_refuses_non_request_class():
    with pytest.raises(UnknownRequestSchema):
        BaseController(
            name="widgets",
            service_dependency=lambda: None,
            resource_schema=ProductOut,
            store_request="StoreWidgetRequest",
            update_request=UpdateProductRequest,
        )
