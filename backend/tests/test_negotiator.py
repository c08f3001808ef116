import json
import re
from html import unescape

from fastapi.testclient import TestClient
from starlette.requests import Request

from catalog_admin.api.negotiator import ReturnType, template_name
from catalog_admin.config import settings
from catalog_admin.main import app

client = TestClient(app)


def _request(headers):
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
    }
    return Request(scope)


def test_return_type_defaults_to_json():
    assert ReturnType.from_request(_request({})) is ReturnType.JSON


def test_return_type_is_case_insensitive():
    assert ReturnType.from_request(_request({"X-Return-Type": "View"})) is ReturnType.VIEW
    assert ReturnType.from_request(_request({"X-Return-Type": "INERTIA"})) is ReturnType.INERTIA


def test_unknown_return_type_falls_back_to_json():
    assert ReturnType.from_request(_request({"X-Return-Type": "xml"})) is ReturnType.JSON


def test_template_name_from_view():
    assert template_name("products.index") == "products/index.html"


def test_view_renders_index_template(product_factory):
    product_factory(name="Walnut Board")

    res = client.get("/products", headers={"X-Return-Type": "view"})

    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/html")
    assert "Walnut Board" in res.text


def test_view_renders_show_and_edit_templates(product_factory):
    product = product_factory(name="Oak Shelf", description="Solid oak")

    show = client.get(f"/products/{product.id}", headers={"X-Return-Type": "view"})
    edit = client.get(f"/products/{product.id}/edit", headers={"X-Return-Type": "view"})

    assert show.status_code == 200
    assert "Solid oak" in show.text
    assert edit.status_code == 200
    assert 'name="stock_quantity"' in edit.text


def test_view_keeps_201_status_on_store():
    res = client.post(
        "/products",
        json={"name": "Stool", "description": "Three legs", "price": 40, "stock_quantity": 2},
        headers={"X-Return-Type": "view"},
    )

    assert res.status_code == 201
    assert "Stool" in res.text
    assert "Product created." in res.text


def test_redirect_after_store_goes_to_index_with_flash():
    res = client.post(
        "/products",
        json={"name": "Lamp", "description": "Desk lamp", "price": 12, "stock_quantity": 1},
        headers={"X-Return-Type": "redirect"},
        follow_redirects=False,
    )

    assert res.status_code == 303
    assert res.headers["location"].endswith("/products")

    # the flash survives the redirect in the session cookie
    page = client.get("/products", headers={"X-Return-Type": "view"})
    assert "Product created." in page.text
    again = client.get("/products", headers={"X-Return-Type": "view"})
    assert "Product created." not in again.text


def test_redirect_on_a_read_renders_the_view_instead_of_looping(product_factory):
    product = product_factory(name="Teak Stool")

    index = client.get("/products", headers={"X-Return-Type": "redirect"}, follow_redirects=False)
    show = client.get(
        f"/products/{product.id}", headers={"X-Return-Type": "redirect"}, follow_redirects=False
    )

    assert index.status_code == 200
    assert index.headers["content-type"].startswith("text/html")
    assert "Teak Stool" in index.text
    assert show.status_code == 200
    assert "Teak Stool" in show.text


def test_redirect_after_update_goes_to_show(product_factory):
    product = product_factory()

    res = client.put(
        f"/products/{product.id}",
        json={"name": "New", "description": "d", "price": 1, "stock_quantity": 1},
        headers={"X-Return-Type": "redirect"},
        follow_redirects=False,
    )

    assert res.status_code == 303
    assert res.headers["location"].endswith(f"/products/{product.id}")


def test_inertia_xhr_gets_page_object(product_factory):
    product = product_factory(name="Vase")

    res = client.get(
        f"/products/{product.id}",
        headers={
            "X-Return-Type": "inertia",
            "X-Inertia": "true",
            "X-Inertia-Version": settings.INERTIA_VERSION,
        },
    )

    assert res.status_code == 200
    assert res.headers["x-inertia"] == "true"
    page = res.json()
    assert page["component"] == "products.show"
    assert page["props"]["data"]["name"] == "Vase"
    assert page["url"] == f"/products/{product.id}"
    assert page["version"] == settings.INERTIA_VERSION


def test_inertia_first_visit_renders_root_template(product_factory):
    product_factory(name="Rug")

    res = client.get("/products?per_page=5", headers={"X-Return-Type": "inertia"})

    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/html")
    match = re.search(r"data-page='([^']*)'", res.text)
    assert match
    page = json.loads(unescape(match.group(1)))
    assert page["component"] == "products.index"
    assert page["url"] == "/products?per_page=5"
    assert page["props"]["data"][0]["name"] == "Rug"


def test_inertia_stale_asset_version_forces_reload():
    res = client.get(
        "/products",
        headers={"X-Return-Type": "inertia", "X-Inertia": "true", "X-Inertia-Version": "stale"},
    )

    assert res.status_code == 409
    assert res.headers["x-inertia-location"].endswith("/products")


def test_destroy_is_empty_204_for_every_return_type(product_factory):
    for return_type in ("json", "view", "redirect", "inertia"):
        product = product_factory()
        res = client.delete(
            f"/products/{product.id}",
            headers={"X-Return-Type": return_type},
            follow_redirects=False,
        )
        assert res.status_code == 204
        assert res.content == b""
