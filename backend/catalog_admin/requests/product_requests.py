from catalog_admin.repositories.product_repo import ProductRepository
from catalog_admin.requests.base_request import FormRequest
from catalog_admin.schemas.product_schema import ProductIn

PRODUCT_MESSAGES = {
    "name.required": "The product name is required.",
    "description.required": "The description is required.",
    "price.required": "The price of the product is required.",
    "stock_quantity.required": "The stock quantity is required.",
    "sku.unique": "The SKU must be unique.",
    "image.url": "The image must be a valid URL.",
}


class StoreProductRequest(FormRequest):
    rules = ProductIn
    messages = PRODUCT_MESSAGES
    unique = {"sku": ProductRepository}


class UpdateProductRequest(FormRequest):
    """Same rules as creation; the sku check ignores the product being updated."""

    rules = ProductIn
    messages = PRODUCT_MESSAGES
    unique = {"sku": ProductRepository}
