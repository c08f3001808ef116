from catalog_admin.models.product import Product
from catalog_admin.repositories.base_repo import BaseRepository


class ProductRepository(BaseRepository[Product]):
    model = Product
    filterable_fields = ("name", "sku", "price", "stock_quantity")
    searchable_fields = ("name", "description")
    sortable_fields = (
        "id",
        "name",
        "price",
        "stock_quantity",
        "sku",
        "created_at",
        "updated_at",
    )
