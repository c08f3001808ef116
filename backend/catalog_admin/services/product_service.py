from catalog_admin.models.product import Product
from catalog_admin.repositories.product_repo import ProductRepository
from catalog_admin.services.base_service import BaseService


class ProductService(BaseService[Product]):
    repository_class = ProductRepository
    unique_fields = ("sku",)
