from fastapi import Depends
from sqlalchemy.orm import Session

from catalog_admin.api.base_controller import BaseController
from catalog_admin.db import get_db
from catalog_admin.models.product import Product
from catalog_admin.requests.product_requests import StoreProductRequest, UpdateProductRequest
from catalog_admin.schemas.product_schema import ProductOut
from catalog_admin.services.product_service import ProductService


def get_product_service(db: Session = Depends(get_db)) -> ProductService:
    return ProductService(db)


class ProductController(BaseController[Product]):
    def __init__(self):
        super().__init__(
            name="products",
            service_dependency=get_product_service,
            resource_schema=ProductOut,
            store_request=StoreProductRequest,
            update_request=UpdateProductRequest,
        )


controller = ProductController()
router = controller.router
