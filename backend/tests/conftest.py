import itertools
import os
import tempfile

# point the app at a throwaway database before anything imports catalog_admin
_DB_FILE = os.path.join(tempfile.gettempdir(), "catalog_admin_test.db")
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_FILE}"

import pytest

from catalog_admin.db import SessionLocal, init_db
from catalog_admin.models.product import Product


@pytest.fixture(autouse=True)
def fresh_db():
    init_db(reset=True)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def product_factory(db):
    """
    Insert a product with plausible defaults; any column can be overridden.

    Names and skus are unique per call so several products can coexist.
    """
    counter = itertools.count(1)

    def make(**overrides):
        n = next(counter)
        fields = {
            "name": f"Product {n}",
            "description": f"Description for product {n}",
            "price": 10 * n,
            "stock_quantity": n,
            "sku": f"SKU-{n:04d}",
        }
        fields.update(overrides)
        product = Product(**fields)
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return make
