#!/usr/bin/env python3
"""
Seed products from a JSON file.

The file holds either a list of product objects or ``{"items": [...]}``.
Every entry goes through the same validation as POST /products, so bad rows
are reported and skipped instead of landing in the table.

Usage:
    python scripts/seed_products.py --file products.json [--reset]
"""
import argparse
import json
import logging
import os
import sys

# allow running from repo/scripts
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from catalog_admin.db import SessionLocal, init_db
from catalog_admin.exceptions import CatalogError, ValidationError
from catalog_admin.requests.product_requests import StoreProductRequest
from catalog_admin.services.product_service import ProductService

log = logging.getLogger("seed_products")


def load_entries(path: str):
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict) and isinstance(data.get("items"), list):
        return data["items"]
    if isinstance(data, list):
        return data
    raise ValueError(f"{path}: expected a list of products or an object with 'items'")


def seed_from_file(path: str, reset: bool = False) -> int:
    init_db(reset=reset)
    entries = load_entries(path)

    request = StoreProductRequest()
    created = 0
    db = SessionLocal()
    try:
        svc = ProductService(db)
        for i, entry in enumerate(entries):
            try:
                data = request.validate(entry, db)
                svc.create(data)
                created += 1
            except ValidationError as e:
                log.warning("entry %d skipped: %s", i, e.errors)
            except CatalogError as e:
                log.warning("entry %d skipped: %s", i, e)
    finally:
        db.close()
    log.info("Seeded %d of %d products", created, len(entries))
    return created


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    parser = argparse.ArgumentParser()
    parser.add_argument("--file", "-f", required=True, help="Path to a JSON list of products")
    parser.add_argument("--reset", action="store_true", help="Drop and recreate tables first")
    args = parser.parse_args()
    if not os.path.exists(args.file):
        print("File not found:", args.file)
        sys.exit(1)
    seed_from_file(args.file, reset=args.reset)
