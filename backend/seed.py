#!/usr/bin/env python
"""
Seed script to create demo categories/products/socials for local smoke tests.
"""
from __future__ import annotations

import argparse
import sys

from linkshop.config import get_settings
from linkshop.errors import Conflict
from linkshop.main import build_store
from linkshop.models import CategoryIn, ProductDraft, SocialIn
from linkshop.store.base import Store

DEMO_CATEGORY = "Demo"

DEMO_PRODUCTS = (
    {
        "title": "Áo sơ mi linen",
        "description": "Lightweight demo shirt for seeding.",
        "price": 189000,
        "tag": "mychoice",
    },
    {
        "title": "Đầm hoa nhí",
        "description": "Demo dress linked to a marketplace listing.",
        "price": 259000,
        "tag": "shopee",
        "external_url": "https://shopee.vn/demo-item",
    },
)


def seed(store: Store) -> int:
    """Insert the demo rows; returns the number of products created."""
    try:
        category = store.create_category(CategoryIn(name=DEMO_CATEGORY))
    except Conflict:
        category = next(c for c in store.list_categories() if c.name == DEMO_CATEGORY)

    existing = {p.title for p in store.list_products()}
    created = 0
    for product in DEMO_PRODUCTS:
        if product["title"] in existing:
            continue
        store.create_product(ProductDraft(category_id=category.id, **product))
        created += 1

    if not store.list_socials():
        store.create_social(SocialIn(name="Instagram", url="https://www.instagram.com/", icon="instagram.svg", ord=1))
    return created


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.parse_args(argv)
    settings = get_settings()
    if not settings.database_url:
        print("DATABASE_URL is not set; the in-memory store would be thrown away.", file=sys.stderr)
        return 1
    store = build_store(settings)
    try:
        print(f"Seeded {seed(store)} product(s)")
    finally:
        store.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
