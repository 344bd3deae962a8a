import logging
import ssl
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import create_engine, select, update
from sqlalchemy.engine import Engine, Row
from sqlalchemy.exc import IntegrityError

from ..errors import Conflict, InvalidReference, NotFound
from ..models import (
    Category,
    CategoryIn,
    Product,
    ProductChanges,
    ProductDraft,
    Profile,
    ProfileChanges,
    Social,
    SocialChanges,
    SocialIn,
)
from . import schema
from .base import Store, apply_product_changes, category_ref, new_product_fields
from .schema import categories, products, profile, socials

logger = logging.getLogger(__name__)

PRODUCT_COLUMNS = (
    products.c.id,
    products.c.title,
    products.c.description,
    products.c.price,
    products.c.image_url,
    products.c.image_public_id,
    products.c.external_url,
    products.c.tag,
    products.c.category_id,
    categories.c.name.label("category"),
    products.c.created_at,
)


def make_engine(url: str, ssl_ca: Optional[str] = None, **kwargs) -> Engine:
    connect_args: Dict[str, Any] = kwargs.pop("connect_args", {})
    if ssl_ca and url.startswith("mysql"):
        connect_args["ssl"] = ssl.create_default_context(cafile=ssl_ca)
    return create_engine(url, pool_pre_ping=True, connect_args=connect_args, **kwargs)


def _format_timestamp(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat(timespec="seconds")
    if isinstance(value, bytes):
        return value.decode()
    return str(value)


def _product_from_row(row: Row) -> Product:
    data = row._mapping
    price = data["price"]
    return Product(
        id=data["id"],
        title=data["title"],
        description=data["description"] or "",
        price=float(price) if isinstance(price, Decimal) else (price or 0.0),
        image_url=data["image_url"] or "",
        image_public_id=data["image_public_id"] or "",
        external_url=data["external_url"] or "",
        tag=data["tag"] or "mychoice",
        category_id=data["category_id"] or 0,
        category=data["category"] or "",
        created_at=_format_timestamp(data["created_at"]),
    )


def _social_from_row(row: Row) -> Social:
    data = row._mapping
    return Social(id=data["id"], name=data["name"], url=data["url"], icon=data["icon"] or "", ord=data["ord"] or 0)


class DatabaseStore(Store):
    """
    Relational backend on SQLAlchemy Core.

    Each operation runs in its own transaction; nothing spans requests.
    """

    name = "database"

    def __init__(self, engine: Engine, seed_categories: bool = False):
        self.engine = engine
        schema.ensure_schema(engine, seed_categories=seed_categories)

    @classmethod
    def from_url(cls, url: str, ssl_ca: Optional[str] = None, seed_categories: bool = False) -> "DatabaseStore":
        return cls(make_engine(url, ssl_ca=ssl_ca), seed_categories=seed_categories)

    def close(self) -> None:
        self.engine.dispose()

    def _products_query(self):
        return select(*PRODUCT_COLUMNS).select_from(
            products.outerjoin(categories, categories.c.id == products.c.category_id)
        )

    def _check_category(self, conn, category_id: Optional[int]):
        if category_id is None:
            return
        found = conn.execute(select(categories.c.id).where(categories.c.id == category_id)).first()
        if found is None:
            raise InvalidReference("category not found")

    # --- products ---

    def list_products(self) -> List[Product]:
        with self.engine.connect() as conn:
            rows = conn.execute(self._products_query().order_by(products.c.id.desc()))
            return [_product_from_row(row) for row in rows]

    def get_product(self, product_id: int) -> Product:
        with self.engine.connect() as conn:
            return self._fetch_product(conn, product_id)

    def _fetch_product(self, conn, product_id: int) -> Product:
        row = conn.execute(self._products_query().where(products.c.id == product_id)).first()
        if row is None:
            raise NotFound()
        return _product_from_row(row)

    def create_product(self, draft: ProductDraft) -> Product:
        fields = new_product_fields(draft)
        with self.engine.begin() as conn:
            self._check_category(conn, fields["category_id"])
            created_at = datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0)
            result = conn.execute(products.insert().values(created_at=created_at, **fields))
            product_id = result.inserted_primary_key[0]
            return self._fetch_product(conn, product_id)

    def update_product(self, product_id: int, changes: ProductChanges) -> Product:
        with self.engine.begin() as conn:
            current = self._fetch_product(conn, product_id)
            updated = apply_product_changes(current, changes)
            values: Dict[str, Any] = {}
            for field in ("title", "description", "price", "image_url", "image_public_id"):
                if getattr(changes, field) is not None:
                    values[field] = getattr(updated, field)
            if changes.tag is not None or changes.external_url is not None:
                values["tag"], values["external_url"] = updated.tag, updated.external_url
            if changes.category_id is not None:
                values["category_id"] = category_ref(changes.category_id)
                self._check_category(conn, values["category_id"])
            if values:
                conn.execute(update(products).where(products.c.id == product_id).values(**values))
            return self._fetch_product(conn, product_id)

    def delete_product(self, product_id: int) -> Product:
        with self.engine.begin() as conn:
            current = self._fetch_product(conn, product_id)
            conn.execute(products.delete().where(products.c.id == product_id))
            return current

    # --- categories ---

    def list_categories(self) -> List[Category]:
        with self.engine.connect() as conn:
            rows = conn.execute(select(categories.c.id, categories.c.name).order_by(categories.c.name.asc()))
            return [Category(id=row.id, name=row.name) for row in rows]

    def get_category(self, category_id: int) -> Category:
        with self.engine.connect() as conn:
            row = conn.execute(
                select(categories.c.id, categories.c.name).where(categories.c.id == category_id)
            ).first()
        if row is None:
            raise NotFound()
        return Category(id=row.id, name=row.name)

    def create_category(self, payload: CategoryIn) -> Category:
        try:
            with self.engine.begin() as conn:
                result = conn.execute(categories.insert().values(name=payload.name))
        except IntegrityError as exc:
            raise Conflict("category already exists") from exc
        return Category(id=result.inserted_primary_key[0], name=payload.name)

    def update_category(self, category_id: int, payload: CategoryIn) -> Category:
        try:
            with self.engine.begin() as conn:
                result = conn.execute(
                    update(categories).where(categories.c.id == category_id).values(name=payload.name)
                )
        except IntegrityError as exc:
            raise Conflict("category already exists") from exc
        if result.rowcount == 0:
            # some drivers count changed rows, not matched ones
            self.get_category(category_id)
        return Category(id=category_id, name=payload.name)

    def delete_category(self, category_id: int) -> None:
        # Two statements, not one transaction: a product inserted in between can
        # still end up pointing at the deleted id.
        with self.engine.begin() as conn:
            conn.execute(update(products).where(products.c.category_id == category_id).values(category_id=None))
        with self.engine.begin() as conn:
            result = conn.execute(categories.delete().where(categories.c.id == category_id))
        if result.rowcount == 0:
            raise NotFound()
        logger.info("deleted category id=%d", category_id)

    # --- socials ---

    def _socials(self, conn) -> List[Social]:
        rows = conn.execute(select(socials).order_by(socials.c.ord.asc(), socials.c.id.asc()))
        return [_social_from_row(row) for row in rows]

    def list_socials(self) -> List[Social]:
        with self.engine.connect() as conn:
            return self._socials(conn)

    def get_social(self, social_id: int) -> Social:
        with self.engine.connect() as conn:
            row = conn.execute(select(socials).where(socials.c.id == social_id)).first()
        if row is None:
            raise NotFound()
        return _social_from_row(row)

    def create_social(self, payload: SocialIn) -> Social:
        with self.engine.begin() as conn:
            result = conn.execute(socials.insert().values(**payload.model_dump()))
        return Social(id=result.inserted_primary_key[0], **payload.model_dump())

    def update_social(self, social_id: int, changes: SocialChanges) -> Social:
        values = changes.model_dump(exclude_none=True)
        with self.engine.begin() as conn:
            if values:
                conn.execute(update(socials).where(socials.c.id == social_id).values(**values))
            row = conn.execute(select(socials).where(socials.c.id == social_id)).first()
        if row is None:
            raise NotFound()
        return _social_from_row(row)

    def delete_social(self, social_id: int) -> None:
        with self.engine.begin() as conn:
            result = conn.execute(socials.delete().where(socials.c.id == social_id))
        if result.rowcount == 0:
            raise NotFound()

    # --- profile ---

    def _profile(self, conn) -> Profile:
        row = conn.execute(select(profile).where(profile.c.id == schema.PROFILE_ID)).first()
        if row is None:
            raise NotFound("profile not ready")
        data = row._mapping
        return Profile(
            display_name=data["display_name"],
            username=data["username"] or "",
            bio=data["bio"] or "",
            highlight=data["highlight"] or "",
            avatar_url=data["avatar_url"] or "",
            avatar_public_id=data["avatar_public_id"] or "",
            socials=self._socials(conn),
        )

    def get_profile(self) -> Profile:
        with self.engine.connect() as conn:
            return self._profile(conn)

    def update_profile(self, changes: ProfileChanges) -> Profile:
        values = changes.model_dump(exclude_none=True)
        with self.engine.begin() as conn:
            conn.execute(update(profile).where(profile.c.id == schema.PROFILE_ID).values(**values))
            return self._profile(conn)
