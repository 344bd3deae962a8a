import logging

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    Index,
    Integer,
    MetaData,
    Numeric,
    SmallInteger,
    String,
    Table,
    Text,
    func,
    inspect,
    select,
    text,
)
from sqlalchemy.engine import Engine
from sqlalchemy.schema import CreateColumn

from .base import DEFAULT_PROFILE, DEV_CATEGORIES

logger = logging.getLogger(__name__)

# Integer on SQLite so the primary keys autoincrement there as well.
ID = BigInteger().with_variant(Integer, "sqlite")

metadata = MetaData()

products = Table(
    "products",
    metadata,
    Column("id", ID, primary_key=True, autoincrement=True),
    Column("title", String(255), nullable=False),
    Column("description", Text),
    Column("price", Numeric(10, 2), server_default=text("0.00")),
    Column("image_url", Text),
    Column("category_id", ID, nullable=True),
    Column("created_at", DateTime, server_default=func.current_timestamp()),
    # added after the first release; see migrate()
    Column("external_url", Text),
    Column("tag", String(16), server_default=text("'mychoice'")),
    Column("image_public_id", Text),
    Index("idx_products_category", "category_id"),
)

categories = Table(
    "categories",
    metadata,
    Column("id", ID, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False, unique=True),
)

socials = Table(
    "socials",
    metadata,
    Column("id", ID, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("url", Text, nullable=False),
    Column("icon", String(255)),
    Column("ord", Integer, server_default=text("0")),
)

# Single row, id = 1.
profile = Table(
    "profile",
    metadata,
    Column("id", SmallInteger, primary_key=True, autoincrement=False),
    Column("display_name", String(255), nullable=False),
    Column("username", String(255)),
    Column("bio", Text),
    Column("highlight", Text),
    Column("avatar_url", Text),
    Column("avatar_public_id", Text),
    Column("updated_at", DateTime, server_default=func.current_timestamp(), onupdate=func.current_timestamp()),
)

PROFILE_ID = 1


def migrate(engine: Engine) -> None:
    """Add any declared column that an older table is missing. Never drops anything."""
    inspector = inspect(engine)
    for table in metadata.sorted_tables:
        existing = {c["name"] for c in inspector.get_columns(table.name)}
        for column in table.columns:
            if column.name in existing:
                continue
            ddl = CreateColumn(column).compile(dialect=engine.dialect)
            logger.info("adding column %s.%s", table.name, column.name)
            with engine.begin() as conn:
                conn.execute(text(f"ALTER TABLE {table.name} ADD COLUMN {ddl}"))


def ensure_schema(engine: Engine, seed_categories: bool = False) -> None:
    """Idempotent startup bootstrap: tables, missing columns, profile row."""
    metadata.create_all(engine)
    migrate(engine)
    with engine.begin() as conn:
        has_profile = conn.execute(select(profile.c.id).where(profile.c.id == PROFILE_ID)).first()
        if has_profile is None:
            conn.execute(
                profile.insert().values(
                    id=PROFILE_ID,
                    display_name=DEFAULT_PROFILE.display_name,
                    username=DEFAULT_PROFILE.username,
                    bio=DEFAULT_PROFILE.bio,
                    highlight=DEFAULT_PROFILE.highlight,
                    avatar_url="",
                )
            )
        # Only seeded in development so that admin deletions stay permanent.
        if seed_categories:
            count = conn.execute(select(func.count()).select_from(categories)).scalar_one()
            if count == 0:
                conn.execute(categories.insert(), [{"name": name} for name in DEV_CATEGORIES])
