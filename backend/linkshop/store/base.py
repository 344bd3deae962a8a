from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from ..errors import InvalidProduct
from ..models import (
    TAG_MYCHOICE,
    TAG_SHOPEE,
    TAGS,
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

DEFAULT_PROFILE = Profile(
    display_name="Mua Rẻ - Mặc Đẹp",
    username="@lynvhu.passio.eco",
    bio="Local curated closet • Giao nhanh trong 48h",
    highlight="Nhắn mình trên Instagram để chốt đơn nhé!",
)

DEV_CATEGORIES = ("Quần áo", "Đầm", "Giày dép")


def resolve_listing(
    tag: Optional[str],
    external_url: Optional[str],
    current_tag: str = "",
    current_url: str = "",
) -> Tuple[str, str]:
    """
    Work out the (tag, external_url) pair a product ends up with.

    Request values win over stored ones. A "shopee" product needs a link from
    either side; every other tag stores an empty link.
    """
    effective_tag = (tag or "").strip().lower() or current_tag or TAG_MYCHOICE
    if effective_tag not in TAGS:
        raise InvalidProduct(f"tag must be one of: {', '.join(TAGS)}")
    if effective_tag != TAG_SHOPEE:
        return effective_tag, ""
    link = (external_url if external_url is not None else current_url).strip()
    if not link:
        raise InvalidProduct("external_url required for shopee products")
    return effective_tag, link


def category_ref(category_id: Optional[int]) -> Optional[int]:
    """0 and None both mean "no category" and are stored as NULL."""
    if not category_id:
        return None
    return category_id


def apply_product_changes(current: Product, changes: ProductChanges) -> Product:
    """
    Merge the present fields of ``changes`` into a copy of ``current``.

    The tag/link rule is only checked when the update touches the tag or link.
    """
    updated = current.model_copy()
    if changes.tag is not None or changes.external_url is not None:
        updated.tag, updated.external_url = resolve_listing(
            changes.tag, changes.external_url, current.tag, current.external_url
        )
    if changes.title is not None:
        if not changes.title.strip():
            raise InvalidProduct("title required")
        updated.title = changes.title
    if changes.description is not None:
        updated.description = changes.description
    if changes.price is not None:
        updated.price = changes.price
    if changes.image_url is not None:
        updated.image_url = changes.image_url
    if changes.image_public_id is not None:
        updated.image_public_id = changes.image_public_id
    if changes.category_id is not None:
        updated.category_id = category_ref(changes.category_id) or 0
    return Product.model_validate(updated.model_dump())


class Store(ABC):
    """Data-access contract shared by the database and in-memory backends."""

    name = "abstract"

    # products
    @abstractmethod
    def list_products(self) -> List[Product]: ...

    @abstractmethod
    def get_product(self, product_id: int) -> Product: ...

    @abstractmethod
    def create_product(self, draft: ProductDraft) -> Product: ...

    @abstractmethod
    def update_product(self, product_id: int, changes: ProductChanges) -> Product: ...

    @abstractmethod
    def delete_product(self, product_id: int) -> Product: ...

    # categories
    @abstractmethod
    def list_categories(self) -> List[Category]: ...

    @abstractmethod
    def get_category(self, category_id: int) -> Category: ...

    @abstractmethod
    def create_category(self, payload: CategoryIn) -> Category: ...

    @abstractmethod
    def update_category(self, category_id: int, payload: CategoryIn) -> Category: ...

    @abstractmethod
    def delete_category(self, category_id: int) -> None: ...

    # socials
    @abstractmethod
    def list_socials(self) -> List[Social]: ...

    @abstractmethod
    def get_social(self, social_id: int) -> Social: ...

    @abstractmethod
    def create_social(self, payload: SocialIn) -> Social: ...

    @abstractmethod
    def update_social(self, social_id: int, changes: SocialChanges) -> Social: ...

    @abstractmethod
    def delete_social(self, social_id: int) -> None: ...

    # profile
    @abstractmethod
    def get_profile(self) -> Profile: ...

    @abstractmethod
    def update_profile(self, changes: ProfileChanges) -> Profile: ...

    def close(self) -> None:
        pass


def new_product_fields(draft: ProductDraft) -> dict:
    """Validated column values for a new product, shared by both backends."""
    if not draft.title.strip():
        raise InvalidProduct("title required")
    tag, link = resolve_listing(draft.tag, draft.external_url)
    return {
        "title": draft.title,
        "description": draft.description,
        "price": draft.price,
        "image_url": draft.image_url,
        "image_public_id": draft.image_public_id,
        "external_url": link,
        "tag": tag,
        "category_id": category_ref(draft.category_id),
    }
