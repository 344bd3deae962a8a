import logging
import threading
from datetime import datetime, timezone
from typing import Dict, List

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
from .base import DEFAULT_PROFILE, DEV_CATEGORIES, Store, apply_product_changes, new_product_fields

logger = logging.getLogger(__name__)

DEV_AVATAR_URL = "https://images.unsplash.com/photo-1534528741775-53994a69daeb?auto=format&fit=crop&w=400&q=80"

DEV_SOCIALS = (
    {"name": "Instagram", "url": "https://www.instagram.com/lynvhu.passio.eco", "icon": "instagram.svg", "ord": 1},
    {"name": "Facebook", "url": "https://www.facebook.com/", "icon": "facebook.svg", "ord": 2},
)


class MemoryStore(Store):
    """
    Process-local stand-in for the database, used in development mode.

    Every public method takes the lock for the whole collection operation and
    hands out copies, so callers never see (or mutate) the stored records.
    """

    name = "memory"

    def __init__(self, seed: bool = True):
        self._lock = threading.Lock()
        # newest first, like ORDER BY id DESC
        self._products: List[Product] = []
        self._categories: List[Category] = []
        self._socials: List[Social] = []
        self._profile = DEFAULT_PROFILE.model_copy()
        self._next_ids: Dict[str, int] = {"product": 1, "category": 1, "social": 1}
        if seed:
            self._seed()

    def _seed(self):
        for name in DEV_CATEGORIES:
            self.create_category(CategoryIn(name=name))
        for social in DEV_SOCIALS:
            self.create_social(SocialIn(**social))
        self._profile.avatar_url = DEV_AVATAR_URL

    def _next_id(self, kind: str) -> int:
        value = self._next_ids[kind]
        self._next_ids[kind] = value + 1
        return value

    # --- lookups; callers must hold the lock ---

    def _product_index(self, product_id: int) -> int:
        for i, product in enumerate(self._products):
            if product.id == product_id:
                return i
        raise NotFound()

    def _category_index(self, category_id: int) -> int:
        for i, category in enumerate(self._categories):
            if category.id == category_id:
                return i
        raise NotFound()

    def _social_index(self, social_id: int) -> int:
        for i, social in enumerate(self._socials):
            if social.id == social_id:
                return i
        raise NotFound()

    def _check_category(self, category_id: int):
        if not category_id:
            return
        if not any(c.id == category_id for c in self._categories):
            raise InvalidReference("category not found")

    def _check_unique_name(self, name: str, exclude_id: int = 0):
        if any(c.name == name and c.id != exclude_id for c in self._categories):
            raise Conflict("category already exists")

    def _with_category(self, product: Product) -> Product:
        out = product.model_copy()
        out.category = next((c.name for c in self._categories if c.id == out.category_id), "")
        return out

    # --- products ---

    def list_products(self) -> List[Product]:
        with self._lock:
            return [self._with_category(p) for p in self._products]

    def get_product(self, product_id: int) -> Product:
        with self._lock:
            return self._with_category(self._products[self._product_index(product_id)])

    def create_product(self, draft: ProductDraft) -> Product:
        fields = new_product_fields(draft)
        fields["category_id"] = fields["category_id"] or 0
        with self._lock:
            self._check_category(fields["category_id"])
            product = Product(
                id=self._next_id("product"),
                created_at=datetime.now(timezone.utc).isoformat(timespec="seconds"),
                **fields,
            )
            self._products.insert(0, product)
            return self._with_category(product)

    def update_product(self, product_id: int, changes: ProductChanges) -> Product:
        with self._lock:
            index = self._product_index(product_id)
            updated = apply_product_changes(self._products[index], changes)
            self._check_category(updated.category_id)
            self._products[index] = updated
            return self._with_category(updated)

    def delete_product(self, product_id: int) -> Product:
        with self._lock:
            return self._products.pop(self._product_index(product_id))

    # --- categories ---

    def list_categories(self) -> List[Category]:
        with self._lock:
            return sorted((c.model_copy() for c in self._categories), key=lambda c: c.name)

    def get_category(self, category_id: int) -> Category:
        with self._lock:
            return self._categories[self._category_index(category_id)].model_copy()

    def create_category(self, payload: CategoryIn) -> Category:
        with self._lock:
            self._check_unique_name(payload.name)
            category = Category(id=self._next_id("category"), name=payload.name)
            self._categories.append(category)
            return category.model_copy()

    def update_category(self, category_id: int, payload: CategoryIn) -> Category:
        with self._lock:
            index = self._category_index(category_id)
            self._check_unique_name(payload.name, exclude_id=category_id)
            self._categories[index] = Category(id=category_id, name=payload.name)
            return self._categories[index].model_copy()

    def delete_category(self, category_id: int) -> None:
        with self._lock:
            index = self._category_index(category_id)
            del self._categories[index]
            for i, product in enumerate(self._products):
                if product.category_id == category_id:
                    self._products[i] = product.model_copy(update={"category_id": 0})
            logger.info("deleted category id=%d", category_id)

    # --- socials ---

    def _sorted_socials(self) -> List[Social]:
        return sorted((s.model_copy() for s in self._socials), key=lambda s: (s.ord, s.id))

    def list_socials(self) -> List[Social]:
        with self._lock:
            return self._sorted_socials()

    def get_social(self, social_id: int) -> Social:
        with self._lock:
            return self._socials[self._social_index(social_id)].model_copy()

    def create_social(self, payload: SocialIn) -> Social:
        with self._lock:
            social = Social(id=self._next_id("social"), **payload.model_dump())
            self._socials.append(social)
            return social.model_copy()

    def update_social(self, social_id: int, changes: SocialChanges) -> Social:
        with self._lock:
            index = self._social_index(social_id)
            update = changes.model_dump(exclude_none=True)
            self._socials[index] = self._socials[index].model_copy(update=update)
            return self._socials[index].model_copy()

    def delete_social(self, social_id: int) -> None:
        with self._lock:
            del self._socials[self._social_index(social_id)]

    # --- profile ---

    def get_profile(self) -> Profile:
        with self._lock:
            profile = self._profile.model_copy()
            profile.socials = self._sorted_socials()
            return profile

    def update_profile(self, changes: ProfileChanges) -> Profile:
        with self._lock:
            update = changes.model_dump(exclude_none=True)
            self._profile = self._profile.model_copy(update=update)
            profile = self._profile.model_copy()
            profile.socials = self._sorted_socials()
            return profile
