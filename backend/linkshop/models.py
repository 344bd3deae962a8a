from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

TAG_MYCHOICE = "mychoice"
TAG_SHOPEE = "shopee"
TAGS = (TAG_MYCHOICE, TAG_SHOPEE)


def round_price(value: float) -> float:
    # DECIMAL(10,2) in the products table.
    return round(float(value), 2)


# --- categories ---
class Category(BaseModel):
    id: int
    name: str


# --- products ---
# category_id is 0 and category is "" when the product has no category.
class Product(BaseModel):
    id: int
    title: str
    description: str = ""
    price: float = 0.0
    image_url: str = ""
    image_public_id: str = ""
    external_url: str = ""
    tag: str = TAG_MYCHOICE
    category_id: int = 0
    category: str = ""
    created_at: str = ""

    @field_validator("price")
    @classmethod
    def _two_decimals(cls, value: float) -> float:
        return round_price(value)


# --- socials ---
# icon is a filename under the static icon directory.
class Social(BaseModel):
    id: int
    name: str
    url: str
    icon: str = ""
    ord: int = 0


# --- profile (single row, id = 1) ---
class Profile(BaseModel):
    display_name: str
    username: str = ""
    bio: str = ""
    highlight: str = ""
    avatar_url: str = ""
    avatar_public_id: str = Field(default="", exclude=True)
    socials: List[Social] = Field(default_factory=list)


class ProductDraft(BaseModel):
    title: str
    description: str = ""
    price: float = 0.0
    image_url: str = ""
    image_public_id: str = ""
    external_url: str = ""
    tag: str = ""
    category_id: Optional[int] = None


class ProductChanges(BaseModel):
    """Fields left as None are not touched by an update."""

    title: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    image_url: Optional[str] = None
    image_public_id: Optional[str] = None
    external_url: Optional[str] = None
    tag: Optional[str] = None
    # 0 clears the category.
    category_id: Optional[int] = None


class CategoryIn(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def _name_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name required")
        return value


class SocialIn(BaseModel):
    name: str
    url: str
    icon: str = ""
    ord: int = 0

    @field_validator("name", "url")
    @classmethod
    def _required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name and url are required")
        return value


class SocialChanges(BaseModel):
    name: Optional[str] = None
    url: Optional[str] = None
    icon: Optional[str] = None
    ord: Optional[int] = None

    @field_validator("name", "url")
    @classmethod
    def _not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("name and url cannot be empty")
        return value


class ProfileChanges(BaseModel):
    display_name: str
    username: str = ""
    bio: str = ""
    highlight: str = ""
    avatar_url: Optional[str] = None
    avatar_public_id: Optional[str] = None


class LoginRequest(BaseModel):
    username: str
    password: str


class DeleteRequest(BaseModel):
    id: int


class CreatedProduct(BaseModel):
    id: int
    image_url: str
