"""
Request body parsing: multipart forms for the product and profile endpoints,
JSON bodies for the admin-only JSON endpoints.

Presence matters for updates: a field that is not in the form stays None in
the resulting change object and is left untouched in storage.
"""
import math
from typing import Optional, Type, TypeVar

from fastapi import Depends, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError
from starlette.datastructures import FormData, UploadFile

from .auth import require_admin
from .models import ProductChanges, ProductDraft

ModelT = TypeVar("ModelT", bound=BaseModel)

MAX_FORM_FILES = 4
MAX_FORM_FIELDS = 64


async def multipart_form(request: Request) -> FormData:
    try:
        return await request.form(max_files=MAX_FORM_FILES, max_fields=MAX_FORM_FIELDS)
    except Exception as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"parse multipart: {exc}") from exc


def parse_float(value: Optional[str]) -> Optional[float]:
    """None for missing or malformed input."""
    if value is None:
        return None
    try:
        number = float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def parse_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def text_field(form: FormData, name: str) -> Optional[str]:
    value = form.get(name)
    if value is None or isinstance(value, UploadFile):
        return None
    return value


def file_field(form: FormData, name: str) -> Optional[UploadFile]:
    value = form.get(name)
    # browsers send an empty part with no filename when nothing was picked
    if isinstance(value, UploadFile) and value.filename:
        return value
    return None


def product_draft(form: FormData) -> ProductDraft:
    title = (text_field(form, "title") or "").strip()
    if not title:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="title required")
    return ProductDraft(
        title=title,
        description=text_field(form, "description") or "",
        price=parse_float(text_field(form, "price")) or 0.0,
        external_url=(text_field(form, "external_url") or "").strip(),
        tag=text_field(form, "tag") or "",
        category_id=parse_int(text_field(form, "category_id")),
    )


def product_changes(form: FormData) -> ProductChanges:
    external_url = text_field(form, "external_url")
    category = text_field(form, "category_id")
    if category is not None and not category.strip():
        # an empty selection means "no category"
        category = "0"
    return ProductChanges(
        title=text_field(form, "title"),
        description=text_field(form, "description"),
        # malformed numbers are dropped, keeping whatever is stored
        price=parse_float(text_field(form, "price")),
        category_id=parse_int(category),
        external_url=external_url.strip() if external_url is not None else None,
        tag=text_field(form, "tag") or None,
    )


def admin_json(model: Type[ModelT]):
    """
    Dependency reading the JSON body into ``model`` once the caller is known
    to be admin, so anonymous callers get 401 whatever the body holds.
    """

    async def parse(request: Request, _: None = Depends(require_admin)) -> ModelT:
        try:
            data = await request.json()
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="invalid JSON body") from exc
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise RequestValidationError(exc.errors(include_url=False)) from exc

    return parse
