import logging
from typing import List

from fastapi import APIRouter, Depends
from starlette.datastructures import FormData

from ..auth import require_admin
from ..deps import get_media, get_store
from ..forms import file_field, multipart_form, product_changes, product_draft
from ..models import CreatedProduct, Product
from ..store.base import Store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=List[Product])
def list_products(store: Store = Depends(get_store)):
    return store.list_products()


@router.post("", response_model=CreatedProduct, dependencies=[Depends(require_admin)])
def create_product(
    form: FormData = Depends(multipart_form),
    store: Store = Depends(get_store),
    media=Depends(get_media),
):
    """
    Multipart create: title, description, price, category_id, external_url,
    tag and an optional image under `file`.
    """
    draft = product_draft(form)
    upload = file_field(form, "file")
    if upload is not None:
        image = media.upload(upload)
        draft.image_url, draft.image_public_id = image.url, image.public_id
    try:
        product = store.create_product(draft)
    except Exception:
        media.delete(draft.image_public_id)
        raise
    logger.info("created product id=%d tag=%s", product.id, product.tag)
    return CreatedProduct(id=product.id, image_url=product.image_url)


@router.get("/{product_id}", response_model=Product)
def get_product(product_id: int, store: Store = Depends(get_store)):
    return store.get_product(product_id)


@router.put("/{product_id}", response_model=Product, dependencies=[Depends(require_admin)])
def update_product(
    product_id: int,
    form: FormData = Depends(multipart_form),
    store: Store = Depends(get_store),
    media=Depends(get_media),
):
    """Partial update: only the fields present in the form are changed."""
    changes = product_changes(form)
    previous = store.get_product(product_id)
    upload = file_field(form, "file")
    if upload is not None:
        image = media.upload(upload)
        changes.image_url, changes.image_public_id = image.url, image.public_id
    try:
        product = store.update_product(product_id, changes)
    except Exception:
        if changes.image_public_id:
            media.delete(changes.image_public_id)
        raise
    if upload is not None and previous.image_public_id != product.image_public_id:
        media.delete(previous.image_public_id)
    return product


@router.delete("/{product_id}", dependencies=[Depends(require_admin)])
def delete_product(product_id: int, store: Store = Depends(get_store), media=Depends(get_media)):
    remove_product(product_id, store, media)
    return {"status": "deleted"}


def remove_product(product_id: int, store: Store, media) -> None:
    product = store.delete_product(product_id)
    logger.info("deleted product id=%d", product_id)
    media.delete(product.image_public_id)
