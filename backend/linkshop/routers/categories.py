from typing import List

from fastapi import APIRouter, Depends

from ..auth import require_admin
from ..deps import get_store
from ..forms import admin_json
from ..models import Category, CategoryIn
from ..store.base import Store

router = APIRouter()


@router.get("", response_model=List[Category])
def list_categories(store: Store = Depends(get_store)):
    return store.list_categories()


@router.post("", response_model=Category, dependencies=[Depends(require_admin)])
def create_category(payload: CategoryIn = Depends(admin_json(CategoryIn)), store: Store = Depends(get_store)):
    return store.create_category(payload)


@router.put("/{category_id}", response_model=Category, dependencies=[Depends(require_admin)])
def update_category(
    category_id: int,
    payload: CategoryIn = Depends(admin_json(CategoryIn)),
    store: Store = Depends(get_store),
):
    return store.update_category(category_id, payload)


@router.delete("/{category_id}", dependencies=[Depends(require_admin)])
def delete_category(category_id: int, store: Store = Depends(get_store)):
    """Products in the category keep existing, with no category."""
    store.delete_category(category_id)
    return {"status": "deleted"}
