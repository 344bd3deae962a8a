from typing import List

from fastapi import APIRouter, Depends

from ..auth import require_admin
from ..deps import get_store
from ..forms import admin_json
from ..models import Social, SocialChanges, SocialIn
from ..store.base import Store

router = APIRouter()


@router.get("", response_model=List[Social])
def list_socials(store: Store = Depends(get_store)):
    return store.list_socials()


@router.post("", response_model=Social, dependencies=[Depends(require_admin)])
def create_social(payload: SocialIn = Depends(admin_json(SocialIn)), store: Store = Depends(get_store)):
    return store.create_social(payload)


@router.put("/{social_id}", response_model=Social, dependencies=[Depends(require_admin)])
def update_social(
    social_id: int,
    payload: SocialChanges = Depends(admin_json(SocialChanges)),
    store: Store = Depends(get_store),
):
    return store.update_social(social_id, payload)


@router.delete("/{social_id}", dependencies=[Depends(require_admin)])
def delete_social(social_id: int, store: Store = Depends(get_store)):
    store.delete_social(social_id)
    return {"status": "deleted"}
