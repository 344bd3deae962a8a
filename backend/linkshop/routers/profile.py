import logging

from fastapi import APIRouter, Depends, HTTPException, status
from starlette.datastructures import FormData

from ..auth import require_admin
from ..deps import get_media, get_store
from ..forms import file_field, multipart_form, text_field
from ..models import Profile, ProfileChanges
from ..store.base import Store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=Profile)
def get_profile(store: Store = Depends(get_store)):
    return store.get_profile()


@router.api_route("", methods=["PUT", "POST"], response_model=Profile, dependencies=[Depends(require_admin)])
def update_profile(
    form: FormData = Depends(multipart_form),
    store: Store = Depends(get_store),
    media=Depends(get_media),
):
    """
    Replaces the text fields with the submitted values; the avatar only
    changes when a new file is attached.
    """
    display_name = (text_field(form, "display_name") or "").strip()
    if not display_name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="display_name is required")
    changes = ProfileChanges(
        display_name=display_name,
        username=(text_field(form, "username") or "").strip(),
        bio=(text_field(form, "bio") or "").strip(),
        highlight=(text_field(form, "highlight") or "").strip(),
    )
    current = store.get_profile()
    avatar = file_field(form, "avatar")
    if avatar is not None:
        image = media.upload(avatar, kind="avatar")
        changes.avatar_url, changes.avatar_public_id = image.url, image.public_id
    try:
        profile = store.update_profile(changes)
    except Exception:
        if changes.avatar_public_id:
            media.delete(changes.avatar_public_id)
        raise
    if avatar is not None:
        logger.info("profile avatar replaced")
        media.delete(current.avatar_public_id)
    return profile
