from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import FileResponse

from ..auth import is_admin, require_admin, set_session_cookie, token_matches
from ..config import Settings
from ..deps import get_app_settings, get_media, get_store
from ..forms import admin_json
from ..models import DeleteRequest
from ..store.base import Store
from .products import remove_product

router = APIRouter()

# JSON {id} variants of the DELETE endpoints, for clients that can only POST.


@router.post("/api/admin/delete-product", dependencies=[Depends(require_admin)])
def admin_delete_product(
    payload: DeleteRequest = Depends(admin_json(DeleteRequest)),
    store: Store = Depends(get_store),
    media=Depends(get_media),
):
    remove_product(payload.id, store, media)
    return {"status": "deleted"}


@router.post("/api/admin/delete-category", dependencies=[Depends(require_admin)])
def admin_delete_category(
    payload: DeleteRequest = Depends(admin_json(DeleteRequest)),
    store: Store = Depends(get_store),
):
    store.delete_category(payload.id)
    return {"status": "deleted"}


@router.get("/admin", include_in_schema=False)
def admin_page(request: Request, settings: Settings = Depends(get_app_settings)):
    """
    Serves the admin page to an authenticated caller. A secret link
    (/admin?token=ADMIN_TOKEN) also logs the browser in by setting the cookie.
    """
    page = settings.static_dir / "admin.html"
    if not page.is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="admin page missing")
    if is_admin(request, settings):
        response = FileResponse(page)
        if token_matches(request.query_params.get("token"), settings.admin_token):
            set_session_cookie(response, settings)
        return response
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="forbidden")
