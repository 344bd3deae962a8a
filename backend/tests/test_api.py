import pytest
from sqlalchemy.exc import OperationalError

from conftest import ADMIN_TOKEN

PNG = ("shirt.png", b"\x89PNG\r\n\x1a\nfake", "image/png")


def _create_product(client, **fields):
    data = {"title": "Linen shirt", "description": "white", "price": "189.5"}
    data.update(fields)
    resp = client.post("/api/products", data=data)
    assert resp.status_code == 200, resp.text
    return resp.json()["id"]


BAD_JSON = {"content": b"{not json", "headers": {"content-type": "application/json"}}

ADMIN_ONLY = [
    ("post", "/api/products", {"data": {"title": "x"}}),
    ("put", "/api/products/1", {"data": {"title": "x"}}),
    ("delete", "/api/products/1", {}),
    ("post", "/api/categories", {"json": {"name": "x"}}),
    ("put", "/api/categories/1", {"json": {"name": "x"}}),
    ("delete", "/api/categories/1", {}),
    ("post", "/api/socials", {"json": {"name": "x", "url": "https://x.test"}}),
    ("put", "/api/socials/1", {"json": {"name": "x"}}),
    ("delete", "/api/socials/1", {}),
    ("put", "/api/profile", {"data": {"display_name": "x"}}),
    ("post", "/api/admin/delete-product", {"json": {"id": 1}}),
    ("post", "/api/admin/delete-category", {"json": {"id": 1}}),
    ("post", "/api/categories", BAD_JSON),
    ("put", "/api/categories/1", BAD_JSON),
    ("post", "/api/socials", BAD_JSON),
    ("put", "/api/socials/1", BAD_JSON),
    ("post", "/api/admin/delete-product", BAD_JSON),
    ("post", "/api/admin/delete-category", BAD_JSON),
]


@pytest.mark.parametrize("method,path,kwargs", ADMIN_ONLY)
def test_admin_endpoints_reject_anonymous(client, method, path, kwargs):
    resp = getattr(client, method)(path, **kwargs)
    assert resp.status_code == 401
    assert resp.text == "unauthorized"


@pytest.mark.parametrize("method,path,kwargs", ADMIN_ONLY[:3])
def test_admin_endpoints_reject_wrong_token(client, method, path, kwargs):
    resp = getattr(client, method)(path, headers={"X-Admin-Token": "nope"}, **kwargs)
    assert resp.status_code == 401


@pytest.mark.parametrize("path", ["/api/products", "/api/categories", "/api/socials", "/api/profile"])
def test_public_reads(client, path):
    assert client.get(path).status_code == 200


def test_login_cookie_grants_admin(client):
    assert client.post("/api/login", json={"username": "admin", "password": "wrong"}).status_code == 401
    assert client.post("/api/categories", json={"name": "Shoes"}).status_code == 401

    resp = client.post("/api/login", json={"username": "admin", "password": "admin123"})
    assert resp.status_code == 200
    assert client.cookies.get("session") == "admin"
    assert client.post("/api/categories", json={"name": "Shoes"}).status_code == 200

    client.post("/api/logout")
    assert client.post("/api/categories", json={"name": "Hats"}).status_code == 401


def test_token_in_query_string(client):
    resp = client.post(f"/api/categories?token={ADMIN_TOKEN}", json={"name": "Shoes"})
    assert resp.status_code == 200


def test_category_round_trip(admin):
    category = admin.post("/api/categories", json={"name": "Shoes"}).json()
    assert {"id": category["id"], "name": "Shoes"} in admin.get("/api/categories").json()

    product_id = _create_product(admin, category_id=str(category["id"]))
    product = admin.get(f"/api/products/{product_id}").json()
    assert product["category"] == "Shoes"
    assert product["category_id"] == category["id"]


def test_category_validation(admin):
    resp = admin.post("/api/categories", json={"name": "   "})
    assert resp.status_code == 400
    assert "name required" in resp.text
    admin.post("/api/categories", json={"name": "Shoes"})
    assert admin.post("/api/categories", json={"name": "Shoes"}).status_code == 400
    assert admin.put("/api/categories/999", json={"name": "Hats"}).status_code == 404
    assert admin.delete("/api/categories/999").status_code == 404


def test_malformed_json_from_admin(admin):
    resp = admin.post("/api/categories", **BAD_JSON)
    assert resp.status_code == 400
    assert resp.text == "invalid JSON body"
    assert admin.post("/api/socials", json=["not", "an", "object"]).status_code == 400


def test_create_product_with_upload(admin, media):
    resp = admin.post("/api/products", data={"title": "Dress", "price": "259"}, files={"file": PNG})
    assert resp.status_code == 200
    body = resp.json()
    assert body["image_url"] == "https://media.test/image-1.png"
    product = admin.get(f"/api/products/{body['id']}").json()
    assert product["image_public_id"] == "image-1"
    assert product["price"] == 259.0


def test_create_product_requires_title(admin):
    resp = admin.post("/api/products", data={"price": "10"})
    assert resp.status_code == 400
    assert resp.text == "title required"


def test_create_product_unknown_category(admin, media):
    resp = admin.post("/api/products", data={"title": "x", "category_id": "77"}, files={"file": PNG})
    assert resp.status_code == 400
    assert resp.text == "category not found"
    # the orphaned upload is cleaned up
    assert media.deleted == ["image-1"]


def _fail_with_db_error(*args, **kwargs):
    raise OperationalError("INSERT", {}, Exception("connection lost"))


def test_upload_removed_when_database_fails(admin, media, store, monkeypatch):
    monkeypatch.setattr(store, "create_product", _fail_with_db_error)
    resp = admin.post("/api/products", data={"title": "x"}, files={"file": PNG})
    assert resp.status_code == 500
    assert resp.text == "db error"
    assert media.deleted == ["image-1"]

    assert admin.get("/api/products").json() == []


def test_replacement_upload_removed_when_database_fails(admin, media, store, monkeypatch):
    product_id = _create_product(admin)
    monkeypatch.setattr(store, "update_product", _fail_with_db_error)
    resp = admin.put(f"/api/products/{product_id}", data={"title": "y"}, files={"file": PNG})
    assert resp.status_code == 500
    assert media.deleted == ["image-1"]

    monkeypatch.setattr(store, "update_profile", _fail_with_db_error)
    avatar = {"avatar": ("me.jpg", b"jpeg", "image/jpeg")}
    resp = admin.put("/api/profile", data={"display_name": "Shop"}, files=avatar)
    assert resp.status_code == 500
    assert media.deleted == ["image-1", "avatar-2"]


def test_create_product_malformed_price_is_zero(admin):
    product_id = _create_product(admin, price="abc")
    assert admin.get(f"/api/products/{product_id}").json()["price"] == 0.0


def test_shopee_and_mychoice_links(admin):
    shopee = _create_product(admin, tag="shopee", external_url="https://shopee.vn/i/1")
    mine = _create_product(admin, tag="mychoice", external_url="https://shopee.vn/i/2")
    assert admin.get(f"/api/products/{shopee}").json()["external_url"] == "https://shopee.vn/i/1"
    assert admin.get(f"/api/products/{mine}").json()["external_url"] == ""

    resp = admin.post("/api/products", data={"title": "x", "tag": "shopee"})
    assert resp.status_code == 400

    admin.put(f"/api/products/{shopee}", data={"tag": "mychoice"})
    product = admin.get(f"/api/products/{shopee}").json()
    assert (product["tag"], product["external_url"]) == ("mychoice", "")


def test_partial_update_keeps_other_fields(admin):
    category = admin.post("/api/categories", json={"name": "Shoes"}).json()
    product_id = _create_product(
        admin, category_id=str(category["id"]), tag="shopee", external_url="https://shopee.vn/i/1"
    )
    before = admin.get(f"/api/products/{product_id}").json()

    resp = admin.put(f"/api/products/{product_id}", data={"price": "99.90"})
    assert resp.status_code == 200

    after = admin.get(f"/api/products/{product_id}").json()
    assert after["price"] == 99.9
    for field in ("title", "description", "category_id", "category", "tag", "external_url", "image_url"):
        assert after[field] == before[field]


def test_update_ignores_malformed_numbers(admin):
    category = admin.post("/api/categories", json={"name": "Shoes"}).json()
    product_id = _create_product(admin, category_id=str(category["id"]))
    resp = admin.put(f"/api/products/{product_id}", data={"price": "cheap", "category_id": "x", "title": "New"})
    assert resp.status_code == 200
    after = resp.json()
    assert after["title"] == "New"
    assert after["price"] == 189.5
    assert after["category_id"] == category["id"]


def test_update_empty_category_clears_it(admin):
    category = admin.post("/api/categories", json={"name": "Shoes"}).json()
    product_id = _create_product(admin, category_id=str(category["id"]))
    after = admin.put(f"/api/products/{product_id}", data={"category_id": ""}).json()
    assert after["category_id"] == 0
    assert after["category"] == ""


def test_update_replaces_image(admin, media):
    resp = admin.post("/api/products", data={"title": "Dress"}, files={"file": PNG})
    product_id = resp.json()["id"]
    resp = admin.put(f"/api/products/{product_id}", files={"file": PNG})
    assert resp.status_code == 200
    assert resp.json()["image_public_id"] == "image-2"
    assert media.deleted == ["image-1"]


def test_update_missing_product(admin):
    assert admin.put("/api/products/999", data={"title": "x"}).status_code == 404


def test_delete_product_cleans_media(admin, media):
    resp = admin.post("/api/products", data={"title": "Dress"}, files={"file": PNG})
    product_id = resp.json()["id"]
    assert admin.delete(f"/api/products/{product_id}").status_code == 200
    assert media.deleted == ["image-1"]
    assert admin.get(f"/api/products/{product_id}").status_code == 404
    assert admin.delete(f"/api/products/{product_id}").status_code == 404


def test_listing_newest_first(admin):
    ids = [_create_product(admin, title=f"p{i}") for i in range(3)]
    assert [p["id"] for p in admin.get("/api/products").json()] == ids[::-1]


def test_delete_category_unassigns_products(admin):
    category = admin.post("/api/categories", json={"name": "Shoes"}).json()
    ids = [_create_product(admin, title=f"p{i}", category_id=str(category["id"])) for i in range(2)]

    assert admin.delete(f"/api/categories/{category['id']}").status_code == 200

    assert category["id"] not in [c["id"] for c in admin.get("/api/categories").json()]
    for product_id in ids:
        assert admin.get(f"/api/products/{product_id}").json()["category_id"] == 0


def test_admin_convenience_deletes(admin, media):
    category = admin.post("/api/categories", json={"name": "Shoes"}).json()
    resp = admin.post("/api/products", data={"title": "Dress"}, files={"file": PNG})
    product_id = resp.json()["id"]

    assert admin.post("/api/admin/delete-product", json={"id": product_id}).status_code == 200
    assert media.deleted == ["image-1"]
    assert admin.post("/api/admin/delete-product", json={"id": product_id}).status_code == 404
    assert admin.post("/api/admin/delete-category", json={"id": category["id"]}).status_code == 200
    assert admin.get("/api/categories").json() == []
    assert admin.post("/api/admin/delete-category", json={"id": "abc"}).status_code == 400


def test_socials_crud(admin):
    resp = admin.post("/api/socials", json={"name": "Instagram", "url": "https://instagram.com", "icon": "instagram.svg", "ord": 2})
    assert resp.status_code == 200
    social = resp.json()
    admin.post("/api/socials", json={"name": "Facebook", "url": "https://facebook.com", "ord": 1})

    assert [s["name"] for s in admin.get("/api/socials").json()] == ["Facebook", "Instagram"]

    updated = admin.put(f"/api/socials/{social['id']}", json={"ord": 0}).json()
    assert updated["icon"] == "instagram.svg"
    assert [s["name"] for s in admin.get("/api/socials").json()] == ["Instagram", "Facebook"]

    assert admin.post("/api/socials", json={"name": "", "url": "https://x.test"}).status_code == 400
    assert admin.delete(f"/api/socials/{social['id']}").status_code == 200
    assert admin.delete(f"/api/socials/{social['id']}").status_code == 404


def test_profile_update(admin, media):
    admin.post("/api/socials", json={"name": "Instagram", "url": "https://instagram.com", "ord": 1})
    resp = admin.put(
        "/api/profile",
        data={"display_name": " My Shop ", "username": "@shop", "bio": "hello", "highlight": "sale"},
        files={"avatar": ("me.jpg", b"jpeg", "image/jpeg")},
    )
    assert resp.status_code == 200
    profile = resp.json()
    assert profile["display_name"] == "My Shop"
    assert profile["avatar_url"] == "https://media.test/avatar-1.png"
    assert "avatar_public_id" not in profile

    # replacing the avatar removes the previous upload
    admin.put("/api/profile", data={"display_name": "My Shop"}, files={"avatar": ("me.jpg", b"jpeg", "image/jpeg")})
    assert media.deleted == ["avatar-1"]

    public = admin.get("/api/profile").json()
    assert public["avatar_url"] == "https://media.test/avatar-2.png"
    assert [s["name"] for s in public["socials"]] == ["Instagram"]


def test_profile_requires_display_name(admin):
    resp = admin.put("/api/profile", data={"display_name": "  "})
    assert resp.status_code == 400
    assert resp.text == "display_name is required"


def test_static_images(client):
    assert client.get("/api/static-imgs").json() == ["instagram.svg", "tiktok.png"]


def test_ping_token(client):
    assert client.get("/ping").status_code == 401
    resp = client.get("/ping?token=ping-token")
    assert resp.status_code == 200
    assert resp.text.strip() == "Pong"


def test_admin_page(client):
    assert client.get("/admin").status_code == 403
    resp = client.get(f"/admin?token={ADMIN_TOKEN}")
    assert resp.status_code == 200
    assert "Admin" in resp.text
    assert client.cookies.get("session") == "admin"
    assert client.get("/admin").status_code == 200


def test_unsupported_method(client):
    resp = client.patch("/api/products")
    assert resp.status_code == 405
    assert resp.headers["content-type"].startswith("text/plain")


def test_health_and_index(client, store):
    assert client.get("/health").json()["backend"] == store.name
    assert "Shop" in client.get("/").text
