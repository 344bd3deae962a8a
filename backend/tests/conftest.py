from typing import List

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from linkshop.config import Settings
from linkshop.main import create_app
from linkshop.media import UploadedImage
from linkshop.store.database import DatabaseStore
from linkshop.store.memory import MemoryStore

ADMIN_TOKEN = "s3cret-admin-token"


class FakeMedia:
    """Records uploads and deletes instead of talking to a media host."""

    def __init__(self):
        self.uploads: List[str] = []
        self.deleted: List[str] = []

    def upload(self, file, kind="image"):
        file.file.read()
        public_id = f"{kind}-{len(self.uploads) + 1}"
        self.uploads.append(public_id)
        return UploadedImage(url=f"https://media.test/{public_id}.png", public_id=public_id)

    def delete(self, public_id):
        if public_id:
            self.deleted.append(public_id)


def sqlite_engine():
    return create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture
def static_dir(tmp_path):
    (tmp_path / "img").mkdir()
    (tmp_path / "img" / "instagram.svg").write_text("<svg/>")
    (tmp_path / "img" / "tiktok.png").write_bytes(b"\x89PNG")
    (tmp_path / "img" / "notes.txt").write_text("not an icon")
    (tmp_path / "admin.html").write_text("<h1>Admin</h1>")
    (tmp_path / "index.html").write_text("<h1>Shop</h1>")
    return tmp_path


@pytest.fixture
def settings(static_dir):
    return Settings(
        dev_mode=True,
        admin_token=ADMIN_TOKEN,
        static_dir=static_dir,
        self_ping_token="ping-token",
    )


@pytest.fixture(params=["memory", "database"])
def store(request):
    if request.param == "memory":
        yield MemoryStore(seed=False)
    else:
        db = DatabaseStore(sqlite_engine())
        yield db
        db.close()


@pytest.fixture
def media():
    return FakeMedia()


@pytest.fixture
def client(settings, store, media):
    app = create_app(settings, store=store, media=media)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin(client):
    client.headers["X-Admin-Token"] = ADMIN_TOKEN
    return client
