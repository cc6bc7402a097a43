import io
import uuid

import pytest
from PIL import Image
from werkzeug.datastructures import FileStorage

from jawa_cms import create_app
from jawa_cms.editor import EditorContext

ADMIN_PASSWORD = "admin123"


def build_test_app(tmp_path, monkeypatch, overrides=None):
    db_path = tmp_path / f"jawa_test_{uuid.uuid4().hex[:8]}.db"
    upload_path = tmp_path / f"uploads_{uuid.uuid4().hex[:8]}"

    monkeypatch.setenv("ADMIN_PASSWORD", ADMIN_PASSWORD)
    monkeypatch.delenv("ADMIN_USERNAME", raising=False)

    config = {
        "TESTING": True,
        "SECRET_KEY": "test-secret-key",
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path}",
        "SQLALCHEMY_ENGINE_OPTIONS": {},
        "STORAGE_BACKEND": "local",
        "UPLOAD_FOLDER": str(upload_path),
        "SENTRY_DSN": "",
        "SESSION_COOKIE_SECURE": False,
        "TRUST_PROXY_HEADERS": False,
        "LOG_JSON": False,
    }
    if overrides:
        config.update(overrides)
    return create_app(config)


def png_bytes(size=(4, 4), color=(44, 20, 199)):
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def make_upload(data=None, filename="photo.png", content_type="image/png"):
    return FileStorage(
        stream=io.BytesIO(png_bytes() if data is None else data),
        filename=filename,
        content_type=content_type,
    )


@pytest.fixture()
def app(tmp_path, monkeypatch):
    return build_test_app(tmp_path, monkeypatch)


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def ctx():
    return EditorContext("test-admin")


@pytest.fixture()
def csrf_headers(client):
    token = client.get("/api/csrf-token").get_json()["csrf_token"]
    return {"X-CSRF-Token": token}


@pytest.fixture()
def admin_headers(client, csrf_headers):
    response = client.post(
        "/admin/login",
        json={"username": "admin", "password": ADMIN_PASSWORD},
        headers=csrf_headers,
    )
    assert response.status_code == 200
    # Login rotates the session, so the token from the response replaces the old one.
    return {"X-CSRF-Token": response.get_json()["csrf_token"]}


@pytest.fixture()
def image_upload():
    return make_upload


@pytest.fixture()
def image_bytes():
    return png_bytes


@pytest.fixture()
def app_factory(tmp_path, monkeypatch):
    def factory(overrides=None):
        return build_test_app(tmp_path, monkeypatch, overrides)
    return factory
