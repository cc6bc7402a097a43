import pytest

from jawa_cms.errors import UploadError
from jawa_cms.storage import (
    LocalAssetStore,
    SupabaseAssetStore,
    bucket_for,
    get_public_url,
    init_asset_store,
    store_upload,
    validate_upload,
)
from jawa_cms.kinds import NAMESPACE_BLOG_IMAGES, NAMESPACE_IMAGES


class FakeBucket:
    def __init__(self, name, calls):
        self.name = name
        self.calls = calls

    def upload(self, path, content, options):
        self.calls.append((self.name, path, content, options))

    def get_public_url(self, path):
        return f"https://cdn.example.com/storage/v1/object/public/{self.name}/{path}"


class FakeStorage:
    def __init__(self):
        self.calls = []

    def from_(self, bucket):
        return FakeBucket(bucket, self.calls)


class FakeClient:
    def __init__(self):
        self.storage = FakeStorage()


def test_buckets_come_from_config(app):
    with app.app_context():
        assert bucket_for(NAMESPACE_IMAGES) == "images"
        assert bucket_for(NAMESPACE_BLOG_IMAGES) == "blog-images"


def test_validate_upload_accepts_real_png(app, image_bytes):
    with app.app_context():
        assert validate_upload(image_bytes(), "logo.PNG", "image/png") == "png"


@pytest.mark.parametrize(
    "filename,mime_type",
    [
        ("logo.exe", "application/octet-stream"),
        ("logo", "image/png"),
        ("logo.png", "image/jpeg"),
        ("logo.png", "text/html"),
    ],
)
def test_validate_upload_rejects_bad_names_and_types(app, image_bytes, filename, mime_type):
    with app.app_context():
        with pytest.raises(UploadError) as excinfo:
            validate_upload(image_bytes(), filename, mime_type, field="image")
        assert excinfo.value.rejected is True
        assert excinfo.value.field == "image"


def test_validate_upload_rejects_oversized_file(app, image_bytes):
    app.config["MAX_UPLOAD_MB"] = 1
    with app.app_context():
        with pytest.raises(UploadError):
            validate_upload(image_bytes() + b"\0" * (1024 * 1024), "big.png", "image/png")


def test_validate_upload_rejects_too_many_pixels(app, image_bytes):
    app.config["MAX_UPLOAD_IMAGE_PIXELS"] = 10
    with app.app_context():
        with pytest.raises(UploadError):
            validate_upload(image_bytes(size=(8, 8)), "wide.png", "image/png")


def test_validate_upload_rejects_svg(app):
    with app.app_context():
        clean = b'<svg xmlns="http://www.w3.org/2000/svg" width="1" height="1"></svg>'
        with pytest.raises(UploadError) as excinfo:
            validate_upload(clean, "icon.svg", "image/svg+xml", field="image")
        assert excinfo.value.rejected is True


def test_local_store_refuses_path_traversal(tmp_path):
    store = LocalAssetStore(str(tmp_path))
    assert store.path_for("images", "../secret.png") is None
    assert store.path_for("../etc", "passwd") is None
    assert store.path_for("images", "abc.png").endswith("abc.png")
    assert not store.exists("images", "missing.png")


def test_store_upload_uses_random_keys(app, image_upload):
    with app.app_context():
        first = store_upload(image_upload(), NAMESPACE_IMAGES)
        second = store_upload(image_upload(), NAMESPACE_IMAGES)
        assert first.key != second.key
        assert first.bucket == second.bucket == "images"
        assert first.url == f"/uploads/images/{first.key}"


def test_supabase_store_uploads_to_bucket_and_returns_public_url(app, image_upload):
    store = SupabaseAssetStore("https://project.supabase.co", "service-key")
    fake = FakeClient()
    store._client = fake
    with app.app_context():
        app.extensions["asset_store"] = store
        ref = store_upload(image_upload(), NAMESPACE_BLOG_IMAGES, field="cover_image")

    assert ref.bucket == "blog-images"
    assert ref.url == f"https://cdn.example.com/storage/v1/object/public/blog-images/{ref.key}"
    bucket, path, _, options = fake.storage.calls[0]
    assert (bucket, path) == ("blog-images", ref.key)
    assert options == {"content-type": "image/png"}


def test_supabase_errors_become_upload_errors(app, image_upload):
    class BrokenBucket(FakeBucket):
        def upload(self, path, content, options):
            raise ConnectionError("network down")

    store = SupabaseAssetStore("https://project.supabase.co", "service-key")
    fake = FakeClient()
    fake.storage.from_ = lambda bucket: BrokenBucket(bucket, [])
    store._client = fake
    with app.app_context():
        app.extensions["asset_store"] = store
        with pytest.raises(UploadError) as excinfo:
            store_upload(image_upload(), NAMESPACE_IMAGES, field="image")
    assert isinstance(excinfo.value.cause, ConnectionError)
    assert excinfo.value.rejected is False
    assert excinfo.value.status_code == 502


def test_supabase_backend_requires_credentials(app_factory):
    with pytest.raises(RuntimeError):
        app_factory({"STORAGE_BACKEND": "supabase", "SUPABASE_URL": ""})


def test_init_asset_store_selects_local_backend(app):
    assert isinstance(init_asset_store(app), LocalAssetStore)


def test_public_url_is_derived_from_bucket_and_key(app):
    with app.app_context():
        assert get_public_url("images", "abc.png") == "/uploads/images/abc.png"
        assert get_public_url("images", "abc.png") == get_public_url("images", "abc.png")
