"""Asset store: uploaded images go to a bucket and come back as a public URL.

Two backends share one interface. ``SupabaseAssetStore`` writes to Supabase
Storage; ``LocalAssetStore`` writes under ``UPLOAD_FOLDER/<bucket>/`` and is
served by the public blueprint. Every upload is validated before it leaves
the process, and any backend failure surfaces as ``UploadError``.
"""
import io
import os
import uuid
from collections import namedtuple

from flask import current_app
from PIL import Image, UnidentifiedImageError
from supabase import create_client
from werkzeug.utils import secure_filename

from .errors import UploadError
from .kinds import NAMESPACE_BLOG_IMAGES, NAMESPACE_IMAGES

AssetRef = namedtuple('AssetRef', ['url', 'bucket', 'key'])

EXTENSION_MIME_TYPES = {
    'png': {'image/png'},
    'jpg': {'image/jpeg'},
    'jpeg': {'image/jpeg'},
    'gif': {'image/gif'},
    'webp': {'image/webp'},
}


def bucket_for(namespace):
    if namespace == NAMESPACE_BLOG_IMAGES:
        return current_app.config['STORAGE_BLOG_IMAGES_BUCKET']
    if namespace == NAMESPACE_IMAGES:
        return current_app.config['STORAGE_IMAGES_BUCKET']
    raise ValueError(f'Unknown asset namespace {namespace!r}')


def _reject(message, field):
    return UploadError(message, field=field, rejected=True)


def validate_upload(data, filename, mime_type, field=None):
    """Check size, extension, declared type and content. Returns the extension."""
    max_mb = current_app.config.get('MAX_UPLOAD_MB', 5)
    if not data:
        raise _reject('The uploaded file is empty.', field)
    if len(data) > max_mb * 1024 * 1024:
        raise _reject(f'The image is too large (max {max_mb}MB).', field)

    safe_name = secure_filename(filename or '')
    if not safe_name or '.' not in safe_name or len(safe_name) > 180:
        raise _reject('Invalid file name.', field)
    extension = safe_name.rsplit('.', 1)[1].lower()
    if extension not in current_app.config['ALLOWED_EXTENSIONS'] or extension not in EXTENSION_MIME_TYPES:
        raise _reject('File type not allowed. Use PNG, JPG, JPEG, GIF or WEBP.', field)

    mime_type = (mime_type or '').split(';', 1)[0].strip().lower()
    allowed_mimes = current_app.config.get('ALLOWED_UPLOAD_MIME_TYPES', set())
    if mime_type not in allowed_mimes or mime_type not in EXTENSION_MIME_TYPES[extension]:
        raise _reject('File type does not match its content type.', field)

    max_pixels = max(1, int(current_app.config.get('MAX_UPLOAD_IMAGE_PIXELS', 40_000_000)))
    try:
        with Image.open(io.BytesIO(data)) as image:
            width, height = image.size
            if width < 1 or height < 1 or (width * height) > max_pixels:
                raise _reject('Image dimensions are not allowed.', field)
            image.verify()
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError):
        raise _reject('The file is not a valid image.', field)
    return extension


def read_upload(file):
    """Pull bytes, name and declared type out of a werkzeug ``FileStorage``."""
    file.stream.seek(0)
    data = file.stream.read()
    file.stream.seek(0)
    return data, file.filename, file.mimetype


class LocalAssetStore:
    name = 'local'

    def __init__(self, root):
        self.root = os.path.abspath(root)

    def path_for(self, bucket, key):
        safe_bucket = secure_filename(bucket or '')
        safe_key = secure_filename(key or '')
        if not safe_bucket or safe_bucket != bucket or not safe_key or safe_key != key:
            return None
        full_path = os.path.abspath(os.path.join(self.root, safe_bucket, safe_key))
        try:
            if os.path.commonpath([self.root, full_path]) != self.root:
                return None
        except ValueError:
            return None
        return full_path

    def public_url(self, bucket, key):
        return f'/uploads/{bucket}/{key}'

    def upload(self, bucket, key, data, content_type):
        full_path = self.path_for(bucket, key)
        if full_path is None:
            raise UploadError('Invalid storage path.')
        os.makedirs(os.path.dirname(full_path), exist_ok=True)
        with open(full_path, 'wb') as handle:
            handle.write(data)
        return self.public_url(bucket, key)

    def exists(self, bucket, key):
        full_path = self.path_for(bucket, key)
        return bool(full_path) and os.path.exists(full_path)


class SupabaseAssetStore:
    name = 'supabase'

    def __init__(self, url, service_key):
        self.url = url
        self.service_key = service_key
        self._client = None

    @property
    def client(self):
        if self._client is None:
            # The service key is required for writes.
            self._client = create_client(self.url, self.service_key)
        return self._client

    def public_url(self, bucket, key):
        return self.client.storage.from_(bucket).get_public_url(key)

    def upload(self, bucket, key, data, content_type):
        self.client.storage.from_(bucket).upload(key, data, {'content-type': content_type})
        return self.public_url(bucket, key)

    def exists(self, bucket, key):
        folder, _, name = key.rpartition('/')
        entries = self.client.storage.from_(bucket).list(folder) or []
        return any(entry.get('name') == name for entry in entries)


def init_asset_store(app):
    backend = app.config.get('STORAGE_BACKEND', 'local')
    if backend == 'supabase':
        if not app.config.get('SUPABASE_URL') or not app.config.get('SUPABASE_SERVICE_KEY'):
            raise RuntimeError('STORAGE_BACKEND=supabase requires SUPABASE_URL and SUPABASE_SERVICE_KEY.')
        store = SupabaseAssetStore(app.config['SUPABASE_URL'], app.config['SUPABASE_SERVICE_KEY'])
    else:
        os.makedirs(app.config['UPLOAD_FOLDER'], exist_ok=True)
        store = LocalAssetStore(app.config['UPLOAD_FOLDER'])
    app.extensions['asset_store'] = store
    app.logger.info('Asset store ready: backend=%s', store.name)
    return store


def get_asset_store():
    return current_app.extensions['asset_store']


def get_public_url(bucket, key):
    return get_asset_store().public_url(bucket, key)


def store_upload(file, namespace, field=None):
    """Validate ``file`` and upload it to the bucket for ``namespace``.

    Returns an ``AssetRef``. Raises ``UploadError`` on rejection or on any
    backend failure; nothing is written to the database here.
    """
    data, filename, mime_type = read_upload(file)
    extension = validate_upload(data, filename, mime_type, field=field)
    bucket = bucket_for(namespace)
    key = f'{uuid.uuid4().hex}.{extension}'
    content_type = (mime_type or '').split(';', 1)[0].strip().lower() or f'image/{extension}'
    store = get_asset_store()
    try:
        url = store.upload(bucket, key, data, content_type)
    except UploadError:
        raise
    except Exception as exc:
        current_app.logger.warning('Asset upload failed: bucket=%s key=%s error=%s', bucket, key, exc)
        raise UploadError(f'Error uploading image: {exc}', field=field, cause=exc)
    current_app.logger.info('Asset uploaded: bucket=%s key=%s bytes=%s', bucket, key, len(data))
    return AssetRef(url=url, bucket=bucket, key=key)
