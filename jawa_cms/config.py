import os
from urllib.parse import urlparse

basedir = os.path.abspath(os.path.dirname(__file__))


def _is_production_runtime():
    return (os.environ.get('FLASK_ENV') or '').strip().lower() == 'production'


def _as_bool(value, default=False):
    if value is None:
        return default
    return str(value).strip().lower() in {'1', 'true', 'yes', 'on'}


def _as_int(value, default):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_float(value, default):
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _database_url():
    raw = (os.environ.get('DATABASE_URL') or '').strip()
    if raw.startswith('postgres://'):
        raw = raw.replace('postgres://', 'postgresql://', 1)
    if raw:
        return raw
    return 'sqlite:///' + os.path.join(basedir, 'site.db')


def _database_engine_options(database_url):
    if not database_url.startswith('sqlite'):
        options = {
            'pool_pre_ping': True,
            'pool_recycle': 300,
        }
        parsed = urlparse(database_url)
        if parsed.scheme.startswith('postgresql'):
            connect_timeout_seconds = max(1, _as_int(os.environ.get('DB_CONNECT_TIMEOUT_SECONDS'), 5))
            statement_timeout_ms = max(1000, _as_int(os.environ.get('DB_STATEMENT_TIMEOUT_MS'), 8000))
            options['connect_args'] = {
                'connect_timeout': connect_timeout_seconds,
                'options': f'-c statement_timeout={statement_timeout_ms}',
            }
        return options
    return {}


def _storage_backend():
    backend = (os.environ.get('STORAGE_BACKEND') or '').strip().lower()
    if backend in {'supabase', 'local'}:
        return backend
    # Supabase is the production store; fall back to disk when it is not configured.
    if os.environ.get('SUPABASE_URL') and os.environ.get('SUPABASE_SERVICE_KEY'):
        return 'supabase'
    return 'local'


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or ''
    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_ENGINE_OPTIONS = _database_engine_options(SQLALCHEMY_DATABASE_URI)
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    STORAGE_BACKEND = _storage_backend()
    SUPABASE_URL = (os.environ.get('SUPABASE_URL') or '').strip()
    SUPABASE_SERVICE_KEY = (os.environ.get('SUPABASE_SERVICE_KEY') or '').strip()
    STORAGE_IMAGES_BUCKET = (os.environ.get('STORAGE_IMAGES_BUCKET') or 'images').strip()
    STORAGE_BLOG_IMAGES_BUCKET = (os.environ.get('STORAGE_BLOG_IMAGES_BUCKET') or 'blog-images').strip()
    UPLOAD_FOLDER = (os.environ.get('UPLOAD_FOLDER') or '').strip() or os.path.join(basedir, 'uploads')
    MAX_UPLOAD_MB = max(1, _as_int(os.environ.get('MAX_UPLOAD_MB'), 5))
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 16MB max request body
    MAX_UPLOAD_IMAGE_PIXELS = _as_int(os.environ.get('MAX_UPLOAD_IMAGE_PIXELS'), 40_000_000)
    ALLOWED_EXTENSIONS = {'png', 'jpg', 'jpeg', 'gif', 'webp'}
    ALLOWED_UPLOAD_MIME_TYPES = {
        'image/png',
        'image/jpeg',
        'image/gif',
        'image/webp',
    }

    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    SESSION_COOKIE_SECURE = _as_bool(
        os.environ.get('SESSION_COOKIE_SECURE'),
        ((os.environ.get('PREFERRED_URL_SCHEME') or '').lower() == 'https') or _is_production_runtime(),
    )
    REMEMBER_COOKIE_HTTPONLY = True
    REMEMBER_COOKIE_SAMESITE = 'Lax'
    REMEMBER_COOKIE_SECURE = SESSION_COOKIE_SECURE
    TRUST_PROXY_HEADERS = _as_bool(os.environ.get('TRUST_PROXY_HEADERS'), False)
    CSRF_EXEMPT_ENDPOINTS = ()

    SENTRY_DSN = (os.environ.get('SENTRY_DSN') or '').strip()
    SENTRY_ENVIRONMENT = (os.environ.get('SENTRY_ENVIRONMENT') or '').strip()
    SENTRY_TRACES_SAMPLE_RATE = _as_float(os.environ.get('SENTRY_TRACES_SAMPLE_RATE'), 0.0)
    LOG_JSON = _as_bool(os.environ.get('LOG_JSON'), True)
    LOG_LEVEL = (os.environ.get('LOG_LEVEL') or 'INFO').strip().upper()
