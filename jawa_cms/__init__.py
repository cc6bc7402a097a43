import json
import logging
import re
import secrets

from flask import Flask, g, has_request_context, jsonify, request, session
from sqlalchemy import text
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from .auth import login_manager
from .config import Config
from .errors import ContentError
from .models import db, AboutSection, CompanyInfo, User, SINGLETON_ID
from .storage import init_asset_store

_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._:-]{8,80}$")
_sentry_initialized = False
MUTATING_METHODS = ('POST', 'PUT', 'PATCH', 'DELETE')


class JsonLogFormatter(logging.Formatter):
    def format(self, record):
        payload = {
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'time': self.formatTime(record, self.datefmt),
        }
        if has_request_context():
            payload.update(
                {
                    'request_id': getattr(g, 'request_id', ''),
                    'method': request.method,
                    'path': request.path,
                    'remote_ip': request.remote_addr,
                }
            )
        if record.exc_info:
            payload['exc_info'] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(app):
    app.logger.setLevel(getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO))
    if not app.config.get('LOG_JSON', True):
        return
    formatter = JsonLogFormatter()
    for handler in app.logger.handlers:
        handler.setFormatter(formatter)


def get_csrf_token():
    token = session.get('_csrf_token')
    if not token:
        token = secrets.token_urlsafe(32)
        session['_csrf_token'] = token
    return token


def init_sentry(app):
    global _sentry_initialized
    if _sentry_initialized:
        return

    dsn = (app.config.get('SENTRY_DSN') or '').strip()
    if not dsn:
        return

    try:
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration
        from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

        traces_sample_rate = float(app.config.get('SENTRY_TRACES_SAMPLE_RATE') or 0.0)
        sentry_sdk.init(
            dsn=dsn,
            integrations=[FlaskIntegration(), SqlalchemyIntegration()],
            traces_sample_rate=traces_sample_rate,
            environment=(app.config.get('SENTRY_ENVIRONMENT') or None),
        )
        _sentry_initialized = True
        app.logger.info('Sentry monitoring enabled.')
    except Exception:
        app.logger.exception('Failed to initialize Sentry monitoring.')


def _error_response(code, message, status, field=None):
    payload = {'error': code, 'message': message}
    if field:
        payload['field'] = field
    return jsonify(payload), status


def register_error_handlers(app):
    @app.errorhandler(ContentError)
    def handle_content_error(error):
        if error.status_code >= 500:
            app.logger.warning('%s: %s', error.code, error.message)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        code = (error.name or 'error').lower().replace(' ', '_')
        return _error_response(code, error.description or error.name, error.code or 500)

    @app.errorhandler(500)
    def handle_server_error(error):
        return _error_response('server_error', 'An unexpected error occurred.', 500)


def create_app(config_overrides=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)
    configure_logging(app)

    if not app.config.get('SECRET_KEY'):
        import warnings
        app.config['SECRET_KEY'] = secrets.token_urlsafe(32)
        warnings.warn(
            'SECRET_KEY is not set; using a random key. '
            'Sessions will not survive restarts. '
            'Set the SECRET_KEY environment variable for production.',
            stacklevel=2,
        )

    if app.config.get('TRUST_PROXY_HEADERS'):
        # Only trust one proxy hop (the platform edge) when explicitly enabled.
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)

    init_sentry(app)
    init_asset_store(app)

    db.init_app(app)
    login_manager.init_app(app)

    @app.before_request
    def assign_request_id():
        incoming = (request.headers.get('X-Request-ID') or '').strip()
        if _REQUEST_ID_RE.match(incoming):
            g.request_id = incoming
        else:
            g.request_id = secrets.token_hex(16)

    @app.before_request
    def enforce_csrf():
        if request.method not in MUTATING_METHODS:
            return None
        if request.endpoint in app.config.get('CSRF_EXEMPT_ENDPOINTS', ()):
            return None
        expected = session.get('_csrf_token')
        provided = request.headers.get('X-CSRF-Token') or request.form.get('_csrf_token')
        if not expected or not provided or not secrets.compare_digest(expected, provided):
            return _error_response('csrf_failed', 'Invalid or missing CSRF token.', 400)
        return None

    @app.after_request
    def add_security_headers(response):
        response.headers['X-Request-ID'] = getattr(g, 'request_id', '')
        response.headers.setdefault('X-Content-Type-Options', 'nosniff')
        response.headers.setdefault('X-Frame-Options', 'DENY')
        response.headers.setdefault('Referrer-Policy', 'strict-origin-when-cross-origin')
        response.headers.setdefault('Permissions-Policy', 'geolocation=(), microphone=(), camera=()')
        response.headers.setdefault('Cross-Origin-Opener-Policy', 'same-origin')
        if request.path.startswith('/admin'):
            response.headers.setdefault('X-Robots-Tag', 'noindex, nofollow, noarchive')
            response.headers['Cache-Control'] = 'no-store'
        elif request.path.startswith('/uploads/') and response.status_code in (200, 304):
            # Upload keys are random and never rewritten.
            response.headers['Cache-Control'] = 'public, max-age=31536000, immutable'
        return response

    register_error_handlers(app)

    @app.get('/healthz')
    def healthz():
        try:
            db.session.execute(text('SELECT 1'))
            return {'status': 'ok'}, 200
        except Exception:
            db.session.rollback()
            app.logger.exception('Health check DB probe failed.')
            return {'status': 'degraded'}, 503

    @app.get('/readyz')
    def readyz():
        checks = {
            'database': False,
            'singletons_seeded': False,
            'admin_user_seeded': False,
        }
        try:
            db.session.execute(text('SELECT 1'))
            checks['database'] = True
            checks['singletons_seeded'] = (
                db.session.get(CompanyInfo, SINGLETON_ID) is not None
                and db.session.get(AboutSection, SINGLETON_ID) is not None
            )
            checks['admin_user_seeded'] = db.session.query(User.id).first() is not None
            all_ready = all(checks.values())
            return {'status': 'ready' if all_ready else 'warming', 'checks': checks}, (200 if all_ready else 503)
        except Exception:
            db.session.rollback()
            app.logger.exception('Readiness check failed.')
            return {'status': 'degraded', 'checks': checks}, 503

    from .routes.public import public_bp
    from .routes.admin import admin_bp
    app.register_blueprint(public_bp)
    app.register_blueprint(admin_bp, url_prefix='/admin')

    with app.app_context():
        try:
            db.create_all()
        except Exception:
            app.logger.exception('db.create_all() failed; tables may need manual migration.')
        try:
            from .seed import seed_database
            seed_database()
        except Exception:
            app.logger.exception('seed_database() failed; seeding skipped.')

    return app
