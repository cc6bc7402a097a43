"""Credential check for the admin surface.

The content core never sees the user: routes turn a logged-in Flask-Login
session into an ``EditorContext`` and pass that along.
"""
from flask_login import LoginManager, current_user
from werkzeug.security import check_password_hash, generate_password_hash

from .editor import EditorContext
from .errors import AuthError
from .models import db, User
from .utils import clean_text

login_manager = LoginManager()

AUTH_DUMMY_HASH = generate_password_hash('jawa-cms::dummy-auth-check')


@login_manager.user_loader
def load_user(user_id):
    try:
        parsed_id = int(user_id)
    except (TypeError, ValueError):
        return None
    return db.session.get(User, parsed_id)


@login_manager.unauthorized_handler
def unauthorized():
    raise AuthError()


def verify_credentials(username, password):
    """Return the matching ``User`` or raise ``AuthError``."""
    username = clean_text(username, 80)
    user = User.query.filter_by(username=username).first() if username else None
    if user is None:
        # Keep response timing closer for unknown usernames.
        check_password_hash(AUTH_DUMMY_HASH, password or '')
        raise AuthError('Invalid credentials.')
    if not user.check_password(password or ''):
        raise AuthError('Invalid credentials.')
    return user


def current_editor():
    """``EditorContext`` for the logged-in admin, or ``AuthError``."""
    if not current_user.is_authenticated:
        raise AuthError()
    return EditorContext(token=current_user.get_id())
