import os
import secrets

from .models import db, AboutSection, BlogCategory, CompanyInfo, User, SINGLETON_ID
from .slugs import slugify

DEFAULT_ADMIN_USERNAME = 'admin'
DEFAULT_BLOG_CATEGORY = 'Actualités'


def seed_admin_user():
    env_password = os.environ.get('ADMIN_PASSWORD') or ''
    username = (os.environ.get('ADMIN_USERNAME') or DEFAULT_ADMIN_USERNAME).strip()
    admin = User.query.filter_by(username=username).first()
    if admin:
        # Always sync admin password with env var on startup
        if env_password:
            admin.set_password(env_password)
        return admin

    if not env_password:
        env_password = secrets.token_urlsafe(16)
        print(
            '[seed] ADMIN_PASSWORD not set. Seeded admin with a random password. '
            'Set ADMIN_PASSWORD and restart to rotate it to a known value.'
        )
    admin = User(username=username, email=f'{username}@example.com')
    admin.set_password(env_password)
    db.session.add(admin)
    return admin


def seed_singletons():
    if db.session.get(CompanyInfo, SINGLETON_ID) is None:
        db.session.add(CompanyInfo(id=SINGLETON_ID, name='JAWA'))
    if db.session.get(AboutSection, SINGLETON_ID) is None:
        db.session.add(AboutSection(id=SINGLETON_ID))


def seed_blog_categories():
    if BlogCategory.query.first() is None:
        db.session.add(BlogCategory(name=DEFAULT_BLOG_CATEGORY, slug=slugify(DEFAULT_BLOG_CATEGORY)))


def seed_database():
    try:
        seed_admin_user()
        seed_singletons()
        seed_blog_categories()
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
