"""Read side used by the public site, plus the two public write paths.

Gated kinds are always queried through ``visible_only=True`` so drafts,
pending testimonials and inactive FAQ entries never leave the database.
"""
from sqlalchemy import or_

from .errors import NotFound
from .joins import attach_categories, pricing_catalog, pricing_for_service
from .kinds import get_kind
from .models import BlogCategory, BlogPost, FAQ
from .repository import ContentRepository, get_singleton
from .utils import clean_text, escape_like

# 'Tous' on the FAQ page, 'All' on the blog page.
ALL_CATEGORIES = ('Tous', 'All')
PUBLIC_TESTIMONIAL_FIELDS = ('quote', 'name', 'role', 'company', 'email')
PUBLIC_COMMENT_FIELDS = ('author_name', 'content')
DEFAULT_SUBSCRIBER_SOURCE = 'website_contact'


def _contains(column, text):
    return column.ilike(f'%{escape_like(text)}%', escape='\\')


def _category_filter(value):
    value = clean_text(value, 200)
    if not value or value in ALL_CATEGORIES:
        return None
    return value


def serialize(kind, record):
    return get_kind(kind).serialize(record)


def list_services():
    return ContentRepository('service').list()


def service_detail(service_id):
    service = ContentRepository('service').get(service_id)
    return service, pricing_for_service(service)


def list_projects():
    return ContentRepository('project').list()


def get_project(project_id):
    return ContentRepository('project').get(project_id)


def pricing(category=None):
    return pricing_catalog(_category_filter(category))


def list_process_steps():
    return ContentRepository('process_step').list()


def list_faqs(category=None, search=None):
    repository = ContentRepository('faq')
    query = repository.query(visible_only=True)
    category = _category_filter(category)
    if category:
        query = query.filter(FAQ.category == category)
    search = clean_text(search, 200)
    if search:
        query = query.filter(or_(_contains(FAQ.question, search), _contains(FAQ.answer, search)))
    return query.order_by(*repository.kind.order_clauses()).all()


def list_testimonials():
    return ContentRepository('testimonial').list(visible_only=True)


def submit_testimonial(fields):
    """Public submission: stored unapproved, hidden until an editor approves it."""
    values = {name: fields.get(name) for name in PUBLIC_TESTIMONIAL_FIELDS if name in (fields or {})}
    return ContentRepository('testimonial').create(values, defaults={'approved': False})


def list_team():
    return ContentRepository('team_member').list()


def get_team_member(member_id):
    return ContentRepository('team_member').get(member_id)


def list_trusted_companies():
    return ContentRepository('trusted_company').list()


def list_blog_categories():
    return ContentRepository('blog_category').list()


def list_blog_posts(category=None, search=None):
    """Published posts with their categories, newest publication first."""
    repository = ContentRepository('blog_post')
    query = repository.query(visible_only=True)
    category = _category_filter(category)
    if category:
        query = query.join(BlogCategory, BlogPost.category_id == BlogCategory.id).filter(
            BlogCategory.slug == category,
        )
    search = clean_text(search, 200)
    if search:
        query = query.filter(or_(_contains(BlogPost.title, search), _contains(BlogPost.content, search)))
    return attach_categories(query.order_by(*repository.kind.order_clauses()).all())


def get_blog_post(slug):
    post = ContentRepository('blog_post').find_by(visible_only=True, slug=slug)
    if post is None:
        raise NotFound('Blog post not found.')
    (resolved,) = attach_categories([post])
    return resolved


def list_comments(post):
    return ContentRepository('blog_comment').list(post_id=post.id)


def add_comment(slug, fields):
    post, _, _ = get_blog_post(slug)
    values = {name: fields.get(name) for name in PUBLIC_COMMENT_FIELDS if name in (fields or {})}
    values['post_id'] = post.id
    return ContentRepository('blog_comment').create(values)


def subscribe_newsletter(email, name=None, source=DEFAULT_SUBSCRIBER_SOURCE):
    """Add a subscriber. A duplicate e-mail raises ``ConflictError``."""
    values = {'email': email, 'source': source or DEFAULT_SUBSCRIBER_SOURCE}
    if name:
        values['name'] = name
    return ContentRepository('newsletter_subscriber').create(values, defaults={'is_active': True})


def company_info():
    return get_singleton('company_info')


def about_section():
    return get_singleton('about_section')


def serialize_post(post, category, category_label, comments=None):
    payload = serialize('blog_post', post)
    payload['category'] = category
    payload['category_label'] = category_label
    if comments is not None:
        payload['comments'] = [serialize('blog_comment', comment) for comment in comments]
    return payload
