"""Cross-table relations.

BlogPost -> BlogCategory and BlogComment -> BlogPost are foreign key joins.
Service <-> PricingPlan is a soft join: ``PricingPlan.category`` is free text
compared with ``Service.title``. Nothing constrains it, so no match is an
empty plan list and services sharing a title share their plans.
"""
from .models import BlogCategory, BlogPost, PricingPlan

UNCATEGORIZED_LABEL = 'Non classé'


def category_payload(category):
    if category is None:
        return None
    return {'id': category.id, 'name': category.name, 'slug': category.slug}


def attach_categories(posts):
    """Return ``(post, category_payload, category_label)`` for each post."""
    category_ids = {post.category_id for post in posts if post.category_id is not None}
    categories = {}
    if category_ids:
        categories = {
            category.id: category
            for category in BlogCategory.query.filter(BlogCategory.id.in_(sorted(category_ids))).all()
        }
    resolved = []
    for post in posts:
        category = categories.get(post.category_id)
        label = category.name if category is not None else UNCATEGORIZED_LABEL
        resolved.append((post, category_payload(category), label))
    return resolved


def post_payload(post):
    if post is None:
        return None
    return {'id': post.id, 'title': post.title, 'slug': post.slug}


def attach_posts(comments):
    """Return ``(comment, post_payload)`` for each comment, one query for all posts."""
    post_ids = {comment.post_id for comment in comments if comment.post_id is not None}
    posts = {}
    if post_ids:
        posts = {post.id: post for post in BlogPost.query.filter(BlogPost.id.in_(sorted(post_ids))).all()}
    return [(comment, post_payload(posts.get(comment.post_id))) for comment in comments]


def _plans_query():
    return PricingPlan.query.order_by(PricingPlan.id.asc())


def resolve_pricing(services):
    """Map each distinct service title to the plans whose category equals it."""
    titles = {service.title for service in services if service.title}
    if not titles:
        return {}
    plans_by_title = {title: [] for title in titles}
    for plan in _plans_query().filter(PricingPlan.category.in_(sorted(titles))).all():
        plans_by_title[plan.category].append(plan)
    return plans_by_title


def pricing_for_service(service):
    return resolve_pricing([service]).get(service.title, [])


def pricing_catalog(category=None):
    """Plans grouped by category, categories in first-seen order."""
    query = _plans_query()
    if category:
        query = query.filter(PricingPlan.category == category)
    catalog = {}
    for plan in query.all():
        catalog.setdefault(plan.category or '', []).append(plan)
    return catalog
