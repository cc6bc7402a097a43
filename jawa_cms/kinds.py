"""Schema registry for every content kind.

Each kind is one table with a fixed field schema. The repository, the editor
and the reader work from these definitions instead of per-screen code, so
validation, ordering, uniqueness, asset handling and the publication rules
have a single implementation.
"""
import json

from .errors import ConflictError, ValidationError
from .models import (
    db,
    AboutSection,
    BlogCategory,
    BlogComment,
    BlogPost,
    CompanyInfo,
    FAQ,
    NewsletterSubscriber,
    PricingPlan,
    ProcessStep,
    Project,
    Service,
    TeamMember,
    Testimonial,
    TrustedCompany,
    DEFAULT_GRADIENT,
)
from .slugs import RESERVED_POST_SLUGS, assign_slug
from .utils import clean_text, is_valid_email, isoformat, parse_bool, sanitize_html, utc_now_naive

NAMESPACE_IMAGES = 'images'
NAMESPACE_BLOG_IMAGES = 'blog_images'

FIELD_TYPES = ('text', 'rich', 'email', 'int', 'bool', 'list', 'map')


class Field:
    def __init__(self, name, type='text', required=False, max_length=255, separator='\n', lowercase=False, default=None):
        if type not in FIELD_TYPES:
            raise ValueError(f'Unknown field type {type!r}')
        self.name = name
        self.type = type
        self.required = required
        self.max_length = max_length
        self.separator = separator
        self.lowercase = lowercase
        self.default = default

    def is_blank(self, value):
        return value is None or value == '' or value == [] or value == {}

    def coerce(self, raw):
        if self.type in ('text', 'email'):
            if raw is None:
                return None
            value = clean_text(str(raw), self.max_length)
            if self.lowercase:
                value = value.lower()
            if self.type == 'email' and value and not is_valid_email(value):
                raise ValidationError('Enter a valid email address.', field=self.name)
            return value
        if self.type == 'rich':
            return sanitize_html(raw, self.max_length) if raw is not None else None
        if self.type == 'int':
            if raw is None or raw == '':
                return self.default
            if isinstance(raw, bool):
                raise ValidationError('Expected a whole number.', field=self.name)
            try:
                return int(raw)
            except (TypeError, ValueError):
                raise ValidationError('Expected a whole number.', field=self.name)
        if self.type == 'bool':
            value = parse_bool(raw)
            if value is None:
                raise ValidationError('Expected true or false.', field=self.name)
            return value
        if self.type == 'list':
            return self._coerce_list(raw)
        return self._coerce_map(raw)

    def _coerce_list(self, raw):
        if raw is None:
            return []
        if isinstance(raw, str):
            text = raw.strip()
            if text.startswith('['):
                try:
                    raw = json.loads(text)
                except json.JSONDecodeError:
                    raise ValidationError('Invalid list value.', field=self.name)
            else:
                raw = text.split(self.separator)
        if not isinstance(raw, (list, tuple)):
            raise ValidationError('Invalid list value.', field=self.name)
        items = []
        for item in raw:
            cleaned = clean_text(str(item) if item is not None else '', self.max_length)
            if cleaned:
                items.append(cleaned)
        return items

    def _coerce_map(self, raw):
        if raw is None or raw == '':
            return {}
        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except json.JSONDecodeError:
                raise ValidationError('Invalid JSON object.', field=self.name)
        if not isinstance(raw, dict):
            raise ValidationError('Invalid JSON object.', field=self.name)
        return {
            clean_text(str(key), 80): clean_text(str(value) if value is not None else '', self.max_length)
            for key, value in raw.items()
            if clean_text(str(key), 80)
        }


class ContentKind:
    def __init__(
        self,
        key,
        model,
        fields,
        order_by,
        url_name,
        label,
        unique=(),
        readonly=(),
        asset_field=None,
        asset_namespace=NAMESPACE_IMAGES,
        singleton=False,
        admin_defaults=None,
        prepare=None,
        before_delete=None,
    ):
        self.key = key
        self.model = model
        self.fields = {field.name: field for field in fields}
        self.order_by = order_by
        self.url_name = url_name
        self.label = label
        self.unique = tuple(unique)
        self.readonly = tuple(readonly)
        self.asset_field = asset_field
        self.asset_namespace = asset_namespace
        self.singleton = singleton
        self.admin_defaults = dict(admin_defaults or {})
        self._prepare = prepare
        self._before_delete = before_delete

    def __repr__(self):
        return f'<ContentKind {self.key}>'

    @property
    def required_fields(self):
        return [name for name, field in self.fields.items() if field.required]

    def order_clauses(self):
        clauses = []
        for name, direction in self.order_by:
            column = getattr(self.model, name)
            if direction == 'desc':
                clauses.append(column.desc().nulls_last())
            else:
                clauses.append(column.asc())
        return clauses

    def clean(self, fields, partial):
        """Coerce submitted values; reject unknown or blank required fields."""
        cleaned = {}
        for name, raw in (fields or {}).items():
            field = self.fields.get(name)
            if field is None:
                raise ValidationError(f'Unknown field for {self.label}.', field=name)
            value = field.coerce(raw)
            if field.required and field.is_blank(value):
                raise ValidationError(f'{name.replace("_", " ").capitalize()} is required.', field=name)
            cleaned[name] = value
        if not partial:
            for name in self.required_fields:
                if name not in cleaned:
                    raise ValidationError(f'{name.replace("_", " ").capitalize()} is required.', field=name)
        return cleaned

    def prepare(self, record, values, is_new):
        if self._prepare:
            self._prepare(record, values, is_new)

    def before_delete(self, record):
        if self._before_delete:
            self._before_delete(record)

    def serialize(self, record):
        payload = {'id': record.id}
        for name in self.fields:
            payload[name] = getattr(record, name)
        for name in self.readonly:
            payload[name] = isoformat(getattr(record, name))
        return payload


def _prepare_blog_post(record, values, is_new):
    title = values.get('title', record.title)
    if is_new or 'slug' in values:
        values['slug'] = assign_slug(title, values.get('slug'), reserved=RESERVED_POST_SLUGS)

    category_id = values.get('category_id')
    if category_id is not None and db.session.get(BlogCategory, category_id) is None:
        raise ValidationError('Selected category does not exist.', field='category_id')

    if 'is_published' in values:
        was_published = bool(record.is_published) if not is_new else False
        if values['is_published'] and not was_published:
            values['published_at'] = utc_now_naive()
        # Unpublishing keeps published_at: a draft remembers when it last went live.
    elif is_new:
        values['is_published'] = False


def _prepare_blog_category(record, values, is_new):
    if is_new or 'slug' in values:
        values['slug'] = assign_slug(values.get('name', record.name), values.get('slug'))


def _prepare_blog_comment(record, values, is_new):
    if 'post_id' in values and db.session.get(BlogPost, values['post_id']) is None:
        raise ValidationError('Blog post does not exist.', field='post_id')


def _guard_blog_category_delete(record):
    if record.posts:
        raise ConflictError('Cannot delete category with posts.', field='id')


KINDS = {}


def register(kind):
    KINDS[kind.key] = kind
    return kind


register(ContentKind(
    'service', Service,
    [
        Field('title', required=True, max_length=200),
        Field('description', required=True, max_length=10000),
        Field('details', max_length=20000),
        Field('image', max_length=500),
        Field('gradient', max_length=200),
    ],
    order_by=(('id', 'asc'),),
    url_name='services',
    label='Service',
    asset_field='image',
    admin_defaults={'gradient': DEFAULT_GRADIENT},
))

register(ContentKind(
    'project', Project,
    [
        Field('title', required=True, max_length=200),
        Field('category', max_length=120),
        Field('tag', max_length=120),
        Field('image', max_length=500),
        Field('github_url', max_length=500),
        Field('figma_url', max_length=500),
        Field('technologies', max_length=2000),
    ],
    order_by=(('id', 'asc'),),
    url_name='projects',
    label='Project',
    asset_field='image',
))

register(ContentKind(
    'pricing_plan', PricingPlan,
    [
        Field('title', required=True, max_length=200),
        Field('price', required=True, max_length=50),
        Field('currency', max_length=10),
        Field('features', type='list', max_length=300),
        Field('is_popular', type='bool'),
        Field('category', max_length=200),
        Field('button_text', max_length=100),
        Field('button_link', max_length=500),
    ],
    order_by=(('id', 'asc'),),
    url_name='pricing-plans',
    label='Pricing plan',
    admin_defaults={'currency': '€', 'button_text': 'Commander', 'button_link': '/contact'},
))

register(ContentKind(
    'process_step', ProcessStep,
    [
        Field('number', required=True, max_length=10),
        Field('label', required=True, max_length=200),
        Field('description', max_length=4000),
        Field('tags', type='list', max_length=100),
    ],
    order_by=(('number', 'asc'), ('id', 'asc')),
    url_name='process-steps',
    label='Process step',
))

register(ContentKind(
    'faq', FAQ,
    [
        Field('question', required=True, max_length=1000),
        Field('answer', required=True, max_length=10000),
        Field('category', max_length=120),
        Field('order', type='int', default=0),
        Field('is_active', type='bool'),
    ],
    order_by=(('order', 'asc'), ('id', 'asc')),
    url_name='faqs',
    label='FAQ',
))

register(ContentKind(
    'testimonial', Testimonial,
    [
        Field('quote', required=True, max_length=4000),
        Field('name', required=True, max_length=200),
        Field('role', max_length=200),
        Field('company', max_length=200),
        Field('email', type='email', max_length=200),
        Field('avatar_url', max_length=500),
        Field('approved', type='bool'),
    ],
    order_by=(('created_at', 'desc'), ('id', 'desc')),
    url_name='testimonials',
    label='Testimonial',
    readonly=('created_at',),
    asset_field='avatar_url',
    admin_defaults={'approved': True},
))

register(ContentKind(
    'team_member', TeamMember,
    [
        Field('name', required=True, max_length=200),
        Field('role', required=True, max_length=200),
        Field('bio', max_length=10000),
        Field('photo_url', max_length=500),
        Field('email', type='email', max_length=200),
        Field('social_links', type='map', max_length=500),
        Field('skills', type='list', separator=',', max_length=100),
        Field('quote', max_length=2000),
    ],
    order_by=(('created_at', 'desc'), ('id', 'desc')),
    url_name='team-members',
    label='Team member',
    readonly=('created_at',),
    asset_field='photo_url',
))

register(ContentKind(
    'trusted_company', TrustedCompany,
    [
        Field('name', required=True, max_length=200),
        Field('logo_url', max_length=500),
    ],
    order_by=(('created_at', 'desc'), ('id', 'desc')),
    url_name='trusted-companies',
    label='Trusted company',
    readonly=('created_at',),
    asset_field='logo_url',
))

register(ContentKind(
    'blog_category', BlogCategory,
    [
        Field('name', required=True, max_length=100),
        Field('slug', max_length=100),
    ],
    order_by=(('id', 'asc'),),
    url_name='blog-categories',
    label='Blog category',
    unique=('slug',),
    prepare=_prepare_blog_category,
    before_delete=_guard_blog_category_delete,
))

register(ContentKind(
    'blog_post', BlogPost,
    [
        Field('title', required=True, max_length=300),
        Field('slug', max_length=300),
        Field('excerpt', max_length=2000),
        Field('content', type='rich', max_length=100000),
        Field('cover_image', max_length=500),
        Field('category_id', type='int'),
        Field('is_published', type='bool'),
        Field('author', max_length=200),
    ],
    order_by=(('published_at', 'desc'), ('id', 'desc')),
    url_name='blog-posts',
    label='Blog post',
    unique=('slug',),
    readonly=('published_at', 'created_at', 'updated_at'),
    asset_field='cover_image',
    asset_namespace=NAMESPACE_BLOG_IMAGES,
    prepare=_prepare_blog_post,
))

register(ContentKind(
    'blog_comment', BlogComment,
    [
        Field('post_id', type='int', required=True),
        Field('author_name', required=True, max_length=200),
        Field('content', required=True, max_length=5000),
    ],
    order_by=(('created_at', 'desc'), ('id', 'desc')),
    url_name='blog-comments',
    label='Comment',
    readonly=('created_at',),
    prepare=_prepare_blog_comment,
))

register(ContentKind(
    'newsletter_subscriber', NewsletterSubscriber,
    [
        Field('email', type='email', required=True, max_length=320, lowercase=True),
        Field('name', max_length=200),
        Field('is_active', type='bool'),
        Field('source', max_length=80),
    ],
    order_by=(('subscribed_at', 'desc'), ('id', 'desc')),
    url_name='newsletter-subscribers',
    label='Subscriber',
    unique=('email',),
    readonly=('subscribed_at',),
))

register(ContentKind(
    'company_info', CompanyInfo,
    [
        Field('name', max_length=200),
        Field('description', max_length=4000),
        Field('email', type='email', max_length=200),
        Field('phone', max_length=50),
        Field('address', max_length=300),
        Field('address_details', max_length=300),
        Field('social_linkedin', max_length=500),
        Field('social_instagram', max_length=500),
        Field('social_behance', max_length=500),
        Field('social_dribbble', max_length=500),
        Field('social_twitter', max_length=500),
        Field('hero_image_url', max_length=500),
    ],
    order_by=(('id', 'asc'),),
    url_name='company-info',
    label='Company info',
    asset_field='hero_image_url',
    singleton=True,
))

register(ContentKind(
    'about_section', AboutSection,
    [
        Field('image_url', max_length=500),
        Field('satisfaction_score', max_length=50),
        Field('satisfaction_text', max_length=300),
        Field('intro_title', max_length=300),
        Field('intro_text', max_length=10000),
        Field('history_text', max_length=10000),
        Field('mission_text', max_length=10000),
        Field('vision_text', max_length=10000),
    ],
    order_by=(('id', 'asc'),),
    url_name='about-section',
    label='About section',
    asset_field='image_url',
    singleton=True,
))


def get_kind(key):
    """Resolve a kind by key (``blog_post``) or URL name (``blog-posts``)."""
    if isinstance(key, ContentKind):
        return key
    kind = KINDS.get(key)
    if kind is None:
        for candidate in KINDS.values():
            if candidate.url_name == key:
                return candidate
        raise KeyError(key)
    return kind
