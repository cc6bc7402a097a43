import os

from flask import Blueprint, abort, current_app, jsonify, request, send_from_directory

from .. import get_csrf_token, reader
from ..joins import category_payload
from ..storage import LocalAssetStore, get_asset_store
from ..utils import clean_text, request_payload

public_bp = Blueprint('public', __name__)

PUBLIC_CACHE_CONTROL = 'public, max-age=60, s-maxage=120'


def _listing(kind, records):
    response = jsonify([reader.serialize(kind, record) for record in records])
    response.headers['Cache-Control'] = PUBLIC_CACHE_CONTROL
    return response


def _item(kind, record):
    response = jsonify(reader.serialize(kind, record))
    response.headers['Cache-Control'] = PUBLIC_CACHE_CONTROL
    return response


@public_bp.route('/api/csrf-token')
def csrf_token():
    response = jsonify({'csrf_token': get_csrf_token()})
    response.headers['Cache-Control'] = 'no-store'
    return response


@public_bp.route('/api/services')
def services():
    return _listing('service', reader.list_services())


@public_bp.route('/api/services/<int:service_id>')
def service_detail(service_id):
    service, plans = reader.service_detail(service_id)
    payload = reader.serialize('service', service)
    payload['pricing_plans'] = [reader.serialize('pricing_plan', plan) for plan in plans]
    return jsonify(payload)


@public_bp.route('/api/projects')
def projects():
    return _listing('project', reader.list_projects())


@public_bp.route('/api/projects/<int:project_id>')
def project_detail(project_id):
    return _item('project', reader.get_project(project_id))


@public_bp.route('/api/pricing')
def pricing():
    catalog = reader.pricing(request.args.get('category'))
    payload = {
        'categories': list(catalog.keys()),
        'plans': {
            category: [reader.serialize('pricing_plan', plan) for plan in plans]
            for category, plans in catalog.items()
        },
    }
    response = jsonify(payload)
    response.headers['Cache-Control'] = PUBLIC_CACHE_CONTROL
    return response


@public_bp.route('/api/process')
def process_steps():
    return _listing('process_step', reader.list_process_steps())


@public_bp.route('/api/faq')
def faq():
    return _listing('faq', reader.list_faqs(request.args.get('category'), request.args.get('q')))


@public_bp.route('/api/testimonials', methods=['GET', 'POST'])
def testimonials():
    if request.method == 'POST':
        testimonial = reader.submit_testimonial(request_payload())
        current_app.logger.info('Testimonial submitted id=%s', testimonial.id)
        return jsonify({'id': testimonial.id, 'approved': testimonial.approved}), 201
    return _listing('testimonial', reader.list_testimonials())


@public_bp.route('/api/team')
def team():
    return _listing('team_member', reader.list_team())


@public_bp.route('/api/team/<int:member_id>')
def team_member(member_id):
    return _item('team_member', reader.get_team_member(member_id))


@public_bp.route('/api/trusted')
def trusted_companies():
    return _listing('trusted_company', reader.list_trusted_companies())


@public_bp.route('/api/blog')
def blog():
    posts = reader.list_blog_posts(request.args.get('category'), request.args.get('q'))
    response = jsonify([reader.serialize_post(post, category, label) for post, category, label in posts])
    response.headers['Cache-Control'] = PUBLIC_CACHE_CONTROL
    return response


@public_bp.route('/api/blog/categories')
def blog_categories():
    return jsonify([category_payload(category) for category in reader.list_blog_categories()])


@public_bp.route('/api/blog/<slug>')
def blog_post(slug):
    post, category, label = reader.get_blog_post(clean_text(slug, 300))
    return jsonify(reader.serialize_post(post, category, label, comments=reader.list_comments(post)))


@public_bp.route('/api/blog/<slug>/comments', methods=['POST'])
def blog_comment(slug):
    comment = reader.add_comment(clean_text(slug, 300), request_payload())
    return jsonify(reader.serialize('blog_comment', comment)), 201


@public_bp.route('/api/newsletter', methods=['POST'])
def newsletter_subscribe():
    payload = request_payload()
    subscriber = reader.subscribe_newsletter(
        payload.get('email'),
        name=payload.get('name'),
        source=clean_text(payload.get('source'), 80) or reader.DEFAULT_SUBSCRIBER_SOURCE,
    )
    current_app.logger.info('Newsletter subscription id=%s', subscriber.id)
    return jsonify({'id': subscriber.id, 'email': subscriber.email}), 201


@public_bp.route('/api/company')
def company():
    info = reader.company_info()
    if info is None:
        abort(404)
    return _item('company_info', info)


@public_bp.route('/api/about')
def about():
    section = reader.about_section()
    if section is None:
        abort(404)
    return _item('about_section', section)


@public_bp.route('/uploads/<bucket>/<key>')
def uploaded_file(bucket, key):
    store = get_asset_store()
    if not isinstance(store, LocalAssetStore):
        abort(404)
    full_path = store.path_for(bucket, key)
    if not full_path or not os.path.exists(full_path):
        abort(404)
    return send_from_directory(os.path.dirname(full_path), key, conditional=True, etag=True)
