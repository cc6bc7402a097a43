from flask import Blueprint, Response, abort, current_app, jsonify, request, session
from flask_login import login_required, login_user, logout_user

from .. import editor, get_csrf_token
from ..auth import current_editor, verify_credentials
from ..errors import ValidationError
from ..exports import export_filename, subscribers_csv
from ..joins import attach_posts
from ..kinds import get_kind
from ..utils import parse_bool, request_payload

admin_bp = Blueprint('admin', __name__)


def _content_kind(kind_name, singleton=False):
    try:
        kind = get_kind(kind_name)
    except KeyError:
        abort(404)
    if kind.singleton != singleton:
        abort(404)
    return kind


def _uploaded_file(kind):
    if not kind.asset_field:
        return None
    upload = request.files.get(kind.asset_field) or request.files.get('file')
    if upload is None or not upload.filename:
        return None
    return upload


def _required_bool(payload, name):
    value = parse_bool(payload.get(name)) if name in payload else None
    if value is None:
        raise ValidationError('Expected true or false.', field=name)
    return value


def _serialize_records(kind, records):
    if kind.key != 'blog_comment':
        return [kind.serialize(record) for record in records]
    payloads = []
    for comment, post in attach_posts(records):
        payload = kind.serialize(comment)
        payload['post'] = post
        payloads.append(payload)
    return payloads


# Auth
@admin_bp.route('/login', methods=['POST'])
def login():
    payload = request_payload()
    user = verify_credentials(payload.get('username'), payload.get('password'))
    session.clear()
    login_user(user)
    current_app.logger.info('Admin login user_id=%s', user.id)
    return jsonify({'username': user.username, 'csrf_token': get_csrf_token()})


@admin_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({'status': 'logged_out'})


# Dashboard
@admin_bp.route('/dashboard')
@login_required
def dashboard():
    return jsonify(editor.dashboard(current_editor()))


# Newsletter
@admin_bp.route('/newsletter-subscribers/export.csv')
@login_required
def export_subscribers():
    ctx = current_editor()
    subscribers = editor.list_records(ctx, 'newsletter_subscriber')
    return Response(
        subscribers_csv(subscribers),
        mimetype='text/csv',
        headers={'Content-Disposition': f'attachment; filename="{export_filename()}"'},
    )


@admin_bp.route('/newsletter-subscribers/<int:record_id>/status', methods=['POST'])
@login_required
def subscriber_status(record_id):
    active = _required_bool(request_payload(), 'is_active')
    subscriber = editor.set_subscriber_status(current_editor(), record_id, active)
    return jsonify(get_kind('newsletter_subscriber').serialize(subscriber))


# Moderation and publication
@admin_bp.route('/testimonials/<int:record_id>/approval', methods=['POST'])
@login_required
def testimonial_approval(record_id):
    approved = _required_bool(request_payload(), 'approved')
    testimonial = editor.set_approval(current_editor(), record_id, approved)
    return jsonify(get_kind('testimonial').serialize(testimonial))


@admin_bp.route('/blog-posts/<int:record_id>/publish', methods=['POST'])
@login_required
def publish_post(record_id):
    post = editor.publish_post(current_editor(), record_id)
    return jsonify(get_kind('blog_post').serialize(post))


@admin_bp.route('/blog-posts/<int:record_id>/unpublish', methods=['POST'])
@login_required
def unpublish_post(record_id):
    post = editor.unpublish_post(current_editor(), record_id)
    return jsonify(get_kind('blog_post').serialize(post))


# Singletons
@admin_bp.route('/singletons/<kind_name>', methods=['GET', 'PUT', 'POST'])
@login_required
def singleton(kind_name):
    kind = _content_kind(kind_name, singleton=True)
    ctx = current_editor()
    if request.method == 'GET':
        record = editor.read_singleton(ctx, kind)
        if record is None:
            abort(404)
    else:
        record = editor.save_record(ctx, kind, request_payload(), upload=_uploaded_file(kind))
    return jsonify(kind.serialize(record))


# Generic record CRUD
@admin_bp.route('/<kind_name>', methods=['GET', 'POST'])
@login_required
def records(kind_name):
    kind = _content_kind(kind_name)
    ctx = current_editor()
    if request.method == 'POST':
        record = editor.save_record(ctx, kind, request_payload(), upload=_uploaded_file(kind))
        return jsonify(kind.serialize(record)), 201
    filters = {
        name: kind.fields[name].coerce(value)
        for name, value in request.args.items()
        if name in kind.fields
    }
    return jsonify(_serialize_records(kind, editor.list_records(ctx, kind, **filters)))


@admin_bp.route('/<kind_name>/<int:record_id>', methods=['GET', 'PUT', 'PATCH', 'DELETE'])
@login_required
def record_detail(kind_name, record_id):
    kind = _content_kind(kind_name)
    ctx = current_editor()
    if request.method == 'GET':
        return jsonify(_serialize_records(kind, [editor.get_record(ctx, kind, record_id)])[0])
    if request.method == 'DELETE':
        confirmed = parse_bool(request.args.get('confirm')) is True
        editor.delete_record(ctx, kind, record_id, confirmed=confirmed)
        return jsonify({'deleted': record_id, 'kind': kind.key})
    record = editor.save_record(
        ctx,
        kind,
        request_payload(),
        upload=_uploaded_file(kind),
        record_id=record_id,
    )
    return jsonify(kind.serialize(record))
