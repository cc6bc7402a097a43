"""Generic persistence for every content kind.

One ``ContentRepository`` per kind. Writes validate against the kind schema,
run the kind's prepare hook, check uniqueness and commit; any database
failure rolls the session back before the error propagates.
"""
from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .errors import ConflictError, NotFound, ValidationError
from .kinds import get_kind
from .models import db, SINGLETON_ID
from .visibility import visibility_clause

# Postgres SQLSTATE for unique_violation.
UNIQUE_VIOLATION = '23505'


def is_unique_violation(exc):
    orig = getattr(exc, 'orig', None)
    if getattr(orig, 'pgcode', None) == UNIQUE_VIOLATION or getattr(orig, 'sqlstate', None) == UNIQUE_VIOLATION:
        return True
    message = str(orig).lower()
    return 'unique constraint' in message or 'duplicate key' in message


class ContentRepository:
    def __init__(self, kind):
        self.kind = get_kind(kind)
        self.model = self.kind.model

    def query(self, visible_only=False):
        query = self.model.query
        if visible_only:
            clause = visibility_clause(self.kind.key, self.model)
            if clause is not None:
                query = query.filter(clause)
        return query

    def list(self, visible_only=False, **filters):
        query = self.query(visible_only)
        for name, value in filters.items():
            query = query.filter(getattr(self.model, name) == value)
        return query.order_by(*self.kind.order_clauses()).all()

    def get(self, record_id, visible_only=False):
        record = None
        if record_id is not None:
            record = self.query(visible_only).filter(self.model.id == record_id).first()
        if record is None:
            raise NotFound(f'{self.kind.label} not found.')
        return record

    def find_by(self, visible_only=False, **filters):
        query = self.query(visible_only)
        for name, value in filters.items():
            query = query.filter(getattr(self.model, name) == value)
        return query.first()

    def create(self, fields, defaults=None):
        if self.kind.singleton:
            raise ValidationError(f'{self.kind.label} cannot be created.')
        values = dict(self.kind.clean(defaults or {}, partial=True))
        values.update(self.kind.clean(fields, partial=False))
        record = self.model()
        self._write(record, values, is_new=True)
        current_app.logger.info('Created %s id=%s', self.kind.key, record.id)
        return record

    def update(self, record_id, fields):
        record = self.get(record_id)
        values = self.kind.clean(fields, partial=True)
        self._write(record, values, is_new=False)
        current_app.logger.info('Updated %s id=%s', self.kind.key, record.id)
        return record

    def delete(self, record_id):
        if self.kind.singleton:
            raise ValidationError(f'{self.kind.label} cannot be deleted.')
        record = self.get(record_id)
        self.kind.before_delete(record)
        db.session.delete(record)
        self._commit()
        current_app.logger.info('Deleted %s id=%s', self.kind.key, record_id)

    def _write(self, record, values, is_new):
        try:
            self.kind.prepare(record, values, is_new)
            self._check_unique(record, values)
        except Exception:
            db.session.rollback()
            raise
        for name, value in values.items():
            setattr(record, name, value)
        if is_new:
            db.session.add(record)
        self._commit()

    def _check_unique(self, record, values):
        for name in self.kind.unique:
            if name not in values:
                continue
            existing = self.model.query.filter(getattr(self.model, name) == values[name]).first()
            if existing is not None and existing.id != record.id:
                raise ConflictError(f'This {name} is already in use.', field=name)

    def _conflicting_field(self, exc):
        message = str(exc.orig)
        for name in self.kind.unique:
            if name in message:
                return name
        return self.kind.unique[0] if self.kind.unique else None

    def _commit(self):
        try:
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            current_app.logger.warning('Integrity error on %s: %s', self.kind.key, exc.orig)
            if not is_unique_violation(exc):
                raise
            raise ConflictError(field=self._conflicting_field(exc))
        except SQLAlchemyError:
            db.session.rollback()
            raise


def get_singleton(kind):
    kind = get_kind(kind)
    return db.session.get(kind.model, SINGLETON_ID)


def update_singleton(kind, fields):
    """Upsert the single row of a singleton kind with a partial field set."""
    kind = get_kind(kind)
    if not kind.singleton:
        raise ValueError(f'{kind.key} is not a singleton kind')
    record = get_singleton(kind)
    is_new = record is None
    if is_new:
        record = kind.model(id=SINGLETON_ID)
    values = kind.clean(fields, partial=True)
    for name, value in values.items():
        setattr(record, name, value)
    if is_new:
        db.session.add(record)
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise
    current_app.logger.info('Updated %s', kind.key)
    return record
