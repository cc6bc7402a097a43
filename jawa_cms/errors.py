"""Error taxonomy shared by the content core and both HTTP surfaces."""


class ContentError(Exception):
    status_code = 400
    code = 'content_error'
    default_message = 'The request could not be completed.'

    def __init__(self, message=None, field=None):
        self.message = message or self.default_message
        self.field = field
        super().__init__(self.message)

    def to_dict(self):
        payload = {'error': self.code, 'message': self.message}
        if self.field:
            payload['field'] = self.field
        return payload


class ValidationError(ContentError):
    """A required field is missing or a supplied value is malformed."""

    status_code = 422
    code = 'validation_error'
    default_message = 'Invalid value.'


class ConflictError(ContentError):
    """A uniqueness rule (slug, subscriber e-mail, ...) would be violated."""

    status_code = 409
    code = 'conflict'
    default_message = 'This value is already in use.'


class NotFound(ContentError):
    status_code = 404
    code = 'not_found'
    default_message = 'Record not found.'


class UploadError(ContentError):
    """The asset could not be stored. `cause` keeps the underlying failure."""

    status_code = 502
    code = 'upload_error'
    default_message = 'The file could not be uploaded.'

    def __init__(self, message=None, field=None, cause=None, rejected=False):
        super().__init__(message, field)
        self.cause = cause
        self.rejected = rejected
        if rejected:
            # The file itself was refused (size, type, content): a client error.
            self.status_code = 400


class AuthError(ContentError):
    status_code = 401
    code = 'auth_error'
    default_message = 'Authentication required.'
