"""
Error taxonomy shared by the services and the HTTP layer.

Services raise these; the app factory maps each class to a status code so route
handlers never build error responses by hand.
"""


class RecruitflowError(Exception):
    status_code = 500
    code = "internal_error"

    def __init__(self, message: str, **extra):
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_dict(self) -> dict:
        payload = {"detail": self.message, "code": self.code}
        payload.update(self.extra)
        return payload


class ValidationError(RecruitflowError):
    status_code = 400
    code = "validation_error"


class AuthenticationError(RecruitflowError):
    status_code = 401
    code = "authentication_required"


class PermissionDeniedError(RecruitflowError):
    status_code = 403
    code = "permission_denied"


class NotFoundError(RecruitflowError):
    status_code = 404
    code = "not_found"


class ConflictError(RecruitflowError):
    status_code = 409
    code = "conflict"


class ExpiredError(RecruitflowError):
    status_code = 410
    code = "expired"


class UpstreamError(RecruitflowError):
    status_code = 502
    code = "upstream_error"


class InvitationRecordError(UpstreamError):
    code = "invitation_record_failed"


class EmailDispatchError(UpstreamError):
    code = "email_dispatch_failed"

    def __init__(self, message: str, invitation_id: str | None = None):
        super().__init__(message, invitation_id=invitation_id)
        self.invitation_id = invitation_id


class ConfigurationError(RecruitflowError):
    code = "not_configured"
