"""
Error taxonomy shared by the services and the API layer.

Services raise these directly; ``core.handlers.api_exception_handler`` turns
them into JSON responses.
"""
from rest_framework import status
from rest_framework.exceptions import APIException, NotFound, PermissionDenied

__all__ = [
    'BusinessRuleViolation',
    'PreconditionFailed',
    'Conflict',
    'CapacityExhausted',
    'ContentRejected',
    'Gone',
    'RateLimited',
    'ServiceUnavailable',
    'NotFound',
    'PermissionDenied',
]


class BusinessRuleViolation(APIException):
    """A well-formed request that the current state of the data does not allow."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Request not allowed.'
    default_code = 'business_rule'


class PreconditionFailed(BusinessRuleViolation):
    default_detail = 'Precondition failed.'
    default_code = 'precondition_failed'


class Conflict(BusinessRuleViolation):
    default_detail = 'Conflicting request.'
    default_code = 'conflict'


class CapacityExhausted(BusinessRuleViolation):
    default_detail = 'No capacity left.'
    default_code = 'max_uses_reached'


class Gone(APIException):
    status_code = status.HTTP_410_GONE
    default_detail = 'Resource is no longer available.'
    default_code = 'gone'


class RateLimited(APIException):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_detail = 'Rate limited.'
    default_code = 'rate_limited'


class ServiceUnavailable(APIException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'Service temporarily unavailable.'
    default_code = 'service_unavailable'


class ContentRejected(BusinessRuleViolation):
    """User supplied text failed moderation. ``flagged_words`` is echoed to the client."""
    default_detail = 'Your message contains inappropriate language. Please revise and try again.'
    default_code = 'content_moderation_failed'

    def __init__(self, flagged_words, detail=None, code=None):
        super().__init__(detail, code)
        self.flagged_words = list(flagged_words)

    @property
    def extra(self):
        return {'flagged_words': self.flagged_words}
