import hmac
import logging

from django.conf import settings
from django.contrib.auth.models import AnonymousUser
from rest_framework.authentication import BaseAuthentication, get_authorization_header
from rest_framework.exceptions import AuthenticationFailed

logger = logging.getLogger(__name__)


class CronSecretAuthentication(BaseAuthentication):
    """
    Shared-secret bearer auth for scheduler endpoints.

    Requests must send ``Authorization: Bearer <CRON_SECRET>``. When no secret
    is configured the endpoint is open in DEBUG and closed otherwise.
    """
    keyword = 'Bearer'

    def authenticate(self, request):
        secret = getattr(settings, 'CRON_SECRET', '')
        if not secret:
            if settings.DEBUG:
                logger.warning("CRON_SECRET not set - cron endpoint accessible without auth in DEBUG")
                return (AnonymousUser(), None)
            raise AuthenticationFailed('CRON_SECRET not configured')

        auth = get_authorization_header(request).split()
        if len(auth) != 2 or auth[0].lower() != self.keyword.lower().encode():
            raise AuthenticationFailed('Invalid authorization')
        if not hmac.compare_digest(auth[1], secret.encode()):
            raise AuthenticationFailed('Invalid authorization')
        return (AnonymousUser(), 'cron')

    def authenticate_header(self, request):
        return f'{self.keyword} realm="cron"'
