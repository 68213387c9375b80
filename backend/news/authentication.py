"""
Cookie Session Authentication
=============================

Stateless signed session token carried in an HTTP-only cookie.

TOKEN:
------
``django.core.signing`` timestamped payload ``{"user_id": <id>}`` signed
with SECRET_KEY. It is verified on every request and expires
AUTH_TOKEN_MAX_AGE seconds after issue. There is no server-side session
list: logout only clears the cookie, and a copied token keeps working
until it expires.

GUARD:
------
CookieTokenAuthentication attaches the verified user to ``request.user``.
A missing, tampered or expired token (or a deleted/inactive user) leaves the
request anonymous; views protected with IsAuthenticated then answer 401
before the handler runs. Public endpoints keep working with a stale cookie.
"""

import logging
from typing import Optional

from django.conf import settings
from django.contrib.auth.models import User
from django.core import signing
from rest_framework.authentication import BaseAuthentication

logger = logging.getLogger(__name__)

TOKEN_SALT = 'news.authentication.session'


def issue_token(user: User) -> str:
    return signing.dumps({'user_id': user.id}, salt=TOKEN_SALT)


def read_token(token: str, max_age: Optional[int] = None) -> Optional[int]:
    """Return the user id inside a valid token, or None."""
    if max_age is None:
        max_age = settings.AUTH_TOKEN_MAX_AGE
    try:
        payload = signing.loads(token, salt=TOKEN_SALT, max_age=max_age)
    except signing.SignatureExpired:
        logger.debug("Expired session token")
        return None
    except signing.BadSignature:
        logger.warning("Rejected session token with bad signature")
        return None

    user_id = payload.get('user_id') if isinstance(payload, dict) else None
    return user_id if isinstance(user_id, int) else None


class CookieTokenAuthentication(BaseAuthentication):
    """DRF authentication backed by the signed ``authToken`` cookie."""

    def authenticate(self, request):
        token = request.COOKIES.get(settings.AUTH_COOKIE_NAME)
        if not token:
            return None

        user_id = read_token(token)
        if user_id is None:
            return None

        user = (
            User.objects
            .select_related('profile')
            .filter(id=user_id, is_active=True)
            .first()
        )
        if user is None:
            return None
        return (user, token)

    def authenticate_header(self, request):
        # Makes DRF answer 401 (not 403) to unauthenticated requests
        return 'Cookie realm="api"'


def set_auth_cookie(response, user: User):
    """Issue a fresh token for ``user`` into the session cookie."""
    response.set_cookie(
        settings.AUTH_COOKIE_NAME,
        issue_token(user),
        max_age=settings.AUTH_TOKEN_MAX_AGE,
        httponly=True,
        secure=settings.AUTH_COOKIE_SECURE,
        samesite='Lax',
        path='/',
    )
    return response


def clear_auth_cookie(response):
    response.delete_cookie(settings.AUTH_COOKIE_NAME, path='/', samesite='Lax')
    return response
