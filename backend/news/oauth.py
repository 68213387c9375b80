"""
Social Login (Google, GitHub)
=============================

Redirect-based OAuth flow:
1. The frontend sends the user to the provider's consent page
2. The provider redirects back to /api/oauth/<provider>?code=...
3. We exchange the code for an access token and fetch the profile
4. accounts.sync_social_user links or creates the account
5. The session cookie is set and the browser is redirected to the frontend

Provider calls are plain HTTP with a timeout; transient failures are
retried (with_retry) before the login is reported as failed.
"""

import logging
import time
from typing import Callable, TypeVar

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URL = 'https://oauth2.googleapis.com/token'
GOOGLE_USERINFO_URL = 'https://www.googleapis.com/oauth2/v2/userinfo'
GITHUB_TOKEN_URL = 'https://github.com/login/oauth/access_token'
GITHUB_USER_URL = 'https://api.github.com/user'
GITHUB_EMAILS_URL = 'https://api.github.com/user/emails'

USER_AGENT = 'rockzine-oauth'

T = TypeVar('T')


class OAuthError(Exception):
    """The provider rejected the exchange or returned unusable data."""


def _is_transient(exc: requests.RequestException) -> bool:
    """Connection errors, timeouts and 5xx answers are worth another attempt."""
    if isinstance(exc, (requests.ConnectionError, requests.Timeout)):
        return True
    response = getattr(exc, 'response', None)
    return isinstance(exc, requests.HTTPError) and response is not None and response.status_code >= 500


def with_retry(fn: Callable[[], T], retries: int = 3, backoff: float = 1.0) -> T:
    """
    Call ``fn`` up to ``retries`` times, sleeping backoff * attempt seconds
    between attempts. Only transient failures are retried; a 4xx from the
    provider (bad or expired code) fails at once.
    """
    for attempt in range(1, retries + 1):
        try:
            return fn()
        except requests.RequestException as exc:
            if attempt == retries or not _is_transient(exc):
                raise
            logger.warning("OAuth request failed (attempt %s/%s): %s", attempt, retries, exc)
            time.sleep(backoff * attempt)


def _headers(**extra) -> dict:
    return {'User-Agent': USER_AGENT, 'Accept': 'application/json', **extra}


def _post_json(url: str, data: dict) -> dict:
    response = requests.post(url, data=data, headers=_headers(), timeout=settings.OAUTH_HTTP_TIMEOUT)
    response.raise_for_status()
    return response.json()


def _get_json(url: str, access_token: str):
    response = requests.get(
        url,
        headers=_headers(Authorization=f"Bearer {access_token}"),
        timeout=settings.OAUTH_HTTP_TIMEOUT,
    )
    response.raise_for_status()
    return response.json()


def fetch_google_profile(code: str) -> dict:
    """Exchange a Google auth code; returns {id, email, name, avatar_url}."""
    token_data = with_retry(lambda: _post_json(GOOGLE_TOKEN_URL, {
        'code': code,
        'client_id': settings.GOOGLE_CLIENT_ID,
        'client_secret': settings.GOOGLE_CLIENT_SECRET,
        'redirect_uri': settings.GOOGLE_REDIRECT_URI,
        'grant_type': 'authorization_code',
    }))
    access_token = token_data.get('access_token')
    if not access_token:
        raise OAuthError(f"Google token exchange failed: {token_data.get('error', 'no access_token')}")

    info = with_retry(lambda: _get_json(GOOGLE_USERINFO_URL, access_token))
    if not info.get('email'):
        raise OAuthError("Google profile has no email")

    return {
        'id': str(info['id']),
        'email': info['email'],
        'name': info.get('name') or '',
        'avatar_url': info.get('picture'),
    }


def fetch_github_profile(code: str) -> dict:
    """
    Exchange a GitHub auth code; returns {id, email, name, avatar_url}.

    GitHub hides the email on the profile when the user keeps it private,
    in which case the primary verified address from /user/emails is used.
    """
    token_data = with_retry(lambda: _post_json(GITHUB_TOKEN_URL, {
        'code': code,
        'client_id': settings.GITHUB_CLIENT_ID,
        'client_secret': settings.GITHUB_CLIENT_SECRET,
        'redirect_uri': settings.GITHUB_REDIRECT_URI,
    }))
    access_token = token_data.get('access_token')
    if not access_token:
        raise OAuthError(f"GitHub token exchange failed: {token_data.get('error', 'no access_token')}")

    info = with_retry(lambda: _get_json(GITHUB_USER_URL, access_token))
    email = info.get('email')
    if not email:
        emails = with_retry(lambda: _get_json(GITHUB_EMAILS_URL, access_token))
        primary = [e for e in emails if e.get('primary') and e.get('verified')]
        if not primary:
            raise OAuthError("GitHub account has no verified primary email")
        email = primary[0]['email']

    return {
        'id': str(info['id']),
        'email': email,
        'name': info.get('name') or info.get('login') or '',
        'avatar_url': info.get('avatar_url'),
    }


PROFILE_FETCHERS = {
    'google': fetch_google_profile,
    'github': fetch_github_profile,
}
