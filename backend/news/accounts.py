"""
Account Services
================

Local registration/login, password reset and social-login account sync.

Identity is the lower-cased email, stored in both ``username`` (unique)
and ``email`` of Django's User. Social-only accounts get an unusable
password and can never log in with credentials.
"""

import logging
import secrets
from typing import Optional

from django.conf import settings
from django.contrib.auth.models import User
from django.core.mail import send_mail
from django.db import IntegrityError, transaction

from .models import Profile

logger = logging.getLogger(__name__)

RESET_PASSWORD_LENGTH = 12


def normalize_email(email: Optional[str]) -> str:
    return (email or '').strip().lower()


def get_profile(user: User) -> Profile:
    profile, _ = Profile.objects.get_or_create(user=user)
    return profile


def register_user(email: str, password: str, name: str) -> User:
    """
    Create a local account.

    RAISES:
    - ValueError if a field is missing
    - IntegrityError if the email is already registered
    """
    email = normalize_email(email)
    name = (name or '').strip()
    if not email or not password or not name:
        raise ValueError("Email, password and name are required.")

    if User.objects.filter(username=email).exists():
        raise IntegrityError(f"Email {email} is already registered")

    with transaction.atomic():
        user = User.objects.create_user(username=email, email=email, password=password)
        profile = get_profile(user)
        profile.name = name
        profile.provider = Profile.Provider.LOCAL
        profile.save(update_fields=['name', 'provider'])

    logger.info("Registered user %s", user.id)
    return user


def authenticate_credentials(email: str, password: str) -> Optional[User]:
    """Return the active user matching email + password, or None."""
    email = normalize_email(email)
    if not email or not password:
        return None

    user = User.objects.filter(username=email, is_active=True).first()
    if user is None or not user.has_usable_password():
        return None
    if not user.check_password(password):
        return None
    return user


def reset_password(email: str) -> bool:
    """
    Replace the user's password with a random one and mail it.

    Returns True if a mail was sent. Unknown emails return False without
    raising, callers answer both cases identically.
    """
    email = normalize_email(email)
    user = User.objects.filter(username=email, is_active=True).first()
    if user is None:
        logger.info("Password reset requested for unknown email")
        return False

    new_password = secrets.token_urlsafe(RESET_PASSWORD_LENGTH)[:RESET_PASSWORD_LENGTH]
    user.set_password(new_password)
    user.save(update_fields=['password'])

    send_mail(
        subject='Rockzine: your new password',
        message=(
            f"Hi {get_profile(user).name or email},\n\n"
            f"Your new password is: {new_password}\n"
            "Please change it after logging in.\n"
        ),
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=[email],
    )
    logger.info("Password reset mail sent to user %s", user.id)
    return True


def update_avatar(user: User, avatar_url: str) -> Profile:
    profile = get_profile(user)
    profile.avatar_url = avatar_url
    profile.save(update_fields=['avatar_url'])
    return profile


def sync_social_user(
    provider: str,
    external_id: str,
    email: str,
    name: str = '',
    avatar_url: Optional[str] = None,
) -> User:
    """
    Find or create the account for a social login.

    - existing email: link the provider id, switch provider, refresh avatar
      when the provider sent one
    - new email: create a user with an unusable password
    """
    email = normalize_email(email)
    if not email:
        raise ValueError(f"{provider} did not return an email address")

    id_field = f"{provider}_id"
    if id_field not in ('google_id', 'github_id'):
        raise ValueError(f"Unsupported provider: {provider}")

    with transaction.atomic():
        user = User.objects.filter(username=email).first()
        if user is None:
            user = User(username=email, email=email)
            user.set_unusable_password()
            user.save()
            logger.info("Created %s user %s", provider, user.id)

        profile = get_profile(user)
        setattr(profile, id_field, str(external_id))
        profile.provider = provider
        if avatar_url:
            profile.avatar_url = avatar_url
        if not profile.name:
            profile.name = name or email.split('@')[0]
        profile.save()

    return user
