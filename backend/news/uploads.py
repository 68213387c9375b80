"""
User upload storage: article images, editor images and avatars.

Files go through Django's default storage under MEDIA_ROOT and are
served back at MEDIA_URL (/uploads/...).
"""

import logging
import os
import random
import time
from typing import Optional

from django.conf import settings
from django.core.files.storage import default_storage

logger = logging.getLogger(__name__)

AVATAR_DIR = 'avatars'


def unique_filename(original_name: str, prefix: str = '') -> str:
    """<prefix><millis>-<random><ext>, keeping the original extension."""
    _, ext = os.path.splitext(original_name or '')
    suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
    return f"{prefix}{suffix}{ext.lower()}"


def save_upload(uploaded_file, subdir: str = '', prefix: str = '') -> str:
    """
    Store an uploaded file and return its public path.

    RAISES:
    - ValueError if the file exceeds MAX_UPLOAD_SIZE
    """
    if uploaded_file.size > settings.MAX_UPLOAD_SIZE:
        raise ValueError(
            f"File too large: {uploaded_file.size} bytes (max {settings.MAX_UPLOAD_SIZE})"
        )

    name = unique_filename(uploaded_file.name, prefix=prefix)
    relative = f"{subdir}/{name}" if subdir else name
    stored = default_storage.save(relative, uploaded_file)
    logger.debug("Stored upload %s", stored)
    return settings.MEDIA_URL + stored.replace(os.sep, '/')


def save_avatar(uploaded_file) -> str:
    return save_upload(uploaded_file, subdir=AVATAR_DIR, prefix='avatar-')


def delete_upload(public_path: Optional[str]) -> None:
    """Best-effort removal of a file previously returned by save_upload."""
    if not public_path or not public_path.startswith(settings.MEDIA_URL):
        return
    relative = public_path[len(settings.MEDIA_URL):]
    try:
        default_storage.delete(relative)
    except OSError:
        logger.warning("Failed to delete upload %s", public_path, exc_info=True)
