"""
Notification Emitter
====================

Records events for later display to a user. Called by the comment and vote
services AFTER their own transaction block has completed.

FAILURE POLICY:
---------------
No function here raises to its caller. The row is written inside its own
savepoint so a failed insert cannot break an enclosing transaction; the
error is logged and swallowed. Message and link building (which queries
the primary category) is guarded the same way. A comment or vote write is never rolled back because its
notification could not be stored.

SELF-NOTIFICATION:
------------------
No row is written when the actor is the recipient (commenting on your own
article, replying to or voting on your own comment).
"""

import logging
from typing import Optional

from django.db import transaction

from .models import Article, Comment, CommentVote, Notification

logger = logging.getLogger(__name__)

# Primary category name (lower-cased) -> frontend path segment
CATEGORY_PATHS = {
    'news': 'news',
    'новости': 'news',
    'events': 'events',
    'события': 'events',
    'performers': 'performers',
    'исполнители': 'performers',
}
DEFAULT_CATEGORY_PATH = 'news'


def notify(
    recipient_id: int,
    type: str,
    message: str,
    link: Optional[str] = None,
    actor_id: Optional[int] = None,
    comment_id: Optional[int] = None,
) -> Optional[Notification]:
    """
    Write a Notification row. Returns it, or None if skipped or failed.
    """
    if actor_id is not None and actor_id == recipient_id:
        logger.debug("Skipping self-notification %s for user %s", type, recipient_id)
        return None

    try:
        with transaction.atomic():
            return Notification.objects.create(
                user_id=recipient_id,
                type=type,
                message=message,
                link=link or None,
                from_user_id=actor_id,
                comment_id=comment_id,
            )
    except Exception:
        logger.exception("Failed to create %s notification for user %s", type, recipient_id)
        return None


def category_path(article: Article) -> str:
    """Frontend path segment for an article, from its primary category."""
    category = article.primary_category
    if category is None:
        return DEFAULT_CATEGORY_PATH
    return CATEGORY_PATHS.get(category.name.strip().lower(), DEFAULT_CATEGORY_PATH)


def comment_link(comment: Comment) -> str:
    """Link to a comment anchor on its article page: /<path>/<slug>#comment-<id>."""
    article = comment.article
    return f"/{category_path(article)}/{article.slug}#comment-{comment.id}"


def display_name(user) -> str:
    profile = getattr(user, 'profile', None)
    if profile is not None and profile.name:
        return profile.name
    return user.email or user.username


def notify_comment_created(comment: Comment) -> Optional[Notification]:
    """
    Notify the right person about a new comment.

    - Reply: the parent comment's author (COMMENT_REPLY)
    - Root comment: the article's author (NEW_COMMENT), if the article has one

    Like ``notify``, never raises: building the message or link may hit the
    database after the comment is already committed.
    """
    try:
        actor_name = display_name(comment.author)

        if comment.parent_id is not None:
            recipient_id = comment.parent.author_id
            notification_type = Notification.Type.COMMENT_REPLY
            message = f"{actor_name} replied to your comment"
        else:
            recipient_id = comment.article.author_id
            notification_type = Notification.Type.NEW_COMMENT
            message = f"{actor_name} commented on your article"

        if recipient_id is None or recipient_id == comment.author_id:
            return None

        link = comment_link(comment)
    except Exception:
        logger.exception("Failed to build notification for comment %s", comment.id)
        return None

    return notify(
        recipient_id,
        notification_type,
        message,
        link=link,
        actor_id=comment.author_id,
        comment_id=comment.id,
    )


def notify_comment_voted(comment: Comment, actor, vote_type: str) -> Optional[Notification]:
    """Tell a comment's author that someone liked or disliked it. Never raises."""
    if comment.author_id == actor.id:
        return None

    try:
        if vote_type == CommentVote.VoteType.LIKE:
            notification_type = Notification.Type.COMMENT_LIKE
            message = f"{display_name(actor)} liked your comment"
        else:
            notification_type = Notification.Type.COMMENT_DISLIKE
            message = f"{display_name(actor)} disliked your comment"
        link = comment_link(comment)
    except Exception:
        logger.exception("Failed to build vote notification for comment %s", comment.id)
        return None

    return notify(
        comment.author_id,
        notification_type,
        message,
        link=link,
        actor_id=actor.id,
        comment_id=comment.id,
    )
