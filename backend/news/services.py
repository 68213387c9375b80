"""
Comment & Vote Services
=======================

This module handles comment writes and the vote tally with:
1. Atomic database operations
2. Race condition handling on the (user, comment) vote pair
3. Best-effort notifications after the write

VOTE POLICY (apply_vote):
-------------------------
    existing  requested   result                 likes  dislikes
    --------  ---------   --------------------   -----  --------
    none      LIKE        create LIKE             +1      0
    none      DISLIKE     create DISLIKE           0     +1
    LIKE      LIKE        delete (toggle off)     -1      0
    DISLIKE   DISLIKE     delete (toggle off)      0     -1
    LIKE      DISLIKE     switch                  -1     +1
    DISLIKE   LIKE        switch                  +1     -1

TRANSACTION STRATEGY:
---------------------
The vote row change and the counter update on Comment happen in the same
transaction, counters are moved with F() expressions. If two requests from
the same user race to insert the first vote, the unique constraint rejects
one of them; that IntegrityError is caught and the request is re-applied
against the row that won.

Notifications are emitted after the transaction block, so a failing
notification never rolls back the comment or vote.
"""

import logging
from dataclasses import dataclass
from typing import Literal, Optional

from django.contrib.auth.models import User
from django.db import IntegrityError, transaction
from django.db.models import F

from .models import Article, Comment, CommentVote
from .notifications import notify_comment_created, notify_comment_voted

logger = logging.getLogger(__name__)

LIKE = CommentVote.VoteType.LIKE
DISLIKE = CommentVote.VoteType.DISLIKE


class NotFoundError(ValueError):
    """A referenced article or comment does not exist."""


class ForbiddenError(Exception):
    """The user may not act on this resource."""


@dataclass(frozen=True)
class VoteOutcome:
    """Result of applying a vote request to the user's current vote."""
    vote_type: Optional[str]
    like_delta: int
    dislike_delta: int
    action: Literal['created', 'removed', 'changed']


def _delta(vote_type: str, amount: int) -> tuple[int, int]:
    return (amount, 0) if vote_type == LIKE else (0, amount)


def apply_vote(existing: Optional[str], requested: str) -> VoteOutcome:
    """
    Pure vote policy. See the table in the module docstring.

    A repeated vote of the same type toggles the vote off.
    """
    if requested not in (LIKE, DISLIKE):
        raise ValueError(f"Invalid vote type: {requested}")

    if existing is None:
        likes, dislikes = _delta(requested, 1)
        return VoteOutcome(requested, likes, dislikes, 'created')

    if existing == requested:
        likes, dislikes = _delta(requested, -1)
        return VoteOutcome(None, likes, dislikes, 'removed')

    old_likes, old_dislikes = _delta(existing, -1)
    new_likes, new_dislikes = _delta(requested, 1)
    return VoteOutcome(requested, old_likes + new_likes, old_dislikes + new_dislikes, 'changed')


@dataclass
class VoteResult:
    outcome: VoteOutcome
    comment: Comment


def _vote_once(user: User, comment: Comment, vote_type: str) -> VoteOutcome:
    with transaction.atomic():
        vote = (
            CommentVote.objects
            .select_for_update()
            .filter(user=user, comment=comment)
            .first()
        )
        outcome = apply_vote(vote.vote_type if vote else None, vote_type)

        if vote is None:
            # Raises IntegrityError if a concurrent request inserted first
            CommentVote.objects.create(user=user, comment=comment, vote_type=vote_type)
        elif outcome.vote_type is None:
            vote.delete()
        else:
            vote.vote_type = outcome.vote_type
            vote.save(update_fields=['vote_type'])

        Comment.objects.filter(id=comment.id).update(
            likes=F('likes') + outcome.like_delta,
            dislikes=F('dislikes') + outcome.dislike_delta,
        )
        return outcome


def vote_comment(user: User, comment_id: int, vote_type: str) -> VoteResult:
    """
    Like or dislike a comment atomically.

    RETURNS:
    - VoteResult with the applied outcome and the refreshed comment

    RAISES:
    - NotFoundError if the comment does not exist
    - ValueError for an unknown vote type
    """
    if vote_type not in (LIKE, DISLIKE):
        raise ValueError(f"Invalid vote type: {vote_type}")

    try:
        comment = Comment.objects.select_related('author', 'article').get(id=comment_id)
    except Comment.DoesNotExist:
        raise NotFoundError(f"Comment {comment_id} does not exist")

    try:
        outcome = _vote_once(user, comment, vote_type)
    except IntegrityError:
        # Lost the race to insert the first vote: apply against the winner's row
        logger.info("Concurrent vote by user %s on comment %s, retrying as update", user.id, comment_id)
        outcome = _vote_once(user, comment, vote_type)

    comment.refresh_from_db(fields=['likes', 'dislikes'])

    if outcome.action in ('created', 'changed'):
        notify_comment_voted(comment, user, outcome.vote_type)

    return VoteResult(outcome=outcome, comment=comment)


# ============================================================================
# COMMENTS
# ============================================================================

def create_comment(user: User, article_slug: str, content: str, parent_id: Optional[int] = None) -> Comment:
    """
    Create a comment (or a reply when parent_id is given), then notify.

    VALIDATION:
    - content must not be blank
    - the parent must exist and belong to the same article
    """
    content = (content or '').strip()
    if not content:
        raise ValueError("Comment cannot be empty.")

    try:
        article = Article.objects.get(slug=article_slug)
    except Article.DoesNotExist:
        raise NotFoundError(f"Article {article_slug!r} does not exist")

    parent = None
    depth = 0
    if parent_id is not None:
        try:
            parent = Comment.objects.select_related('author').get(id=parent_id)
        except Comment.DoesNotExist:
            raise NotFoundError(f"Comment {parent_id} does not exist")
        if parent.article_id != article.id:
            raise ValueError("Parent comment must belong to the same article.")
        depth = parent.depth + 1

    with transaction.atomic():
        comment = Comment.objects.create(
            article=article,
            author=user,
            parent=parent,
            content=content,
            depth=depth,
        )

    logger.info("User %s commented on %s (comment %s)", user.id, article.slug, comment.id)
    notify_comment_created(comment)
    return comment


def _get_comment(comment_id: int) -> Comment:
    try:
        return Comment.objects.select_related('author', 'article').get(id=comment_id)
    except Comment.DoesNotExist:
        raise NotFoundError(f"Comment {comment_id} does not exist")


def update_comment(user: User, comment_id: int, content: str) -> Comment:
    """Edit a comment's text. Only its author may do this."""
    comment = _get_comment(comment_id)
    if comment.author_id != user.id:
        raise ForbiddenError("You can only edit your own comments.")

    content = (content or '').strip()
    if not content:
        raise ValueError("Comment cannot be empty.")

    comment.content = content
    comment.save(update_fields=['content', 'updated_at'])
    return comment


def delete_comment(user: User, comment_id: int) -> int:
    """
    Delete a comment and all its replies. Author or admin only.

    Returns the number of comments removed.
    """
    comment = _get_comment(comment_id)
    if comment.author_id != user.id and not user.is_staff:
        raise ForbiddenError("You can only delete your own comments.")

    with transaction.atomic():
        _, deleted = comment.delete()

    removed = deleted.get(Comment._meta.label, 0)
    logger.info("User %s deleted comment %s (%s removed)", user.id, comment_id, removed)
    return removed
