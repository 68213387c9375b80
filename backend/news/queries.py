"""
Read Queries
============

Optimized query functions that avoid N+1 problems.

OUR APPROACH:
-------------
1. Fetch ALL comments for an article in ONE query
2. Use select_related for author + profile (JOIN)
3. Let the caller build the tree in Python (comment_tree.py)

Articles embed their categories, so list queries prefetch them in one
extra query regardless of page size.
"""

from typing import Optional

from django.db.models import Prefetch, Q, QuerySet

from .models import Article, ArticleCategory, Comment, Notification


def article_queryset() -> QuerySet:
    """Articles with author and ordered category links preloaded."""
    return (
        Article.objects
        .select_related('author', 'author__profile')
        .prefetch_related(
            Prefetch(
                'category_links',
                queryset=ArticleCategory.objects.select_related('category').order_by('id'),
            )
        )
    )


def search_articles(search: Optional[str] = None) -> QuerySet:
    """
    Newest-first article list, optionally filtered by a case-insensitive
    substring match on title or content.
    """
    queryset = article_queryset().order_by('-created_at')
    search = (search or '').strip()
    if search:
        queryset = queryset.filter(Q(title__icontains=search) | Q(content__icontains=search))
    return queryset


def get_article_by_slug(slug: str) -> Optional[Article]:
    return article_queryset().filter(slug=slug).first()


def get_comments_for_article(article: Article) -> list[Comment]:
    """
    Fetch ALL comments for an article in a SINGLE query, oldest-first.

    SELECT comment.*, user.*, profile.*
    FROM comment
    INNER JOIN user ON comment.author_id = user.id
    LEFT JOIN profile ON profile.user_id = user.id
    WHERE comment.article_id = %s
    ORDER BY comment.created_at, comment.id
    """
    return list(
        Comment.objects
        .filter(article=article)
        .select_related('author', 'author__profile')
        .order_by('created_at', 'id')
    )


def get_notifications_for_user(user_id: int) -> QuerySet:
    """The user's notifications, newest first, with the actor preloaded."""
    return (
        Notification.objects
        .filter(user_id=user_id)
        .select_related('from_user', 'from_user__profile')
        .order_by('-created_at', '-id')
    )


def count_unread_notifications(user_id: int) -> int:
    return Notification.objects.filter(user_id=user_id, read=False).count()
