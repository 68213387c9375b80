"""
Data Models for Rockzine
========================

Overview:
---------
1. Users are Django's built-in ``auth.User`` plus a one-to-one ``Profile``
   - ``username`` stores the lower-cased email, which makes email unique
   - Social-only accounts carry an unusable password
   - ``is_staff`` is the admin flag

2. Comments use the Adjacency List pattern (parent FK)
   - The whole thread for an article is fetched in one query and
     assembled into a tree in Python (see comment_tree.py)
   - A reply must belong to the same article as its parent

3. Votes live in CommentVote with a unique (user, comment) constraint
   - The like/dislike counters on Comment are denormalized and are only
     changed by services.vote_comment, in the same transaction as the vote row

4. Notifications are plain rows owned by their recipient
   - Written by notifications.notify as a best-effort side effect
   - Only mutated by read-state transitions or deleted by their owner

Indexes Strategy:
-----------------
- comment.article_id + comment.created_at: fetching a thread oldest-first
- notification.user_id + notification.created_at: the notification feed
- article.created_at: newest-first article list
"""

from django.conf import settings
from django.db import models
from django.utils import timezone


class Profile(models.Model):
    """Public profile data attached to every user."""

    class Provider(models.TextChoices):
        LOCAL = 'local', 'Local'
        GOOGLE = 'google', 'Google'
        GITHUB = 'github', 'GitHub'

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='profile'
    )
    name = models.CharField(max_length=150, blank=True)
    avatar_url = models.CharField(max_length=500, blank=True, null=True)
    provider = models.CharField(
        max_length=10,
        choices=Provider.choices,
        default=Provider.LOCAL
    )
    google_id = models.CharField(max_length=64, unique=True, null=True, blank=True)
    github_id = models.CharField(max_length=64, unique=True, null=True, blank=True)

    def __str__(self):
        return f"{self.name or self.user.email} ({self.provider})"


class Category(models.Model):
    """Article category (news, events, performers, ...)."""
    name = models.CharField(max_length=100, unique=True)

    class Meta:
        ordering = ['name']
        verbose_name_plural = 'categories'

    def __str__(self):
        return self.name


class Article(models.Model):
    """
    A published (or draft) article. The slug is the public lookup key.

    ``author`` is optional: articles created from the admin panel before
    authorship was tracked have none, and such articles never produce
    comment notifications.
    """

    class Status(models.TextChoices):
        DRAFT = 'draft', 'Draft'
        PUBLISHED = 'published', 'Published'

    title = models.CharField(max_length=300)
    content = models.TextField()
    excerpt = models.TextField(blank=True, default='')
    slug = models.SlugField(max_length=255, unique=True, allow_unicode=True)
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.DRAFT
    )
    image = models.CharField(max_length=500, blank=True, null=True)
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='articles'
    )
    categories = models.ManyToManyField(
        Category,
        through='ArticleCategory',
        related_name='articles',
        blank=True
    )
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    # Denormalized, maintained by signals on Comment create/delete
    comment_count = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return self.title[:50]

    @property
    def primary_category(self):
        """The first category the article was tagged with, or None."""
        link = self.category_links.select_related('category').order_by('id').first()
        return link.category if link else None


class ArticleCategory(models.Model):
    """Through table for Article <-> Category; insertion order defines the primary category."""
    article = models.ForeignKey(Article, on_delete=models.CASCADE, related_name='category_links')
    category = models.ForeignKey(Category, on_delete=models.CASCADE, related_name='article_links')

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['article', 'category'],
                name='unique_category_per_article'
            )
        ]

    def __str__(self):
        return f"{self.article_id} -> {self.category_id}"


class Comment(models.Model):
    """
    Threaded comment using the Adjacency List pattern.

    Counters (likes/dislikes) are only written through services.vote_comment.
    Deleting a comment deletes its whole subtree (CASCADE on parent).
    """
    article = models.ForeignKey(
        Article,
        on_delete=models.CASCADE,
        related_name='comments'
    )
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='comments'
    )
    parent = models.ForeignKey(
        'self',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='replies'
    )
    content = models.TextField()
    likes = models.PositiveIntegerField(default=0)
    dislikes = models.PositiveIntegerField(default=0)

    # 0 for root comments, parent.depth + 1 for replies
    depth = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['created_at']  # Oldest first within a thread
        indexes = [
            models.Index(fields=['article', 'created_at'], name='comment_article_created_idx'),
            models.Index(fields=['parent', 'created_at'], name='comment_parent_created_idx'),
        ]

    def __str__(self):
        return f"Comment {self.pk} by {self.author_id} on {self.article_id}"


class CommentVote(models.Model):
    """
    One like or dislike per (user, comment).

    The unique constraint rejects a racing duplicate insert; the vote
    service catches the IntegrityError and turns it into an update.
    """

    class VoteType(models.TextChoices):
        LIKE = 'LIKE', 'Like'
        DISLIKE = 'DISLIKE', 'Dislike'

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='comment_votes'
    )
    comment = models.ForeignKey(
        Comment,
        on_delete=models.CASCADE,
        related_name='votes'
    )
    vote_type = models.CharField(max_length=7, choices=VoteType.choices)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['user', 'comment'],
                name='unique_vote_per_user_per_comment'
            )
        ]

    def __str__(self):
        return f"{self.user_id} {self.vote_type} comment {self.comment_id}"


class Notification(models.Model):
    """An event recorded for later display to its recipient."""

    class Type(models.TextChoices):
        NEW_COMMENT = 'NEW_COMMENT', 'New comment'
        COMMENT_REPLY = 'COMMENT_REPLY', 'Comment reply'
        COMMENT_LIKE = 'COMMENT_LIKE', 'Comment like'
        COMMENT_DISLIKE = 'COMMENT_DISLIKE', 'Comment dislike'

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='notifications'
    )
    type = models.CharField(max_length=20, choices=Type.choices)
    message = models.CharField(max_length=500)
    link = models.CharField(max_length=500, null=True, blank=True)
    from_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='sent_notifications'
    )
    comment = models.ForeignKey(
        Comment,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='notifications'
    )
    read = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['user', '-created_at'], name='notif_user_created_idx'),
        ]

    def __str__(self):
        return f"{self.type} for {self.user_id}"

