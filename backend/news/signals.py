"""
Django Signals

These signals maintain:
- a Profile row for every User (created on first save)
- Article.comment_count on Comment create/delete

IMPORTANT: Signals do NOT fire on QuerySet.update() or bulk operations.
The vote counters on Comment are moved with QuerySet.update(F(...)) in
services.py and are deliberately not handled here.

A cascade delete of a comment subtree fires post_delete once per removed
comment, so the article counter drops by the size of the subtree.
"""

from django.conf import settings
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
from django.db.models import F

from .models import Article, Comment, Profile


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def ensure_profile(sender, instance, created, **kwargs):
    if created:
        Profile.objects.get_or_create(user=instance)


@receiver(post_save, sender=Comment)
def increment_comment_count(sender, instance, created, **kwargs):
    if created:
        Article.objects.filter(id=instance.article_id).update(
            comment_count=F('comment_count') + 1
        )


@receiver(post_delete, sender=Comment)
def decrement_comment_count(sender, instance, **kwargs):
    Article.objects.filter(id=instance.article_id, comment_count__gt=0).update(
        comment_count=F('comment_count') - 1
    )
