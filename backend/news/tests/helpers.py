"""Shared fixtures for the news test suite."""
from django.conf import settings
from django.contrib.auth.models import User

from news.authentication import issue_token
from news.models import Article, ArticleCategory, Category, Profile


def make_user(email, name='', is_staff=False, password='pass12345'):
    user = User.objects.create_user(username=email, email=email, password=password, is_staff=is_staff)
    Profile.objects.filter(user=user).update(name=name or email.split('@')[0])
    return User.objects.get(pk=user.pk)


def make_article(slug='test-post', author=None, category=None, **fields):
    defaults = {
        'title': f'Title of {slug}',
        'content': 'Loud guitars and louder drums.',
        'status': Article.Status.PUBLISHED,
    }
    defaults.update(fields)
    article = Article.objects.create(slug=slug, author=author, **defaults)
    if category:
        category_obj, _ = Category.objects.get_or_create(name=category)
        ArticleCategory.objects.create(article=article, category=category_obj)
    return article


def login(client, user):
    """Put a valid session cookie for ``user`` on a test client."""
    client.cookies[settings.AUTH_COOKIE_NAME] = issue_token(user)
    return client
