"""
Management command to seed the database with sample data.

Usage: python manage.py seed_data [--clear]
"""

import random
from datetime import timedelta
from django.core.management.base import BaseCommand
from django.contrib.auth.models import User
from django.utils import timezone

from news.accounts import register_user
from news.models import (
    Article, ArticleCategory, Category, Comment, CommentVote, Notification
)
from news.services import create_comment, vote_comment

CATEGORIES = ['News', 'Events', 'Performers']

ROCK_ARTICLES = [
    {
        'title': 'The Evolution of Grunge: From Seattle to World Domination',
        'content': 'Grunge grew out of Seattle in the late 80s as an answer to glossy arena rock. '
                   'Nirvana, Pearl Jam and Soundgarden gave a generation its voice.',
        'excerpt': 'A short history of the most influential genre of the 90s.',
        'slug': 'evolution-of-grunge',
        'image': '/uploads/grunge_evolution.jpg',
        'category': 'News',
    },
    {
        'title': 'Queen: How Opera Rock Changed Music',
        'content': "Theatrical drama, Freddie Mercury's operatic vocals and Brian May's guitar "
                   'experiments made Queen one of the most unique bands in history.',
        'excerpt': 'Inside the most famous British quartet.',
        'slug': 'queen-opera-rock',
        'image': '/uploads/queen_opera.jpg',
        'category': 'Performers',
    },
    {
        'title': 'Top 10 Black Sabbath Riffs: The Foundation of Heavy Metal',
        'content': "Tony Iommi's heavy, slow and dark riffs did not just define Black Sabbath, "
                   'they laid the foundation for the whole heavy metal genre.',
        'excerpt': 'A close look at the iconic guitar parts.',
        'slug': 'black-sabbath-riffs',
        'image': '/uploads/sabbath_riffs.jpg',
        'category': 'Performers',
    },
    {
        'title': 'Punk Rock: From Protest to Commerce',
        'content': 'Born as a protest movement in the mid 70s, punk quickly outgrew the underground. '
                   'Ramones, Sex Pistols and The Clash.',
        'excerpt': 'A brief history of the punk movement.',
        'slug': 'punk-rock-protest',
        'image': '/uploads/punk_history.jpg',
        'category': 'News',
    },
    {
        'title': 'Summer Festival Season: Where to Headbang This Year',
        'content': 'Open-air stages are back. Here is the list of festivals worth the trip, '
                   'from small club weekends to three-day marathons.',
        'excerpt': 'The rock festival calendar.',
        'slug': 'summer-festival-season',
        'image': '/uploads/festival_season.jpg',
        'category': 'Events',
    },
]

COMMENT_LINES = [
    'Great read, thanks!',
    'Saw them live in 1994, unforgettable.',
    'I disagree, the second album was better.',
    'This riff still gives me chills.',
    'More articles like this please.',
    'Absolutely legendary.',
]


class Command(BaseCommand):
    help = 'Seed the database with sample data for testing'

    def add_arguments(self, parser):
        parser.add_argument(
            '--users',
            type=int,
            default=5,
            help='Number of users to create'
        )
        parser.add_argument(
            '--comments',
            type=int,
            default=30,
            help='Number of comments to create'
        )
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Clear existing data before seeding'
        )

    def handle(self, *args, **options):
        if options['clear']:
            self.stdout.write('Clearing existing data...')
            Notification.objects.all().delete()
            CommentVote.objects.all().delete()
            Comment.objects.all().delete()
            Article.objects.all().delete()
            Category.objects.all().delete()
            User.objects.filter(is_superuser=False).delete()

        self.stdout.write('Creating users...')
        users = self._create_users(options['users'])

        self.stdout.write('Creating articles...')
        articles = self._create_articles(users[0])

        self.stdout.write('Creating comments...')
        comments = self._create_comments(users, articles, options['comments'])

        self.stdout.write('Creating votes...')
        votes = self._create_votes(users, comments)

        self.stdout.write(self.style.SUCCESS(
            f'Done: {len(users)} users, {len(articles)} articles, '
            f'{len(comments)} comments, {votes} votes'
        ))

    def _create_users(self, count):
        users = []
        for i in range(max(count, 2)):
            email = f'rocker{i}@rockzine.local'
            user = User.objects.filter(username=email).first()
            if user is None:
                user = register_user(email, 'rockzine123', f'Rocker {i}')
            users.append(user)

        # The first user edits the magazine
        editor = users[0]
        if not editor.is_staff:
            editor.is_staff = True
            editor.save(update_fields=['is_staff'])
        return users

    def _create_articles(self, editor):
        categories = {name: Category.objects.get_or_create(name=name)[0] for name in CATEGORIES}
        now = timezone.now()
        articles = []
        for offset, data in enumerate(ROCK_ARTICLES):
            article, created = Article.objects.get_or_create(
                slug=data['slug'],
                defaults={
                    'title': data['title'],
                    'content': data['content'],
                    'excerpt': data['excerpt'],
                    'image': data['image'],
                    'status': Article.Status.PUBLISHED,
                    'author': editor,
                    'created_at': now - timedelta(days=offset),
                }
            )
            if created:
                ArticleCategory.objects.create(article=article, category=categories[data['category']])
            articles.append(article)
        return articles

    def _create_comments(self, users, articles, count):
        comments = []
        for _ in range(count):
            article = random.choice(articles)
            siblings = [c for c in comments if c.article_id == article.id]
            parent = random.choice(siblings) if siblings and random.random() < 0.4 else None
            comments.append(create_comment(
                random.choice(users),
                article.slug,
                random.choice(COMMENT_LINES),
                parent_id=parent.id if parent else None,
            ))
        return comments

    def _create_votes(self, users, comments):
        votes = 0
        for comment in comments:
            for user in random.sample(users, k=random.randint(0, len(users))):
                vote_comment(user, comment.id, random.choice(['LIKE', 'LIKE', 'DISLIKE']))
                votes += 1
        return votes
