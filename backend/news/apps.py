"""
News App Configuration
"""
from django.apps import AppConfig


class NewsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'news'
    verbose_name = 'Rockzine'

    def ready(self):
        # Import signals when app is ready
        import news.signals  # noqa
