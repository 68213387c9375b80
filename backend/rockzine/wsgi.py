"""
WSGI config for rockzine project.
"""
import os
from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'rockzine.settings')
application = get_wsgi_application()
