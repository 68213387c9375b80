"""
Rockzine URL Configuration
"""
from django.conf import settings
from django.contrib import admin
from django.urls import path, include, re_path
from django.http import JsonResponse
from django.views.static import serve


def api_root(request):
    """Root endpoint with API information."""
    return JsonResponse({
        'message': 'Rockzine API Server',
        'version': '1.0',
        'endpoints': {
            'articles': '/api/articles',
            'categories': '/api/categories',
            'comments': '/api/comments/<articleSlug>',
            'vote': '/api/comments/vote',
            'notifications': '/api/notifications',
            'auth': '/api/auth/<action>',
            'oauth': '/api/oauth/<google|github>',
            'status': '/api/status',
        },
        'frontend': settings.FRONTEND_URL,
        'admin': '/admin/',
    })


urlpatterns = [
    path('', api_root, name='api-root'),
    path('admin/', admin.site.urls),
    path('api/', include('news.urls')),
    # User uploads are served by the app itself, also outside DEBUG
    re_path(
        r'^%s(?P<path>.*)$' % settings.MEDIA_URL.lstrip('/'),
        serve,
        {'document_root': settings.MEDIA_ROOT},
        name='uploads',
    ),
]
