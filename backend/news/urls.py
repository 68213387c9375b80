"""
News App URL Configuration

Paths carry no trailing slash, matching the client's API contract.
Fixed segments (upload-image, vote, read-all, clean, ...) are listed
before the catch-all <key> routes they would otherwise collide with.
"""
from django.urls import path
from .views import (
    ArticleImageUploadView,
    ArticleItemView,
    ArticleListCreateView,
    AvatarUploadView,
    CategoryListCreateView,
    CommentCreateView,
    CommentItemView,
    CommentTreeView,
    CommentVoteView,
    ForgotPasswordView,
    LoginView,
    LogoutView,
    MeView,
    NotificationCleanView,
    NotificationItemView,
    NotificationListView,
    NotificationReadAllView,
    NotificationReadView,
    NotificationUnreadCountView,
    OAuthCallbackView,
    RegisterView,
    StatusView,
)

urlpatterns = [
    # Articles
    path('articles', ArticleListCreateView.as_view(), name='article-list'),
    path('articles/upload-image', ArticleImageUploadView.as_view(), name='article-upload-image'),
    path('articles/<str:key>', ArticleItemView.as_view(), name='article-item'),

    # Categories
    path('categories', CategoryListCreateView.as_view(), name='category-list'),

    # Comments
    path('comments', CommentCreateView.as_view(), name='comment-create'),
    path('comments/vote', CommentVoteView.as_view(), name='comment-vote'),
    path('comments/<str:slug>/tree', CommentTreeView.as_view(), name='comment-tree'),
    path('comments/<str:key>', CommentItemView.as_view(), name='comment-item'),

    # Notifications
    path('notifications', NotificationListView.as_view(), name='notification-list'),
    path('notifications/unread-count', NotificationUnreadCountView.as_view(), name='notification-unread-count'),
    path('notifications/read-all', NotificationReadAllView.as_view(), name='notification-read-all'),
    path('notifications/clean', NotificationCleanView.as_view(), name='notification-clean'),
    path('notifications/<int:notification_id>', NotificationItemView.as_view(), name='notification-item'),
    path('notifications/<int:notification_id>/read', NotificationReadView.as_view(), name='notification-read'),

    # Auth
    path('auth/register', RegisterView.as_view(), name='auth-register'),
    path('auth/login', LoginView.as_view(), name='auth-login'),
    path('auth/logout', LogoutView.as_view(), name='auth-logout'),
    path('auth/me', MeView.as_view(), name='auth-me'),
    path('auth/upload-avatar', AvatarUploadView.as_view(), name='auth-upload-avatar'),
    path('auth/forgot-password', ForgotPasswordView.as_view(), name='auth-forgot-password'),

    # Social login
    path('oauth/google', OAuthCallbackView.as_view(provider='google'), name='oauth-google'),
    path('oauth/github', OAuthCallbackView.as_view(provider='github'), name='oauth-github'),

    # Health
    path('status', StatusView.as_view(), name='status'),
]
