"""
DRF Views
=========

API endpoints for the rockzine application.

AUTHENTICATION NOTE:
--------------------
Every request passes through CookieTokenAuthentication (see
authentication.py). Views that need a user declare IsAuthenticated, so
a missing or expired cookie is answered with 401 before the handler runs.
Article and category writes are restricted to staff users.

Errors raised by the service layer (NotFoundError, ForbiddenError,
ValueError, IntegrityError) are turned into responses by
exceptions.custom_exception_handler.
"""

import logging

from django.conf import settings
from django.db import connection, transaction, DatabaseError
from django.http import HttpResponseRedirect
from rest_framework import permissions, status
from rest_framework.exceptions import NotFound
from rest_framework.response import Response
from rest_framework.views import APIView

from . import accounts, oauth, uploads
from .authentication import clear_auth_cookie, set_auth_cookie
from .comment_tree import build_comment_tree
from .models import Article, ArticleCategory, Category, Notification
from .permissions import IsAdminOrReadOnly
from .queries import (
    article_queryset,
    count_unread_notifications,
    get_article_by_slug,
    get_comments_for_article,
    get_notifications_for_user,
    search_articles,
)
from .serializers import (
    ArticleSerializer,
    ArticleWriteSerializer,
    CategorySerializer,
    CommentCreateSerializer,
    CommentSerializer,
    CommentUpdateSerializer,
    ForgotPasswordSerializer,
    LoginSerializer,
    NotificationSerializer,
    RegisterSerializer,
    UserSerializer,
    VoteSerializer,
)
from .services import create_comment, delete_comment, update_comment, vote_comment

logger = logging.getLogger(__name__)

ARTICLE_FIELDS = ('title', 'content', 'excerpt', 'slug', 'status', 'categoryName')


# ============================================================================
# ARTICLES
# ============================================================================

def _article_input(request):
    """Plain dict of article fields from a JSON or multipart body."""
    return {key: request.data.get(key) for key in ARTICLE_FIELDS if key in request.data}


def _tag_article(article, category_name):
    """Make ``category_name`` the article's only category, creating it if needed."""
    category, _ = Category.objects.get_or_create(name=category_name.strip())
    ArticleCategory.objects.filter(article=article).exclude(category=category).delete()
    ArticleCategory.objects.get_or_create(article=article, category=category)


def _get_article_by_id(key):
    try:
        article_id = int(key)
    except (TypeError, ValueError):
        raise NotFound('Article not found.')
    article = Article.objects.filter(id=article_id).first()
    if article is None:
        raise NotFound('Article not found.')
    return article


class ArticleListCreateView(APIView):
    """
    GET  /api/articles?search=   newest first, optional title/content filter
    POST /api/articles           multipart (optional imageFile), staff only
    """
    permission_classes = [IsAdminOrReadOnly]

    def get(self, request):
        articles = search_articles(request.query_params.get('search'))
        return Response(ArticleSerializer(articles, many=True).data)

    def post(self, request):
        data = _article_input(request)
        if not all(str(data.get(field) or '').strip() for field in ('title', 'content', 'slug')):
            return Response(
                {'error': 'Title, Content, and Slug are required fields.'},
                status=status.HTTP_400_BAD_REQUEST
            )

        serializer = ArticleWriteSerializer(data=data)
        serializer.is_valid(raise_exception=True)
        fields = serializer.validated_data

        image_file = request.FILES.get('imageFile')
        image = uploads.save_upload(image_file) if image_file else None

        try:
            with transaction.atomic():
                article = Article.objects.create(
                    title=fields['title'],
                    content=fields['content'],
                    excerpt=fields.get('excerpt', ''),
                    slug=fields['slug'],
                    status=fields.get('status') or Article.Status.DRAFT,
                    image=image,
                    author=request.user,
                )
                if fields.get('categoryName'):
                    _tag_article(article, fields['categoryName'])
        except Exception:
            uploads.delete_upload(image)
            raise

        logger.info("Article %s created by user %s", article.slug, request.user.id)
        article = article_queryset().get(id=article.id)
        return Response(ArticleSerializer(article).data, status=status.HTTP_201_CREATED)


class ArticleItemView(APIView):
    """
    GET    /api/articles/<slug>
    PUT    /api/articles/<id>   multipart (optional imageFile), staff only
    DELETE /api/articles/<id>   staff only
    """
    permission_classes = [IsAdminOrReadOnly]

    def get(self, request, key):
        article = get_article_by_slug(key)
        if article is None:
            return Response({'error': 'Article not found.'}, status=status.HTTP_404_NOT_FOUND)
        return Response(ArticleSerializer(article).data)

    def put(self, request, key):
        article = _get_article_by_id(key)

        serializer = ArticleWriteSerializer(data=_article_input(request), partial=True)
        serializer.is_valid(raise_exception=True)
        fields = dict(serializer.validated_data)
        category_name = fields.pop('categoryName', None)

        image_file = request.FILES.get('imageFile')
        old_image = article.image
        new_image = uploads.save_upload(image_file) if image_file else None

        try:
            with transaction.atomic():
                for field, value in fields.items():
                    setattr(article, field, value)
                if new_image:
                    article.image = new_image
                article.save()
                if category_name:
                    _tag_article(article, category_name)
        except Exception:
            uploads.delete_upload(new_image)
            raise

        if new_image and old_image != new_image:
            uploads.delete_upload(old_image)

        article = article_queryset().get(id=article.id)
        return Response(ArticleSerializer(article).data)

    def delete(self, request, key):
        article = _get_article_by_id(key)
        image = article.image
        article.delete()
        uploads.delete_upload(image)
        logger.info("Article %s deleted by user %s", key, request.user.id)
        return Response({'message': 'Article deleted successfully.'}, status=status.HTTP_200_OK)


class ArticleImageUploadView(APIView):
    """
    POST /api/articles/upload-image

    Editor image upload (multipart ``uploadFile``). Returns {"location": ...}.
    """
    permission_classes = [permissions.IsAdminUser]

    def post(self, request):
        upload = request.FILES.get('uploadFile')
        if upload is None:
            return Response({'error': 'No file uploaded.'}, status=status.HTTP_400_BAD_REQUEST)
        return Response({'location': uploads.save_upload(upload)})


class CategoryListCreateView(APIView):
    """
    GET  /api/categories
    POST /api/categories   staff only; 409 if the name exists
    """
    permission_classes = [IsAdminOrReadOnly]

    def get(self, request):
        return Response(CategorySerializer(Category.objects.all(), many=True).data)

    def post(self, request):
        serializer = CategorySerializer(data=request.data)
        if not serializer.is_valid():
            name_errors = serializer.errors.get('name', [])
            if any(getattr(error, 'code', None) == 'unique' for error in name_errors):
                return Response(
                    {'error': 'Category with this name already exists.'},
                    status=status.HTTP_409_CONFLICT
                )
            return Response(
                {'error': 'Invalid category.', 'details': serializer.errors},
                status=status.HTTP_400_BAD_REQUEST
            )
        with transaction.atomic():
            serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)


# ============================================================================
# COMMENTS
# ============================================================================

def _article_comments(slug):
    article = get_article_by_slug(slug)
    if article is None:
        raise NotFound('Article not found.')
    return CommentSerializer(get_comments_for_article(article), many=True).data


class CommentCreateView(APIView):
    """
    POST /api/comments

    Body:
    {
        "articleSlug": "test-post",
        "content": "Comment text",
        "parentId": 123  // optional, for replies
    }
    """
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = CommentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        comment = create_comment(
            request.user,
            data['articleSlug'],
            data['content'],
            parent_id=data.get('parentId'),
        )
        return Response(CommentSerializer(comment).data, status=status.HTTP_201_CREATED)


class CommentItemView(APIView):
    """
    GET    /api/comments/<articleSlug>   flat list, oldest first
    PUT    /api/comments/<id>            author only
    DELETE /api/comments/<id>            author or staff; removes the subtree
    """

    def get_permissions(self):
        if self.request.method in permissions.SAFE_METHODS:
            return [permissions.AllowAny()]
        return [permissions.IsAuthenticated()]

    def get(self, request, key):
        return Response(_article_comments(key))

    def put(self, request, key):
        serializer = CommentUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        comment = update_comment(request.user, self._comment_id(key), serializer.validated_data['content'])
        return Response(CommentSerializer(comment).data)

    def delete(self, request, key):
        removed = delete_comment(request.user, self._comment_id(key))
        return Response({'message': 'Comment deleted.', 'removed': removed})

    @staticmethod
    def _comment_id(key):
        try:
            return int(key)
        except (TypeError, ValueError):
            raise NotFound('Comment not found.')


class CommentTreeView(APIView):
    """
    GET /api/comments/<articleSlug>/tree

    The same comments as the flat list, nested: roots newest first,
    each node with its direct replies in ``replies``.
    """
    permission_classes = [permissions.AllowAny]

    def get(self, request, slug):
        return Response(build_comment_tree(_article_comments(slug)))


class CommentVoteView(APIView):
    """
    POST /api/comments/vote

    Body:
    {
        "commentId": 123,
        "voteType": "LIKE" | "DISLIKE"
    }

    Returns:
    {
        "action": "created" | "removed" | "changed",
        "voteType": "LIKE" | "DISLIKE" | null,
        "comment": {"id": 123, "likes": 4, "dislikes": 1}
    }
    """
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = VoteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = vote_comment(
            request.user,
            serializer.validated_data['commentId'],
            serializer.validated_data['voteType'],
        )
        return Response({
            'action': result.outcome.action,
            'voteType': result.outcome.vote_type,
            'comment': {
                'id': result.comment.id,
                'likes': result.comment.likes,
                'dislikes': result.comment.dislikes,
            },
        })


# ============================================================================
# NOTIFICATIONS
# ============================================================================

def _own_notification(request, notification_id):
    notification = Notification.objects.filter(id=notification_id, user=request.user).first()
    if notification is None:
        raise NotFound('Notification not found or access denied.')
    return notification


class NotificationListView(APIView):
    """
    GET    /api/notifications   newest first
    DELETE /api/notifications   delete all of the user's notifications
    """
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        notifications = get_notifications_for_user(request.user.id)
        return Response(NotificationSerializer(notifications, many=True).data)

    def delete(self, request):
        deleted, _ = Notification.objects.filter(user=request.user).delete()
        return Response({'message': 'All notifications deleted.', 'deleted': deleted})


class NotificationUnreadCountView(APIView):
    """GET /api/notifications/unread-count"""
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        return Response({'count': count_unread_notifications(request.user.id)})


class NotificationReadAllView(APIView):
    """PATCH /api/notifications/read-all"""
    permission_classes = [permissions.IsAuthenticated]

    def patch(self, request):
        updated = Notification.objects.filter(user=request.user, read=False).update(read=True)
        return Response({'message': 'All notifications marked as read.', 'updated': updated})


class NotificationCleanView(APIView):
    """DELETE /api/notifications/clean: removes notifications already read."""
    permission_classes = [permissions.IsAuthenticated]

    def delete(self, request):
        deleted, _ = Notification.objects.filter(user=request.user, read=True).delete()
        return Response({'message': 'Read notifications deleted.', 'deleted': deleted})


class NotificationItemView(APIView):
    """DELETE /api/notifications/<id>: owner only, 404 otherwise."""
    permission_classes = [permissions.IsAuthenticated]

    def delete(self, request, notification_id):
        _own_notification(request, notification_id).delete()
        return Response({'message': 'Notification deleted.'})


class NotificationReadView(APIView):
    """PATCH /api/notifications/<id>/read: owner only, 404 otherwise."""
    permission_classes = [permissions.IsAuthenticated]

    def patch(self, request, notification_id):
        notification = _own_notification(request, notification_id)
        if not notification.read:
            notification.read = True
            notification.save(update_fields=['read'])
        return Response(NotificationSerializer(notification).data)


# ============================================================================
# AUTH
# ============================================================================

class RegisterView(APIView):
    """POST /api/auth/register  {email, password, name}"""
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = accounts.register_user(**serializer.validated_data)
        return Response(
            {'message': 'User created successfully.', 'user': UserSerializer(user).data},
            status=status.HTTP_201_CREATED
        )


class LoginView(APIView):
    """POST /api/auth/login  {email, password}: sets the session cookie."""
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = accounts.authenticate_credentials(**serializer.validated_data)
        if user is None:
            return Response(
                {'error': 'Invalid email or password.'},
                status=status.HTTP_401_UNAUTHORIZED
            )

        response = Response({'user': UserSerializer(user).data})
        return set_auth_cookie(response, user)


class LogoutView(APIView):
    """POST /api/auth/logout: clears the cookie; the token itself is not revoked."""
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        return clear_auth_cookie(Response({'message': 'Logged out successfully.'}))


class MeView(APIView):
    """GET /api/auth/me"""
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        return Response(UserSerializer(request.user).data)


class AvatarUploadView(APIView):
    """POST /api/auth/upload-avatar  multipart ``avatar``"""
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        upload = request.FILES.get('avatar')
        if upload is None:
            return Response({'error': 'No file uploaded.'}, status=status.HTTP_400_BAD_REQUEST)

        old_avatar = accounts.get_profile(request.user).avatar_url
        avatar_url = uploads.save_avatar(upload)
        accounts.update_avatar(request.user, avatar_url)
        uploads.delete_upload(old_avatar)
        return Response({'avatarUrl': avatar_url})


class ForgotPasswordView(APIView):
    """
    POST /api/auth/forgot-password  {email}

    Same answer whether or not the email is registered.
    """
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = ForgotPasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        accounts.reset_password(serializer.validated_data['email'])
        return Response({'message': 'If this email is registered, a new password has been sent.'})


class OAuthCallbackView(APIView):
    """
    GET|POST /api/oauth/<provider>?code=...

    Redirects to FRONTEND_URL?auth=success with the session cookie set,
    or to FRONTEND_URL?error=oauth_failed.
    """
    permission_classes = [permissions.AllowAny]
    provider = None

    def get(self, request):
        code = request.query_params.get('code') or request.data.get('code')
        frontend = settings.FRONTEND_URL

        if not code:
            logger.warning("%s OAuth callback without code", self.provider)
            return HttpResponseRedirect(f"{frontend}?error=oauth_failed")

        try:
            profile = oauth.PROFILE_FETCHERS[self.provider](code)
            user = accounts.sync_social_user(
                self.provider,
                profile['id'],
                profile['email'],
                name=profile.get('name', ''),
                avatar_url=profile.get('avatar_url'),
            )
        except Exception:
            logger.exception("%s OAuth login failed", self.provider)
            return HttpResponseRedirect(f"{frontend}?error=oauth_failed")

        response = HttpResponseRedirect(f"{frontend}?auth=success")
        return set_auth_cookie(response, user)

    post = get


# ============================================================================
# OPERATIONAL
# ============================================================================

class StatusView(APIView):
    """GET /api/status: health check including a database round trip."""
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        try:
            with connection.cursor() as cursor:
                cursor.execute('SELECT 1')
        except DatabaseError:
            logger.exception("Database health check failed")
            return Response(
                {'status': 'Error', 'db': 'Disconnected'},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR
            )
        return Response({'status': 'OK', 'db': 'Connected'})
