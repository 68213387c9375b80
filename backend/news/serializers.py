"""
DRF Serializers
===============

Serializers handle:
1. Validation of incoming data
2. Transformation of model instances to JSON

JSON keys are camelCase (``parentId``, ``createdAt``, ``avatarUrl`` ...),
the shape the single-page client consumes; model fields stay snake_case
and are mapped with ``source=``.
"""

from rest_framework import serializers
from django.contrib.auth.models import User

from .models import Article, Category, Comment, CommentVote, Notification


def _profile(user):
    return getattr(user, 'profile', None)


class UserSummarySerializer(serializers.Serializer):
    """Minimal user representation for embedding in other objects."""
    id = serializers.IntegerField(read_only=True)
    name = serializers.SerializerMethodField()
    avatarUrl = serializers.SerializerMethodField()

    def get_name(self, user):
        profile = _profile(user)
        return profile.name if profile and profile.name else user.email

    def get_avatarUrl(self, user):
        profile = _profile(user)
        return profile.avatar_url if profile else None


class UserSerializer(UserSummarySerializer):
    """The authenticated user's own account (login, /me)."""
    email = serializers.EmailField(read_only=True)
    provider = serializers.SerializerMethodField()
    isAdmin = serializers.BooleanField(source='is_staff', read_only=True)

    def get_provider(self, user):
        profile = _profile(user)
        return profile.provider if profile else None


class CategorySerializer(serializers.ModelSerializer):

    class Meta:
        model = Category
        fields = ['id', 'name']

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Category name cannot be empty.")
        return value


class ArticleSerializer(serializers.ModelSerializer):
    """Article with author and categories embedded (primary category first)."""
    author = UserSummarySerializer(read_only=True, allow_null=True)
    categories = serializers.SerializerMethodField()
    commentCount = serializers.IntegerField(source='comment_count', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Article
        fields = [
            'id',
            'title',
            'content',
            'excerpt',
            'slug',
            'status',
            'image',
            'author',
            'categories',
            'commentCount',
            'createdAt',
            'updatedAt',
        ]
        read_only_fields = fields

    def get_categories(self, obj):
        links = sorted(obj.category_links.all(), key=lambda link: link.id)
        return CategorySerializer([link.category for link in links], many=True).data


class ArticleWriteSerializer(serializers.Serializer):
    """
    Validates multipart/JSON article input.

    On create, title/content/slug are required; on update (partial=True)
    only the fields present are changed.
    """
    title = serializers.CharField(max_length=300)
    content = serializers.CharField()
    slug = serializers.SlugField(max_length=255, allow_unicode=True)
    excerpt = serializers.CharField(required=False, allow_blank=True, default='')
    status = serializers.ChoiceField(choices=Article.Status.choices, required=False)
    categoryName = serializers.CharField(required=False, allow_blank=True, max_length=100)

    def to_internal_value(self, data):
        # Multipart clients send "PUBLISHED"/"DRAFT"
        if isinstance(data, dict) and isinstance(data.get('status'), str):
            data = {**data, 'status': data['status'].lower()}
        return super().to_internal_value(data)


class CommentSerializer(serializers.ModelSerializer):
    """
    Serializer for individual comments, flat (no nested replies).

    Tree structure is built by comment_tree.build_comment_tree.
    """
    author = UserSummarySerializer(read_only=True)
    articleId = serializers.IntegerField(source='article_id', read_only=True)
    parentId = serializers.IntegerField(source='parent_id', read_only=True, allow_null=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Comment
        fields = [
            'id',
            'content',
            'author',
            'articleId',
            'parentId',
            'depth',
            'likes',
            'dislikes',
            'createdAt',
            'updatedAt',
        ]
        read_only_fields = fields


class CommentCreateSerializer(serializers.Serializer):
    articleSlug = serializers.CharField()
    content = serializers.CharField(allow_blank=True, trim_whitespace=True)
    parentId = serializers.IntegerField(required=False, allow_null=True, min_value=1)

    def validate_content(self, value):
        if not value.strip():
            raise serializers.ValidationError("Comment cannot be empty.")
        return value


class CommentUpdateSerializer(serializers.Serializer):
    content = serializers.CharField(allow_blank=True)

    def validate_content(self, value):
        if not value.strip():
            raise serializers.ValidationError("Comment cannot be empty.")
        return value.strip()


class VoteSerializer(serializers.Serializer):
    """
    Validates vote requests. voteType is case-insensitive ('like' == 'LIKE').
    """
    commentId = serializers.IntegerField(min_value=1)
    voteType = serializers.CharField()

    def validate_voteType(self, value):
        value = value.strip().upper()
        if value not in CommentVote.VoteType.values:
            raise serializers.ValidationError("voteType must be LIKE or DISLIKE.")
        return value


class NotificationSerializer(serializers.ModelSerializer):
    fromUser = serializers.SerializerMethodField()
    commentId = serializers.IntegerField(source='comment_id', read_only=True, allow_null=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = Notification
        fields = [
            'id',
            'type',
            'message',
            'link',
            'read',
            'commentId',
            'fromUser',
            'createdAt',
        ]
        read_only_fields = fields

    def get_fromUser(self, obj):
        if obj.from_user is None:
            return None
        data = UserSummarySerializer(obj.from_user).data
        return {'name': data['name'], 'avatarUrl': data['avatarUrl']}


class RegisterSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(min_length=6, write_only=True)
    name = serializers.CharField(max_length=150)


class LoginSerializer(serializers.Serializer):
    email = serializers.CharField()
    password = serializers.CharField(write_only=True)


class ForgotPasswordSerializer(serializers.Serializer):
    email = serializers.EmailField()
