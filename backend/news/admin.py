"""
Django Admin Configuration for News Models
"""
from django.contrib import admin
from .models import Article, ArticleCategory, Category, Comment, CommentVote, Notification, Profile


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ['user', 'name', 'provider']
    list_filter = ['provider']
    search_fields = ['name', 'user__email']


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['id', 'name']
    search_fields = ['name']


class ArticleCategoryInline(admin.TabularInline):
    model = ArticleCategory
    extra = 1


@admin.register(Article)
class ArticleAdmin(admin.ModelAdmin):
    list_display = ['title', 'slug', 'status', 'author', 'comment_count', 'created_at']
    list_filter = ['status', 'created_at']
    search_fields = ['title', 'content', 'slug']
    prepopulated_fields = {'slug': ('title',)}
    readonly_fields = ['comment_count', 'created_at', 'updated_at']
    inlines = [ArticleCategoryInline]


@admin.register(Comment)
class CommentAdmin(admin.ModelAdmin):
    list_display = ['id', 'article', 'author', 'parent', 'depth', 'likes', 'dislikes', 'created_at']
    list_filter = ['created_at', 'depth']
    search_fields = ['content', 'author__email']
    readonly_fields = ['likes', 'dislikes', 'depth', 'created_at', 'updated_at']


@admin.register(CommentVote)
class CommentVoteAdmin(admin.ModelAdmin):
    list_display = ['user', 'comment', 'vote_type', 'created_at']
    list_filter = ['vote_type', 'created_at']
    search_fields = ['user__email']

    def has_change_permission(self, request, obj=None):
        # Counters on Comment are only kept in sync by services.vote_comment
        return False


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ['user', 'type', 'from_user', 'read', 'created_at']
    list_filter = ['type', 'read', 'created_at']
    search_fields = ['user__email', 'message']
