from django.contrib import admin
from .models import BadgeDefinition, UserBadge


@admin.register(BadgeDefinition)
class BadgeDefinitionAdmin(admin.ModelAdmin):
    list_display = ('name', 'slug', 'tier', 'criteria_type', 'is_active', 'is_automatic')
    list_filter = ('tier', 'is_active', 'is_automatic')
    search_fields = ('name', 'slug')
    prepopulated_fields = {'slug': ('name',)}


@admin.register(UserBadge)
class UserBadgeAdmin(admin.ModelAdmin):
    list_display = ('user', 'badge', 'is_featured', 'earned_at')
    list_filter = ('is_featured', 'badge')
    search_fields = ('user__email', 'badge__name')
