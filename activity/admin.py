from django.contrib import admin
from .models import ActivityFeedItem, Notification


@admin.register(ActivityFeedItem)
class ActivityFeedItemAdmin(admin.ModelAdmin):
    list_display = ('actor', 'verb', 'challenge', 'circle', 'created_at')
    list_filter = ('verb',)
    search_fields = ('actor__email',)
    ordering = ('-created_at',)


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ('user', 'kind', 'title', 'read_at', 'created_at')
    list_filter = ('kind',)
    search_fields = ('user__email', 'title')
    ordering = ('-created_at',)
