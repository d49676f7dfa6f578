from django.contrib import admin
from .models import Message


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ('sender', 'recipient', 'circle', 'created_at', 'read_at', 'deleted_by_sender', 'deleted_by_recipient')
    list_filter = ('deleted_by_sender', 'deleted_by_recipient')
    search_fields = ('sender__email', 'recipient__email')
    ordering = ('-created_at',)
