from django.contrib import admin
from .models import CronRun


@admin.register(CronRun)
class CronRunAdmin(admin.ModelAdmin):
    """Admin interface for scheduled job run markers."""
    list_display = ('name', 'last_run_at', 'updated_at')
    search_fields = ('name',)
    readonly_fields = ('last_result', 'updated_at')
    ordering = ('name',)
