from django.contrib import admin
from .models import GenerationJob


@admin.register(GenerationJob)
class GenerationJobAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'job_type', 'status', 'created_at', 'completed_at')
    list_filter = ('status', 'job_type')
    search_fields = ('user__email',)
    readonly_fields = ('input_data', 'result_data', 'error', 'started_at', 'completed_at', 'created_at')
