from django.contrib import admin
from .models import Circle, CircleInvitation, CircleMember


class CircleMemberInline(admin.TabularInline):
    model = CircleMember
    extra = 0
    raw_id_fields = ('user',)


@admin.register(Circle)
class CircleAdmin(admin.ModelAdmin):
    list_display = ('name', 'owner', 'is_private', 'created_at')
    list_filter = ('is_private',)
    search_fields = ('name', 'owner__email')
    inlines = [CircleMemberInline]


@admin.register(CircleInvitation)
class CircleInvitationAdmin(admin.ModelAdmin):
    list_display = ('code', 'circle', 'role', 'uses', 'max_uses', 'expires_at', 'created_at')
    search_fields = ('code', 'circle__name', 'email')
    readonly_fields = ('uses',)
