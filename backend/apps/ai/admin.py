"""Admin configuration for the AI app."""
from django.contrib import admin

from .models import SavedAgent


@admin.register(SavedAgent)
class SavedAgentAdmin(admin.ModelAdmin):
    """Admin for SavedAgent."""

    list_display = [
        'name', 'id_short', 'fitness', 'generation', 'hidden_width',
        'hidden_layers', 'starred', 'created_at'
    ]
    list_filter = ['starred', 'created_at']
    search_fields = ['name']
    readonly_fields = ['id', 'member', 'evaluations', 'created_at']
    ordering = ['-created_at']

    def id_short(self, obj):
        """Display shortened UUID."""
        return str(obj.id)[:8]
    id_short.short_description = 'ID'
