"""AI app configuration."""
from django.apps import AppConfig


class AiConfig(AppConfig):
    """Neuroevolution of Vindinium agents and the saved-agent store."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.ai'
    verbose_name = 'Agent evolution'
