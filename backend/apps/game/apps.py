"""Game app configuration."""
from django.apps import AppConfig


class GameConfig(AppConfig):
    """The Vindinium rules engine. Pure Python, no models."""

    name = 'apps.game'
    verbose_name = 'Vindinium rules'
