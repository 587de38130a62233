"""Models for the AI app."""
import uuid
from django.db import models


class SavedAgent(models.Model):
    """
    A named snapshot of one evolved agent.

    The full population member (weights, topology, fitness) lives in
    ``member``; the scalar columns duplicate a few of its fields for
    listing and ordering.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100)

    # Serialized PopulationMember
    member = models.JSONField(default=dict)

    fitness = models.FloatField(default=0.0)
    generation = models.PositiveIntegerField(default=0)
    hidden_width = models.PositiveIntegerField(default=0)
    hidden_layers = models.PositiveIntegerField(default=0)

    # Fitness weights in effect when the agent was saved
    fitness_weights = models.JSONField(default=dict)

    # Results of evaluate_vs_random, oldest first
    evaluations = models.JSONField(default=list, blank=True)

    starred = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'saved_agents'
        ordering = ['-starred', '-created_at']

    def __str__(self):
        return f"{self.name} ({self.fitness:.1f})"

    @property
    def latest_evaluation(self):
        return self.evaluations[-1] if self.evaluations else None
