"""
Saved-agent store.

Thin service layer over the SavedAgent model. Lookups by id raise
AgentLoadError rather than Django's DoesNotExist so callers outside
the ORM only deal with one exception type.
"""
import logging
import uuid
from typing import Any, Dict, List, Optional, Union

from django.core.exceptions import ValidationError

from .exceptions import AgentLoadError
from .fitness import FitnessWeights
from .models import SavedAgent

logger = logging.getLogger(__name__)

AgentId = Union[str, uuid.UUID]


def _get(agent_id: AgentId) -> SavedAgent:
    try:
        return SavedAgent.objects.get(pk=agent_id)
    except (SavedAgent.DoesNotExist, ValidationError, ValueError) as e:
        raise AgentLoadError(f"No saved agent with id {agent_id}") from e


def save_agent(member, name: str, fitness_weights: Optional[FitnessWeights] = None) -> SavedAgent:
    """Store a population member under ``name``."""
    weights = fitness_weights or FitnessWeights()
    return SavedAgent.objects.create(
        name=name,
        member=member.to_dict(),
        fitness=member.fitness,
        generation=member.generation,
        hidden_width=member.topology.hidden_width,
        hidden_layers=member.topology.hidden_layers,
        fitness_weights=weights.to_dict(),
    )


def load_agent(agent_id: AgentId) -> SavedAgent:
    """
    Fetch a saved agent.

    Raises:
        AgentLoadError: If no agent has this id or the record has no weights.
    """
    record = _get(agent_id)
    if not (record.member or {}).get('weights'):
        raise AgentLoadError(f"Saved agent {agent_id} has no weights")
    return record


def load_member(agent_id: AgentId):
    """Fetch a saved agent and rebuild its PopulationMember."""
    from .evolution.population import PopulationMember

    return PopulationMember.from_dict(load_agent(agent_id).member)


def delete_agent(agent_id: AgentId) -> None:
    record = _get(agent_id)
    record.delete()
    logger.info("Deleted saved agent '%s' (%s)", record.name, agent_id)


def toggle_star(agent_id: AgentId) -> bool:
    """Flip the starred flag. Returns the new value."""
    record = _get(agent_id)
    record.starred = not record.starred
    record.save(update_fields=['starred'])
    return record.starred


def list_agents(starred_only: bool = False) -> List[SavedAgent]:
    """Saved agents, starred first, newest first."""
    queryset = SavedAgent.objects.all()
    if starred_only:
        queryset = queryset.filter(starred=True)
    return list(queryset)


def add_evaluation(agent_id: AgentId, evaluation: Dict[str, Any]) -> SavedAgent:
    """Append one evaluation result to an agent's record."""
    record = _get(agent_id)
    record.evaluations = list(record.evaluations or []) + [evaluation]
    record.save(update_fields=['evaluations'])
    return record


def evaluate_agent(agent_id: AgentId, num_matches: int = 100, **kwargs):
    """
    Evaluate a saved agent against random opponents and record the result.

    Extra keyword arguments are passed to evaluate_vs_random.
    """
    from .evaluation import evaluate_vs_random

    member = load_member(agent_id)
    result = evaluate_vs_random(member, num_matches=num_matches, **kwargs)
    add_evaluation(agent_id, result.to_dict())
    logger.info(
        "Evaluated %s: %d/%d wins (%.1f%%)",
        agent_id, result.wins, result.matches, 100 * result.win_rate,
    )
    return result
