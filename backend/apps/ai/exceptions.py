"""Exceptions raised by the training pipeline."""


class EvolutionError(Exception):
    """Base class for evolution and agent-store errors."""


class IncompatibleTopologyError(EvolutionError):
    """Two weight sets (or a weight set and a topology) do not share layer shapes."""


class AgentLoadError(EvolutionError):
    """A stored agent is missing or cannot be turned into a population member."""
