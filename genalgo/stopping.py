"""
Stop conditions, checked against the most recently completed generation
before a new one is bred.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from .config import FITNESS_STATIC, GENERATION_COUNT, GAConfig
from .exceptions import ConfigurationError

if TYPE_CHECKING:
    from .engine import RunState


class StopCondition(ABC):
    name = ''

    @abstractmethod
    def should_stop(self, state: 'RunState') -> bool:
        """True when the run should terminate."""

    @abstractmethod
    def describe(self) -> str:
        """Human-readable stop reason."""


class GenerationCountStop(StopCondition):
    """Stop once the generation counter reaches max_generation_count."""
    name = GENERATION_COUNT

    def __init__(self, max_generation_count: int):
        self.max_generation_count = max_generation_count

    def should_stop(self, state: 'RunState') -> bool:
        return state.generation >= self.max_generation_count

    def describe(self) -> str:
        return f"Reached {self.max_generation_count} generations"


class FitnessStaticStop(StopCondition):
    """
    Stop once the stagnation counter exceeds max_static_generations.

    The counter is cumulative over the whole run (see FitnessHistory), so this
    fires after max_static_generations + 1 non-regressing generations in
    total, not necessarily consecutive ones.
    """
    name = FITNESS_STATIC

    def __init__(self, max_static_generations: int):
        self.max_static_generations = max_static_generations

    def should_stop(self, state: 'RunState') -> bool:
        return state.history.static_generations > self.max_static_generations

    def describe(self) -> str:
        return f"Max fitness did not regress for more than {self.max_static_generations} generations"


def make_stop_condition(config: GAConfig) -> StopCondition:
    """Build the stop condition named in a resolved config."""
    if config.stop_condition == GENERATION_COUNT:
        return GenerationCountStop(config.max_generation_count)
    if config.stop_condition == FITNESS_STATIC:
        return FitnessStaticStop(config.max_static_generations)
    raise ConfigurationError(f"Unknown stop_condition {config.stop_condition!r}")
