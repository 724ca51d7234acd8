import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Optional, Sequence, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass
class StepOutcome(Generic[T]):
    """Value or error of one best-effort step"""
    name: str
    value: Optional[T] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def value_or_none(self) -> Optional[T]:
        return self.value if self.ok else None


def attempt(name: str, fn: Callable[..., T], *args, **kwargs) -> StepOutcome[T]:
    """Run fn and capture its failure instead of raising it"""
    try:
        return StepOutcome(name, value=fn(*args, **kwargs))
    except Exception as e:
        logger.warning(f"Step '{name}' failed: {e}")
        return StepOutcome(name, error=e)


def collect_best_effort(steps: Sequence[Tuple[str, Callable[[], Any]]]) -> Dict[str, StepOutcome]:
    """Run every step in order; a failing step never stops the next one"""
    return {name: attempt(name, fn) for name, fn in steps}
