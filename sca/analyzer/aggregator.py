"""Flatten analyzed forests into dead entities and apply the threshold gate."""
from typing import Callable, Iterable, Iterator, List, Optional

from sca.errors import ThresholdExceededError
from .models import AnalyzedEntity


def iter_entities(*forests: Iterable[AnalyzedEntity]) -> Iterator[AnalyzedEntity]:
    """Pre-order over every entity of every forest, forests in the given order."""
    for forest in forests:
        stack = list(reversed(list(forest)))
        while stack:
            entity = stack.pop()
            yield entity
            stack.extend(reversed(entity.children))


def _collect(forests, predicate: Callable[[AnalyzedEntity], bool]) -> List[AnalyzedEntity]:
    return [entity for entity in iter_entities(*forests) if predicate(entity)]


def collect_dead(*forests: Iterable[AnalyzedEntity]) -> List[AnalyzedEntity]:
    """Entities with zero references at any depth, parents before their children."""
    return _collect(forests, lambda entity: entity.is_dead)


def collect_issues(*forests: Iterable[AnalyzedEntity]) -> List[AnalyzedEntity]:
    """Entities carrying at least one reason (dead code or useless prefix)."""
    return _collect(forests, lambda entity: bool(entity.reasons))


def check_threshold(dead_count: int, threshold: Optional[int]) -> None:
    """Fail the run when the dead-entity count strictly exceeds the threshold.

    Raises:
        ThresholdExceededError: If threshold is set and exceeded
    """
    if threshold is not None and dead_count > threshold:
        raise ThresholdExceededError(dead_count, threshold)
