"""Correlate discovered declarations with language-server reference counts."""
from typing import List, Optional, Sequence

from .models import AnalyzedEntity, DiscoveredEntity


def has_useless_prefix(name: str, parent_name: Optional[str]) -> bool:
    """True when ``name`` repeats its enclosing declaration's name as a prefix."""
    if not parent_name or not name:
        return False
    return name.lower().startswith(parent_name.lower())


def adjusted_references(raw_count: Optional[int]) -> int:
    """Drop the declaration itself from the server's count.

    Exactly one location is subtracted even when the declaration was not
    among the returned locations, so a lookup that lands off the name can
    undercount by one.
    """
    return max(0, (raw_count or 0) - 1)


class LivenessCorrelator:
    """Ask the language server about every discovered declaration of a file.

    The client only needs ``async references(file_path, position)`` returning
    the number of locations (declaration included) or None. Queries are
    awaited one by one in pre-order; the file must already be opened with the
    server.
    """

    def __init__(self, client):
        self.client = client

    async def correlate(self, file_path: str, entities: Sequence[DiscoveredEntity],
                        parent: Optional[DiscoveredEntity] = None) -> List[AnalyzedEntity]:
        analyzed = []
        for entity in entities:
            raw_count = await self.client.references(file_path, entity.position)
            children = await self.correlate(file_path, entity.children, entity)
            analyzed.append(AnalyzedEntity(
                name=entity.name,
                node_type=entity.node_type,
                position=entity.position,
                file_path=str(file_path),
                references=adjusted_references(raw_count),
                has_useless_prefix=has_useless_prefix(entity.name, parent.name if parent else None),
                children=tuple(children),
            ))
        return analyzed
