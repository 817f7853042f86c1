"""Data model for patterns, discovered declarations and analyzed declarations."""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, NamedTuple, Optional, Tuple


class Position(NamedTuple):
    """Zero-based row/column of a name node, as reported by tree-sitter."""
    row: int
    column: int


@dataclass(frozen=True)
class NodePattern:
    """Declarative rule describing which syntax nodes are named declarations.

    Attributes:
        node_type: Syntax node kind that marks a declaration site.
        name_ref_type: Kind of the first descendant holding the name. When
            unset the matched node's own text is the name.
        children: Patterns applied only inside the matched node's subtree.
    """
    node_type: str
    name_ref_type: Optional[str] = None
    children: Tuple['NodePattern', ...] = ()

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> Optional['NodePattern']:
        """Build a pattern from its config shape ``{"type", "refType", "children"}``.

        Returns:
            The pattern, or None when ``type`` is missing (the whole subtree
            of that entry is dropped).
        """
        node_type = raw.get('type')
        if not node_type:
            return None
        children = [cls.from_dict(child) for child in raw.get('children') or []]
        return cls(
            node_type=node_type,
            name_ref_type=raw.get('refType'),
            children=tuple(child for child in children if child is not None),
        )

    @classmethod
    def from_config(cls, raw_patterns: List[Dict[str, Any]]) -> Tuple['NodePattern', ...]:
        patterns = (cls.from_dict(raw) for raw in raw_patterns)
        return tuple(p for p in patterns if p is not None)


@dataclass(frozen=True)
class DiscoveredEntity:
    """A declaration site found in one file, before asking the language server."""
    name: str
    node_type: str
    position: Position
    children: Tuple['DiscoveredEntity', ...] = ()


@dataclass(frozen=True)
class AnalyzedEntity:
    """A discovered declaration annotated with its usage count and naming smell."""
    name: str
    node_type: str
    position: Position
    file_path: str
    references: int
    has_useless_prefix: bool = False
    children: Tuple['AnalyzedEntity', ...] = field(default=())

    @property
    def is_dead(self) -> bool:
        return self.references == 0

    @property
    def reasons(self) -> List[str]:
        reasons = []
        if self.is_dead:
            reasons.append('dead code')
        if self.has_useless_prefix:
            reasons.append('useless prefix')
        return reasons

    @property
    def has_issues(self) -> bool:
        """True when this entity or any of its descendants has a reason."""
        stack = [self]
        while stack:
            entity = stack.pop()
            if entity.is_dead or entity.has_useless_prefix:
                return True
            stack.extend(entity.children)
        return False

    @property
    def key(self) -> Tuple[str, str, int, int]:
        """Identity used to match issues between runs."""
        return (str(Path(self.file_path)), self.name, self.position.row, self.position.column)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'node_type': self.node_type,
            'name': self.name,
            'start_position': {'row': self.position.row, 'column': self.position.column},
            'file_path': self.file_path,
            'references': self.references,
            'parent_name_prefix': self.has_useless_prefix,
            'children': [child.to_dict() for child in self.children],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AnalyzedEntity':
        start = data['start_position']
        return cls(
            name=data['name'],
            node_type=data.get('node_type', ''),
            position=Position(int(start['row']), int(start['column'])),
            file_path=data['file_path'],
            references=int(data['references']),
            has_useless_prefix=bool(data.get('parent_name_prefix', False)),
            children=tuple(cls.from_dict(child) for child in data.get('children', [])),
        )
