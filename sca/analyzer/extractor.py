"""Pattern-driven extraction of named declarations from syntax trees."""
import logging
from typing import Iterator, List, Optional, Sequence
from tree_sitter import Node, Tree

from .models import DiscoveredEntity, NodePattern, Position

logger = logging.getLogger(__name__)


def walk_subtree(root: Node, include_root: bool = True) -> Iterator[Node]:
    """Pre-order walk over ``root``'s subtree with a tree cursor.

    Each node is yielded exactly once. With ``include_root=False`` the walk
    starts at the first child and ``root`` itself is never yielded.
    """
    cursor = root.walk()
    if not include_root and not cursor.goto_first_child():
        return

    while True:
        yield cursor.node

        if cursor.goto_first_child():
            continue
        if cursor.goto_next_sibling():
            continue

        # Climb until an ancestor has a next sibling; stop once back at root.
        while True:
            if not cursor.goto_parent() or cursor.node == root:
                return
            if cursor.goto_next_sibling():
                break


def find_descendant(node: Node, node_type: str) -> Optional[Node]:
    """Return the first node of ``node_type`` in pre-order, ``node`` included."""
    for candidate in walk_subtree(node):
        if candidate.type == node_type:
            return candidate
    return None


def node_text(node: Node) -> str:
    text = node.text
    if isinstance(text, bytes):
        text = text.decode('utf-8', errors='replace')
    return (text or '').strip()


class EntityExtractor:
    """Extract declarations described by a set of NodePatterns."""

    def __init__(self, patterns: Sequence[NodePattern]):
        """Initialize extractor.

        Args:
            patterns: Top-level patterns, active across the whole tree
        """
        self.patterns = tuple(patterns)

    def extract_entities(self, tree: Tree) -> List[DiscoveredEntity]:
        """Discover every declaration in ``tree`` in source order."""
        return self.discover(tree.root_node, self.patterns)

    def discover(self, root: Node, patterns: Sequence[NodePattern],
                 bounded: bool = False) -> List[DiscoveredEntity]:
        """Apply ``patterns`` to every node reachable from ``root``.

        Args:
            root: Walk root
            patterns: Active pattern set
            bounded: Scope the walk to root's descendants, skipping root itself

        Returns:
            Entities in visitation order; nested entities hang off their parent
        """
        found = []
        for node in walk_subtree(root, include_root=not bounded):
            found.extend(self._match(node, patterns))
        return found

    def _match(self, node: Node, patterns: Sequence[NodePattern]) -> Iterator[DiscoveredEntity]:
        for pattern in patterns:
            if node.type != pattern.node_type:
                continue

            if pattern.name_ref_type is None:
                name_node = node
            else:
                name_node = find_descendant(node, pattern.name_ref_type)
                if name_node is None:
                    logger.debug(
                        "No %s inside %s at %s, skipping",
                        pattern.name_ref_type, node.type, tuple(node.start_point),
                    )
                    continue

            children = ()
            if pattern.children:
                children = tuple(self.discover(node, pattern.children, bounded=True))

            row, column = name_node.start_point
            yield DiscoveredEntity(
                name=node_text(name_node),
                node_type=pattern.node_type,
                position=Position(row, column),
                children=children,
            )
