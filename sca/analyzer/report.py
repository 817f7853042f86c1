"""Hierarchical text report for one file's analyzed declarations."""
from typing import List, Optional, Sequence

from .models import AnalyzedEntity

PASSED_MARK = '✅'
FAILED_MARK = '💩'
SEPARATOR = '-' * 80


def build_report(entities: Sequence[AnalyzedEntity], show_all: bool = False) -> str:
    """Render a file's entities, framed by the file path and a separator.

    Args:
        entities: Top-level analyzed entities of one file
        show_all: Render clean branches too

    Returns:
        Report text, or an empty string when there is nothing to show
    """
    sections = [
        section for section in (render_entity(e, show_all) for e in entities)
        if section is not None
    ]
    if not sections:
        return ''

    lines = [entities[0].file_path]
    lines.extend(sections)
    lines.append(SEPARATOR)
    return '\n'.join(lines) + '\n'


def render_entity(entity: AnalyzedEntity, show_all: bool = False, depth: int = 0) -> Optional[str]:
    """Render one entity and its shown descendants, or None if the branch is clean."""
    if not show_all and not entity.has_issues:
        return None

    reasons = entity.reasons
    status = FAILED_MARK if reasons else PASSED_MARK
    row, column = entity.position
    padding = '\t' * depth
    lines: List[str] = [
        f"{padding}[{status}] {entity.name}:{row}:{column} :: ({', '.join(reasons)})"
    ]

    for child in entity.children:
        child_text = render_entity(child, show_all, depth + 1)
        if child_text is not None:
            lines.append(child_text)

    return '\n'.join(lines)
