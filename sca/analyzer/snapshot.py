"""Issue snapshots: record current findings and report only new ones later."""
import json
from pathlib import Path
from typing import Iterable, List

from sca.errors import SnapshotError
from .aggregator import collect_issues
from .models import AnalyzedEntity


def generate_snapshot(entities: Iterable[AnalyzedEntity], path: str | Path) -> List[AnalyzedEntity]:
    """Write every entity with a reason to ``path`` as JSON.

    Returns:
        The recorded issues
    """
    issues = collect_issues(entities)
    Path(path).write_text(
        json.dumps([issue.to_dict() for issue in issues], indent=2),
        encoding='utf-8',
    )
    return issues


def load_snapshot(path: str | Path) -> List[AnalyzedEntity]:
    """Read a snapshot written by generate_snapshot.

    Raises:
        SnapshotError: If the file is unreadable or malformed
    """
    try:
        data = json.loads(Path(path).read_text(encoding='utf-8'))
    except OSError as e:
        raise SnapshotError(f"Failed to read snapshot {path}: {e}")
    except json.JSONDecodeError as e:
        raise SnapshotError(f"Failed to parse snapshot {path}: {e}")

    if not isinstance(data, list):
        raise SnapshotError(f"Snapshot {path} must contain a JSON list")
    try:
        return [AnalyzedEntity.from_dict(item) for item in data]
    except (KeyError, TypeError, ValueError) as e:
        raise SnapshotError(f"Malformed entry in snapshot {path}: {e}")


def compare_with_snapshot(entities: Iterable[AnalyzedEntity], path: str | Path) -> List[AnalyzedEntity]:
    """Issues found now that the snapshot at ``path`` does not contain."""
    known = {issue.key for issue in load_snapshot(path)}
    return [issue for issue in collect_issues(entities) if issue.key not in known]


def format_issue(issue: AnalyzedEntity) -> str:
    row, column = issue.position
    return f"{issue.file_path}:{row}:{column} :: {issue.name} ({', '.join(issue.reasons)})"
