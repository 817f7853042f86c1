"""File discovery: glob and content filtering over the analyzed directory."""
import logging
import os
import re
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Pattern, Set

from sca.errors import ConfigError

logger = logging.getLogger(__name__)


def _translate_glob(pattern: str) -> str:
    """Translate a glob (``**``, ``*``, ``?``, ``{a,b}``) to a regex source."""
    out = []
    i = 0
    depth = 0
    while i < len(pattern):
        char = pattern[i]
        if pattern.startswith('**/', i):
            out.append('(?:.*/)?')
            i += 3
            continue
        if pattern.startswith('**', i):
            out.append('.*')
            i += 2
            continue
        if char == '*':
            out.append('[^/]*')
        elif char == '?':
            out.append('[^/]')
        elif char == '{':
            out.append('(?:')
            depth += 1
        elif char == '}' and depth:
            out.append(')')
            depth -= 1
        elif char == ',' and depth:
            out.append('|')
        else:
            out.append(re.escape(char))
        i += 1
    return ''.join(out)


def compile_glob(patterns: Iterable[str]) -> Optional[Pattern]:
    """Compile globs into one regex matching posix relative paths.

    Returns:
        Compiled pattern, or None when ``patterns`` is empty

    Raises:
        ConfigError: If a glob cannot be compiled
    """
    sources = [_translate_glob(p) for p in patterns]
    if not sources:
        return None
    try:
        return re.compile('(?:' + '|'.join(f'(?:{s})' for s in sources) + r')\Z')
    except re.error as e:
        raise ConfigError(f"Invalid glob in {list(patterns)}: {e}")


def _relative(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


def _matches(matcher: Optional[Pattern], relative: str) -> bool:
    return matcher is not None and matcher.match(relative) is not None


def _walk_files(root: Path) -> Iterator[Path]:
    """Regular files under root, hidden ones included, symlinks not followed."""
    for dirpath, dirnames, filenames in os.walk(root, followlinks=False):
        dirnames.sort()
        for filename in sorted(filenames):
            path = Path(dirpath) / filename
            if path.is_file() and not path.is_symlink():
                yield path


def _accepts(config, path: Path) -> bool:
    relative = _relative(path, config.analyze_directory)
    if not _matches(config.file_matcher, relative):
        logger.debug("Skip file not matching glob: %s", path)
        return False
    if _matches(config.exclude_matcher, relative):
        logger.debug("Skip file excluded by glob: %s", path)
        return False
    if config.content_pattern is not None:
        content = config.read_source(path)
        if not config.content_pattern.search(content):
            logger.debug("Skip file not matching content pattern: %s", path)
            return False
    return True


def collect_files(config, only: Optional[Set[Path]] = None) -> List[Path]:
    """Select the files to analyze, sorted and de-duplicated.

    Args:
        config: Loaded Config
        only: Explicit candidate set (e.g. from --files-from); each must live
            under the analyzed directory

    Returns:
        Absolute file paths
    """
    if only is None:
        candidates = _walk_files(config.analyze_directory)
    else:
        candidates = []
        for path in only:
            if not Path(path).is_relative_to(config.analyze_directory):
                logger.debug("Skip file outside analyze directory: %s", path)
                continue
            candidates.append(Path(path))

    return sorted({path for path in candidates if _accepts(config, path)})


def files_count(config) -> int:
    """Number of files matching the file glob; used for progress display only."""
    return sum(
        1 for path in _walk_files(config.analyze_directory)
        if _matches(config.file_matcher, _relative(path, config.analyze_directory))
    )


def load_target_file_set(list_path: str | Path) -> Set[Path]:
    """Read a newline-separated list of files to analyze.

    Relative entries resolve against the list file's directory; entries that
    do not exist are skipped.
    """
    list_path = Path(list_path)
    list_dir = list_path.resolve().parent
    targets = set()

    for index, line in enumerate(list_path.read_text(encoding='utf-8').splitlines(), start=1):
        entry = line.strip()
        if not entry:
            continue
        candidate = Path(entry)
        if not candidate.is_absolute():
            candidate = list_dir / candidate
        if not candidate.exists():
            logger.debug("Skipping target '%s' (line %d): not found", entry, index)
            continue
        targets.add(candidate.resolve())

    return targets
