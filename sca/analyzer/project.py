"""Per-file pipeline and whole-project run.

Every file goes through read -> sanitize -> discover -> open with the
language server -> correlate -> close. Files are handled strictly one after
another in discovery order.
"""
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Set

from rich.console import Console

from sca.errors import NewIssuesFoundError
from sca.lsp.client import LspClient
from .aggregator import check_threshold, collect_dead
from .correlator import LivenessCorrelator
from .extractor import EntityExtractor
from .files import collect_files, files_count
from .models import AnalyzedEntity
from .parser import LanguageParser
from .report import build_report
from .sanitize import sanitize_source
from .snapshot import compare_with_snapshot, format_issue, generate_snapshot

logger = logging.getLogger(__name__)


def _echo(console: Console, text: str) -> None:
    """Print plain text (paths, declaration names) without markup or wrapping."""
    console.print(text, markup=False, highlight=False, emoji=False, soft_wrap=True)


class ProjectAnalyzer:
    """Analyze files one by one against an opened language server client."""

    def __init__(self, config, client):
        """Initialize analyzer.

        Args:
            config: Loaded Config
            client: Started LspClient (or any object with the same coroutine API)
        """
        self.config = config
        self.client = client
        self.parser = LanguageParser.for_grammar(config.grammar)
        self.extractor = EntityExtractor(config.reference_nodes)
        self.correlator = LivenessCorrelator(client)
        self.version = 1

    def find_entities(self, source: str):
        if self.parser is None:
            logger.error("Grammar %s not found, no declarations extracted", self.config.grammar)
            return []
        tree = self.parser.parse_source(source.encode('utf-8'))
        return self.extractor.extract_entities(tree)

    async def analyze_file(self, path: Path) -> List[AnalyzedEntity]:
        """Analyze one file. Read errors propagate."""
        source = self.config.read_source(path)
        if self.config.sanitize_source:
            source = sanitize_source(source)
        entities = self.find_entities(source)

        await self.client.did_open(path, source, self.version, self.config.lsp_name)
        self.version += 1
        try:
            analyzed = await self.correlator.correlate(str(path), entities)
        finally:
            await self.client.did_close(path)
        return analyzed


@dataclass
class RunResult:
    """Outcome of a full run."""
    files: List[Path] = field(default_factory=list)
    entities: List[AnalyzedEntity] = field(default_factory=list)
    dead: List[AnalyzedEntity] = field(default_factory=list)
    new_issues: List[AnalyzedEntity] = field(default_factory=list)
    elapsed: float = 0.0


async def analyze_files(analyzer: ProjectAnalyzer, files: List[Path], console: Console,
                        show_all: bool = False, show_progress: bool = False) -> RunResult:
    """Analyze files in order, printing each file's report as soon as it is ready."""
    result = RunResult(files=list(files))
    for index, path in enumerate(files):
        if show_progress:
            _echo(console, f"Analyze [{index + 1}/{len(files)}] {path}")

        entities = await analyzer.analyze_file(path)
        report = build_report(entities, show_all)
        if report:
            _echo(console, report)

        result.entities.extend(entities)
        result.dead.extend(collect_dead(entities))
    return result


async def run_analysis(config, console: Console, only_files: Optional[Set[Path]] = None,
                       show_all: Optional[bool] = None, generate_snapshot_path: Optional[Path] = None,
                       compare_snapshot_path: Optional[Path] = None) -> RunResult:
    """Run the whole analysis and apply the snapshot and threshold gates.

    Raises:
        OracleError: If the language server fails
        NewIssuesFoundError: If issues absent from the compared snapshot were found
        ThresholdExceededError: If dead entities exceed the configured threshold
    """
    start_time = time.perf_counter()
    if show_all is None:
        show_all = config.show_passed

    files = collect_files(config, only_files)
    console.print(f"FILES TO ANALYZE: {len(files)}")
    if only_files is None and config.content_pattern is not None:
        logger.info("%d of %d files matching the glob contain the content pattern",
                    len(files), files_count(config))

    client = await LspClient.start(config)
    try:
        analyzer = ProjectAnalyzer(config, client)
        result = await analyze_files(analyzer, files, console, show_all, config.show_progress)
        await client.shutdown()
    finally:
        # Kills the server unless shutdown already reaped it
        await client.close()

    result.elapsed = time.perf_counter() - start_time
    console.print(f"Found {len(result.dead)} dead entities")

    if generate_snapshot_path is not None:
        generate_snapshot(result.entities, generate_snapshot_path)
        _echo(console, f"Snapshot saved to {generate_snapshot_path}")

    if compare_snapshot_path is not None:
        result.new_issues = compare_with_snapshot(result.entities, compare_snapshot_path)
        if result.new_issues:
            console.print("\nNew errors found:")
            for issue in result.new_issues:
                _echo(console, format_issue(issue))
            raise NewIssuesFoundError(result.new_issues)
        console.print("No new errors found")

    check_threshold(len(result.dead), config.threshold)

    console.print(f"Analyze took {result.elapsed:.3f} s")
    return result
