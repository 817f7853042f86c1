"""Configuration management for the Smells Code Analyzer.

Loads the JSON analysis config, applies environment overrides (a ``.env``
file is honoured) and provides the resolved settings to the rest of the tool.
"""
import codecs
import json
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Pattern, Tuple
from dotenv import find_dotenv, load_dotenv

from sca.analyzer.files import compile_glob
from sca.analyzer.models import NodePattern
from sca.errors import ConfigError

# Version - Managed by tools/sync_version.py (DO NOT EDIT MANUALLY)
__version__ = "1.2.0"

logger = logging.getLogger(__name__)

REQUIRED_KEYS = (
    'projectRootPath',
    'analyzeDirectory',
    'lspExecutable',
    'lspName',
    'grammar',
    'referenceNodes',
)

DEFAULT_FILE_GLOB = '**/*.*'

DEFAULT_INITIALIZATION_OPTIONS: Dict[str, Any] = {
    'tsserver': {
        'logDirectory': '.log',
        'logVerbosity': 'verbose',
        'trace': 'verbose',
    },
}

DEFAULT_CAPABILITIES: Dict[str, Any] = {
    'textDocument': {
        'synchronization': {
            'dynamicRegistration': True,
            'didSave': True,
            'willSave': True,
            'willSaveWaitUntil': True,
        },
        'references': {'dynamicRegistration': True},
        'definition': {'dynamicRegistration': True},
        'documentSymbol': {'dynamicRegistration': True},
        'publishDiagnostics': {'relatedInformation': True},
    },
    'workspace': {
        'applyEdit': True,
        'configuration': True,
        'didChangeConfiguration': {'dynamicRegistration': True},
        'workspaceFolders': True,
        'workspaceEdit': {'documentChanges': True},
    },
}


@dataclass
class Config:
    """Resolved analysis settings."""
    project_root_path: Path
    analyze_directory: Path
    lsp_executable: str
    lsp_name: str
    grammar: str
    reference_nodes: Tuple[NodePattern, ...]
    lsp_args: List[str] = field(default_factory=list)
    lsp_version: str = '0.0.0'
    lsp_capabilities: Dict[str, Any] = field(default_factory=lambda: dict(DEFAULT_CAPABILITIES))
    initialization_options: Dict[str, Any] = field(
        default_factory=lambda: dict(DEFAULT_INITIALIZATION_OPTIONS))
    file_matching_glob: str = DEFAULT_FILE_GLOB
    file_exclude_globs: List[str] = field(default_factory=list)
    content_pattern: Optional[Pattern] = None
    threshold: Optional[int] = None
    show_progress: bool = False
    show_passed: bool = False
    encoding: str = 'utf-8'
    sanitize_source: bool = True

    def __post_init__(self):
        self.file_matcher = compile_glob([self.file_matching_glob])
        self.exclude_matcher = compile_glob(self.file_exclude_globs)

    def read_source(self, path: Path) -> str:
        """Read a source file with the configured encoding.

        Decoding errors are reported and replaced; I/O errors propagate.
        """
        raw = Path(path).read_bytes()
        try:
            return raw.decode(self.encoding)
        except UnicodeDecodeError:
            logger.warning("Decoding errors while reading %s with encoding %s", path, self.encoding)
            return raw.decode(self.encoding, errors='replace')

    def summary(self) -> str:
        return (
            f"root={self.project_root_path}, analyze={self.analyze_directory}, "
            f"grammar={self.grammar}, lsp={self.lsp_executable} {self.lsp_args}"
        )


def _absolutize(base: Path, value: str) -> Path:
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = base / path
    return path.resolve()


def _resolve_encoding(label: str) -> str:
    try:
        return codecs.lookup(label).name
    except LookupError:
        logger.warning("Unknown encoding %s, falling back to utf-8", label)
        return 'utf-8'


def _parse_threshold(value: Any, source: str) -> Optional[int]:
    if value is None or value == '':
        return None
    try:
        threshold = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid threshold {value!r} in {source}")
    if threshold < 0:
        raise ConfigError(f"Threshold must be non-negative, got {threshold} in {source}")
    return threshold


def _check_patterns(patterns: Any, where: str) -> None:
    """Reject pattern entries that are not objects, at any depth."""
    if not isinstance(patterns, list):
        raise ConfigError(f"{where} must be a list of node patterns")
    for index, entry in enumerate(patterns):
        if not isinstance(entry, dict):
            raise ConfigError(f"{where}[{index}] must be an object, got {entry!r}")
        if entry.get('children') is not None:
            _check_patterns(entry['children'], f"{where}[{index}].children")


def _string_list(raw: Dict[str, Any], key: str) -> List[str]:
    value = raw.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"{key} must be a list of strings, got {value!r}")
    return list(value)


def _json_flag(raw: Dict[str, Any], key: str, default: bool) -> bool:
    value = raw.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ConfigError(f"{key} must be true or false, got {value!r}")
    return value


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def load_config(config_path: str | Path, threshold_override: Optional[int] = None) -> Config:
    """Load and validate the JSON analysis config.

    Priority for the threshold:
    1. ``threshold_override`` (CLI flag)
    2. SCA_THRESHOLD environment variable
    3. ``threshold`` key of the config file

    Args:
        config_path: Path to JSON config file
        threshold_override: Threshold given on the command line

    Returns:
        Config instance

    Raises:
        ConfigError: If the file cannot be read, is not valid JSON, misses
            required keys or carries invalid values
    """
    load_dotenv(find_dotenv(usecwd=True))

    config_path = Path(config_path)
    try:
        raw = json.loads(config_path.read_text(encoding='utf-8'))
    except OSError as e:
        raise ConfigError(f"Failed to read {config_path}: {e}")
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid configuration JSON {config_path}: {e}")

    if not isinstance(raw, dict):
        raise ConfigError(f"Configuration {config_path} must be a JSON object")

    missing = [key for key in REQUIRED_KEYS if raw.get(key) in (None, '')]
    if missing:
        raise ConfigError(f"Missing required config fields in {config_path}: {', '.join(missing)}")

    _check_patterns(raw['referenceNodes'], 'referenceNodes')
    lsp_args = _string_list(raw, 'lspArgs')
    exclude_globs = _string_list(raw, 'fileExcludeRegexps')
    show_progress = _json_flag(raw, 'showProgress', False)
    show_passed = _json_flag(raw, 'showPassed', False)
    sanitize = _json_flag(raw, 'sanitizeSource', True)

    config_dir = config_path.resolve().parent

    threshold = _parse_threshold(raw.get('threshold'), str(config_path))
    env_threshold = _parse_threshold(os.getenv('SCA_THRESHOLD'), 'SCA_THRESHOLD')
    if env_threshold is not None:
        threshold = env_threshold
    if threshold_override is not None:
        threshold = _parse_threshold(threshold_override, '--threshold')

    content_pattern = None
    if raw.get('contentMatchingRegexp'):
        try:
            content_pattern = re.compile(raw['contentMatchingRegexp'])
        except re.error as e:
            raise ConfigError(f"Invalid contentMatchingRegexp: {e}")

    return Config(
        project_root_path=_absolutize(config_dir, raw['projectRootPath']),
        analyze_directory=_absolutize(config_dir, raw['analyzeDirectory']),
        lsp_executable=raw['lspExecutable'],
        lsp_name=raw['lspName'],
        grammar=raw['grammar'],
        reference_nodes=NodePattern.from_config(raw['referenceNodes']),
        lsp_args=lsp_args,
        lsp_version=raw.get('lspVersion') or '0.0.0',
        lsp_capabilities=raw.get('lspCapabilities') or dict(DEFAULT_CAPABILITIES),
        initialization_options=raw.get('initializationOptions', dict(DEFAULT_INITIALIZATION_OPTIONS)),
        file_matching_glob=raw.get('fileMatchingRegexp') or DEFAULT_FILE_GLOB,
        file_exclude_globs=exclude_globs,
        content_pattern=content_pattern,
        threshold=threshold,
        show_progress=_env_flag('SCA_SHOW_PROGRESS', show_progress),
        show_passed=_env_flag('SCA_SHOW_PASSED', show_passed),
        encoding=_resolve_encoding(raw.get('encoding') or 'utf-8'),
        sanitize_source=sanitize,
    )
