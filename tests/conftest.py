"""Shared fixtures: a fake cursor tree, a scripted reference oracle and config helpers."""
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from sca.analyzer.models import NodePattern
from sca.config import Config

FIXTURES_DIR = Path(__file__).parent / 'fixtures'
FAKE_SERVER = FIXTURES_DIR / 'fake_lsp_server.py'

INTERFACE_PATTERNS = (
    NodePattern('interface_declaration', 'type_identifier', (NodePattern('property_identifier'),)),
)


class FakeNode:
    """Minimal stand-in for tree_sitter.Node."""

    def __init__(self, type: str, text: str = '', start_point=(0, 0), children=()):
        self.type = type
        self.text = text.encode('utf-8')
        self.start_point = start_point
        self.children = list(children)
        self.parent = None
        for child in self.children:
            child.parent = self

    def walk(self):
        return FakeCursor(self)

    def __repr__(self):
        return f"FakeNode({self.type!r}, {self.text.decode()!r})"


class FakeCursor:
    """Cursor confined to the subtree it was created from, like TreeCursor."""

    def __init__(self, root: FakeNode):
        self.root = root
        self.node = root

    def goto_first_child(self) -> bool:
        if not self.node.children:
            return False
        self.node = self.node.children[0]
        return True

    def goto_next_sibling(self) -> bool:
        if self.node is self.root or self.node.parent is None:
            return False
        siblings = self.node.parent.children
        index = next(i for i, sibling in enumerate(siblings) if sibling is self.node)
        if index + 1 >= len(siblings):
            return False
        self.node = siblings[index + 1]
        return True

    def goto_parent(self) -> bool:
        if self.node is self.root or self.node.parent is None:
            return False
        self.node = self.node.parent
        return True


class FakeTree:
    def __init__(self, root_node: FakeNode):
        self.root_node = root_node


class ScriptedOracle:
    """Reference oracle answering from a list of raw counts, in query order.

    Also records the document lifecycle so tests can check ordering.
    """

    def __init__(self, counts: Optional[List[Optional[int]]] = None, default: Optional[int] = 2):
        self.counts = list(counts or [])
        self.default = default
        self.queries = []
        self.events = []

    async def did_open(self, path, text, version, language_id):
        self.events.append(('open', str(path), version, language_id))

    async def did_close(self, path):
        self.events.append(('close', str(path)))

    async def references(self, path, position):
        self.queries.append((str(path), tuple(position)))
        self.events.append(('references', str(path), tuple(position)))
        if self.counts:
            return self.counts.pop(0)
        return self.default


@pytest.fixture(autouse=True)
def restore_root_logger():
    """configure_logging replaces root handlers; put them back after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def oracle():
    return ScriptedOracle()


def fake_server_config(project_dir: Path, **overrides) -> Dict:
    """JSON config pointing at the scripted stdio language server."""
    raw = {
        'projectRootPath': str(project_dir),
        'analyzeDirectory': str(project_dir),
        'lspExecutable': sys.executable,
        'lspArgs': [str(FAKE_SERVER)],
        'lspName': 'typescript',
        'grammar': 'typescript',
        'fileMatchingRegexp': '**/*.ts',
        'referenceNodes': [
            {
                'type': 'interface_declaration',
                'refType': 'type_identifier',
                'children': [{'type': 'property_identifier'}],
            },
        ],
    }
    raw.update(overrides)
    return raw


def write_config(path: Path, raw: Dict) -> Path:
    path.write_text(json.dumps(raw), encoding='utf-8')
    return path


def make_config(project_dir: Path, **overrides) -> Config:
    values = dict(
        project_root_path=project_dir,
        analyze_directory=project_dir,
        lsp_executable=sys.executable,
        lsp_args=[str(FAKE_SERVER)],
        lsp_name='typescript',
        grammar='typescript',
        reference_nodes=INTERFACE_PATTERNS,
        file_matching_glob='**/*.ts',
    )
    values.update(overrides)
    return Config(**values)


USER_TS = """\
interface User {
  name: string;
  userAge: number;
  unused: boolean;
}
export const admin: User = { name: 'root', userAge: 1 };
"""


@pytest.fixture
def ts_project(tmp_path):
    """Directory with one TypeScript file and a non-matching file."""
    project = tmp_path / 'project'
    (project / 'src').mkdir(parents=True)
    (project / 'src' / 'user.ts').write_text(USER_TS, encoding='utf-8')
    (project / 'README.md').write_text('# not analyzed\n', encoding='utf-8')
    return project
