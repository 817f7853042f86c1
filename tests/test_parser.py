"""Tests for grammar selection."""
import pytest

from sca.analyzer.parser import LanguageParser


@pytest.mark.parametrize("grammar, source, root_type", [
    ('typescript', b'interface A { b: string; }', 'program'),
    ('TSX', b'const v = <div/>;', 'program'),
    ('javascript', b'function a() {}', 'program'),
    ('python', b'def a():\n    pass\n', 'module'),
])
def test_supported_grammars(grammar, source, root_type):
    tree = LanguageParser(grammar).parse_source(source)
    assert tree.root_node.type == root_type
    assert not tree.root_node.has_error


def test_unknown_grammar_raises():
    with pytest.raises(ValueError, match="Unsupported grammar"):
        LanguageParser('cobol')


def test_for_grammar_unknown_returns_none(caplog):
    assert LanguageParser.for_grammar('cobol') is None
    assert 'cobol' in caplog.text


def test_for_grammar_known():
    assert LanguageParser.for_grammar('TypeScript').grammar == 'typescript'
