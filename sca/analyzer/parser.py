"""Tree-sitter parser for the grammars a configuration may name."""
import logging
from typing import Callable, Dict, Optional
from tree_sitter import Language, Parser, Tree
import tree_sitter_javascript as tsjavascript
import tree_sitter_python as tspython
import tree_sitter_typescript as tstypescript

logger = logging.getLogger(__name__)


class LanguageParser:
    """Multi-grammar parser using tree-sitter v0.22+ API."""

    GRAMMARS: Dict[str, Callable[[], object]] = {
        'typescript': tstypescript.language_typescript,
        'tsx': tstypescript.language_tsx,
        'javascript': tsjavascript.language,
        'python': tspython.language,
    }

    def __init__(self, grammar: str):
        """Initialize parser for a grammar name (typescript, tsx, javascript, python).

        Args:
            grammar: Grammar name, case-insensitive

        Raises:
            ValueError: If grammar is not supported
        """
        self.grammar = grammar.lower()
        self.parser = self._create_parser()

    def _create_parser(self) -> Parser:
        """Factory method using Parser(Language(capsule)) syntax.

        Raises:
            ValueError: If grammar is not supported
        """
        factory = self.GRAMMARS.get(self.grammar)
        if factory is None:
            raise ValueError(f"Unsupported grammar: {self.grammar}")
        return Parser(Language(factory()))

    def parse_source(self, source_code: bytes) -> Tree:
        """Parse in-memory source and return the tree-sitter Tree."""
        return self.parser.parse(source_code)

    @classmethod
    def is_supported(cls, grammar: str) -> bool:
        return grammar.lower() in cls.GRAMMARS

    @classmethod
    def for_grammar(cls, grammar: str) -> Optional['LanguageParser']:
        """Create parser for a configured grammar.

        Returns:
            LanguageParser instance, or None (after logging) if the grammar is unknown
        """
        if not cls.is_supported(grammar):
            logger.error("Grammar %s not found (supported: %s)", grammar, ', '.join(sorted(cls.GRAMMARS)))
            return None
        return cls(grammar)
