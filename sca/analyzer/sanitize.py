"""Source clean-up applied before parsing and before handing text to the server.

The same sanitized text is parsed and opened with the language server, so
positions stay consistent between the two. Replacing every non-ASCII
character with a single space keeps tree-sitter byte columns equal to LSP
character columns.
"""
import re

LINE_COMMENTS = re.compile(r'//[^\r\n]*')
BLOCK_COMMENTS = re.compile(r'/\*[\s\S]*?\*/')
CONSOLE_LOGS = re.compile(r'console\.log\([^)]*\);\s*')
NON_ASCII = re.compile(r'[^\x00-\x7f]')


def sanitize_source(source: str) -> str:
    """Strip comments and console.log calls, blank out non-ASCII characters."""
    text = LINE_COMMENTS.sub('', source)
    text = BLOCK_COMMENTS.sub('', text)
    text = CONSOLE_LOGS.sub('', text)
    return NON_ASCII.sub(' ', text)
