"""Tree-sitter parser for the script dialects found in component projects."""
from pathlib import Path
from typing import Iterator, Optional

from tree_sitter import Language, Node, Parser, Tree
import tree_sitter_javascript as tsjavascript
import tree_sitter_typescript as tstypescript


class LanguageParser:
    """Script parser using the tree-sitter v0.22+ API."""

    SUPPORTED_LANGUAGES = {
        '.js': 'javascript',
        '.jsx': 'javascript',
        '.mjs': 'javascript',
        '.cjs': 'javascript',
        '.ts': 'typescript',
        '.tsx': 'tsx',
    }

    # <script lang="..."> values
    SCRIPT_LANGS = {
        'js': 'javascript',
        'jsx': 'javascript',
        'ts': 'typescript',
        'tsx': 'tsx',
    }

    _cache = {}

    def __init__(self, language: str):
        """Initialize parser for given language (javascript, typescript, tsx).

        Args:
            language: One of 'javascript', 'typescript', 'tsx'

        Raises:
            ValueError: If language is not supported
        """
        self.language = language
        self.parser = self._create_parser()

    def _create_parser(self) -> Parser:
        if self.language == 'javascript':
            lang = Language(tsjavascript.language())
        elif self.language == 'typescript':
            lang = Language(tstypescript.language_typescript())
        elif self.language == 'tsx':
            lang = Language(tstypescript.language_tsx())
        else:
            raise ValueError(f"Unsupported language: {self.language}")

        return Parser(lang)

    def parse(self, source_code: str | bytes) -> Tree:
        if isinstance(source_code, str):
            source_code = source_code.encode('utf-8')
        return self.parser.parse(source_code)

    @classmethod
    def for_language(cls, language: str) -> 'LanguageParser':
        """Shared parser instance per language."""
        if language not in cls._cache:
            cls._cache[language] = cls(language)
        return cls._cache[language]

    @classmethod
    def from_file_extension(cls, file_path: str | Path) -> Optional['LanguageParser']:
        """Create parser based on file extension.

        Returns:
            LanguageParser instance, or None if extension not supported
        """
        language = cls.SUPPORTED_LANGUAGES.get(Path(file_path).suffix.lower())
        if language:
            return cls.for_language(language)
        return None

    @classmethod
    def from_script_lang(cls, lang: Optional[str]) -> 'LanguageParser':
        """Parser for a Vue ``<script lang="...">`` block (JavaScript by default)."""
        return cls.for_language(cls.SCRIPT_LANGS.get((lang or 'js').lower(), 'javascript'))


def node_text(node: Optional[Node]) -> str:
    if node is None or node.text is None:
        return ''
    return node.text.decode('utf-8', errors='replace')


def strip_quotes(text: str) -> str:
    return text.strip('"\'`')


def walk(node: Node) -> Iterator[Node]:
    """Depth-first pre-order traversal over named nodes."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.named_children))


def first_string(node: Optional[Node]) -> str:
    """Value of the first string literal at or below a node."""
    if node is None:
        return ''
    for child in walk(node):
        if child.type == 'string':
            return strip_quotes(node_text(child))
        if child.type == 'template_string' and not any(
                c.type == 'template_substitution' for c in child.named_children):
            return strip_quotes(node_text(child))
    return ''


def unwrap(node: Optional[Node]) -> Optional[Node]:
    """Strip parentheses, ``as``/``satisfies`` casts and non-null assertions."""
    while node is not None and node.type in (
            'parenthesized_expression', 'as_expression', 'satisfies_expression', 'non_null_expression'):
        node = node.named_children[0] if node.named_children else None
    return node


def property_key(pair: Node) -> str:
    """Name of an object pair key ('foo', "foo" and [foo] alike)."""
    key = pair.child_by_field_name('key')
    if key is None:
        return ''
    if key.type == 'computed_property_name':
        return strip_quotes(node_text(key).strip('[]'))
    return strip_quotes(node_text(key))


def object_pairs(obj: Optional[Node]) -> Iterator[Node]:
    if obj is None or obj.type != 'object':
        return
    for child in obj.named_children:
        if child.type == 'pair':
            yield child


def find_pair(obj: Optional[Node], key: str) -> Optional[Node]:
    for pair in object_pairs(obj):
        if property_key(pair) == key:
            return pair
    return None
