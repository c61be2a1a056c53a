"""Alias table loading from compiler and bundler configuration.

Supported sources, in load order (later tables win for identical keys):
- tsconfig.json / jsconfig.json: compilerOptions.paths joined to baseUrl
- vite.config.{js,ts}: resolve.alias as an object or a [{find, replacement}] list
"""
import json
import posixpath
import re
from pathlib import Path
from typing import Iterable, List, Optional

from ..models import AliasTable, to_posix
from ..utils.logger import get_logger
from .parser import LanguageParser, find_pair, first_string, node_text, object_pairs, property_key, strip_quotes, unwrap, walk

VITE_CONFIG_NAMES = ('vite.config.ts', 'vite.config.js', 'vite.config.mts', 'vite.config.mjs')

# A string literal, or a comment outside of one
_JSON_COMMENT = re.compile(r'("(?:\\.|[^"\\])*")|//[^\n]*|/\*.*?\*/', re.DOTALL)
_TRAILING_COMMA = re.compile(r',(\s*[}\]])')


def load_jsonc(path: str | Path) -> Optional[dict]:
    """Read a JSON-with-comments file (tsconfig style).

    Returns:
        Parsed object, or None when unreadable
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            content = f.read()
        content = _JSON_COMMENT.sub(lambda m: m.group(1) or '', content)
        content = _TRAILING_COMMA.sub(r'\1', content)
        data = json.loads(content)
    except (IOError, OSError, json.JSONDecodeError) as exc:
        get_logger().debug("Unreadable config:", path, exc)
        return None
    return data if isinstance(data, dict) else None


def compiler_paths(config_path: str | Path) -> AliasTable:
    """compilerOptions.paths of one tsconfig/jsconfig with absolute bases.

    Bases are joined to baseUrl, itself relative to the config's directory.
    """
    data = load_jsonc(config_path)
    if not data:
        return {}

    options = data.get('compilerOptions') or {}
    paths = options.get('paths') or {}
    if not isinstance(paths, dict):
        return {}

    config_dir = Path(config_path).resolve().parent.as_posix()
    base_url = posixpath.normpath(posixpath.join(config_dir, to_posix(options.get('baseUrl') or '.')))

    table: AliasTable = {}
    for alias, bases in paths.items():
        if isinstance(bases, str):
            bases = [bases]
        if not isinstance(bases, list):
            continue
        table[alias] = [_join(base_url, base) for base in bases if isinstance(base, str)]
    return table


def _join(root: str, base: str) -> str:
    # normpath drops a trailing '/*' separator; keep the wildcard intact
    wildcard = base.endswith('*')
    joined = posixpath.normpath(posixpath.join(root, to_posix(base.rstrip('*'))))
    return joined + '/*' if wildcard else joined


def vite_aliases(config_path: str | Path) -> AliasTable:
    """resolve.alias of a Vite config, bases resolved against its directory."""
    config_path = Path(config_path)
    try:
        source = config_path.read_bytes()
    except (IOError, OSError) as exc:
        get_logger().debug("Unreadable vite config:", config_path, exc)
        return {}

    parser = LanguageParser.from_file_extension(config_path) or LanguageParser.for_language('typescript')
    tree = parser.parse(source)
    config_dir = config_path.resolve().parent.as_posix()

    config = _exported_config(tree.root_node)
    resolve_pair = find_pair(config, 'resolve')
    alias_pair = find_pair(unwrap(resolve_pair.child_by_field_name('value')) if resolve_pair else None, 'alias')
    if alias_pair is None:
        return {}

    alias_node = unwrap(alias_pair.child_by_field_name('value'))
    table: AliasTable = {}
    if alias_node is not None and alias_node.type == 'object':
        for pair in object_pairs(alias_node):
            target = _alias_target(pair.child_by_field_name('value'), config_dir)
            if target:
                table[property_key(pair)] = [target]
    elif alias_node is not None and alias_node.type == 'array':
        for entry in alias_node.named_children:
            find = find_pair(entry, 'find')
            replacement = find_pair(entry, 'replacement')
            if find is None or replacement is None:
                continue
            find_value = find.child_by_field_name('value')
            if find_value is None or find_value.type != 'string':
                # Regex `find` values have no prefix form
                continue
            target = _alias_target(replacement.child_by_field_name('value'), config_dir)
            if target:
                table[strip_quotes(node_text(find_value))] = [target]
    return table


def _exported_config(root):
    """The object passed to ``export default`` (directly or via defineConfig)."""
    for node in root.named_children:
        if node.type != 'export_statement':
            continue
        value = node.child_by_field_name('value')
        if value is None:
            # `export default` followed by a declaration has no value field
            continue
        return _config_object(value)
    return None


def _config_object(node):
    node = unwrap(node)
    while node is not None:
        if node.type == 'object':
            return node
        if node.type == 'call_expression':
            args = node.child_by_field_name('arguments')
            node = unwrap(args.named_children[0]) if args is not None and args.named_children else None
        elif node.type == 'arrow_function':
            node = unwrap(node.child_by_field_name('body'))
            if node is not None and node.type == 'statement_block':
                node = next((unwrap(s.named_children[0]) for s in walk(node)
                             if s.type == 'return_statement' and s.named_children), None)
        else:
            return None
    return None


def _alias_target(value, config_dir: str) -> str:
    # '@': './src', path.resolve(__dirname, 'src') or fileURLToPath(new URL('./src', import.meta.url))
    literal = first_string(value)
    if not literal:
        return ''
    return posixpath.normpath(posixpath.join(config_dir, to_posix(literal)))


def load_alias_tables(package_root: str | Path, config_paths: Iterable[str] = ()) -> List[AliasTable]:
    """Every non-empty alias table of one package, in load order.

    Args:
        package_root: Directory holding the package.json
        config_paths: tsconfig/jsconfig files discovered for the package

    Returns:
        List of alias tables (empty when the package declares none)
    """
    package_root = Path(package_root)
    tables: List[AliasTable] = []

    for config_path in config_paths:
        if '/node_modules/' in to_posix(str(config_path)):
            continue
        table = compiler_paths(config_path)
        if table:
            tables.append(table)

    for name in VITE_CONFIG_NAMES:
        candidate = package_root / name
        if candidate.is_file():
            table = vite_aliases(candidate)
            if table:
                tables.append(table)
            break

    return tables
