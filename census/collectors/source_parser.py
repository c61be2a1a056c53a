"""Source parsing: one file -> tag occurrences, imports and declared props.

Script code is parsed with tree-sitter. Vue single-file components are split
into their <template> and <script> blocks first; template tags are read with
a tag scanner since templates are not script syntax.

Parse failures never propagate: the file yields an empty ParsedFile.
"""
import os
import posixpath
import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from tree_sitter import Node

from ..config import SUPPORT_EXT
from ..models import (
    DynamicImport,
    ParsedFile,
    Property,
    RawImport,
    RuntimeRegistration,
    SourceKind,
    StaticImport,
    TagOccurrence,
    UsageRef,
    to_posix,
)
from ..utils.file_utils import probe_with_extensions
from ..utils.logger import get_logger
from .html_tags import is_native
from .parser import (
    LanguageParser,
    find_pair,
    first_string,
    node_text,
    property_key,
    strip_quotes,
    unwrap,
    walk,
)

_TEMPLATE_BLOCK = re.compile(r'<template(\s[^>]*)?>(?P<body>.*)</template>', re.DOTALL)
_SCRIPT_BLOCK = re.compile(r'<script(?P<attrs>\s[^>]*)?>(?P<body>.*?)</script>', re.DOTALL)
_LANG_ATTR = re.compile(r'\blang\s*=\s*["\']?(\w+)')
_HTML_COMMENT = re.compile(r'<!--.*?-->', re.DOTALL)
_OPENING_TAG = re.compile(r'<([A-Za-z][\w.:-]*)(?=[\s/>])')
_TYPEOF_IMPORT = re.compile(
    r'''['"]?([A-Za-z_$][\w$-]*)['"]?\??\s*:\s*typeof\s+import\(\s*['"]([^'"]+)['"]\s*\)''')


def is_relative(source: str) -> bool:
    return source.startswith('.')


def resolve_source(source: str, current_dir: str) -> str:
    """Relative specifiers become absolute posix paths; others stay as written."""
    if is_relative(source):
        return posixpath.normpath(posixpath.join(current_dir, source))
    return source


def source_kind(source: str) -> SourceKind:
    return SourceKind.INTERNAL if is_relative(source) else SourceKind.EXTERNAL


def _blank(match) -> str:
    # Keep line numbers stable when removing text
    return re.sub(r'[^\n]', ' ', match.group(0))


def scan_tags(markup: str, first_line: int = 1) -> List[TagOccurrence]:
    """Opening tags of a markup fragment with their line numbers.

    Args:
        markup: Template text
        first_line: Line number of the fragment's first line in the file

    Returns:
        Tag occurrences for every non-native opening tag
    """
    markup = _HTML_COMMENT.sub(_blank, markup)
    occurrences = []
    for match in _OPENING_TAG.finditer(markup):
        tag = match.group(1)
        if is_native(tag):
            continue
        line = first_line + markup.count('\n', 0, match.start())
        occurrences.append(TagOccurrence(tag_name=tag, line=line))
    return occurrences


class ScriptAnalysis:
    """Extract imports, registrations and props from one script tree."""

    def __init__(self, root: Node, file_path: str, first_line: int = 1):
        """Initialize analysis.

        Args:
            root: Tree-sitter root node of the script
            file_path: Posix path of the declaring file
            first_line: Line of the script's first line within the file
        """
        self.root = root
        self.file_path = file_path
        self.current_dir = posixpath.dirname(file_path)
        self.line_offset = first_line - 1
        # local identifier -> import specifier as written
        self.locals: Dict[str, str] = {}

    def line_of(self, node: Node) -> int:
        return node.start_point[0] + 1 + self.line_offset

    def imports(self) -> List[RawImport]:
        records: List[RawImport] = []
        records.extend(self._static_imports())
        for node in walk(self.root):
            if node.type == 'variable_declarator':
                record = self._dynamic_declarator(node)
                if record is not None:
                    records.append(record)
            elif node.type == 'pair' and property_key(node) == 'components':
                records.extend(self._components_option(node))
            elif node.type == 'call_expression':
                record = self._runtime_registration(node)
                if record is not None:
                    records.append(record)
        return records

    def _record(self, cls, names, source: str, usage: Optional[UsageRef] = None) -> RawImport:
        return cls(
            imported_names=tuple(names),
            source=resolve_source(source, self.current_dir),
            destination=self.file_path,
            source_kind=source_kind(source),
            usage=usage,
        )

    def _static_imports(self) -> List[RawImport]:
        records = []
        for node in self.root.named_children:
            if node.type != 'import_statement':
                continue
            source_node = node.child_by_field_name('source')
            if source_node is None:
                continue
            source = strip_quotes(node_text(source_node))

            names = []
            for clause in node.named_children:
                if clause.type != 'import_clause':
                    continue
                for child in clause.named_children:
                    if child.type == 'identifier':
                        names.append(node_text(child))
                    elif child.type == 'namespace_import':
                        names.extend(node_text(c) for c in child.named_children if c.type == 'identifier')
                    elif child.type == 'named_imports':
                        for specifier in child.named_children:
                            if specifier.type != 'import_specifier':
                                continue
                            local = specifier.child_by_field_name('alias') or specifier.child_by_field_name('name')
                            names.append(node_text(local))

            for name in names:
                self.locals[name] = source
            if names:
                records.append(self._record(StaticImport, names, source))
        return records

    def _dynamic_source(self, value: Optional[Node]) -> str:
        """Specifier of ``defineAsyncComponent(...)`` or ``() => import(...)``."""
        value = unwrap(value)
        if value is None:
            return ''
        if value.type == 'call_expression':
            function = value.child_by_field_name('function')
            if node_text(function) == 'defineAsyncComponent':
                return first_string(value.child_by_field_name('arguments'))
            if function is not None and function.type == 'import':
                return first_string(value.child_by_field_name('arguments'))
        if value.type == 'arrow_function':
            body = unwrap(value.child_by_field_name('body'))
            if body is not None and body.type == 'call_expression':
                function = body.child_by_field_name('function')
                if function is not None and function.type == 'import':
                    return first_string(body.child_by_field_name('arguments'))
        return ''

    def _dynamic_declarator(self, node: Node) -> Optional[RawImport]:
        name_node = node.child_by_field_name('name')
        if name_node is None or name_node.type != 'identifier':
            return None
        source = self._dynamic_source(node.child_by_field_name('value'))
        if not source:
            return None
        name = node_text(name_node)
        self.locals[name] = source
        return self._record(DynamicImport, [name], source)

    def _components_option(self, pair: Node) -> List[RawImport]:
        # components: { Foo, Bar: BarImpl, 'baz-qux': () => import('./BazQux.vue') }
        value = unwrap(pair.child_by_field_name('value'))
        if value is None or value.type != 'object':
            return []

        records = []
        for entry in value.named_children:
            if entry.type == 'shorthand_property_identifier':
                name = local = node_text(entry)
                entry_value = None
            elif entry.type == 'pair':
                name = property_key(entry)
                entry_value = unwrap(entry.child_by_field_name('value'))
                local = node_text(entry_value) if entry_value is not None and entry_value.type == 'identifier' else ''
            else:
                continue

            if local and local in self.locals:
                records.append(self._record(RuntimeRegistration, [name], self.locals[local]))
                continue
            source = self._dynamic_source(entry_value)
            if source:
                records.append(self._record(DynamicImport, [name], source))
        return records

    def _runtime_registration(self, node: Node) -> Optional[RawImport]:
        # app.component('Foo', Foo) / Vue.component('foo', () => import('./Foo.vue'))
        function = node.child_by_field_name('function')
        if function is None or function.type != 'member_expression':
            return None
        if node_text(function.child_by_field_name('property')) != 'component':
            return None
        args = node.child_by_field_name('arguments')
        if args is None or len(args.named_children) < 2:
            return None

        name_node, target = args.named_children[0], unwrap(args.named_children[1])
        if name_node.type != 'string' or target is None:
            return None
        name = strip_quotes(node_text(name_node))

        dynamic = False
        if target.type == 'identifier' and node_text(target) in self.locals:
            source = self.locals[node_text(target)]
        else:
            source = self._dynamic_source(target)
            dynamic = True
        if not name or not source:
            return None

        usage = UsageRef(
            lines_by_destination={self.file_path: (self.line_of(node),)},
            is_dynamic=dynamic,
            import_path=source,
        )
        return self._record(RuntimeRegistration, [name], source, usage=usage)

    def jsx_tags(self) -> List[TagOccurrence]:
        occurrences = []
        for node in walk(self.root):
            if node.type in ('jsx_opening_element', 'jsx_self_closing_element'):
                tag = node_text(node.child_by_field_name('name'))
                if tag and not is_native(tag):
                    occurrences.append(TagOccurrence(tag_name=tag, line=self.line_of(node)))
            elif node.type == 'pair' and property_key(node) == 'template':
                # template: `<my-widget />` in an options object
                value = node.child_by_field_name('value')
                if value is not None and value.type in ('template_string', 'string'):
                    occurrences.extend(scan_tags(node_text(value), self.line_of(value)))
        return occurrences

    def properties(self) -> List[Property]:
        for node in walk(self.root):
            if node.type == 'call_expression' and node_text(node.child_by_field_name('function')) == 'defineProps':
                return self._define_props(node)

        options = self._component_options()
        props = find_pair(options, 'props')
        if props is None:
            return []
        return self._props_value(unwrap(props.child_by_field_name('value')))

    def _define_props(self, call: Node) -> List[Property]:
        type_args = call.child_by_field_name('type_arguments')
        if type_args is not None and type_args.named_children:
            return self._type_props(type_args.named_children[0])
        args = call.child_by_field_name('arguments')
        if args is None or not args.named_children:
            return []
        return self._props_value(unwrap(args.named_children[0]))

    def _props_value(self, value: Optional[Node]) -> List[Property]:
        if value is None:
            return []
        if value.type == 'array':
            return [Property(name=strip_quotes(node_text(e)), type='any')
                    for e in value.named_children if e.type == 'string']
        if value.type == 'object':
            return self._object_props(value)
        if value.type == 'identifier':
            name = node_text(value)
            return [Property(name=name, path=self._local_path(name))]
        return []

    def _object_props(self, obj: Node) -> List[Property]:
        props = []
        for entry in obj.named_children:
            if entry.type == 'pair':
                name = property_key(entry)
                value = unwrap(entry.child_by_field_name('value'))
                if value is not None and value.type == 'object':
                    type_pair = find_pair(value, 'type')
                    prop_type = 'any'
                    if type_pair is not None:
                        type_value = type_pair.child_by_field_name('value')
                        prop_type = (node_text(type_value).lower()
                                     if type_value is not None and type_value.type == 'identifier'
                                     else node_text(type_value))
                    props.append(Property(name=name, type=prop_type))
                else:
                    props.append(Property(name=name, type=node_text(value) or 'any'))
            elif entry.type == 'shorthand_property_identifier':
                props.append(Property(name=node_text(entry), type='any'))
            elif entry.type == 'spread_element':
                target = unwrap(entry.named_children[0]) if entry.named_children else None
                if target is not None and target.type == 'identifier':
                    name = node_text(target)
                    props.append(Property(name=name, path=self._local_path(name)))
        return props

    def _type_props(self, type_node: Node) -> List[Property]:
        if type_node.type == 'type_identifier':
            type_node = self._interface_body(node_text(type_node))
            if type_node is None:
                return []
        props = []
        for member in type_node.named_children:
            if member.type != 'property_signature':
                continue
            annotation = member.child_by_field_name('type')
            prop_type = node_text(annotation).lstrip(':').strip() if annotation is not None else 'any'
            props.append(Property(name=strip_quotes(node_text(member.child_by_field_name('name'))), type=prop_type))
        return props

    def _interface_body(self, name: str) -> Optional[Node]:
        for node in walk(self.root):
            if node.type == 'interface_declaration' and node_text(node.child_by_field_name('name')) == name:
                return node.child_by_field_name('body')
            if node.type == 'type_alias_declaration' and node_text(node.child_by_field_name('name')) == name:
                value = node.child_by_field_name('value')
                if value is not None and value.type == 'object_type':
                    return value
        return None

    def _local_path(self, name: str) -> Optional[str]:
        source = self.locals.get(name)
        if not source:
            return None
        path = resolve_source(source, self.current_dir)
        if not os.path.isabs(path):
            return path
        return probe_with_extensions(path, SUPPORT_EXT, os.path.exists)[1]

    def _component_options(self) -> Optional[Node]:
        """Options object of ``export default {...}`` / ``defineComponent({...})``."""
        for node in self.root.named_children:
            if node.type != 'export_statement':
                continue
            value = node.child_by_field_name('value')
            if value is None:
                declaration = node.child_by_field_name('declaration')
                value = self._declared_value(declaration)
            options = _options_object(value)
            if options is not None:
                return options
        return None

    @staticmethod
    def _declared_value(declaration: Optional[Node]) -> Optional[Node]:
        # export const Foo = defineComponent({...})
        if declaration is None or declaration.type not in ('lexical_declaration', 'variable_declaration'):
            return None
        for declarator in declaration.named_children:
            if declarator.type == 'variable_declarator':
                return declarator.child_by_field_name('value')
        return None


def _options_object(node: Optional[Node]) -> Optional[Node]:
    node = unwrap(node)
    if node is None:
        return None
    if node.type == 'object':
        return node
    if node.type == 'call_expression':
        args = node.child_by_field_name('arguments')
        if args is not None:
            return next((unwrap(a) for a in args.named_children if unwrap(a).type == 'object'), None)
    return None


class SourceParser:
    """Parse project files into ParsedFile records."""

    def __init__(self):
        self.log = get_logger()

    def parse_file(self, file_path: str | Path) -> ParsedFile:
        """Parse one file; any failure degrades to an empty ParsedFile.

        Args:
            file_path: Absolute path of a .vue/.js/.jsx/.ts/.tsx file

        Returns:
            ParsedFile with tags, imports and declared properties
        """
        path = Path(file_path).resolve().as_posix()
        try:
            with open(path, 'r', encoding='utf-8') as f:
                content = f.read()
            return self.parse_source(path, content)
        except (UnicodeDecodeError, IOError, OSError, ValueError) as exc:
            self.log.debug("Failed to parse", path, exc)
            return ParsedFile(path=path)

    def parse_source(self, path: str, content: str) -> ParsedFile:
        path = to_posix(path)
        if path.endswith('.d.ts'):
            return self._parse_declarations(path, content)
        if path.endswith('.vue'):
            return self._parse_vue(path, content)

        parser = LanguageParser.from_file_extension(path)
        if parser is None:
            return ParsedFile(path=path)
        analysis = ScriptAnalysis(parser.parse(content).root_node, path)
        return ParsedFile(
            path=path,
            tag_occurrences=tuple(analysis.jsx_tags()),
            raw_imports=tuple(analysis.imports()),
            declared_properties=tuple(analysis.properties()),
        )

    def _parse_vue(self, path: str, content: str) -> ParsedFile:
        tags: List[TagOccurrence] = []
        template = _TEMPLATE_BLOCK.search(content)
        if template:
            first_line = content.count('\n', 0, template.start('body')) + 1
            tags.extend(scan_tags(template.group('body'), first_line))

        imports: List[RawImport] = []
        properties: List[Property] = []
        for script in _SCRIPT_BLOCK.finditer(content):
            lang = _LANG_ATTR.search(script.group('attrs') or '')
            parser = LanguageParser.from_script_lang(lang.group(1) if lang else None)
            first_line = content.count('\n', 0, script.start('body')) + 1
            analysis = ScriptAnalysis(parser.parse(script.group('body')).root_node, path, first_line)
            imports.extend(analysis.imports())
            tags.extend(analysis.jsx_tags())
            if not properties:
                properties = analysis.properties()

        return ParsedFile(
            path=path,
            tag_occurrences=tuple(tags),
            raw_imports=tuple(imports),
            declared_properties=tuple(properties),
        )

    @staticmethod
    def _parse_declarations(path: str, content: str) -> ParsedFile:
        """Global component registrations of a type declaration file.

        Handles the ``Name: typeof import('./Name.vue')['default']`` entries
        generated by Nuxt (.nuxt/components.d.ts) and unplugin-vue-components.
        """
        current_dir = posixpath.dirname(path)
        records: List[RawImport] = []
        seen: Dict[Tuple[str, str], bool] = {}
        for match in _TYPEOF_IMPORT.finditer(content):
            name, source = match.group(1), match.group(2)
            if (name, source) in seen:
                continue
            seen[(name, source)] = True
            records.append(RuntimeRegistration(
                imported_names=(name,),
                source=resolve_source(source, current_dir),
                destination=path,
                source_kind=source_kind(source),
            ))
        return ParsedFile(path=path, raw_imports=tuple(records))
