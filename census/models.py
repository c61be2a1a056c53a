"""Records exchanged between the collectors and the aggregation pipeline.

All records are frozen: pipeline stages return new records built with
``dataclasses.replace`` instead of mutating what they were given.
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import ClassVar, Dict, List, Optional, Tuple

from .errors import RecordMalformed


class SourceKind(str, Enum):
    """Where a component comes from."""
    INTERNAL = 'internal'
    EXTERNAL = 'external'
    UNKNOWN = 'unknown'


# alias pattern -> ordered candidate base paths
AliasTable = Dict[str, List[str]]


def to_posix(path: str) -> str:
    """Normalize a path string to forward-slash form."""
    return path.replace('\\', '/') if path else path


@dataclass(frozen=True)
class TagOccurrence:
    """A markup element encountered in a file."""
    tag_name: str
    line: int

    def validate(self) -> 'TagOccurrence':
        if not self.tag_name or not self.tag_name.strip():
            raise RecordMalformed(self, 'empty tag name')
        if not isinstance(self.line, int) or self.line < 1:
            raise RecordMalformed(self, 'line must be a positive integer')
        return self


@dataclass(frozen=True)
class UsageRef:
    """Usage lines of a component referenced through a runtime registration."""
    lines_by_destination: Dict[str, Tuple[int, ...]]
    is_dynamic: bool = False
    import_path: str = ''


@dataclass(frozen=True)
class RawImport:
    """One import declaration (or registration) as emitted by the parser.

    Concrete records are one of the variants below; ``variant`` names which.
    """
    variant: ClassVar[str] = 'import'

    imported_names: Tuple[str, ...]
    source: str
    destination: str
    source_kind: SourceKind = SourceKind.UNKNOWN
    resolved_path: Optional[str] = None
    usage: Optional[UsageRef] = None

    def validate(self) -> 'RawImport':
        if not self.source:
            raise RecordMalformed(self, 'missing source')
        if not self.imported_names or not any(self.imported_names):
            raise RecordMalformed(self, 'no imported names')
        return self

    @property
    def effective_source(self) -> str:
        """Resolved path when known, raw specifier otherwise."""
        return self.resolved_path or self.source

    def with_resolved_path(self, resolved_path: Optional[str]) -> 'RawImport':
        return replace(self, resolved_path=resolved_path)

    def to_dict(self) -> dict:
        data = {
            'variant': self.variant,
            'importedNames': list(self.imported_names),
            'source': self.source,
            'destination': self.destination,
            'sourceType': self.source_kind.value,
            'resolvedPath': self.resolved_path,
        }
        if self.usage is not None:
            data['usage'] = {
                'lines': {dest: list(lines) for dest, lines in self.usage.lines_by_destination.items()},
                'isDynamic': self.usage.is_dynamic,
                'importPath': self.usage.import_path,
            }
        return data


@dataclass(frozen=True)
class StaticImport(RawImport):
    """``import Foo from './Foo.vue'``"""
    variant: ClassVar[str] = 'static'


@dataclass(frozen=True)
class DynamicImport(RawImport):
    """``defineAsyncComponent(() => import('./Foo.vue'))`` and friends."""
    variant: ClassVar[str] = 'dynamic'


@dataclass(frozen=True)
class RuntimeRegistration(RawImport):
    """``app.component('Foo', Foo)`` and ``components: { Foo }`` entries."""
    variant: ClassVar[str] = 'registration'


@dataclass(frozen=True)
class UsageInstance:
    """One component referenced from one file."""
    component_name: str
    defining_source_hint: str
    destination_file: str
    lines: Tuple[int, ...] = ()

    def to_dict(self) -> dict:
        return {
            'name': self.component_name,
            'source': self.defining_source_hint,
            'destination': self.destination_file,
            'lines': list(self.lines),
        }


@dataclass(frozen=True)
class Property:
    """A declared component property (prop)."""
    name: str
    type: Optional[str] = None
    path: Optional[str] = None

    def to_dict(self) -> dict:
        data = {'name': self.name}
        if self.type is not None:
            data['type'] = self.type
        if self.path is not None:
            data['path'] = self.path
        return data


@dataclass(frozen=True)
class DependencyPackage:
    name: str
    version: str


@dataclass(frozen=True)
class ChildSummary:
    """Distinct component tags rendered inside a source file."""
    tags: Tuple[str, ...]
    total: int
    source: str

    def to_dict(self) -> dict:
        return {'tags': list(self.tags), 'total': self.total, 'source': self.source}


@dataclass(frozen=True)
class FileHistory:
    """Authorship metadata for an internal source file."""
    created: str = ''
    created_by: str = ''
    last_modified: str = ''
    updated_by: str = ''


@dataclass(frozen=True)
class DependencyManifest:
    """dependencies / devDependencies of one or more package.json files."""
    dependencies: Dict[str, str] = field(default_factory=dict)
    dev_dependencies: Dict[str, str] = field(default_factory=dict)

    def merged_with(self, other: 'DependencyManifest') -> 'DependencyManifest':
        return DependencyManifest(
            dependencies={**self.dependencies, **other.dependencies},
            dev_dependencies={**self.dev_dependencies, **other.dev_dependencies},
        )


@dataclass(frozen=True)
class ParsedFile:
    """Everything the source parser extracted from one file."""
    path: str
    tag_occurrences: Tuple[TagOccurrence, ...] = ()
    raw_imports: Tuple[RawImport, ...] = ()
    declared_properties: Tuple[Property, ...] = ()


@dataclass(frozen=True)
class ComponentProfile:
    """Canonical inventory entry for one component identity."""
    id: int
    name: str
    source_path: str = ''
    kind: Optional[SourceKind] = None
    total_usage_count: int = 0
    usage_locations: Tuple[UsageInstance, ...] = ()
    dependency_package: Optional[DependencyPackage] = None
    properties: Optional[Tuple[Property, ...]] = None
    children: Optional[ChildSummary] = None
    history: Optional[FileHistory] = None

    @property
    def identity(self) -> Tuple[str, Optional[str]]:
        return self.name, self.source_path or None

    def to_dict(self) -> dict:
        """Serialize to plain JSON-compatible data."""
        source = {'path': self.source_path}
        if self.dependency_package is not None:
            source['package'] = {
                'name': self.dependency_package.name,
                'version': self.dependency_package.version,
            }
        if self.history is not None:
            source['property'] = {
                'created': self.history.created,
                'createdBy': self.history.created_by,
                'lastModified': self.history.last_modified,
                'updatedBy': self.history.updated_by,
            }

        data = {
            'id': self.id,
            'name': self.name,
            'type': self.kind.value if self.kind is not None else None,
            'total': self.total_usage_count,
            'source': source,
            'usageLocations': [loc.to_dict() for loc in self.usage_locations],
        }
        if self.properties is not None:
            data['properties'] = [prop.to_dict() for prop in self.properties]
        if self.children is not None:
            data['children'] = self.children.to_dict()
        return data
