"""
Aggregation pipeline: parsed files -> deduplicated component profiles.

Each stage takes the previous stage's output and returns new records; the
ScanContext carries everything a stage needs from the outside world.
"""
import os
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

from ..config import SUPPORT_EXT
from ..errors import ScanPreconditionError
from ..models import (
    AliasTable,
    ComponentProfile,
    DependencyManifest,
    ParsedFile,
    Property,
    RawImport,
    UsageInstance,
    to_posix,
)
from ..utils.file_utils import FileExists
from ..utils.logger import get_logger
from .alias_resolver import AliasResolver
from .deduplicator import DeduplicationPass
from .import_index import ImportIndexBuilder, imports_by_destination
from .profile_aggregator import ComponentProfileAggregator
from .property_binder import PropertyBinder
from .source_binder import BindingCollision, SourceBinder
from .usage_collector import UsageCollector
from .usage_graph import UsageGraph


@dataclass(frozen=True)
class ScanContext:
    """Inputs of one project scan besides the parsed files themselves."""
    alias_tables: Tuple[AliasTable, ...] = ()
    # package directory -> alias tables that apply to files below it
    package_alias_tables: Dict[str, Tuple[AliasTable, ...]] = field(default_factory=dict)
    ignore_patterns: Tuple[str, ...] = ()
    native_tags: Tuple[str, ...] = ()
    manifest: DependencyManifest = field(default_factory=DependencyManifest)
    file_exists: FileExists = os.path.exists
    extensions: Tuple[str, ...] = tuple(SUPPORT_EXT)


@dataclass(frozen=True)
class PipelineResult:
    profiles: List[ComponentProfile]
    collisions: List[BindingCollision] = field(default_factory=list)
    redirects: Dict[int, int] = field(default_factory=dict)
    import_index: List[RawImport] = field(default_factory=list)
    # intermediate stages, kept for debug output
    usage_instances: List[UsageInstance] = field(default_factory=list)
    grouped_profiles: List[ComponentProfile] = field(default_factory=list)


def properties_by_path(parsed_files: Sequence[ParsedFile]) -> Dict[str, Tuple[Property, ...]]:
    """Declared properties keyed by the posix path of the declaring file."""
    return {
        to_posix(parsed.path): tuple(parsed.declared_properties)
        for parsed in parsed_files
        if parsed.declared_properties
    }


class ResolverLookup:
    """Pick the alias resolver of the innermost package containing a file."""

    def __init__(self, context: ScanContext):
        def make(tables):
            return AliasResolver(AliasResolver.merge(*tables), exists=context.file_exists,
                                 extensions=context.extensions)

        self.default = make(context.alias_tables)
        self.by_root: Dict[str, AliasResolver] = {
            to_posix(root).rstrip('/') + '/': make(tuple(context.alias_tables) + tuple(tables))
            for root, tables in context.package_alias_tables.items()
        }

    def for_file(self, path: str) -> AliasResolver:
        path = to_posix(path)
        roots = [root for root in self.by_root if path.startswith(root)]
        if not roots:
            return self.default
        return self.by_root[max(roots, key=len)]


def run_pipeline(context: ScanContext, parsed_files: Sequence[ParsedFile]) -> PipelineResult:
    """Run every aggregation stage over a project's parsed files.

    Args:
        context: Alias tables, ignore patterns, native tags, manifest, probe
        parsed_files: Parser output for every file of the project

    Returns:
        PipelineResult with final profiles, collisions and dedup redirects

    Raises:
        ScanPreconditionError: If no files were supplied
    """
    if not parsed_files:
        raise ScanPreconditionError("No source files supplied to the scan")

    log = get_logger()
    exists = context.file_exists
    resolvers = ResolverLookup(context)

    # Stage 1-2: alias resolution and the project-wide import index
    builder = ImportIndexBuilder(exists=exists, extensions=context.extensions)
    resolved: List[RawImport] = []
    for parsed in parsed_files:
        resolved.extend(builder.resolve_paths(parsed.raw_imports, resolvers.for_file(parsed.path)))
    import_index = builder.build(resolved)
    log.debug(f"Import index: {len(import_index)} sources from {len(resolved)} records")

    # Stage 3: usage instances per file
    collector = UsageCollector(ignore_patterns=context.ignore_patterns, native_tags=context.native_tags)
    instances = collector.collect(parsed_files, imports_by_destination(resolved))

    # Stage 4: profiles per (name, source)
    aggregator = ComponentProfileAggregator(exists=exists)
    profiles = aggregator.aggregate(instances)
    profiles = aggregator.fold_registrations(profiles, import_index)
    log.debug(f"Aggregated {len(instances)} usage instances into {len(profiles)} profiles")

    # Stage 5: bind to defining source
    graph = UsageGraph.from_parsed_files(parsed_files, native_tags=context.native_tags)
    binding = SourceBinder(manifest=context.manifest, children=graph.children_map()).bind(profiles, import_index)

    # Stage 6-7: fold duplicates, attach properties
    dedup = DeduplicationPass().run(binding.profiles)
    final = PropertyBinder(properties_by_path(parsed_files)).bind(dedup.profiles)
    log.debug(f"Deduplication folded {len(dedup.redirects)} profiles")

    return PipelineResult(
        profiles=final,
        collisions=binding.collisions,
        redirects=dedup.redirects,
        import_index=import_index,
        usage_instances=instances,
        grouped_profiles=profiles,
    )
