"""
Project scanner.
Ties discovery, parsing and configuration loading to the aggregation pipeline.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from .analyzer.pipeline import PipelineResult, ScanContext, run_pipeline
from .analyzer.source_binder import BindingCollision
from .collectors.config_loader import load_alias_tables
from .collectors.file_discovery import PackageGroup, discover
from .collectors.html_tags import native_tags
from .collectors.manifest_reader import lib_version, read_manifest
from .collectors.source_parser import SourceParser
from .config import get_config
from .errors import ScanPreconditionError
from .history.git_history import GitHistoryService
from .models import AliasTable, ComponentProfile, DependencyManifest, ParsedFile
from .utils import file_utils
from .utils.file_utils import FileExists
from .utils.logger import get_logger

RESULT_FILENAME = 'component-profiles.json'


@dataclass(frozen=True)
class ScanResult:
    profiles: List[ComponentProfile]
    collisions: List[BindingCollision] = field(default_factory=list)
    redirects: Dict[int, int] = field(default_factory=dict)
    files_scanned: int = 0

    def to_dict(self) -> list:
        return [profile.to_dict() for profile in self.profiles]


class ProjectScanner:
    """Scan one project tree into component profiles."""

    def __init__(self, path: str | Path, ignore: Optional[Iterable[str]] = None,
                 file_exists: FileExists = os.path.exists, history: bool = False,
                 debug_dir: Optional[str | Path] = None):
        """Initialize scanner.

        Args:
            path: Project root holding the root package.json
            ignore: Extra ignore patterns on top of the configured ones
            file_exists: Existence probe used by the pipeline
            history: Enrich internal profiles with git history
            debug_dir: When set, intermediate stages are written there as JSON

        Raises:
            ScanPreconditionError: If the path or its package.json is missing
        """
        self.scan_path = Path(path).resolve()
        if not self.scan_path.is_dir():
            raise ScanPreconditionError(f"Scan path does not exist: {self.scan_path}")
        if not (self.scan_path / 'package.json').is_file():
            raise ScanPreconditionError(f"No package.json found in {self.scan_path}")

        patterns = list(get_config().ignore_patterns)
        for pattern in ignore or ():
            if pattern and pattern not in patterns:
                patterns.append(pattern)
        self.ignore_patterns = patterns
        self.file_exists = file_exists
        self.history = history
        self.debug_dir = debug_dir
        self.parser = SourceParser()
        self.log = get_logger()

    def scan(self) -> ScanResult:
        """Run the full scan.

        Returns:
            ScanResult with profiles in order of first encounter

        Raises:
            ScanPreconditionError: If no source files were found
        """
        groups = discover(self.scan_path, self.ignore_patterns)
        self.log.debug(f"Found {len(groups)} package group(s)")

        manifest = DependencyManifest()
        package_tables: Dict[str, Tuple[AliasTable, ...]] = {}
        parsed_files: List[ParsedFile] = []

        for group in groups:
            if not group.source_files:
                continue
            group_manifest = read_manifest(group.package_json_path)
            manifest = manifest.merged_with(group_manifest)
            self._check_nuxt(group, group_manifest)

            tables = load_alias_tables(group.root, group.config_paths)
            if tables:
                package_tables[group.root] = tuple(tables)

            for file_path in group.source_files:
                parsed_files.append(self.parser.parse_file(file_path))

        self.log.info(f"Parsed {len(parsed_files)} files")

        context = ScanContext(
            package_alias_tables=package_tables,
            ignore_patterns=tuple(self.ignore_patterns),
            native_tags=tuple(native_tags()),
            manifest=manifest,
            file_exists=self.file_exists,
        )
        result = run_pipeline(context, parsed_files)
        if self.debug_dir is not None:
            for written in write_debug(result, self.debug_dir):
                self.log.debug("Wrote", written)

        profiles = result.profiles
        if self.history:
            profiles = GitHistoryService(self.scan_path).enrich(profiles)

        return ScanResult(
            profiles=profiles,
            collisions=result.collisions,
            redirects=result.redirects,
            files_scanned=len(parsed_files),
        )

    def _check_nuxt(self, group: PackageGroup, manifest: DependencyManifest):
        # Nuxt auto-imports components; only .nuxt/components.d.ts knows their sources
        if lib_version('nuxt', manifest) and not (Path(group.root) / '.nuxt').is_dir():
            self.log.warning(
                f"The .nuxt folder related to {group.package_json_path} is missing. "
                "It's required for scanning Nuxt.js projects."
            )


def write_json(result: ScanResult, app_dir: str | Path) -> Path:
    """Write the profiles to ``<app_dir>/component-profiles.json``."""
    return file_utils.write_json(result.to_dict(), Path(app_dir) / RESULT_FILENAME)


def write_debug(result: PipelineResult, app_dir: str | Path) -> List[Path]:
    """Dump the intermediate pipeline stages next to the results.

    Returns:
        Paths of the written files
    """
    app_dir = Path(app_dir)
    stages = {
        'import-index.json': [entry.to_dict() for entry in result.import_index],
        'usage-instances.json': [instance.to_dict() for instance in result.usage_instances],
        'grouped-component-sources.json': [profile.to_dict() for profile in result.grouped_profiles],
        'dedup-redirects.json': {str(old): new for old, new in result.redirects.items()},
    }
    return [file_utils.write_json(data, app_dir / name) for name, data in stages.items()]
