"""Source file discovery and package grouping.

Files are globbed under the scan path, filtered through the ignore patterns
and traced to their nearest package.json. Each package.json with its files
forms a PackageGroup scanned with that package's dependencies and aliases.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from ..config import DISCOVERY_EXT
from ..utils.file_utils import compile_patterns, matches_any

CONFIG_PREFIXES = ('tsconfig', 'jsconfig')


@dataclass
class PackageGroup:
    """Files sharing one nearest package.json."""
    package_json_path: str
    files: List[str] = field(default_factory=list)
    config_paths: List[str] = field(default_factory=list)

    @property
    def root(self) -> str:
        return Path(self.package_json_path).parent.as_posix()

    @property
    def source_files(self) -> List[str]:
        """Files to parse: everything except the JSON files."""
        return [f for f in self.files if not f.endswith('.json')]


def get_supported_files(directory: str | Path, ignore_patterns: Iterable[str]) -> List[str]:
    """Glob supported files under a directory, minus ignored paths.

    package.json files themselves are never returned.

    Args:
        directory: Directory to scan recursively
        ignore_patterns: Ignore patterns (see pattern_to_regex)

    Returns:
        Sorted absolute posix paths
    """
    directory = Path(directory).resolve()
    regexes = compile_patterns(ignore_patterns)

    found = set()
    for ext in DISCOVERY_EXT:
        for file_path in directory.rglob(f'*.{ext}'):
            if not file_path.is_file():
                continue
            # Patterns apply below the scanned directory only
            relative = file_path.relative_to(directory).as_posix()
            if file_path.name == 'package.json' or matches_any(relative, regexes):
                continue
            found.add(file_path.as_posix())
    return sorted(found)


def find_nearest_package_json(directory: str | Path, stop_at: Optional[Path] = None) -> Optional[str]:
    """Walk up from a directory to the closest package.json.

    Args:
        directory: Starting directory
        stop_at: Do not look above this directory

    Returns:
        Posix path of the package.json, or None when none is found
    """
    current = Path(directory).resolve()
    limit = stop_at.resolve() if stop_at else None
    while True:
        candidate = current / 'package.json'
        if candidate.is_file():
            return candidate.as_posix()
        if current == limit or current.parent == current:
            return None
        current = current.parent


def group_by_package(files: Iterable[str], stop_at: Optional[Path] = None) -> List[PackageGroup]:
    """Group files by their nearest package.json, in order of first appearance."""
    groups: Dict[str, PackageGroup] = {}
    # directory -> nearest package.json, shared by every file of a directory
    nearest: Dict[str, Optional[str]] = {}

    for file_path in files:
        parent = Path(file_path).parent.as_posix()
        if parent not in nearest:
            nearest[parent] = find_nearest_package_json(parent, stop_at)
        package_json = nearest[parent]
        if package_json is None:
            continue

        group = groups.setdefault(package_json, PackageGroup(package_json_path=package_json))
        group.files.append(file_path)
        name = Path(file_path).name
        if name.endswith('.json') and name.startswith(CONFIG_PREFIXES):
            group.config_paths.append(file_path)

    return list(groups.values())


def discover(scan_path: str | Path, ignore_patterns: Iterable[str]) -> List[PackageGroup]:
    """Discover files under scan_path (plus its .nuxt folder) grouped by package.

    .nuxt is generated by Nuxt and usually ignored by VCS, but its type
    declarations register the auto-imported components.
    """
    scan_path = Path(scan_path).resolve()
    ignore_patterns = list(ignore_patterns)

    files = get_supported_files(scan_path, ignore_patterns)
    nuxt_dir = scan_path / '.nuxt'
    if nuxt_dir.is_dir():
        for file_path in get_supported_files(nuxt_dir, ignore_patterns):
            if file_path not in files:
                files.append(file_path)

    return group_by_package(files, stop_at=scan_path)
