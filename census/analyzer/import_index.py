"""Project-wide import index.

Every file contributes its own import records; the same module is usually
imported from many places, sometimes under different names and sometimes
classified differently by different call sites. The index collapses them into
one record per resolved source path.
"""
import os
from dataclasses import replace
from typing import Dict, Iterable, List, Optional

from ..config import SUPPORT_EXT
from ..errors import RecordMalformed
from ..models import RawImport, SourceKind, UsageRef
from ..utils.file_utils import FileExists, probe_with_extensions
from ..utils.logger import get_logger
from .alias_resolver import AliasResolver


class ImportIndexBuilder:
    """Consolidate raw import records into a deduplicated index."""

    def __init__(self, exists: FileExists = os.path.exists, extensions: Iterable[str] = SUPPORT_EXT):
        """Initialize builder.

        Args:
            exists: Existence probe used to classify sources
            extensions: Extensions probed when a resolved path has none
        """
        self.exists = exists
        self.extensions = list(extensions)
        self.log = get_logger()

    def resolve_paths(self, raw_imports: Iterable[RawImport], resolver: Optional[AliasResolver]) -> List[RawImport]:
        """Attach ``resolved_path`` to each record through the alias resolver.

        Malformed records are skipped.

        Args:
            raw_imports: Records of one or more files
            resolver: Alias resolver, or None when no alias table was loaded

        Returns:
            New records with resolved_path set
        """
        resolved = []
        for record in raw_imports:
            try:
                record.validate()
            except RecordMalformed as exc:
                self.log.debug("Skipping import record:", exc.reason, record.destination)
                continue
            path = resolver.resolve(record.source) if resolver else record.source
            resolved.append(record.with_resolved_path(path))
        return resolved

    def build(self, raw_imports: Iterable[RawImport]) -> List[RawImport]:
        """Group records by resolved path and merge each group.

        Args:
            raw_imports: Records from every file of the project

        Returns:
            One record per distinct resolved path, in first-seen order
        """
        groups: Dict[str, List[RawImport]] = {}
        for record in raw_imports:
            key = record.effective_source
            if not key:
                continue
            groups.setdefault(key, []).append(record)

        return [self._merge_group(path, members) for path, members in groups.items()]

    def _merge_group(self, path: str, members: List[RawImport]) -> RawImport:
        first = members[0]

        names: List[str] = []
        for member in members:
            for name in member.imported_names:
                if name and name not in names:
                    names.append(name)

        # Ground truth for the classification is the file system, not the
        # per-record guesses of the parser. Bare specifiers ('vue', 'src/Foo')
        # are never looked up in the working directory
        found, probed_path = False, path
        if os.path.isabs(path):
            found, probed_path = probe_with_extensions(path, self.extensions, self.exists)

        return replace(
            first,
            imported_names=tuple(names),
            resolved_path=probed_path,
            source_kind=SourceKind.INTERNAL if found else SourceKind.EXTERNAL,
            usage=self._merge_usage(members),
        )

    @staticmethod
    def _merge_usage(members: List[RawImport]) -> Optional[UsageRef]:
        with_usage = [m for m in members if m.usage is not None]
        if not with_usage:
            return None

        lines: Dict[str, List[int]] = {}
        for member in members:
            lines.setdefault(member.destination, [])
        for member in with_usage:
            for destination, member_lines in member.usage.lines_by_destination.items():
                bucket = lines.setdefault(destination, [])
                for line in member_lines:
                    if line not in bucket:
                        bucket.append(line)

        template = with_usage[0].usage
        return UsageRef(
            lines_by_destination={dest: tuple(ls) for dest, ls in lines.items() if ls},
            is_dynamic=template.is_dynamic,
            import_path=template.import_path,
        )


def imports_by_destination(raw_imports: Iterable[RawImport]) -> Dict[str, List[RawImport]]:
    """Regroup resolved records by the file that declared them."""
    by_file: Dict[str, List[RawImport]] = {}
    for record in raw_imports:
        by_file.setdefault(record.destination, []).append(record)
    return by_file
