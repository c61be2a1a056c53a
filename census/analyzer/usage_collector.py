"""Usage collection: raw tag occurrences -> file-scoped usage instances."""
import os
from pathlib import PurePosixPath
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

from ..config import COMPONENT_FILE_EXT
from ..errors import RecordMalformed
from ..models import ParsedFile, RawImport, TagOccurrence, UsageInstance, to_posix
from ..utils.file_utils import compile_patterns, matches_any
from ..utils.logger import get_logger
from .naming import comparison_form


class UsageCollector:
    """Turn tag occurrences into one UsageInstance per (name, destination)."""

    def __init__(self, ignore_patterns: Iterable[str] = (), native_tags: Iterable[str] = ()):
        """Initialize collector.

        Args:
            ignore_patterns: Ignore globs/regexes applied to the defining source
            native_tags: Native HTML/SVG and framework built-in tag names
        """
        self.ignore_regexes = compile_patterns(ignore_patterns)
        self.native_forms = {comparison_form(tag) for tag in native_tags}
        self.log = get_logger()

    def collect(self, parsed_files: Sequence[ParsedFile],
                imports_by_file: Mapping[str, Sequence[RawImport]]) -> List[UsageInstance]:
        """Collect usage instances for every file.

        Args:
            parsed_files: Parser output, one entry per file
            imports_by_file: Alias-resolved imports keyed by declaring file

        Returns:
            Usage instances in order of first encounter
        """
        instances: List[UsageInstance] = []
        for parsed in parsed_files:
            destination = to_posix(parsed.path)
            instances.extend(self.collect_file(
                destination,
                parsed.tag_occurrences,
                imports_by_file.get(destination) or imports_by_file.get(parsed.path) or (),
            ))
        return instances

    def collect_file(self, destination: str, occurrences: Iterable[TagOccurrence],
                     imports: Sequence[RawImport]) -> List[UsageInstance]:
        """Collect the usage instances of a single file.

        A component file (.vue/.jsx/.tsx) always yields a definition instance
        named after the file, so unused components still get a profile.
        """
        # (name, destination) -> [hint, lines]
        found: Dict[Tuple[str, str], list] = {}

        if os.path.splitext(destination)[1] in COMPONENT_FILE_EXT:
            found[(PurePosixPath(destination).stem, destination)] = [destination, []]

        imported = self._index_imports(imports)

        for occurrence in occurrences:
            try:
                occurrence.validate()
            except RecordMalformed as exc:
                self.log.debug("Skipping tag occurrence:", exc.reason, destination)
                continue

            tag = occurrence.tag_name
            normalized = comparison_form(tag)
            if normalized in self.native_forms:
                continue

            record = imported.get(normalized)
            hint = to_posix(record.effective_source) if record else ''

            if matches_any(hint, self.ignore_regexes):
                continue

            entry = found.get((tag, destination))
            if entry is None:
                found[(tag, destination)] = [hint, [occurrence.line]]
            elif occurrence.line not in entry[1]:
                entry[1].append(occurrence.line)

        return [
            UsageInstance(
                component_name=name,
                defining_source_hint=hint,
                destination_file=dest,
                lines=tuple(lines),
            )
            for (name, dest), (hint, lines) in found.items()
        ]

    @staticmethod
    def _index_imports(imports: Sequence[RawImport]) -> Dict[str, RawImport]:
        # lower-cased imported name -> first declaring record
        index: Dict[str, RawImport] = {}
        for record in imports:
            for name in record.imported_names:
                if name:
                    index.setdefault(name.lower(), record)
        return index
