"""Profile aggregation: usage instances -> canonical component profiles."""
import itertools
import os
from dataclasses import replace
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from ..models import ComponentProfile, RawImport, SourceKind, UsageInstance, to_posix
from ..utils.file_utils import FileExists
from .naming import identity_key, split_group_key


def group_key(instance: UsageInstance) -> str:
    """``name__source`` or the bare name when there is no source hint."""
    if not instance.defining_source_hint:
        return instance.component_name
    return f"{instance.component_name}__{instance.defining_source_hint}"


def merge_locations(locations: Iterable[UsageInstance], source: Optional[str] = None) -> Tuple[UsageInstance, ...]:
    """Merge usage locations per destination file, unioning line numbers.

    Args:
        locations: Locations in priority order (first seen wins the slot)
        source: When given, every location is re-pointed at this source

    Returns:
        One location per destination, locations without lines dropped
    """
    merged: Dict[str, UsageInstance] = {}
    for loc in locations:
        if source is not None:
            loc = replace(loc, defining_source_hint=source)
        existing = merged.get(loc.destination_file)
        if existing is None:
            merged[loc.destination_file] = replace(loc, lines=tuple(dict.fromkeys(loc.lines)))
            continue
        merged[loc.destination_file] = replace(existing, lines=tuple(dict.fromkeys(existing.lines + loc.lines)))
    return tuple(loc for loc in merged.values() if loc.lines)


def count_lines(locations: Iterable[UsageInstance]) -> int:
    return sum(len(loc.lines) for loc in locations)


class ComponentProfileAggregator:
    """Group usage instances into one profile per (name, source) identity."""

    def __init__(self, exists: FileExists = os.path.exists, ids: Optional[Iterator[int]] = None):
        """Initialize aggregator.

        Args:
            exists: Existence probe for the provisional kind
            ids: Arena id generator; profiles get 1, 2, 3, ... by default
        """
        self.exists = exists
        self.ids = ids if ids is not None else itertools.count(1)

    def group(self, instances: Iterable[UsageInstance]) -> Dict[str, List[UsageInstance]]:
        """Group instances by composite key, folding kebab/Pascal spellings.

        Two keys whose names are casing variants of each other and whose
        source suffix is identical end up under the first-encountered key.
        """
        grouped: Dict[str, List[UsageInstance]] = {}
        for instance in instances:
            grouped.setdefault(group_key(instance), []).append(instance)

        revised: Dict[str, List[UsageInstance]] = {}
        owner: Dict[Tuple[str, str], str] = {}
        for key, members in grouped.items():
            name, source = split_group_key(key)
            slot = (identity_key(name), source)
            surviving = owner.get(slot)
            if surviving is None:
                owner[slot] = key
                revised[key] = list(members)
            else:
                revised[surviving].extend(members)
        return revised

    def aggregate(self, instances: Iterable[UsageInstance]) -> List[ComponentProfile]:
        """Create one profile per group.

        Returns:
            Profiles in order of first encounter
        """
        profiles = []
        for members in self.group(instances).values():
            first = members[0]
            source = to_posix(first.defining_source_hint)
            locations = merge_locations(members)
            profiles.append(ComponentProfile(
                id=next(self.ids),
                name=first.component_name,
                source_path=source,
                kind=SourceKind.INTERNAL if source and os.path.isabs(source) and self.exists(source) else None,
                total_usage_count=count_lines(locations),
                usage_locations=locations,
            ))
        return profiles

    def fold_registrations(self, profiles: Sequence[ComponentProfile],
                           import_index: Sequence[RawImport]) -> List[ComponentProfile]:
        """Add usage recorded on runtime registrations to matching profiles.

        An index entry contributes when it carries usage lines, imports the
        profile's name and points at the profile's source.
        """
        with_usage: Dict[str, List[RawImport]] = {}
        for entry in import_index:
            if entry.usage is None:
                continue
            for name in entry.imported_names:
                with_usage.setdefault(name, []).append(entry)

        folded = []
        for profile in profiles:
            entries = [
                e for e in with_usage.get(profile.name, ())
                if profile.source_path and profile.source_path in (to_posix(e.source), to_posix(e.resolved_path or ''))
            ]
            if not entries:
                folded.append(profile)
                continue

            extra = [
                UsageInstance(
                    component_name=profile.name,
                    defining_source_hint=profile.source_path,
                    destination_file=destination,
                    lines=tuple(lines),
                )
                for entry in entries
                for destination, lines in entry.usage.lines_by_destination.items()
            ]
            locations = merge_locations(list(profile.usage_locations) + extra)
            folded.append(replace(
                profile,
                usage_locations=locations,
                total_usage_count=count_lines(locations),
            ))
        return folded
