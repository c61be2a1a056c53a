"""Deduplication pass: fold profiles describing the same component.

After source binding, the same component can still appear several times:
once per casing variant ('my-widget' / 'MyWidget') and once per code path
that could not see its source. Duplicates are folded into the first
surviving profile of their identity.
"""
from dataclasses import dataclass, field, replace
from typing import Dict, List, Sequence

from ..models import ComponentProfile
from .naming import identity_key
from .profile_aggregator import count_lines, merge_locations


@dataclass(frozen=True)
class DeduplicationResult:
    profiles: List[ComponentProfile]
    # folded profile id -> surviving profile id
    redirects: Dict[int, int] = field(default_factory=dict)

    def resolve(self, profile_id: int) -> int:
        """Surviving id for any id produced during the scan."""
        return self.redirects.get(profile_id, profile_id)


class DeduplicationPass:
    """Merge duplicate profiles, keeping usage mass on the survivor."""

    def run(self, profiles: Sequence[ComponentProfile]) -> DeduplicationResult:
        """Fold duplicates into the first matching profile.

        A profile is a duplicate of the current one when its name is a casing
        variant of the current name and its source is either identical or
        entirely absent (no path, no package).

        Args:
            profiles: Bound profiles in order of first encounter

        Returns:
            DeduplicationResult with survivors (original order) and redirects
        """
        live: Dict[int, ComponentProfile] = {p.id: p for p in profiles}
        order = [p.id for p in profiles]

        buckets: Dict[str, List[int]] = {}
        for profile in profiles:
            buckets.setdefault(identity_key(profile.name), []).append(profile.id)

        redirects: Dict[int, int] = {}
        for current_id in order:
            if current_id in redirects:
                continue
            current = live[current_id]

            duplicates = [
                live[other_id]
                for other_id in buckets[identity_key(current.name)]
                if other_id != current_id
                and other_id not in redirects
                and self._same_source(current, live[other_id])
            ]
            if not duplicates:
                continue

            live[current_id] = self._fold(current, duplicates)
            for dup in duplicates:
                redirects[dup.id] = current_id

        # A survivor can itself be folded later; point everything at the end of the chain
        for old_id in list(redirects):
            target = redirects[old_id]
            while target in redirects:
                target = redirects[target]
            redirects[old_id] = target

        survivors = [live[pid] for pid in order if pid not in redirects]
        return DeduplicationResult(profiles=survivors, redirects=redirects)

    @staticmethod
    def _same_source(current: ComponentProfile, other: ComponentProfile) -> bool:
        if not other.source_path and other.dependency_package is None:
            return True
        return other.source_path == current.source_path

    @staticmethod
    def _fold(survivor: ComponentProfile, duplicates: List[ComponentProfile]) -> ComponentProfile:
        folded = list(survivor.usage_locations)
        for dup in duplicates:
            folded.extend(dup.usage_locations)
        locations = merge_locations(folded, source=survivor.source_path)
        return replace(
            survivor,
            usage_locations=locations,
            total_usage_count=count_lines(locations),
        )
