"""Source binding: attach each profile to the file or package defining it."""
from dataclasses import dataclass, field, replace
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from ..models import (
    ChildSummary,
    ComponentProfile,
    DependencyManifest,
    DependencyPackage,
    RawImport,
    SourceKind,
    to_posix,
)
from ..utils.logger import get_logger
from .naming import kebab_to_pascal


@dataclass(frozen=True)
class BindingCollision:
    """Several distinct sources import the same component name.

    Reported when no candidate shares the profile's current source, so the
    first PascalCase match was picked among real alternatives.
    """
    profile_id: int
    name: str
    chosen: str
    alternatives: Tuple[str, ...]


@dataclass(frozen=True)
class BindingResult:
    profiles: List[ComponentProfile]
    collisions: List[BindingCollision] = field(default_factory=list)


def find_dependency(specifier: str, manifest: DependencyManifest) -> Optional[DependencyPackage]:
    """Find the package whose name is a prefix of an import specifier.

    dependencies are searched before devDependencies; the prefix has to end
    at a path segment ('@ui' matches '@ui/button', not '@uikit').

    Args:
        specifier: Import specifier (e.g. '@ui/button', 'vuetify/components')
        manifest: Merged dependencies of the project

    Returns:
        DependencyPackage or None
    """
    if not specifier:
        return None
    for packages in (manifest.dependencies, manifest.dev_dependencies):
        for name, version in (packages or {}).items():
            if specifier == name or specifier.startswith(name.rstrip('/') + '/'):
                return DependencyPackage(name=name, version=str(version))
    return None


class SourceBinder:
    """Bind profiles to their defining source using the import index."""

    def __init__(self, manifest: Optional[DependencyManifest] = None,
                 children: Optional[Mapping[str, ChildSummary]] = None):
        """Initialize binder.

        Args:
            manifest: Merged dependencies/devDependencies of the project
            children: Pre-built file -> child tag summary map
        """
        self.manifest = manifest or DependencyManifest()
        self.children = dict(children or {})
        self.log = get_logger()

    def bind(self, profiles: Sequence[ComponentProfile], import_index: Sequence[RawImport]) -> BindingResult:
        """Bind every profile.

        Internal profiles no import points at stay on their own file; other
        unbindable profiles are returned unchanged.

        Returns:
            BindingResult with bound profiles and reported collisions
        """
        by_name = self._index_by_name(import_index)

        bound: List[ComponentProfile] = []
        collisions: List[BindingCollision] = []
        for profile in profiles:
            candidates = self._candidates(profile, by_name)
            chosen, collision = self._choose(profile, candidates) if candidates else (None, None)
            if collision is not None:
                self.log.debug("Ambiguous component source:", profile.name, collision.alternatives)
                collisions.append(collision)

            if chosen is not None:
                bound.append(self._apply(profile, chosen))
            elif profile.kind == SourceKind.INTERNAL and profile.source_path:
                bound.append(self._keep_own_source(profile))
            else:
                bound.append(profile)

        return BindingResult(profiles=bound, collisions=collisions)

    @staticmethod
    def _index_by_name(import_index: Sequence[RawImport]) -> Dict[str, List[Tuple[int, RawImport]]]:
        by_name: Dict[str, List[Tuple[int, RawImport]]] = {}
        for position, entry in enumerate(import_index):
            for name in dict.fromkeys(n.lower() for n in entry.imported_names if n):
                by_name.setdefault(name, []).append((position, entry))
        return by_name

    @staticmethod
    def _candidates(profile: ComponentProfile, by_name) -> List[RawImport]:
        keys = {profile.name.lower(), kebab_to_pascal(profile.name).lower()}
        found: Dict[int, RawImport] = {}
        for key in keys:
            for position, entry in by_name.get(key, ()):
                found[position] = entry
        return [found[position] for position in sorted(found)]

    @staticmethod
    def _choose(profile: ComponentProfile, candidates: List[RawImport]):
        current = profile.source_path
        if current:
            for entry in candidates:
                if current in (to_posix(entry.resolved_path or ''), to_posix(entry.source)):
                    return entry, None

        # A component file on disk is its own source; other files exporting
        # the same name are different components
        if profile.kind == SourceKind.INTERNAL and current:
            return None, None

        pascal = kebab_to_pascal(profile.name).lower()
        chosen = next(
            (e for e in candidates if any(n.lower() == pascal for n in e.imported_names if n)),
            None,
        )
        if chosen is None:
            return None, None

        sources = list(dict.fromkeys(to_posix(e.effective_source) for e in candidates))
        collision = None
        if len(sources) > 1:
            picked = to_posix(chosen.effective_source)
            collision = BindingCollision(
                profile_id=profile.id,
                name=profile.name,
                chosen=picked,
                alternatives=tuple(s for s in sources if s != picked),
            )
        return chosen, collision

    def _keep_own_source(self, profile: ComponentProfile) -> ComponentProfile:
        path = to_posix(profile.source_path)
        return replace(
            profile,
            source_path=path,
            children=self.children.get(path) or ChildSummary(tags=(), total=0, source=path),
        )

    def _apply(self, profile: ComponentProfile, entry: RawImport) -> ComponentProfile:
        kind = entry.source_kind if entry.source_kind != SourceKind.UNKNOWN else None
        path = to_posix(entry.resolved_path or entry.source)

        children = None
        package = None
        if kind == SourceKind.INTERNAL:
            children = (self.children.get(path)
                        or self.children.get(to_posix(entry.source))
                        or ChildSummary(tags=(), total=0, source=path))
        else:
            # Not on disk and not a declared dependency: keep the specifier,
            # but the origin stays unresolved
            package = find_dependency(entry.resolved_path or entry.source, self.manifest)
            kind = SourceKind.EXTERNAL if package is not None else None

        return replace(
            profile,
            kind=kind,
            source_path=path,
            children=children,
            dependency_package=package,
        )
