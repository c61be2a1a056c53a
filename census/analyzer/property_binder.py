from dataclasses import replace
from typing import List, Mapping, Sequence

from ..models import ComponentProfile, Property, to_posix


class PropertyBinder:
    """Attach declared properties to profiles by resolved source path."""

    def __init__(self, properties_by_path: Mapping[str, Sequence[Property]]):
        self.properties_by_path = {
            to_posix(path): tuple(props) for path, props in properties_by_path.items()
        }

    def bind(self, profiles: Sequence[ComponentProfile]) -> List[ComponentProfile]:
        """Return profiles with ``properties`` set; no entry means no properties."""
        return [
            replace(profile, properties=self.properties_by_path.get(profile.source_path))
            for profile in profiles
        ]
