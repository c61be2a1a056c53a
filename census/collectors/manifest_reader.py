"""package.json dependency reader."""
import json
from pathlib import Path
from typing import Optional

from ..models import DependencyManifest
from ..utils.logger import get_logger


def read_manifest(package_json: str | Path) -> DependencyManifest:
    """Read dependencies and devDependencies of a package.json.

    Args:
        package_json: Path to the package.json file

    Returns:
        DependencyManifest; empty maps when the file is missing or malformed
    """
    try:
        with open(package_json, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (IOError, OSError, json.JSONDecodeError) as exc:
        get_logger().debug("Unreadable manifest:", package_json, exc)
        return DependencyManifest()

    if not isinstance(data, dict):
        return DependencyManifest()

    return DependencyManifest(
        dependencies=_as_versions(data.get('dependencies')),
        dev_dependencies=_as_versions(data.get('devDependencies')),
    )


def _as_versions(section) -> dict:
    if not isinstance(section, dict):
        return {}
    return {str(name): str(version) for name, version in section.items()}


def lib_version(name: str, manifest: DependencyManifest) -> Optional[str]:
    """Version of a library from dependencies, then devDependencies."""
    return manifest.dependencies.get(name) or manifest.dev_dependencies.get(name)
