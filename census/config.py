"""Configuration management for Component Census.

Loads environment variables and provides centralized config access.
"""
import os
from pathlib import Path
from typing import List
from dotenv import load_dotenv

__version__ = "1.2.0"

# Extensions probed when an import specifier has no (recognized) extension.
# Order matters: script, script-with-markup, then single-file components.
SUPPORT_EXT = ['.js', '.jsx', '.ts', '.tsx', '.vue']

# Files globbed during discovery
DISCOVERY_EXT = ['vue', 'js', 'json', 'ts', 'tsx', 'jsx']

# Extensions whose files define a component (file stem == component name)
COMPONENT_FILE_EXT = {'.vue', '.jsx', '.tsx'}

DEFAULT_IGNORE_PATTERNS = [
    'node_modules',
    'dist',
    '.git',
    '.output',
    'coverage',
    '.census',
]

OUTPUT_FORMATS = ('json', 'stdout')

_TRUTHY = {'1', 'true', 'yes', 'on'}


class Config:
    """Configuration loader with environment variable support."""

    def __init__(self):
        """Initialize config by loading .env file."""
        project_root = Path(__file__).parent.parent
        load_dotenv(project_root / ".env")
        # A .env next to the scanned project wins over the install location
        load_dotenv(Path.cwd() / ".env", override=True)

        self._validate()

    def _validate(self):
        """Validate environment-provided values.

        Raises:
            ValueError: If CENSUS_OUTPUT is not a supported format
        """
        if self.output_format not in OUTPUT_FORMATS:
            raise ValueError(
                f"CENSUS_OUTPUT must be one of {', '.join(OUTPUT_FORMATS)}, "
                f"got '{self.output_format}'."
            )

    @property
    def output_format(self) -> str:
        """Get output format ('json' or 'stdout')."""
        return os.getenv("CENSUS_OUTPUT", "json").strip().lower()

    @property
    def app_dir(self) -> str:
        """Get the directory where results are written.

        Returns:
            Path to the output directory (default .census)
        """
        return os.getenv("CENSUS_APP_DIR", ".census")

    @property
    def ignore_patterns(self) -> List[str]:
        """Get ignore patterns: defaults plus CENSUS_IGNORE entries.

        Returns:
            De-duplicated list of ignore patterns, defaults first
        """
        extra = os.getenv("CENSUS_IGNORE", "")
        patterns = list(DEFAULT_IGNORE_PATTERNS)
        for item in extra.split(","):
            item = item.strip()
            if item and item not in patterns:
                patterns.append(item)
        return patterns

    @property
    def verbose(self) -> bool:
        """Whether debug output is enabled."""
        return os.getenv("CENSUS_VERBOSE", "").strip().lower() in _TRUTHY

    @property
    def history_enabled(self) -> bool:
        """Whether git history enrichment runs after the scan."""
        value = os.getenv("CENSUS_HISTORY", "1").strip().lower()
        return value not in {'0', 'false', 'no', 'off'}

    @property
    def debug(self) -> bool:
        """Whether intermediate pipeline stages are dumped to the app dir."""
        return os.getenv("CENSUS_DEBUG", "").strip().lower() in _TRUTHY


# Singleton instance
_config = None


def get_config() -> Config:
    """Get or create singleton Config instance.

    Returns:
        Config instance
    """
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config():
    """Drop the cached Config so the environment is read again."""
    global _config
    _config = None
