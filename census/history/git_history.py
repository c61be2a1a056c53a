"""Git authorship enrichment for internal component profiles."""
import subprocess
from dataclasses import replace
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from ..models import ComponentProfile, FileHistory, SourceKind
from ..utils.logger import get_logger

# One line per commit, newest first
LOG_FORMAT = '%aI%x1f%an'

GitRunner = Callable[[List[str], Path], Optional[str]]


def run_git(args: List[str], cwd: Path) -> Optional[str]:
    """Run a git command and return stdout, or None on any failure."""
    try:
        completed = subprocess.run(
            ['git', *args],
            cwd=str(cwd),
            capture_output=True,
            text=True,
            encoding='utf-8',
            errors='replace',
            timeout=30,
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        get_logger().debug("git failed:", exc)
        return None
    if completed.returncode != 0:
        get_logger().debug("git exited with", completed.returncode, completed.stderr.strip())
        return None
    return completed.stdout


def parse_log(output: str) -> Optional[FileHistory]:
    """Build FileHistory from ``git log --format=LOG_FORMAT`` output."""
    entries = []
    for line in output.splitlines():
        if '\x1f' not in line:
            continue
        date, author = line.split('\x1f', 1)
        entries.append((date.strip(), author.strip()))
    if not entries:
        return None

    last_modified, updated_by = entries[0]
    created, created_by = entries[-1]
    return FileHistory(
        created=created,
        created_by=created_by,
        last_modified=last_modified,
        updated_by=updated_by,
    )


class GitHistoryService:
    """Look up creation and last-change metadata of source files."""

    def __init__(self, repo_root: str | Path, runner: GitRunner = run_git):
        """Initialize service.

        Args:
            repo_root: Directory inside the git work tree
            runner: Command runner (injected in tests)
        """
        self.repo_root = Path(repo_root)
        self.runner = runner
        self._cache: Dict[str, Optional[FileHistory]] = {}

    def history_for(self, path: str) -> Optional[FileHistory]:
        if path not in self._cache:
            output = self.runner(['log', '--follow', f'--format={LOG_FORMAT}', '--', path], self.repo_root)
            self._cache[path] = parse_log(output) if output else None
        return self._cache[path]

    def enrich(self, profiles: Sequence[ComponentProfile]) -> List[ComponentProfile]:
        """Return profiles with ``history`` set for internal sources.

        Profiles whose history cannot be read are returned unchanged.
        """
        enriched = []
        for profile in profiles:
            if profile.kind != SourceKind.INTERNAL or not profile.source_path:
                enriched.append(profile)
                continue
            history = self.history_for(profile.source_path)
            enriched.append(replace(profile, history=history) if history else profile)
        return enriched
