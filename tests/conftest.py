"""Shared fixtures: an in-memory file system probe."""
import pytest


class FakeFiles:
    """Set of existing paths usable as a ``file_exists`` probe."""

    def __init__(self, *paths):
        self.paths = set(paths)

    def add(self, *paths):
        self.paths.update(paths)

    def __call__(self, path: str) -> bool:
        return path in self.paths


@pytest.fixture
def fake_files():
    return FakeFiles()
