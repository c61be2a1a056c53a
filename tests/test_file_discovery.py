"""Tests for source discovery and package grouping."""
from pathlib import Path

import pytest

from census.collectors.file_discovery import discover, find_nearest_package_json, get_supported_files, group_by_package


def touch(root: Path, relative: str, content: str = '') -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


@pytest.fixture
def monorepo(tmp_path):
    root = tmp_path.resolve()
    touch(root, 'package.json', '{}')
    touch(root, 'tsconfig.json', '{}')
    touch(root, 'src/App.vue')
    touch(root, 'src/main.ts')
    touch(root, 'src/styles.css')
    touch(root, 'node_modules/lib/index.js')
    touch(root, 'dist/bundle.js')
    touch(root, 'packages/admin/package.json', '{}')
    touch(root, 'packages/admin/jsconfig.json', '{}')
    touch(root, 'packages/admin/src/Panel.jsx')
    return root


class TestGetSupportedFiles:
    def test_ignored_and_unsupported_files_are_skipped(self, monorepo):
        files = get_supported_files(monorepo, ['node_modules', 'dist'])
        relative = sorted(Path(f).relative_to(monorepo).as_posix() for f in files)

        assert relative == [
            'packages/admin/jsconfig.json',
            'packages/admin/src/Panel.jsx',
            'src/App.vue',
            'src/main.ts',
            'tsconfig.json',
        ]

    def test_patterns_only_apply_below_the_scan_path(self, tmp_path):
        root = tmp_path.resolve() / 'dist' / 'app'
        touch(root, 'src/App.vue')

        files = get_supported_files(root, ['dist'])

        assert [Path(f).name for f in files] == ['App.vue']

    def test_glob_patterns(self, monorepo):
        files = get_supported_files(monorepo, ['node_modules', 'dist', 'packages/**'])
        assert not any('/packages/' in f for f in files)


def test_nearest_package_json(monorepo):
    assert find_nearest_package_json(monorepo / 'packages/admin/src') == (monorepo / 'packages/admin/package.json').as_posix()
    assert find_nearest_package_json(monorepo / 'src') == (monorepo / 'package.json').as_posix()


def test_nearest_package_json_stops_at_limit(tmp_path):
    root = tmp_path.resolve()
    touch(root, 'package.json', '{}')
    touch(root, 'app/src/App.vue')

    assert find_nearest_package_json(root / 'app' / 'src', stop_at=root / 'app') is None


def test_group_by_package(monorepo):
    files = get_supported_files(monorepo, ['node_modules', 'dist'])
    groups = {Path(g.root).relative_to(monorepo).as_posix(): g for g in group_by_package(files, stop_at=monorepo)}

    assert set(groups) == {'.', 'packages/admin'}
    admin = groups['packages/admin']
    assert [Path(f).name for f in admin.source_files] == ['Panel.jsx']
    assert [Path(f).name for f in admin.config_paths] == ['jsconfig.json']
    assert [Path(f).name for f in groups['.'].config_paths] == ['tsconfig.json']


def test_discover_includes_nuxt_folder(tmp_path):
    root = tmp_path.resolve()
    touch(root, 'package.json', '{}')
    touch(root, 'app.vue')
    touch(root, '.nuxt/components.d.ts')

    groups = discover(root, ['node_modules'])

    assert len(groups) == 1
    assert sorted(Path(f).name for f in groups[0].source_files) == ['app.vue', 'components.d.ts']
