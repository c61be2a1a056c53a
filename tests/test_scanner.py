"""Integration tests: scan a small Vue project written to a temp directory."""
import json
from pathlib import Path

import pytest

from census.analyzer.naming import identity_key
from census.config import reset_config
from census.errors import ScanPreconditionError
from census.models import SourceKind
from census.scanner import RESULT_FILENAME, ProjectScanner, write_json

APP_VUE = """<template>
  <main>
    <my-widget label="a" />
    <UiButton />
    <my-widget label="b" />
  </main>
</template>

<script setup>
import MyWidget from './components/MyWidget.vue'
import UiButton from '@ui/button'
</script>
"""

WIDGET_VUE = """<template>
  <span><Icon /></span>
</template>

<script setup>
defineProps(['label'])
</script>
"""


def write(root: Path, relative: str, content: str):
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)


@pytest.fixture(autouse=True)
def fresh_config(monkeypatch):
    for name in ('CENSUS_IGNORE', 'CENSUS_OUTPUT', 'CENSUS_HISTORY'):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def vue_project(tmp_path):
    root = tmp_path.resolve() / 'shop'
    write(root, 'package.json', json.dumps({'dependencies': {'vue': '^3.4.0', '@ui': '2.1.0'}}))
    write(root, 'src/App.vue', APP_VUE)
    write(root, 'src/components/MyWidget.vue', WIDGET_VUE)
    write(root, 'node_modules/@ui/button/index.js', 'export default {}')
    return root


def by_identity(result, name):
    return [p for p in result.profiles if identity_key(p.name) == identity_key(name)]


class TestProjectScanner:
    def test_internal_component(self, vue_project):
        result = ProjectScanner(vue_project).scan()

        widget, = by_identity(result, 'MyWidget')
        assert widget.source_path == (vue_project / 'src/components/MyWidget.vue').as_posix()
        assert widget.kind == SourceKind.INTERNAL
        assert widget.total_usage_count == 2
        assert widget.usage_locations[0].lines == (3, 5)
        assert [p.name for p in widget.properties] == ['label']
        assert widget.children.tags == ('Icon',)

    def test_external_component(self, vue_project):
        result = ProjectScanner(vue_project).scan()

        button, = by_identity(result, 'UiButton')
        assert button.kind == SourceKind.EXTERNAL
        assert button.source_path == '@ui/button'
        assert button.dependency_package.version == '2.1.0'

    def test_installed_packages_are_not_scanned(self, vue_project):
        result = ProjectScanner(vue_project).scan()

        assert result.files_scanned == 2

    def test_extra_ignore_patterns(self, vue_project):
        result = ProjectScanner(vue_project, ignore=['components']).scan()

        assert result.files_scanned == 1
        assert by_identity(result, 'MyWidget') == []

    def test_missing_package_json(self, tmp_path):
        with pytest.raises(ScanPreconditionError):
            ProjectScanner(tmp_path)

    def test_missing_path(self, tmp_path):
        with pytest.raises(ScanPreconditionError):
            ProjectScanner(tmp_path / 'nowhere')

    def test_project_without_sources(self, tmp_path):
        (tmp_path / 'package.json').write_text('{}')
        with pytest.raises(ScanPreconditionError):
            ProjectScanner(tmp_path).scan()


def test_write_json(vue_project, tmp_path):
    result = ProjectScanner(vue_project).scan()

    written = write_json(result, tmp_path / 'out')

    assert written.name == RESULT_FILENAME
    data = json.loads(written.read_text())
    assert [entry['name'] for entry in data] == [p.name for p in result.profiles]
    widget = next(entry for entry in data if identity_key(entry['name']) == 'my-widget')
    assert widget['type'] == 'internal'
    assert widget['total'] == 2
    assert widget['properties'] == [{'name': 'label', 'type': 'any'}]


def test_bare_specifier_ignores_working_directory(tmp_path, monkeypatch):
    """'src/Foo' must not turn internal just because the shell sits in the project."""
    root = tmp_path.resolve() / 'site'
    write(root, 'package.json', '{}')
    write(root, 'src/App.vue', "<template><Foo /></template>\n<script>\nimport Foo from 'src/Foo'\n</script>\n")
    write(root, 'src/Foo.vue', '<template><b /></template>\n')

    monkeypatch.chdir(root)
    from_project = [p.to_dict() for p in ProjectScanner(root).scan().profiles]
    monkeypatch.chdir(tmp_path)
    from_parent = [p.to_dict() for p in ProjectScanner(root).scan().profiles]

    assert from_project == from_parent
    foo_file = (root / 'src/Foo.vue').as_posix()
    assert any(entry['source']['path'] == foo_file and entry['type'] == 'internal' for entry in from_project)
    assert all(entry['type'] != 'internal' for entry in from_project if entry['source']['path'] == 'src/Foo')


def test_debug_dir_receives_pipeline_stages(vue_project, tmp_path):
    debug_dir = tmp_path / 'debug'

    result = ProjectScanner(vue_project, debug_dir=debug_dir).scan()

    assert sorted(p.name for p in debug_dir.iterdir()) == [
        'dedup-redirects.json',
        'grouped-component-sources.json',
        'import-index.json',
        'usage-instances.json',
    ]
    index = json.loads((debug_dir / 'import-index.json').read_text())
    assert {'sourceType': 'external', 'resolvedPath': '@ui/button'}.items() <= next(
        entry for entry in index if entry['source'] == '@ui/button').items()
    instances = json.loads((debug_dir / 'usage-instances.json').read_text())
    assert {'name', 'source', 'destination', 'lines'} == set(instances[0])
    redirects = json.loads((debug_dir / 'dedup-redirects.json').read_text())
    assert redirects == {str(old): new for old, new in result.redirects.items()}


def test_no_debug_output_by_default(vue_project):
    ProjectScanner(vue_project).scan()

    assert not any(p.suffix == '.json' for p in vue_project.iterdir() if p.name != 'package.json')
