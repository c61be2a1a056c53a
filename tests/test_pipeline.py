"""End-to-end tests of the aggregation pipeline over in-memory parse results."""
import pytest

from census.analyzer.deduplicator import DeduplicationPass
from census.analyzer.naming import identity_key
from census.analyzer.pipeline import ScanContext, run_pipeline
from census.errors import ScanPreconditionError
from census.models import (
    DependencyManifest,
    ParsedFile,
    Property,
    RuntimeRegistration,
    SourceKind,
    StaticImport,
    TagOccurrence,
    UsageRef,
)


def occ(tag, line):
    return TagOccurrence(tag_name=tag, line=line)


@pytest.fixture
def widget_project(fake_files):
    """A.vue renders <my-widget> twice; B.vue imports MyWidget and renders it once."""
    fake_files.add('/proj/A.vue', '/proj/B.vue', '/proj/widgets/MyWidget.vue')
    files = [
        ParsedFile(path='/proj/A.vue', tag_occurrences=(occ('my-widget', 10), occ('my-widget', 14))),
        ParsedFile(
            path='/proj/B.vue',
            tag_occurrences=(occ('MyWidget', 4),),
            raw_imports=(StaticImport(('MyWidget',), '/proj/widgets/MyWidget.vue', '/proj/B.vue',
                                      source_kind=SourceKind.INTERNAL),),
        ),
        ParsedFile(
            path='/proj/widgets/MyWidget.vue',
            tag_occurrences=(occ('Icon', 3),),
            declared_properties=(Property('label', 'string'),),
        ),
    ]
    return ScanContext(native_tags=('div',), file_exists=fake_files), files


def profiles_named(result, name):
    return [p for p in result.profiles if identity_key(p.name) == identity_key(name)]


class TestWidgetScenario:
    def test_one_profile_bound_to_the_widget_file(self, widget_project):
        context, files = widget_project
        result = run_pipeline(context, files)

        widgets = profiles_named(result, 'MyWidget')
        assert len(widgets) == 1
        widget = widgets[0]
        assert widget.source_path == '/proj/widgets/MyWidget.vue'
        assert widget.kind == SourceKind.INTERNAL
        assert widget.total_usage_count == 3

        lines = {loc.destination_file: loc.lines for loc in widget.usage_locations}
        assert lines == {'/proj/A.vue': (10, 14), '/proj/B.vue': (4,)}

    def test_children_and_properties_are_attached(self, widget_project):
        context, files = widget_project
        widget = profiles_named(run_pipeline(context, files), 'MyWidget')[0]

        assert widget.children.tags == ('Icon',)
        assert widget.properties == (Property('label', 'string'),)

    def test_usage_invariant_holds(self, widget_project):
        context, files = widget_project
        for profile in run_pipeline(context, files).profiles:
            assert profile.total_usage_count == sum(len(loc.lines) for loc in profile.usage_locations)

    def test_identities_are_unique(self, widget_project):
        context, files = widget_project
        identities = [(identity_key(p.identity[0]), p.identity[1]) for p in run_pipeline(context, files).profiles]
        assert len(identities) == len(set(identities))

    def test_dedup_is_idempotent_on_pipeline_output(self, widget_project):
        context, files = widget_project
        result = run_pipeline(context, files)

        again = DeduplicationPass().run(result.profiles)

        assert again.profiles == result.profiles
        assert again.redirects == {}


def test_external_dependency_prefix(fake_files):
    """'@ui/button' with a '@ui' dependency is external with its package."""
    files = [ParsedFile(
        path='/proj/App.vue',
        tag_occurrences=(occ('ui-button', 5),),
        raw_imports=(StaticImport(('UiButton',), '@ui/button', '/proj/App.vue', source_kind=SourceKind.EXTERNAL),),
    )]
    context = ScanContext(manifest=DependencyManifest(dependencies={'@ui': '2.1.0'}), file_exists=fake_files)

    button = profiles_named(run_pipeline(context, files), 'UiButton')[0]

    assert button.kind == SourceKind.EXTERNAL
    assert button.dependency_package.name == '@ui'
    assert button.dependency_package.version == '2.1.0'


def test_unresolvable_import_is_retained(fake_files):
    """An alias pointing nowhere keeps the raw specifier and no kind."""
    files = [ParsedFile(
        path='/proj/App.vue',
        tag_occurrences=(occ('ghost-panel', 8),),
        raw_imports=(StaticImport(('GhostPanel',), '@/missing/GhostPanel', '/proj/App.vue'),),
    )]
    context = ScanContext(alias_tables=({'@/*': ['/proj/src/*']},), file_exists=fake_files)

    ghost = profiles_named(run_pipeline(context, files), 'GhostPanel')[0]

    assert ghost.kind is None
    assert ghost.source_path == '@/missing/GhostPanel'
    assert ghost.total_usage_count == 1


def test_alias_resolution_through_pipeline(fake_files):
    fake_files.add('/proj/src/components/Foo.vue')
    files = [ParsedFile(
        path='/proj/src/App.vue',
        tag_occurrences=(occ('Foo', 2),),
        raw_imports=(StaticImport(('Foo',), '@/components/Foo', '/proj/src/App.vue'),),
    )]
    context = ScanContext(alias_tables=({'@/*': ['/proj/src/*']},), file_exists=fake_files)

    foo = profiles_named(run_pipeline(context, files), 'Foo')[0]

    assert foo.source_path == '/proj/src/components/Foo.vue'
    assert foo.kind == SourceKind.INTERNAL


def test_package_alias_tables_apply_to_their_files(fake_files):
    fake_files.add('/mono/web/src/Foo.vue', '/mono/admin/src/Foo.vue')
    files = [
        ParsedFile(path='/mono/web/src/App.vue', tag_occurrences=(occ('Foo', 1),),
                   raw_imports=(StaticImport(('Foo',), '@/Foo', '/mono/web/src/App.vue'),)),
        ParsedFile(path='/mono/admin/src/App.vue', tag_occurrences=(occ('Foo', 1),),
                   raw_imports=(StaticImport(('Foo',), '@/Foo', '/mono/admin/src/App.vue'),)),
    ]
    context = ScanContext(
        package_alias_tables={
            '/mono/web': ({'@/*': ['/mono/web/src/*']},),
            '/mono/admin': ({'@/*': ['/mono/admin/src/*']},),
        },
        file_exists=fake_files,
    )

    sources = {p.source_path for p in profiles_named(run_pipeline(context, files), 'Foo')}

    assert sources == {'/mono/web/src/Foo.vue', '/mono/admin/src/Foo.vue'}


def test_runtime_registration_counts_as_usage(fake_files):
    fake_files.add('/proj/src/Foo.vue')
    files = [ParsedFile(
        path='/proj/src/main.js',
        raw_imports=(
            StaticImport(('Foo',), '/proj/src/Foo.vue', '/proj/src/main.js'),
            RuntimeRegistration(('Foo',), '/proj/src/Foo.vue', '/proj/src/main.js',
                                usage=UsageRef({'/proj/src/main.js': (6,)})),
        ),
    ), ParsedFile(path='/proj/src/Foo.vue')]
    context = ScanContext(file_exists=fake_files)

    foo = profiles_named(run_pipeline(context, files), 'Foo')[0]

    assert foo.total_usage_count == 1
    assert foo.usage_locations[0].destination_file == '/proj/src/main.js'


def test_native_tags_never_become_profiles(fake_files):
    files = [ParsedFile(path='/proj/App.js', tag_occurrences=(occ('div', 1), occ('Button', 2)))]
    context = ScanContext(native_tags=('div', 'button'), file_exists=fake_files)

    assert run_pipeline(context, files).profiles == []


def test_no_files_is_a_precondition_error():
    with pytest.raises(ScanPreconditionError):
        run_pipeline(ScanContext(), [])


def test_same_named_components_in_different_folders(fake_files):
    """Only /p/a/Card.vue is imported; /p/b/Card.vue must survive on its own."""
    fake_files.add('/p/a/Card.vue', '/p/b/Card.vue', '/p/X.vue')
    files = [
        ParsedFile(path='/p/a/Card.vue'),
        ParsedFile(path='/p/b/Card.vue'),
        ParsedFile(
            path='/p/X.vue',
            tag_occurrences=(occ('Card', 3),),
            raw_imports=(StaticImport(('Card',), '/p/a/Card.vue', '/p/X.vue'),),
        ),
    ]

    result = run_pipeline(ScanContext(file_exists=fake_files), files)

    cards = {p.source_path: p for p in profiles_named(result, 'Card')}
    assert set(cards) == {'/p/a/Card.vue', '/p/b/Card.vue'}
    assert cards['/p/a/Card.vue'].total_usage_count == 1
    assert cards['/p/b/Card.vue'].total_usage_count == 0
    assert cards['/p/b/Card.vue'].kind == SourceKind.INTERNAL
    assert result.redirects == {}
    assert result.collisions == []


def test_intermediate_stages_are_kept(widget_project):
    context, files = widget_project

    result = run_pipeline(context, files)

    assert [i.component_name for i in result.usage_instances if i.destination_file == '/proj/A.vue'] == ['A', 'my-widget']
    assert len(result.grouped_profiles) > len(result.profiles)
