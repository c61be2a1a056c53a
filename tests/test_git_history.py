"""Tests for git authorship enrichment, with an injected git runner."""
from census.history.git_history import GitHistoryService, parse_log
from census.models import ComponentProfile, FileHistory, SourceKind

LOG = (
    '2024-05-02T10:00:00+02:00\x1fBea\n'
    '2024-03-11T09:30:00+01:00\x1fAri\n'
    '2023-12-01T08:00:00+01:00\x1fNoor\n'
)


class RecordingRunner:
    def __init__(self, output):
        self.output = output
        self.calls = []

    def __call__(self, args, cwd):
        self.calls.append(args)
        return self.output


def test_parse_log_newest_and_oldest():
    assert parse_log(LOG) == FileHistory(
        created='2023-12-01T08:00:00+01:00',
        created_by='Noor',
        last_modified='2024-05-02T10:00:00+02:00',
        updated_by='Bea',
    )


def test_parse_log_without_entries():
    assert parse_log('') is None
    assert parse_log('warning: not a commit line\n') is None


def test_only_internal_profiles_are_enriched(tmp_path):
    runner = RecordingRunner(LOG)
    service = GitHistoryService(tmp_path, runner=runner)
    profiles = [
        ComponentProfile(id=1, name='Foo', source_path='/p/Foo.vue', kind=SourceKind.INTERNAL),
        ComponentProfile(id=2, name='UiButton', source_path='@ui/button', kind=SourceKind.EXTERNAL),
        ComponentProfile(id=3, name='Ghost'),
    ]

    enriched = service.enrich(profiles)

    assert enriched[0].history.created_by == 'Noor'
    assert enriched[1] is profiles[1]
    assert enriched[2] is profiles[2]
    assert runner.calls == [['log', '--follow', '--format=%aI%x1f%an', '--', '/p/Foo.vue']]


def test_history_is_cached_per_path(tmp_path):
    runner = RecordingRunner(LOG)
    service = GitHistoryService(tmp_path, runner=runner)

    service.history_for('/p/Foo.vue')
    service.history_for('/p/Foo.vue')

    assert len(runner.calls) == 1


def test_git_failure_leaves_profile_unchanged(tmp_path):
    service = GitHistoryService(tmp_path, runner=RecordingRunner(None))
    profile = ComponentProfile(id=1, name='Foo', source_path='/p/Foo.vue', kind=SourceKind.INTERNAL)

    assert service.enrich([profile]) == [profile]
    assert 'property' not in profile.to_dict()['source']
