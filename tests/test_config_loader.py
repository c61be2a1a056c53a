"""Tests for alias table loading from tsconfig/jsconfig and Vite configs."""
import pytest

from census.collectors.config_loader import compiler_paths, load_alias_tables, load_jsonc, vite_aliases


@pytest.fixture
def project(tmp_path):
    return tmp_path.resolve()


class TestJsonc:
    def test_comments_and_trailing_commas(self, project):
        path = project / 'tsconfig.json'
        path.write_text(
            '{\n'
            '  // line comment\n'
            '  "compilerOptions": { /* block */ "baseUrl": ".", },\n'
            '  "include": ["src/**/*"],\n'
            '}\n'
        )

        data = load_jsonc(path)

        assert data['compilerOptions'] == {'baseUrl': '.'}
        assert data['include'] == ['src/**/*']

    def test_comment_markers_inside_strings_survive(self, project):
        path = project / 'jsconfig.json'
        path.write_text('{"url": "http://example.com/*x*/"}')

        assert load_jsonc(path) == {'url': 'http://example.com/*x*/'}

    def test_unreadable_returns_none(self, project):
        assert load_jsonc(project / 'missing.json') is None
        broken = project / 'broken.json'
        broken.write_text('{ nope')
        assert load_jsonc(broken) is None


class TestCompilerPaths:
    def test_paths_joined_to_base_url(self, project):
        (project / 'tsconfig.json').write_text(
            '{"compilerOptions": {"baseUrl": "./src", "paths": {"@/*": ["./*"], "~ui": ["lib/ui"]}}}'
        )

        table = compiler_paths(project / 'tsconfig.json')

        assert table == {
            '@/*': [f'{project.as_posix()}/src/*'],
            '~ui': [f'{project.as_posix()}/src/lib/ui'],
        }

    def test_missing_base_url_defaults_to_config_dir(self, project):
        (project / 'tsconfig.json').write_text('{"compilerOptions": {"paths": {"@/*": ["src/*"]}}}')

        assert compiler_paths(project / 'tsconfig.json') == {'@/*': [f'{project.as_posix()}/src/*']}

    def test_no_paths(self, project):
        (project / 'tsconfig.json').write_text('{"compilerOptions": {"strict": true}}')
        assert compiler_paths(project / 'tsconfig.json') == {}


class TestViteAliases:
    def test_object_alias(self, project):
        (project / 'vite.config.ts').write_text(
            "import { defineConfig } from 'vite'\n"
            "import path from 'path'\n"
            "export default defineConfig({\n"
            "  plugins: [],\n"
            "  resolve: {\n"
            "    alias: {\n"
            "      '@': path.resolve(__dirname, 'src'),\n"
            "      '~assets': './assets',\n"
            "    },\n"
            "  },\n"
            "})\n"
        )

        table = vite_aliases(project / 'vite.config.ts')

        assert table == {
            '@': [f'{project.as_posix()}/src'],
            '~assets': [f'{project.as_posix()}/assets'],
        }

    def test_array_alias_skips_regex_find(self, project):
        (project / 'vite.config.js').write_text(
            "export default {\n"
            "  resolve: {\n"
            "    alias: [\n"
            "      { find: '@', replacement: './src' },\n"
            "      { find: /^~/, replacement: './node_modules/' },\n"
            "    ],\n"
            "  },\n"
            "}\n"
        )

        assert vite_aliases(project / 'vite.config.js') == {'@': [f'{project.as_posix()}/src']}

    def test_config_function(self, project):
        (project / 'vite.config.ts').write_text(
            "export default defineConfig(({ mode }) => {\n"
            "  return { resolve: { alias: { '@': './src' } } }\n"
            "})\n"
        )

        assert vite_aliases(project / 'vite.config.ts') == {'@': [f'{project.as_posix()}/src']}

    def test_without_alias(self, project):
        (project / 'vite.config.ts').write_text("export default { plugins: [] }\n")
        assert vite_aliases(project / 'vite.config.ts') == {}


def test_load_alias_tables_in_order(project):
    (project / 'tsconfig.json').write_text('{"compilerOptions": {"paths": {"@/*": ["src/*"]}}}')
    (project / 'vite.config.ts').write_text("export default { resolve: { alias: { '@': './src' } } }\n")

    tables = load_alias_tables(project, [str(project / 'tsconfig.json')])

    assert tables == [
        {'@/*': [f'{project.as_posix()}/src/*']},
        {'@': [f'{project.as_posix()}/src']},
    ]


def test_load_alias_tables_without_configs(project):
    assert load_alias_tables(project) == []
