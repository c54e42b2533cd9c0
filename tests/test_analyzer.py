import logging

import pytest

from intl_analyzer.domain.models import AnalysisOptions
from intl_analyzer.parsing.errors import ParseError, UnknownExtensionError
from intl_analyzer.services.analyzer import analyze_file, analyze_sources, dialect_for


def _reader(files):
    def read(path):
        for name, content in files.items():
            if path.endswith(name):
                return content
        raise AssertionError(f"unexpected read of {path}")

    return read


@pytest.mark.parametrize(
    "path, name",
    [
        ("app/a.js", "javascript"),
        ("app/a.ts", "typescript"),
        ("app/a.jsx", "jsx"),
        ("app/a.tsx", "jsx"),
        ("app/a.hbs", "handlebars"),
        ("app/a.emblem", "emblem"),
        ("app/a.gjs", "javascript component"),
        ("app/a.gts", "typescript component"),
    ],
)
def test_dialect_registry(path, name):
    assert dialect_for(path).name == name


def test_unknown_extension_fails_before_reading():
    with pytest.raises(UnknownExtensionError, match=r"Unknown extension: \.coffee \(app/x\.coffee\)"):
        analyze_file("/root", "app/x.coffee", AnalysisOptions(), read_file=_reader({}))


def test_parse_errors_name_the_file():
    with pytest.raises(ParseError) as info:
        analyze_sources("/p", ["app/broken.hbs"], read_file=_reader({"broken.hbs": "{{#if a}}"}))
    assert info.value.path == "app/broken.hbs"
    assert "app/broken.hbs" in str(info.value)


def test_keys_are_merged_across_files():
    files = {
        "app/a.js": "export default () => this.intl.t('shared.key');",
        "app/b.hbs": '{{t "shared.key"}} {{t "only.hbs"}}',
        "app/c.emblem": 'p = t "only.emblem"',
    }
    used = analyze_sources("/p", list(files), read_file=_reader(files))
    assert used == {
        "shared.key": {"app/a.js", "app/b.hbs"},
        "only.hbs": {"app/b.hbs"},
        "only.emblem": {"app/c.emblem"},
    }


def test_options_reach_the_dialects():
    files = {"app/a.hbs": '{{t-html (concat "x." "y")}}'}
    options = AnalysisOptions(helpers=("t", "t-html"), analyze_concat_expression=True)
    assert analyze_sources("/p", list(files), options, read_file=_reader(files)) == {"x.y": {"app/a.hbs"}}


def test_typescript_plugin_for_js_files():
    files = {"app/a.js": "const label: string = this.intl.t('typed.key');"}
    options = AnalysisOptions(parser_plugins=("typescript",))
    assert analyze_sources("/p", list(files), options, read_file=_reader(files)) == {
        "typed.key": {"app/a.js"}
    }


def test_unknown_parser_plugins_are_ignored_with_a_warning(caplog):
    files = {"app/a.js": "t('k');"}
    with caplog.at_level(logging.WARNING):
        used = analyze_sources(
            "/p", list(files), AnalysisOptions(parser_plugins=("decorators",)), read_file=_reader(files)
        )
    assert used == {"k": {"app/a.js"}}
    assert "decorators" in caplog.text
