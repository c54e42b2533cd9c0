import json

from intl_analyzer import cli


def test_parse_args_defaults():
    args = cli.parse_args([])
    assert args.fix is False
    assert args.color is True
    assert args.root is None


def test_main_reports_missing_translations(make_project, capsys):
    root = make_project(
        {
            "app/templates/a.hbs": '{{t "present"}} {{t "absent"}}',
            "translations/en.json": {"present": "p"},
        }
    )

    code = cli.main(["--root", str(root), "--no-color"])

    out = capsys.readouterr().out
    assert code == 1
    assert "Found 1 missing translations!" in out
    assert "   - absent (used in app/templates/a.hbs)" in out


def test_main_fix(make_project, capsys):
    root = make_project(
        {
            "app/templates/a.hbs": '{{t "present"}}',
            "translations/en.json": {"present": "p", "gone": "g"},
        }
    )

    assert cli.main(["--root", str(root), "--fix", "--no-color"]) == 0
    assert json.loads((root / "translations/en.json").read_text()) == {"present": "p"}
    assert "All unused translations were removed" in capsys.readouterr().out


def test_main_reports_analyzer_errors(make_project, capsys):
    root = make_project(
        {
            "app/templates/a.hbs": "",
            "translations/en.json": {"count": 3},
        }
    )

    assert cli.main(["--root", str(root)]) == 2
    assert "Error: Unknown value type: int (for count in translations/en.json)" in capsys.readouterr().err


def test_main_missing_root(tmp_path, capsys):
    assert cli.main(["--root", str(tmp_path / "nope")]) == 2
    assert "Project root not found" in capsys.readouterr().err
