import csv
import json

import pytest

import main
from allerguard import SensitivityLevel


def test_parse_allergies_uses_levels_and_defaults(lexicon):
    user = main.parse_allergies("Peanuts:severe, milk ,tree nuts:mild", lexicon)
    assert user.sensitivities == {
        "peanuts": SensitivityLevel.SEVERE,
        "milk": SensitivityLevel.MODERATE,
        "tree_nuts": SensitivityLevel.MILD,
    }


def test_parse_allergies_rejects_unknown_level(lexicon):
    with pytest.raises(ValueError):
        main.parse_allergies("milk:extreme", lexicon)


def test_json_scan_and_history(tmp_path, capsys):
    history = tmp_path / "history.csv"
    code = main.main(
        [
            "--text",
            "Satay skewers with peanut sauce",
            "--allergies",
            "peanuts:severe",
            "--format",
            "json",
            "--history",
            str(history),
        ]
    )
    assert code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["tier"] == "unsafe"

    main.main(["--text", "plain rice", "--allergies", "peanuts", "--history", str(history)])
    with history.open(newline="", encoding="utf-8") as fh:
        rows = list(csv.DictReader(fh))
    assert [row["id"] for row in rows] == ["1", "2"]
    assert [row["tier"] for row in rows] == ["unsafe", "safe"]
    assert rows[0]["triggering_allergens"] == "peanuts"


def test_menu_text_output(tmp_path, capsys):
    menu_file = tmp_path / "menu.txt"
    menu_file.write_text("Tiramisu\nmascarpone, egg yolk\n\nSorbet\nlemon\n", encoding="utf-8")
    code = main.main(
        [
            "--text-file",
            str(menu_file),
            "--menu",
            "--allergies",
            "eggs:moderate",
            "--no-history",
        ]
    )
    out = capsys.readouterr().out
    assert code == 0
    assert "Worst: unsafe" in out
    assert "Tiramisu" in out and "Sorbet" in out


def test_bad_level_exits_with_error(capsys):
    code = main.main(["--text", "milk", "--allergies", "milk:extreme", "--no-history"])
    assert code == 2
    assert "error" in capsys.readouterr().err


def test_blank_text_exits_with_error(capsys):
    code = main.main(["--text", "   ", "--allergies", "milk", "--no-history"])
    assert code == 2


def test_missing_text_file_exits_with_error(tmp_path, capsys):
    code = main.main(
        ["--text-file", str(tmp_path / "nope.txt"), "--allergies", "milk", "--no-history"]
    )
    assert code == 2
    assert "cannot read" in capsys.readouterr().err


def test_history_ids_skip_non_numeric_rows(tmp_path):
    history = tmp_path / "history.csv"
    history.write_text("id,tier\n7,safe\nabc,safe\n,unsafe\n", encoding="utf-8")
    assert main._next_history_id(history) == 8
    assert main._next_history_id(tmp_path / "missing.csv") == 1
