import json

import pytest

from allerguard import AllergenLexicon, InvalidLexiconError, SensitivityLevel


def test_default_lexicon_covers_major_allergens(lexicon):
    assert len(lexicon) == 9
    assert set(lexicon.ids) >= {"peanuts", "tree_nuts", "milk", "eggs", "wheat", "sesame"}
    assert lexicon.get("peanuts").default_severity == SensitivityLevel.HIGH


@pytest.mark.parametrize(
    "user_input, expected",
    [
        ("Peanuts", "peanuts"),
        ("groundnut", "peanuts"),
        ("tree nuts", "tree_nuts"),
        ("Tree_Nuts", "tree_nuts"),
        ("casein", "milk"),
        ("kiwi", None),
        ("", None),
    ],
)
def test_resolve(lexicon, user_input, expected):
    assert lexicon.resolve(user_input) == expected


def test_label_falls_back_to_id_for_unknown(lexicon):
    assert lexicon.label("tree_nuts") == "Tree Nuts"
    assert lexicon.label("lupin") == "lupin"


def test_from_records_normalises_ids_and_defaults_severity():
    lex = AllergenLexicon.from_records([{"id": " Lupin ", "name": "lupin"}])
    assert lex.ids == ["lupin"]
    assert lex.get("lupin").default_severity == SensitivityLevel.MODERATE
    assert lex.label("lupin") == "Lupin"


@pytest.mark.parametrize(
    "records",
    [
        [{"name": "lupin"}],
        [{"id": "lupin"}],
        [{"id": "lupin", "name": "lupin", "severity": "deadly"}],
        [{"id": "lupin", "name": "lupin", "synonyms": "lupine"}],
        [{"id": "lupin", "name": "lupin", "synonyms": ["Lupin"]}],
        [{"id": "lupin", "name": "lupin", "hidden_forms": ["!!!"]}],
        [{"id": "lupin", "name": "lupin"}, {"id": "LUPIN", "name": "lupine"}],
        ["lupin"],
    ],
)
def test_malformed_records_are_rejected(records):
    with pytest.raises(InvalidLexiconError):
        AllergenLexicon.from_records(records)


def test_from_json_accepts_object_keyed_by_id(tmp_path):
    path = tmp_path / "lexicon.json"
    path.write_text(
        json.dumps({"celery": {"name": "celery", "synonyms": ["celeriac"], "severity": "mild"}}),
        encoding="utf-8",
    )
    lex = AllergenLexicon.from_json(path)
    assert lex.ids == ["celery"]
    assert lex.resolve("celeriac") == "celery"


def test_from_json_rejects_unreadable_file(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(InvalidLexiconError):
        AllergenLexicon.from_json(path)
    with pytest.raises(InvalidLexiconError):
        AllergenLexicon.from_json(tmp_path / "missing.json")
