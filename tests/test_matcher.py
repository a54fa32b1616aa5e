import pytest

from allerguard import EmptyTextError, LexiconMatcher, MatchKind, match


def _ids(matches):
    return {m.allergen_id for m in matches}


def test_canonical_match_reports_original_span(lexicon):
    text = "Contains PEANUTS."
    matches = match(text, lexicon)
    peanut = [m for m in matches if m.allergen_id == "peanuts"]
    assert len(peanut) == 1
    assert peanut[0].kind == MatchKind.CANONICAL
    assert (peanut[0].start, peanut[0].end) == (9, 16)
    assert peanut[0].matched_text == "PEANUTS"


def test_suffixes_other_than_plural_do_not_match(lexicon):
    assert "tree_nuts" not in _ids(match("Trout almondine", lexicon))
    assert "tree_nuts" in _ids(match("toasted almonds", lexicon))
    assert "tree_nuts" in _ids(match("Walnuts, chopped", lexicon))


def test_accented_text_matches_plain_term(lexicon):
    matches = match("Sauce au tahíni", lexicon)
    sesame = [m for m in matches if m.allergen_id == "sesame"]
    assert sesame and sesame[0].matched_text == "tahíni"


def test_hidden_form_is_reported_as_hidden(lexicon):
    matches = match("may contain casein", lexicon)
    assert [(m.allergen_id, m.kind) for m in matches] == [("milk", MatchKind.HIDDEN)]


def test_word_split_across_line_break_is_joined(lexicon):
    text = "pea-\nnut sauce"
    peanut = [m for m in match(text, lexicon) if m.allergen_id == "peanuts"]
    assert peanut
    assert peanut[0].matched_text == "pea-\nnut"
    assert (peanut[0].start, peanut[0].end) == (0, 8)


def test_real_compound_at_line_break_still_matches(lexicon):
    assert "soy" in _ids(match("soy-\nbased dressing", lexicon))


def test_soft_hyphen_is_ignored(lexicon):
    assert "peanuts" in _ids(match("pea\u00adnut oil", lexicon))


def test_exclusions_suppress_synonyms_inside_phrase(lexicon):
    assert "milk" not in _ids(match("peanut butter cookies", lexicon))
    assert "milk" not in _ids(match("dark chocolate with cocoa butter", lexicon))
    assert "wheat" not in _ids(match("made with rice flour", lexicon))


def test_exclusions_only_cover_the_excluded_occurrence(lexicon):
    matches = [m for m in match("butter and peanut butter", lexicon) if m.allergen_id == "milk"]
    assert len(matches) == 1
    assert matches[0].start == 0


def test_canonical_name_is_never_excluded(lexicon):
    assert "milk" in _ids(match("almond milk latte", lexicon))


def test_overlapping_hits_are_all_kept(lexicon):
    matches = match("wheat flour", lexicon)
    wheat = [(m.term, m.kind) for m in matches if m.allergen_id == "wheat"]
    assert ("wheat", MatchKind.CANONICAL) in wheat
    assert ("flour", MatchKind.HIDDEN) in wheat


def test_matches_are_ordered_by_position(lexicon):
    matches = match("shrimp, egg and sesame", lexicon)
    starts = [m.start for m in matches]
    assert starts == sorted(starts)
    assert [m.allergen_id for m in matches] == ["shellfish", "eggs", "sesame"]


def test_match_is_idempotent(lexicon):
    text = "Satay chicken with peanut sauce, whey and pea-\nnuts"
    assert match(text, lexicon) == match(text, lexicon)


def test_no_allergens_yields_empty_list(lexicon):
    assert match("grilled vegetables with olive oil", lexicon) == []


@pytest.mark.parametrize("text", ["", "   \n\t", None])
def test_blank_text_raises(lexicon, text):
    with pytest.raises(EmptyTextError):
        LexiconMatcher().match(text, lexicon)


def test_ice_cream_soda_still_reports_milk(lexicon):
    milk = [m for m in match("ice cream soda", lexicon) if m.allergen_id == "milk"]
    assert [m.term for m in milk][0] == "ice cream"
    assert "cream" in [m.term for m in milk]


def test_cream_soda_alone_is_not_dairy(lexicon):
    assert "milk" not in _ids(match("cherry cream soda", lexicon))


def test_only_plain_plural_suffix_is_tolerated(lexicon):
    assert "fish" not in _ids(match("ask staff for discount codes", lexicon))
    assert "fish" in _ids(match("salt cods", lexicon))
