import pytest

from allerguard import (
    ConfidenceLevel,
    EmptyTextError,
    OcrQualitySignal,
    RiskTier,
    SafetyEngine,
    ScanItem,
    SubstitutionMap,
    UserAllergenProfile,
)


@pytest.fixture
def engine(lexicon, substitution_map):
    return SafetyEngine(lexicon, substitution_map, max_substitutions=5)


def test_peanut_oil_is_unsafe_for_severe_peanut_allergy(engine):
    user = UserAllergenProfile({"peanuts": "severe"})
    report = engine.assess("contains peanut oil and wheat flour", user, ocr_quality=0.9)
    assert report.tier == RiskTier.UNSAFE
    assert len(report.classification.matches) == 1
    peanut = report.classification.matches[0]
    assert peanut.allergen_id == "peanuts"
    assert peanut.confidence_level == ConfidenceLevel.HIGH
    assert "wheat" not in report.classification.triggering_allergen_ids


def test_hidden_form_at_poor_ocr_is_caution_for_mild_milk(engine):
    user = UserAllergenProfile({"milk": "mild"})
    report = engine.assess("may contain casein", user, ocr_quality=0.4)
    match = report.classification.matches[0]
    assert match.term_matches[0].term == "casein"
    assert match.confidence == pytest.approx(0.24)
    assert match.confidence_level == ConfidenceLevel.LOW
    assert report.tier == RiskTier.CAUTION


def test_almond_milk_latte_only_gets_nut_free_swap(lexicon):
    swaps = SubstitutionMap.from_dict({"almond milk": ["oat milk", "coconut milk"]})
    engine = SafetyEngine(lexicon, swaps)
    user = UserAllergenProfile({"tree_nuts": "severe"})
    report = engine.assess("almond milk latte", user)
    assert report.tier == RiskTier.UNSAFE
    assert [c.replacement for c in report.substitutions] == ["oat milk"]
    assert not report.needs_manual_avoidance


def test_safe_item_has_no_substitutions(engine):
    report = engine.assess("grilled courgette", UserAllergenProfile({"milk": "severe"}))
    assert report.is_safe
    assert report.substitutions == ()
    assert not report.needs_manual_avoidance


def test_substitutions_can_be_turned_off(engine):
    user = UserAllergenProfile({"milk": "moderate"}, suggest_substitutions=False)
    report = engine.assess("cheese toastie", user)
    assert report.tier == RiskTier.UNSAFE
    assert report.substitutions == ()


def test_risky_item_without_swaps_needs_manual_avoidance(lexicon):
    engine = SafetyEngine(lexicon)
    report = engine.assess("lobster roll", UserAllergenProfile({"shellfish": "severe"}))
    assert report.needs_manual_avoidance
    assert report.to_dict()["needs_manual_avoidance"] is True


def test_max_substitutions_caps_output(lexicon, substitution_map):
    engine = SafetyEngine(lexicon, substitution_map, max_substitutions=1)
    report = engine.assess("milk and cream", UserAllergenProfile({"milk": "moderate"}))
    assert len(report.substitutions) == 1


def test_blank_text_raises_with_item_name(engine):
    with pytest.raises(EmptyTextError, match="Soup"):
        engine.assess("  ", UserAllergenProfile(), name="Soup")


def test_ocr_signal_is_clamped_in_report(engine):
    report = engine.assess("peanut", UserAllergenProfile(), ocr_quality=OcrQualitySignal(3.0))
    assert report.ocr_quality == 1.0


def test_menu_isolates_failing_items(engine):
    user = UserAllergenProfile({"peanuts": "severe", "milk": "mild"})
    items = [
        ScanItem("Satay", "chicken satay with peanut sauce"),
        ScanItem("Blank", "   "),
        ScanItem("Salad", "leaves and vinaigrette"),
        ScanItem("Latte", "espresso with milk", ocr_quality=0.5),
    ]
    result = engine.assess_menu(items, user)
    assert [r.name for r in result.reports] == ["Satay", "Salad", "Latte"]
    assert [(f.index, f.name, f.error_type) for f in result.failures] == [
        (1, "Blank", "EmptyTextError")
    ]
    assert result.worst_tier == RiskTier.UNSAFE
    assert result.counts() == {"safe": 1, "caution": 1, "unsafe": 1}


def test_parallel_menu_scan_preserves_input_order(engine):
    user = UserAllergenProfile({"eggs": "moderate"})
    items = [ScanItem(f"dish {i}", "egg fried rice" if i % 2 else "plain rice") for i in range(20)]
    result = engine.assess_menu(items, user, max_workers=4)
    assert [r.name for r in result.reports] == [item.name for item in items]
    assert [r.tier for r in result.reports] == [
        RiskTier.UNSAFE if i % 2 else RiskTier.SAFE for i in range(20)
    ]


def test_empty_menu_is_safe(engine):
    result = engine.assess_menu([], UserAllergenProfile({"milk": "severe"}))
    assert result.reports == ()
    assert result.worst_tier == RiskTier.SAFE
    assert result.to_dict()["items"] == []


def test_ice_cream_soda_is_unsafe_for_severe_milk_allergy(engine):
    report = engine.assess("ice cream soda", UserAllergenProfile({"milk": "severe"}))
    assert report.tier == RiskTier.UNSAFE


def test_out_of_range_quality_warns_once_per_scan(engine, caplog):
    with caplog.at_level("WARNING", logger="allerguard.models"):
        engine.assess("peanut", UserAllergenProfile(), ocr_quality=3.0)
    assert sum("clamping" in r.getMessage() for r in caplog.records) == 1
