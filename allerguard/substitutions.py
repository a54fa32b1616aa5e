"""
Substitution map: externally supplied ingredient swaps with a feasibility score
(how commonly the replacement is interchangeable, 0-1).

The map is reference data like the lexicon: loaded once (built-in defaults,
a dict, JSON or CSV) and shared read-only between scans. It knows nothing about
allergens; the recommender re-checks every replacement against the lexicon.
"""

from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Mapping, Tuple, Union

# Pandas is used for CSV I/O.
import pandas as pd

from .errors import InvalidLexiconError
from .models import SubstitutionRule
from .normalization import normalize_term

logger = logging.getLogger(__name__)

DEFAULT_FEASIBILITY = 0.5

# original ingredient -> [(replacement, feasibility)]
DEFAULT_SUBSTITUTIONS: Dict[str, List[Tuple[str, float]]] = {
    # Dairy
    "milk": [("oat drink", 0.9), ("soy drink", 0.85), ("rice drink", 0.75)],
    "butter": [("vegan spread", 0.85), ("olive oil", 0.75), ("coconut oil", 0.7)],
    "cream": [("coconut cream", 0.8), ("cashew cream", 0.7)],
    "cheese": [("cashew cheese", 0.7), ("nutritional yeast", 0.6)],
    "yogurt": [("coconut yogurt", 0.8), ("soy yogurt", 0.75), ("oat yogurt", 0.75)],
    "whey": [("pea protein", 0.7)],
    "casein": [("pea protein", 0.6)],
    # Nuts
    "almond milk": [("oat milk", 0.9), ("coconut milk", 0.75), ("rice milk", 0.6)],
    "almond flour": [("sunflower seed flour", 0.7), ("oat flour", 0.6)],
    "almonds": [("pumpkin seeds", 0.7), ("sunflower seeds", 0.65)],
    "walnuts": [("pumpkin seeds", 0.7), ("sunflower seeds", 0.65)],
    "cashews": [("sunflower seeds", 0.6)],
    "peanut butter": [
        ("sunflower seed butter", 0.85),
        ("almond butter", 0.8),
        ("tahini", 0.6),
    ],
    "peanut oil": [("sunflower oil", 0.9), ("canola oil", 0.85)],
    "peanuts": [("sunflower seeds", 0.7), ("roasted chickpeas", 0.5)],
    # Wheat
    "wheat flour": [("rice flour", 0.8), ("buckwheat flour", 0.6), ("oat flour", 0.5)],
    "flour": [("rice flour", 0.75), ("corn flour", 0.6)],
    "couscous": [("quinoa", 0.8), ("rice", 0.6)],
    "breadcrumbs": [("crushed rice crackers", 0.6), ("cornmeal", 0.6)],
    # Eggs
    "egg": [("ground flaxseed", 0.7), ("aquafaba", 0.65), ("applesauce", 0.5)],
    "mayonnaise": [("vegan mayo", 0.8)],
    # Soy
    "soy sauce": [("coconut aminos", 0.85)],
    "tofu": [("chickpeas", 0.6), ("paneer", 0.5)],
    # Fish and shellfish
    "fish sauce": [("coconut aminos", 0.6), ("soy sauce", 0.6)],
    "anchovies": [("capers", 0.6)],
    "shrimp": [("hearts of palm", 0.6), ("tofu", 0.5)],
    "oyster sauce": [("mushroom sauce", 0.7)],
    # Sesame
    "tahini": [("sunflower seed butter", 0.8)],
    "sesame oil": [("sunflower oil", 0.6), ("olive oil", 0.6)],
}


class SubstitutionMap:
    """
    Read-only collection of substitution rules grouped by original ingredient.
    """

    def __init__(self, rules: Iterable[SubstitutionRule]):
        self._rules: Dict[str, List[SubstitutionRule]] = {}
        for rule in rules:
            _validate_rule(rule)
            key = normalize_term(rule.original)
            self._rules.setdefault(key, []).append(rule)

    def __len__(self) -> int:
        return sum(len(rules) for rules in self._rules.values())

    def __iter__(self) -> Iterator[SubstitutionRule]:
        for rules in self._rules.values():
            yield from rules

    @property
    def originals(self) -> List[str]:
        return [rules[0].original for rules in self._rules.values()]

    def candidates_for(self, original: str) -> List[SubstitutionRule]:
        return list(self._rules.get(normalize_term(original or ""), []))

    # ------------------------------------------------------------------ loaders

    @classmethod
    def from_dict(cls, mapping: Mapping[str, Iterable[object]]) -> "SubstitutionMap":
        """
        Accepts {original: [replacement | (replacement, feasibility) |
        {"replacement": ..., "feasibility": ...}, ...]}.
        """
        rules: List[SubstitutionRule] = []
        for original, entries in mapping.items():
            if isinstance(entries, (str, Mapping)):
                entries = [entries]
            for entry in entries:
                rules.append(_rule_from_entry(original, entry))
        return cls(rules)

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "SubstitutionMap":
        path = Path(path)
        try:
            with path.open("r", encoding="utf-8") as fh:
                payload = json.load(fh)
        except (OSError, json.JSONDecodeError) as exc:
            raise InvalidLexiconError(f"Cannot read substitution file {path}: {exc}") from exc

        if isinstance(payload, list):
            if not all(isinstance(item, Mapping) for item in payload):
                raise InvalidLexiconError(f"Substitution file {path} must hold objects")
            rules = [_rule_from_entry(item.get("original", ""), item) for item in payload]
            substitution_map = cls(rules)
        elif isinstance(payload, dict):
            substitution_map = cls.from_dict(payload)
        else:
            raise InvalidLexiconError(f"Substitution file {path} must hold a list or object")
        logger.info("Loaded %d substitution rule(s) from %s", len(substitution_map), path)
        return substitution_map

    @classmethod
    def from_csv(cls, path: Union[str, Path]) -> "SubstitutionMap":
        """Load rules from a CSV with `original`, `replacement` and optional `feasibility` columns."""
        path = Path(path)
        try:
            df = pd.read_csv(path)
        except (OSError, ValueError) as exc:
            raise InvalidLexiconError(f"Cannot read substitution file {path}: {exc}") from exc

        missing = {"original", "replacement"} - set(df.columns)
        if missing:
            raise InvalidLexiconError(
                f"Substitution CSV {path} is missing column(s): {', '.join(sorted(missing))}"
            )

        rules: List[SubstitutionRule] = []
        for _, row in df.iterrows():
            feasibility = row.get("feasibility", DEFAULT_FEASIBILITY)
            if pd.isna(feasibility):
                feasibility = DEFAULT_FEASIBILITY
            rules.append(
                _rule_from_entry(
                    "" if pd.isna(row["original"]) else str(row["original"]),
                    (
                        "" if pd.isna(row["replacement"]) else str(row["replacement"]),
                        feasibility,
                    ),
                )
            )
        substitution_map = cls(rules)
        logger.info("Loaded %d substitution rule(s) from %s", len(substitution_map), path)
        return substitution_map

    @classmethod
    def default(cls) -> "SubstitutionMap":
        return cls.from_dict(DEFAULT_SUBSTITUTIONS)


def _rule_from_entry(original: str, entry: object) -> SubstitutionRule:
    feasibility: object = DEFAULT_FEASIBILITY
    if isinstance(entry, str):
        replacement = entry
    elif isinstance(entry, Mapping):
        replacement = entry.get("replacement", "")
        feasibility = entry.get("feasibility", DEFAULT_FEASIBILITY)
    elif isinstance(entry, (tuple, list)) and len(entry) == 2:
        replacement, feasibility = entry
    else:
        raise InvalidLexiconError(f"Unsupported substitution entry {entry!r}", entry=str(original))

    try:
        feasibility = float(feasibility)
    except (TypeError, ValueError) as exc:
        raise InvalidLexiconError(
            f"Feasibility must be a number, got {feasibility!r}", entry=str(original)
        ) from exc
    return SubstitutionRule(
        original=str(original or "").strip(),
        replacement=str(replacement or "").strip(),
        feasibility=feasibility,
    )


def _validate_rule(rule: SubstitutionRule) -> None:
    if not normalize_term(rule.original):
        raise InvalidLexiconError("Substitution rule is missing its original ingredient")
    if not normalize_term(rule.replacement):
        raise InvalidLexiconError("Substitution rule is missing a replacement", entry=rule.original)
    if normalize_term(rule.original) == normalize_term(rule.replacement):
        raise InvalidLexiconError("Replacement equals the original", entry=rule.original)
    if math.isnan(rule.feasibility) or not 0.0 <= rule.feasibility <= 1.0:
        raise InvalidLexiconError(
            f"Feasibility {rule.feasibility} outside [0, 1]", entry=rule.original
        )
