"""
Substitution recommender for Unsafe and Caution items.

Finds the substitution-map originals that cover an offending allergen term,
proposes their replacements, and keeps only replacements that re-pass the
matcher cleanly for the same profile. Survivors are ranked by feasibility.
An empty list means no known safe alternative; the caller should recommend
avoiding the item.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Set, Tuple

from .errors import EmptyTextError
from .lexicon import AllergenLexicon, compile_term_pattern
from .matcher import AllergenMatcher, LexiconMatcher
from .models import (
    ClassificationResult,
    RiskTier,
    SubstitutionCandidate,
    TermMatch,
    UserAllergenProfile,
)
from .normalization import has_line_break_hyphen, normalize_term, normalize_with_offsets
from .substitutions import SubstitutionMap

logger = logging.getLogger(__name__)


class SubstitutionRecommender:
    """
    Proposes safe replacements for the ingredients that made an item risky.
    The matcher used for the safety re-check is injectable.
    """

    def __init__(self, matcher: Optional[AllergenMatcher] = None):
        self.matcher = matcher or LexiconMatcher()

    def recommend(
        self,
        item: ClassificationResult,
        lexicon: AllergenLexicon,
        substitution_map: SubstitutionMap,
        profile: UserAllergenProfile,
        limit: Optional[int] = None,
    ) -> List[SubstitutionCandidate]:
        if item.tier == RiskTier.SAFE:
            return []

        offending = [tm for match in item.matches for tm in match.term_matches]
        originals = self._offending_originals(item.source_text, offending, substitution_map)

        # One candidate per replacement: overlapping originals ("wheat flour",
        # "flour") often offer the same swap.
        candidates: Dict[str, SubstitutionCandidate] = {}
        for original, replaces in originals:
            for rule in substitution_map.candidates_for(original):
                key = normalize_term(rule.replacement)
                existing = candidates.get(key)
                if existing is not None:
                    merged = tuple(sorted(set(existing.replaces) | replaces))
                    best = rule if rule.feasibility > existing.feasibility else existing
                    candidates[key] = SubstitutionCandidate(
                        original=best.original,
                        replacement=best.replacement,
                        feasibility=best.feasibility,
                        replaces=merged,
                    )
                    continue
                if not self.is_safe_for(rule.replacement, lexicon, profile):
                    logger.debug(
                        "Discarding %s -> %s: replacement carries a sensitive allergen",
                        rule.original,
                        rule.replacement,
                    )
                    continue
                candidates[key] = SubstitutionCandidate(
                    original=rule.original,
                    replacement=rule.replacement,
                    feasibility=rule.feasibility,
                    replaces=tuple(sorted(replaces)),
                )

        ranked = sorted(
            candidates.values(),
            key=lambda c: (-c.feasibility, c.original, c.replacement),
        )
        if limit is not None:
            ranked = ranked[:limit]
        if not ranked:
            logger.info(
                "No safe substitution found for %s",
                ", ".join(item.triggering_allergen_ids) or "item",
            )
        return ranked

    def is_safe_for(
        self, text: str, lexicon: AllergenLexicon, profile: UserAllergenProfile
    ) -> bool:
        """True when `text` matches no allergen the profile is sensitive to."""
        try:
            hits = self.matcher.match(text, lexicon)
        except EmptyTextError:
            return False
        return not any(profile.is_sensitive_to(hit.allergen_id) for hit in hits)

    @staticmethod
    def _offending_originals(
        source_text: Optional[str],
        offending: List[TermMatch],
        substitution_map: SubstitutionMap,
    ) -> List[Tuple[str, Set[str]]]:
        """
        Substitution-map originals that cover an offending term, each with the
        allergen ids it would remove. With source text, an original counts when
        one of its occurrences overlaps an offending span; without it, when it
        equals an offending matched term.
        """
        found: List[Tuple[str, Set[str]]] = []
        if source_text and source_text.strip():
            # Same two readings of line-break hyphens as the matcher.
            readings = [normalize_with_offsets(source_text)]
            if has_line_break_hyphen(source_text):
                readings.append(normalize_with_offsets(source_text, join_hyphenated=False))
            for original in substitution_map.originals:
                pattern = compile_term_pattern(normalize_term(original))
                replaces: Set[str] = set()
                for normalized, offsets in readings:
                    for hit in pattern.finditer(normalized):
                        start = offsets[hit.start()]
                        end = offsets[hit.end() - 1] + 1
                        replaces.update(
                            tm.allergen_id for tm in offending if tm.overlaps(start, end)
                        )
                if replaces:
                    found.append((original, replaces))
            return found

        for original in substitution_map.originals:
            key = normalize_term(original)
            replaces = {
                tm.allergen_id
                for tm in offending
                if normalize_term(tm.matched_text) == key or normalize_term(tm.term) == key
            }
            if replaces:
                found.append((original, replaces))
        return found


_default_recommender = SubstitutionRecommender()


def recommend(
    item: ClassificationResult,
    lexicon: AllergenLexicon,
    substitution_map: SubstitutionMap,
    profile: UserAllergenProfile,
) -> List[SubstitutionCandidate]:
    """Recommend substitutions for `item` with the default recommender."""
    return _default_recommender.recommend(item, lexicon, substitution_map, profile)
