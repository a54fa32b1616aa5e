"""
Confidence scorer: turns raw term matches plus the OCR quality of the scanned
region into one scored AllergenMatch per allergen.

- per term: specificity weight x OCR certainty, clamped to [0, 1]
- per allergen: the strongest term wins (a single clear detection is enough)
- nothing is ever dropped for low confidence; confidence only informs the UI
  and the classifier's moderate-sensitivity rule
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Union

from .models import (
    SPECIFICITY_WEIGHTS,
    AllergenMatch,
    MatchKind,
    OcrQualitySignal,
    SensitivityLevel,
    TermMatch,
    UserAllergenProfile,
)

logger = logging.getLogger(__name__)


class ConfidenceScorer:
    """
    Scores term matches. Specificity weights default to canonical 1.0,
    synonym 0.85, hidden form 0.6 and can be overridden per instance.
    """

    def __init__(self, weights: Optional[Dict[MatchKind, float]] = None):
        self.weights = dict(SPECIFICITY_WEIGHTS)
        if weights:
            self.weights.update(weights)

    def term_confidence(self, term_match: TermMatch, certainty: float) -> float:
        weight = self.weights.get(term_match.kind, term_match.specificity)
        return max(0.0, min(weight * certainty, 1.0))

    def score(
        self,
        matches: Iterable[TermMatch],
        ocr_quality: Union[OcrQualitySignal, float],
        profile: Optional[UserAllergenProfile] = None,
    ) -> List[AllergenMatch]:
        certainty = OcrQualitySignal.coerce(ocr_quality).certainty

        grouped: Dict[str, List[TermMatch]] = {}
        for term_match in matches:
            grouped.setdefault(term_match.allergen_id, []).append(term_match)

        scored: List[AllergenMatch] = []
        for allergen_id, term_matches in grouped.items():
            confidence = max(self.term_confidence(tm, certainty) for tm in term_matches)
            sensitivity = (
                profile.sensitivity_for(allergen_id) if profile else SensitivityLevel.NONE
            )
            scored.append(
                AllergenMatch(
                    allergen_id=allergen_id,
                    term_matches=tuple(term_matches),
                    sensitivity=sensitivity,
                    confidence=confidence,
                )
            )
            logger.debug(
                "Scored %s: %d term(s), confidence=%.3f",
                allergen_id,
                len(term_matches),
                confidence,
            )
        return scored


_default_scorer = ConfidenceScorer()


def score(
    matches: Iterable[TermMatch],
    ocr_quality: Union[OcrQualitySignal, float],
    profile: Optional[UserAllergenProfile] = None,
) -> List[AllergenMatch]:
    """Score `matches` with the default weights."""
    return _default_scorer.score(matches, ocr_quality, profile)
