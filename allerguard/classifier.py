"""
Risk classifier: combines scored allergen matches with the user's profile and
assigns Safe, Caution or Unsafe.

Each match is mapped through `risk_tier_for` and the item takes the highest
tier any match produces, so adding a riskier match can never lower the verdict.
The user's sensitivity is always re-read from the profile passed in.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Iterable, List, Optional

from .lexicon import AllergenLexicon
from .models import (
    AllergenMatch,
    ClassificationResult,
    ConfidenceLevel,
    RiskTier,
    SensitivityLevel,
    UserAllergenProfile,
)

logger = logging.getLogger(__name__)


class RiskClassifier:
    """
    Pure decision table over allergen matches. An optional lexicon is only used
    to print readable allergen names in the reasons.
    """

    def __init__(self, lexicon: Optional[AllergenLexicon] = None):
        self.lexicon = lexicon

    def classify(
        self,
        matches: Iterable[AllergenMatch],
        profile: UserAllergenProfile,
        source_text: Optional[str] = None,
    ) -> ClassificationResult:
        triggering: List[AllergenMatch] = []
        informational: List[AllergenMatch] = []
        for match in matches:
            sensitivity = profile.sensitivity_for(match.allergen_id)
            if sensitivity != match.sensitivity:
                match = dataclasses.replace(match, sensitivity=sensitivity)
            if sensitivity == SensitivityLevel.NONE:
                informational.append(match)
            else:
                triggering.append(match)

        tier = RiskTier.SAFE
        for match in triggering:
            tier = max(tier, match.risk_contribution)

        # The weakest link decides how far the verdict can be trusted.
        basis = triggering or informational
        confidence_score = min((m.confidence for m in basis), default=0.0)

        # Riskiest first so callers can show the main reason at the top.
        triggering.sort(key=lambda m: (-m.risk_contribution.rank, -m.sensitivity.rank, m.allergen_id))
        result = ClassificationResult(
            tier=tier,
            matches=tuple(triggering),
            confidence=(
                ConfidenceLevel.from_score(confidence_score) if basis else ConfidenceLevel.UNKNOWN
            ),
            confidence_score=confidence_score,
            informational_matches=tuple(informational),
            reasons=tuple(self._reason(match) for match in triggering),
            source_text=source_text,
        )
        logger.info(
            "Classified item as %s (%d triggering, %d informational match(es))",
            tier.value,
            len(triggering),
            len(informational),
        )
        return result

    def _reason(self, match: AllergenMatch) -> str:
        name = self.lexicon.label(match.allergen_id) if self.lexicon else match.allergen_id
        terms = ", ".join(f"'{term}'" for term in match.matched_terms)
        return (
            f"{name}: {match.sensitivity.value} sensitivity, "
            f"{match.confidence_level.value} confidence ({match.confidence:.2f}) "
            f"via {terms} -> {match.risk_contribution.value}"
        )


_default_classifier = RiskClassifier()


def classify(
    matches: Iterable[AllergenMatch],
    profile: UserAllergenProfile,
    source_text: Optional[str] = None,
) -> ClassificationResult:
    """Classify `matches` for `profile` with the default classifier."""
    return _default_classifier.classify(matches, profile, source_text)
