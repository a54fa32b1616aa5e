"""
Scan pipeline: recognised text + user profile in, verdict and safe swaps out.

Key stages:
- match allergen terms in the text (matcher)
- score each allergen from term specificity and OCR quality (scorer)
- assign Safe / Caution / Unsafe from the user's sensitivities (classifier)
- for risky items, propose replacements that re-pass the matcher (recommender)

Every component is injectable. The engine holds only read-only reference data,
so one instance can serve concurrent scans.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .classifier import RiskClassifier
from .errors import AllerGuardError, EmptyTextError
from .lexicon import AllergenLexicon
from .matcher import AllergenMatcher, LexiconMatcher
from .menu import ScanItem
from .models import (
    ClassificationResult,
    OcrQualitySignal,
    RiskTier,
    SubstitutionCandidate,
    UserAllergenProfile,
)
from .recommender import SubstitutionRecommender
from .scorer import ConfidenceScorer
from .substitutions import SubstitutionMap


@dataclass(frozen=True)
class ScanReport:
    """Outcome for one scanned item."""

    name: Optional[str]
    classification: ClassificationResult
    substitutions: Tuple[SubstitutionCandidate, ...] = ()
    ocr_quality: float = 1.0

    @property
    def tier(self) -> RiskTier:
        return self.classification.tier

    @property
    def is_safe(self) -> bool:
        return self.classification.is_safe

    @property
    def needs_manual_avoidance(self) -> bool:
        """Risky item with no known safe alternative."""
        return not self.is_safe and not self.substitutions

    def to_dict(self) -> Dict:
        payload = {"name": self.name, "ocr_quality": self.ocr_quality}
        payload.update(self.classification.to_dict())
        payload["substitutions"] = [c.to_dict() for c in self.substitutions]
        payload["needs_manual_avoidance"] = self.needs_manual_avoidance
        return payload


@dataclass(frozen=True)
class ItemFailure:
    """A menu item that could not be scanned; the rest of the batch continues."""

    index: int
    name: Optional[str]
    error: str
    error_type: str

    def to_dict(self) -> Dict:
        return {
            "index": self.index,
            "name": self.name,
            "error": self.error,
            "error_type": self.error_type,
        }


@dataclass(frozen=True)
class MenuScanResult:
    reports: Tuple[ScanReport, ...] = ()
    failures: Tuple[ItemFailure, ...] = field(default_factory=tuple)

    @property
    def worst_tier(self) -> RiskTier:
        return max((report.tier for report in self.reports), default=RiskTier.SAFE)

    def counts(self) -> Dict[str, int]:
        counts = {tier.value: 0 for tier in RiskTier}
        for report in self.reports:
            counts[report.tier.value] += 1
        return counts

    def to_dict(self) -> Dict:
        return {
            "worst_tier": self.worst_tier.value,
            "counts": self.counts(),
            "items": [report.to_dict() for report in self.reports],
            "failures": [failure.to_dict() for failure in self.failures],
        }


class SafetyEngine:
    """
    Orchestrates matcher, scorer, classifier and recommender for single items
    and whole menus.
    """

    def __init__(
        self,
        lexicon: AllergenLexicon,
        substitution_map: Optional[SubstitutionMap] = None,
        matcher: Optional[AllergenMatcher] = None,
        scorer: Optional[ConfidenceScorer] = None,
        classifier: Optional[RiskClassifier] = None,
        recommender: Optional[SubstitutionRecommender] = None,
        max_substitutions: Optional[int] = None,
    ):
        self.lexicon = lexicon
        self.substitution_map = substitution_map or SubstitutionMap([])
        self.matcher = matcher or LexiconMatcher()
        self.scorer = scorer or ConfidenceScorer()
        self.classifier = classifier or RiskClassifier(lexicon)
        self.recommender = recommender or SubstitutionRecommender(self.matcher)
        self.max_substitutions = max_substitutions
        self.log = logging.getLogger(self.__class__.__name__)

    def assess(
        self,
        text: str,
        profile: UserAllergenProfile,
        ocr_quality: Union[OcrQualitySignal, float] = 1.0,
        name: Optional[str] = None,
    ) -> ScanReport:
        """
        Run the full pipeline on one item. Raises EmptyTextError for blank text.
        """
        if text is None or not text.strip():
            raise EmptyTextError(name)

        signal = OcrQualitySignal.coerce(ocr_quality)
        term_matches = self.matcher.match(text, self.lexicon)
        scored = self.scorer.score(term_matches, signal, profile)
        classification = self.classifier.classify(scored, profile, source_text=text)

        substitutions: List[SubstitutionCandidate] = []
        if not classification.is_safe and profile.suggest_substitutions:
            substitutions = self.recommender.recommend(
                classification,
                self.lexicon,
                self.substitution_map,
                profile,
                limit=self.max_substitutions,
            )

        return ScanReport(
            name=name,
            classification=classification,
            substitutions=tuple(substitutions),
            ocr_quality=signal.certainty,
        )

    def assess_item(self, item: ScanItem, profile: UserAllergenProfile) -> ScanReport:
        return self.assess(item.text, profile, ocr_quality=item.ocr_quality, name=item.name)

    def assess_menu(
        self,
        items: Iterable[ScanItem],
        profile: UserAllergenProfile,
        max_workers: Optional[int] = None,
    ) -> MenuScanResult:
        """
        Scan every item independently. Items that fail (e.g. blank text) are
        reported as failures without aborting the others. Output order follows
        input order.
        """
        items = list(items)

        def _run(indexed: Tuple[int, ScanItem]):
            index, item = indexed
            try:
                return self.assess_item(item, profile)
            except AllerGuardError as exc:
                self.log.warning("Skipping menu item %d (%s): %s", index, item.name, exc)
                return ItemFailure(
                    index=index,
                    name=item.name,
                    error=str(exc),
                    error_type=exc.__class__.__name__,
                )

        if max_workers and max_workers > 1 and len(items) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                outcomes: Sequence = list(pool.map(_run, enumerate(items)))
        else:
            outcomes = [_run(indexed) for indexed in enumerate(items)]

        reports = tuple(o for o in outcomes if isinstance(o, ScanReport))
        failures = tuple(o for o in outcomes if isinstance(o, ItemFailure))
        self.log.info(
            "Scanned %d menu item(s): %d ok, %d failed",
            len(items),
            len(reports),
            len(failures),
        )
        return MenuScanResult(reports=reports, failures=failures)
