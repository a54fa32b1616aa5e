"""
AllerGuard: allergen detection and safe-substitution engine for OCR'd menu and
ingredient-label text.

Expose the main classes so consumers can import directly from the package.
"""

from .classifier import RiskClassifier, classify
from .engine import ItemFailure, MenuScanResult, SafetyEngine, ScanReport
from .errors import AllerGuardError, EmptyTextError, InvalidLexiconError
from .lexicon import AllergenLexicon
from .matcher import AllergenMatcher, LexiconMatcher, match
from .menu import ScanItem, items_from_text
from .models import (
    Allergen,
    AllergenMatch,
    ClassificationResult,
    ConfidenceLevel,
    MatchKind,
    OcrQualitySignal,
    RiskTier,
    SensitivityLevel,
    SubstitutionCandidate,
    SubstitutionRule,
    TermMatch,
    UserAllergenProfile,
    risk_tier_for,
)
from .recommender import SubstitutionRecommender, recommend
from .scorer import ConfidenceScorer, score
from .substitutions import SubstitutionMap

__all__ = [
    "Allergen",
    "AllergenLexicon",
    "AllergenMatch",
    "AllergenMatcher",
    "AllerGuardError",
    "ClassificationResult",
    "ConfidenceLevel",
    "ConfidenceScorer",
    "EmptyTextError",
    "InvalidLexiconError",
    "ItemFailure",
    "LexiconMatcher",
    "MatchKind",
    "MenuScanResult",
    "OcrQualitySignal",
    "RiskClassifier",
    "RiskTier",
    "SafetyEngine",
    "ScanItem",
    "ScanReport",
    "SensitivityLevel",
    "SubstitutionCandidate",
    "SubstitutionMap",
    "SubstitutionRecommender",
    "SubstitutionRule",
    "TermMatch",
    "UserAllergenProfile",
    "classify",
    "items_from_text",
    "match",
    "recommend",
    "risk_tier_for",
    "score",
]
