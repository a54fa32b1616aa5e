"""
Shared domain models used by the allergen safety engine.

- SensitivityLevel / ConfidenceLevel / RiskTier: ordered enumerations.
- MatchKind: how a lexicon term relates to its allergen (and how specific it is).
- Allergen: immutable reference data for one allergen.
- UserAllergenProfile: what the user reacts to and how strongly.
- OcrQualitySignal: recognition certainty reported for a scanned region.
- TermMatch / AllergenMatch: raw and scored evidence that an allergen is present.
- ClassificationResult: Safe/Caution/Unsafe verdict with its justification.
- SubstitutionRule / SubstitutionCandidate: proposed ingredient swaps.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

logger = logging.getLogger(__name__)


class _OrderedEnum(str, Enum):
    """String enum whose members compare by declaration order."""

    @property
    def rank(self) -> int:
        return list(type(self)).index(self)

    def __lt__(self, other):
        if isinstance(other, type(self)):
            return self.rank < other.rank
        return NotImplemented

    def __le__(self, other):
        if isinstance(other, type(self)):
            return self.rank <= other.rank
        return NotImplemented

    def __gt__(self, other):
        if isinstance(other, type(self)):
            return self.rank > other.rank
        return NotImplemented

    def __ge__(self, other):
        if isinstance(other, type(self)):
            return self.rank >= other.rank
        return NotImplemented

    @classmethod
    def parse(cls, value: Union[str, "_OrderedEnum"]):
        """Accept a member or its (case-insensitive) value."""
        if isinstance(value, cls):
            return value
        key = str(value or "").strip().lower()
        for member in cls:
            if member.value == key:
                return member
        valid = ", ".join(member.value for member in cls)
        raise ValueError(f"Unknown {cls.__name__} '{value}'. Expected one of: {valid}")


class SensitivityLevel(_OrderedEnum):
    NONE = "none"
    MILD = "mild"
    MODERATE = "moderate"
    HIGH = "high"
    SEVERE = "severe"


class ConfidenceLevel(_OrderedEnum):
    UNKNOWN = "unknown"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def from_score(cls, score: float) -> "ConfidenceLevel":
        if score >= 0.8:
            return cls.HIGH
        if score >= 0.5:
            return cls.MEDIUM
        if score > 0:
            return cls.LOW
        return cls.UNKNOWN


class RiskTier(_OrderedEnum):
    SAFE = "safe"
    CAUTION = "caution"
    UNSAFE = "unsafe"


class MatchKind(_OrderedEnum):
    CANONICAL = "canonical"
    SYNONYM = "synonym"
    HIDDEN = "hidden"

    @property
    def weight(self) -> float:
        return SPECIFICITY_WEIGHTS[self]


# Hidden forms only imply the allergen, so they carry the weakest signal.
SPECIFICITY_WEIGHTS: Dict[MatchKind, float] = {
    MatchKind.CANONICAL: 1.0,
    MatchKind.SYNONYM: 0.85,
    MatchKind.HIDDEN: 0.6,
}


def risk_tier_for(
    sensitivity: SensitivityLevel, confidence: ConfidenceLevel
) -> RiskTier:
    """
    Decision table for a single allergen match. Every (sensitivity, confidence)
    pair maps to exactly one tier.
    """
    if sensitivity >= SensitivityLevel.HIGH:
        # Severe and high sensitivities block regardless of confidence.
        return RiskTier.UNSAFE
    if sensitivity == SensitivityLevel.MODERATE:
        if confidence >= ConfidenceLevel.MEDIUM:
            return RiskTier.UNSAFE
        return RiskTier.CAUTION
    if sensitivity == SensitivityLevel.MILD:
        return RiskTier.CAUTION
    return RiskTier.SAFE


@dataclass(frozen=True)
class Allergen:
    """
    Immutable allergen reference entry. `name` is the canonical term; synonyms
    and hidden forms are the alternative ways it shows up on menus and labels.
    """

    id: str
    name: str
    synonyms: Tuple[str, ...] = ()
    hidden_forms: Tuple[str, ...] = ()
    default_severity: SensitivityLevel = SensitivityLevel.MODERATE
    label: str = ""
    description: str = ""
    # Phrases inside which synonym/hidden-form hits do not count (e.g. "cocoa butter").
    exclusions: Tuple[str, ...] = ()

    def terms(self) -> Iterator[Tuple[str, MatchKind]]:
        yield self.name, MatchKind.CANONICAL
        for term in self.synonyms:
            yield term, MatchKind.SYNONYM
        for term in self.hidden_forms:
            yield term, MatchKind.HIDDEN

    @property
    def display_name(self) -> str:
        return self.label or self.name.title()


@dataclass
class UserAllergenProfile:
    """
    Caller-owned sensitivity map keyed by allergen id. Unlisted allergens are
    treated as `none`, so lookups never fail.
    """

    sensitivities: Dict[str, SensitivityLevel] = field(default_factory=dict)
    suggest_substitutions: bool = True

    def __post_init__(self):
        self.sensitivities = {
            str(allergen_id).strip().lower(): SensitivityLevel.parse(level)
            for allergen_id, level in dict(self.sensitivities).items()
        }

    def sensitivity_for(self, allergen_id: str) -> SensitivityLevel:
        return self.sensitivities.get(
            (allergen_id or "").lower(), SensitivityLevel.NONE
        )

    def is_sensitive_to(self, allergen_id: str) -> bool:
        return self.sensitivity_for(allergen_id) > SensitivityLevel.NONE

    @classmethod
    def from_mapping(
        cls,
        mapping: Mapping[str, Optional[Union[str, SensitivityLevel]]],
        lexicon=None,
        suggest_substitutions: bool = True,
    ) -> "UserAllergenProfile":
        """
        Build a profile from {allergen name or id: level}. Names are resolved
        through `lexicon` when one is given, and a blank level takes the
        allergen's default severity. Raises ValueError on an unknown level.
        """
        sensitivities: Dict[str, SensitivityLevel] = {}
        for name, level in mapping.items():
            allergen_id = lexicon.resolve(name) if lexicon is not None else None
            if allergen_id is None:
                allergen_id = str(name).strip().lower()
                if lexicon is not None:
                    logger.warning("Allergen '%s' is not in the lexicon; it will never match", name)
            if level is None or not str(level).strip():
                allergen = lexicon.get(allergen_id) if lexicon is not None else None
                level = allergen.default_severity if allergen else SensitivityLevel.MODERATE
            sensitivities[allergen_id] = SensitivityLevel.parse(level)
        return cls(sensitivities=sensitivities, suggest_substitutions=suggest_substitutions)

    @classmethod
    def from_allergen_ids(
        cls,
        allergen_ids: Iterable[str],
        lexicon,
        level: Optional[SensitivityLevel] = None,
    ) -> "UserAllergenProfile":
        """Every entry gets `level`, or the allergen's default severity."""
        return cls.from_mapping({token: level for token in allergen_ids}, lexicon)


@dataclass(frozen=True)
class OcrQualitySignal:
    """
    Recognition-engine certainty for one scanned region, clamped to [0, 1] on
    construction. NaN counts as no certainty.
    """

    value: float = 1.0

    def __post_init__(self):
        value = float(self.value)
        if math.isnan(value):
            logger.warning("OCR quality is NaN; treating it as 0.0")
            value = 0.0
        elif value < 0.0 or value > 1.0:
            logger.warning("OCR quality %s outside [0, 1]; clamping", value)
            value = max(0.0, min(value, 1.0))
        object.__setattr__(self, "value", value)

    @property
    def certainty(self) -> float:
        return self.value

    @classmethod
    def coerce(cls, value: Union["OcrQualitySignal", float, int]) -> "OcrQualitySignal":
        if isinstance(value, cls):
            return value
        return cls(value=float(value))


@dataclass(frozen=True)
class TermMatch:
    """One occurrence of a lexicon term in the source text."""

    allergen_id: str
    term: str
    matched_text: str
    start: int
    end: int
    kind: MatchKind

    @property
    def specificity(self) -> float:
        return self.kind.weight

    def overlaps(self, start: int, end: int) -> bool:
        return self.start < end and start < self.end


@dataclass(frozen=True)
class AllergenMatch:
    """All evidence for one allergen within one item, scored."""

    allergen_id: str
    term_matches: Tuple[TermMatch, ...]
    sensitivity: SensitivityLevel = SensitivityLevel.NONE
    confidence: float = 0.0

    @property
    def confidence_level(self) -> ConfidenceLevel:
        return ConfidenceLevel.from_score(self.confidence)

    @property
    def risk_contribution(self) -> RiskTier:
        return risk_tier_for(self.sensitivity, self.confidence_level)

    @property
    def matched_terms(self) -> List[str]:
        seen: List[str] = []
        for term_match in self.term_matches:
            if term_match.matched_text not in seen:
                seen.append(term_match.matched_text)
        return seen

    def to_dict(self) -> Dict:
        return {
            "allergen_id": self.allergen_id,
            "sensitivity": self.sensitivity.value,
            "confidence": round(self.confidence, 4),
            "confidence_level": self.confidence_level.value,
            "risk_contribution": self.risk_contribution.value,
            "terms": [
                {
                    "term": tm.term,
                    "matched_text": tm.matched_text,
                    "start": tm.start,
                    "end": tm.end,
                    "kind": tm.kind.value,
                }
                for tm in self.term_matches
            ],
        }


@dataclass(frozen=True)
class ClassificationResult:
    """
    Verdict for one scanned item. Never mutated; a re-scan yields a new result
    so earlier decisions stay auditable.
    """

    tier: RiskTier
    matches: Tuple[AllergenMatch, ...] = ()
    confidence: ConfidenceLevel = ConfidenceLevel.UNKNOWN
    confidence_score: float = 0.0
    informational_matches: Tuple[AllergenMatch, ...] = ()
    reasons: Tuple[str, ...] = ()
    source_text: Optional[str] = None

    @property
    def is_safe(self) -> bool:
        return self.tier == RiskTier.SAFE

    @property
    def triggering_allergen_ids(self) -> List[str]:
        return [match.allergen_id for match in self.matches]

    def to_dict(self) -> Dict:
        return {
            "tier": self.tier.value,
            "confidence": self.confidence.value,
            "confidence_score": round(self.confidence_score, 4),
            "matches": [match.to_dict() for match in self.matches],
            "informational_matches": [
                match.to_dict() for match in self.informational_matches
            ],
            "reasons": list(self.reasons),
        }


@dataclass(frozen=True)
class SubstitutionRule:
    """One externally supplied swap: `original` can be replaced by `replacement`."""

    original: str
    replacement: str
    feasibility: float = 0.5


@dataclass(frozen=True)
class SubstitutionCandidate:
    original: str
    replacement: str
    feasibility: float
    replaces: Tuple[str, ...] = ()

    def to_dict(self) -> Dict:
        return {
            "original": self.original,
            "replacement": self.replacement,
            "feasibility": round(self.feasibility, 4),
            "replaces": list(self.replaces),
        }
