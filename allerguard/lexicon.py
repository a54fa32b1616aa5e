"""
Immutable allergen lexicon.

Loads allergen records (built-in defaults, a list of dicts, or a JSON file),
validates them, and precompiles one whole-word pattern per term so the matcher
can share a lexicon across threads without locking.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Pattern, Tuple, Union

from .allergens import default_allergen_records
from .errors import InvalidLexiconError
from .models import Allergen, MatchKind, SensitivityLevel
from .normalization import normalize_term

logger = logging.getLogger(__name__)


def compile_term_pattern(normalized: str) -> Pattern[str]:
    """
    Whole-word/phrase pattern over normalised text. A trailing plural "s" is
    tolerated; any other suffix ("almondine", "codes") is not, so irregular
    plurals must be listed as terms.
    """
    return re.compile(rf"(?<!\w){re.escape(normalized)}s?(?!\w)")


@dataclass(frozen=True)
class CompiledTerm:
    """A lexicon term ready for scanning."""

    allergen_id: str
    term: str
    normalized: str
    kind: MatchKind
    pattern: Pattern[str]


class AllergenLexicon:
    """
    Read-only snapshot of allergen reference data. Build it once per session
    and share it between scans.
    """

    def __init__(self, allergens: Iterable[Allergen]):
        self._allergens: Dict[str, Allergen] = {}
        for allergen in allergens:
            if allergen.id in self._allergens:
                raise InvalidLexiconError("Duplicate allergen id", entry=allergen.id)
            self._allergens[allergen.id] = allergen

        self._compiled: Dict[str, Tuple[CompiledTerm, ...]] = {}
        self._exclusions: Dict[str, Tuple[Pattern[str], ...]] = {}
        for allergen in self._allergens.values():
            self._compiled[allergen.id] = self._compile_terms(allergen)
            self._exclusions[allergen.id] = tuple(
                compile_term_pattern(normalize_term(phrase))
                for phrase in allergen.exclusions
                if normalize_term(phrase)
            )
        self._lookup = self._build_lookup()
        logger.debug("Allergen lexicon ready with %d allergens", len(self._allergens))

    @staticmethod
    def _compile_terms(allergen: Allergen) -> Tuple[CompiledTerm, ...]:
        compiled: List[CompiledTerm] = []
        seen: Dict[str, MatchKind] = {}
        for term, kind in allergen.terms():
            normalized = normalize_term(term)
            if not normalized:
                raise InvalidLexiconError(
                    f"Term '{term}' is empty after normalisation", entry=allergen.id
                )
            if normalized in seen:
                raise InvalidLexiconError(
                    f"Term '{term}' listed twice ({seen[normalized].value} and {kind.value})",
                    entry=allergen.id,
                )
            seen[normalized] = kind
            compiled.append(
                CompiledTerm(
                    allergen_id=allergen.id,
                    term=term,
                    normalized=normalized,
                    kind=kind,
                    pattern=compile_term_pattern(normalized),
                )
            )
        return tuple(compiled)

    def _build_lookup(self) -> Dict[str, str]:
        """Map any normalised id, label or term to its allergen id (first seen wins)."""
        mapping: Dict[str, str] = {}
        for allergen in self._allergens.values():
            keys = [allergen.id, allergen.id.replace("_", " "), allergen.label]
            keys.extend(term for term, _ in allergen.terms())
            for key in keys:
                normalized = normalize_term(key or "")
                if normalized:
                    mapping.setdefault(normalized, allergen.id)
        return mapping

    # ------------------------------------------------------------------ loaders

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, object]]) -> "AllergenLexicon":
        return cls(_allergen_from_record(record) for record in records)

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "AllergenLexicon":
        """
        Load a lexicon from JSON: either a list of records or an object keyed by
        allergen id.
        """
        path = Path(path)
        try:
            with path.open("r", encoding="utf-8") as fh:
                payload = json.load(fh)
        except (OSError, json.JSONDecodeError) as exc:
            raise InvalidLexiconError(f"Cannot read lexicon file {path}: {exc}") from exc

        if isinstance(payload, dict):
            records = [dict(meta, id=key) for key, meta in payload.items()]
        elif isinstance(payload, list):
            records = payload
        else:
            raise InvalidLexiconError(f"Lexicon file {path} must hold a list or object")
        lexicon = cls.from_records(records)
        logger.info("Loaded %d allergens from %s", len(lexicon), path)
        return lexicon

    @classmethod
    def default(cls) -> "AllergenLexicon":
        return cls.from_records(default_allergen_records())

    # ------------------------------------------------------------------ lookups

    def __len__(self) -> int:
        return len(self._allergens)

    def __iter__(self) -> Iterator[Allergen]:
        return iter(self._allergens.values())

    def __contains__(self, allergen_id: object) -> bool:
        return allergen_id in self._allergens

    @property
    def ids(self) -> List[str]:
        return list(self._allergens)

    def get(self, allergen_id: str) -> Optional[Allergen]:
        return self._allergens.get((allergen_id or "").lower())

    def compiled_terms(self, allergen_id: str) -> Tuple[CompiledTerm, ...]:
        return self._compiled.get(allergen_id, ())

    def exclusion_patterns(self, allergen_id: str) -> Tuple[Pattern[str], ...]:
        return self._exclusions.get(allergen_id, ())

    def resolve(self, user_input: str) -> Optional[str]:
        """
        Resolve free-form allergen text (id, label, canonical name or synonym)
        to an allergen id. Returns None when nothing matches.
        """
        return self._lookup.get(normalize_term(user_input or ""))

    def label(self, allergen_id: str) -> str:
        allergen = self.get(allergen_id)
        if not allergen:
            return allergen_id or ""
        return allergen.display_name


def _as_terms(value: object, field_name: str, allergen_id: str) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str) or not isinstance(value, Iterable):
        raise InvalidLexiconError(f"'{field_name}' must be a list of strings", entry=allergen_id)
    terms = []
    for item in value:
        if not isinstance(item, str):
            raise InvalidLexiconError(f"'{field_name}' must be a list of strings", entry=allergen_id)
        terms.append(item.strip())
    return tuple(terms)


def _allergen_from_record(record: Mapping[str, object]) -> Allergen:
    """Validate one raw record and convert it into an Allergen."""
    if not isinstance(record, Mapping):
        raise InvalidLexiconError("Allergen record must be an object")

    allergen_id = str(record.get("id") or "").strip().lower()
    if not allergen_id:
        raise InvalidLexiconError("Allergen record is missing an id")

    name = str(record.get("name") or "").strip()
    if not name:
        raise InvalidLexiconError("Allergen record is missing a canonical name", entry=allergen_id)

    try:
        severity = SensitivityLevel.parse(record.get("severity") or SensitivityLevel.MODERATE)
    except ValueError as exc:
        raise InvalidLexiconError(str(exc), entry=allergen_id) from exc

    return Allergen(
        id=allergen_id,
        name=name,
        synonyms=_as_terms(record.get("synonyms"), "synonyms", allergen_id),
        hidden_forms=_as_terms(record.get("hidden_forms"), "hidden_forms", allergen_id),
        default_severity=severity,
        label=str(record.get("label") or ""),
        description=str(record.get("description") or ""),
        exclusions=_as_terms(record.get("exclusions"), "exclusions", allergen_id),
    )
