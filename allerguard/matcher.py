"""
Allergen matcher: scans recognised text for canonical names, synonyms and
hidden forms of every allergen in a lexicon.

Matching runs on normalised text with whole-word boundaries, and every hit is
mapped back to its span in the original text. Overlapping hits for the same
allergen are all kept; their specificity is what tells them apart later.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Pattern, Sequence, Tuple

from .errors import EmptyTextError
from .lexicon import AllergenLexicon
from .models import MatchKind, TermMatch
from .normalization import has_line_break_hyphen, normalize_with_offsets

logger = logging.getLogger(__name__)


class AllergenMatcher:
    """
    Base interface for turning text into raw allergen term matches.
    """

    def match(self, text: str, lexicon: AllergenLexicon) -> List[TermMatch]:
        raise NotImplementedError


class LexiconMatcher(AllergenMatcher):
    """
    Deterministic, side-effect-free matcher backed by the lexicon's compiled
    term patterns.
    """

    def match(self, text: str, lexicon: AllergenLexicon) -> List[TermMatch]:
        if text is None or not text.strip():
            raise EmptyTextError()

        found: Dict[Tuple, TermMatch] = {}
        # A hyphen at a line break is usually a split word ("pea-\nnut"), but
        # may also be a real compound ("soy-\nbased"). Scan both readings.
        readings = [True]
        if has_line_break_hyphen(text):
            readings.append(False)

        for join_hyphenated in readings:
            normalized, offsets = normalize_with_offsets(text, join_hyphenated)
            if not normalized:
                continue
            for term_match in self._scan(text, normalized, offsets, lexicon):
                key = (
                    term_match.allergen_id,
                    term_match.term,
                    term_match.kind,
                    term_match.start,
                    term_match.end,
                )
                found.setdefault(key, term_match)

        matches = sorted(found.values(), key=_order_key)
        logger.debug("Matched %d allergen term(s) in %d chars", len(matches), len(text))
        return matches

    def _scan(
        self,
        text: str,
        normalized: str,
        offsets: Sequence[int],
        lexicon: AllergenLexicon,
    ) -> Iterable[TermMatch]:
        for allergen in lexicon:
            hits = [
                (compiled, hit.span())
                for compiled in lexicon.compiled_terms(allergen.id)
                for hit in compiled.pattern.finditer(normalized)
            ]
            spans = [span for _, span in hits]
            # "ice cream soda": "ice cream" straddles "cream soda", so that
            # exclusion must not hide the milk hit inside it.
            excluded = [
                phrase
                for phrase in _spans(normalized, lexicon.exclusion_patterns(allergen.id))
                if not any(_straddles(span, phrase) for span in spans)
            ]
            for compiled, (hit_start, hit_end) in hits:
                # Canonical names are never excluded.
                if compiled.kind != MatchKind.CANONICAL and _inside((hit_start, hit_end), excluded):
                    continue
                start = offsets[hit_start]
                end = offsets[hit_end - 1] + 1
                yield TermMatch(
                    allergen_id=allergen.id,
                    term=compiled.term,
                    matched_text=text[start:end],
                    start=start,
                    end=end,
                    kind=compiled.kind,
                )


def _spans(normalized: str, patterns: Iterable[Pattern[str]]) -> List[Tuple[int, int]]:
    return [hit.span() for pattern in patterns for hit in pattern.finditer(normalized)]


def _inside(span: Tuple[int, int], containers: List[Tuple[int, int]]) -> bool:
    start, end = span
    return any(c_start <= start and end <= c_end for c_start, c_end in containers)


def _straddles(span: Tuple[int, int], phrase: Tuple[int, int]) -> bool:
    """True when `span` overlaps `phrase` without lying inside it."""
    return span[0] < phrase[1] and phrase[0] < span[1] and not _inside(span, [phrase])


def _order_key(term_match: TermMatch):
    return (
        term_match.start,
        term_match.end,
        term_match.allergen_id,
        term_match.kind.rank,
        term_match.term,
    )


_default_matcher = LexiconMatcher()


def match(text: str, lexicon: AllergenLexicon) -> List[TermMatch]:
    """Scan `text` against `lexicon` with the default matcher."""
    return _default_matcher.match(text, lexicon)
