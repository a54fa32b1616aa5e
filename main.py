"""
CLI entrypoint to check recognised menu or label text against an allergy profile.

Flow:
- Parse user inputs (text or text file, allergy profile, OCR quality, output
  format, reference data files).
- Resolve allergen names to lexicon ids and build the profile.
- Build the SafetyEngine and scan the text as one item or as a whole menu.
- Render either a text dashboard or JSON payload and append history records.
"""

import argparse
import csv
import json
import logging
import sys
from pathlib import Path
from typing import Iterable, List, Optional

from allerguard import (
    AllergenLexicon,
    AllerGuardError,
    MenuScanResult,
    RiskTier,
    SafetyEngine,
    ScanReport,
    SubstitutionMap,
    UserAllergenProfile,
    items_from_text,
)
from allerguard.config import (
    configure_logging,
    get_settings,
    load_lexicon,
    load_substitution_map,
)

logger = logging.getLogger("allerguard.cli")

TIER_MARKERS = {
    RiskTier.SAFE: "OK",
    RiskTier.CAUTION: "!!",
    RiskTier.UNSAFE: "XX",
}


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Configure and parse CLI arguments."""
    parser = argparse.ArgumentParser(
        description="Check OCR'd menu or ingredient text for allergens"
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--text", help="Recognised text to scan")
    source.add_argument("--text-file", help="File holding recognised text ('-' for stdin)")
    parser.add_argument(
        "--allergies",
        required=True,
        help="Comma-separated allergens with optional level, e.g. peanuts:severe,milk",
    )
    parser.add_argument(
        "--ocr-quality",
        type=float,
        default=1.0,
        help="Recognition certainty in [0, 1] (default: 1.0)",
    )
    parser.add_argument(
        "--menu",
        action="store_true",
        default=False,
        help="Split the text into menu items (blank-line blocks or lines)",
    )
    parser.add_argument(
        "--no-substitutions",
        action="store_true",
        default=False,
        help="Do not suggest ingredient substitutions",
    )
    parser.add_argument("--lexicon", default=None, help="JSON allergen lexicon file")
    parser.add_argument(
        "--substitutions",
        default=None,
        help="JSON or CSV substitution map file",
    )
    parser.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    parser.add_argument(
        "--history",
        default=None,
        help="CSV audit log path (defaults to ALLERGUARD_HISTORY_PATH)",
    )
    parser.add_argument(
        "--no-history",
        action="store_true",
        default=False,
        help="Do not append verdicts to the audit log",
    )
    return parser.parse_args(argv)


def parse_allergies(allergies: str, lexicon: AllergenLexicon) -> UserAllergenProfile:
    """
    Turn 'peanuts:severe,milk' into a profile. Entries without a level get the
    allergen's default severity. Raises ValueError on an unknown level.
    """
    requested = {}
    for token in allergies.split(","):
        name, _, level = token.partition(":")
        if name.strip():
            requested[name.strip()] = level.strip() or None
    return UserAllergenProfile.from_mapping(requested, lexicon)


def read_text(args: argparse.Namespace) -> str:
    if args.text is not None:
        return args.text
    if args.text_file == "-":
        return sys.stdin.read()
    return Path(args.text_file).read_text(encoding="utf-8")


def render_bar(value: float, width: int = 20) -> str:
    """ASCII bar to visualize a 0-1 confidence."""
    filled = int(max(0.0, min(value, 1.0)) * width)
    return f"[{'#' * filled}{'.' * (width - filled)}]"


def render_report(report: ScanReport, lexicon: AllergenLexicon) -> str:
    """Pretty-print one verdict in a text-first layout."""
    classification = report.classification
    lines = []
    headline = f"[{TIER_MARKERS[report.tier]}] {report.tier.value.upper()}"
    if report.name:
        headline += f" · {report.name}"
    lines.append(headline)
    lines.append(
        f"  Confidence: {classification.confidence.value} "
        f"{render_bar(classification.confidence_score)} {classification.confidence_score:.2f}"
    )
    for reason in classification.reasons:
        lines.append(f"  - {reason}")
    if classification.informational_matches:
        names = ", ".join(
            lexicon.label(m.allergen_id) for m in classification.informational_matches
        )
        lines.append(f"  Also present (not in your profile): {names}")
    if report.substitutions:
        lines.append("  Suggested swaps:")
        for candidate in report.substitutions:
            lines.append(
                f"    * {candidate.original} -> {candidate.replacement} "
                f"(feasibility {candidate.feasibility:.2f})"
            )
    elif report.needs_manual_avoidance:
        lines.append("  No known safe substitution: avoid this item.")
    return "\n".join(lines)


def render_menu(result: MenuScanResult, lexicon: AllergenLexicon) -> str:
    lines = ["=== Menu scan ==="]
    counts = result.counts()
    lines.append(
        f"Worst: {result.worst_tier.value} | "
        + " ".join(f"{tier}={count}" for tier, count in counts.items())
    )
    for report in result.reports:
        lines.append("")
        lines.append(render_report(report, lexicon))
    for failure in result.failures:
        lines.append("")
        lines.append(f"[??] skipped item {failure.index} ({failure.name}): {failure.error}")
    return "\n".join(lines)


def _next_history_id(path: Path) -> int:
    """Ids keep increasing across runs; rows with a non-numeric id are ignored."""
    if not path.exists():
        return 1
    with path.open("r", newline="", encoding="utf-8") as fh:
        ids = [int(row["id"]) for row in csv.DictReader(fh) if (row.get("id") or "").isdigit()]
    return max(ids, default=0) + 1


HISTORY_FIELDS = [
    "id",
    "command",
    "user_restrictions",
    "item_name",
    "tier",
    "confidence",
    "triggering_allergens",
    "substitutions",
    "text_snapshot",
]


def append_history(
    history_path: Path,
    profile: UserAllergenProfile,
    reports: Iterable[ScanReport],
    command_label: str = "cli",
) -> None:
    """Append one CSV audit row per verdict."""
    history_path.parent.mkdir(parents=True, exist_ok=True)
    next_id = _next_history_id(history_path)
    restrictions = ",".join(
        f"{allergen_id}:{level.value}" for allergen_id, level in sorted(profile.sensitivities.items())
    )

    write_header = not history_path.exists()
    with history_path.open("a", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(fh, fieldnames=HISTORY_FIELDS)
        if write_header:
            writer.writeheader()
        for offset, report in enumerate(reports):
            writer.writerow(
                {
                    "id": next_id + offset,
                    "command": command_label,
                    "user_restrictions": restrictions,
                    "item_name": report.name or "",
                    "tier": report.tier.value,
                    "confidence": f"{report.classification.confidence_score:.2f}",
                    "triggering_allergens": ",".join(
                        report.classification.triggering_allergen_ids
                    ),
                    "substitutions": json.dumps(
                        [c.to_dict() for c in report.substitutions], ensure_ascii=False
                    ),
                    "text_snapshot": report.classification.source_text or "",
                }
            )
    logger.debug("Appended history from id %d to %s", next_id, history_path)


def main(argv: Optional[List[str]] = None) -> int:
    """Entrypoint: build the profile, run the scan, render output, and log history."""
    args = parse_args(argv)
    settings = get_settings()
    configure_logging(settings)

    try:
        lexicon = (
            AllergenLexicon.from_json(args.lexicon) if args.lexicon else load_lexicon(settings)
        )
        if args.substitutions:
            substitution_map = (
                SubstitutionMap.from_csv(args.substitutions)
                if args.substitutions.lower().endswith(".csv")
                else SubstitutionMap.from_json(args.substitutions)
            )
        else:
            substitution_map = load_substitution_map(settings)
        profile = parse_allergies(args.allergies, lexicon)
    except (AllerGuardError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    profile.suggest_substitutions = not args.no_substitutions

    engine = SafetyEngine(
        lexicon,
        substitution_map,
        max_substitutions=settings.MAX_SUBSTITUTIONS,
    )
    try:
        text = read_text(args)
    except OSError as exc:
        print(f"error: cannot read {args.text_file}: {exc}", file=sys.stderr)
        return 2

    if args.menu:
        result = engine.assess_menu(
            items_from_text(text, ocr_quality=args.ocr_quality),
            profile,
            max_workers=settings.MAX_WORKERS,
        )
        reports = list(result.reports)
        output = result.to_dict()
        rendered = render_menu(result, lexicon)
    else:
        try:
            report = engine.assess(text, profile, ocr_quality=args.ocr_quality)
        except AllerGuardError as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 2
        reports = [report]
        output = report.to_dict()
        rendered = render_report(report, lexicon)

    if args.format == "json":
        print(json.dumps(output, indent=2, ensure_ascii=False))
    else:
        print(rendered)

    if not args.no_history:
        history_path = Path(args.history) if args.history else settings.HISTORY_PATH
        append_history(history_path, profile, reports, command_label="menu" if args.menu else "scan")
    return 0


if __name__ == "__main__":
    sys.exit(main())
