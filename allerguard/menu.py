"""
Menu segmentation helpers: split recognised menu text into scannable items.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional

_BLANK_LINE = re.compile(r"\n[ \t]*\n")


@dataclass(frozen=True)
class ScanItem:
    """One OCR region (a dish or a product label) and its recognition quality."""

    name: str
    text: str
    ocr_quality: float = 1.0


def items_from_text(text: str, ocr_quality: float = 1.0) -> List[ScanItem]:
    """
    Blank-line separated blocks become items named after their first line.
    Text without blank lines yields one item per non-empty line.
    """
    normalized = (text or "").replace("\r\n", "\n").replace("\r", "\n")
    blocks = [block.strip() for block in _BLANK_LINE.split(normalized)]
    blocks = [block for block in blocks if block]

    if len(blocks) <= 1:
        lines = [line.strip() for line in normalized.splitlines()]
        return [
            ScanItem(name=line, text=line, ocr_quality=ocr_quality)
            for line in lines
            if line
        ]

    items: List[ScanItem] = []
    for block in blocks:
        name: Optional[str] = block.splitlines()[0].strip()
        items.append(ScanItem(name=name or block, text=block, ocr_quality=ocr_quality))
    return items
