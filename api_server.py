"""
FastAPI wrapper for the allergen safety engine.

Endpoints:
- GET /health       : readiness probe
- GET /allergens    : allergens known to the loaded lexicon
- POST /scan        : classify one OCR'd item for a user profile
- POST /menu        : classify every item of a menu (isolated per item)

Run locally:
    uvicorn api_server:app --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

from typing import Dict, List, Optional

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, field_validator

from allerguard import (
    AllerGuardError,
    SafetyEngine,
    ScanItem,
    SensitivityLevel,
    UserAllergenProfile,
    items_from_text,
)
from allerguard.config import (
    configure_logging,
    get_settings,
    load_lexicon,
    load_substitution_map,
)

settings = get_settings()
configure_logging(settings)

app = FastAPI(
    title="AllerGuard API",
    description="Allergen detection and safe substitutions for OCR'd menus and labels.",
    version="1.0.0",
)

# Browser clients (the scanning UI) call the API cross-origin.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type"],
)

# Shared read-only reference data
lexicon = load_lexicon(settings)
substitution_map = load_substitution_map(settings)
engine = SafetyEngine(
    lexicon,
    substitution_map,
    max_substitutions=settings.MAX_SUBSTITUTIONS,
)


class ProfileModel(BaseModel):
    allergies: Dict[str, str] = Field(
        ...,
        description="Allergen name or id -> level (none/mild/moderate/high/severe)",
    )
    suggest_substitutions: bool = Field(
        True, description="Propose safe ingredient swaps for risky items"
    )

    @field_validator("allergies")
    @classmethod
    def _validate_levels(cls, v: Dict[str, str]) -> Dict[str, str]:
        for level in v.values():
            SensitivityLevel.parse(level)
        return v

    def to_profile(self) -> UserAllergenProfile:
        return UserAllergenProfile.from_mapping(
            self.allergies,
            lexicon,
            suggest_substitutions=self.suggest_substitutions,
        )


class ScanRequest(BaseModel):
    text: str = Field(..., description="Recognised text of one item")
    name: Optional[str] = Field(None, description="Item name shown in the result")
    ocr_quality: float = Field(1.0, description="Recognition certainty in [0, 1]")
    profile: ProfileModel


class MenuItemModel(BaseModel):
    name: Optional[str] = None
    text: str
    ocr_quality: float = 1.0


class MenuRequest(BaseModel):
    items: Optional[List[MenuItemModel]] = Field(
        None, description="Pre-segmented items; takes precedence over text"
    )
    text: Optional[str] = Field(None, description="Whole menu text to segment")
    ocr_quality: float = 1.0
    profile: ProfileModel


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/allergens")
def allergens() -> List[Dict]:
    return [
        {
            "id": allergen.id,
            "name": allergen.name,
            "label": allergen.display_name,
            "default_severity": allergen.default_severity.value,
            "description": allergen.description,
        }
        for allergen in lexicon
    ]


@app.post("/scan")
def scan(request: ScanRequest):
    profile = request.profile.to_profile()
    try:
        report = engine.assess(
            request.text, profile, ocr_quality=request.ocr_quality, name=request.name
        )
    except AllerGuardError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return report.to_dict()


@app.post("/menu")
def menu(request: MenuRequest):
    profile = request.profile.to_profile()
    if request.items:
        items = [
            ScanItem(name=item.name or f"item {index + 1}", text=item.text, ocr_quality=item.ocr_quality)
            for index, item in enumerate(request.items)
        ]
    elif request.text and request.text.strip():
        items = items_from_text(request.text, ocr_quality=request.ocr_quality)
    else:
        raise HTTPException(status_code=422, detail="Provide menu items or menu text")
    result = engine.assess_menu(items, profile, max_workers=settings.MAX_WORKERS)
    return result.to_dict()


if __name__ == "__main__":
    uvicorn.run("api_server:app", host="0.0.0.0", port=8000, reload=False)
