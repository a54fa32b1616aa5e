"""
Built-in allergen reference data.

Defines the default allergen set with canonical names, synonyms, hidden
ingredient forms, default severities and exclusion phrases. Records use the same
shape accepted by `AllergenLexicon.from_records`, so a JSON lexicon file can
override them one-for-one.
"""

from __future__ import annotations

from typing import Dict, List

# Plant-based and non-dairy phrases that reuse dairy words.
NON_DAIRY_PHRASES: List[str] = [
    "peanut butter",
    "almond butter",
    "cashew butter",
    "nut butter",
    "seed butter",
    "cocoa butter",
    "cacao butter",
    "shea butter",
    "apple butter",
    "coconut cream",
    "cashew cream",
    "cream of tartar",
    "cream soda",
    "cashew cheese",
    "coconut yogurt",
    "soy yogurt",
    "oat yogurt",
]

# Flours milled from grains and nuts that are not wheat.
NON_WHEAT_FLOURS: List[str] = [
    "rice flour",
    "corn flour",
    "almond flour",
    "coconut flour",
    "chickpea flour",
    "gram flour",
    "oat flour",
    "potato flour",
    "tapioca flour",
    "cassava flour",
    "buckwheat flour",
    "sorghum flour",
]

DEFAULT_ALLERGENS: Dict[str, Dict[str, object]] = {
    "peanuts": {
        "name": "peanut",
        "label": "Peanuts",
        "description": "A legume commonly used in various food products.",
        "severity": "high",
        "synonyms": [
            "groundnut",
            "arachis",
            "goober",
            "goober pea",
            "monkey nut",
        ],
        "hidden_forms": [
            "arachis oil",
            "arachis hypogaea",
            "beer nuts",
            "mandelonas",
            "satay",
        ],
    },
    "tree_nuts": {
        "name": "tree nut",
        "label": "Tree Nuts",
        "description": "Includes almonds, walnuts, cashews, and more.",
        "severity": "high",
        "synonyms": [
            "almond",
            "walnut",
            "cashew",
            "pecan",
            "hazelnut",
            "filbert",
            "pistachio",
            "macadamia",
            "brazil nut",
            "pine nut",
        ],
        "hidden_forms": [
            "marzipan",
            "nougat",
            "praline",
            "gianduja",
            "frangipane",
            "amaretto",
            "nut butter",
            "coconut",
        ],
    },
    "milk": {
        "name": "milk",
        "label": "Milk",
        "description": "Dairy products from cows and other animals.",
        "severity": "moderate",
        "synonyms": [
            "dairy",
            "butter",
            "buttermilk",
            "cheese",
            "cream",
            "ice cream",
            "yogurt",
            "yoghurt",
            "ghee",
            "kefir",
            "paneer",
        ],
        "hidden_forms": [
            "casein",
            "caseinate",
            "whey",
            "lactose",
            "lactalbumin",
            "lactoglobulin",
            "curds",
            "custard",
        ],
        "exclusions": NON_DAIRY_PHRASES,
    },
    "eggs": {
        "name": "egg",
        "label": "Eggs",
        "description": "Eggs from birds, commonly chicken eggs.",
        "severity": "moderate",
        "synonyms": [
            "egg white",
            "egg yolk",
            "yolk",
            "albumen",
        ],
        "hidden_forms": [
            "albumin",
            "ovalbumin",
            "globulin",
            "ovomucoid",
            "ovomucin",
            "lysozyme",
            "mayonnaise",
            "meringue",
            "aioli",
        ],
    },
    "wheat": {
        "name": "wheat",
        "label": "Wheat",
        "description": "A cereal grain used in many food products.",
        "severity": "moderate",
        "synonyms": [
            "spelt",
            "durum",
            "semolina",
            "farina",
            "kamut",
            "bulgur",
            "couscous",
        ],
        "hidden_forms": [
            "gluten",
            "seitan",
            "flour",
            "breadcrumbs",
            "panko",
        ],
        "exclusions": NON_WHEAT_FLOURS,
    },
    "soy": {
        "name": "soy",
        "label": "Soy",
        "description": "A legume used in many processed foods.",
        "severity": "moderate",
        "synonyms": [
            "soya",
            "soybean",
            "edamame",
            "tofu",
            "tempeh",
            "miso",
            "natto",
        ],
        "hidden_forms": [
            "shoyu",
            "tamari",
            "textured vegetable protein",
            "tvp",
            "lecithin",
        ],
    },
    "fish": {
        "name": "fish",
        "label": "Fish",
        "description": "Various species of finned fish.",
        "severity": "high",
        "synonyms": [
            "cod",
            "salmon",
            "tuna",
            "haddock",
            "mackerel",
            "bass",
            "anchovy",
            "anchovies",
            "tilapia",
            "trout",
            "sardine",
            "halibut",
        ],
        "hidden_forms": [
            "worcestershire",
            "caesar",
            "surimi",
            "bonito",
            "dashi",
        ],
    },
    "shellfish": {
        "name": "shellfish",
        "label": "Shellfish",
        "description": "Includes crustaceans and mollusks.",
        "severity": "high",
        "synonyms": [
            "shrimp",
            "prawn",
            "crab",
            "lobster",
            "crayfish",
            "crawfish",
            "langoustine",
            "krill",
            "clam",
            "mussel",
            "oyster",
            "scallop",
            "squid",
            "calamari",
            "octopus",
        ],
        "hidden_forms": [
            "glucosamine",
            "bouillabaisse",
            "scampi",
        ],
    },
    "sesame": {
        "name": "sesame",
        "label": "Sesame",
        "description": "Sesame seeds, oils and pastes.",
        "severity": "high",
        "synonyms": [
            "tahini",
            "tahina",
            "benne",
            "gingelly",
        ],
        "hidden_forms": [
            "gomasio",
            "halvah",
            "hummus",
            "za'atar",
        ],
    },
}


def default_allergen_records() -> List[Dict[str, object]]:
    """Return the built-in allergens as lexicon records (id included)."""
    return [dict(meta, id=allergen_id) for allergen_id, meta in DEFAULT_ALLERGENS.items()]
