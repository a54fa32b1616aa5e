import pytest
from fastapi.testclient import TestClient

from api_server import app


@pytest.fixture(scope="module")
def client():
    return TestClient(app)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_allergens_lists_lexicon(client):
    response = client.get("/allergens")
    ids = [a["id"] for a in response.json()]
    assert "peanuts" in ids and "sesame" in ids


def test_scan_flags_unsafe_item(client):
    response = client.post(
        "/scan",
        json={
            "text": "Pad thai with crushed peanuts",
            "name": "Pad thai",
            "ocr_quality": 0.9,
            "profile": {"allergies": {"Peanuts": "severe"}},
        },
    )
    assert response.status_code == 200
    body = response.json()
    assert body["tier"] == "unsafe"
    assert body["name"] == "Pad thai"
    assert body["matches"][0]["allergen_id"] == "peanuts"
    assert body["substitutions"]


def test_scan_blank_text_is_unprocessable(client):
    response = client.post("/scan", json={"text": "  ", "profile": {"allergies": {}}})
    assert response.status_code == 422


def test_scan_unknown_level_is_unprocessable(client):
    response = client.post(
        "/scan", json={"text": "milk", "profile": {"allergies": {"milk": "lethal"}}}
    )
    assert response.status_code == 422


def test_menu_from_text(client):
    response = client.post(
        "/menu",
        json={
            "text": "Omelette\neggs, chives\n\nFruit salad\nmelon, mint",
            "profile": {"allergies": {"eggs": "moderate"}},
        },
    )
    assert response.status_code == 200
    body = response.json()
    assert body["worst_tier"] == "unsafe"
    assert [item["name"] for item in body["items"]] == ["Omelette", "Fruit salad"]


def test_menu_items_report_failures(client):
    response = client.post(
        "/menu",
        json={
            "items": [{"name": "Soup", "text": ""}, {"text": "tofu stir fry"}],
            "profile": {"allergies": {"soy": "mild"}},
        },
    )
    body = response.json()
    assert body["failures"][0]["name"] == "Soup"
    assert body["items"][0]["name"] == "item 2"
    assert body["items"][0]["tier"] == "caution"


def test_menu_without_content_is_unprocessable(client):
    response = client.post("/menu", json={"profile": {"allergies": {}}})
    assert response.status_code == 422
