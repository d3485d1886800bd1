"""
Tests for the tracker HTTP API.

Drives every endpoint through FastAPI's TestClient against a demo-seeded
server.
"""

import logging

import pytest
from fastapi.testclient import TestClient

from initiative.api.server import TrackerAPI, create_app


# -----------------------------------------------------------------------------
# Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def app():
    return create_app()


@pytest.fixture
def api_client(app):
    """Test client for a demo-seeded server."""
    return TestClient(app)


@pytest.fixture
def api(app) -> TrackerAPI:
    return app.state.api


def roster_names(api: TrackerAPI) -> list[str]:
    return [c.name for c in api.store.current.roster]


def save_body(**overrides) -> dict:
    body = {
        "id": 2,
        "name": "Legolas",
        "armorClass": 15,
        "maxHP": 40,
        "currentHP": 40,
        "initiative": 18,
    }
    body.update(overrides)
    return body


# -----------------------------------------------------------------------------
# Health and state
# -----------------------------------------------------------------------------

class TestHealthCheck:
    def test_health_check_returns_ok(self, api_client):
        response = api_client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"ok": True, "service": "initiative-tracker"}

    def test_requests_are_logged(self, api_client, caplog):
        caplog.set_level(logging.INFO, logger="initiative.api.server")
        api_client.get("/health")
        assert "Started GET /health" in caplog.text
        assert "Completed /health" in caplog.text


class TestStateEndpoint:
    """GET /state JSON snapshot."""

    def test_state(self, api_client):
        data = api_client.get("/state").json()
        encounter = data["encounter"]
        assert encounter["name"] == "Goblin Ambush"
        assert [c["id"] for c in encounter["roster"]] == [1, 2, 3]
        assert encounter["turn_order"] == [2, 1, 3]
        assert encounter["active_id"] == 1
        assert [e["current"] for e in data["encounters"]] == [True, False, False]

    def test_state_without_encounters(self):
        client = TestClient(create_app(seed_demo=False))
        data = client.get("/state").json()
        assert data["encounter"] is None
        assert data["encounters"] == []


# -----------------------------------------------------------------------------
# Roster fragments
# -----------------------------------------------------------------------------

class TestRosterFragments:
    def test_characters_in_manual_order(self, api_client):
        html = api_client.get("/characters").text
        assert html.index('data-id="1"') < html.index('data-id="2"') < html.index('data-id="3"')
        assert 'class="character active" data-id="1"' in html

    def test_characters_in_turn_order(self, api_client):
        html = api_client.get("/characters", params={"order": "turn"}).text
        assert html.index('data-id="2"') < html.index('data-id="1"') < html.index('data-id="3"')

    def test_names_are_escaped(self, api_client):
        api_client.post("/save-character", json=save_body(name="<b>Legolas</b>"))
        html = api_client.get("/characters").text
        assert "&lt;b&gt;Legolas&lt;/b&gt;" in html
        assert "<b>" not in html

    def test_encounter_list(self, api_client):
        html = api_client.get("/encounters").text
        assert 'class="encounter selected" data-id="1"' in html
        assert "Dragon&#39;s Lair" in html


class TestSelection:
    """Active combatant and encounter selection."""

    def test_select_character(self, api_client, api):
        response = api_client.post("/select-character", json={"id": 3})
        assert response.status_code == 200
        assert 'class="character active" data-id="3"' in response.text
        assert api.store.current.active.id == 3

    def test_select_unknown_character_keeps_active(self, api_client, api):
        api_client.post("/select-character", json={"id": 999})
        assert api.store.current.active.id == 1

    def test_next(self, api_client, api):
        api_client.post("/next")
        assert api.store.current.active.name == "Gimli"
        api_client.post("/next")
        assert api.store.current.active.name == "Legolas"

    def test_select_encounter(self, api_client, api):
        response = api_client.post("/select-encounter", json={"id": 2})
        assert response.status_code == 200
        assert 'data-encounter-id="2"' in response.text
        assert api.encounter_id == 2

    def test_select_unknown_encounter(self, api_client, api):
        response = api_client.post("/select-encounter", json={"id": 42})
        assert response.status_code == 404
        assert api.encounter_id == 1


# -----------------------------------------------------------------------------
# Save
# -----------------------------------------------------------------------------

class TestSaveCharacter:
    """POST /save-character."""

    def test_update_existing(self, api_client, api):
        response = api_client.post(
            "/save-character", json=save_body(name="Legolas Greenleaf", currentHP=12)
        )
        assert response.status_code == 200
        assert 'data-id="2"' in response.text
        assert "Legolas Greenleaf" in response.text

        saved = api.store.current.find(2)
        assert saved.current_hp == 12
        assert saved.owner_id == "user2"
        assert roster_names(api)[1] == "Legolas Greenleaf"

    def test_save_keeps_active_flag(self, api_client, api):
        api_client.post("/save-character", json=save_body(id=1, name="Strider"))
        assert api.store.current.find(1).is_active is True

    def test_create_with_id_zero(self, api_client, api):
        response = api_client.post(
            "/save-character", json=save_body(id=0, name="Boromir", initiative=9, ownerId="user4")
        )
        assert response.status_code == 200
        created = api.store.current.roster[-1]
        assert created.name == "Boromir"
        assert created.owner_id == "user4"
        assert created.id not in (0, 1, 2, 3)
        assert f'data-id="{created.id}"' in response.text

    def test_unknown_id_is_404(self, api_client, api):
        before = api.store.state
        response = api_client.post("/save-character", json=save_body(id=999))
        assert response.status_code == 404
        assert api.store.state is before

    def test_empty_name_is_400(self, api_client, api):
        before = api.store.state
        response = api_client.post("/save-character", json=save_body(name="  "))
        assert response.status_code == 400
        assert api.store.state is before

    def test_hp_not_clamped(self, api_client, api):
        response = api_client.post("/save-character", json=save_body(currentHP=99))
        assert response.status_code == 200
        assert api.store.current.find(2).current_hp == 99

    def test_without_encounter_is_400(self):
        client = TestClient(create_app(seed_demo=False))
        response = client.post("/save-character", json=save_body(id=0))
        assert response.status_code == 400


# -----------------------------------------------------------------------------
# Reorder
# -----------------------------------------------------------------------------

class TestReorder:
    def test_reorder(self, api_client, api):
        response = api_client.post("/reorder", json={"oldIndex": 0, "newIndex": 2})
        assert response.status_code == 200
        assert response.json() == {"status": "success"}
        assert roster_names(api) == ["Legolas", "Gimli", "Aragorn"]

    def test_out_of_range_acknowledged(self, api_client, api):
        response = api_client.post("/reorder", json={"oldIndex": 0, "newIndex": 7})
        assert response.json() == {"status": "success"}
        assert roster_names(api) == ["Aragorn", "Legolas", "Gimli"]

    def test_malformed_body(self, api_client):
        response = api_client.post("/reorder", json={"oldIndex": 0})
        assert response.status_code == 422


# -----------------------------------------------------------------------------
# Adding combatants
# -----------------------------------------------------------------------------

class TestAddCombatants:
    def test_add_character_opens_in_edit_mode(self, api_client, api):
        response = api_client.post("/add-character")
        assert response.status_code == 200
        new_id = api.store.current.roster[-1].id
        row = response.text[response.text.index(f'data-id="{new_id}"'):]
        assert '<div class="view-mode" style="display: none">' in row
        assert '<div class="edit-mode">' in row

    def test_add_enemy(self, api_client, api):
        response = api_client.post("/add-enemy", json={"templateId": 101})
        assert response.status_code == 200
        assert "Goblin" in response.text
        assert roster_names(api)[-1] == "Goblin"

    def test_add_unknown_enemy(self, api_client):
        response = api_client.post("/add-enemy", json={"templateId": 999})
        assert response.status_code == 404

    def test_search(self, api_client):
        html = api_client.get("/search-characters", params={"q": "lgs"}).text
        assert "Legolas" in html
        assert "addCharacterToEncounter(5)" in html
        assert "Gimli" not in html

    def test_search_excludes_current_encounter(self, api_client):
        html = api_client.get("/search-characters").text
        for combatant_id in (1, 2, 3):
            assert f"addCharacterToEncounter({combatant_id})" not in html

    def test_add_character_to_encounter(self, api_client, api):
        response = api_client.post("/add-character-to-encounter", json={"character_id": 6})
        assert response.status_code == 200
        assert roster_names(api) == ["Aragorn", "Legolas", "Gimli", "Gimli"]
        assert len({c.id for c in api.store.current.roster}) == 4
