"""Tests for API endpoints (in-memory persistence)."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from app.persistence.store import InMemoryDocumentStore
from tests.conftest import CARD_JSX, SAMPLE_H1, SAMPLE_P


@pytest.fixture
def client():
    with TestClient(create_app(store=InMemoryDocumentStore())) as client:
        yield client


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["validators_registered"] == 13


def test_properties(client):
    data = client.get("/api/properties").json()
    assert "backgroundColor" in data["color"]
    assert "lineHeight" in data["size"]
    assert "textAlign" in data["enum"]


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def test_validate(client):
    data = client.post("/api/validate", json={"property": "color", "value": "#FFF"}).json()
    assert data == {"valid": True, "sanitized_value": "#fff", "errors": []}


def test_validate_rejects_non_editable_tag(client):
    data = client.post(
        "/api/validate", json={"property": "color", "value": "#fff", "element_path": "script[0]"}
    ).json()
    assert not data["valid"]
    assert data["errors"][0]["field"] == "elementPath"


def test_validate_malformed_address(client):
    response = client.post(
        "/api/validate", json={"property": "color", "value": "#fff", "element_path": "div"}
    )
    assert response.status_code == 422


def test_validate_batch_and_contrast(client):
    batch = client.post("/api/validate/batch", json={"updates": {"color": "#000", "width": "x"}}).json()
    assert batch["summary"] == {"total": 2, "valid": 1, "invalid": 1}
    contrast = client.post(
        "/api/validate/contrast", json={"foreground": "#000", "background": "#fff"}
    ).json()
    assert contrast["meets_wcag_aa"]


# ---------------------------------------------------------------------------
# One-shot mutation
# ---------------------------------------------------------------------------

def test_mutate_updates_style(client):
    data = client.post(
        "/api/mutate",
        json={"source": SAMPLE_P, "element_path": "p[0]", "property": "color", "value": "#FF0000"},
    ).json()
    assert data["success"]
    assert data["modified_source"] == "<p style={{color: '#ff0000'}}>Sample text</p>"
    assert data["applied_change"] == {
        "kind": "style_updated",
        "address": "p[0]",
        "property": "color",
        "old_value": "#333",
        "new_value": "#ff0000",
    }
    assert data["processing_time_ms"] >= 0


def test_mutate_kebab_case_creates_style(client):
    data = client.post(
        "/api/mutate",
        json={"source": SAMPLE_H1, "element_path": "h1[0]", "property": "background-color", "value": "red"},
    ).json()
    assert data["applied_change"]["kind"] == "style_added"
    assert "backgroundColor: 'red'" in data["modified_source"]


def test_mutate_failures(client):
    invalid = client.post(
        "/api/mutate",
        json={"source": SAMPLE_P, "element_path": "p[0]", "property": "color", "value": "??"},
    ).json()
    assert invalid["error"]["code"] == "INVALID_COLOR_VALUE"
    assert invalid["processing_time_ms"] >= 0

    missing = client.post(
        "/api/mutate",
        json={"source": SAMPLE_P, "element_path": "p[3]", "property": "color", "value": "red"},
    ).json()
    assert not missing["success"]
    assert missing["error"]["code"] == "ELEMENT_NOT_FOUND"
    assert missing["modifications"] == []


def test_syntax(client):
    assert client.post("/api/syntax", json={"source": SAMPLE_P}).json() == {"valid": True, "error": None}
    assert not client.post("/api/syntax", json={"source": "<p>"}).json()["valid"]


# ---------------------------------------------------------------------------
# Analysis and preview
# ---------------------------------------------------------------------------

def test_analyze(client):
    data = client.post("/api/analyze", json={"source": CARD_JSX}).json()
    assert data["success"]
    assert [e["address"] for e in data["elements"]] == [
        "div[0]", "h1[0]", "p[0]", "div[1]", "p[1]", "button[0]", "span[0]",
    ]


def test_analyze_parse_error(client):
    data = client.post("/api/analyze", json={"source": "const x = <div>"}).json()
    assert not data["success"]
    assert data["error"]["code"] == "PARSE_ERROR"
    assert data["error"]["line"] == 1


def test_preview_instrument(client):
    data = client.post("/api/preview/instrument", json={"source": SAMPLE_P}).json()
    assert 'data-editor-id="1"' in data["source"]
    assert data["addresses"] == {"1": "p[0]"}


def test_preview_select(client):
    data = client.post("/api/preview/select", json={"source": CARD_JSX, "editor_id": 5}).json()
    assert data["success"]
    selection = data["selection"]
    assert selection["address"] == "p[1]"
    assert selection["properties"]["color"] == "#333"
    assert "node" not in selection

    missing = client.post("/api/preview/select", json={"source": CARD_JSX, "editor_id": 50}).json()
    assert missing["error"]["code"] == "ELEMENT_NOT_FOUND"


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------

def test_session_lifecycle(client):
    opened = client.post("/api/sessions", json={"source": CARD_JSX}).json()
    session_id = opened["session_id"]
    assert opened["document_id"] is None
    assert opened["save"]["status"] == "clean"

    edit = client.post(
        f"/api/sessions/{session_id}/edits",
        json={"property": "color", "value": "#FF0000", "editor_id": 5},
    ).json()
    assert edit["success"]
    assert edit["address"] == "p[1]"
    assert edit["dom_updated"]

    flushed = client.post(f"/api/sessions/{session_id}/flush").json()
    assert "color: '#ff0000'" in flushed["source"]
    assert flushed["queue"]["size"] == 0
    assert flushed["save"]["status"] == "clean"
    assert flushed["document_id"] is not None
    assert flushed["selection"]["address"] == "p[1]"

    undone = client.post(f"/api/sessions/{session_id}/undo").json()
    assert undone["source"] == CARD_JSX
    assert client.post(f"/api/sessions/{session_id}/undo").status_code == 409

    assert client.delete(f"/api/sessions/{session_id}").json() == {"closed": True}
    assert client.get(f"/api/sessions/{session_id}").status_code == 404


def test_session_source_and_document_switch(client):
    session_id = client.post("/api/sessions", json={"source": SAMPLE_P}).json()["session_id"]

    replaced = client.put(f"/api/sessions/{session_id}/source", json={"source": SAMPLE_H1}).json()
    assert replaced["source"] == SAMPLE_H1
    assert replaced["can_undo"]

    broken = client.put(f"/api/sessions/{session_id}/source", json={"source": "<h1>"}).json()
    assert broken["parse_error"]

    switched = client.post(
        f"/api/sessions/{session_id}/document", json={"source": SAMPLE_P}
    ).json()
    assert switched["source"] == SAMPLE_P
    assert switched["document_id"] is None
    assert not switched["can_undo"]


def test_session_edit_by_address(client):
    session_id = client.post("/api/sessions", json={"source": SAMPLE_H1}).json()["session_id"]
    edit = client.post(
        f"/api/sessions/{session_id}/edits",
        json={"property": "textContent", "value": "Hi", "element_path": "h1[0]"},
    ).json()
    assert edit["success"]
    source = client.post(f"/api/sessions/{session_id}/flush").json()["source"]
    assert source == "<h1>Hi</h1>"


def test_unknown_session_and_document(client):
    assert client.get("/api/sessions/nope").status_code == 404
    assert client.post("/api/sessions/nope/flush").status_code == 404
    assert client.post("/api/sessions", json={"document_id": "missing"}).status_code == 404
