from __future__ import annotations

from typing import Any, Dict, List

import pytest
from fastapi.testclient import TestClient

from dayflow.core.errors import GenerationFailure
from dayflow.main import app
from dayflow.services.text_generation.base import TextGenerator
from dayflow.services.text_generation.factory import get_text_generator


class _ScriptedGenerator(TextGenerator):
    def __init__(self, *responses: Any):
        self.responses = list(responses)
        self.calls: List[Dict[str, Any]] = []

    def generate(self, *, name, system_prompt, user_prompt, output_model, request_id=None):
        self.calls.append({"name": name, "request_id": request_id})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return output_model.model_validate(response)


@pytest.fixture()
def client():
    generator = _ScriptedGenerator()
    app.dependency_overrides[get_text_generator] = lambda: generator
    with TestClient(app) as test_client:
        yield test_client, generator
    app.dependency_overrides.clear()


def test_assess_returns_priorities_with_categories(client):
    test_client, generator = client
    generator.responses.append(
        {
            "priority_list": [
                {"text": "Draft the proposal", "time_of_day": "Morning - High Focus"},
                {"text": "Answer emails", "time_of_day": "Whenever"},
            ],
            "reasoning": "Proposal first.",
        }
    )

    response = test_client.post(
        "/priorities/assess",
        json={"goals": "Draft proposal and answer emails"},
        headers={"X-Request-Id": "req-assess"},
    )

    assert response.status_code == 200
    payload = response.json()
    assert [item["category"] for item in payload["priorities"]] == ["morning", "unknown"]
    assert payload["reasoning"] == "Proposal first."
    assert payload["request_id"] == "req-assess"
    assert generator.calls[0]["request_id"] == "req-assess"


def test_assess_short_goals_is_422_with_field(client):
    test_client, _ = client

    response = test_client.post("/priorities/assess", json={"goals": "gym"})

    assert response.status_code == 422
    assert response.json()["detail"]["field"] == "goals"


def test_assess_generation_failure_is_502(client):
    test_client, generator = client
    generator.responses.append(GenerationFailure("The planning assistant is unavailable right now."))

    response = test_client.post("/priorities/assess", json={"goals": "Draft proposal and answer emails"})

    assert response.status_code == 502
    assert "unavailable" in response.json()["detail"]


def _priorities() -> list[dict]:
    return [
        {"id": "a", "text": "Draft proposal", "time_of_day": "Morning"},
        {"id": "b", "text": "Answer emails", "time_of_day": "Afternoon"},
        {"id": "c", "text": "Walk", "time_of_day": "Evening"},
    ]


def test_reorder_with_full_order(client):
    test_client, _ = client

    response = test_client.post("/priorities/reorder", json={"priorities": _priorities(), "ordered_ids": ["c", "a", "b"]})

    assert response.status_code == 200
    assert [item["id"] for item in response.json()["priorities"]] == ["c", "a", "b"]


def test_reorder_moving_one_item(client):
    test_client, _ = client

    response = test_client.post("/priorities/reorder", json={"priorities": _priorities(), "item_id": "a", "new_index": 2})

    assert response.status_code == 200
    items = response.json()["priorities"]
    assert [item["id"] for item in items] == ["b", "c", "a"]
    assert items[2]["text"] == "Draft proposal"


def test_reorder_rejects_partial_order(client):
    test_client, _ = client

    response = test_client.post("/priorities/reorder", json={"priorities": _priorities(), "ordered_ids": ["a", "b"]})

    assert response.status_code == 422
    assert response.json()["detail"]["field"] == "ordered_ids"
