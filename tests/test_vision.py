import pytest
import requests

from assetlib.errors import VisionError
from assetlib.services.vision import (
    NOT_CONFIGURED,
    VisionClient,
    analyze_image,
    extract_json,
)

REPLY = '{"category": "logo", "tags": ["brand", "blue", "mark"], "colors": ["#112233", "#ffffff"], "description": "A logo."}'


class FakeResponse:
    def __init__(self, payload, status=200):
        self._payload = payload
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        return self._payload


def _reply(content):
    return {"choices": [{"message": {"content": content}}]}


@pytest.mark.parametrize(
    "content",
    [REPLY, f"```json\n{REPLY}\n```", f"```\n{REPLY}\n```", f"Sure! ```json{REPLY}``` hope it helps"],
)
def test_extract_json_tolerates_fences(content):
    assert extract_json(content)["category"] == "logo"


def test_extract_json_rejects_prose():
    with pytest.raises(VisionError):
        extract_json("I cannot analyze this image.")


def test_relay_posts_fixed_prompt(monkeypatch):
    client = VisionClient("sk-test", base_url="https://vision.example/v1")
    sent = {}

    def fake_post(url, json=None, headers=None, timeout=None):
        sent.update(url=url, json=json, headers=headers, timeout=timeout)
        return FakeResponse(_reply(f"```json\n{REPLY}\n```"))

    monkeypatch.setattr(client.session, "post", fake_post)
    body, status = analyze_image(client, "data:image/png;base64,AAAA")

    assert status == 200
    assert body == {
        "category": "logo",
        "tags": ["brand", "blue", "mark"],
        "colors": ["#112233", "#ffffff"],
        "description": "A logo.",
    }
    assert sent["url"] == "https://vision.example/v1/chat/completions"
    assert sent["json"]["model"] == "gpt-4o-mini"
    assert sent["json"]["max_tokens"] == 500
    assert sent["json"]["temperature"] == 0.3
    image_part = sent["json"]["messages"][0]["content"][1]
    assert image_part == {"type": "image_url", "image_url": {"url": "data:image/png;base64,AAAA"}}
    assert sent["headers"]["Authorization"] == "Bearer sk-test"


def test_not_configured_is_structured_error():
    body, status = analyze_image(VisionClient(""), "data:image/png;base64,AAAA")
    assert status == 500
    assert body == {"error": NOT_CONFIGURED}


def test_missing_image_data():
    body, status = analyze_image(VisionClient("sk-test"), None)
    assert (status, body) == (400, {"error": "No image data provided"})


def test_upstream_failure_has_details(monkeypatch):
    client = VisionClient("sk-test")
    monkeypatch.setattr(client.session, "post", lambda *a, **k: FakeResponse({}, status=502))
    body, status = analyze_image(client, "data:image/png;base64,AAAA")
    assert status == 500
    assert body["error"] == "Failed to analyze image"
    assert "502" in body["details"]


def test_malformed_reply_is_structured(monkeypatch):
    client = VisionClient("sk-test")
    monkeypatch.setattr(client.session, "post", lambda *a, **k: FakeResponse(_reply("no json here")))
    body, status = analyze_image(client, "data:image/png;base64,AAAA")
    assert status == 500
    assert body["error"] == "Failed to analyze image"


def test_route_relays_through_app_client(client, app, monkeypatch):
    vision = app.extensions["assetlib"]["vision"]
    monkeypatch.setattr(vision, "api_key", "sk-test")
    monkeypatch.setattr(vision.session, "post", lambda *a, **k: FakeResponse(_reply(REPLY)))
    res = client.post("/api/analyze-image", json={"imageData": "data:image/png;base64,AAAA"})
    assert res.status_code == 200
    assert res.get_json()["category"] == "logo"
    assert res.headers.get("Access-Control-Allow-Origin") == "*"


def test_route_without_key(client):
    res = client.post("/api/analyze-image", json={"imageData": "data:image/png;base64,AAAA"})
    assert res.status_code == 500
    assert res.get_json() == {"error": NOT_CONFIGURED}
