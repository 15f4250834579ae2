"""Relay to an OpenAI-compatible vision model that tags uploaded images."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

import requests

from assetlib.errors import ValidationError, VisionError
from assetlib.metrics import vision_requests_total

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"
MAX_TOKENS = 500
TEMPERATURE = 0.3

NOT_CONFIGURED = "OpenAI API key not configured. Please add OPENAI_API_KEY to .env file"
NO_IMAGE = "No image data provided"
FAILED = "Failed to analyze image"

PROMPT = """Analyze this image and provide:
1. Category (choose ONE): logo, icon, photo, illustration, screenshot, diagram, other
2. Tags (3-8 relevant keywords)
3. Colors (3-5 dominant colors)
4. Description (brief, 1 sentence)

Respond ONLY with valid JSON in this exact format:
{
  "category": "logo",
  "tags": ["tag1", "tag2", "tag3"],
  "colors": ["#hexcode1", "#hexcode2"],
  "description": "Brief description"
}"""

_FENCES = (
    re.compile(r"```json\n?([\s\S]*?)\n?```"),
    re.compile(r"```\n?([\s\S]*?)\n?```"),
)


def extract_json(content: str) -> dict[str, Any]:
    """Parse the model reply, with or without a markdown code fence."""
    candidates = []
    for pattern in _FENCES:
        match = pattern.search(content or "")
        if match:
            candidates.append(match.group(1))
    candidates.append(content or "")
    for text in candidates:
        try:
            parsed = json.loads(text)
        except ValueError:
            continue
        if isinstance(parsed, dict):
            return parsed
    raise VisionError(FAILED, details="Model reply is not valid JSON")


def normalize_analysis(raw: dict[str, Any]) -> dict[str, Any]:
    def _strings(value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [str(v) for v in value if v is not None]

    return {
        "category": str(raw.get("category") or "other"),
        "tags": _strings(raw.get("tags")),
        "colors": _strings(raw.get("colors")),
        "description": str(raw.get("description") or ""),
    }


class VisionClient:
    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str = "https://api.openai.com/v1",
        model: str = DEFAULT_MODEL,
        timeout: float = 60,
        session: requests.Session | None = None,
    ) -> None:
        self.api_key = api_key or ""
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config) -> "VisionClient":
        return cls(
            config.get("OPENAI_API_KEY"),
            base_url=config.get("OPENAI_BASE_URL") or "https://api.openai.com/v1",
            model=config.get("VISION_MODEL") or DEFAULT_MODEL,
            timeout=float(config.get("VISION_TIMEOUT") or 60),
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _payload(self, image_data: str) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": PROMPT},
                        {"type": "image_url", "image_url": {"url": image_data}},
                    ],
                }
            ],
            "max_tokens": MAX_TOKENS,
            "temperature": TEMPERATURE,
        }

    def analyze(self, image_data: str | None) -> dict[str, Any]:
        """Devuelve ``{category, tags, colors, description}`` o lanza error."""
        if not self.configured:
            raise VisionError(NOT_CONFIGURED)
        if not image_data:
            raise ValidationError(NO_IMAGE)
        try:
            resp = self.session.post(
                f"{self.base_url}/chat/completions",
                json=self._payload(image_data),
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            content = resp.json()["choices"][0]["message"]["content"]
        except requests.RequestException as exc:
            raise VisionError(FAILED, details=str(exc)) from exc
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise VisionError(FAILED, details=f"Unexpected reply: {exc}") from exc
        return normalize_analysis(extract_json(content))


def analyze_image(client: VisionClient, image_data: str | None) -> tuple[dict[str, Any], int]:
    """Run the relay and always return ``(body, status)``; nothing is raised."""
    try:
        analysis = client.analyze(image_data)
    except ValidationError as exc:
        vision_requests_total.labels("rejected").inc()
        return {"error": exc.message}, 400
    except VisionError as exc:
        vision_requests_total.labels("error").inc()
        logger.error("Error analyzing image: %s", exc.details or exc.message)
        body = {"error": exc.message}
        if exc.details:
            body["details"] = exc.details
        return body, 500
    vision_requests_total.labels("ok").inc()
    logger.info("Analysis complete: %s", analysis["category"])
    return analysis, 200
