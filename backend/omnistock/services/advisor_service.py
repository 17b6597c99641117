# Overview: Pricing advice from the Gemini generateContent REST endpoint.

"""
Pricing advisor.

Sends a short product snapshot (name, category, cost, margin) to Gemini and
returns the model's text. The advisor never touches the database and never
raises: an empty answer becomes ADVISOR_EMPTY_MESSAGE and any failure
(no API key, HTTP error, timeout, unexpected body) becomes
ADVISOR_ERROR_MESSAGE with a logged warning. No retries.
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx
from flask import current_app

from ..constants import ADVISOR_EMPTY_MESSAGE, ADVISOR_ERROR_MESSAGE


class AdvisorUnavailableError(Exception):
    """Internal: the advisor could not produce an answer."""


@dataclass(frozen=True)
class PricingSnapshot:
    name: str
    category: str
    cost_price_cents: int
    margin_bps: int

    @classmethod
    def from_payload(cls, payload: dict) -> "PricingSnapshot":
        return cls(
            name=str(payload.get("name") or ""),
            category=str(payload.get("category") or ""),
            cost_price_cents=int(payload.get("cost_price_cents") or 0),
            margin_bps=int(payload.get("margin_bps") or 0),
        )


def build_prompt(snapshot: PricingSnapshot) -> str:
    return (
        "Analyze this product for a strategic price suggestion:\n"
        f"Name: {snapshot.name}\n"
        f"Category: {snapshot.category}\n"
        f"Cost price: {snapshot.cost_price_cents / 100:.2f}\n"
        f"Current margin: {snapshot.margin_bps / 100:g}%\n\n"
        "Give a short justification (at most 2 sentences) for keeping or changing "
        "the selling price based on competitiveness and a healthy margin."
    )


def _extract_text(body: dict) -> str:
    try:
        parts = body["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        if isinstance(body, dict) and body.get("candidates") == []:
            return ""
        raise AdvisorUnavailableError("Unexpected response body")

    if not isinstance(parts, list):
        raise AdvisorUnavailableError("Unexpected response body")
    texts = [part.get("text") for part in parts if isinstance(part, dict) and "text" in part]
    if not all(isinstance(text, str) for text in texts):
        raise AdvisorUnavailableError("Unexpected response body")
    return "".join(texts).strip()


def _request_advice(snapshot: PricingSnapshot, client: httpx.Client) -> str:
    config = current_app.config
    api_key = config.get("GEMINI_API_KEY")
    if not api_key:
        raise AdvisorUnavailableError("GEMINI_API_KEY is not configured")

    url = f"{config['GEMINI_API_URL'].rstrip('/')}/models/{config['GEMINI_MODEL']}:generateContent"
    response = client.post(
        url,
        params={"key": api_key},
        json={"contents": [{"parts": [{"text": build_prompt(snapshot)}]}]},
        timeout=config["ADVISOR_TIMEOUT_SECONDS"],
    )
    response.raise_for_status()
    return _extract_text(response.json())


def get_pricing_advice(snapshot: PricingSnapshot, client: httpx.Client | None = None) -> str:
    """Return advice text, or one of the fixed fallback messages."""
    owns_client = client is None
    if owns_client:
        client = httpx.Client()

    try:
        text = _request_advice(snapshot, client)
    except (httpx.HTTPError, ValueError, AdvisorUnavailableError) as exc:
        current_app.logger.warning("Pricing advisor failed: %s", exc)
        return ADVISOR_ERROR_MESSAGE
    finally:
        if owns_client:
            client.close()

    return text or ADVISOR_EMPTY_MESSAGE
