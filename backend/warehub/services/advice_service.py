# Overview: AI restock/sell advice; context building, prompt, provider call and response parsing.

from __future__ import annotations

import json
import math
import re
from datetime import datetime
from typing import Any, Optional

import httpx

from ..models import Warehouse


ADVICE_TEMPERATURE = 0.3
ADVICE_MAX_OUTPUT_TOKENS = 2000

NO_RESPONSE = "No response from AI."

SYSTEM_PROMPT = (
    "You are an expert in warehouse and inventory management. Your task is to give short, "
    "actionable advice on what to BUY (restock) and what to SELL or REDUCE, based on the "
    "provided warehouse data and current date/season. Tie your reasoning to the numbers."
)

USER_PROMPT_TEMPLATE = """Analyze this warehouse and respond with a single JSON object only (no markdown, no other text). Use this exact structure:
{{
  "summary": "1-2 sentence overview of the situation and main recommendation",
  "recommendations": ["bullet 1", "bullet 2", "..."],
  "tables": [{{ "title": "optional table title", "headers": ["Col1", "Col2"], "rows": [["a","b"], ["c","d"]] }}],
  "chartSuggestions": [{{ "type": "bar" or "line", "title": "Chart title", "data": {{ "labels": ["A","B","C"], "series": [{{ "name": "Series name", "values": [1,2,3] }}] }} }}]
}}
You may leave "tables" and "chartSuggestions" as empty arrays [] if you do not need them.

Warehouse and analytics data (JSON):
{context}"""

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")


class AdviceError(Exception):
    """Base class for advice failures."""


class AdviceNotConfiguredError(AdviceError):
    pass


class AdviceRateLimitedError(AdviceError):
    pass


class AdviceServiceError(AdviceError):
    pass


def create_http_client(timeout: float) -> httpx.Client:
    return httpx.Client(timeout=timeout)


# ---------------------------------------------------------------------------
# Context and prompt
# ---------------------------------------------------------------------------

def build_advice_context(warehouse: Warehouse, analytics: dict, now: datetime) -> dict:
    return {
        "warehouse": {
            "id": warehouse.id,
            "name": warehouse.name,
            "address": warehouse.address,
        },
        "currentDate": now.strftime("%Y-%m-%d"),
        "season": now.month,
        "summary": analytics["summary"],
        "flowTimeSeries": analytics["flowTimeSeries"],
        "inventoryByType": analytics["inventoryByType"],
        "flowByType": analytics["flowByType"],
    }


def build_advice_prompt(context: dict) -> str:
    user_prompt = USER_PROMPT_TEMPLATE.format(context=json.dumps(context, indent=2))
    return f"{SYSTEM_PROMPT}\n\n{user_prompt}"


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------

def _extract_json_text(text: str) -> str:
    match = _FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        return text[start:end + 1]
    return text


def _to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        try:
            n = float(value.strip()) if value.strip() else 0
        except ValueError:
            return None
        return n if math.isfinite(n) else None
    return None


def _parse_tables(raw: Any) -> list[dict]:
    tables = []
    for t in raw if isinstance(raw, list) else []:
        if (
            isinstance(t, dict)
            and isinstance(t.get("title"), str)
            and isinstance(t.get("headers"), list)
            and isinstance(t.get("rows"), list)
        ):
            tables.append({
                "title": t["title"],
                "headers": [str(h) for h in t["headers"]],
                "rows": [[str(c) for c in row] if isinstance(row, list) else [] for row in t["rows"]],
            })
    return tables


def _parse_charts(raw: Any) -> list[dict]:
    charts = []
    for c in raw if isinstance(raw, list) else []:
        if not isinstance(c, dict) or c.get("type") not in ("bar", "line"):
            continue
        data = c.get("data")
        if not (
            isinstance(c.get("title"), str)
            and isinstance(data, dict)
            and isinstance(data.get("labels"), list)
            and isinstance(data.get("series"), list)
        ):
            continue

        series = []
        for s in data["series"]:
            s = s if isinstance(s, dict) else {}
            values = s.get("values")
            numbers = [_to_number(v) for v in values] if isinstance(values, list) else []
            series.append({
                "name": s["name"] if isinstance(s.get("name"), str) else "Series",
                "values": [n for n in numbers if n is not None],
            })

        charts.append({
            "type": c["type"],
            "title": c["title"],
            "data": {"labels": [str(label) for label in data["labels"]], "series": series},
        })
    return charts


def parse_advice_response(raw: Optional[str]) -> dict:
    """
    Turn model text into {summary, recommendations, tables, chartSuggestions}.

    Accepts a ```json fenced block or a JSON object embedded in prose.
    Anything unparseable becomes a summary-only answer with the raw text.
    """
    text = (raw or "").strip()
    fallback = {
        "summary": text or NO_RESPONSE,
        "recommendations": [],
        "tables": [],
        "chartSuggestions": [],
    }

    try:
        parsed = json.loads(_extract_json_text(text))
    except ValueError:
        return fallback
    if not isinstance(parsed, dict):
        return fallback

    recommendations = parsed.get("recommendations")
    return {
        "summary": parsed["summary"] if isinstance(parsed.get("summary"), str) else fallback["summary"],
        "recommendations": [r for r in recommendations if isinstance(r, str)]
        if isinstance(recommendations, list) else [],
        "tables": _parse_tables(parsed.get("tables")),
        "chartSuggestions": _parse_charts(parsed.get("chartSuggestions")),
    }


# ---------------------------------------------------------------------------
# Provider call
# ---------------------------------------------------------------------------

def _response_text(payload: Any) -> str:
    try:
        parts = payload["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        return ""
    return "".join(p.get("text", "") for p in parts if isinstance(p, dict))


def request_advice(
    context: dict,
    *,
    api_key: Optional[str],
    model: str,
    base_url: str,
    timeout: float = 30,
) -> dict:
    """
    Ask the Gemini generateContent endpoint for advice on `context`.

    Raises AdviceNotConfiguredError without a key, AdviceRateLimitedError on
    HTTP 429 and AdviceServiceError for any other provider failure.
    """
    if not api_key:
        raise AdviceNotConfiguredError("AI advice is not configured (missing GEMINI_API_KEY)")

    url = f"{base_url.rstrip('/')}/v1beta/models/{model}:generateContent"
    body = {
        "contents": [{"parts": [{"text": build_advice_prompt(context)}]}],
        "generationConfig": {
            "temperature": ADVICE_TEMPERATURE,
            "maxOutputTokens": ADVICE_MAX_OUTPUT_TOKENS,
        },
    }

    try:
        with create_http_client(timeout) as client:
            response = client.post(url, json=body, headers={"x-goog-api-key": api_key})
    except httpx.HTTPError as e:
        raise AdviceServiceError(f"AI provider request failed: {e}") from e

    if response.status_code == 429:
        raise AdviceRateLimitedError("AI rate limit exceeded. Try again later.")
    if response.status_code >= 400:
        raise AdviceServiceError(f"AI provider returned HTTP {response.status_code}")

    try:
        payload = response.json()
    except ValueError as e:
        raise AdviceServiceError("AI provider returned invalid JSON") from e

    return parse_advice_response(_response_text(payload))
