"""
Thin Gemini REST client shared by the AI tools.

Every caller treats a None reply as "model unavailable" and falls back to
canned content, so this module never raises for network or payload problems.

Requires:
  * env GEMINI_API_KEY (optional; without it the tools run on fallbacks)
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

# --------- Config ---------
DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"
TIMEOUT_SEC = 30


def model_name() -> str:
    return os.getenv("GEMINI_MODEL", DEFAULT_MODEL)


def _endpoint(api_key: str) -> str:
    base_url = os.getenv("GEMINI_BASE_URL", DEFAULT_BASE_URL).rstrip("/")
    return f"{base_url}/{model_name()}:generateContent?key={api_key}"


def is_configured() -> bool:
    return bool(os.getenv("GEMINI_API_KEY"))


def _extract_text(data: Dict[str, Any]) -> Optional[str]:
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return text.strip() if isinstance(text, str) else None


def generate_text(prompt: str, temperature: Optional[float] = None) -> Optional[str]:
    """Send a single-turn prompt and return the reply text, or None."""
    api_key = os.getenv("GEMINI_API_KEY")
    if not api_key:
        logger.info("GEMINI_API_KEY not set; skipping model call")
        return None

    payload: Dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}
    if temperature is not None:
        payload["generationConfig"] = {"temperature": temperature}

    try:
        r = requests.post(_endpoint(api_key), json=payload, timeout=TIMEOUT_SEC)
        r.raise_for_status()
        data = r.json()
    except requests.RequestException as exc:
        logger.warning("Gemini request failed: %s", exc.__class__.__name__)
        return None
    except ValueError:
        logger.warning("Gemini returned a non-JSON body")
        return None

    text = _extract_text(data)
    if not text:
        logger.warning("Gemini response had no text candidate")
    return text


def sanitize_llm_markdown(text: str) -> str:
    """Remove a leading 'Here are...' style preamble line."""
    if not text: return ""
    lines = text.splitlines()
    if lines:
        first = lines[0].strip().lower()
        if first.startswith("here") and first.endswith(":") and len(first) < 120:
            lines = lines[1:]
    return "\n".join(lines).strip()
