"""
Integration test configuration.

═══════════════════════════════════════════════════════════════════════════════
REQUIRED API KEYS
═══════════════════════════════════════════════════════════════════════════════

Live recognition tests call the Gemini API and are **skipped automatically**
when no key is present in the environment.

  GEMINI_API_KEY  (or GOOGLE_API_KEY)
    • Source:  https://aistudio.google.com/app/apikey
    • Used by: vision OCR of rasterized pages.
    • All tests tagged @pytest.mark.google require this key.

Set the key in .env or export it:

    export GEMINI_API_KEY="AIza..."

Running only the HTTP API tests (no key needed):
    pytest tests/integration -m "not google"

Running all integration tests:
    pytest tests/integration -m integration

Skipping slow tests:
    pytest tests/integration -m "integration and not slow"
═══════════════════════════════════════════════════════════════════════════════
"""

from __future__ import annotations

import os

import pytest


# ---------------------------------------------------------------------------
# Skip helpers — evaluated once per session
# ---------------------------------------------------------------------------

def _gemini_key() -> str:
    # Prefer env vars; fall back to loading .env if not already set
    key = os.environ.get("GEMINI_API_KEY") or os.environ.get("GOOGLE_API_KEY")
    if key:
        return key
    from dotenv import load_dotenv
    load_dotenv()
    return os.environ.get("GEMINI_API_KEY") or os.environ.get("GOOGLE_API_KEY") or ""


# ---------------------------------------------------------------------------
# Pytest fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def gemini_key() -> str:
    """Returns the Gemini API key or skips the test."""
    key = _gemini_key()
    if not key:
        pytest.skip("GEMINI_API_KEY not set — skipping Gemini integration test")
    return key


# ---------------------------------------------------------------------------
# Auto-skip markers applied at collection time
# ---------------------------------------------------------------------------

def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    """Auto-skip @google tests if no key is configured."""
    if _gemini_key():
        return
    for item in items:
        if item.get_closest_marker("google"):
            item.add_marker(pytest.mark.skip(reason="GEMINI_API_KEY not set"), append=False)
