"""Pytest configuration and fixtures for integration tests.

Integration tests talk to the real TheMealDB API and, for the HTTP tests,
to a running instance of app.py. Each test skips itself when the service it
needs is unreachable, so the suite is safe to run offline.
"""

import os
from pathlib import Path

import httpx
import pytest
from dotenv import load_dotenv


def pytest_configure(config):
    """Load .env before test collection so Config sees the same settings as the app."""
    env_path = Path(__file__).parent.parent.parent / ".env"
    load_dotenv(env_path)

    print("\n" + "=" * 70)
    print(f"Environment loaded from: {env_path}")
    print(f"GEMINI_API_KEY configured: {'yes' if os.getenv('GEMINI_API_KEY') else 'no (expansion/translation passthrough)'}")
    print("=" * 70 + "\n")


@pytest.fixture(scope="session")
def mealdb_reachable():
    """Skip when TheMealDB cannot be reached from this machine."""
    from whattoeat.utils.config import config

    try:
        response = httpx.get(f"{config.MEALDB_BASE_URL}/categories.php", timeout=10)
    except httpx.HTTPError as e:
        pytest.skip(f"TheMealDB not reachable: {e}")
    if response.status_code != 200:
        pytest.skip(f"TheMealDB returned HTTP {response.status_code}")


@pytest.fixture(scope="session")
def gemini_key():
    """Skip tests that need a real Gemini key."""
    key = os.getenv("GEMINI_API_KEY")
    if not key:
        pytest.skip("GEMINI_API_KEY not set")
    return key
