"""
Pytest configuration for backend tests.

Why: Force AnyIO to use the asyncio backend and make the `backend` namespace
importable from a plain checkout (no editable install required).
"""
import os
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

# Tests never read a developer's .env and always run with dev defaults.
os.environ["MAML_ENABLE_DOTENV"] = "false"
os.environ.pop("MAML_ENV", None)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def store():
    from backend.identity_access.stores import SessionStore

    return SessionStore()


@pytest.fixture
def app(store):
    """Fresh app bound to a fresh store so tests never share identities."""
    from backend.web import main

    return main.create_app(store=store)
