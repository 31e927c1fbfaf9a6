import sys
from pathlib import Path

import pytest


# Ensure `backend/` is on sys.path so tests can import local modules
# like `geo.*`, `render.*`, and `main`.
BACKEND_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_ROOT))


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    from settings.registry import clear_settings_cache

    monkeypatch.delenv("REPORTMAP_SETTINGS_PATH", raising=False)
    monkeypatch.delenv("REPORTMAP_ENGINE", raising=False)
    monkeypatch.delenv("REPORTMAP_MARKERS_PATH", raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()
