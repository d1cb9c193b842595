import sys
from pathlib import Path

import pytest

# Ensure `import sourcecart` works when running `pytest` without needing PYTHONPATH hacks.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from tests.helpers._fakes import FakeClock  # noqa: E402


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(1_700_000_000.0)


@pytest.fixture(autouse=True)
def _isolate_sourcecart_env(monkeypatch) -> None:
    for name in (
        "SOURCECART_API_BASE_URL",
        "SOURCECART_WISHLIST_TTL",
        "SOURCECART_RETRY_BACKOFF",
        "SOURCECART_REQUEST_TIMEOUT",
        "SOURCECART_LANG_CURRENCY",
        "SOURCECART_STORAGE_PATH",
    ):
        monkeypatch.delenv(name, raising=False)
