import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]

if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest  # noqa: E402
from beanie import init_beanie  # noqa: E402
from mongomock_motor import AsyncMongoMockClient  # noqa: E402
from network_blocker import install_network_blocker  # noqa: E402

from core.http.circuit_breaker import nominatim_breaker  # noqa: E402
from db.models import ALL_DOCUMENT_MODELS  # noqa: E402


@pytest.fixture(autouse=True)
def _default_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NOMINATIM_BASE_URL", "https://nominatim.test.invalid")
    monkeypatch.setenv("DEFAULT_TIMEZONE", "UTC")
    install_network_blocker(monkeypatch)
    nominatim_breaker.reset()


@pytest.fixture
async def beanie_db():
    client = AsyncMongoMockClient()
    database = client["test_db"]
    await init_beanie(database=database, document_models=ALL_DOCUMENT_MODELS)
    return database
