import pytest

from core.http.session import cleanup_session, get_session


@pytest.mark.asyncio
async def test_session_is_shared_until_cleanup(monkeypatch) -> None:
    monkeypatch.setenv("NOMINATIM_USER_AGENT", "FieldTrack-Test/0.1")

    first = await get_session()
    second = await get_session()

    assert first is second
    assert first.headers["User-Agent"] == "FieldTrack-Test/0.1"

    await cleanup_session()
    assert first.closed

    replacement = await get_session()
    assert replacement is not first

    await cleanup_session()
