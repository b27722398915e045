"""Tests for livepush.call_logging decorators and file logging."""

from __future__ import annotations

import pytest

from livepush import call_logging
from livepush.call_logging import log_service_call, log_upstream_call
from livepush.fetch import Changed, FetchFailed


class _FakeClient:
    """Minimal class to exercise the logging decorators."""

    @log_upstream_call
    async def fetch(self, kind: str, comp: int | None = None) -> Changed[list[str]]:
        return Changed(token="h1", payload=["H21"])

    @log_upstream_call
    async def fetch_failed(self, kind: str) -> FetchFailed:
        return FetchFailed(reason="HTTP 503")

    @log_upstream_call
    async def fetch_raising(self, kind: str) -> None:
        raise ValueError("bad kind")

    @log_service_call
    async def sweep(self, targets: list[str]) -> dict[str, int]:
        return {"changed": len(targets)}

    @log_service_call
    async def sweep_failing(self) -> None:
        raise RuntimeError("service error")


@pytest.fixture
def fake_client():
    return _FakeClient()


def _read(log_dir) -> str:
    return (log_dir / "calls.log").read_text(encoding="utf-8")


class TestLogUpstreamCall:
    @pytest.mark.asyncio
    async def test_returns_result(self, fake_client) -> None:
        result = await fake_client.fetch("getclasses", comp=10278)
        assert result == Changed(token="h1", payload=["H21"])

    @pytest.mark.asyncio
    async def test_logs_call_and_status(self, fake_client, _call_log_in_tmp) -> None:
        await fake_client.fetch("getclasses", comp=10278)
        content = _read(_call_log_in_tmp)
        assert "CALL: _FakeClient.fetch('getclasses', comp=10278)" in content
        assert "OK: _FakeClient.fetch('getclasses', comp=10278) -> changed" in content

    @pytest.mark.asyncio
    async def test_fetch_failed_is_logged_as_ok_call(self, fake_client, _call_log_in_tmp) -> None:
        await fake_client.fetch_failed("getclassresults")
        assert "-> error" in _read(_call_log_in_tmp)

    @pytest.mark.asyncio
    async def test_exception_logged_and_reraised(self, fake_client, _call_log_in_tmp) -> None:
        with pytest.raises(ValueError, match="bad kind"):
            await fake_client.fetch_raising("getsplits")
        content = _read(_call_log_in_tmp)
        assert "FAIL: _FakeClient.fetch_raising('getsplits') -> ValueError: bad kind" in content

    def test_preserves_metadata(self) -> None:
        assert _FakeClient.fetch.__name__ == "fetch"


class TestLogServiceCall:
    @pytest.mark.asyncio
    async def test_logs_service_call(self, fake_client, _call_log_in_tmp) -> None:
        result = await fake_client.sweep(["H21", "D21"])
        assert result == {"changed": 2}
        content = _read(_call_log_in_tmp)
        assert "SERVICE CALL: _FakeClient.sweep(['H21', 'D21'])" in content
        assert "SERVICE OK: _FakeClient.sweep -> dict (" in content
        assert "SERVICE OK: _FakeClient.sweep([" not in content

    @pytest.mark.asyncio
    async def test_logs_service_failure(self, fake_client, _call_log_in_tmp) -> None:
        with pytest.raises(RuntimeError):
            await fake_client.sweep_failing()
        assert "SERVICE FAIL: _FakeClient.sweep_failing -> RuntimeError: service error" in _read(
            _call_log_in_tmp
        )


class TestLogFile:
    @pytest.mark.asyncio
    async def test_log_dir_created(self, fake_client, _call_log_in_tmp) -> None:
        await fake_client.fetch("getcompetitions")
        assert (_call_log_in_tmp / "calls.log").exists()

    @pytest.mark.asyncio
    async def test_entries_are_pipe_separated(self, fake_client, _call_log_in_tmp) -> None:
        await fake_client.fetch("getcompetitions")
        first = _read(_call_log_in_tmp).splitlines()[0]
        assert first.count(" | ") == 2
        assert " | INFO | " in first

    @pytest.mark.asyncio
    async def test_configure_reopens_in_new_dir(self, fake_client, _call_log_in_tmp) -> None:
        await fake_client.fetch("getcompetitions")
        moved = _call_log_in_tmp / "moved"
        call_logging.configure(str(moved))

        await fake_client.fetch("getclasses")

        assert "getclasses" not in _read(_call_log_in_tmp)
        assert "CALL: _FakeClient.fetch('getclasses')" in _read(moved)
