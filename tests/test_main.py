"""
Tests for the process entrypoint.
"""

import pytest
from unittest.mock import AsyncMock, patch

import main
from core.exceptions import FatalSourceError
from models.state import RunOutcome, RunReport


@pytest.fixture
def env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)  # keep a developer .env out of the way
    monkeypatch.setenv("DISCORD_WEBHOOK_URL", "https://discord.com/api/webhooks/1/x")
    monkeypatch.setenv("AO3_SEARCH_URL", "https://archiveofourown.org/works")
    monkeypatch.setenv("STATE_FILE", str(tmp_path / "state.json"))


class TestMain:
    """Test suite for main()"""

    def test_success_exits_zero(self, env):
        report = RunReport(outcome=RunOutcome.NO_CHANGES, watermark="1")
        with patch.object(main.ScraperService, "run", AsyncMock(return_value=report)):
            assert main.main([]) == 0

    def test_fatal_error_exits_nonzero(self, env):
        with patch.object(
            main.ScraperService, "run", AsyncMock(side_effect=FatalSourceError("Request failed: 404"))
        ):
            assert main.main([]) == 1

    def test_missing_config_exits_nonzero(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("DISCORD_WEBHOOK_URL", raising=False)
        monkeypatch.delenv("AO3_SEARCH_URL", raising=False)

        assert main.main([]) == 1

    def test_invalid_config_exits_nonzero(self, env, monkeypatch):
        monkeypatch.setenv("FETCH_MAX_ATTEMPTS", "0")

        assert main.main([]) == 1

    def test_flags_reach_service(self, env):
        report = RunReport(outcome=RunOutcome.INITIALIZED, watermark="1")
        with patch.object(main, "ScraperService") as service_cls:
            service_cls.return_value.run = AsyncMock(return_value=report)

            assert main.main(["--init", "--dry-run"]) == 0

        kwargs = service_cls.call_args.kwargs
        assert kwargs["init_mode"] is True
        assert kwargs["dry_run"] is True
