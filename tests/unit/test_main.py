"""Unit tests for the server entry point."""

from unittest.mock import patch

import pytest
import pytest_check as check
from fastapi import FastAPI

from parseai.main import build_app


class TestBuildApp:
    """Tests for choosing what the server exposes."""

    def test_app_mode_mounts_ui(self) -> None:
        with patch("parseai.main.mount_ui") as mount_ui:
            app = build_app("app")

        check.is_instance(app, FastAPI)
        mount_ui.assert_called_once_with(app)

    def test_api_mode_serves_routes_only(self) -> None:
        with patch("parseai.main.mount_ui") as mount_ui:
            app = build_app("api")

        paths = {route.path for route in app.routes}
        check.is_in("/ai/answer", paths)
        check.is_in("/sessions", paths)
        mount_ui.assert_not_called()

    def test_unknown_mode_rejected(self) -> None:
        with pytest.raises(ValueError, match="RUN_MODE"):
            build_app("separate")


class TestMain:
    def test_listens_on_configured_port(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RUN_MODE", "api")
        monkeypatch.setenv("HOST", "127.0.0.1")
        monkeypatch.setenv("PORT", "9123")

        from parseai import main as main_module

        with patch("uvicorn.run") as run:
            main_module.main()

        check.equal(run.call_args.kwargs["host"], "127.0.0.1")
        check.equal(run.call_args.kwargs["port"], 9123)
        check.is_instance(run.call_args.args[0], FastAPI)
