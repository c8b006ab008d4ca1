from __future__ import annotations

import importlib

import pytest
from click.testing import CliRunner


@pytest.fixture
def serve_mod(monkeypatch: pytest.MonkeyPatch):
    mod = importlib.import_module("backend.tools.serve")
    calls: dict = {"run": [], "redirect": []}

    def fake_run(app, **kwargs):
        calls["run"].append((app, kwargs))

    def fake_redirect(config, host):
        calls["redirect"].append((config, host))

    monkeypatch.setattr(mod.uvicorn, "run", fake_run)
    monkeypatch.setattr(mod, "_start_redirect_thread", fake_redirect)
    mod.calls = calls
    return mod


def test_serve_runs_app_without_redirect(serve_mod):
    result = CliRunner().invoke(serve_mod.main, ["--host", "127.0.0.1", "--port", "9000", "--no-redirect"])
    assert result.exit_code == 0, result.output
    assert serve_mod.calls["redirect"] == []
    app, kwargs = serve_mod.calls["run"][0]
    assert app == "backend.web.main:app"
    assert kwargs["host"] == "127.0.0.1"
    assert kwargs["port"] == 9000


def test_serve_starts_redirect_listener(serve_mod):
    result = CliRunner().invoke(
        serve_mod.main,
        ["--port", "8443", "--redirect", "--http-port", "8080", "--https-port", "8443", "--hsts"],
    )
    assert result.exit_code == 0, result.output
    config, host = serve_mod.calls["redirect"][0]
    assert (config.http_port, config.https_port, config.hsts) == (8080, 8443, True)
    assert host == "0.0.0.0"


def test_redirect_port_must_differ_from_app_port(serve_mod):
    result = CliRunner().invoke(serve_mod.main, ["--port", "8080", "--redirect", "--http-port", "8080"])
    assert result.exit_code != 0
    assert "--http-port" in result.output
    assert serve_mod.calls["run"] == []
