"""Command line entry point for running MAML Online.

Why:
    Production runs the app behind TLS and, optionally, a plain-HTTP listener
    that bounces visitors to HTTPS. Both servers are started from one command;
    the redirector runs in a daemon thread with its own uvicorn server.
"""
from __future__ import annotations

import logging
import threading

import click
import uvicorn

from backend.web.config import load_settings
from backend.web.http_to_https import RedirectConfig

logger = logging.getLogger("mamlonline.tools")


def _start_redirect_thread(config: RedirectConfig, host: str) -> threading.Thread:
    server = config.server(host)
    thread = threading.Thread(target=server.run, name="mamlonline-redirect", daemon=True)
    thread.start()
    logger.info("HTTPS redirect started on http://%s:%d", host, config.http_port)
    return thread


_DEFAULTS = load_settings()


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--host", default=_DEFAULTS.host, show_default=True, help="Bind address for the app and redirector.")
@click.option("--port", type=int, default=_DEFAULTS.port, show_default=True, help="Port for the application.")
@click.option("--redirect/--no-redirect", default=_DEFAULTS.redirect_enabled, show_default=True, help="Run the HTTP→HTTPS redirect listener.")
@click.option("--http-port", type=int, default=_DEFAULTS.http_port, show_default=True, help="Port of the redirect listener.")
@click.option("--https-port", type=int, default=_DEFAULTS.https_port, show_default=True, help="Public HTTPS port used in redirects.")
@click.option("--hsts/--no-hsts", default=_DEFAULTS.hsts, show_default=True, help="Send Strict-Transport-Security on redirects.")
@click.option("--log-level", default=_DEFAULTS.log_level, show_default=True, help="Python logging level.")
def main(host: str, port: int, redirect: bool, http_port: int, https_port: int, hsts: bool, log_level: str) -> None:
    logging.basicConfig(level=log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    if redirect:
        if http_port == port:
            raise click.BadParameter("must differ from --port", param_hint="--http-port")
        _start_redirect_thread(RedirectConfig(http_port=http_port, https_port=https_port, hsts=hsts), host)
    uvicorn.run("backend.web.main:app", host=host, port=port, log_level=log_level.lower())


if __name__ == "__main__":  # pragma: no cover - manual entry
    main()
