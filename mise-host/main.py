"""
Mise Host — Entry Point

Opens the PRD Generator panel and serves it over the loopback HTTP API in a
single asyncio event loop.

Usage:
    python main.py        (or the ``mise-host`` console script)

Optional environment variables:
    MISE_WORKSPACE_ROOTS   Workspace folders, os.pathsep separated (default: cwd).
    MISE_HTTP_HOST         Bind address (default: 127.0.0.1).
    MISE_HTTP_PORT         Port (default: 8770).
    MISE_LOG_LEVEL         DEBUG | INFO | WARNING | ERROR (default: INFO)
    MISE_OPENAI_MODEL      Chat model (default: gpt-4o).
    MISE_SECRETS_DB_PATH   SQLite file holding the API key.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import host_config as cfg
from ai.service import openai_service_factory
from api import start_http_api
from host.interfaces import HostContext
from host.local import LocalFileSystem
from host.secrets import open_secret_storage
from host.webview import WebWindow
from panel.manager import PanelManager
from webview.handlers import build_router


def _configure_logging() -> None:
    level = getattr(logging, cfg.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


def _print_banner(config: cfg.HostConfig | None) -> None:
    print(
        r"""
  __  __ _
 |  \/  (_)___  ___
 | |\/| | / __|/ _ \
 | |  | | \__ \  __/
 |_|  |_|_|___/\___|   PRD Generator Host v1.0.0

  Panel     : http://{host}:{port}/
  Workspace : {workspace}
  Output    : {output}
  Model     : {model}
""".format(
            host=cfg.HTTP_HOST,
            port=cfg.HTTP_PORT,
            workspace=config.workspace_root if config else "NONE",
            output=config.paths.root if config else "-",
            model=config.openai_model if config else cfg.OPENAI_MODEL,
        )
    )


async def _main() -> None:
    _configure_logging()
    logger = logging.getLogger("mise")

    roots = [Path(p).resolve() for p in cfg.WORKSPACE_ROOTS if Path(p).is_dir()]
    if not roots:
        logger.warning("No workspace folder found; generation commands will be unavailable.")
    config = cfg.HostConfig.load(roots[0]) if roots else None
    _print_banner(config)

    if config is not None:
        for problem in cfg.validate_config(config):
            logger.error("Configuration problem: %s", problem)

    secrets = await open_secret_storage(cfg.SECRETS_DB_PATH)
    host = HostContext(
        secrets=secrets,
        fs=LocalFileSystem(),
        window=WebWindow(),
        config=config,
        ai_factory=openai_service_factory,
        workspace_roots=roots,
    )
    manager = PanelManager(host, build_router())
    manager.create_and_show_panel()
    http_runner = await start_http_api(manager)

    logger.info("Host ready. Open http://%s:%d/ in a browser.", cfg.HTTP_HOST, cfg.HTTP_PORT)

    try:
        # Run forever.
        await asyncio.Future()
    except asyncio.CancelledError:
        pass
    finally:
        manager.close()
        await http_runner.cleanup()
        await secrets.close()
        logger.info("Host shut down.")


def run() -> None:
    try:
        asyncio.run(_main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
