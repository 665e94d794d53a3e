"""Tallybook: a personal ledger whose balances always match their transactions."""

from __future__ import annotations

from importlib import import_module
from typing import Iterable, Optional

from flask import Flask

from .config import BaseConfig, DevConfig, TestConfig
from .context import EXTENSION_KEY, AppContext, create_app_context
from .logging_config import get_logger, setup_logging

_CONFIG_MAP = {
    "default": BaseConfig,
    "development": DevConfig,
    "testing": TestConfig,
}


def _blueprint_paths() -> Iterable[str]:
    return ("tallybook.blueprints.api",)


def create_app(config_name: Optional[str] = None, config: Optional[BaseConfig] = None) -> Flask:
    """Application factory.

    Either pass a ready ``config`` object or a ``config_name`` from
    ``default``, ``development`` or ``testing``.
    """

    if config is None:
        config_cls = _CONFIG_MAP.get(config_name or "default")
        if config_cls is None:
            raise ValueError(f"Unknown config name: {config_name}")
        config = config_cls()

    setup_logging(config)
    logger = get_logger(__name__)

    app = Flask(__name__)
    app.config.update(
        SECRET_KEY=config.SECRET_KEY,
        DEBUG=config.DEBUG,
        TESTING=config.TESTING,
        TALLYBOOK_CONFIG=config,
    )

    app.extensions[EXTENSION_KEY] = create_app_context(config)

    for dotted_path in _blueprint_paths():
        module = import_module(dotted_path)
        app.register_blueprint(module.bp)

    from . import cli

    cli.init_app(app)

    logger.info("Application created", extra={"database_url": config.DATABASE_URL})
    return app


__all__ = ["AppContext", "BaseConfig", "DevConfig", "TestConfig", "create_app", "create_app_context"]
