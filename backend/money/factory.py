"""Application factory wiring Flask extensions and blueprints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from flask import Flask

from money.core.config import BaseConfig, get_config
from money.core.logger import configure_logging, init_app as init_logging

if TYPE_CHECKING:
    from money.container import Container


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
    container: Container | None = None,
) -> Flask:
    """Build and configure the Flask application.

    ``container`` replaces the dependencies built from configuration; tests
    pass one wired with in-memory adapters.

    :raises money.container.BootstrapError: When dependencies cannot be built.
    """

    app = Flask(__name__, instance_relative_config=instance_relative_config)

    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    # Proxy headers from the API gateway or load balancer
    from money.core import proxy

    proxy.init_app(app)

    from money.core import extensions

    extensions.init_app(app)

    from money import container as app_container

    app_container.init_app(app, container)

    init_logging(app)

    from money.core import cors

    cors.init_app(app)

    from money.api import init_app as init_api

    init_api(app)

    from money.core import errors

    errors.init_app(app)

    from money import cli as app_cli

    app_cli.init_app(app)

    return app
