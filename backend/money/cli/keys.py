"""Flask CLI commands for signing key management."""

from __future__ import annotations

import json
import logging

import click
from flask import current_app
from flask.cli import with_appcontext

from money.container import get_container
from money.services.keys import generate_key_material

LOGGER = logging.getLogger(__name__)


@click.group("keys")
def keys_cli() -> None:
    """Signing key commands."""


@keys_cli.command("generate")
@click.option("--bits", default=2048, show_default=True, type=click.IntRange(min=2048))
@click.option(
    "--publish",
    is_flag=True,
    help="Write the keypair and kid to the configured secret store.",
)
@with_appcontext
def generate(bits: int, publish: bool) -> None:
    """Create a new RSA keypair and key id.

    Without ``--publish`` the material is printed as JSON so it can be
    stored by other means. With it, the three secrets named by
    ``TOKEN_PRIVATE_SECRET``, ``TOKEN_PUBLIC_SECRET`` and ``KID_SECRET`` are
    overwritten; tokens signed with the previous key stop verifying.
    """
    private_pem, public_pem, kid = generate_key_material(bits)
    config = current_app.config

    if not publish:
        click.echo(json.dumps({"kid": kid, "private_key": private_pem, "public_key": public_pem}))
        return

    secrets = get_container().secrets
    put = getattr(secrets, "put_secret", None)
    if put is None:
        raise click.UsageError("The configured secret store is read-only.")
    put(config["TOKEN_PRIVATE_SECRET"], private_pem)
    put(config["TOKEN_PUBLIC_SECRET"], public_pem)
    put(config["KID_SECRET"], kid)
    LOGGER.info("keys.published", extra={"kid": kid})
    click.echo(f"Published key {kid}")
