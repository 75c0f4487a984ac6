"""
Command-line interface for lnwall.
"""

from __future__ import annotations

import os

import click

from lnwall.common import Cipher, KeyDeriver, Signer
from lnwall.common.config import Config
from lnwall.common.exceptions import LnwallError
from lnwall.server import start_server
from lnwall.server.domain.content_handler import ContentService
from lnwall.server.domain.referral_handler import ReferralLinkService
from lnwall.server.keygen import SecretGenerator

SECRETS_DIR_HELP = "Directory holding signing.key and master.key (default: ./lnwall/secrets)"


def _load_config(secrets_dir: str | None) -> Config:
    if secrets_dir:
        os.environ["LNWALL_SECRETS_DIR"] = secrets_dir
    return Config()


def _content_service(config: Config) -> ContentService:
    _, master = config.get_secrets()
    return ContentService(
        KeyDeriver(master, iterations=config.PBKDF2_ITERATIONS),
        Cipher(),
        config.BASE_URL,
        current_version=config.KEY_VERSION,
    )


@click.group()
def cli() -> None:
    """lnwall signed links, derived-key encryption and split payments"""


@cli.command()
@click.option("--secrets-dir", default=None, help=SECRETS_DIR_HELP)
@click.option("--force", is_flag=True, help="Overwrite existing secrets")
def keygen(secrets_dir: str | None, force: bool) -> None:  # noqa: FBT001
    """Generate the signing and master secrets"""
    config = _load_config(secrets_dir)
    try:
        SecretGenerator(config.SECRETS_DIR).generate_secrets(overwrite=force)
    except FileExistsError as e:
        raise click.ClickException(f"{e}; pass --force to replace them") from e
    click.echo("Secrets generated and saved")


@cli.command()
@click.option("--secrets-dir", default=None, help=SECRETS_DIR_HELP)
@click.option(
    "--host",
    default=None,
    help="Host to bind server to (default: from LNWALL_SERVER_HOST env or 127.0.0.1)",
)
@click.option(
    "--port",
    default=None,
    type=int,
    help="Port to bind server to (default: from LNWALL_SERVER_PORT env or 8000)",
)
def serve(secrets_dir: str | None, host: str | None, port: int | None) -> None:
    """Start the lnwall server"""
    if host:
        os.environ["LNWALL_SERVER_HOST"] = host
    if port:
        os.environ["LNWALL_SERVER_PORT"] = str(port)
    config = _load_config(secrets_dir)
    try:
        config.get_secrets()
    except ValueError as e:
        raise click.ClickException(str(e)) from e
    start_server(config)


@cli.command("ref-link")
@click.argument("event_id")
@click.argument("public_key")
@click.option("--secrets-dir", default=None, help=SECRETS_DIR_HELP)
def ref_link(event_id: str, public_key: str, secrets_dir: str | None) -> None:
    """Issue a signed referral link"""
    config = _load_config(secrets_dir)
    try:
        signing, _ = config.get_secrets()
        service = ReferralLinkService(
            Signer(signing, config.SIGNATURE_DELIMITER),
            config.BASE_URL,
            config.MAX_URL_LENGTH,
        )
        click.echo(service.create_link(event_id, public_key))
    except (ValueError, LnwallError) as e:
        raise click.ClickException(str(e)) from e


@cli.command()
@click.argument("event_id")
@click.argument("content")
@click.option("--version", "key_version", type=int, default=None, help="Key version")
@click.option("--secrets-dir", default=None, help=SECRETS_DIR_HELP)
def encrypt(
    event_id: str, content: str, key_version: int | None, secrets_dir: str | None
) -> None:
    """Encrypt content under a key derived from EVENT_ID"""
    config = _load_config(secrets_dir)
    try:
        service = _content_service(config)
        encrypted = service.encrypt(event_id, content, key_version)
    except (ValueError, LnwallError) as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"iv: {encrypted.iv}")
    click.echo(f"encrypted: {encrypted.encrypted}")
    click.echo(f"version: {encrypted.version}")
    click.echo(f"link: {service.create_link(encrypted)}")


@cli.command()
@click.argument("event_id")
@click.argument("encrypted")
@click.argument("iv")
@click.option("--version", "key_version", type=int, required=True, help="Key version")
@click.option("--secrets-dir", default=None, help=SECRETS_DIR_HELP)
def decrypt(
    event_id: str,
    encrypted: str,
    iv: str,
    key_version: int,
    secrets_dir: str | None,
) -> None:
    """Decrypt content produced by the encrypt command"""
    config = _load_config(secrets_dir)
    try:
        result = _content_service(config).decrypt(event_id, encrypted, iv, key_version)
    except (ValueError, LnwallError) as e:
        raise click.ClickException(str(e)) from e
    click.echo(result.decrypted)


if __name__ == "__main__":
    cli()
