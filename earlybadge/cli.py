"""
Command-line interface for the Early Bird Badge client.
"""

from __future__ import annotations

import os
from pathlib import Path

import click

from earlybadge.client.client import BadgeClient
from earlybadge.client.infrastructure.identity_provider import KeyFileIdentityProvider
from earlybadge.common.config import Config
from earlybadge.common.exceptions import BadgeClientError
from earlybadge.common.models import ClientConfig
from earlybadge.common.principal import Principal
from earlybadge.server import start_server
from earlybadge.server.core import RegistryServer
from earlybadge.server.keygen import KeyGenerator


def _build_client(ctx: click.Context) -> BadgeClient:
    params = ctx.obj
    key_file = params.pop("key_file", None)
    try:
        return BadgeClient(
            ClientConfig(**params),
            identity_provider=KeyFileIdentityProvider(key_file) if key_file else None,
        )
    except BadgeClientError as e:
        raise click.ClickException(str(e)) from e


def _logged_in_client(ctx: click.Context) -> BadgeClient:
    client = _build_client(ctx)
    try:
        client.login()
    except BadgeClientError as e:
        raise click.ClickException(str(e)) from e
    return client


@click.group()
@click.option("--network-url", envvar="EARLYBADGE_NETWORK_URL", help="Registry gateway URL")
@click.option("--registry-id", envvar="EARLYBADGE_REGISTRY_ID", help="Registry principal")
@click.option(
    "--identity-provider",
    envvar="EARLYBADGE_IDENTITY_PROVIDER",
    help="Identity provider URL",
)
@click.option("--network", envvar="EARLYBADGE_NETWORK", help="Network name (ic is production)")
@click.option(
    "--key-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="PEM identity to sign with instead of the identity provider",
)
@click.option("--anchor", default=None, help="Identity provider anchor to log in as")
@click.pass_context
def cli(  # noqa: PLR0913
    ctx: click.Context,
    network_url: str | None,
    registry_id: str | None,
    identity_provider: str | None,
    network: str | None,
    key_file: str | None,
    anchor: str | None,
) -> None:
    """Early Bird Badge CLI"""
    ctx.obj = {
        "network_url": network_url,
        "registry_id": registry_id,
        "identity_provider_url": identity_provider,
        "network": network,
        "anchor": anchor,
        "key_file": key_file,
    }


@cli.command()
@click.pass_context
def supply(ctx: click.Context) -> None:
    """Show issued and remaining badges"""
    snapshot = _build_client(ctx).supply()
    click.echo(f"Issued: {snapshot.issued}/{snapshot.cap}")
    click.echo(f"Remaining: {snapshot.remaining}")


@cli.command()
@click.pass_context
def whoami(ctx: click.Context) -> None:
    """Show the principal the registry sees"""
    client = _logged_in_client(ctx)
    try:
        click.echo(client.whoami().to_text())
    except BadgeClientError as e:
        raise click.ClickException(str(e)) from e


@cli.command()
@click.pass_context
def owns(ctx: click.Context) -> None:
    """List the badges held by the logged in identity"""
    client = _logged_in_client(ctx)
    try:
        badge_ids = client.get_owned_badges()
    except BadgeClientError as e:
        raise click.ClickException(str(e)) from e
    if not badge_ids:
        click.echo("No badges")
        return
    for badge_id in badge_ids:
        click.echo(f"Badge #{badge_id}")


@cli.command()
@click.option("--metadata", default=None, help="Metadata for registries using claims")
@click.pass_context
def mint(ctx: click.Context, metadata: str | None) -> None:
    """Mint a badge for the logged in identity"""
    client = _logged_in_client(ctx)
    try:
        badge_id = client.claim_or_mint(metadata)
    except BadgeClientError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"Minted badge #{badge_id}")


@cli.command()
@click.argument("to")
@click.argument("badge_id", type=int)
@click.pass_context
def transfer(ctx: click.Context, to: str, badge_id: int) -> None:
    """Transfer a badge to another principal"""
    client = _logged_in_client(ctx)
    try:
        client.transfer(to, badge_id)
    except BadgeClientError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"Transferred badge #{badge_id} to {to}")


@cli.command()
@click.option(
    "--keys-dir",
    default=None,
    help="Directory to save root keys (default: ./earlybadge/server)",
)
@click.option(
    "--identity",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write a PEM user identity to this path instead",
)
def keygen(keys_dir: str | None, identity: str | None) -> None:
    """Generate replica root keys or a user identity"""
    if identity:
        principal = KeyGenerator.generate_identity(Path(identity))
        click.echo(f"Identity saved, principal {principal}")
        return
    if keys_dir:
        os.environ["EARLYBADGE_KEYS_DIR"] = keys_dir

    KeyGenerator().generate_keys()
    click.echo("Keys generated and saved")


@cli.command()
@click.option(
    "--keys-dir",
    default=None,
    help="Directory to load root keys from (default: ./earlybadge/server)",
)
@click.option("--host", default=None, help="Host to bind (default: EARLYBADGE_SERVER_HOST or 127.0.0.1)")
@click.option("--port", default=None, type=int, help="Port to bind (default: EARLYBADGE_SERVER_PORT or 4943)")
@click.option("--admin", default=None, help="Principal allowed to enumerate badges")
@click.option(
    "--state-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Persist registry state to this JSON file",
)
def serve(
    keys_dir: str | None,
    host: str | None,
    port: int | None,
    admin: str | None,
    state_file: str | None,
) -> None:
    """Start the development replica"""
    if keys_dir:
        os.environ["EARLYBADGE_KEYS_DIR"] = keys_dir
    if host:
        os.environ["EARLYBADGE_SERVER_HOST"] = host
    if port:
        os.environ["EARLYBADGE_SERVER_PORT"] = str(port)

    try:
        admin_principal = Principal.from_text(admin) if admin else None
        server = RegistryServer(
            Config(),
            admin=admin_principal,
            state_file_path=Path(state_file) if state_file else None,
        )
    except ValueError as e:
        raise click.ClickException(str(e)) from e
    start_server(server)


if __name__ == "__main__":
    cli()
