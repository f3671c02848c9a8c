"""Click CLI for registering channels and sending messages by hand."""

from __future__ import annotations

import asyncio
from pathlib import Path

import click

from src.audit.logger import validate_audit_chain
from src.errors import AuthError, GatewayError
from src.gateway.config import GatewayConfig
from src.gateway.store import SQLiteStore
from src.models import (
    CONFIG_AUTH_TOKEN,
    TELEGRAM_CHANNEL_TYPE,
    Channel,
    ContactURN,
    MsgStatus,
    OutboundMessage,
)
from src.telegram.api import DEFAULT_API_URL
from src.telegram.handler import TelegramHandler


@click.group()
@click.option("--db", default="data/gateway.db", help="Gateway database path.")
@click.option("--api-url", default=DEFAULT_API_URL, help="Bot API base URL.")
@click.pass_context
def cli(ctx: click.Context, db: str, api_url: str) -> None:
    """Telegram gateway CLI."""
    ctx.ensure_object(dict)
    ctx.obj["config"] = GatewayConfig(telegram_api_url=api_url, db_path=db)


def _store(ctx: click.Context) -> SQLiteStore:
    """Open the gateway database on first use."""
    obj = ctx.find_root().obj
    if "store" not in obj:
        store = SQLiteStore(obj["config"].db_path)
        ctx.find_root().call_on_close(store.close)
        obj["store"] = store
    return obj["store"]


def _handler(ctx: click.Context) -> TelegramHandler:
    return TelegramHandler(ctx.find_root().obj["config"], _store(ctx))


@cli.group("channel")
def channel_group() -> None:
    """Manage Telegram channels."""


@channel_group.command("add")
@click.option("--uuid", "channel_uuid", required=True, help="Channel uuid.")
@click.option("--token", required=True, help="Bot auth token.")
@click.option("--name", default="", help="Display name.")
@click.option("--address", default="", help="Bot username.")
@click.pass_context
def channel_add(ctx: click.Context, channel_uuid: str, token: str, name: str, address: str) -> None:
    """Register or update a channel."""
    store = _store(ctx)
    store.add_channel(Channel(
        uuid=channel_uuid,
        name=name,
        address=address,
        config={CONFIG_AUTH_TOKEN: token},
    ))
    click.echo(f"Channel registered: {channel_uuid}")


def _load_channel(ctx: click.Context, channel_uuid: str) -> Channel:
    store = _store(ctx)
    try:
        return store.get_channel(TELEGRAM_CHANNEL_TYPE, channel_uuid)
    except GatewayError as exc:
        raise click.ClickException(str(exc)) from exc


@cli.command()
@click.argument("channel_uuid")
@click.argument("urn_path")
@click.option("--msg-id", default=1, type=int, help="Message id to record the status under.")
@click.option("--text", default="", help="Message text.")
@click.option("--attachment", "attachments", multiple=True, help="media/type:url, repeatable.")
@click.option("--quick-reply", "quick_replies", multiple=True, help="Quick reply, repeatable.")
@click.pass_context
def send(
    ctx: click.Context,
    channel_uuid: str,
    urn_path: str,
    msg_id: int,
    text: str,
    attachments: tuple[str, ...],
    quick_replies: tuple[str, ...],
) -> None:
    """Send a message to a contact and print its delivery status."""
    handler = _handler(ctx)
    msg = OutboundMessage(
        id=msg_id,
        channel=_load_channel(ctx, channel_uuid),
        urn=ContactURN.parse(urn_path),
        text=text,
        attachments=attachments,
        quick_replies=quick_replies,
    )
    try:
        status = asyncio.run(handler.send_msg(msg))
    except AuthError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(status.model_dump_json(indent=2))
    if status.status is MsgStatus.ERRORED:
        ctx.exit(1)


@cli.command("resolve-file")
@click.argument("channel_uuid")
@click.argument("file_id")
@click.pass_context
def resolve_file(ctx: click.Context, channel_uuid: str, file_id: str) -> None:
    """Print the download URL of a file id."""
    handler = _handler(ctx)
    channel = _load_channel(ctx, channel_uuid)
    try:
        url = asyncio.run(handler.resolver.resolve_file_id(channel, file_id))
    except GatewayError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(url)


@cli.command("show-status")
@click.argument("channel_uuid")
@click.argument("msg_id", type=int)
@click.pass_context
def show_status(ctx: click.Context, channel_uuid: str, msg_id: int) -> None:
    """Print the stored delivery status of a message."""
    store = _store(ctx)
    status = store.get_msg_status(channel_uuid, msg_id)
    if status is None:
        raise click.ClickException(f"no status for message {msg_id}")
    click.echo(status.model_dump_json(indent=2))


@cli.command("verify-audit")
@click.argument("log_path", type=click.Path(exists=True, dir_okay=False))
def verify_audit(log_path: str) -> None:
    """Check the hash chain of an audit log."""
    result = validate_audit_chain(Path(log_path))
    if not result.valid:
        raise click.ClickException(
            f"audit chain broken at line {result.broken_at_line}"
        )
    click.echo("Audit chain OK")


if __name__ == "__main__":
    cli()
