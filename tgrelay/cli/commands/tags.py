"""``tgrelay tag`` and ``tgrelay resolve`` — inspect identity tags offline."""

from __future__ import annotations

import typer

from tgrelay.cli.commands import _common
from tgrelay.cli.commands._common import console
from tgrelay.codec.tags import IdentityTagCodec
from tgrelay.core.errors import ValidationError
from tgrelay.models.identity import SigningMode


def tag_cmd(
    user_id: str = typer.Argument(..., help="Numeric user id to tag."),
    username: str = typer.Option(None, "--username", "-u", help="Render the mention format."),
) -> None:
    """Print the identity tag the relay would attach for USER_ID."""
    config = _common.load_config(require_bot=False)
    codec = IdentityTagCodec(config.user_id_secret)
    try:
        signature = codec.sign(user_id)
    except ValidationError as exc:
        console.print(f"[bold red]Invalid user id:[/bold red] {exc}")
        raise typer.Exit(code=1) from exc

    mode_style = "green" if codec.mode is SigningMode.HMAC else "yellow"
    console.print(f"Signing mode: [{mode_style}]{codec.mode.value}[/{mode_style}]")
    console.print(f"Signature:    {signature}")
    console.print(codec.build_tag(user_id, username), markup=False, soft_wrap=True)


def resolve_cmd(
    text: str = typer.Argument(..., help="Forwarded message text containing a tag."),
) -> None:
    """Recover the user id from TEXT; exit 1 if it cannot be resolved."""
    config = _common.load_config(require_bot=False)
    codec = IdentityTagCodec(config.user_id_secret)
    tag = codec.parse(text)
    if tag is None:
        console.print("[yellow]No identity tag found.[/yellow]")
        raise typer.Exit(code=1)

    user_id = codec.extract_user_id(text)
    console.print(f"Format:  {tag.format.value}")
    if user_id is None:
        console.print("[bold red]Unresolved[/bold red] (bad signature or no user id)")
        raise typer.Exit(code=1)
    verified = "verified" if tag.format.is_signed else "unverified legacy tag"
    console.print(f"User id: [cyan]{user_id}[/cyan] ({verified})")
