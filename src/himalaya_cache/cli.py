"""Command-line interface for himalaya-cache.

Commands handled here (sync plus the cached read queries) are parsed by typer.
Any other invocation is passed straight through to himalaya, so
`himalaya-cache` can stand in for the himalaya binary.
"""

import sys
from dataclasses import dataclass
from typing import Annotated, NoReturn

import typer
from rich.console import Console
from rich.markup import escape

from himalaya_cache.cache import CacheStore, read_envelopes, read_folders, read_message
from himalaya_cache.config import Settings
from himalaya_cache.errors import AgentLaunchError, HimalayaCacheError
from himalaya_cache.himalaya import HimalayaClient
from himalaya_cache.logging import setup_logging
from himalaya_cache.sync import SyncEngine, SyncScope

app = typer.Typer(
    name="himalaya-cache",
    help="Cache data from the himalaya CLI",
    no_args_is_help=True,
)
# stdout carries command output; messages for the operator go to stderr
console = Console(stderr=True)

# Sub-command groups
folder_app = typer.Typer(help="Read cached folder data")
message_app = typer.Typer(help="Read cached message data")
envelope_app = typer.Typer(help="Read cached envelope data")

app.add_typer(folder_app, name="folder")
app.add_typer(message_app, name="message")
app.add_typer(envelope_app, name="envelope")


@dataclass(frozen=True)
class CommandSchema:
    """Flags and positionals accepted by a command handled by this tool."""

    path: tuple[str, ...]
    value_flags: tuple[str, ...]
    positionals: int = 0


COMMAND_SCHEMAS = (
    CommandSchema(("sync",), ("--account", "--folder")),
    CommandSchema(("folder", "list"), ("--account",)),
    CommandSchema(("message", "read"), ("--account", "--folder"), positionals=1),
    CommandSchema(("envelope", "list"), ("--account", "--folder")),
)


def match_command(args: list[str]) -> CommandSchema | None:
    """Find the command schema the arguments start with, if any."""
    for schema in COMMAND_SCHEMAS:
        if tuple(args[: len(schema.path)]) == schema.path:
            return schema
    return None


def normalize_args(schema: CommandSchema, args: list[str]) -> list[str]:
    """Reduce raw arguments to the ones the command understands.

    Known flags take exactly one following value, whatever it looks like.
    Unknown flags (e.g. himalaya options such as `-o json`) are dropped,
    together with the next token when enough non-flag tokens remain to still
    fill the command's positionals.

    Args:
        schema: Command matched by `match_command`
        args: Full argument list, command path included

    Returns:
        Argument list for the typer app
    """
    rest = args[len(schema.path) :]
    flags: dict[str, str] = {}
    positionals: list[str] = []
    help_requested = False

    index = 0
    while index < len(rest):
        token = rest[index]
        if not token.startswith("-"):
            positionals.append(token)
            index += 1
            continue

        if token in schema.value_flags:
            if index + 1 < len(rest):
                flags[token] = rest[index + 1]
                index += 2
            else:
                index += 1
            continue

        if token == "--help":
            help_requested = True
            index += 1
            continue

        remaining = sum(1 for value in rest[index + 1 :] if not value.startswith("-"))
        if (
            remaining > schema.positionals
            and index + 1 < len(rest)
            and not rest[index + 1].startswith("-")
        ):
            index += 2
        else:
            index += 1

    normalized = list(schema.path)
    for flag, value in flags.items():
        # flag=value keeps values starting with "-" from reading as options
        normalized.append(f"{flag}={value}")
    normalized.extend(positionals[: schema.positionals])
    if help_requested:
        normalized.append("--help")
    return normalized


def get_settings() -> Settings:
    """Load application settings."""
    return Settings()


def fail(error: Exception) -> NoReturn:
    """Report a fatal error and exit non-zero."""
    console.print(f"[red]error:[/red] {escape(str(error))}")
    raise typer.Exit(1)


@app.command()
def sync(
    account: Annotated[
        str | None, typer.Option("--account", help="Sync a single account by name")
    ] = None,
    folder: Annotated[
        str | None,
        typer.Option("--folder", help="Sync a single folder by name (requires --account)"),
    ] = None,
) -> None:
    """Sync accounts, folders, and messages from himalaya."""
    scope = SyncScope(account=account, folder=folder)
    try:
        scope.ensure_valid()
    except HimalayaCacheError as e:
        fail(e)

    settings = get_settings()
    try:
        setup_logging(
            log_dir=settings.log_dir,
            log_level=settings.log_level,
            max_bytes=settings.log_max_bytes,
            backup_count=settings.log_backup_count,
        )
    except OSError as e:
        fail(e)

    engine = SyncEngine(
        settings,
        HimalayaClient.from_settings(settings),
        CacheStore(settings.cache_dir),
        console=console,
    )
    try:
        result = engine.run(scope)
    except HimalayaCacheError as e:
        fail(e)

    style = "yellow" if result.warnings else "green"
    console.print(f"[{style}]{escape(result.summary())}[/{style}]")


@folder_app.command("list")
def folder_list(
    account: Annotated[
        str, typer.Option("--account", help="Account name to read cached folders for")
    ],
) -> None:
    """List cached folders for an account."""
    store = CacheStore(get_settings().cache_dir)
    try:
        typer.echo(read_folders(store, account))
    except HimalayaCacheError as e:
        fail(e)


@message_app.command("read")
def message_read(
    message_id: Annotated[str, typer.Argument(metavar="ID", help="Message id to read")],
    account: Annotated[
        str, typer.Option("--account", help="Account name to read cached message for")
    ],
    folder: Annotated[
        str, typer.Option("--folder", help="Folder name to read cached message for")
    ],
) -> None:
    """Read a cached message by id."""
    store = CacheStore(get_settings().cache_dir)
    try:
        typer.echo(read_message(store, account, folder, message_id), nl=False)
    except HimalayaCacheError as e:
        fail(e)


@envelope_app.command("list")
def envelope_list(
    account: Annotated[
        str, typer.Option("--account", help="Account name to read cached envelopes for")
    ],
    folder: Annotated[
        str, typer.Option("--folder", help="Folder name to read cached envelopes for")
    ],
) -> None:
    """List cached envelopes for a folder, newest first."""
    store = CacheStore(get_settings().cache_dir)
    try:
        typer.echo(read_envelopes(store, account, folder))
    except HimalayaCacheError as e:
        fail(e)


def passthrough(args: list[str]) -> int:
    """Run himalaya with the given arguments and return its exit status."""
    client = HimalayaClient.from_settings(get_settings())
    try:
        return client.passthrough(args)
    except AgentLaunchError as e:
        console.print(f"[red]error:[/red] {escape(str(e))}")
        return 1


def main(argv: list[str] | None = None) -> None:
    """Console script entry point."""
    args = list(sys.argv[1:] if argv is None else argv)

    if not args:
        app(args=args, prog_name="himalaya-cache")
        return

    schema = match_command(args)
    if schema is None:
        sys.exit(passthrough(args))

    app(args=normalize_args(schema, args), prog_name="himalaya-cache")
