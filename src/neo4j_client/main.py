"""CLI entrypoint for neo4j-client."""

from __future__ import annotations

import sys

import neo4j
import prompt_toolkit
import rich_click as click

from neo4j_client import __version__
from neo4j_client.config import DEFAULT_PIPELINE_MAX, DEFAULT_SOURCE_MAX_DEPTH
from neo4j_client.shell.controllers import ShellCliController, ShellCommand
from neo4j_client.shell.options import OptionValue

click.rich_click.USE_MARKDOWN = True
SHELL_CONTROLLER = ShellCliController()
ORDER_KEY = "neo4j_client.option_order"
_UNORDERED_PARAMS = frozenset({"address", "version", "help"})


class OrderedCommand(click.RichCommand):
    """Records the order options appeared in, so later options override earlier ones."""

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        parser = self.make_parser(ctx)
        try:
            _, _, order = parser.parse_args(args=list(args))
        except click.UsageError:
            order = []
        ctx.meta[ORDER_KEY] = [param.name for param in order]
        return super().parse_args(ctx, args)


def ordered_options(ctx: click.Context) -> tuple[tuple[str, OptionValue], ...]:
    """Pair each option occurrence with its value, in command-line order."""

    pending = {
        name: list(values) for name, values in ctx.params.items() if isinstance(values, tuple)
    }
    options: list[tuple[str, OptionValue]] = []
    for name in ctx.meta.get(ORDER_KEY, []):
        if name is None or name in _UNORDERED_PARAMS:
            continue
        values = pending.get(name)
        if values is None:
            options.append((name, True))
        elif values:
            options.append((name, values.pop(0)))
    return tuple(options)


def _print_version(ctx: click.Context, _: click.Parameter, value: bool) -> None:
    if not value or ctx.resilient_parsing:
        return
    click.echo(f"neo4j-client: {__version__}")
    click.echo(f"neo4j-driver: {neo4j.__version__}")
    click.echo(f"prompt-toolkit: {prompt_toolkit.__version__}")
    ctx.exit()


@click.command(
    cls=OrderedCommand,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.argument("address", required=False)
@click.option(
    "--history-file",
    "history_file",
    multiple=True,
    type=click.Path(path_type=str),
    help="Use the specified file for saving history.",
)
@click.option("--no-history", "no_history", is_flag=True, help="Do not save history.")
@click.option(
    "--colorize",
    "--colourise",
    "colorize",
    is_flag=True,
    help="Use colorized output even when the output is not a terminal.",
)
@click.option(
    "--no-colorize",
    "--no-colourise",
    "no_colorize",
    is_flag=True,
    help="Disable colorized output.",
)
@click.option(
    "--ca-file",
    "ca_file",
    multiple=True,
    help="Specify a file containing trusted certificates.",
)
@click.option(
    "--ca-directory",
    "ca_directory",
    multiple=True,
    help="Specify a directory containing trusted certificates.",
)
@click.option("--insecure", is_flag=True, help="Do not attempt to establish secure connections.")
@click.option(
    "--non-interactive",
    "non_interactive",
    is_flag=True,
    help="Treat standard input as a script, even when it is a terminal.",
)
@click.option(
    "-u",
    "--username",
    "username",
    multiple=True,
    help="Connect using the specified username.",
)
@click.option(
    "-p",
    "--password",
    "password",
    multiple=True,
    help="Connect using the specified password.",
)
@click.option(
    "-P",
    "prompt_password",
    is_flag=True,
    help="Prompt for a password, even in non-interactive mode.",
)
@click.option(
    "--known-hosts",
    "known_hosts",
    multiple=True,
    type=click.Path(path_type=str),
    help="Set the path to the known-hosts file.",
)
@click.option(
    "--no-known-hosts",
    "no_known_hosts",
    is_flag=True,
    help="Do not do host checking via known-hosts (use only TLS certificate verification).",
)
@click.option(
    "--pipeline-max",
    "pipeline_max",
    multiple=True,
    type=click.IntRange(min=1),
    help=f"Maximum number of queries to pipeline (default {DEFAULT_PIPELINE_MAX}).",
)
@click.option(
    "-i",
    "--source",
    "source",
    multiple=True,
    help="Evaluate statements from the specified input file; `-` reads standard input.",
)
@click.option(
    "--source-max-depth",
    "source_max_depth",
    multiple=True,
    type=click.IntRange(min=1),
    help=f"Maximum depth that source files will be read (default {DEFAULT_SOURCE_MAX_DEPTH}).",
)
@click.option(
    "-o",
    "--output",
    "output",
    multiple=True,
    help="Write to the specified file; `-` writes to standard output. Must precede a --source.",
)
@click.option(
    "-v",
    "--verbose",
    "verbose",
    count=True,
    help="Increase logging verbosity.",
)
@click.option(
    "--version",
    is_flag=True,
    expose_value=False,
    is_eager=True,
    callback=_print_version,
    help="Output the version of neo4j-client and its dependencies.",
)
@click.pass_context
def neo4j_client(ctx: click.Context, address: str | None, **_: object) -> None:
    """Interactive and batch shell for Neo4j.

    Connects to ADDRESS (`[scheme://][user[:pass]@]host[:port]`) when given,
    then reads Cypher statements and `:` commands from the terminal,
    from `--source` files, or from standard input.
    """

    options = ordered_options(ctx)
    ctx.params["password"] = ()
    ctx.exit(
        SHELL_CONTROLLER.run(
            ShellCommand(
                prog_name=ctx.info_name or "neo4j-client",
                address=address,
                options=options,
                stdin=sys.stdin,
                stdout=sys.stdout,
                stderr=sys.stderr,
            ),
        ),
    )
