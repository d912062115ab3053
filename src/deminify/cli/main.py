"""deminify CLI - deminify command."""

import click

from deminify.cli.merge import merge_command
from deminify.cli.run import gemini_command, local_command, openai_command
from deminify.cli.status import status_command
from deminify.core.logging import bind_run_id, configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="deminify")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """deminify - rename minified JavaScript identifiers with a language model."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    bind_run_id()
    configure_logging(level="DEBUG" if verbose else "INFO")


cli.add_command(openai_command, name="openai")
cli.add_command(gemini_command, name="gemini")
cli.add_command(local_command, name="local")
cli.add_command(status_command, name="status")
cli.add_command(merge_command, name="merge")


if __name__ == "__main__":
    cli()
