"""CLI main entry point."""

import sys

import click

from . import __version__
from .config import load_settings
from .deploy import ComposeStack, Deployer
from .errors import SettingsError
from .output import out
from .shared.logging import configure_logging, get_logger, level_for_verbosity

logger = get_logger(__name__)


@click.group(invoke_without_command=True)
@click.option("-c", "--config", "settings_path", type=click.Path(), help="Settings file path")
@click.option("-v", "--verbose", count=True, help="Increase log verbosity (-v info, -vv debug)")
@click.option("--log-file", type=click.Path(dir_okay=False), help="Write diagnostic logs to a file instead of stderr")
@click.option("--log-json", is_flag=True, help="Emit diagnostic logs as JSON")
@click.version_option(__version__, prog_name="ocdeploy")
@click.pass_context
def cli(
    ctx: click.Context,
    settings_path: str | None,
    verbose: int,
    log_file: str | None,
    log_json: bool,
) -> None:
    """Deploy an OpenCloud tenant reachable only over Tailscale.

    Running without a subcommand is the same as `ocdeploy install`.
    """
    configure_logging(level_for_verbosity(verbose), log_file=log_file, json_output=log_json)

    try:
        settings = load_settings(settings_path)
    except SettingsError as e:
        out.error(e.message)
        sys.exit(1)

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings

    if ctx.invoked_subcommand is None:
        ctx.invoke(install)


@cli.command()
@click.pass_context
def install(ctx: click.Context) -> None:
    """Interactively deploy (or redeploy) OpenCloud.

    Checks prerequisites, asks for the Tailscale bind address, port, storage
    path and MagicDNS domain, writes the compose file, initialises the
    config, starts the container and waits for it to become healthy.

    Examples:

        # Deploy with prompts
        sudo ocdeploy install

        # Use a different settings file
        sudo ocdeploy -c ./ocdeploy.yaml install
    """
    settings = ctx.obj["settings"]
    logger.info(
        "install.start",
        install_dir=str(settings.install_dir),
        install_dir_source=settings.get_source("install_dir"),
    )
    result = Deployer(settings).run()
    sys.exit(result.exit_code)


@cli.command()
@click.option("--follow", "-f", is_flag=True, help="Follow log output")
@click.option("--tail", default=100, type=int, help="Number of lines")
@click.pass_context
def logs(ctx: click.Context, follow: bool, tail: int) -> None:
    """Show logs of the deployed OpenCloud service."""
    settings = ctx.obj["settings"]
    if not settings.manifest_path.exists():
        out.error(f"No deployment found at {settings.manifest_path}. Run: ocdeploy install")
        sys.exit(1)

    stack = ComposeStack(settings.manifest_path)
    sys.exit(stack.logs(follow=follow, tail=tail))


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
