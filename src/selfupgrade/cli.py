"""selfupgrade CLI entry point."""

import logging
import re
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from selfupgrade.config import DEFAULT_API_URL, DEFAULT_TIMEOUT, UpgradeConfig
from selfupgrade.errors import UpgradeError

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, console=console)],
    )


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose logging")
@click.option("--api-url", default=DEFAULT_API_URL, show_default=True, help="Release index API base URL")
@click.option("--timeout", default=DEFAULT_TIMEOUT, show_default=True, help="HTTP timeout in seconds")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, api_url: str, timeout: float) -> None:
    """selfupgrade - Signed self-update for distributed binaries."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config"] = UpgradeConfig(api_url=api_url, timeout=timeout)
    setup_logging(verbose)


def _compile_pattern(
    ctx: click.Context, param: click.Parameter, value: str | None
) -> re.Pattern[str] | None:
    if not value:
        return None
    try:
        return re.compile(value)
    except re.error as e:
        raise click.BadParameter(f"invalid regular expression: {e}") from e


@cli.command()
@click.argument("project")
@click.argument("version")
@click.option("--pre", is_flag=True, help="Allow prereleases")
@click.option("--major", is_flag=True, help="Allow major upgrades")
@click.option(
    "--match",
    "match",
    default=None,
    callback=_compile_pattern,
    help="Match asset name (regular expression)",
)
@click.pass_context
def releases(
    ctx: click.Context,
    project: str,
    version: str,
    pre: bool,
    major: bool,
    match: re.Pattern[str] | None,
) -> None:
    """List releases of PROJECT that are upgrades from VERSION."""
    from selfupgrade.releases import ReleaseCatalog, matching_assets

    try:
        with ReleaseCatalog(config=ctx.obj["config"]) as catalog:
            rels = catalog.list_releases(
                project,
                version,
                allow_major_upgrade=major,
                allow_prerelease=pre,
            )
    except UpgradeError as e:
        console.print(f"[red]✗[/red] {e}")
        raise SystemExit(1) from e

    table = Table(title=f"Releases of {project} newer than {version}")
    table.add_column("Release", style="cyan")
    table.add_column("Asset")
    table.add_column("URL", style="dim")

    for rel in rels:
        if match is not None:
            rel = rel.with_assets(matching_assets(match, rel))
        for asset in rel.assets:
            table.add_row(rel.version, asset.name, asset.url)

    if not rels:
        console.print("[green]No newer releases found[/green]")
        return
    if table.row_count == 0:
        if match is None:
            console.print(f"[yellow]{len(rels)} newer releases found, none with assets[/yellow]")
        else:
            console.print(f"[yellow]No assets of the newer releases match {match.pattern!r}[/yellow]")
        return
    console.print(table)


@cli.command()
@click.argument("a")
@click.argument("b")
def compare(a: str, b: str) -> None:
    """Show how version A relates to version B."""
    from selfupgrade.domain import Relation
    from selfupgrade.releases import compare_versions

    relation = compare_versions(a, b)
    if relation == Relation.EQUAL:
        console.print(f"[cyan]{a}[/cyan] is [bold]equal[/bold] to [cyan]{b}[/cyan]")
    else:
        label = relation.name.lower().replace("_", " ")
        console.print(f"[cyan]{a}[/cyan] is [bold]{label}[/bold] than [cyan]{b}[/cyan]")


@cli.command()
@click.argument("url")
@click.option("--key", "key_path", required=True, type=click.Path(exists=True, dir_okay=False), help="Trusted public key (PEM)")
@click.option("--binary", type=click.Path(dir_okay=False), help="Binary to replace (defaults to the running executable)")
@click.option("--name", "binary_name", help="Executable name inside the archive")
@click.pass_context
def apply(ctx: click.Context, url: str, key_path: str, binary: str | None, binary_name: str | None) -> None:
    """Download, verify and apply the release archive at URL.

    The running process keeps the old binary loaded; restart it to run
    the new version.
    """
    from selfupgrade.updater import UpgradeApplier, current_executable

    target = Path(binary) if binary else current_executable()
    key = Path(key_path).read_bytes()

    console.print(f"Upgrading [cyan]{target}[/cyan]...")
    try:
        with UpgradeApplier(config=ctx.obj["config"]) as applier:
            backup = applier.apply(target, url, key, binary_name=binary_name)
    except UpgradeError as e:
        console.print(f"[red]✗[/red] Upgrade failed: {e}")
        raise SystemExit(1) from e

    console.print("[green]✓[/green] Upgrade applied successfully!")
    console.print(f"  Previous binary saved to: [dim]{backup}[/dim]")
    console.print("  Restart to use the new version")


@cli.command()
@click.option("--private", "private_path", required=True, type=click.Path(dir_okay=False), help="Where to write the private key")
@click.option("--public", "public_path", required=True, type=click.Path(dir_okay=False), help="Where to write the public key")
def keygen(private_path: str, public_path: str) -> None:
    """Generate a release signing key pair."""
    from selfupgrade.updater.signature import generate_keys

    private_pem, public_pem = generate_keys()
    Path(private_path).write_bytes(private_pem)
    Path(private_path).chmod(0o600)
    Path(public_path).write_bytes(public_pem)
    console.print(f"[green]✓[/green] Keys written to {private_path} and {public_path}")


@cli.command()
@click.argument("key_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
def sign(key_path: str, file: str) -> None:
    """Write a detached signature for FILE next to it (FILE.sig)."""
    from selfupgrade.config import SIGNATURE_SUFFIX
    from selfupgrade.updater.signature import sign as sign_file

    with open(file, "rb") as fd:
        sig = sign_file(Path(key_path).read_bytes(), fd)

    sig_path = Path(file + SIGNATURE_SUFFIX)
    sig_path.write_bytes(sig)
    console.print(f"[green]✓[/green] Signature written to {sig_path}")


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
