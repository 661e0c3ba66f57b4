"""dnsfailover — Click-based CLI entry point."""

import getpass
import logging
import sys
from pathlib import Path

import click

from dnsfailover.config import (
    CONFIG_FILE,
    LOG_FILE,
    OPT_CLOUDFLARE_TOKEN,
    OPT_DOMAIN_NAME,
    OPT_IDP,
    SECRET_OPTIONS,
    STATE_DIR,
)
from dnsfailover.core.catalog import resolve_records
from dnsfailover.core.cloudflare_client import CloudflareClient, sanitize_token
from dnsfailover.core.credentials import delete_token, resolve_token, store_token
from dnsfailover.core.errors import FailoverError
from dnsfailover.core.options import (
    OptionSource,
    load_config,
    parse_overrides,
    set_config,
    unset_config,
)
from dnsfailover.core.reconciler import Reconciler, ReconcilerConfig, connect

logger = logging.getLogger("dnsfailover")
_cf = CloudflareClient()


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    handlers = [logging.StreamHandler(sys.stderr)]
    # Also log to file if the logs directory exists
    if LOG_FILE.parent.exists():
        handlers.append(logging.FileHandler(str(LOG_FILE), encoding="utf-8"))
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
    )


def _config_path(ctx: click.Context) -> Path:
    return ctx.obj.get("config_file") or CONFIG_FILE


def _build_options(ctx: click.Context, pairs: tuple[str, ...], **flags: str | None) -> OptionSource:
    """Combine ``--set`` pairs and dedicated flags into an option source."""
    try:
        overrides = parse_overrides(pairs)
    except ValueError as exc:
        click.echo(str(exc), err=True)
        raise SystemExit(1)
    for key, value in flags.items():
        if value:
            overrides[key] = value
    return OptionSource(overrides, config=load_config(_config_path(ctx)))


def _mask(value: str) -> str:
    if len(value) <= 8:
        return "****"
    return f"{value[:4]}…{value[-4:]}"


# ======================================================================
# CLI group
# ======================================================================

@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option(
    "--config", "config_file", default=None, type=click.Path(dir_okay=False, path_type=Path),
    help="Config file to read options from (default ~/.dnsfailover/config.json).",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_file: Path | None) -> None:
    """dnsfailover — DNS failover and failback for multi-region deployments."""
    _setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_file"] = config_file


# ======================================================================
# dns
# ======================================================================

@cli.command("dns")
@click.option("--idp", default=None, help="IdP key used in service hostnames.")
@click.option("--domain-name", default=None, help="Cloudflare zone name.")
@click.option("--cloudflare-token", default=None, help="Cloudflare API token.")
@click.option(
    "--read-only", "--test", "read_only", is_flag=True,
    help="Show what would change without calling the Cloudflare API.",
)
@click.option(
    "--set", "pairs", multiple=True, metavar="KEY=VALUE",
    help="Override an option, e.g. --set id-broker-value=lb.example.net.",
)
@click.pass_context
def dns_cmd(ctx: click.Context, idp: str | None, domain_name: str | None,
            cloudflare_token: str | None, read_only: bool, pairs: tuple[str, ...]) -> None:
    """Configure DNS CNAME values for primary or secondary region hostnames."""
    options = _build_options(
        ctx, pairs,
        **{OPT_IDP: idp, OPT_DOMAIN_NAME: domain_name, OPT_CLOUDFLARE_TOKEN: cloudflare_token},
    )
    try:
        config = ReconcilerConfig(
            domain_name=options.get(OPT_DOMAIN_NAME, ""),
            idp_key=options.get(OPT_IDP, ""),
            dry_run=read_only,
        )
        token, source = resolve_token(options)
        logger.debug("Using Cloudflare token from %s", source)
        context = connect(config, token, client=_cf)
        summary = Reconciler(context).run(resolve_records(config.idp_key, options))
    except FailoverError as exc:
        click.echo(str(exc), err=True)
        raise SystemExit(1)
    click.echo(f"Done: {summary.summary}")


# ======================================================================
# records
# ======================================================================

@cli.command("records")
@click.option("--idp", default=None, help="IdP key used in service hostnames.")
@click.option("--set", "pairs", multiple=True, metavar="KEY=VALUE", help="Override an option.")
@click.pass_context
def records_cmd(ctx: click.Context, idp: str | None, pairs: tuple[str, ...]) -> None:
    """List the failover records and their configured targets (no API calls)."""
    options = _build_options(ctx, pairs, **{OPT_IDP: idp})
    idp_key = options.get(OPT_IDP, "")
    if not idp_key:
        click.echo("IdP key is not configured. Use 'idp' parameter.", err=True)
        raise SystemExit(1)
    domain = options.get(OPT_DOMAIN_NAME, "")
    for rec in resolve_records(idp_key, options):
        name = f"{rec.name}.{domain}" if domain else rec.name
        click.echo(f"  {name:40s} → {rec.desired_value or '-'}")


# ======================================================================
# login / logout
# ======================================================================

@cli.command("login")
def login_cmd() -> None:
    """Verify a Cloudflare API token and store it in the OS keyring."""
    raw_token = getpass.getpass("Cloudflare API token: ")
    try:
        token = sanitize_token(raw_token)
    except ValueError as exc:
        click.echo(str(exc), err=True)
        raise SystemExit(1)

    click.echo("Verifying token with Cloudflare…")
    try:
        active = _cf.verify_token(token)
    except Exception as exc:
        click.echo(f"Token verification failed: {exc}", err=True)
        raise SystemExit(1)
    if not active:
        click.echo("Token is not active.", err=True)
        raise SystemExit(1)

    store_token(token)
    click.echo("Token verified and stored in the OS keyring.")


@cli.command("logout")
def logout_cmd() -> None:
    """Remove the stored Cloudflare API token."""
    if delete_token():
        click.echo("Stored token removed.")
    else:
        click.echo("No stored token.")


# ======================================================================
# status
# ======================================================================

@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show where options and credentials come from."""
    options = OptionSource(config=load_config(_config_path(ctx)))
    click.echo(f"State directory: {STATE_DIR}")
    click.echo(f"Config file: {_config_path(ctx)}")
    for key in (OPT_DOMAIN_NAME, OPT_IDP):
        value = options.get(key, "")
        origin = options.source_of(key)
        shown = f"{value}  ({origin})" if value else "not configured"
        click.echo(f"{key}: {shown}")
    _, source = resolve_token(options)
    click.echo(f"Token: {'not configured' if source == 'none' else source}")


# ======================================================================
# config
# ======================================================================

@cli.group("config")
def config_group() -> None:
    """Manage persistent options."""


@config_group.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """Persist an option value."""
    set_config(key, value, _config_path(ctx))
    shown = _mask(value) if key in SECRET_OPTIONS else value
    click.echo(f"{key} = {shown}")


@config_group.command("unset")
@click.argument("key")
@click.pass_context
def config_unset(ctx: click.Context, key: str) -> None:
    """Remove a persisted option."""
    if unset_config(key, _config_path(ctx)):
        click.echo(f"Removed {key}")
    else:
        click.echo(f"{key} is not set.", err=True)
        raise SystemExit(1)


@config_group.command("show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Print persisted options."""
    cfg = load_config(_config_path(ctx))
    if not cfg:
        click.echo("No options configured.")
        return
    for key in sorted(cfg):
        value = str(cfg[key])
        click.echo(f"{key} = {_mask(value) if key in SECRET_OPTIONS else value}")


# ======================================================================
# Entry point
# ======================================================================

if __name__ == "__main__":
    cli()
