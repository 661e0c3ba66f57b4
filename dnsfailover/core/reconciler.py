"""Record reconciler — point each failover CNAME at its desired target."""

import enum
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable

import click

from dnsfailover.config import CONFIRM_ANSWER, CONFIRM_PROMPT, RECORD_TYPE
from dnsfailover.core.catalog import ResolvedRecord
from dnsfailover.core.cloudflare_client import CloudflareAPIError, CloudflareClient
from dnsfailover.core.errors import (
    ConfigurationError,
    RecordLookupError,
    RecordWriteError,
)

logger = logging.getLogger(__name__)

Prompt = Callable[[str], str]
Echo = Callable[[str], None]


def terminal_prompt(message: str) -> str:
    """Read one line from the operator.  An empty line is returned as ``""``."""
    return click.prompt(message, default="", show_default=False)


# ------------------------------------------------------------------
# Data structures
# ------------------------------------------------------------------

@dataclass(frozen=True)
class ReconcilerConfig:
    """Run-scoped settings, validated on construction."""

    domain_name: str
    idp_key: str
    dry_run: bool = False

    def __post_init__(self) -> None:
        if not self.domain_name:
            raise ConfigurationError(
                "Cloudflare Domain Name is not configured. Use 'domain-name' parameter."
            )
        if not self.idp_key:
            raise ConfigurationError("IdP key is not configured. Use 'idp' parameter.")


@dataclass(frozen=True)
class ReconcileContext:
    """Everything a run shares across records.  Built once by :func:`connect`."""

    client: CloudflareClient
    token: str
    zone_id: str
    config: ReconcilerConfig

    def fqdn(self, name: str) -> str:
        return f"{name}.{self.config.domain_name}"


class Outcome(enum.Enum):
    SKIPPED = "skipped"
    ALREADY_SET = "already set"
    DRY_RUN = "dry run"
    DECLINED = "declined"
    UPDATED = "updated"


@dataclass
class RecordResult:
    """Terminal outcome for one record."""

    record: ResolvedRecord
    outcome: Outcome
    previous: str | None = None  # content before the run, when looked up


@dataclass
class RunSummary:
    results: list[RecordResult] = field(default_factory=list)

    def count(self, outcome: Outcome) -> int:
        return sum(1 for r in self.results if r.outcome is outcome)

    @property
    def summary(self) -> str:
        parts = [
            f"{self.count(o)} {o.value}" for o in Outcome if self.count(o)
        ]
        return ", ".join(parts) if parts else "No records"


def connect(
    config: ReconcilerConfig,
    token: str,
    client: CloudflareClient | None = None,
    echo: Echo = click.echo,
) -> ReconcileContext:
    """Resolve the zone for ``config.domain_name`` and build the run context."""
    if not token:
        raise ConfigurationError(
            "Cloudflare Token is not configured. Use 'cloudflare-token' parameter."
        )
    client = client or CloudflareClient()
    try:
        zone_id = client.zone_id_by_name(token, config.domain_name)
    except CloudflareAPIError as exc:
        raise ConfigurationError(
            f"Cannot find zone {config.domain_name}: {exc}"
        ) from exc
    echo(f"Using domain name {config.domain_name} with ID {zone_id}")
    return ReconcileContext(client=client, token=token, zone_id=zone_id, config=config)


# ------------------------------------------------------------------
# Engine
# ------------------------------------------------------------------

class Reconciler:
    """Walk resolved records one at a time, updating CNAMEs that differ.

    Soft outcomes (skip, already set, dry run, declined) are returned as
    :class:`RecordResult`.  Lookup and write failures raise
    :class:`~dnsfailover.core.errors.FailoverError` subclasses and end the run.
    """

    def __init__(
        self,
        context: ReconcileContext,
        *,
        prompt: Prompt = terminal_prompt,
        echo: Echo = click.echo,
    ) -> None:
        self._ctx = context
        self._prompt = prompt
        self._echo = echo

    def run(self, records: Iterable[ResolvedRecord]) -> RunSummary:
        self._echo("Setting DNS records to secondary...")
        summary = RunSummary()
        for record in records:
            summary.results.append(self.reconcile(record))
        logger.info("Reconciliation finished: %s", summary.summary)
        return summary

    def reconcile(self, record: ResolvedRecord) -> RecordResult:
        name, value = record.name, record.desired_value
        if value == "":
            self._echo(f"  skipping {name} (no value provided)")
            return RecordResult(record, Outcome.SKIPPED)

        fqdn = self._ctx.fqdn(name)
        self._echo(f"  {fqdn} --> {value}")

        current = self._lookup(name, fqdn)
        if current["content"] == value:
            self._echo(f"CNAME {name} is already set to {value}")
            return RecordResult(record, Outcome.ALREADY_SET, previous=current["content"])

        if self._ctx.config.dry_run:
            self._echo("  test mode: skipping API call")
            return RecordResult(record, Outcome.DRY_RUN, previous=current["content"])

        answer = self._prompt(CONFIRM_PROMPT)
        if answer != CONFIRM_ANSWER:
            logger.debug("Operator answered %r for %s", answer, fqdn)
            self._echo(f"  declined, {name} left unchanged")
            return RecordResult(record, Outcome.DECLINED, previous=current["content"])

        self._apply(name, current, value)
        self._echo(f"  updated {fqdn} --> {value}")
        return RecordResult(record, Outcome.UPDATED, previous=current["content"])

    # ------------------------------------------------------------------
    # Remote calls
    # ------------------------------------------------------------------

    def _lookup(self, name: str, fqdn: str) -> dict:
        ctx = self._ctx
        try:
            matches = ctx.client.list_records(ctx.token, ctx.zone_id, name=fqdn)
        except CloudflareAPIError as exc:
            raise RecordLookupError(name, str(exc)) from exc
        if len(matches) != 1:
            raise RecordLookupError(
                name, f"expected exactly one record for {fqdn}, found {len(matches)}"
            )
        return matches[0]

    def _apply(self, name: str, current: dict, value: str) -> None:
        ctx = self._ctx
        record = {**current, "type": RECORD_TYPE, "content": value}
        logger.info("Updating %s (%s): %s -> %s", current["name"], current["id"],
                    current["content"], value)
        try:
            ctx.client.update_record(ctx.token, ctx.zone_id, current["id"], record)
        except CloudflareAPIError as exc:
            raise RecordWriteError(name, exc) from exc
