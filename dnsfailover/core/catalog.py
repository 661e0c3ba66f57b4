"""Service catalog — the fixed list of failover hostnames and how they resolve."""

from dataclasses import dataclass
from typing import Iterable, Iterator, Protocol


class Options(Protocol):
    def get(self, key: str, default: str = "") -> str: ...


# ------------------------------------------------------------------
# Naming rules
# ------------------------------------------------------------------

@dataclass(frozen=True)
class Fixed:
    """A default record name that doesn't depend on the IdP."""

    name: str

    def render(self, idp_key: str) -> str:
        return self.name


@dataclass(frozen=True)
class TemplatedOnIdp:
    """A default record name of the form ``<idp_key>-<suffix>``."""

    suffix: str

    def render(self, idp_key: str) -> str:
        return f"{idp_key}-{self.suffix}"


NameRule = Fixed | TemplatedOnIdp


# ------------------------------------------------------------------
# Data structures
# ------------------------------------------------------------------

@dataclass(frozen=True)
class ServiceSpec:
    """A catalog entry: option keys for the name and value, plus the default name."""

    option_key_for_name: str
    name_rule: NameRule
    option_key_for_value: str


@dataclass(frozen=True)
class ResolvedRecord:
    """A record name paired with the CNAME target requested for it.

    An empty ``desired_value`` means no change was requested this run.
    """

    name: str
    desired_value: str


CATALOG: tuple[ServiceSpec, ...] = (
    # TOTP API (serverless-mfa-api)
    ServiceSpec("mfa-api-name", Fixed("mfa-api"), "mfa-api-value"),
    # WebAuthn API (serverless-mfa-api-go)
    ServiceSpec("twosv-api-name", Fixed("twosv-api"), "twosv-api-value"),
    # idp-support-bot, configured in the Slack API dashboard
    ServiceSpec("support-bot-name", Fixed("sherlock"), "support-bot-value"),
    # ECS services
    ServiceSpec("email-service-name", TemplatedOnIdp("email-service"), "email-service-value"),
    ServiceSpec("id-broker-name", TemplatedOnIdp("id-broker"), "id-broker-value"),
    ServiceSpec("pw-api-name", TemplatedOnIdp("pw-api"), "pw-api-value"),
    ServiceSpec("ssp-name", TemplatedOnIdp("ssp"), "ssp-value"),
    ServiceSpec("id-sync-name", TemplatedOnIdp("id-sync"), "id-sync-value"),
)


def resolve_records(
    idp_key: str,
    options: Options,
    catalog: Iterable[ServiceSpec] = CATALOG,
) -> Iterator[ResolvedRecord]:
    """Yield one ``ResolvedRecord`` per catalog entry, in catalog order."""
    for entry in catalog:
        name = options.get(entry.option_key_for_name, entry.name_rule.render(idp_key))
        value = options.get(entry.option_key_for_value, "")
        yield ResolvedRecord(name=name, desired_value=value)
