"""Tests for core.reconciler — the per-record failover state machine."""

from unittest.mock import MagicMock

import pytest

from dnsfailover.core.catalog import ResolvedRecord, resolve_records
from dnsfailover.core.cloudflare_client import CloudflareAPIError
from dnsfailover.core.errors import ConfigurationError, RecordLookupError, RecordWriteError
from dnsfailover.core.options import OptionSource
from dnsfailover.core.reconciler import (
    Outcome,
    ReconcileContext,
    Reconciler,
    ReconcilerConfig,
    RunSummary,
    connect,
)


def _zone_record(content="old-target.example.com", rid="r1",
                 name="acme-id-broker.example.com"):
    return {"id": rid, "type": "CNAME", "name": name, "content": content,
            "ttl": 1, "proxied": False}


def _context(client, dry_run=False):
    config = ReconcilerConfig(domain_name="example.com", idp_key="acme", dry_run=dry_run)
    return ReconcileContext(client=client, token="token", zone_id="z1", config=config)


class Harness:
    """A reconciler wired to a mock client, scripted answers and captured output."""

    def __init__(self, records=None, answers=(), dry_run=False):
        self.client = MagicMock()
        self.client.list_records.return_value = (
            [_zone_record()] if records is None else records
        )
        self.answers = list(answers)
        self.prompts: list[str] = []
        self.lines: list[str] = []
        self.reconciler = Reconciler(
            _context(self.client, dry_run=dry_run),
            prompt=self._prompt,
            echo=self.lines.append,
        )

    def _prompt(self, message):
        self.prompts.append(message)
        return self.answers.pop(0)


BROKER = ResolvedRecord(name="acme-id-broker", desired_value="new-target.example.com")


# ------------------------------------------------------------------
# ReconcilerConfig
# ------------------------------------------------------------------

class TestReconcilerConfig:
    def test_missing_domain(self):
        with pytest.raises(ConfigurationError, match="domain-name"):
            ReconcilerConfig(domain_name="", idp_key="acme")

    def test_missing_idp(self):
        with pytest.raises(ConfigurationError, match="idp"):
            ReconcilerConfig(domain_name="example.com", idp_key="")

    def test_fqdn(self):
        ctx = _context(MagicMock())
        assert ctx.fqdn("mfa-api") == "mfa-api.example.com"


# ------------------------------------------------------------------
# Soft outcomes
# ------------------------------------------------------------------

class TestSoftOutcomes:
    def test_empty_value_skips_without_remote_calls(self):
        h = Harness()
        result = h.reconciler.reconcile(ResolvedRecord(name="mfa-api", desired_value=""))
        assert result.outcome is Outcome.SKIPPED
        assert h.client.mock_calls == []
        assert h.lines == ["  skipping mfa-api (no value provided)"]

    def test_already_set_looks_up_but_does_not_update(self):
        h = Harness(records=[_zone_record(content="new-target.example.com")])
        result = h.reconciler.reconcile(BROKER)
        assert result.outcome is Outcome.ALREADY_SET
        h.client.list_records.assert_called_once_with(
            "token", "z1", name="acme-id-broker.example.com"
        )
        h.client.update_record.assert_not_called()
        assert h.prompts == []
        assert "CNAME acme-id-broker is already set to new-target.example.com" in h.lines

    def test_second_run_is_idempotent(self):
        h = Harness(answers=["yes"])
        assert h.reconciler.reconcile(BROKER).outcome is Outcome.UPDATED
        h.client.list_records.return_value = [_zone_record(content="new-target.example.com")]
        assert h.reconciler.reconcile(BROKER).outcome is Outcome.ALREADY_SET
        assert h.client.update_record.call_count == 1

    def test_dry_run_never_prompts_or_updates(self):
        h = Harness(answers=["yes"], dry_run=True)
        result = h.reconciler.reconcile(BROKER)
        assert result.outcome is Outcome.DRY_RUN
        assert result.previous == "old-target.example.com"
        assert h.prompts == []
        h.client.update_record.assert_not_called()
        assert "  test mode: skipping API call" in h.lines


# ------------------------------------------------------------------
# Confirmation gate
# ------------------------------------------------------------------

class TestConfirmation:
    def test_yes_updates_once(self):
        h = Harness(answers=["yes"])
        result = h.reconciler.reconcile(BROKER)
        assert result.outcome is Outcome.UPDATED
        assert h.prompts == ['Type "yes" to set this DNS record']
        h.client.update_record.assert_called_once()
        args = h.client.update_record.call_args.args
        assert args[:3] == ("token", "z1", "r1")
        assert args[3]["content"] == "new-target.example.com"
        assert args[3]["type"] == "CNAME"
        assert args[3]["name"] == "acme-id-broker.example.com"

    @pytest.mark.parametrize("answer", ["y", "", "Yes", "YES", "yes ", " yes", "no"])
    def test_anything_else_declines(self, answer):
        h = Harness(answers=[answer])
        result = h.reconciler.reconcile(BROKER)
        assert result.outcome is Outcome.DECLINED
        h.client.update_record.assert_not_called()
        assert "  declined, acme-id-broker left unchanged" in h.lines

    def test_declined_run_continues(self):
        other = ResolvedRecord(name="acme-ssp", desired_value="ssp.example.net")
        h = Harness(answers=["y", "yes"])
        summary = h.reconciler.run([BROKER, other])
        assert [r.outcome for r in summary.results] == [Outcome.DECLINED, Outcome.UPDATED]
        assert h.client.update_record.call_count == 1


# ------------------------------------------------------------------
# Fatal errors
# ------------------------------------------------------------------

class TestFatalErrors:
    @pytest.mark.parametrize("records", [[], [_zone_record(rid="r1"), _zone_record(rid="r2")]])
    def test_lookup_must_match_exactly_one(self, records):
        h = Harness(records=records)
        with pytest.raises(RecordLookupError) as exc_info:
            h.reconciler.reconcile(BROKER)
        assert exc_info.value.name == "acme-id-broker"
        h.client.update_record.assert_not_called()

    def test_lookup_api_failure(self):
        h = Harness()
        h.client.list_records.side_effect = CloudflareAPIError(500, [{"message": "boom"}])
        with pytest.raises(RecordLookupError, match="boom"):
            h.reconciler.reconcile(BROKER)

    def test_lookup_error_aborts_remaining_records(self):
        later = ResolvedRecord(name="acme-ssp", desired_value="ssp.example.net")
        h = Harness(records=[])
        with pytest.raises(RecordLookupError):
            h.reconciler.run([BROKER, later])
        assert h.client.list_records.call_count == 1

    def test_write_failure(self):
        h = Harness(answers=["yes"])
        h.client.update_record.side_effect = CloudflareAPIError(400, [{"message": "bad content"}])
        with pytest.raises(RecordWriteError, match="acme-id-broker") as exc_info:
            h.reconciler.reconcile(BROKER)
        assert isinstance(exc_info.value.cause, CloudflareAPIError)


# ------------------------------------------------------------------
# End to end over the catalog
# ------------------------------------------------------------------

class TestRun:
    def test_catalog_run_only_touches_configured_records(self):
        options = OptionSource(
            {"id-broker-value": "new-target.example.com"}, environ={}, config={}
        )
        h = Harness(answers=["yes"])
        summary = h.reconciler.run(resolve_records("acme", options))
        assert summary.count(Outcome.SKIPPED) == 7
        assert summary.count(Outcome.UPDATED) == 1
        h.client.list_records.assert_called_once_with(
            "token", "z1", name="acme-id-broker.example.com"
        )
        assert h.lines[0] == "Setting DNS records to secondary..."

    def test_summary_text(self):
        summary = RunSummary()
        assert summary.summary == "No records"


# ------------------------------------------------------------------
# connect
# ------------------------------------------------------------------

class TestConnect:
    def test_builds_context(self):
        client = MagicMock()
        client.zone_id_by_name.return_value = "z1"
        lines = []
        config = ReconcilerConfig(domain_name="example.com", idp_key="acme")
        ctx = connect(config, "token", client=client, echo=lines.append)
        assert ctx.zone_id == "z1"
        assert lines == ["Using domain name example.com with ID z1"]

    def test_missing_token(self):
        config = ReconcilerConfig(domain_name="example.com", idp_key="acme")
        with pytest.raises(ConfigurationError, match="cloudflare-token"):
            connect(config, "", client=MagicMock())

    def test_unknown_zone(self):
        client = MagicMock()
        client.zone_id_by_name.side_effect = CloudflareAPIError(404, [{"message": "no zone"}])
        config = ReconcilerConfig(domain_name="example.com", idp_key="acme")
        with pytest.raises(ConfigurationError, match="example.com"):
            connect(config, "token", client=client)
