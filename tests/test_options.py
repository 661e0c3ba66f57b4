"""Tests for core.options — layered option lookup and the config file."""

import json

import pytest

from dnsfailover.core.options import (
    OptionSource,
    env_var_name,
    load_config,
    parse_overrides,
    set_config,
    unset_config,
)


class TestOptionSource:
    def test_default_when_unset(self):
        opts = OptionSource({}, environ={}, config={})
        assert opts.get("domain-name", "fallback") == "fallback"
        assert opts.get("id-broker-value") == ""

    def test_priority_override_env_file(self):
        env = {"DNSFAILOVER_DOMAIN_NAME": "env.example.com"}
        cfg = {"domain-name": "file.example.com"}
        assert OptionSource({"domain-name": "cli.example.com"}, environ=env, config=cfg) \
            .get("domain-name") == "cli.example.com"
        assert OptionSource({}, environ=env, config=cfg).get("domain-name") == "env.example.com"
        assert OptionSource({}, environ={}, config=cfg).get("domain-name") == "file.example.com"

    def test_empty_values_fall_through(self):
        opts = OptionSource(
            {"idp": ""}, environ={"DNSFAILOVER_IDP": ""}, config={"idp": "acme"}
        )
        assert opts.get("idp") == "acme"

    def test_source_of(self):
        opts = OptionSource({"idp": "acme"}, environ={}, config={"domain-name": "x.com"})
        assert opts.source_of("idp") == "command line"
        assert opts.source_of("domain-name") == "config file"
        assert opts.source_of("cloudflare-token") is None

    def test_env_var_name(self):
        assert env_var_name("id-broker-value") == "DNSFAILOVER_ID_BROKER_VALUE"

    def test_from_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"idp": "acme"}))
        opts = OptionSource.from_file(path)
        assert opts.get("idp") == "acme"


class TestParseOverrides:
    def test_pairs(self):
        assert parse_overrides(["a=1", "b=x=y", "c="]) == {"a": "1", "b": "x=y", "c": ""}

    @pytest.mark.parametrize("bad", ["novalue", "=value"])
    def test_invalid(self, bad):
        with pytest.raises(ValueError, match="KEY=VALUE"):
            parse_overrides([bad])


class TestConfigFile:
    def test_missing_file(self, tmp_path):
        assert load_config(tmp_path / "nope.json") == {}

    def test_corrupt_file_is_ignored(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json")
        assert load_config(path) == {}

    def test_non_object_is_ignored(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("[1, 2]")
        assert load_config(path) == {}

    def test_set_and_unset(self, tmp_path):
        path = tmp_path / "sub" / "config.json"
        set_config("idp", "acme", path)
        set_config("domain-name", "example.com", path)
        assert load_config(path) == {"idp": "acme", "domain-name": "example.com"}
        assert unset_config("idp", path) is True
        assert unset_config("idp", path) is False
        assert load_config(path) == {"domain-name": "example.com"}
