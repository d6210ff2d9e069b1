"""Tests for {{NAME}} and {{OTP}} substitution."""

from __future__ import annotations

from adapters.secret_stores import InMemorySecretStore
from core.services.placeholders import (
    find_placeholders,
    is_placeholder_reference,
    resolve_otp,
    resolve_secrets,
)


class TestResolveSecrets:
    def test_bearer_token(self) -> None:
        store = InMemorySecretStore({"TOKEN": "abc"})
        assert resolve_secrets("Bearer {{TOKEN}}", store) == "Bearer abc"

    def test_unknown_left_untouched(self) -> None:
        assert resolve_secrets("{{MISSING}}", InMemorySecretStore()) == "{{MISSING}}"

    def test_every_occurrence_replaced(self) -> None:
        text = '{"a": "{{K}}", "b": "{{K}}"}'
        assert resolve_secrets(text, {"K": "v"}) == '{"a": "v", "b": "v"}'

    def test_case_sensitive(self) -> None:
        assert resolve_secrets("{{token}}", {"TOKEN": "abc"}) == "{{token}}"

    def test_empty_name_never_substituted(self) -> None:
        assert resolve_secrets("x{{}}y", {"": "boom"}) == "x{{}}y"

    def test_overlapping_names(self) -> None:
        secrets = {"KEY": "short", "KEY2": "long"}
        assert resolve_secrets("{{KEY}}-{{KEY2}}", secrets) == "short-long"

    def test_idempotent_on_resolved_text(self) -> None:
        secrets = {"TOKEN": "abc", "USER": "bob"}
        once = resolve_secrets("{{USER}}:{{TOKEN}}", secrets)
        assert resolve_secrets(once, secrets) == once

    def test_accepts_mapping_snapshot(self) -> None:
        store = InMemorySecretStore({"A": "1"})
        assert resolve_secrets("{{A}}", store.snapshot()) == "1"


class TestResolveOTP:
    def test_replaces_every_token(self) -> None:
        assert resolve_otp("{{OTP}} / {{OTP}}", "123456") == "123456 / 123456"

    def test_none_leaves_token(self) -> None:
        assert resolve_otp('{"otp": "{{OTP}}"}', None) == '{"otp": "{{OTP}}"}'

    def test_token_is_case_sensitive(self) -> None:
        assert resolve_otp("{{otp}}", "123456") == "{{otp}}"


class TestHelpers:
    def test_find_placeholders_in_order(self) -> None:
        assert find_placeholders("{{B}} {{A}} {{B}} {{OTP}}") == ["B", "A", "OTP"]

    def test_is_placeholder_reference(self) -> None:
        assert is_placeholder_reference("{{TOTP_KEY}}")
        assert is_placeholder_reference("  {{TOTP_KEY}} ")
        assert not is_placeholder_reference("JBSWY3DPEHPK3PXP")
        assert not is_placeholder_reference("{{A}}{{B}}")
        assert not is_placeholder_reference("prefix {{A}}")
        assert not is_placeholder_reference("{{}}")
