# -*- encoding: utf-8 -*-
"""
Tests for pgpwot network value types: Identifier, TrustDepth, RegexSet,
RevocationState and Node.
"""

from datetime import datetime, timedelta, timezone

import pytest

from pgpwot.exceptions import DepthExhausted
from pgpwot.network.node import Node
from pgpwot.network.primitives import (
    Identifier,
    RegexSet,
    RevocationState,
    RevocationType,
    TrustDepth,
    to_seconds,
)

T0 = datetime(2023, 1, 1, tzinfo=timezone.utc)


# ── Identifier ───────────────────────────────────────────────────────


class TestIdentifier:
    """Case-insensitive fingerprints."""

    def test_normalized_to_upper_case(self):
        assert Identifier("abcdef").fingerprint == "ABCDEF"
        assert str(Identifier(" abc ")) == "ABC"

    def test_equality_and_hash_ignore_case(self):
        assert Identifier("abc") == Identifier("ABC")
        assert hash(Identifier("abc")) == hash(Identifier("ABC"))
        assert len({Identifier("abc"), Identifier("Abc")}) == 1

    def test_equal_to_plain_string(self):
        assert Identifier("ABC") == "abc"

    def test_ordering(self):
        assert Identifier("a") < Identifier("B")
        assert sorted([Identifier("c"), Identifier("A")]) == [Identifier("A"), Identifier("C")]

    def test_copy_from_identifier(self):
        fpr = Identifier("abc")
        assert Identifier(fpr) == fpr


# ── TrustDepth ───────────────────────────────────────────────────────


class TestTrustDepth:
    """Depth arithmetic and comparisons."""

    def test_limited_range(self):
        assert TrustDepth.limited(0).value == 0
        assert TrustDepth.limited(254).value == 254
        with pytest.raises(ValueError):
            TrustDepth.limited(255)
        with pytest.raises(ValueError):
            TrustDepth.limited(-1)

    def test_auto(self):
        assert TrustDepth.auto(255).is_unconstrained
        assert not TrustDepth.auto(3).is_unconstrained
        with pytest.raises(ValueError):
            TrustDepth.auto(256)

    def test_reduce_limited(self):
        assert TrustDepth.limited(3).reduce(1) == TrustDepth.limited(2)
        assert TrustDepth.limited(1).reduce(1) == TrustDepth.limited(0)

    def test_reduce_below_zero_fails(self):
        with pytest.raises(DepthExhausted):
            TrustDepth.limited(0).reduce(1)

    def test_reduce_unconstrained(self):
        depth = TrustDepth.unconstrained()
        assert depth.reduce(200).is_unconstrained

    def test_min(self):
        unconstrained = TrustDepth.unconstrained()
        assert TrustDepth.limited(2).min(TrustDepth.limited(5)).value == 2
        assert unconstrained.min(TrustDepth.limited(7)).value == 7
        assert TrustDepth.limited(7).min(unconstrained).value == 7
        assert unconstrained.min(unconstrained).is_unconstrained

    def test_compare_with_int(self):
        assert TrustDepth.limited(2) > 1
        assert TrustDepth.limited(2) >= 2
        assert TrustDepth.limited(2) < 3
        assert not TrustDepth.limited(0) > 0
        assert TrustDepth.limited(1) == 1

    def test_unconstrained_greater_than_any_int(self):
        depth = TrustDepth.unconstrained()
        assert depth > 254
        assert depth > 1000
        assert not depth < 1000
        assert depth != 255

    def test_str(self):
        assert str(TrustDepth.limited(4)) == "4"
        assert str(TrustDepth.unconstrained()) == "unconstrained"


# ── RegexSet ─────────────────────────────────────────────────────────


class TestRegexSet:
    """Scoping of delegations."""

    def test_wildcard_matches_everything(self):
        regexes = RegexSet.wildcard()
        assert regexes.is_wildcard
        assert regexes.matches("anything at all")

    def test_single_expression(self):
        regexes = RegexSet.from_expression(r"<[^>]+[@.]example\.org>$")
        assert regexes.matches("Alice <alice@example.org>")
        assert regexes.matches("<bob@sub.example.org>")
        assert not regexes.matches("<mallory@example.com>")

    def test_union_of_expressions(self):
        regexes = RegexSet.from_expressions([r"@foo\.org>$", r"@bar\.org>$"])
        assert regexes.matches("<a@foo.org>")
        assert regexes.matches("<b@bar.org>")
        assert not regexes.matches("<c@baz.org>")

    def test_for_domain(self):
        regexes = RegexSet.for_domain("example.org")
        assert regexes.matches("<alice@example.org>")
        assert not regexes.matches("<alice@example.org.evil.com>")

    def test_invalid_expression_never_matches(self):
        regexes = RegexSet.from_expression("([unclosed")
        assert not regexes.is_wildcard
        assert not regexes.matches("([unclosed")


# ── RevocationState ──────────────────────────────────────────────────


class TestRevocationState:
    """Revocation effectiveness at a reference time."""

    def test_not_revoked(self):
        state = RevocationState.not_revoked()
        assert state.type == RevocationType.NONE
        assert not state.is_revoked
        assert not state.is_effective(T0)

    def test_hard_always_effective(self):
        state = RevocationState.hard_revoked()
        assert state.is_hard
        assert state.is_effective(T0 - timedelta(days=10000))

    def test_soft_effective_from_timestamp(self):
        state = RevocationState.soft_revoked(T0)
        assert state.is_soft
        assert not state.is_effective(T0 - timedelta(seconds=1))
        assert state.is_effective(T0)
        assert state.is_effective(T0 + timedelta(days=1))

    def test_second_resolution(self):
        state = RevocationState.soft_revoked(T0 + timedelta(microseconds=900000))
        assert state.is_effective(T0)

    def test_naive_datetimes_are_utc(self):
        assert to_seconds(datetime(2023, 1, 1)) == to_seconds(T0)


# ── Node ─────────────────────────────────────────────────────────────


class TestNode:
    """Certificate synopsis."""

    def test_identity_is_fingerprint(self):
        a = Node(Identifier("A"), user_ids={"<a@example.org>": RevocationState.not_revoked()})
        b = Node(Identifier("a"), expiration_time=T0)
        assert a == b
        assert hash(a) == hash(b)

    def test_fingerprint_coerced(self):
        assert Node("abc").fingerprint == Identifier("ABC")

    def test_expiry_inclusive(self):
        node = Node("A", expiration_time=T0)
        assert not node.is_expired(T0 - timedelta(seconds=1))
        assert node.is_expired(T0)
        assert not Node("B").is_expired(T0)

    def test_user_ids_read_only(self):
        node = Node("A", user_ids={"<a@example.org>": RevocationState.not_revoked()})
        with pytest.raises(TypeError):
            node.user_ids["<b@example.org>"] = RevocationState.not_revoked()

    def test_with_user_id(self):
        node = Node("A").with_user_id("<a@example.org>")
        assert "<a@example.org>" in node.user_ids
        assert node.primary_user_id == "<a@example.org>"
        assert str(node) == "A (<a@example.org>)"

    def test_user_id_revocation_independent(self):
        node = Node("A", user_ids={"<a@example.org>": RevocationState.hard_revoked()})
        assert not node.revocation_state.is_revoked
        assert node.user_ids["<a@example.org>"].is_hard
