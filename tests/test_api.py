# -*- encoding: utf-8 -*-
"""
Tests for pgpwot.api.wot - the WebOfTrust interface.
"""

import pytest

from pgpwot.api.wot import (
    AuthenticationLevel,
    Binding,
    BindingList,
    WebOfTrust,
)
from pgpwot.dsl import parse_network
from pgpwot.network.primitives import Identifier
from pgpwot.network.roots import Root, Roots

ALICE = "Alice <alice@example.org>"
BOB = "Bob <bob@example.org>"
BOB_WORK = "Bob <bob@work.example>"
CAROL = "Carol <carol@example.org>"
DAVE = "Dave <dave@example.org>"

NETWORK = f'''
at 2023-01-01
node alice "{ALICE}"
node bob "{BOB}" "{BOB_WORK}"
node carol "{CAROL}"
node dave "{DAVE}"
alice delegates bob depth 1
alice certifies bob "{BOB}"
bob certifies carol "{CAROL}" amount 60
root alice
'''


@pytest.fixture
def description():
    return parse_network(NETWORK)


@pytest.fixture
def wot(description):
    return WebOfTrust(description.network, description.roots)


# ── Authenticate ─────────────────────────────────────────────────────


class TestAuthenticate:
    """Authentication of single bindings."""

    def test_fully_authenticated(self, wot):
        result = wot.authenticate("bob", BOB)
        assert result.acceptable
        assert result.binding.amount == 120
        assert result.percentage == 100
        assert result.binding.fingerprint == Identifier("BOB")
        assert result.binding.paths.best().path.length == 2

    @pytest.mark.parametrize("amount", [0, -1])
    def test_trust_amount_must_be_positive(self, description, amount):
        with pytest.raises(ValueError, match="Trust amount must be positive"):
            WebOfTrust(description.network, description.roots, trust_amount=amount)

    def test_through_delegation(self, wot):
        result = wot.authenticate("bob", BOB_WORK)
        assert result.acceptable
        assert result.binding.paths.best().path.length == 3

    def test_partially_authenticated(self, wot):
        result = wot.authenticate("carol", CAROL)
        assert not result.acceptable
        assert result.binding.amount == 60
        assert result.percentage == 50

    def test_not_authenticated(self, wot):
        result = wot.authenticate("dave", DAVE)
        assert result.binding.amount == 0
        assert not result.binding.paths
        assert result.percentage == 0

    def test_lower_trust_amount(self, description):
        wot = WebOfTrust(description.network, description.roots,
                         trust_amount=AuthenticationLevel.PARTIALLY)
        result = wot.authenticate("carol", CAROL)
        assert result.acceptable
        assert result.percentage == 150

    def test_by_email(self, wot):
        result = wot.authenticate("bob", "bob@work.example", email=True)
        assert result.binding.user_id == BOB_WORK
        assert result.binding.amount == 120

    def test_by_email_without_match(self, wot):
        result = wot.authenticate("bob", "nobody@example.org", email=True)
        assert result.binding.user_id == "nobody@example.org"
        assert result.binding.amount == 0

    def test_to_dict(self, wot):
        d = wot.authenticate("carol", CAROL).to_dict()
        assert d["fingerprint"] == "CAROL"
        assert d["user_id"] == CAROL
        assert d["amount"] == 60
        assert d["target_amount"] == 120
        assert d["percentage"] == 50
        assert d["acceptable"] is False
        assert d["paths"][0]["certificates"] == ["ALICE", "BOB", "CAROL"]


# ── Identify, List and Lookup ────────────────────────────────────────


class TestBindingQueries:
    """Queries returning several bindings."""

    def test_identify(self, wot):
        bindings = wot.identify("bob")
        assert [b.user_id for b in bindings] == [BOB, BOB_WORK]
        assert all(b.amount == 120 for b in bindings)

    def test_identify_unknown(self, wot):
        assert not wot.identify("F00F")

    def test_identify_without_paths(self, wot):
        assert len(wot.identify("dave")) == 0

    def test_list(self, wot):
        bindings = wot.list()
        assert [(str(b.fingerprint), b.user_id) for b in bindings] == [
            ("ALICE", ALICE), ("BOB", BOB), ("BOB", BOB_WORK), ("CAROL", CAROL)]

    def test_lookup(self, wot):
        bindings = wot.lookup(CAROL)
        assert len(bindings) == 1
        assert bindings.bindings[0].amount == 60

    def test_lookup_by_email(self, wot):
        bindings = wot.lookup("bob@work.example", email=True)
        assert [b.user_id for b in bindings] == [BOB_WORK]

    def test_lookup_email_needs_angle_brackets(self, wot):
        assert not wot.lookup("work.example", email=True)

    def test_lookup_without_paths(self, wot):
        assert not wot.lookup(DAVE)

    def test_binding_list_to_dict(self, wot):
        d = wot.identify("bob").to_dict()
        assert d["target_amount"] == 120
        assert len(d["bindings"]) == 2


# ── Path ─────────────────────────────────────────────────────────────


class TestPath:
    """Checking caller supplied paths."""

    def test_valid_path(self, wot):
        result = wot.path("alice", ["bob", "carol"], CAROL)
        assert result.valid
        assert result.amount == 60
        assert not result.acceptable
        assert [str(n.fingerprint) for n in result.path.certificates] == [
            "ALICE", "BOB", "CAROL"]
        assert result.path.components[0].is_delegation

    def test_direct_certification(self, wot):
        result = wot.path("alice", ["bob"], BOB)
        assert result.acceptable
        assert result.amount == 120

    def test_self_signed(self, wot):
        result = wot.path("alice", [], ALICE)
        assert result.acceptable
        assert result.path.length == 2

    def test_missing_certification(self, wot):
        result = wot.path("alice", ["carol"], CAROL)
        assert not result.valid
        assert result.amount == 0
        assert "No usable certification" in result.errors[0]

    def test_insufficient_depth(self, wot):
        result = wot.path("alice", ["bob", "carol", "dave"], DAVE)
        assert not result.valid
        assert result.errors[0] == "No usable delegation by ALICE on BOB"

    def test_unknown_certificate(self, wot):
        result = wot.path("alice", ["F00F"], CAROL)
        assert result.path is None
        assert result.errors == ["F00F is not in the network"]
        assert result.to_dict()["path"] is None

    def test_partial_root_caps_path(self, description):
        wot = WebOfTrust(description.network, Roots([Root("alice", 50)]))
        result = wot.path("alice", ["bob"], BOB)
        assert result.valid
        assert result.amount == 50

    def test_to_dict(self, wot):
        d = wot.path("alice", ["bob"], BOB).to_dict()
        assert d["valid"] is True
        assert d["acceptable"] is True
        assert d["errors"] == []
        assert d["path"]["root"] == "ALICE"


# ── Queued Requests ──────────────────────────────────────────────────


class TestProcess:
    """Deck based request processing."""

    def test_process(self, wot):
        wot.requests.push(("r1", "authenticate", {"fingerprint": "bob", "user_id": BOB}))
        wot.requests.push(("r2", "identify", {"fingerprint": "bob"}))
        wot.requests.push(("r3", "list", None))
        assert wot.process() == 3

        request_id, result = wot.results.pull()
        assert request_id == "r1"
        assert result.acceptable
        request_id, result = wot.results.pull()
        assert request_id == "r2"
        assert len(result) == 2
        request_id, result = wot.results.pull()
        assert request_id == "r3"
        assert isinstance(result, BindingList)
        assert wot.results.pull(emptive=True) is None

    def test_empty(self, wot):
        assert wot.process() == 0
        assert wot.results.pull(emptive=True) is None

    def test_process_twice(self, wot):
        wot.requests.push(("r1", "identify", {"fingerprint": "carol"}))
        assert wot.process() == 1
        assert wot.process() == 0
        wot.requests.push(("r2", "lookup", {"user_id": CAROL}))
        assert wot.process() == 1
        assert [wot.results.pull()[0], wot.results.pull()[0]] == ["r1", "r2"]

    def test_unknown_operation(self, wot):
        wot.requests.push(("r1", "delete", {}))
        with pytest.raises(ValueError, match="Unknown operation"):
            wot.process()


class TestBinding:
    """Binding value type."""

    def test_empty_binding(self):
        binding = Binding(Identifier("A"), "<a@example.org>")
        assert binding.amount == 0
        assert binding.percentage(120) == 0
        assert binding.to_dict()["paths"] == []

    def test_levels(self):
        assert AuthenticationLevel.PARTIALLY == 40
        assert AuthenticationLevel.FULLY == 120
        assert AuthenticationLevel.DOUBLY == 240
