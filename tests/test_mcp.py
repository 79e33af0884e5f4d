# -*- encoding: utf-8 -*-
"""
Tests for pgpwot.mcp.server - the JSON-RPC tool server.
"""

import io
import json
from unittest.mock import patch

import pytest

from pgpwot.dsl import parse_network
from pgpwot.mcp.server import PROTOCOL_VERSION, WotMCPServer

NETWORK = '''
at 2023-01-01
node alice "<alice@example.org>"
node bob "<bob@example.org>"
node carol "<carol@example.org>"
alice delegates bob depth 1
bob certifies carol "<carol@example.org>" amount 60
root alice
'''


@pytest.fixture
def server():
    return WotMCPServer(description=parse_network(NETWORK), trust_roots="", trust_amount=120,
                        certification_network=False)


def call(server, name, arguments=None):
    response = server.handle_request({
        "jsonrpc": "2.0", "id": 7, "method": "tools/call",
        "params": {"name": name, "arguments": arguments or {}},
    })
    return response, json.loads(response["result"]["content"][0]["text"])


# ── Protocol ─────────────────────────────────────────────────────────


class TestProtocol:
    """JSON-RPC handling."""

    def test_initialize(self, server):
        response = server.handle_request({"jsonrpc": "2.0", "id": 1, "method": "initialize"})
        assert response["id"] == 1
        assert response["result"]["protocolVersion"] == PROTOCOL_VERSION
        assert response["result"]["serverInfo"]["name"] == "pgpwot"

    def test_tools_list(self, server):
        response = server.handle_request({"jsonrpc": "2.0", "id": 2, "method": "tools/list"})
        names = [tool["name"] for tool in response["result"]["tools"]]
        assert names == ["wot_authenticate", "wot_identify", "wot_list",
                         "wot_lookup", "wot_path", "wot_stats"]

    def test_notification_has_no_response(self, server):
        assert server.handle_request({"jsonrpc": "2.0", "method": "notifications/initialized"}) is None

    def test_unknown_method(self, server):
        response = server.handle_request({"jsonrpc": "2.0", "id": 3, "method": "resources/list"})
        assert response["error"]["code"] == -32601

    def test_unknown_tool(self, server):
        response, result = call(server, "wot_delete")
        assert response["result"]["isError"] is True
        assert result["error"] == "Unknown tool: wot_delete"

    def test_run(self, server):
        requests = "\n".join([
            json.dumps({"jsonrpc": "2.0", "id": 1, "method": "initialize"}),
            "not json",
            json.dumps({"jsonrpc": "2.0", "method": "notifications/initialized"}),
            json.dumps({"jsonrpc": "2.0", "id": 2, "method": "tools/list"}),
        ]) + "\n"
        stdout = io.StringIO()
        with patch("sys.stdin", io.StringIO(requests)), patch("sys.stdout", stdout):
            server.run()
        responses = [json.loads(line) for line in stdout.getvalue().splitlines()]
        assert [r["id"] for r in responses] == [1, 2]


# ── Tools ────────────────────────────────────────────────────────────


class TestTools:
    """Tool calls against a parsed network."""

    def test_authenticate(self, server):
        response, result = call(server, "wot_authenticate",
                                {"fingerprint": "CAROL", "user_id": "<carol@example.org>"})
        assert response["result"]["isError"] is False
        assert result["amount"] == 60
        assert result["acceptable"] is False
        assert result["text"].startswith("[ ] CAROL <carol@example.org>: partially authenticated (50%)")

    def test_authenticate_email(self, server):
        _, result = call(server, "wot_authenticate",
                         {"fingerprint": "BOB", "user_id": "bob@example.org", "email": True})
        assert result["user_id"] == "<bob@example.org>"
        assert result["amount"] == 120

    def test_identify(self, server):
        _, result = call(server, "wot_identify", {"fingerprint": "BOB"})
        assert result["fingerprint"] == "BOB"
        assert [b["user_id"] for b in result["bindings"]] == ["<bob@example.org>"]

    def test_list(self, server):
        _, result = call(server, "wot_list")
        assert result["count"] == 3

    def test_lookup(self, server):
        _, result = call(server, "wot_lookup", {"user_id": "carol@example.org", "email": True})
        assert result["count"] == 1
        assert result["bindings"][0]["fingerprint"] == "CAROL"

    def test_path(self, server):
        _, result = call(server, "wot_path", {"fingerprints": ["ALICE", "BOB", "CAROL"],
                                              "user_id": "<carol@example.org>"})
        assert result["valid"] is True
        assert result["amount"] == 60

    def test_empty_path(self, server):
        response, result = call(server, "wot_path", {"fingerprints": [], "user_id": "x"})
        assert response["result"]["isError"] is True
        assert "at least one certificate" in result["error"]

    def test_failing_tool_reports_error(self, server):
        response, result = call(server, "wot_path", {"fingerprints": 5, "user_id": "x"})
        assert response["result"]["isError"] is True
        assert result["error"].startswith("Tool wot_path failed:")
        assert result["tool"] == "wot_path"

    def test_server_survives_failing_tool(self, server):
        requests = "\n".join([
            json.dumps({"jsonrpc": "2.0", "id": 1, "method": "tools/call",
                        "params": {"name": "wot_path", "arguments": {"fingerprints": 5}}}),
            json.dumps({"jsonrpc": "2.0", "id": 2, "method": "tools/call",
                        "params": {"name": "wot_list", "arguments": {}}}),
        ]) + "\n"
        stdout = io.StringIO()
        with patch("sys.stdin", io.StringIO(requests)), patch("sys.stdout", stdout):
            server.run()
        responses = [json.loads(line) for line in stdout.getvalue().splitlines()]
        assert [r["result"]["isError"] for r in responses] == [True, False]

    def test_stats(self, server):
        _, result = call(server, "wot_stats")
        assert result["nodes"] == 3
        assert result["edges"] == 2
        assert result["signatures"] == 2
        assert result["roots"] == [{"fingerprint": "ALICE", "amount": 120}]
        assert result["trust_amount"] == 120
        assert result["certification_network"] is False

    def test_extra_roots(self):
        server = WotMCPServer(description=parse_network(NETWORK), trust_roots="BOB:30")
        _, result = call(server, "wot_stats")
        assert result["roots"] == [{"fingerprint": "ALICE", "amount": 120},
                                   {"fingerprint": "BOB", "amount": 30}]


# ── Configuration ────────────────────────────────────────────────────


class TestConfiguration:
    """Environment configuration and lazy loading."""

    def test_no_network(self, monkeypatch):
        monkeypatch.delenv("WOT_NETWORK_FILE", raising=False)
        response, result = call(WotMCPServer(), "wot_list")
        assert response["result"]["isError"] is True
        assert "WOT_NETWORK_FILE" in result["error"]

    def test_network_file_from_env(self, monkeypatch, tmp_path):
        network_file = tmp_path / "network.wot"
        network_file.write_text(NETWORK, encoding="utf-8")
        monkeypatch.setenv("WOT_NETWORK_FILE", str(network_file))
        monkeypatch.setenv("WOT_TRUST_AMOUNT", "40")
        monkeypatch.setenv("WOT_CERTIFICATION_NETWORK", "true")
        monkeypatch.delenv("WOT_TRUST_ROOTS", raising=False)

        _, result = call(WotMCPServer(), "wot_stats")
        assert result["nodes"] == 3
        assert result["trust_amount"] == 40
        assert result["certification_network"] is True

    @pytest.mark.parametrize("amount", [0, -5])
    def test_non_positive_trust_amount(self, amount):
        with pytest.raises(ValueError, match="Trust amount must be positive"):
            WotMCPServer(description=parse_network(NETWORK), trust_amount=amount)

    def test_zero_trust_amount_from_env(self, monkeypatch):
        monkeypatch.setenv("WOT_TRUST_AMOUNT", "0")
        with pytest.raises(ValueError, match="Trust amount must be positive"):
            WotMCPServer(description=parse_network(NETWORK))

    def test_missing_file(self, tmp_path):
        server = WotMCPServer(network_file=tmp_path / "missing.wot")
        _, result = call(server, "wot_stats")
        assert result["error"].startswith("Failed to read network file")

    def test_parse_error(self, tmp_path):
        network_file = tmp_path / "broken.wot"
        network_file.write_text("node alice\nalice trusts bob\n", encoding="utf-8")
        response, result = call(WotMCPServer(network_file=network_file), "wot_stats")
        assert response["result"]["isError"] is True
        assert result["error"] == "NetworkParseError"
        assert result["line"] == 2

    def test_invalid_roots(self):
        server = WotMCPServer(description=parse_network(NETWORK), trust_roots="BOB:lots")
        _, result = call(server, "wot_stats")
        assert result["error"].startswith("Invalid WOT_TRUST_ROOTS")

    def test_network_loaded_once(self, tmp_path):
        network_file = tmp_path / "network.wot"
        network_file.write_text(NETWORK, encoding="utf-8")
        server = WotMCPServer(network_file=network_file)
        call(server, "wot_stats")
        network_file.unlink()
        _, result = call(server, "wot_list")
        assert result["count"] == 3
