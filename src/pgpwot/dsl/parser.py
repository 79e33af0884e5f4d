"""
pgpwot Parser - Lark-based parser for the network description language.

Parses network descriptions into a Network and its trust Roots. Used to
author networks for tests, fixtures and the tool server.

Example:
    description = parse_network('''
        at 2023-01-01
        node alice "<alice@example.org>"
        node bob "<bob@example.org>"
        alice certifies bob "<bob@example.org>" amount 120
        root alice
    ''')
    wot = WebOfTrust(description.network, description.roots)
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from lark import Lark, Transformer
from lark.exceptions import LarkError, UnexpectedInput

from pgpwot.dsl.grammar import get_grammar
from pgpwot.exceptions import NetworkParseError
from pgpwot.network.edge import EdgeComponent
from pgpwot.network.network import Network, NetworkBuilder
from pgpwot.network.node import Node
from pgpwot.network.primitives import (
    FULLY_TRUSTED,
    Identifier,
    RegexSet,
    RevocationState,
    TrustDepth,
    utcnow,
)
from pgpwot.network.roots import Root, Roots


@dataclass
class NetworkDescription:
    """
    Result of parsing a network description.

    Attributes:
        network: the described network
        roots: trust roots declared with "root"
        names: declared node names mapped to their identifiers
    """
    network: Network
    roots: Roots
    names: dict[str, Identifier] = field(default_factory=dict)

    def fingerprint(self, name: str) -> Identifier:
        return self.names[name]


class WotTransformer(Transformer):
    """
    Lark Transformer that turns the parse tree into statement tuples.

    Values stay raw strings where conversion can fail, so that errors are
    reported by NetworkParser with the offending statement.
    """

    # --- Terminal handling ---

    def NAME(self, token):
        return str(token)

    def NUMBER(self, token):
        return int(token)

    def DATE(self, token):
        return str(token)

    def STRING(self, token):
        # Remove surrounding quotes
        return str(token)[1:-1]

    # --- Revocation ---

    def hard_revocation(self, _):
        return ("hard", None)

    def soft_revocation(self, items):
        return ("soft", items[0])

    # --- Node attributes ---

    def user_id(self, items):
        return ("user_id", items[0], None)

    def revoked_user_id(self, items):
        return ("user_id", items[0], items[1])

    def node_expires(self, items):
        return ("expires", items[0])

    def node_revoked(self, items):
        return ("revoked", items[0])

    # --- Signature options ---

    def opt_amount(self, items):
        return ("amount", items[0])

    def opt_depth(self, items):
        return ("depth", items[0])

    def opt_unconstrained(self, _):
        return ("depth", TrustDepth.unconstrained().value)

    def opt_regex(self, items):
        return ("regex", items[0])

    def opt_created(self, items):
        return ("created", items[0])

    def opt_expires(self, items):
        return ("expires", items[0])

    def opt_local(self, _):
        return ("local", True)

    # --- Statements ---

    def reference_time(self, items):
        return ("at", items[0])

    def node_decl(self, items):
        return ("node", items[0], items[1:])

    def delegation(self, items):
        return ("delegates", items[0], items[1], None, items[2:])

    def certification(self, items):
        return ("certifies", items[0], items[1], items[2], items[3:])

    def root_decl(self, items):
        amount = items[1] if len(items) > 1 else FULLY_TRUSTED
        return ("root", items[0], amount)

    def start(self, items):
        return list(items)


def _parse_date(value: str) -> datetime:
    try:
        moment = datetime.fromisoformat(value)
    except ValueError as ex:
        raise NetworkParseError(f"Invalid date {value!r}: {ex}") from ex
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def _revocation(revocation: Optional[tuple]) -> RevocationState:
    if revocation is None:
        return RevocationState.not_revoked()
    kind, timestamp = revocation
    if kind == "hard":
        return RevocationState.hard_revoked()
    return RevocationState.soft_revoked(_parse_date(timestamp))


class NetworkParser:
    """
    Network description parser using Lark.

    Example:
        parser = NetworkParser()
        description = parser.parse(text)
    """

    def __init__(self):
        self._parser = Lark(
            get_grammar(),
            parser='lalr',
            transformer=WotTransformer(),
        )

    def parse(self, text: str, reference_time: Optional[datetime] = None) -> NetworkDescription:
        """
        Parse a network description.

        Args:
            text: the description
            reference_time: fallback when the text has no "at" statement,
                defaults to now

        Returns:
            NetworkDescription with the network and its roots

        Raises:
            NetworkParseError: on syntax errors, undeclared or duplicate
                nodes, and invalid values
        """
        try:
            statements = self._parser.parse(text)
        except UnexpectedInput as ex:
            raise NetworkParseError(str(ex), line=ex.line, column=ex.column) from ex
        except LarkError as ex:
            raise NetworkParseError(str(ex)) from ex

        return self._build(statements, reference_time)

    def _build(self, statements: list, reference_time: Optional[datetime]) -> NetworkDescription:
        for statement in statements:
            if statement[0] == "at":
                reference_time = _parse_date(statement[1])
        if reference_time is None:
            reference_time = utcnow()

        builder = NetworkBuilder().set_reference_time(reference_time)
        names: dict[str, Identifier] = {}

        for statement in statements:
            if statement[0] == "node":
                _, name, attrs = statement
                if name in names:
                    raise NetworkParseError(f"Node {name} is declared twice")
                names[name] = Identifier(name)
                builder.add_node(self._node(name, attrs))

        def lookup(name: str) -> Node:
            if name not in names:
                raise NetworkParseError(f"Node {name} is not declared")
            return builder.nodes[names[name]]

        roots: list[Root] = []
        for statement in statements:
            kind = statement[0]
            if kind in ("delegates", "certifies"):
                _, issuer, target, user_id, opts = statement
                builder.add_component(
                    self._component(lookup(issuer), lookup(target), user_id, opts, reference_time))
            elif kind == "root":
                _, name, amount = statement
                roots.append(Root(lookup(name).fingerprint, amount))

        return NetworkDescription(builder.build(), Roots(roots), names)

    @staticmethod
    def _node(name: str, attrs: list) -> Node:
        expiration_time = None
        revocation = RevocationState.not_revoked()
        user_ids: dict[str, RevocationState] = {}
        for attr in attrs:
            if attr[0] == "user_id":
                user_ids[attr[1]] = _revocation(attr[2])
            elif attr[0] == "expires":
                expiration_time = _parse_date(attr[1])
            elif attr[0] == "revoked":
                revocation = _revocation(attr[1])
        return Node(Identifier(name), expiration_time, revocation, user_ids)

    @staticmethod
    def _component(issuer: Node, target: Node, user_id: Optional[str], opts: list,
                   reference_time: datetime) -> EdgeComponent:
        values = {"amount": FULLY_TRUSTED, "depth": 0, "created": None, "expires": None,
                  "local": False}
        regexes = []
        for key, value in opts:
            if key == "regex":
                regexes.append(value)
            else:
                values[key] = value

        try:
            depth = TrustDepth.auto(values["depth"])
            kwargs = dict(
                trust_amount=values["amount"],
                trust_depth=depth,
                regexes=RegexSet.from_expressions(regexes),
                expiration_time=_parse_date(values["expires"]) if values["expires"] else None,
                exportable=not values["local"],
            )
            created = _parse_date(values["created"]) if values["created"] else reference_time
            if user_id is None:
                return EdgeComponent.delegation(issuer, target, created, **kwargs)
            return EdgeComponent.certification(issuer, target, user_id, created, **kwargs)
        except ValueError as ex:
            raise NetworkParseError(
                f"Invalid signature {issuer.fingerprint} -> {target.fingerprint}: {ex}") from ex


def parse_network(text: str, reference_time: Optional[datetime] = None) -> NetworkDescription:
    """
    Convenience function to parse a network description.

    Creates a parser instance and parses the text.
    For repeated parsing, use NetworkParser directly for better performance.

    Args:
        text: the description
        reference_time: fallback when the text has no "at" statement

    Returns:
        NetworkDescription with the network and its roots
    """
    parser = NetworkParser()
    return parser.parse(text, reference_time)
