"""
pgpwot Grammar - Lark EBNF grammar for the network description language.

A description is a sequence of statements:
- at DATE: reference time of the network
- node NAME ...: a certificate with user IDs, expiry and revocation
- NAME delegates NAME ...: a delegation (direct-key trust signature)
- NAME certifies NAME "user id" ...: a certification of a user ID
- root NAME [amount N]: a trust root

Keywords are lower case. Comments start with "--" and run to the end of
the line.
"""

WOT_GRAMMAR = r'''
start: statement*

?statement: reference_time
          | node_decl
          | delegation
          | certification
          | root_decl

reference_time: "at" DATE

node_decl: "node" NAME node_attr*

?node_attr: STRING                          -> user_id
          | "userid" STRING revocation      -> revoked_user_id
          | "expires" DATE                  -> node_expires
          | revocation                      -> node_revoked

revocation: "revoked" "hard"                -> hard_revocation
          | "revoked" "soft" DATE           -> soft_revocation

delegation: NAME "delegates" NAME signature_opt*

certification: NAME "certifies" NAME STRING signature_opt*

signature_opt: "amount" NUMBER              -> opt_amount
             | "depth" NUMBER               -> opt_depth
             | "depth" "unconstrained"      -> opt_unconstrained
             | "regex" STRING               -> opt_regex
             | "on" DATE                    -> opt_created
             | "expires" DATE               -> opt_expires
             | "local"                      -> opt_local

root_decl: "root" NAME ("amount" NUMBER)?

// Terminals
DATE: /\d{4}-\d{2}-\d{2}(T\d{2}:\d{2}(:\d{2})?)?/
NAME: /[A-Za-z0-9_]+/
NUMBER: /[0-9]+/
STRING: /"[^"]*"/

// Whitespace and comments
%import common.WS
%ignore WS
COMMENT: /--[^\n]*/
%ignore COMMENT
'''


def get_grammar() -> str:
    """Return the network description grammar string for use with Lark."""
    return WOT_GRAMMAR
