# -*- encoding: utf-8 -*-
"""
pgpwot Text Formatter - Human-readable rendering of bindings.

Renders bindings and their paths in the style of sq-wot:

Example Output:
    [✓] AAAA... Alice <alice@example.org>: fully authenticated (100%)
      ◯ BBBB... ("Bob <bob@example.org>")
      │   certified the following binding on 2023-01-01
      └ AAAA... "Alice <alice@example.org>"

Usage:
    from pgpwot.export import format_result

    print(format_result(wot.authenticate(fpr, uid)))
"""

from datetime import datetime
from typing import Iterable, Union

from pgpwot.api.wot import AuthenticationLevel, AuthenticationResult, Binding, BindingList
from pgpwot.network.edge import EdgeComponent
from pgpwot.network.primitives import FULLY_TRUSTED

NO_PATHS = "Could not authenticate any paths."

DATE_FORMAT = "%Y-%m-%d"


def authentication_level(amount: int) -> str:
    """Adverb describing how well `amount` authenticates a binding."""
    if amount >= AuthenticationLevel.DOUBLY:
        return "doubly"
    if amount >= AuthenticationLevel.FULLY:
        return "fully"
    if amount >= AuthenticationLevel.PARTIALLY:
        return "partially"
    if amount > 0:
        return "marginally"
    return "not"


def _date(moment: datetime) -> str:
    return moment.strftime(DATE_FORMAT)


def _certification_degree(amount: int) -> str:
    if amount >= FULLY_TRUSTED:
        return "certified"
    return f"partially certified (amount: {amount} of {FULLY_TRUSTED})"


def _introducer_type(component: EdgeComponent) -> str:
    if not component.trust_depth > 0:
        return ""
    if component.trust_amount < FULLY_TRUSTED:
        degree = f"partially trusted ({component.trust_amount} of {FULLY_TRUSTED}) "
    else:
        degree = "fully trusted "
    role = "introducer" if component.trust_depth == 1 else "meta-introducer"
    return f" as a {degree}{role} (depth: {component.trust_depth})"


def format_binding(binding: Binding, amount_min: int = FULLY_TRUSTED,
                   amount_reference: int = FULLY_TRUSTED) -> str:
    """
    Render one binding with all of its paths.

    Args:
        binding: binding to render
        amount_min: amount at which the binding gets a checkmark
        amount_reference: amount that counts as 100%

    Returns:
        multi-line string, terminated by a newline
    """
    items = binding.paths.items
    single = len(items) == 1
    indent = " " * (2 if single else 4)
    checkmark = "[✓] " if binding.amount >= amount_min else "[ ] "

    lines = [f"{checkmark}{binding.fingerprint} {binding.user_id}: "
             f"{authentication_level(binding.amount)} authenticated "
             f"({binding.percentage(amount_reference)}%)"]

    for index, item in enumerate(items):
        path = item.path
        if not single:
            lines.append(f"  Path #{index + 1} of {len(items)}, trust amount {path.amount}:")

        root_uid = path.root.primary_user_id
        if root_uid is None:
            origin = ""
        elif path.root.fingerprint == path.target.fingerprint:
            origin = f' "{root_uid}"'
        else:
            origin = f' ("{root_uid}")'
        lines.append(f"{indent}◯ {path.root.fingerprint}{origin}")

        components = path.components
        for position, component in enumerate(components):
            last = position == len(components) - 1
            shown_uid = component.user_id or component.target.primary_user_id
            if shown_uid is None:
                target_uid = ""
            elif last:
                target_uid = f' "{shown_uid}"'
            else:
                target_uid = f' ("{shown_uid}")'

            expiry = ""
            if component.expiration_time is not None:
                expiry = f" (expiry: {_date(component.expiration_time)})"
            lines.append(f"{indent}│   {_certification_degree(component.trust_amount)} "
                         f"the following {'binding' if last else 'certificate'} "
                         f"on {_date(component.creation_time)}{expiry}"
                         f"{_introducer_type(component)}")
            lines.append(f"{indent}{'└' if last else '├'} {component.target.fingerprint}{target_uid}")

        if index != len(items) - 1:
            lines.append("")

    return "\n".join(lines) + "\n"


def format_bindings(bindings: Iterable[Binding], amount_min: int = FULLY_TRUSTED,
                    amount_reference: int = FULLY_TRUSTED) -> str:
    """Render several bindings separated by blank lines."""
    rendered = [format_binding(b, amount_min, amount_reference) for b in bindings]
    if not rendered:
        return NO_PATHS + "\n"
    return "\n".join(rendered)


def format_result(result: Union[AuthenticationResult, BindingList]) -> str:
    """
    Render the result of an authenticate, identify, list or lookup call.

    Returns NO_PATHS when nothing was authenticated.
    """
    if isinstance(result, AuthenticationResult):
        if not result.binding.paths:
            return NO_PATHS + "\n"
        return format_binding(result.binding, result.target_amount, result.target_amount)
    return format_bindings(result.bindings, result.target_amount, result.target_amount)
