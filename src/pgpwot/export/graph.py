# -*- encoding: utf-8 -*-
"""
pgpwot Graph Exporters - Graphviz DOT and Mermaid renderings of paths.

Both exporters consume the paths of one or more bindings, merge them into
a single graph (every certificate once, every signature once) and render
it.

Example Output (DOT):
    digraph wot {
        rankdir=LR;
        node [shape=box];
        "AAAA..." [label="AAAA...\\nAlice <alice@example.org>", style=bold];
        "AAAA..." -> "BBBB..." [label="certifies \\"Bob <bob@example.org>\\" (120)"];
    }

Usage:
    from pgpwot.export import export_dot

    dot = export_dot(wot.lookup("bob@example.org", email=True))
    # dot -Tsvg wot.dot > wot.svg
"""

from dataclasses import dataclass, field
from typing import Iterable

from pgpwot.api.wot import Binding
from pgpwot.network.edge import EdgeComponent
from pgpwot.network.node import Node
from pgpwot.network.primitives import Identifier


@dataclass
class PathGraph:
    """
    Union of the certificates and signatures on a set of paths.

    Attributes:
        nodes: certificates, in order of first appearance
        components: signatures, in order of first appearance
        roots: fingerprints that start a path
        targets: fingerprints of the authenticated certificates
    """
    nodes: dict[Identifier, Node] = field(default_factory=dict)
    components: list[EdgeComponent] = field(default_factory=list)
    roots: set = field(default_factory=set)
    targets: set = field(default_factory=set)

    @classmethod
    def from_bindings(cls, bindings: Iterable[Binding]) -> "PathGraph":
        graph = cls()
        seen = set()
        for binding in bindings:
            graph.targets.add(Identifier(binding.fingerprint))
            for path in binding.paths.paths:
                graph.roots.add(path.root.fingerprint)
                for node in path.certificates:
                    graph.nodes.setdefault(node.fingerprint, node)
                for component in path.components:
                    key = (component.issuer.fingerprint, component.target.fingerprint,
                           component.user_id)
                    if key not in seen:
                        seen.add(key)
                        graph.components.append(component)
        return graph


def _label(component: EdgeComponent) -> str:
    if component.is_delegation:
        return f"delegates ({component.trust_amount}, depth {component.trust_depth})"
    if component.trust_depth > 0:
        return (f'certifies "{component.user_id}" and delegates '
                f"({component.trust_amount}, depth {component.trust_depth})")
    return f'certifies "{component.user_id}" ({component.trust_amount})'


def _dot_escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


def export_dot(bindings: Iterable[Binding], name: str = "wot", direction: str = "LR") -> str:
    """
    Generate a Graphviz digraph of all paths of `bindings`.

    Args:
        bindings: bindings whose paths are drawn
        name: graph name
        direction: rankdir, "LR" or "TB"

    Returns:
        DOT source as string
    """
    graph = PathGraph.from_bindings(bindings)
    lines = [f"digraph {name} {{", f"    rankdir={direction};", "    node [shape=box];"]

    for fpr, node in graph.nodes.items():
        label = str(fpr)
        if node.primary_user_id is not None:
            label += "\\n" + _dot_escape(node.primary_user_id)
        attrs = [f'label="{label}"']
        if fpr in graph.roots:
            attrs.append("style=bold")
        if fpr in graph.targets:
            attrs.append("peripheries=2")
        lines.append(f'    "{fpr}" [{", ".join(attrs)}];')

    for component in graph.components:
        lines.append(f'    "{component.issuer.fingerprint}" -> "{component.target.fingerprint}" '
                     f'[label="{_dot_escape(_label(component))}"];')

    lines.append("}")
    return "\n".join(lines)


def export_mermaid(bindings: Iterable[Binding], direction: str = "LR") -> str:
    """
    Generate a Mermaid flowchart of all paths of `bindings`.

    Output can be pasted into mermaid.live or embedded in Markdown.
    """
    graph = PathGraph.from_bindings(bindings)
    lines = [f"flowchart {direction}"]

    var = {fpr: f"n{idx}" for idx, fpr in enumerate(graph.nodes)}
    for fpr, node in graph.nodes.items():
        label = str(fpr)[:16]
        if node.primary_user_id is not None:
            label += "<br/>" + node.primary_user_id.replace('"', "'").replace("<", "&lt;").replace(">", "&gt;")
        lines.append(f'    {var[fpr]}["{label}"]')

    lines.append("")
    for component in graph.components:
        text = _label(component).replace('"', "'")
        lines.append(f'    {var[component.issuer.fingerprint]} -->|"{text}"| '
                     f'{var[component.target.fingerprint]}')

    if graph.roots:
        lines.append("")
        for fpr in sorted(graph.roots):
            lines.append(f"    style {var[fpr]} fill:#e8f5e9")

    return "\n".join(lines)
