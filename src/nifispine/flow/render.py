"""Box-drawing rendering of an ownership tree.

Example output for a root group rendered with ``is_root=True``::

    NiFi Flow (Process Group)
    ├─ Ingest (Process Group)
    │ ├─ PutFile (Processor)
    │ └─ in (Input Port)
    └─ GenerateFlowFile (Processor)

Siblings are ordered by kind, name, then id, so the output is stable.
"""

from __future__ import annotations

from nifispine.flow.tree import OwnershipTree

BRANCH = "├─ "
LAST_BRANCH = "└─ "
CONTINUATION = "│ "
BLANK = "  "


def render(tree: OwnershipTree, is_root: bool = True, line_prefix: str = "") -> list[str]:
    """Render ``tree`` as lines of text, without trailing newlines.

    At the root level entries are printed flush, without connector; every
    level below adds a connector and one indentation step.
    """
    lines: list[str] = []
    nodes = tree.nodes()
    for index, node in enumerate(nodes):
        last = index + 1 == len(nodes)
        if is_root:
            connector, extension = "", ""
        elif last:
            connector, extension = LAST_BRANCH, BLANK
        else:
            connector, extension = BRANCH, CONTINUATION

        lines.append(f"{line_prefix}{connector}{node.component}")
        lines.extend(render(node.children, False, line_prefix + extension))
    return lines


def render_text(tree: OwnershipTree) -> str:
    """Whole rendering as one string, one line per component."""
    return "".join(f"{line}\n" for line in render(tree))


__all__ = ["render", "render_text", "BRANCH", "LAST_BRANCH", "CONTINUATION", "BLANK"]
