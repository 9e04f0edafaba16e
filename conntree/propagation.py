"""
Attribute Propagator

Assigns every node a resolved color, top-down. A node that declares a known
source takes that source's color; otherwise it copies its parent's resolved
color. Roots without a known source take the default color.
"""
from typing import Iterable, List, Mapping, Optional, Tuple

from conntree.logger import get_logger
from conntree.models import TreeNode

logger = get_logger(__name__)


def declared_color(node: TreeNode, category_colors: Mapping[str, str]) -> Optional[str]:
    """Color of the node's own declaration, or None if it has no known one."""
    if not node.source:
        return None
    return category_colors.get(node.source)


def propagate(
    roots: Iterable[TreeNode],
    category_colors: Mapping[str, str],
    default_color: str,
) -> None:
    """
    Resolve colors in place, pre-order, with an explicit stack so deep chains
    do not hit the interpreter's recursion limit.
    """
    visited = 0
    overrides = 0
    # (node, color inherited from the parent or the default for a root)
    stack: List[Tuple[TreeNode, str]] = [(root, default_color) for root in reversed(list(roots))]

    while stack:
        node, inherited = stack.pop()
        own = declared_color(node, category_colors)
        if own is not None:
            node.color = own
            overrides += 1
        else:
            node.color = inherited
        visited += 1

        for child in reversed(node.children):
            stack.append((child, node.color))

    logger.debug(f"Propagated colors to {visited} nodes ({overrides} explicit declarations)")