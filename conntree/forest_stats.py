from dataclasses import dataclass, field
from typing import Any, Dict, List

from conntree.logger import get_logger
from conntree.models import Forest

logger = get_logger(__name__)


@dataclass
class ForestStats:
    """Summary figures for a built and colored forest."""
    total_nodes: int = 0
    root_count: int = 0
    attached_count: int = 0
    max_depth: int = 0
    largest_tree_size: int = 0
    unreachable_ids: List[int] = field(default_factory=list)
    color_distribution: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_nodes": self.total_nodes,
            "root_count": self.root_count,
            "attached_count": self.attached_count,
            "max_depth": self.max_depth,
            "largest_tree_size": self.largest_tree_size,
            "unreachable_ids": list(self.unreachable_ids),
            "color_distribution": dict(self.color_distribution),
        }


def compute_forest_stats(forest: Forest) -> ForestStats:
    """
    Walk every tree once. Depth counts nodes, so a lone root has depth 1 and
    an empty forest has depth 0.
    """
    stats = ForestStats(
        total_nodes=len(forest.nodes),
        root_count=len(forest.roots),
        attached_count=sum(1 for n in forest.nodes.values() if not n.is_root),
    )

    colors: Dict[str, int] = {}
    for root in forest.roots:
        tree_size = 0
        stack = [(root, 1)]
        while stack:
            node, depth = stack.pop()
            tree_size += 1
            stats.max_depth = max(stats.max_depth, depth)
            key = node.color if node.color is not None else "unset"
            colors[key] = colors.get(key, 0) + 1
            stack.extend((child, depth + 1) for child in node.children)
        stats.largest_tree_size = max(stats.largest_tree_size, tree_size)

    stats.color_distribution = dict(sorted(colors.items()))
    stats.unreachable_ids = forest.unreachable_ids()
    return stats


def log_forest_stats(stats: ForestStats) -> None:
    logger.info("Forest Report:")
    logger.info(f"  Users: {stats.total_nodes}")
    logger.info(f"  Roots: {stats.root_count}")
    logger.info(f"  Attached: {stats.attached_count}")
    logger.info(f"  Max depth: {stats.max_depth}")
    logger.info(f"  Largest tree: {stats.largest_tree_size}")
    logger.info(f"  Colors: {stats.color_distribution}")
    if stats.unreachable_ids:
        logger.warning(f"  Unreachable users: {stats.unreachable_ids}")
