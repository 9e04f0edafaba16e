"""
Data model for the connection forest.

Entities and relations are the immutable input snapshot. TreeNodes are the
working and output representation; the Forest owns every node in a table keyed
by entity identifier, and a node's parent is referenced only by identifier.
"""
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Dict, Iterator, List, Optional


# ===| ENUMS |===

class IterationOrder(StrEnum):
    """Order in which the builder visits entities."""
    INPUT = "input"                # Entity list order
    ASCENDING_ID = "ascending_id"  # Sorted by entity identifier


class CyclePolicy(StrEnum):
    """How the builder refuses attachments that would create a cycle."""
    MUTUAL = "mutual"      # Refuse only A -> B when B -> A is already attached
    ANCESTOR = "ancestor"  # Refuse any attachment whose parent chain reaches the child


# ===| INPUT |===

@dataclass(frozen=True, slots=True)
class Entity:
    """A user to be placed in the forest."""
    entity_id: int
    source: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Relation:
    """`actor_id` added `target_id` at `created_at` (ISO-8601)."""
    actor_id: int
    target_id: int
    created_at: str


@dataclass(frozen=True)
class Snapshot:
    """A complete, static set of entities and relations."""
    entities: List[Entity] = field(default_factory=list)
    relations: List[Relation] = field(default_factory=list)


# ===| OUTPUT |===

@dataclass(eq=False)
class TreeNode:
    """A node in the forest. `color` stays None until propagation assigns it."""
    entity_id: int
    source: Optional[str] = None
    color: Optional[str] = None
    children: List["TreeNode"] = field(default_factory=list)
    parent_id: Optional[int] = None

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    def iter_subtree(self) -> Iterator["TreeNode"]:
        """Pre-order walk of this node and its descendants."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def __repr__(self) -> str:
        return (
            f"TreeNode(entity_id={self.entity_id!r}, source={self.source!r}, "
            f"color={self.color!r}, parent_id={self.parent_id!r}, "
            f"children={[c.entity_id for c in self.children]!r})"
        )


@dataclass
class Forest:
    """Owns every TreeNode built from one snapshot."""
    nodes: Dict[int, TreeNode] = field(default_factory=dict)
    roots: List[TreeNode] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.nodes)

    def reachable_ids(self) -> List[int]:
        """Identifiers reachable from some root, in pre-order."""
        return [n.entity_id for root in self.roots for n in root.iter_subtree()]

    def unreachable_ids(self) -> List[int]:
        """Nodes whose parent chain never reaches a root (cycles of length >= 3)."""
        reachable = set(self.reachable_ids())
        return [entity_id for entity_id in self.nodes if entity_id not in reachable]
