"""
Forest Builder

Infers a single parent for every user from friendship history and links the
users into a forest of rooted trees.

Rule: a user's parent is the target of the user's earliest outgoing relation
("whom the user befriended first"). Relations are directed evidence about the
actor only; a relation A -> B never says anything about B's parent.

Determinism:
- Relations of one actor are stable-sorted by parsed timestamp, so relations
  with equal timestamps keep their input order.
- Entities are visited in the configured IterationOrder. When two users added
  each other first, the one visited first attaches and the other stays a root.
"""
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence

from conntree.errors import DuplicateEntityError
from conntree.logger import get_logger
from conntree.models import CyclePolicy, Entity, Forest, IterationOrder, Relation, TreeNode
from conntree.timestamps import TimestampUtils

logger = get_logger(__name__)


class ForestBuilder:
    """Builds a Forest from one snapshot of entities and relations."""

    def __init__(
        self,
        iteration_order: IterationOrder = IterationOrder.INPUT,
        cycle_policy: CyclePolicy = CyclePolicy.MUTUAL,
    ):
        self.iteration_order = IterationOrder(iteration_order)
        self.cycle_policy = CyclePolicy(cycle_policy)

    # ---| setup |---

    @staticmethod
    def _init_nodes(entities: Iterable[Entity]) -> Dict[int, TreeNode]:
        nodes: Dict[int, TreeNode] = {}
        for entity in entities:
            if entity.entity_id in nodes:
                raise DuplicateEntityError(entity.entity_id)
            nodes[entity.entity_id] = TreeNode(
                entity_id=entity.entity_id,
                source=entity.source or None,
            )
        return nodes

    @staticmethod
    def _group_by_actor(relations: Iterable[Relation]) -> Dict[int, List[Relation]]:
        by_actor: Dict[int, List[Relation]] = defaultdict(list)
        for relation in relations:
            by_actor[relation.actor_id].append(relation)
        return by_actor

    def _ordered_ids(self, nodes: Dict[int, TreeNode]) -> List[int]:
        if self.iteration_order == IterationOrder.ASCENDING_ID:
            return sorted(nodes)
        return list(nodes)

    # ---| parent resolution |---

    @staticmethod
    def earliest_relation(actor_relations: Sequence[Relation]) -> Optional[Relation]:
        """
        The relation with the smallest timestamp. Ties go to the relation that
        appears first in the input. Every timestamp is parsed, so a malformed
        one fails even when the actor has a single relation.
        """
        if not actor_relations:
            return None
        keyed = [
            (TimestampUtils.parse_strict(r.created_at, r.actor_id), position, r)
            for position, r in enumerate(actor_relations)
        ]
        keyed.sort(key=lambda item: (item[0], item[1]))
        return keyed[0][2]

    def _would_cycle(self, nodes: Dict[int, TreeNode], child_id: int, parent: TreeNode) -> bool:
        # A user who befriended themself first
        if parent.entity_id == child_id:
            return True
        if self.cycle_policy == CyclePolicy.MUTUAL:
            return parent.parent_id == child_id

        # Walk up from the candidate parent; reaching the child closes a cycle
        seen = set()
        current: Optional[TreeNode] = parent
        while current is not None:
            if current.entity_id == child_id:
                return True
            if current.entity_id in seen:
                return False
            seen.add(current.entity_id)
            current = nodes.get(current.parent_id) if current.parent_id is not None else None
        return False

    def build_forest(self, entities: Iterable[Entity], relations: Iterable[Relation]) -> Forest:
        """Resolve parents for all entities and return the owning Forest."""
        nodes = self._init_nodes(entities)
        by_actor = self._group_by_actor(relations)

        attached = 0
        skipped_unknown = 0
        skipped_cycle = 0

        for entity_id in self._ordered_ids(nodes):
            earliest = self.earliest_relation(by_actor.get(entity_id, ()))
            if earliest is None:
                continue

            node = nodes[entity_id]
            parent = nodes.get(earliest.target_id)
            if parent is None:
                logger.debug(f"User {entity_id}: first friend {earliest.target_id} is unknown, stays root")
                skipped_unknown += 1
                continue

            if self._would_cycle(nodes, entity_id, parent):
                logger.debug(f"User {entity_id}: attaching to {parent.entity_id} would form a cycle, skipped")
                skipped_cycle += 1
                continue

            node.parent_id = parent.entity_id
            parent.children.append(node)
            attached += 1

        roots = [nodes[entity_id] for entity_id in self._ordered_ids(nodes) if nodes[entity_id].parent_id is None]
        forest = Forest(nodes=nodes, roots=roots)

        logger.info(
            f"Built forest: {len(nodes)} users, {len(roots)} roots, {attached} attached, "
            f"{skipped_unknown} unknown first friends, {skipped_cycle} cycle skips"
        )
        unreachable = forest.unreachable_ids()
        if unreachable:
            logger.warning(
                f"{len(unreachable)} users sit on parent cycles longer than two nodes "
                f"and are unreachable from any root: {unreachable[:20]}"
            )
        return forest

    def build(self, entities: Iterable[Entity], relations: Iterable[Relation]) -> List[TreeNode]:
        """Resolve parents and return the roots in entity-iteration order."""
        return self.build_forest(entities, relations).roots


def build(
    entities: Iterable[Entity],
    relations: Iterable[Relation],
    iteration_order: IterationOrder = IterationOrder.INPUT,
    cycle_policy: CyclePolicy = CyclePolicy.MUTUAL,
) -> List[TreeNode]:
    """Build the forest and return its roots."""
    return ForestBuilder(iteration_order, cycle_policy).build(entities, relations)
