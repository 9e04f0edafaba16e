"""
Synthetic layered snapshots for demos and property tests.

Roots alternate sources (odd ids "playmarket", even ids "link"). Each layer
gives every user of the previous layer between 0 and `max_children` children,
and each child befriends its parent. Timestamps strictly increase in creation
order, so every child's first friendship is the one to its generating parent.
"""
import random
from typing import List, Optional

import pendulum

from conntree.logger import get_logger
from conntree.models import Entity, Relation, Snapshot
from conntree.timestamps import TimestampUtils

logger = get_logger(__name__)

DEFAULT_START = "2023-01-01T00:00:00Z"


def generate_layered_snapshot(
    root_count: int = 5,
    layers: int = 4,
    max_children: int = 3,
    seed: Optional[int] = None,
    start: Optional[str] = None,
    step_minutes: int = 1,
) -> Snapshot:
    if root_count < 0 or layers < 0 or max_children < 0:
        raise ValueError("root_count, layers and max_children must be non-negative")

    rng = random.Random(seed)
    clock = TimestampUtils.parse_strict(start or DEFAULT_START)

    entities: List[Entity] = [
        Entity(entity_id=i, source="link" if i % 2 == 0 else "playmarket")
        for i in range(1, root_count + 1)
    ]
    relations: List[Relation] = []

    next_id = root_count + 1
    previous_layer = [e.entity_id for e in entities]
    for _ in range(layers):
        next_layer: List[int] = []
        for parent_id in previous_layer:
            for _ in range(rng.randint(0, max_children)):
                child_id = next_id
                next_id += 1
                entities.append(Entity(entity_id=child_id))
                next_layer.append(child_id)
                clock = clock.add(minutes=step_minutes)
                relations.append(Relation(
                    actor_id=child_id,
                    target_id=parent_id,
                    created_at=clock.to_iso8601_string(),
                ))
        previous_layer = next_layer

    logger.debug(f"Generated synthetic snapshot: {len(entities)} users, {len(relations)} friendships")
    return Snapshot(entities=entities, relations=relations)


def add_noise_relations(
    snapshot: Snapshot,
    count: int,
    seed: Optional[int] = None,
    unknown_ratio: float = 0.2,
) -> Snapshot:
    """
    Append later friendships (some to users outside the snapshot) from users
    that already have one. All are newer than the existing ones, so parent
    inference must be unaffected.
    """
    rng = random.Random(seed)
    ids = [e.entity_id for e in snapshot.entities]
    actors = sorted({r.actor_id for r in snapshot.relations})
    if not actors:
        return snapshot

    latest = max(
        (TimestampUtils.parse_strict(r.created_at) for r in snapshot.relations),
        default=TimestampUtils.parse_strict(DEFAULT_START),
    )
    clock: pendulum.DateTime = latest.add(days=1)
    unknown_base = max(ids) + 1000

    noise: List[Relation] = []
    for i in range(count):
        actor = rng.choice(actors)
        if rng.random() < unknown_ratio:
            target = unknown_base + i
        else:
            target = rng.choice(ids)
        clock = clock.add(seconds=1)
        noise.append(Relation(actor_id=actor, target_id=target, created_at=clock.to_iso8601_string()))

    return Snapshot(entities=list(snapshot.entities), relations=list(snapshot.relations) + noise)
