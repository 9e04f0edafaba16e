"""
Tests for the Forest Builder.

These tests verify:
1. Each user's parent is the target of their earliest friendship
2. The forest stays consistent (one parent, mutual parent/children links)
3. Mutual first friendships do not form a cycle, with a fixed winner
4. Unknown targets and relation-less users are skipped silently
5. Duplicate users and malformed timestamps fail fast
"""

import pytest

from conntree.errors import DuplicateEntityError, InvalidTimestampError
from conntree.forest_builder import ForestBuilder, build
from conntree.models import CyclePolicy, Entity, IterationOrder, Relation
from conntree.synthetic import add_noise_relations, generate_layered_snapshot


def child_ids(node):
    return [c.entity_id for c in node.children]


def assert_forest_consistent(forest):
    """Parent/children agree and every user appears exactly once."""
    for node in forest.nodes.values():
        for child in node.children:
            assert child.parent_id == node.entity_id
        if node.parent_id is not None:
            parent = forest.nodes[node.parent_id]
            assert sum(1 for c in parent.children if c is node) == 1

    placed = forest.reachable_ids() + forest.unreachable_ids()
    assert sorted(placed) == sorted(forest.nodes)
    assert len(placed) == len(set(placed))


# =============================================================================
# FIXTURE SCENARIO
# =============================================================================

class TestFixtureScenario:
    """Four users, two of them declaring a source."""

    def test_single_root(self, fixture_entities, fixture_relations):
        roots = build(fixture_entities, fixture_relations)
        assert [r.entity_id for r in roots] == [1]

    def test_children_in_attachment_order(self, fixture_entities, fixture_relations):
        root = build(fixture_entities, fixture_relations)[0]
        assert child_ids(root) == [2, 3]
        node3 = root.children[1]
        assert child_ids(node3) == [4]
        assert node3.children[0].parent_id == 3

    def test_sources_carried_to_nodes(self, fixture_entities, fixture_relations):
        forest = ForestBuilder().build_forest(fixture_entities, fixture_relations)
        assert forest.nodes[1].source == "link"
        assert forest.nodes[2].source is None
        assert forest.nodes[3].source == "playmarket"

    def test_colors_unset_before_propagation(self, fixture_entities, fixture_relations):
        forest = ForestBuilder().build_forest(fixture_entities, fixture_relations)
        assert all(n.color is None for n in forest.nodes.values())

    def test_forest_consistent(self, fixture_entities, fixture_relations):
        forest = ForestBuilder().build_forest(fixture_entities, fixture_relations)
        assert_forest_consistent(forest)

    def test_inputs_not_mutated(self, fixture_entities, fixture_relations):
        relations_before = list(fixture_relations)
        entities_before = list(fixture_entities)
        build(fixture_entities, fixture_relations)
        assert fixture_relations == relations_before
        assert fixture_entities == entities_before


# =============================================================================
# EARLIEST-EDGE RULE
# =============================================================================

class TestEarliestRelation:
    """The first friendship decides the parent."""

    ENTITIES = [Entity(1), Entity(2), Entity(3)]
    EARLY = Relation(3, 2, "2023-01-01T10:00:00Z")
    LATE = Relation(3, 1, "2023-01-05T10:00:00Z")

    def test_earliest_target_wins(self):
        forest = ForestBuilder().build_forest(self.ENTITIES, [self.EARLY, self.LATE])
        assert forest.nodes[3].parent_id == 2

    def test_independent_of_relation_order(self):
        forest = ForestBuilder().build_forest(self.ENTITIES, [self.LATE, self.EARLY])
        assert forest.nodes[3].parent_id == 2

    def test_equal_timestamps_keep_input_order(self):
        first = Relation(3, 1, "2023-01-01T10:00:00Z")
        second = Relation(3, 2, "2023-01-01T10:00:00Z")

        forest = ForestBuilder().build_forest(self.ENTITIES, [first, second])
        assert forest.nodes[3].parent_id == 1

        forest = ForestBuilder().build_forest(self.ENTITIES, [second, first])
        assert forest.nodes[3].parent_id == 2

    def test_timezones_compared_as_instants(self):
        # 12:00+05:00 is 07:00Z, earlier than 08:00Z
        offset = Relation(3, 1, "2023-01-01T12:00:00+05:00")
        utc = Relation(3, 2, "2023-01-01T08:00:00Z")
        forest = ForestBuilder().build_forest(self.ENTITIES, [utc, offset])
        assert forest.nodes[3].parent_id == 1

    def test_relation_is_evidence_about_actor_only(self):
        forest = ForestBuilder().build_forest(self.ENTITIES, [self.EARLY])
        assert forest.nodes[3].parent_id == 2
        assert forest.nodes[2].parent_id is None

    def test_earliest_relation_empty(self):
        assert ForestBuilder.earliest_relation([]) is None


# =============================================================================
# CYCLE GUARD
# =============================================================================

class TestCycleGuard:
    """Two users who befriended each other first."""

    RELATIONS = [
        Relation(1, 2, "2023-01-01T10:00:00Z"),
        Relation(2, 1, "2023-01-02T10:00:00Z"),
    ]

    def test_input_order_first_visited_attaches(self):
        roots = build([Entity(1), Entity(2)], self.RELATIONS)
        assert [r.entity_id for r in roots] == [2]
        assert child_ids(roots[0]) == [1]

    def test_input_order_follows_entity_list(self):
        roots = build([Entity(2), Entity(1)], self.RELATIONS)
        assert [r.entity_id for r in roots] == [1]
        assert child_ids(roots[0]) == [2]

    def test_ascending_id_ignores_entity_list_order(self):
        for entities in ([Entity(1), Entity(2)], [Entity(2), Entity(1)]):
            roots = build(entities, self.RELATIONS, iteration_order=IterationOrder.ASCENDING_ID)
            assert [r.entity_id for r in roots] == [2]
            assert child_ids(roots[0]) == [1]

    def test_no_mutual_parents(self):
        forest = ForestBuilder().build_forest([Entity(1), Entity(2)], self.RELATIONS)
        assert not (forest.nodes[1].parent_id == 2 and forest.nodes[2].parent_id == 1)
        assert_forest_consistent(forest)

    def test_self_friendship_ignored(self):
        forest = ForestBuilder().build_forest([Entity(1)], [Relation(1, 1, "2023-01-01T10:00:00Z")])
        assert forest.nodes[1].parent_id is None
        assert forest.nodes[1].children == []


class TestLongerCycles:
    """Three users each befriending the next one first."""

    ENTITIES = [Entity(1), Entity(2), Entity(3)]
    RELATIONS = [
        Relation(1, 2, "2023-01-01T10:00:00Z"),
        Relation(2, 3, "2023-01-01T11:00:00Z"),
        Relation(3, 1, "2023-01-01T12:00:00Z"),
    ]

    def test_mutual_policy_leaves_cycle_unreachable(self):
        forest = ForestBuilder(cycle_policy=CyclePolicy.MUTUAL).build_forest(self.ENTITIES, self.RELATIONS)
        assert forest.roots == []
        assert forest.unreachable_ids() == [1, 2, 3]
        assert_forest_consistent(forest)

    def test_ancestor_policy_breaks_cycle(self):
        forest = ForestBuilder(cycle_policy=CyclePolicy.ANCESTOR).build_forest(self.ENTITIES, self.RELATIONS)
        assert [r.entity_id for r in forest.roots] == [3]
        assert forest.nodes[2].parent_id == 3
        assert forest.nodes[1].parent_id == 2
        assert forest.unreachable_ids() == []
        assert_forest_consistent(forest)

    def test_ancestor_policy_matches_mutual_for_pairs(self):
        pair = TestCycleGuard.RELATIONS
        mutual = build([Entity(1), Entity(2)], pair, cycle_policy=CyclePolicy.MUTUAL)
        ancestor = build([Entity(1), Entity(2)], pair, cycle_policy=CyclePolicy.ANCESTOR)
        assert [r.entity_id for r in mutual] == [r.entity_id for r in ancestor] == [2]


# =============================================================================
# SILENT SKIPS
# =============================================================================

class TestSilentSkips:
    """Incomplete data is not an error."""

    def test_unknown_target_leaves_root(self):
        forest = ForestBuilder().build_forest(
            [Entity(1), Entity(2)],
            [Relation(1, 99, "2023-01-01T10:00:00Z")],
        )
        assert forest.nodes[1].parent_id is None
        assert 99 not in forest.nodes
        assert [r.entity_id for r in forest.roots] == [1, 2]

    def test_unknown_earliest_target_does_not_fall_back(self):
        forest = ForestBuilder().build_forest(
            [Entity(1), Entity(2)],
            [
                Relation(1, 99, "2023-01-01T10:00:00Z"),
                Relation(1, 2, "2023-01-02T10:00:00Z"),
            ],
        )
        assert forest.nodes[1].parent_id is None

    def test_users_without_relations_are_roots(self):
        roots = build([Entity(5), Entity(3), Entity(7)], [])
        assert [r.entity_id for r in roots] == [5, 3, 7]

    def test_relations_from_unknown_actors_ignored(self):
        forest = ForestBuilder().build_forest(
            [Entity(1)],
            [Relation(42, 1, "2023-01-01T10:00:00Z")],
        )
        assert forest.nodes[1].children == []

    def test_empty_input(self):
        assert build([], []) == []


# =============================================================================
# FAIL-FAST ERRORS
# =============================================================================

class TestProgrammerErrors:
    """Duplicate users and unreadable timestamps are rejected."""

    def test_duplicate_entity_rejected(self):
        with pytest.raises(DuplicateEntityError) as exc_info:
            build([Entity(1, "link"), Entity(1, "playmarket")], [])
        assert exc_info.value.entity_id == 1

    def test_malformed_timestamp_rejected(self):
        with pytest.raises(InvalidTimestampError) as exc_info:
            build(
                [Entity(1), Entity(2), Entity(3)],
                [
                    Relation(1, 2, "2023-01-01T10:00:00Z"),
                    Relation(1, 3, "yesterday-ish"),
                ],
            )
        assert exc_info.value.actor_id == 1

    def test_malformed_timestamp_on_single_relation_rejected(self):
        with pytest.raises(InvalidTimestampError):
            build([Entity(1), Entity(2)], [Relation(1, 2, "not a date")])

    def test_empty_timestamp_rejected(self):
        with pytest.raises(InvalidTimestampError):
            build([Entity(1), Entity(2)], [Relation(1, 2, "")])

    def test_errors_are_value_errors(self):
        with pytest.raises(ValueError):
            build([Entity(1), Entity(1)], [])


# =============================================================================
# SYNTHETIC SNAPSHOTS
# =============================================================================

class TestSyntheticForests:
    """Generated layered snapshots rebuild their generating trees."""

    @pytest.mark.parametrize("seed", [0, 1, 7, 42])
    def test_forest_consistent(self, seed):
        snapshot = generate_layered_snapshot(root_count=4, layers=4, seed=seed)
        forest = ForestBuilder().build_forest(snapshot.entities, snapshot.relations)
        assert_forest_consistent(forest)
        assert [r.entity_id for r in forest.roots] == [1, 2, 3, 4]
        assert forest.unreachable_ids() == []

    @pytest.mark.parametrize("seed", [3, 11])
    def test_later_relations_do_not_change_parents(self, seed):
        clean = generate_layered_snapshot(root_count=3, layers=3, seed=seed)
        noisy = add_noise_relations(clean, count=40, seed=seed)

        expected = {r.actor_id: r.target_id for r in clean.relations}
        forest = ForestBuilder().build_forest(noisy.entities, noisy.relations)

        for entity_id, node in forest.nodes.items():
            assert node.parent_id == expected.get(entity_id)
        assert_forest_consistent(forest)
