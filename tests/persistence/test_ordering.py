import logging

import pytest

from forgeorm.core import RelationType
from forgeorm.persistence import (
    HandleRegistry,
    IdentityMap,
    PendingDelete,
    PendingInsert,
    PendingUpdate,
    RelationshipTracker,
    UnresolvedDependencyError,
    order_operations,
)

from sample_entities import Comment, Post, User


@pytest.fixture
def registry():
    return HandleRegistry()


def insert(registry, entity):
    return PendingInsert(registry.handle_for(entity), entity)


def edge(registry, parent, child, fk):
    return RelationshipTracker(registry.handle_for(parent), registry.handle_for(child), fk, RelationType.HAS_MANY)


def test_parent_insert_is_placed_before_child(registry):
    user, post = User(name="u"), Post(title="p")
    child_op, parent_op = insert(registry, post), insert(registry, user)

    ordered = order_operations([child_op, parent_op], [edge(registry, user, post, "user_id")], IdentityMap())

    assert ordered == [parent_op, child_op]


def test_chain_is_resolved_within_passes(registry):
    user, post, comment = User(name="u"), Post(title="p"), Comment(body="c")
    ops = [insert(registry, comment), insert(registry, post), insert(registry, user)]
    edges = [edge(registry, user, post, "user_id"), edge(registry, post, comment, "post_id")]

    ordered = order_operations(ops, edges, IdentityMap())

    assert [op.original for op in ordered] == [user, post, comment]


def test_parent_with_known_key_does_not_block(registry):
    user, post = User(name="u"), Post(title="p")
    identity_map = IdentityMap()
    identity_map.add(registry.handle_for(user), 1)
    ops = [insert(registry, post), insert(registry, user)]

    ordered = order_operations(ops, [edge(registry, user, post, "user_id")], identity_map)

    assert ordered == ops


def test_parent_without_pending_insert_does_not_block(registry):
    user, post = User(name="u"), Post(title="p")
    child_op = insert(registry, post)

    ordered = order_operations([child_op], [edge(registry, user, post, "user_id")], IdentityMap())

    assert ordered == [child_op]


def test_inserts_then_updates_then_deletes(registry):
    doomed, changed, fresh = User(name="d"), User(name="c"), User(name="f")
    delete_op = PendingDelete(registry.handle_for(doomed), doomed)
    update_op = PendingUpdate(registry.handle_for(changed), changed)
    insert_op = insert(registry, fresh)

    ordered = order_operations([delete_op, update_op, insert_op], [], IdentityMap())

    assert ordered == [insert_op, update_op, delete_op]


def test_cycle_is_forced_through_with_warning(registry, caplog):
    first, second = Post(title="a"), Post(title="b")
    ops = [insert(registry, first), insert(registry, second)]
    edges = [edge(registry, first, second, "user_id"), edge(registry, second, first, "user_id")]
    logger = logging.getLogger("forgeorm.tests.ordering")

    with caplog.at_level(logging.WARNING, logger=logger.name):
        ordered = order_operations(ops, edges, IdentityMap(), logger=logger)

    assert ordered == ops
    assert len([r for r in caplog.records if r.name == logger.name]) == 1


def test_strict_mode_raises_on_cycle(registry):
    first, second = Post(title="a"), Post(title="b")
    ops = [insert(registry, first), insert(registry, second)]
    edges = [edge(registry, first, second, "user_id"), edge(registry, second, first, "user_id")]

    with pytest.raises(UnresolvedDependencyError) as excinfo:
        order_operations(ops, edges, IdentityMap(), strict=True)

    assert excinfo.value.entities == [first, second]


def test_relative_order_is_kept_for_independent_inserts(registry):
    entities = [User(name=str(i)) for i in range(5)]
    ops = [insert(registry, entity) for entity in entities]

    assert order_operations(ops, [], IdentityMap()) == ops
