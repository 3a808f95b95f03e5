import pytest

from forgeorm.hooks import HookDispatcher, hooks

from sample_entities import Post, User, make_orm


@pytest.fixture(autouse=True)
def clear_hooks():
    hooks.clear()
    yield
    hooks.clear()


def test_hooks_fire_in_order_for_insert_update_delete(tmp_path):
    events = []
    for event_name in [
        "before_insert",
        "after_insert",
        "before_update",
        "after_update",
        "before_delete",
        "after_delete",
        "after_flush",
    ]:
        def handler(inst, event=event_name, **ctx):
            events.append((event, inst.name if inst is not None else None))

        hooks.register(event_name, handler)

    orm = make_orm(tmp_path)
    em = orm.entity_manager
    tracked = em.persist(User(name="Alice"))
    em.flush()
    tracked.name = "Alicia"
    em.persist(tracked)
    em.flush()
    em.remove(tracked)
    em.flush()

    assert events == [
        ("before_insert", "Alice"),
        ("after_insert", "Alice"),
        ("after_flush", None),
        ("before_update", "Alicia"),
        ("after_update", "Alicia"),
        ("after_flush", None),
        ("before_delete", "Alicia"),
        ("after_delete", "Alicia"),
        ("after_flush", None),
    ]
    orm.close()


def test_after_insert_sees_generated_id_and_manager(tmp_path):
    seen = []

    def handler(instance, *, entity_manager):
        seen.append((instance.id, entity_manager.is_managed(instance)))

    hooks.register("after_insert", handler)
    orm = make_orm(tmp_path)
    orm.entity_manager.persist(User(name="Bob"))
    orm.entity_manager.flush()

    assert seen == [(1, True)]
    orm.close()


def test_entity_type_handlers_only_fire_for_that_type(tmp_path):
    dispatcher = HookDispatcher()
    titles = []

    @dispatcher.on("before_insert", entity_type=Post)
    def capture(instance, **ctx):
        titles.append(instance.title)

    orm = make_orm(tmp_path, hook_dispatcher=dispatcher)
    orm.entity_manager.persist(User(name="Writer", posts=[Post(title="One"), Post(title="Two")]))
    orm.entity_manager.flush()

    assert titles == ["One", "Two"]
    orm.close()


def test_hook_failure_rolls_back_flush(tmp_path):
    dispatcher = HookDispatcher()

    def refuse(instance, **ctx):
        raise RuntimeError("refused")

    dispatcher.register("before_insert", refuse, entity_type=Post)
    orm = make_orm(tmp_path, hook_dispatcher=dispatcher)
    orm.entity_manager.persist(User(name="Writer", posts=[Post(title="Blocked")]))

    with pytest.raises(RuntimeError):
        orm.entity_manager.flush()

    assert orm.database.execute('SELECT COUNT(*) FROM "users"').scalar() == 0
    orm.close()


def test_unknown_event_is_rejected():
    with pytest.raises(ValueError):
        HookDispatcher().register("before_save", lambda instance, **ctx: None)


def test_after_flush_receives_executed_operations(tmp_path):
    flushed = []
    hooks.register("after_flush", lambda instance, **ctx: flushed.append(ctx["operations"]))
    orm = make_orm(tmp_path)
    orm.entity_manager.persist(User(name="Carol", posts=[Post(title="x")]))
    orm.entity_manager.flush()

    assert len(flushed) == 1
    assert [op.kind.value for op in flushed[0]] == ["insert", "insert"]
    orm.close()
