import pytest

from forgeorm.core import EntityProxy, is_proxy, unwrap

from sample_entities import User


def make_proxy(target, calls):
    return EntityProxy(target, lambda entity, name, value: calls.append((entity, name, value)), frozenset({"name"}))


def test_proxy_reports_tracked_assignments_with_previous_value():
    calls = []
    user = User(name="old")

    def on_change(entity, name, previous):
        calls.append((name, entity.name, previous))

    proxy = EntityProxy(user, on_change, frozenset({"name"}))
    proxy.name = "new"

    assert calls == [("name", "new", "old")]
    assert user.name == "new"


def test_proxy_does_not_report_rejected_assignments():
    calls = []
    user = User(name="kept")
    proxy = make_proxy(user, calls)

    with pytest.raises(ValueError):
        proxy.name = None

    assert calls == []
    assert user.name == "kept"


def test_proxy_forwards_reads_and_untracked_writes():
    calls = []
    user = User(name="reader", email="r@example.com")
    proxy = make_proxy(user, calls)

    proxy.email = "other@example.com"

    assert proxy.email == "other@example.com"
    assert proxy.pk is None
    assert calls == []


def test_proxy_looks_like_its_entity():
    user = User(name="same")
    proxy = make_proxy(user, [])

    assert isinstance(proxy, User)
    assert proxy == user
    assert proxy != User(name="same")
    assert hash(proxy) == id(user)
    assert {proxy: 1}[proxy] == 1


def test_is_proxy_and_unwrap():
    user = User(name="plain")
    proxy = make_proxy(user, [])

    assert is_proxy(proxy)
    assert not is_proxy(user)
    assert unwrap(proxy) is user
    assert unwrap(user) is user
