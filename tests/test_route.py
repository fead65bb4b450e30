"""Tests for Route action management and the default emitter."""

import re

import pytest

from hashroute import EventEmitter, Route


class Target:
    pass


def test_emitter_delivers_in_subscription_order():
    emitter = EventEmitter()
    target = Target()
    calls = []
    emitter.subscribe(target, "ping", lambda *args: calls.append(("first", args)))
    emitter.subscribe(target, "ping", lambda *args: calls.append(("second", args)))
    emitter.publish(target, "ping", ("a", 1))
    assert calls == [("first", ("a", 1)), ("second", ("a", 1))]


def test_emitter_scopes_handlers_per_target_and_event():
    emitter = EventEmitter()
    one, two = Target(), Target()
    calls = []
    emitter.subscribe(one, "ping", lambda *args: calls.append("one"))
    emitter.subscribe(two, "ping", lambda *args: calls.append("two"))
    emitter.subscribe(one, "pong", lambda *args: calls.append("pong"))
    emitter.publish(one, "ping")
    assert calls == ["one"]


def test_emitter_unsubscribe_specific_and_all():
    emitter = EventEmitter()
    target = Target()
    calls = []

    def first(*args):
        calls.append("first")

    def second(*args):
        calls.append("second")

    emitter.subscribe(target, "ping", first)
    emitter.subscribe(target, "ping", second)
    emitter.subscribe(target, "ping", first)
    emitter.unsubscribe(target, "ping", first)
    emitter.publish(target, "ping")
    assert calls == ["second"]

    emitter.unsubscribe(target, "ping")
    emitter.publish(target, "ping")
    assert calls == ["second"]
    # unknown pairs are ignored
    emitter.unsubscribe(Target(), "ping", first)


def test_emitter_publish_uses_snapshot():
    emitter = EventEmitter()
    target = Target()
    calls = []

    def late(*args):
        calls.append("late")

    def subscribing(*args):
        calls.append("subscribing")
        emitter.subscribe(target, "ping", late)

    emitter.subscribe(target, "ping", subscribing)
    emitter.publish(target, "ping")
    assert calls == ["subscribing"]
    emitter.publish(target, "ping")
    assert calls == ["subscribing", "subscribing", "late"]


def test_emitter_rejects_non_callable():
    with pytest.raises(TypeError):
        EventEmitter().subscribe(Target(), "ping", "nope")


def test_route_defaults():
    route = Route("/post/:id")
    assert route.name == "/post/:id"
    assert route.pattern == "/post/:id"
    assert route.param_names == ("id",)
    assert route.key == "/^/post/([^/]+)$/"
    assert route.match("/post/3") == ("3",)
    assert route.match("/other") is None
    assert route.router is None


def test_route_default_names():
    assert Route("").name == "*"
    assert Route(None).name == "*"
    assert Route(re.compile("^/x$")).name == "^/x$"
    assert Route("/x", name="home").name == "home"


def test_single_callable_attaches_wildcard_action():
    route = Route("/x")
    calls = []

    def action(method, *params):
        calls.append(method)

    assert route.attach_action(action) is route
    assert route.actions("*") == (action,)
    route.emitter.publish(route, "hashroute:*", ("get",))
    assert calls == ["get"]


def test_shortcuts_attach_per_method():
    route = Route("/x")

    def on_get(*args):
        pass

    def on_post(*args):
        pass

    def on_put(*args):
        pass

    def on_delete(*args):
        pass

    route.get(on_get).post(on_post).put(on_put).del_(on_delete)
    assert route.actions("get") == (on_get,)
    assert route.actions("post") == (on_post,)
    assert route.actions("put") == (on_put,)
    assert route.actions("delete") == (on_delete,)
    assert route.methods() == ("get", "post", "put", "delete")


def test_delete_shortcut_and_alias_share_method():
    route = Route("/x")

    def one(*args):
        pass

    def two(*args):
        pass

    route.delete(one)
    route.del_(two)
    assert route.actions("delete") == (one, two)


def test_detach_specific_action():
    route = Route("/x")
    calls = []

    def keep(method):
        calls.append("keep")

    def drop(method):
        calls.append("drop")

    route.get(keep).get(drop)
    route.detach_action("get", drop)
    assert route.actions("get") == (keep,)
    route.emitter.publish(route, "hashroute:get", ("get",))
    assert calls == ["keep"]


def test_detach_single_callable_targets_wildcard():
    route = Route("/x")

    def action(*args):
        pass

    route.attach_action(action)
    route.get(action)
    route.detach_action(action)
    assert route.actions("*") == ()
    assert route.actions("get") == (action,)


def test_detach_without_action_clears_method():
    route = Route("/x")
    calls = []
    route.get(lambda *a: calls.append(1)).get(lambda *a: calls.append(2))
    route.post(lambda *a: calls.append(3))
    route.detach_action("get")
    route.emitter.publish(route, "hashroute:get", ("get",))
    route.emitter.publish(route, "hashroute:post", ("post",))
    assert calls == [3]
    assert "get" not in route.methods()


def test_attach_rejects_non_callable_action():
    route = Route("/x")
    with pytest.raises(TypeError):
        route.attach_action("get", "not callable")
    with pytest.raises(TypeError):
        route.attach_action()


def test_attach_rejects_invalid_method():
    route = Route("/x")
    with pytest.raises(TypeError):
        route.attach_action(5, lambda *a: None)
    with pytest.raises(TypeError):
        route.attach_action("", lambda *a: None)


def test_custom_method_name_is_accepted():
    route = Route("/x")
    calls = []
    route.attach_action("patch", lambda method: calls.append(method))
    route.emitter.publish(route, "hashroute:patch", ("patch",))
    assert calls == ["patch"]


def test_routes_with_shared_emitter_stay_isolated():
    emitter = EventEmitter()
    first = Route("/a", emitter=emitter)
    second = Route("/b", emitter=emitter)
    calls = []
    first.get(lambda method: calls.append("a"))
    second.get(lambda method: calls.append("b"))
    emitter.publish(second, "hashroute:get", ("get",))
    assert calls == ["b"]
