"""Tests for route registration and hash resolution."""

import re

import pytest

from hashroute import Route, Router


class Recorder:
    def __init__(self):
        self.calls = []

    def tagged(self, tag):
        def action(*args):
            self.calls.append((tag, *args))

        return action


def test_register_route_attaches_get_action():
    rec = Recorder()
    router = Router()
    route = router.register_route("/post/:id", rec.tagged("get"))
    assert isinstance(route, Route)
    assert route.router is router
    assert router.resolve("/post/7", "get") is True
    assert rec.calls == [("get", "get", "7")]


def test_register_route_without_action():
    router = Router()
    route = router.register_route("/post/:id")
    assert route.methods() == ()
    # a matching route counts as a match even without actions
    assert router.resolve("/post/1", "get") is True


def test_wildcard_then_method_event_with_same_args():
    rec = Recorder()
    router = Router()
    route = router.register_route("/post/:id")
    route.attach_action(rec.tagged("*"))
    route.put(rec.tagged("put"))
    route.get(rec.tagged("get"))
    assert router.resolve("/post/7", "put") is True
    assert rec.calls == [("*", "put", "7"), ("put", "put", "7")]


def test_resolve_without_method_fires_only_wildcard():
    rec = Recorder()
    router = Router()
    route = router.register_route("/post/:id", rec.tagged("get"))
    route.attach_action(rec.tagged("*"))
    assert router.resolve("/post/7") is True
    assert rec.calls == [("*", None, "7")]


def test_empty_hash_resolves_nothing():
    rec = Recorder()
    router = Router()
    router.register_route("", rec.tagged("get"))
    router.register_route("*", rec.tagged("get"))
    assert router.resolve("", "get") is False
    assert router.resolve(None, "get") is False
    assert rec.calls == []


def test_unmatched_hash_returns_false():
    rec = Recorder()
    router = Router()
    router.register_route("/a", rec.tagged("get"))
    assert router.resolve("/b", "get") is False
    assert rec.calls == []


def test_catch_all_route_matches_any_non_empty_hash():
    rec = Recorder()
    router = Router()
    router.register_route("").attach_action(rec.tagged("*"))
    assert router.resolve("/anything/here", "get") is True
    assert router.resolve("x") is True
    assert rec.calls == [("*", "get"), ("*", None)]


def test_every_matching_route_fires():
    rec = Recorder()
    router = Router()
    router.register_route("/user/:id", rec.tagged("named"))
    router.register_route("/user/*rest", rec.tagged("splat"))
    router.register_route("/other", rec.tagged("other"))
    assert router.resolve("/user/42", "get") is True
    assert sorted(rec.calls) == [("named", "get", "42"), ("splat", "get", "42")]


def test_identical_patterns_collapse_to_one_slot():
    router = Router()
    router.register_route("/a/:id")
    router.register_route("/a/:id")
    assert len(router) == 1
    router.remove_route("/a/:id")
    assert len(router) == 0
    assert router.resolve("/a/1", "get") is False


def test_reregistration_replaces_previous_route():
    rec = Recorder()
    router = Router()
    first = router.register_route("/a/:id", rec.tagged("first"))
    second = router.register_route("/a/:name", rec.tagged("second"))
    assert first is not second
    assert router.get_route("/a/:id") is second
    router.resolve("/a/1", "get")
    assert rec.calls == [("second", "get", "1")]


def test_replacement_keeps_registry_position():
    router = Router()
    router.register_route("/a")
    router.register_route("/b")
    replacement = router.register_route("/a")
    assert router.routes()[0] is replacement
    assert [route.name for route in router] == ["/a", "/b"]


def test_remove_route_accepts_route_instance():
    router = Router()
    route = router.register_route("/a")
    router.register_route("/b")
    assert router.remove_route(route) is router
    assert "/a" not in router
    assert "/b" in router


def test_remove_route_by_equivalent_regex():
    router = Router()
    router.register_route("/a/:id")
    router.remove_route(re.compile("^/a/([^/]+)$"))
    assert len(router) == 0


def test_remove_unknown_route_is_noop():
    router = Router()
    router.register_route("/a")
    assert router.remove_route("/missing") is router
    assert router.remove_route(Route("/other")) is router
    assert len(router) == 1


def test_contains_accepts_route_or_pattern():
    router = Router()
    route = router.register_route("/a/:id")
    assert route in router
    assert "/a/:id" in router
    assert "/a/:other" in router
    assert "/b" not in router


def test_regex_route_dispatches_groups():
    rec = Recorder()
    router = Router()
    router.register_route(re.compile(r"^/item/(\d+)/(\w+)$"), rec.tagged("get"))
    assert router.resolve("/item/3/edit", "get") is True
    assert router.resolve("/item/x/edit", "get") is False
    assert rec.calls == [("get", "get", "3", "edit")]


def test_custom_method_dispatch():
    rec = Recorder()
    router = Router()
    router.register_route("/doc").attach_action("patch", rec.tagged("patch"))
    router.resolve("/doc", "patch")
    router.resolve("/doc", "get")
    assert rec.calls == [("patch", "patch")]


def test_resolution_uses_registry_snapshot():
    rec = Recorder()
    router = Router()

    def remover(*args):
        rec.calls.append(("remover", *args))
        router.remove_route("*")
        router.register_route("/x", rec.tagged("late"))

    router.register_route("/*name", remover)
    router.register_route("*", rec.tagged("splat"))
    assert router.resolve("/x", "get") is True
    assert rec.calls == [("remover", "get", "x"), ("splat", "get", "/x")]

    rec.calls.clear()
    router.resolve("/x", "get")
    assert ("splat", "get", "/x") not in rec.calls
    assert ("late", "get") in rec.calls


def test_action_exceptions_propagate():
    router = Router()

    def boom(*args):
        raise RuntimeError("boom")

    router.register_route("/a", boom)
    with pytest.raises(RuntimeError):
        router.resolve("/a", "get")


def test_route_decorator_reuses_slot():
    rec = []
    router = Router()

    @router.route("/post/:id")
    def show(method, ident):
        rec.append(("show", method, ident))

    @router.route("/post/:id", method="delete")
    def drop(method, ident):
        rec.append(("drop", method, ident))

    assert len(router) == 1
    route = router.get_route("/post/:id")
    assert route.actions("get") == (show,)
    assert route.actions("delete") == (drop,)
    router.resolve("/post/9", "delete")
    assert rec == [("drop", "delete", "9")]


def test_register_route_metadata_and_name():
    router = Router()
    route = router.register_route("/a", name="home", metadata={"title": "Home"}, section="main")
    assert route.name == "home"
    assert route.metadata == {"title": "Home", "section": "main"}


def test_members_describes_routes():
    router = Router(name="app")

    def show(method, ident):
        pass

    route = router.register_route("/post/:id", show)
    tree = router.members()
    assert tree["name"] == "app"
    assert tree["observing"] is False
    info = tree["routes"][route.key]
    assert info["name"] == "/post/:id"
    assert info["params"] == ["id"]
    assert list(info["methods"]) == ["get"]
    assert info["methods"]["get"][0].endswith("show")


def test_members_without_routes():
    tree = Router().members()
    assert "routes" not in tree


def test_routers_keep_independent_registries():
    one, two = Router(), Router()
    one.register_route("/a")
    assert len(one) == 1
    assert len(two) == 0
    assert two.resolve("/a", "get") is False


def test_resolve_ignores_hash_with_trailing_newline():
    rec = Recorder()
    router = Router()
    router.register_route("/admin", rec.tagged("get"))
    assert router.resolve("/admin\n", "get") is False
    assert rec.calls == []


def test_failed_registration_keeps_previous_route():
    rec = Recorder()
    router = Router()
    previous = router.register_route("/a", rec.tagged("get"))
    with pytest.raises(TypeError):
        router.register_route("/a", "not-callable")
    assert router.get_route("/a") is previous
    assert len(router) == 1
    router.resolve("/a", "get")
    assert rec.calls == [("get", "get")]
