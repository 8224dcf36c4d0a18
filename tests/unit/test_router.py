"""
Unit tests for the route table.
"""

import pytest

from tinyserve.http.router import RouteTable


def first_handler(request, response):
    response.text("first")


def second_handler(request, response):
    response.text("second")


class TestRouteTable:
    """Tests for RouteTable class."""

    def test_register_and_lookup(self):
        routes = RouteTable()
        routes.register("GET", "/users", first_handler)

        assert routes.lookup("GET", "/users") is first_handler
        assert len(routes) == 1

    def test_lookup_is_exact(self):
        routes = RouteTable()
        routes.register("GET", "/users", first_handler)

        assert routes.lookup("GET", "/users/") is None
        assert routes.lookup("GET", "/users/1") is None
        assert routes.lookup("GET", "/Users") is None

    def test_method_matters(self):
        routes = RouteTable()
        routes.register("GET", "/users", first_handler)
        routes.register("POST", "/users", second_handler)

        assert routes.lookup("GET", "/users") is first_handler
        assert routes.lookup("POST", "/users") is second_handler
        assert routes.lookup("DELETE", "/users") is None

    def test_method_is_uppercased(self):
        routes = RouteTable()
        routes.register("get", "/users", first_handler)

        assert routes.lookup("GET", "/users") is first_handler
        assert ("GET", "/users") in routes

    def test_lookup_method_is_case_sensitive(self):
        routes = RouteTable()
        routes.register("GET", "/users", first_handler)

        assert routes.lookup("get", "/users") is None
        assert ("get", "/users") not in routes

    def test_last_registration_wins(self):
        routes = RouteTable()
        routes.register("GET", "/dup", first_handler)
        routes.register("GET", "/dup", second_handler)

        assert routes.lookup("GET", "/dup") is second_handler
        assert len(routes) == 1

    def test_any_method_may_be_registered(self):
        routes = RouteTable()
        routes.register("PATCH", "/items", first_handler)

        assert routes.lookup("PATCH", "/items") is first_handler

    def test_has_path(self):
        routes = RouteTable()
        routes.register("POST", "/api/echo", first_handler)

        assert routes.has_path("/api/echo") is True
        assert routes.has_path("/api/status") is False

    def test_routes_in_registration_order(self):
        routes = RouteTable()
        routes.register("GET", "/b", first_handler)
        routes.register("POST", "/a", first_handler)

        assert routes.routes() == [("GET", "/b"), ("POST", "/a")]


class TestDecorators:
    """Tests for decorator-based registration."""

    def test_method_decorators(self):
        routes = RouteTable()

        @routes.get("/g")
        def g(request, response):
            pass

        @routes.post("/p")
        def p(request, response):
            pass

        @routes.put("/u")
        def u(request, response):
            pass

        @routes.delete("/d")
        def d(request, response):
            pass

        assert routes.lookup("GET", "/g") is g
        assert routes.lookup("POST", "/p") is p
        assert routes.lookup("PUT", "/u") is u
        assert routes.lookup("DELETE", "/d") is d

    def test_route_decorator_returns_handler(self):
        routes = RouteTable()
        decorated = routes.route("OPTIONS", "/o")(first_handler)

        assert decorated is first_handler
        assert routes.lookup("OPTIONS", "/o") is first_handler


class TestFreezing:
    """Tests for the frozen state."""

    def test_register_after_freeze_raises(self):
        routes = RouteTable()
        routes.register("GET", "/before", first_handler)
        routes.freeze()

        assert routes.frozen is True
        with pytest.raises(RuntimeError):
            routes.register("GET", "/after", first_handler)

        assert routes.lookup("GET", "/before") is first_handler
        assert routes.lookup("GET", "/after") is None
