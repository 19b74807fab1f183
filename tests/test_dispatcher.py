"""Tests for waypost.routing.dispatcher: end-to-end dispatch through strategies."""

import logging
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import Mock

import pytest

from waypost.container import Container, HandlerResolver
from waypost.errors import (
    Conflict,
    HandlerResolutionError,
    MethodNotAllowed,
    MethodNotAllowedError,
    NotFound,
    NotFoundError,
    ResponseBuildError,
)
from waypost.http.request import Request
from waypost.http.response import JSONResponse, Response
from waypost.routing.collection import RouteCollection
from waypost.routing.route import ClassMethodRef
from waypost.strategy import (
    CustomStrategy,
    MethodArgumentStrategy,
    PassthroughStrategy,
    RequestResponseStrategy,
    RestfulStrategy,
    UriStrategy,
)


class _DispatchOnly:
    """A custom strategy with no error hooks."""

    def dispatch(
        self, handler: object, path_params: dict[str, str]
    ) -> tuple[object, dict[str, str]]:
        return handler, path_params


class BrokenController:
    def __init__(self) -> None:
        raise TypeError("broken constructor")

    def show(self) -> str:
        return "unreachable"


class SomeClass:
    def some_method(self, name: str) -> str:
        return f"hello {name}"


class ConflictController:
    def create(self) -> None:
        raise Conflict()


class UserController:
    def show(self, request: Request, id: str) -> dict[str, str]:
        return {"id": id, "method": request.method}


class _RequestProvider:
    def __init__(self, request: Request) -> None:
        self.request = request
        self.register_calls = 0

    def provides(self, key: object) -> bool:
        return key is Request

    def register(self, container: Container) -> None:
        self.register_calls += 1
        container.add(Request, self.request)


def _dispatch(collection: RouteCollection, method: str, path: str, **kwargs: object) -> object:
    return collection.get_dispatcher().dispatch(method, path, **kwargs)  # type: ignore[arg-type]


class TestRestful:
    def test_json_from_dict(self) -> None:
        collection = RouteCollection()
        collection.set_strategy(RestfulStrategy())
        collection.get(
            "/route/{id}",
            lambda request: {"path": request.path, "id": request.path_params["id"]},
        )

        response = _dispatch(collection, "GET", "/route/2")

        assert isinstance(response, JSONResponse)
        assert response.json() == {"path": "/route/2", "id": "2"}

    def test_response_returned_as_is(self) -> None:
        expected = Response("ok")
        collection = RouteCollection()
        collection.set_strategy(RestfulStrategy())
        collection.get("/route", lambda request: expected)

        assert _dispatch(collection, "GET", "/route") is expected

    def test_wrong_return_type(self) -> None:
        collection = RouteCollection()
        collection.set_strategy(RestfulStrategy())
        collection.get("/route", lambda request: object())

        with pytest.raises(RuntimeError):
            _dispatch(collection, "GET", "/route")

    def test_conflict_from_class_based_handler(self) -> None:
        container = Container()
        container.add("ConflictController", ConflictController)
        collection = RouteCollection(container)
        collection.set_strategy(RestfulStrategy())
        collection.post("/route", "ConflictController::create")

        response = _dispatch(collection, "POST", "/route")

        assert response.status == 409
        assert response.content_type == "application/json"
        assert response.json() == {"status_code": 409, "message": "Conflict"}

    def test_class_based_params_by_name(self) -> None:
        container = Container()
        container.add("UserController", UserController)
        collection = RouteCollection(container, config=None)
        collection.set_strategy("restful")
        collection.get("/users/{id:number}", "UserController::show")

        response = _dispatch(collection, "GET", "/users/7")

        assert response.json() == {"id": "7", "method": "GET"}

    def test_not_found(self) -> None:
        collection = RouteCollection()
        collection.set_strategy(RestfulStrategy())

        response = _dispatch(collection, "GET", "/route")

        assert response.status == 404
        assert response.body == '{"status_code":404,"message":"Not Found"}'

    def test_method_not_allowed(self) -> None:
        collection = RouteCollection()
        collection.set_strategy(RestfulStrategy())
        collection.post("/route", lambda request: {})
        collection.put("/route", lambda request: {})
        collection.delete("/route", lambda request: {})

        response = _dispatch(collection, "GET", "/route")

        assert response.status == 405
        assert response.body == '{"status_code":405,"message":"Method Not Allowed"}'
        assert response.header("Allow") == "POST, PUT, DELETE"


class TestNoStrategy:
    def test_not_found_raises(self) -> None:
        with pytest.raises(NotFound) as exc_info:
            _dispatch(RouteCollection(), "GET", "/route")
        assert exc_info.value.message == "Not Found"
        assert str(exc_info.value) == "404: Not Found"

    def test_method_not_allowed_raises(self) -> None:
        collection = RouteCollection()
        collection.post("/route", lambda: None)
        collection.put("/route", lambda: None)

        with pytest.raises(MethodNotAllowed) as exc_info:
            _dispatch(collection, "GET", "/route")
        assert exc_info.value.allowed == ("POST", "PUT")
        assert exc_info.value.status == 405

    def test_passthrough_binds_request_and_params(self) -> None:
        collection = RouteCollection()
        collection.get("/hello/{name}", lambda request, name: (request.method, name))

        assert _dispatch(collection, "GET", "/hello/world") == ("GET", "world")

    def test_http_error_propagates(self) -> None:
        def handler() -> None:
            raise Conflict("taken")

        collection = RouteCollection()
        collection.get("/route", handler)

        with pytest.raises(Conflict, match="taken"):
            _dispatch(collection, "GET", "/route")

    def test_default_strategy_is_passthrough(self) -> None:
        dispatcher = RouteCollection().get_dispatcher()
        assert isinstance(dispatcher.default_strategy, PassthroughStrategy)


class TestUri:
    def test_positional_args(self) -> None:
        seen: list[tuple[str, ...]] = []

        def handler(*args: str) -> Response:
            seen.append(args)
            return Response("ok")

        collection = RouteCollection()
        collection.set_strategy(UriStrategy())
        collection.get("/route/{id}/{name}", handler)

        response = _dispatch(collection, "GET", "/route/2/phil")

        assert seen == [("2", "phil")]
        assert response.text == "ok"

    def test_class_based_handler(self) -> None:
        container = Container()
        container.add("SomeClass", SomeClass)
        collection = RouteCollection(container)
        collection.set_strategy("uri")
        collection.get("/hello/{name}", "SomeClass::some_method")

        assert _dispatch(collection, "GET", "/hello/world").text == "hello world"

    def test_cannot_build(self) -> None:
        collection = RouteCollection()
        collection.set_strategy(UriStrategy())
        collection.get("/route/{id}", lambda id: object())

        with pytest.raises(ResponseBuildError):
            _dispatch(collection, "GET", "/route/2")

    def test_non_restful_404_raises(self) -> None:
        collection = RouteCollection()
        collection.set_strategy(UriStrategy())
        with pytest.raises(NotFound):
            _dispatch(collection, "GET", "/missing")


class TestMethodArgument:
    def test_class_based_through_resolver(self) -> None:
        controller = SomeClass()
        resolver = Mock(spec=HandlerResolver)
        resolver.has.return_value = False
        resolver.resolve.return_value = controller.some_method
        resolver.call.return_value = "hello world"

        collection = RouteCollection(resolver)
        collection.set_strategy(MethodArgumentStrategy())
        collection.get("/route/{name}", "SomeClass::some_method")

        response = _dispatch(collection, "GET", "/route/world")

        assert response.text == "hello world"
        resolver.resolve.assert_called_once_with(ClassMethodRef("SomeClass", "some_method"))
        resolver.call.assert_called_once_with(controller.some_method, {"name": "world"})

    def test_class_based_through_container(self) -> None:
        container = Container()
        container.add("SomeClass", SomeClass(), shared=True)
        collection = RouteCollection(container)
        collection.set_strategy(MethodArgumentStrategy())
        collection.get("/route/{name}", "SomeClass::some_method")

        assert _dispatch(collection, "GET", "/route/world").text == "hello world"

    def test_binds_by_name_not_position(self) -> None:
        collection = RouteCollection()
        collection.set_strategy("method_argument")
        collection.get("/route/{id}/{name}", lambda name, id: f"{name}-{id}")

        assert _dispatch(collection, "GET", "/route/2/phil").text == "phil-2"

    def test_cannot_build(self) -> None:
        collection = RouteCollection()
        collection.set_strategy(MethodArgumentStrategy())
        collection.get("/route", lambda: object())

        with pytest.raises(RuntimeError):
            _dispatch(collection, "GET", "/route")


class TestRequestResponse:
    def test_handler_receives_request_and_response(self) -> None:
        def handler(request: Request, response: Response) -> Response:
            assert isinstance(request, Request)
            assert isinstance(response, Response)
            return response.with_body(request.path_params["id"]).with_status(201)

        collection = RouteCollection()
        collection.set_strategy(RequestResponseStrategy())
        collection.get("/route/{id}", handler)

        response = _dispatch(collection, "GET", "/route/2")

        assert response.status == 201
        assert response.text == "2"

    @pytest.mark.parametrize("value", [[], {"a": 1}, "text", None, 42])
    def test_wrong_return_type(self, value: object) -> None:
        collection = RouteCollection()
        collection.set_strategy(RequestResponseStrategy())
        collection.get("/route", lambda request, response: value)

        with pytest.raises(ResponseBuildError):
            _dispatch(collection, "GET", "/route")

    def test_explicit_request(self) -> None:
        collection = RouteCollection()
        collection.set_strategy(RequestResponseStrategy())
        collection.post("/route", lambda request, resp: resp.with_body(request.text()))

        request = Request.create("POST", "/route", body="payload")
        response = _dispatch(collection, "POST", "/route", request=request)

        assert response.text == "payload"

    def test_request_from_container(self) -> None:
        container = Container()
        container.add(Request, Request.create("GET", "/route", query_string="get=2"))
        collection = RouteCollection(container)
        collection.set_strategy(RequestResponseStrategy())
        collection.get("/route", lambda request, response: response.with_body(request.query["get"]))

        assert _dispatch(collection, "GET", "/route").text == "2"

    def test_request_from_service_provider(self) -> None:
        provider = _RequestProvider(Request.create("GET", "/route", query_string="get=3"))
        container = Container()
        container.add_service_provider(provider)
        collection = RouteCollection(container)
        collection.set_strategy(RequestResponseStrategy())
        collection.get("/route", lambda request, response: response.with_body(request.query["get"]))

        dispatcher = collection.get_dispatcher()
        assert dispatcher.dispatch("GET", "/route").text == "3"
        assert dispatcher.dispatch("GET", "/route").text == "3"
        assert provider.register_calls == 1


class TestCustomStrategy:
    def test_result_returned_verbatim(self) -> None:
        expected = {"custom": True}
        strategy = Mock(spec=CustomStrategy)
        strategy.dispatch.return_value = expected

        collection = RouteCollection()
        collection.set_strategy(strategy)
        collection.get("/route/{id}/{name}", "Controller::method")

        result = _dispatch(collection, "GET", "/route/2/phil")

        assert result is expected
        strategy.dispatch.assert_called_once_with(
            ("Controller", "method"), {"id": "2", "name": "phil"}
        )

    def test_handler_not_resolved(self) -> None:
        resolver = Mock(spec=HandlerResolver)
        strategy = Mock(spec=CustomStrategy)
        collection = RouteCollection(resolver)
        collection.get("/route", "Missing::method", strategy)

        _dispatch(collection, "GET", "/route")

        resolver.resolve.assert_not_called()


class TestDispatchOnlyCustomStrategy:
    def _collection(self) -> RouteCollection:
        collection = RouteCollection()
        collection.set_strategy(_DispatchOnly())
        collection.post("/route/{id}", "Controller::method")
        return collection

    def test_found_route_uses_dispatch(self) -> None:
        result = _dispatch(self._collection(), "POST", "/route/2")
        assert result == (("Controller", "method"), {"id": "2"})

    def test_not_found_raises(self) -> None:
        with pytest.raises(NotFoundError, match="Not Found"):
            _dispatch(self._collection(), "GET", "/nope")

    def test_method_not_allowed_raises(self) -> None:
        with pytest.raises(MethodNotAllowedError) as exc_info:
            _dispatch(self._collection(), "GET", "/route/2")
        assert exc_info.value.allowed == ("POST",)


class TestHandlerResolution:
    def test_class_without_method(self) -> None:
        collection = RouteCollection()
        collection.get("/route", "SomeClass")

        with pytest.raises(HandlerResolutionError, match="names no method"):
            _dispatch(collection, "GET", "/route")

    def test_missing_method(self) -> None:
        container = Container()
        container.add("SomeClass", SomeClass)
        collection = RouteCollection(container)
        collection.get("/route", "SomeClass::nope")

        with pytest.raises(RuntimeError, match="'nope'"):
            _dispatch(collection, "GET", "/route")

    def test_unknown_class_names_method(self) -> None:
        collection = RouteCollection()
        collection.set_strategy("uri")
        collection.get("/route", "NoSuchController::show")

        with pytest.raises(HandlerResolutionError, match="'show'") as exc_info:
            _dispatch(collection, "GET", "/route")
        assert "NoSuchController" in str(exc_info.value)

    def test_constructor_error_propagates(self) -> None:
        container = Container()
        container.add("BrokenController", BrokenController)
        collection = RouteCollection(container)
        collection.get("/route", "BrokenController::show")

        with pytest.raises(TypeError, match="broken constructor") as exc_info:
            _dispatch(collection, "GET", "/route")
        assert not isinstance(exc_info.value, HandlerResolutionError)

    def test_resolver_lookup_error_wrapped(self) -> None:
        resolver = Mock(spec=HandlerResolver)
        resolver.resolve.side_effect = KeyError("SomeClass")
        collection = RouteCollection(resolver)
        collection.get("/route", "SomeClass::some_method")

        with pytest.raises(HandlerResolutionError, match="SomeClass::some_method"):
            _dispatch(collection, "GET", "/route")


class TestStrategyPrecedence:
    def test_route_strategy_overrides_default(self) -> None:
        collection = RouteCollection()
        collection.set_strategy(RestfulStrategy())
        collection.get("/route/{name}", lambda name: f"hi {name}", UriStrategy())

        response = _dispatch(collection, "GET", "/route/phil")

        assert response.content_type.startswith("text/html")
        assert response.text == "hi phil"

    def test_default_set_after_registration_applies(self) -> None:
        collection = RouteCollection()
        collection.get("/route", lambda request: {"late": True})
        collection.set_strategy("restful")

        assert _dispatch(collection, "GET", "/route").json() == {"late": True}

    def test_strategy_for(self) -> None:
        collection = RouteCollection()
        uri = UriStrategy()
        route = collection.get("/route", lambda: None, uri)
        other = collection.get("/other", lambda: None)
        collection.set_strategy("restful")
        dispatcher = collection.get_dispatcher()

        assert dispatcher.strategy_for(route) is uri
        assert isinstance(dispatcher.strategy_for(other), RestfulStrategy)


class TestDispatchBehaviour:
    def test_non_http_exception_propagates(self) -> None:
        def handler(request: Request) -> dict[str, str]:
            raise ValueError("boom")

        collection = RouteCollection()
        collection.set_strategy("restful")
        collection.get("/route", handler)

        with pytest.raises(ValueError, match="boom"):
            _dispatch(collection, "GET", "/route")

    def test_head_falls_back_to_get(self) -> None:
        collection = RouteCollection()
        collection.set_strategy("uri")
        collection.get("/route", lambda: "body")

        assert _dispatch(collection, "HEAD", "/route").text == "body"

    def test_trailing_slash(self) -> None:
        collection = RouteCollection()
        collection.set_strategy("uri")
        collection.get("/route", lambda: "ok")

        assert _dispatch(collection, "GET", "/route/").text == "ok"

    def test_typed_placeholder(self) -> None:
        collection = RouteCollection()
        collection.set_strategy("restful")
        collection.get("/users/{id:number}", lambda request: {"id": request.path_params["id"]})

        assert _dispatch(collection, "GET", "/users/abc").status == 404

    def test_custom_pattern_matcher(self) -> None:
        collection = RouteCollection()
        collection.set_strategy("uri")
        collection.add_pattern_matcher("hex", "[0-9a-f]+")
        collection.get("/colors/{c:hex}", lambda c: c)

        assert _dispatch(collection, "GET", "/colors/ff00aa").text == "ff00aa"

    def test_dispatchers_are_independent_and_repeatable(self) -> None:
        collection = RouteCollection()
        collection.set_strategy("uri")
        collection.get("/route/{name}", lambda name: f"hello {name}")

        first = collection.get_dispatcher().dispatch("GET", "/route/phil")
        second = collection.get_dispatcher().dispatch("GET", "/route/phil")

        assert first == second

    def test_concurrent_dispatch(self) -> None:
        collection = RouteCollection()
        collection.set_strategy("uri")
        collection.get("/route/{n:number}", lambda n: n)
        dispatcher = collection.get_dispatcher()

        with ThreadPoolExecutor(max_workers=8) as pool:
            texts = pool.map(lambda n: dispatcher.dispatch("GET", f"/route/{n}").text, range(50))
            results = list(texts)

        assert results == [str(n) for n in range(50)]

    def test_logs_not_found(self, caplog: pytest.LogCaptureFixture) -> None:
        collection = RouteCollection()
        collection.set_strategy("restful")

        with caplog.at_level(logging.DEBUG, logger="waypost.dispatch"):
            _dispatch(collection, "GET", "/missing")

        assert "404 GET /missing" in caplog.text


class TestEveryRouteReachable:
    @pytest.mark.parametrize("method", ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"])
    def test_each_method_reaches_its_handler(self, method: str) -> None:
        collection = RouteCollection()
        collection.set_strategy("uri")
        for verb in ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"):
            collection.add_route(verb, "/items/{id}", lambda id, _verb=verb: f"{_verb} {id}")

        assert _dispatch(collection, method, "/items/9").text == f"{method} 9"
