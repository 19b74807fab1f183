"""Service container: resolves class-based handlers and their arguments.

The dispatcher only needs the ``HandlerResolver`` protocol; ``Container``
is the implementation used when no other resolver is supplied.

Usage::

    container = Container()
    container.add(UserRepository, shared=True)
    container.add("UserController", UserController)

    collection = RouteCollection(container)
    collection.get("/users/{id}", "UserController::show")

Resolution order for a parameter, in ``Container.call``:

1. Explicit keyword arguments (path parameters, ``request``)
2. Services registered under the parameter's annotation
3. The parameter's default value
4. Autowiring of an unregistered user-defined class annotation
"""

from __future__ import annotations

import importlib
import inspect
import logging
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from waypost._internal.types import ServiceKey
from waypost.errors import ConfigurationError, HandlerResolutionError
from waypost.routing.route import ClassMethodRef

logger = logging.getLogger("waypost.container")

_MISSING: Any = object()


@runtime_checkable
class HandlerResolver(Protocol):
    """What the dispatcher needs from a dependency-injection container."""

    def has(self, key: ServiceKey) -> bool: ...
    def get(self, key: ServiceKey) -> Any: ...
    def resolve(self, ref: ClassMethodRef) -> Callable[..., Any]: ...
    def call(self, func: Callable[..., Any], kwargs: Mapping[str, Any] | None = None) -> Any: ...


@runtime_checkable
class ServiceProvider(Protocol):
    """Registers a group of services the first time one of them is needed."""

    def provides(self, key: ServiceKey) -> bool: ...
    def register(self, container: Container) -> None: ...


@dataclass(slots=True)
class _Definition:
    """How to produce the service registered under one key."""

    concrete: Any
    args: tuple[Any, ...] = ()
    kwargs: dict[str, Any] = field(default_factory=dict)
    shared: bool = False
    instance: Any = _MISSING

    @property
    def is_factory(self) -> bool:
        return callable(self.concrete)


def _describe(key: Any) -> str:
    if isinstance(key, type):
        return key.__qualname__
    return getattr(key, "__qualname__", None) or repr(key)


def import_object(path: str) -> Any:
    """Import ``"pkg.module:Name"`` or ``"pkg.module.Name"``.

    Raises ``ImportError`` or ``AttributeError`` when the object is missing.
    """
    if ":" in path:
        module_name, _, attr_path = path.partition(":")
    else:
        module_name, _, attr_path = path.rpartition(".")
    if not module_name or not attr_path:
        msg = f"{path!r} is not an importable 'module:Name' path"
        raise ImportError(msg)
    obj: Any = importlib.import_module(module_name)
    for attr in attr_path.split("."):
        obj = getattr(obj, attr)
    return obj


class Container:
    """A small dependency-injection container.

    Services are registered under a type or a string key. Classes are
    constructed with their ``__init__`` parameters resolved from the
    container; plain values are returned as-is.
    """

    __slots__ = ("_definitions", "_lock", "_providers", "_registered", "_resolving")

    def __init__(self) -> None:
        self._definitions: dict[ServiceKey, _Definition] = {}
        self._providers: list[ServiceProvider] = []
        self._registered: set[int] = set()
        self._resolving = threading.local()
        self._lock = threading.RLock()

    # -- Registration --

    def add(
        self,
        key: ServiceKey,
        concrete: Any = None,
        *,
        args: tuple[Any, ...] = (),
        kwargs: Mapping[str, Any] | None = None,
        shared: bool = False,
    ) -> None:
        """Register a service.

        *concrete* may be a class or factory (called on each ``get``, or
        once when *shared*) or any non-callable value (returned as-is).
        When omitted, *key* must be a class and is used as its own factory.
        """
        if concrete is None:
            if not isinstance(key, type):
                msg = f"Service {key!r} needs a concrete class, factory or value"
                raise ConfigurationError(msg)
            concrete = key
        self._definitions[key] = _Definition(
            concrete=concrete,
            args=tuple(args),
            kwargs=dict(kwargs or {}),
            shared=shared,
        )

    def instance(self, key: ServiceKey, value: Any) -> None:
        """Register *value* itself, even when it is callable."""
        self._definitions[key] = _Definition(concrete=value, shared=True, instance=value)

    def add_service_provider(self, provider: ServiceProvider) -> None:
        self._providers.append(provider)

    # -- Lookup --

    def has(self, key: ServiceKey) -> bool:
        """True if *key* is registered or a service provider offers it."""
        if key in self._definitions:
            return True
        return any(provider.provides(key) for provider in self._providers)

    def get(self, key: ServiceKey) -> Any:
        """Return the service for *key*.

        Unregistered classes are autowired; unregistered strings are
        imported as ``module:Name`` paths first.

        Raises ``HandlerResolutionError`` when nothing can be produced.
        """
        self._register_providers_for(key)

        definition = self._definitions.get(key)
        if definition is not None:
            return self._build(key, definition)

        target = key
        if isinstance(key, str):
            try:
                target = import_object(key)
            except (ImportError, AttributeError) as exc:
                msg = f"No service registered for {key!r} and it cannot be imported"
                raise HandlerResolutionError(msg) from exc
            definition = self._definitions.get(target)
            if definition is not None:
                return self._build(target, definition)

        if isinstance(target, type):
            return self._construct(target, (), {})

        msg = f"No service registered for {_describe(key)}"
        raise HandlerResolutionError(msg)

    def resolve(self, ref: ClassMethodRef) -> Callable[..., Any]:
        """Return the bound method named by a ``ClassName::method`` reference."""
        if not ref.method_name:
            msg = (
                f"Handler {ref.class_name!r} names no method; "
                "expected 'ClassName::method_name'"
            )
            raise HandlerResolutionError(msg)

        try:
            instance = self.get(ref.class_name)
        except HandlerResolutionError as exc:
            msg = f"Cannot resolve method {ref.method_name!r}: {exc}"
            raise HandlerResolutionError(msg) from exc
        method = getattr(instance, ref.method_name, None)
        if method is None or not callable(method):
            msg = f"Method {ref.method_name!r} not found on {ref.class_name!r}"
            raise HandlerResolutionError(msg)
        logger.debug("resolved %s to %r", ref, method)
        return method

    def call(
        self,
        func: Callable[..., Any],
        kwargs: Mapping[str, Any] | None = None,
        *,
        args: tuple[Any, ...] = (),
    ) -> Any:
        """Call *func*, binding its parameters by name from *kwargs* and the container.

        Keys in *kwargs* that *func* does not declare are ignored, unless it
        accepts ``**kwargs``.
        """
        positional, keywords = self._bind(func, args, dict(kwargs or {}))
        return func(*positional, **keywords)

    # -- Internals --

    def _register_providers_for(self, key: ServiceKey) -> None:
        if key in self._definitions:
            return
        for provider in self._providers:
            if id(provider) in self._registered or not provider.provides(key):
                continue
            with self._lock:
                if id(provider) not in self._registered:
                    self._registered.add(id(provider))
                    provider.register(self)

    def _build(self, key: ServiceKey, definition: _Definition) -> Any:
        if not definition.is_factory:
            return definition.concrete
        if not definition.shared:
            return self._construct(definition.concrete, definition.args, definition.kwargs)
        with self._lock:
            if definition.instance is _MISSING:
                logger.debug("building shared service %s", _describe(key))
                definition.instance = self._construct(
                    definition.concrete, definition.args, definition.kwargs
                )
            return definition.instance

    def _construct(self, factory: Any, args: tuple[Any, ...], kwargs: Mapping[str, Any]) -> Any:
        stack: list[Any] | None = getattr(self._resolving, "stack", None)
        if stack is None:
            stack = self._resolving.stack = []
        if factory in stack:
            chain = " -> ".join(_describe(f) for f in (*stack, factory))
            msg = f"Circular dependency while resolving {chain}"
            raise HandlerResolutionError(msg)
        stack.append(factory)
        try:
            return self.call(factory, kwargs, args=args)
        finally:
            stack.pop()

    def _bind(
        self,
        func: Callable[..., Any],
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> tuple[list[Any], dict[str, Any]]:
        try:
            sig = inspect.signature(func, eval_str=True)
        except NameError:
            sig = inspect.signature(func)
        except (TypeError, ValueError):
            # Builtins without an introspectable signature
            return list(args), kwargs

        positional: list[Any] = list(args)
        keywords: dict[str, Any] = {}
        params = list(sig.parameters.values())
        accepts_var_kw = any(p.kind is inspect.Parameter.VAR_KEYWORD for p in params)

        skip = len(args)
        for param in params:
            if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
                continue
            if skip and param.kind is not inspect.Parameter.KEYWORD_ONLY:
                skip -= 1
                continue

            value = self._resolve_param(func, param, kwargs)
            if value is _MISSING:
                continue
            if param.kind is inspect.Parameter.POSITIONAL_ONLY:
                positional.append(value)
            else:
                keywords[param.name] = value

        if accepts_var_kw:
            for name, value in kwargs.items():
                keywords.setdefault(name, value)
        return positional, keywords

    def _resolve_param(
        self,
        func: Callable[..., Any],
        param: inspect.Parameter,
        kwargs: Mapping[str, Any],
    ) -> Any:
        """Value for one parameter, or ``_MISSING`` to leave its default in place."""
        if param.name in kwargs:
            return kwargs[param.name]

        annotation = param.annotation
        has_annotation = annotation is not inspect.Parameter.empty
        if has_annotation and isinstance(annotation, (type, str)) and self.has(annotation):
            return self.get(annotation)

        if param.default is not inspect.Parameter.empty:
            return _MISSING

        if has_annotation and _is_autowirable(annotation):
            return self._construct(annotation, (), {})

        msg = f"Cannot resolve parameter {param.name!r} of {_describe(func)}"
        raise HandlerResolutionError(msg)


def _is_autowirable(annotation: Any) -> bool:
    """User-defined classes can be constructed; builtins cannot."""
    return isinstance(annotation, type) and annotation.__module__ != "builtins"
