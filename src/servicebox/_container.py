from __future__ import annotations

import importlib
import inspect
import logging
import threading
from enum import Enum
from typing import (
    TYPE_CHECKING,
    Any,
    Generic,
    TypeVar,
    overload,
)


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    T = TypeVar("T")

    Initiator = Callable[["Container"], Any]
    Decorator = Callable[["Container", Any], Any]
    GlobalDecorator = Callable[["Container", Any, str, list[str]], Any]

R = TypeVar("R")


class Lifetime(Enum):
    SINGLETON = "singleton"
    FACTORY = "factory"


class ContainerError(Exception):
    def __str__(self) -> str:
        # KeyError subclasses would otherwise quote the message
        return str(self.args[0]) if len(self.args) == 1 else super().__str__()


class ServiceAlreadyDefined(ContainerError, KeyError):
    pass


class ServiceNotFound(ContainerError, KeyError):
    pass


class _Singleton(Generic[R]):
    """Wrap a callable so it runs at most once and replays its first result."""

    __slots__ = ("_computed", "_func", "_value")

    def __init__(self, func: Callable[..., R]) -> None:
        self._func = func
        self._computed = False
        self._value: R | None = None

    def __call__(self, *args: Any) -> R:
        if not self._computed:
            self._value = self._func(*args)
            self._computed = True
        return self._value  # type: ignore[return-value]


class _PerService(Generic[R]):
    """Singleton wrapper for decorators shared by several services.

    Keeps one cached result per service identifier, filled lazily.
    """

    __slots__ = ("_func", "_results")

    def __init__(self, func: Callable[..., R]) -> None:
        self._func = func
        self._results: dict[str, R] = {}

    def __call__(self, service: str, *args: Any) -> R:
        if service not in self._results:
            self._results[service] = self._func(*args)
        return self._results[service]


def _per_service_factory(func: Callable[..., R]) -> Callable[..., R]:
    def call(service: str, *args: Any) -> R:  # noqa: ARG001
        return func(*args)

    return call


def service_id(cls: type) -> str:
    """Conventional identifier for a service keyed by its class."""
    return f"{cls.__module__}.{cls.__qualname__}"


class Container:
    """Minimal service container.

    - register initiators under string ids
    - lifetimes: singleton / factory
    - group services by tag
    - decorate one service, every service carrying a tag, or every service.

    Initiators receive the container and pull their own dependencies from it.
    A service's entry is taken out of the registry while its initiator runs,
    so a dependency cycle surfaces as ``ServiceNotFound``.
    """

    def __init__(self) -> None:
        self._services: dict[str, Initiator] = {}
        self._tags: dict[str, list[str]] = {}
        self._tags_reverse: dict[str, list[str]] = {}
        self._decorators: dict[str, list[Decorator]] = {}
        self._tag_decorators: dict[str, list[Callable[..., Any]]] = {}
        self._global_decorators: list[Callable[..., Any]] = []
        self._lock = threading.RLock()

    def add(
        self,
        id: str,  # noqa: A002
        initiator: Initiator,
        tags: Iterable[str] = (),
        lifetime: Lifetime = Lifetime.SINGLETON,
    ) -> None:
        """Register an initiator for a service id.

        Example:
          container.add("db", lambda c: Database(c.get("config")))
          container.add("handler.a", make_a, tags=["handler"], lifetime=Lifetime.FACTORY)

        """
        _check_callable(initiator, "initiator")
        _check_lifetime(lifetime)
        if isinstance(tags, str):
            msg = f"Tags must be an iterable of strings, not the string {tags!r}"
            raise TypeError(msg)
        tags = list(tags)

        with self._lock:
            if id in self._services:
                msg = f"You tried to add the service {id!r}, but it is already defined."
                raise ServiceAlreadyDefined(msg)

            self._services[id] = _Singleton(initiator) if lifetime is Lifetime.SINGLETON else initiator
            for tag in tags:
                self._tags.setdefault(tag, []).append(id)
            self._tags_reverse[id] = tags

        logger.debug("Added %s service %r with tags %s", lifetime.value, id, tags)

    def add_factory(
        self,
        id: str,  # noqa: A002
        initiator: Initiator,
        tags: Iterable[str] = (),
    ) -> None:
        """Register an initiator that runs on every resolution."""
        self.add(id, initiator, tags, lifetime=Lifetime.FACTORY)

    def get(self, id: str) -> Any:  # noqa: A002
        """Resolve a service.

        Runs the initiator (or replays its cached result), then applies the
        service's decorators, its tags' decorators and the global decorators,
        in that order.
        """
        with self._lock:
            if id not in self._services:
                msg = (
                    f"Service {id!r} not found. Either the service was not registered "
                    "or you have a circular dependency."
                )
                raise ServiceNotFound(msg)

            initiator = self._services.pop(id)
            try:
                result = initiator(self)

                for decorator in self._decorators.get(id, ()):
                    result = decorator(self, result)

                tags = self._tags_reverse.get(id, [])
                for tag in tags:
                    for tag_decorator in self._tag_decorators.get(tag, ()):
                        result = tag_decorator(id, self, result)

                for global_decorator in self._global_decorators:
                    result = global_decorator(id, self, result, id, list(tags))
            finally:
                self._services[id] = initiator

            return result

    @overload
    def get_object(self, id: type[T]) -> T: ...  # noqa: A002

    @overload
    def get_object(self, id: str) -> object: ...  # noqa: A002

    def get_object(self, id: type[T] | str) -> object:  # noqa: A002
        """Resolve a service registered under a class name and check its type.

        ``id`` is either the class itself (looked up as ``service_id(cls)``) or
        the dotted path of an importable class.
        """
        if inspect.isclass(id):
            cls, key = id, service_id(id)
        else:
            cls, key = _locate_class(id), id

        instance = self.get(key)
        if not isinstance(instance, cls):
            msg = f"Resolved instance {type(instance).__name__} is not an instance of {cls.__name__}"
            raise TypeError(msg)
        return instance

    def get_by_tag(self, tag: str) -> list[Any]:
        """Resolve every service carrying ``tag``, in registration order."""
        with self._lock:
            ids = list(self._tags.get(tag, ()))
        return [self.get(id_) for id_ in ids]

    def has(self, id: str) -> bool:  # noqa: A002
        with self._lock:
            return id in self._services

    def __contains__(self, id: object) -> bool:  # noqa: A002
        return isinstance(id, str) and self.has(id)

    def tags_of(self, id: str) -> list[str]:  # noqa: A002
        with self._lock:
            return list(self._tags_reverse.get(id, ()))

    def decorate(
        self,
        id: str,  # noqa: A002
        decorator: Decorator,
        lifetime: Lifetime = Lifetime.SINGLETON,
    ) -> None:
        """Wrap the value of an already registered service.

        ``decorator(container, value)`` returns the replacement value. With a
        singleton lifetime it runs once and its result is reused.
        """
        _check_callable(decorator, "decorator")
        _check_lifetime(lifetime)

        with self._lock:
            if id not in self._services:
                msg = f"You tried decorating service {id!r}, but no such service exists."
                raise ServiceNotFound(msg)

            wrapped = _Singleton(decorator) if lifetime is Lifetime.SINGLETON else decorator
            self._decorators.setdefault(id, []).append(wrapped)

        logger.debug("Added %s decorator for service %r", lifetime.value, id)

    def decorate_tag(
        self,
        tag: str,
        decorator: Decorator,
        lifetime: Lifetime = Lifetime.SINGLETON,
    ) -> None:
        """Wrap the value of every service carrying ``tag``.

        Applied after the service's own decorators. A singleton tag decorator
        caches one result per service.
        """
        _check_callable(decorator, "decorator")
        _check_lifetime(lifetime)

        with self._lock:
            self._tag_decorators.setdefault(tag, []).append(_wrap_per_service(decorator, lifetime))

        logger.debug("Added %s decorator for tag %r", lifetime.value, tag)

    def decorate_all(
        self,
        decorator: GlobalDecorator,
        lifetime: Lifetime = Lifetime.SINGLETON,
    ) -> None:
        """Wrap the value of every service, after all other decorators.

        ``decorator(container, value, id, tags)`` returns the replacement value.
        A singleton global decorator caches one result per service.
        """
        _check_callable(decorator, "decorator")
        _check_lifetime(lifetime)

        with self._lock:
            self._global_decorators.append(_wrap_per_service(decorator, lifetime))

        logger.debug("Added %s global decorator", lifetime.value)


def _wrap_per_service(func: Callable[..., R], lifetime: Lifetime) -> Callable[..., R]:
    if lifetime is Lifetime.SINGLETON:
        return _PerService(func)
    return _per_service_factory(func)


def _check_callable(func: object, what: str) -> None:
    if not callable(func):
        msg = f"The {what} must be callable, got {type(func).__name__}"
        raise TypeError(msg)


def _check_lifetime(lifetime: object) -> None:
    if not isinstance(lifetime, Lifetime):
        msg = f"Expected a Lifetime, got {lifetime!r}"
        raise TypeError(msg)


def _locate_class(path: str) -> type:
    """Import the class named by a dotted path such as ``pkg.mod.Outer.Inner``."""
    parts = path.split(".")
    # longest importable module prefix, the rest is the qualified name
    for i in range(len(parts) - 1, 0, -1):
        module_name = ".".join(parts[:i])
        try:
            obj: Any = importlib.import_module(module_name)
        except (ImportError, ValueError):
            continue

        try:
            for attr in parts[i:]:
                obj = getattr(obj, attr)
        except AttributeError:
            break

        if inspect.isclass(obj):
            return obj
        break

    msg = f"{path!r} does not name an importable class"
    raise TypeError(msg)
