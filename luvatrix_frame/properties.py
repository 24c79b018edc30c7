from __future__ import annotations

import logging
from typing import Any, Callable, Iterable

LOGGER = logging.getLogger(__name__)

ChangeCallback = Callable[[str, Any, Any], None]

_MISSING = object()


class Property:
    """Observable attribute declared on a `HasProps` subclass.

    Assigning through the descriptor stores the (optionally coerced) value and
    synchronously notifies every subscription watching the attribute.
    """

    def __init__(
        self,
        default_factory: Callable[[], Any],
        *,
        coerce: Callable[[str, Any], Any] | None = None,
    ) -> None:
        self.default_factory = default_factory
        self.coerce = coerce
        self.name = ""

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, obj: "HasProps | None", objtype: type | None = None) -> Any:
        if obj is None:
            return self
        return obj._values[self.name]

    def __set__(self, obj: "HasProps", value: Any) -> None:
        obj._set_prop(self.name, self.prepare(value))

    def prepare(self, value: Any) -> Any:
        if self.coerce is None:
            return value
        return self.coerce(self.name, value)


class Subscription:
    """Handle returned by `HasProps.on_change`; `cancel()` stops delivery."""

    def __init__(self, owner: "HasProps", fields: frozenset[str], callback: ChangeCallback) -> None:
        self._owner: HasProps | None = owner
        self.fields = fields
        self.callback = callback

    @property
    def active(self) -> bool:
        return self._owner is not None

    def cancel(self) -> None:
        owner = self._owner
        if owner is None:
            return
        self._owner = None
        owner._subscriptions.remove(self)


class HasProps:
    """Minimal observable model: declared `Property` fields plus change subscriptions."""

    def __init__(self, **kwargs: Any) -> None:
        self._values: dict[str, Any] = {}
        self._subscriptions: list[Subscription] = []
        for name, prop in self.properties().items():
            value = kwargs.pop(name, _MISSING)
            if value is _MISSING:
                value = prop.default_factory()
            self._values[name] = prop.prepare(value)
        if kwargs:
            unknown = ", ".join(sorted(kwargs))
            raise TypeError(f"{type(self).__name__} got unexpected properties: {unknown}")

    @classmethod
    def properties(cls) -> dict[str, Property]:
        out: dict[str, Property] = {}
        for klass in reversed(cls.__mro__):
            for name, attr in vars(klass).items():
                if isinstance(attr, Property):
                    out[name] = attr
        return out

    def on_change(self, fields: Iterable[str], callback: ChangeCallback) -> Subscription:
        names = frozenset(fields)
        unknown = names - self.properties().keys()
        if unknown:
            raise ValueError(f"unknown properties: {', '.join(sorted(unknown))}")
        subscription = Subscription(self, names, callback)
        self._subscriptions.append(subscription)
        return subscription

    def _set_prop(self, name: str, value: Any) -> None:
        old = self._values[name]
        if old is value:
            return
        self._values[name] = value
        notified: list[Subscription] = []
        try:
            for subscription in list(self._subscriptions):
                if name not in subscription.fields or not subscription.active:
                    continue
                subscription.callback(name, old, value)
                notified.append(subscription)
        except Exception:
            # Roll back so the model never holds a value its observers rejected.
            self._values[name] = old
            LOGGER.warning("change to %s.%s rejected; restoring previous value", type(self).__name__, name)
            for subscription in notified:
                subscription.callback(name, value, old)
            raise
