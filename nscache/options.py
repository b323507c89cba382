from __future__ import annotations

import typing as t

import pydantic as pyd

from nscache.types import BaseModel

OptionListener: t.TypeAlias = t.Callable[[str, t.Any], None]


class AdapterOptions(BaseModel):
    """Mutable configuration read by the adapter on every operation.

    Options may change between two calls; the adapter never caches them.
    Listeners registered with :meth:`subscribe` are notified after every
    successful assignment of a field, with the field name and its validated
    value.

    Example:
        ```python
        options = AdapterOptions(namespace="app")
        options.subscribe(lambda name, value: print(name, value))
        options.namespace_separator = "::"  # prints: namespace_separator ::
        ```
    """

    model_config = pyd.ConfigDict(frozen=False)

    namespace: str = pyd.Field("", description="Namespace prepended to every key, empty for none")

    namespace_separator: str = pyd.Field(":", description="Separator between namespace and key")

    ttl: float = pyd.Field(0.0, ge=0, description="Time to live in seconds, 0 disables expiry")

    _listeners: t.List[OptionListener] = pyd.PrivateAttr(default_factory=list)

    def subscribe(self, callback: OptionListener, /) -> OptionListener:
        """Register a listener for field changes.

        Args:
            callback: Called as ``callback(field_name, new_value)``.

        Returns:
            The callback, so the method can be used as a decorator.
        """
        self._listeners.append(callback)
        return callback

    def unsubscribe(self, callback: OptionListener, /) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def __setattr__(self, name: str, value: t.Any) -> None:
        super().__setattr__(name, value)
        if name in type(self).model_fields:
            current = getattr(self, name)
            for listener in list(self._listeners):
                listener(name, current)
