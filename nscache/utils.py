from __future__ import annotations

import functools as ft
import threading
import typing as t

_T = t.TypeVar("_T")


def singleton(factory: t.Callable[[], _T]) -> t.Callable[[], _T]:
    """Thread-safe singleton decorator for zero-argument factories.

    The instance is created the first time the decorated factory is called
    and the same instance is returned for all subsequent calls. A reentrant
    lock with double-checked access keeps creation single even when several
    threads race on the first call.

    Args:
        factory: The factory producing the shared instance.

    Returns:
        A wrapper returning the shared instance.
    """
    instance: list[_T] = []
    lock = threading.RLock()

    @ft.wraps(factory)
    def get_instance() -> _T:
        if not instance:
            with lock:
                if not instance:
                    instance.append(factory())
        return instance[0]

    return get_instance


def type_name(value: t.Any, /) -> str:
    """Describe the runtime type of a value without exposing its content.

    Builtins are reported by their bare name, everything else by its
    qualified name.

    Examples:
        ```python
        type_name(1)  # 'int'
        type_name(Decimal("1"))  # 'decimal.Decimal'
        ```
    """
    cls = type(value)
    if cls.__module__ == "builtins":
        return cls.__qualname__
    return f"{cls.__module__}.{cls.__qualname__}"
