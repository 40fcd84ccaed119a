"""Context Key — canonical, comparable form of "what is being computed".

Manifesto:
The cache matches computations by exact equality of their context, and the
context is persisted with every job.  Free-form Python data is a poor key:
dict ordering, tuples vs lists, datetimes and dataclasses all serialize in
more than one way.  ``canonicalize()`` runs once, at submission, and turns
the input into a single deterministic JSON string; from there on the key
is an opaque string.

ARCHITECTURE
────────────
::

    caller data ──canonicalize()──▶ '{"bindings":{"x":1},"closure":{},"source":"m.f"}'
                                            │
                                  ContextKey(serialized, digest)
                                            │
                      store lookup (digest index + exact string match)

Rules:
    - mapping keys are sorted (key order never matters)
    - sequence order is preserved (``[1, 2] != [2, 1]``)
    - tuples encode as lists, sets as sorted lists
    - datetimes/dates as ISO strings, Decimal/UUID/Path as strings,
      enums by value, dataclasses and pydantic models by their fields

Example::

    >>> ContextKey.of({"b": 1, "a": [1, 2]}).serialized
    '{"a":[1,2],"b":1}'
    >>> ContextKey.of({"a": 1}) == ContextKey.of({"a": 1})
    True

Tags:
    computejobs, cache, context-key, canonical-json, hashing
"""

from __future__ import annotations

import dataclasses
import hashlib
import inspect
import json
from collections.abc import Callable, Mapping
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from pathlib import PurePath
from typing import Any
from uuid import UUID

from pydantic import BaseModel

from computejobs.core.errors import ContextKeyError


def _normalize(value: Any) -> Any:
    """Turn *value* into plain JSON-native data (dict/list/str/number/bool/None)."""
    if isinstance(value, Enum):
        return _normalize(value.value)
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, (Decimal, UUID, PurePath)):
        return str(value)
    if isinstance(value, BaseModel):
        return _normalize(value.model_dump(mode="json"))
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _normalize(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Mapping):
        normalized = {}
        for key, item in value.items():
            if not isinstance(key, str):
                # JSON would coerce 1 and "1" to the same key.
                raise ContextKeyError(
                    f"Context mapping keys must be strings, got {type(key).__name__}",
                    context={"key": repr(key)},
                )
            normalized[key] = _normalize(item)
        return normalized
    if isinstance(value, (list, tuple)):
        return [_normalize(item) for item in value]
    if isinstance(value, (set, frozenset)):
        items = [_normalize(item) for item in value]
        try:
            return sorted(items, key=_dumps)
        except ValueError as e:
            raise ContextKeyError(f"Context is not canonically serializable: {e}", cause=e) from e
    raise ContextKeyError(
        f"Cannot use value of type {type(value).__name__} in a computation context",
        context={"type": type(value).__qualname__},
    )


def _dumps(value: Any) -> str:
    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def canonicalize(value: Any) -> str:
    """Serialize *value* into its canonical JSON form.

    Raises:
        ContextKeyError: If the value (or a nested value) has no canonical
            encoding: unsupported types, non-string mapping keys, NaN or
            infinite floats.
    """
    normalized = _normalize(value)
    try:
        return _dumps(normalized)
    except ValueError as e:
        raise ContextKeyError(f"Context is not canonically serializable: {e}", cause=e) from e


def context_digest(serialized: str, length: int = 32) -> str:
    """SHA-256 hex digest of a serialized context (index column)."""
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()[:length]


@dataclasses.dataclass(frozen=True)
class ContextKey:
    """Canonical context of a computation.

    Equality and hashing go through ``serialized`` only.
    """

    serialized: str

    @classmethod
    def of(cls, value: Any) -> ContextKey:
        """Build a key from caller data (returns *value* unchanged if already a key)."""
        if isinstance(value, ContextKey):
            return value
        return cls(canonicalize(value))

    @property
    def digest(self) -> str:
        return context_digest(self.serialized)

    def __str__(self) -> str:
        return self.serialized


def _closure_values(fn: Callable[..., Any]) -> dict[str, Any]:
    try:
        return dict(inspect.getclosurevars(fn).nonlocals)
    except ValueError as e:
        # A closure cell that has not been assigned yet.
        raise ContextKeyError(f"Cannot read the closure of {fn!r}: {e}", cause=e) from e


def call_context(fn: Callable[..., Any], args: tuple[Any, ...], kwargs: dict[str, Any]) -> dict[str, Any]:
    """Context describing a call of *fn*.

    Holds the function's qualified name, the values its closure captured and
    the bound arguments.  Defaults are applied, so ``f(1)`` and ``f(1, y=2)``
    share a context when ``y`` defaults to ``2``; two closures made by the
    same factory differ by what they captured.

    Only plain functions (lambdas and nested functions included) and
    module-level builtins are accepted.  Bound methods, partials and
    callable objects carry state their name does not describe.

    Raises:
        ContextKeyError: If *fn* is another kind of callable, or its closure
            cannot be read.
        TypeError: If the arguments do not bind to ``fn``'s signature.
    """
    if inspect.isfunction(fn):
        closure = _closure_values(fn)
    elif inspect.isbuiltin(fn) and (fn.__self__ is None or inspect.ismodule(fn.__self__)):
        closure = {}
    else:
        raise ContextKeyError(
            f"Cannot derive a computation context from {type(fn).__name__} objects",
            context={"callable": repr(fn)},
        )

    bound = inspect.signature(fn).bind(*args, **kwargs)
    bound.apply_defaults()
    return {
        "source": f"{fn.__module__ or '<unknown>'}.{fn.__qualname__}",
        "closure": closure,
        "bindings": dict(bound.arguments),
    }
