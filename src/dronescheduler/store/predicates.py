"""Typed query predicates pushed down to the document store.

A predicate is a small expression tree over document fields. Fields are
named by their Python attribute and resolved to stored JSON names through
the document class, so callers never spell wire names.

The same tree compiles to a parameterized Cosmos SQL ``WHERE`` clause and
evaluates against raw documents for in-memory stores. Evaluation is
three-valued like the store's: comparing a missing field or values of
different JSON types yields undefined (``None``), ``NOT`` keeps undefined,
and only ``True`` selects a document.

Example:
    predicate = (Field("owner_id") == "o00042") & (Field("year") >= 2019)
    where, params = predicate.compile(InternalDroneUtilization)
    # where  -> '(c.ownerId = @p0) AND (c.year >= @p1)'
    # params -> [{'name': '@p0', 'value': 'o00042'}, {'name': '@p1', 'value': 2019}]
"""

from __future__ import annotations

import operator
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, Iterable, Mapping

if TYPE_CHECKING:
    from ..core.types import BaseDocument

_SQL_OPERATORS: dict[str, str] = {
    "eq": "=",
    "ne": "!=",
    "lt": "<",
    "le": "<=",
    "gt": ">",
    "ge": ">=",
}

_PY_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "eq": operator.eq,
    "ne": operator.ne,
    "lt": operator.lt,
    "le": operator.le,
    "gt": operator.gt,
    "ge": operator.ge,
}

_MISSING = object()


def _kind(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, Mapping):
        return "object"
    return "array"


def _path(document_cls: type["BaseDocument"], alias: str, attr: str) -> str:
    name = document_cls.json_name(attr)
    if name.isidentifier():
        return f"{alias}.{name}"
    return f'{alias}["{name}"]'


def _lookup(document_cls: type["BaseDocument"], raw: Mapping[str, Any], attr: str) -> Any:
    return raw.get(document_cls.json_name(attr), _MISSING)


class _Parameters:
    """Collects ``@pN`` query parameters while compiling."""

    def __init__(self) -> None:
        self.values: list[dict[str, Any]] = []

    def add(self, value: Any) -> str:
        name = f"@p{len(self.values)}"
        self.values.append({"name": name, "value": value})
        return name


class Predicate(ABC):
    """Filter expression over one document type."""

    def __and__(self, other: "Predicate") -> "Predicate":
        return And(self, other)

    def __or__(self, other: "Predicate") -> "Predicate":
        return Or(self, other)

    def __invert__(self) -> "Predicate":
        return Not(self)

    def compile(
        self, document_cls: type["BaseDocument"], alias: str = "c"
    ) -> tuple[str, list[dict[str, Any]]]:
        """Compile to a Cosmos SQL condition and its parameter list."""
        params = _Parameters()
        return self._to_sql(document_cls, alias, params), params.values

    def matches(self, document_cls: type["BaseDocument"], raw: Mapping[str, Any]) -> bool:
        """Evaluate against one raw document."""
        return self._evaluate(document_cls, raw) is True

    @abstractmethod
    def _to_sql(self, document_cls: type["BaseDocument"], alias: str, params: _Parameters) -> str:
        ...

    @abstractmethod
    def _evaluate(
        self, document_cls: type["BaseDocument"], raw: Mapping[str, Any]
    ) -> bool | None:
        ...


class _Always(Predicate):
    def _to_sql(self, document_cls, alias, params) -> str:
        return "true"

    def _evaluate(self, document_cls, raw) -> bool:
        return True

    def __and__(self, other: Predicate) -> Predicate:
        return other

    def __repr__(self) -> str:
        return "ALL"


ALL: Predicate = _Always()
"""Predicate matching every document."""


class Comparison(Predicate):
    """``field <op> value``."""

    def __init__(self, attr: str, op: str, value: Any):
        self.attr = attr
        self.op = op
        self.value = value

    def _to_sql(self, document_cls, alias, params) -> str:
        return f"{_path(document_cls, alias, self.attr)} {_SQL_OPERATORS[self.op]} {params.add(self.value)}"

    def _evaluate(self, document_cls, raw) -> bool | None:
        actual = _lookup(document_cls, raw, self.attr)
        if actual is _MISSING or _kind(actual) != _kind(self.value):
            return None
        try:
            return bool(_PY_OPERATORS[self.op](actual, self.value))
        except TypeError:
            # objects and nulls have no ordering
            return None

    def __repr__(self) -> str:
        return f"Comparison({self.attr!r}, {self.op!r}, {self.value!r})"


class In(Predicate):
    """``field IN (values)``."""

    def __init__(self, attr: str, values: Iterable[Any]):
        self.attr = attr
        self.values = list(values)

    def _to_sql(self, document_cls, alias, params) -> str:
        if not self.values:
            return "false"
        return f"ARRAY_CONTAINS({params.add(self.values)}, {_path(document_cls, alias, self.attr)})"

    def _evaluate(self, document_cls, raw) -> bool:
        actual = _lookup(document_cls, raw, self.attr)
        if actual is _MISSING:
            return False
        return any(_kind(v) == _kind(actual) and v == actual for v in self.values)


class StartsWith(Predicate):
    """``STARTSWITH(field, prefix)``."""

    def __init__(self, attr: str, prefix: str):
        self.attr = attr
        self.prefix = prefix

    def _to_sql(self, document_cls, alias, params) -> str:
        return f"STARTSWITH({_path(document_cls, alias, self.attr)}, {params.add(self.prefix)})"

    def _evaluate(self, document_cls, raw) -> bool | None:
        actual = _lookup(document_cls, raw, self.attr)
        if not isinstance(actual, str):
            return None
        return actual.startswith(self.prefix)


class And(Predicate):
    def __init__(self, left: Predicate, right: Predicate):
        self.left = left
        self.right = right

    def _to_sql(self, document_cls, alias, params) -> str:
        left = self.left._to_sql(document_cls, alias, params)
        right = self.right._to_sql(document_cls, alias, params)
        return f"({left}) AND ({right})"

    def _evaluate(self, document_cls, raw) -> bool | None:
        left = self.left._evaluate(document_cls, raw)
        right = self.right._evaluate(document_cls, raw)
        if left is False or right is False:
            return False
        if left is None or right is None:
            return None
        return True


class Or(Predicate):
    def __init__(self, left: Predicate, right: Predicate):
        self.left = left
        self.right = right

    def _to_sql(self, document_cls, alias, params) -> str:
        left = self.left._to_sql(document_cls, alias, params)
        right = self.right._to_sql(document_cls, alias, params)
        return f"({left}) OR ({right})"

    def _evaluate(self, document_cls, raw) -> bool | None:
        left = self.left._evaluate(document_cls, raw)
        right = self.right._evaluate(document_cls, raw)
        if left is True or right is True:
            return True
        if left is None or right is None:
            return None
        return False


class Not(Predicate):
    def __init__(self, inner: Predicate):
        self.inner = inner

    def _to_sql(self, document_cls, alias, params) -> str:
        return f"NOT ({self.inner._to_sql(document_cls, alias, params)})"

    def _evaluate(self, document_cls, raw) -> bool | None:
        inner = self.inner._evaluate(document_cls, raw)
        return None if inner is None else not inner


class Field:
    """Reference to a document attribute, used to build predicates.

    Example:
        Field("month") == 6
        Field("owner_id").is_in(["o00042", "o00043"])
    """

    def __init__(self, attr: str):
        self.attr = attr

    def __eq__(self, value: Any) -> Predicate:  # type: ignore[override]
        return Comparison(self.attr, "eq", value)

    def __ne__(self, value: Any) -> Predicate:  # type: ignore[override]
        return Comparison(self.attr, "ne", value)

    def __lt__(self, value: Any) -> Predicate:
        return Comparison(self.attr, "lt", value)

    def __le__(self, value: Any) -> Predicate:
        return Comparison(self.attr, "le", value)

    def __gt__(self, value: Any) -> Predicate:
        return Comparison(self.attr, "gt", value)

    def __ge__(self, value: Any) -> Predicate:
        return Comparison(self.attr, "ge", value)

    __hash__ = None  # type: ignore[assignment]

    def is_in(self, values: Iterable[Any]) -> Predicate:
        return In(self.attr, values)

    def startswith(self, prefix: str) -> Predicate:
        return StartsWith(self.attr, prefix)

    def __repr__(self) -> str:
        return f"Field({self.attr!r})"
