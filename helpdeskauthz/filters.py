# -*- coding: utf-8 -*-
"""Location: ./helpdeskauthz/filters.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Declarative list-filter predicates.

The decision engine never fetches rows. For bulk queries it returns a small
predicate tree built from equality and set-membership tests joined with
AND/OR. Callers either evaluate it in memory with ``Predicate.matches`` or
translate it into their storage query language; ``to_sqlalchemy`` does the
latter for SQLAlchemy models.

Examples:
    >>> p = any_of(Eq("owner_id", "u1"), In("team_id", {"t1", "t2"}))
    >>> p.matches({"owner_id": "u9", "team_id": "t2"})
    True
    >>> p.matches({"owner_id": "u9", "team_id": None})
    False
    >>> all_of(ALWAYS, Eq("is_published", True))
    Eq(field='is_published', value=True)
    >>> any_of(NEVER, NEVER)
    Never()
"""

# Standard
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, FrozenSet, Iterable, Mapping, Tuple, Union

# Third-Party
from sqlalchemy import and_, false, or_, true
from sqlalchemy.sql.elements import ColumnElement


def _field_value(row: Any, field: str) -> Any:
    if isinstance(row, Mapping):
        return row.get(field)
    return getattr(row, field, None)


class Predicate:
    """Base class for filter predicates."""

    def matches(self, row: Any) -> bool:
        """Evaluate the predicate against one row.

        Args:
            row: A mapping or an object exposing the filtered fields

        Returns:
            bool: True if the row is admitted

        Raises:
            NotImplementedError: On the abstract base class
        """
        raise NotImplementedError

    def __and__(self, other: "Predicate") -> "Predicate":
        return all_of(self, other)

    def __or__(self, other: "Predicate") -> "Predicate":
        return any_of(self, other)


@dataclass(frozen=True)
class Always(Predicate):
    """Admits every row."""

    def matches(self, row: Any) -> bool:
        return True


@dataclass(frozen=True)
class Never(Predicate):
    """Admits no row."""

    def matches(self, row: Any) -> bool:
        return False


@dataclass(frozen=True)
class Eq(Predicate):
    """``row.field == value``."""

    field: str
    value: Any

    def matches(self, row: Any) -> bool:
        actual = _field_value(row, self.field)
        return actual is not None and actual == self.value


@dataclass(frozen=True)
class In(Predicate):
    """``row.field in values``."""

    field: str
    values: FrozenSet[Any]

    def __init__(self, field: str, values: Iterable[Any]):
        object.__setattr__(self, "field", field)
        object.__setattr__(self, "values", frozenset(values))

    def matches(self, row: Any) -> bool:
        actual = _field_value(row, self.field)
        return actual is not None and actual in self.values


@dataclass(frozen=True)
class Contains(Predicate):
    """``value in row.field`` for set-valued fields such as participants."""

    field: str
    value: Any

    def matches(self, row: Any) -> bool:
        actual = _field_value(row, self.field)
        if not actual:
            return False
        return self.value in actual


@dataclass(frozen=True)
class And(Predicate):
    """All clauses must admit the row."""

    clauses: Tuple[Predicate, ...]

    def matches(self, row: Any) -> bool:
        return all(clause.matches(row) for clause in self.clauses)


@dataclass(frozen=True)
class Or(Predicate):
    """At least one clause must admit the row."""

    clauses: Tuple[Predicate, ...]

    def matches(self, row: Any) -> bool:
        return any(clause.matches(row) for clause in self.clauses)


ALWAYS = Always()
NEVER = Never()


def all_of(*clauses: Predicate) -> Predicate:
    """Conjunction with constant folding.

    Args:
        *clauses: Predicates to join

    Returns:
        Predicate: ``NEVER`` if any clause is ``Never``, the single remaining
        clause, or an ``And`` node
    """
    kept = []
    for clause in clauses:
        if isinstance(clause, Never):
            return NEVER
        if isinstance(clause, Always):
            continue
        if isinstance(clause, And):
            kept.extend(clause.clauses)
        else:
            kept.append(clause)
    if not kept:
        return ALWAYS
    if len(kept) == 1:
        return kept[0]
    return And(tuple(kept))


def any_of(*clauses: Predicate) -> Predicate:
    """Disjunction with constant folding.

    Args:
        *clauses: Predicates to join

    Returns:
        Predicate: ``ALWAYS`` if any clause is ``Always``, the single remaining
        clause, or an ``Or`` node
    """
    kept = []
    for clause in clauses:
        if isinstance(clause, Always):
            return ALWAYS
        if isinstance(clause, Never):
            continue
        if isinstance(clause, Or):
            kept.extend(clause.clauses)
        else:
            kept.append(clause)
    if not kept:
        return NEVER
    if len(kept) == 1:
        return kept[0]
    return Or(tuple(kept))


ColumnTarget = Union[ColumnElement, Callable[[Any], ColumnElement], Any]


def _bind(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def to_sqlalchemy(predicate: Predicate, columns: Mapping[str, ColumnTarget]) -> ColumnElement:
    """Translate a predicate into a SQLAlchemy boolean clause.

    ``columns`` maps each predicate field to a mapped column. Set-valued
    fields used by ``Contains`` map to a callable taking the searched value
    and returning a clause (typically a relationship ``any()``).

    Args:
        predicate: Predicate returned by the decision engine
        columns: Field name to column or clause factory

    Returns:
        ColumnElement: Clause suitable for ``select(...).where(...)``

    Raises:
        ValueError: If the predicate references a field missing from ``columns``
            or is of an unknown type

    Examples:
        >>> from sqlalchemy import column
        >>> clause = to_sqlalchemy(In("team_id", ["t2", "t1"]), {"team_id": column("team_id")})
        >>> isinstance(clause, ColumnElement)
        True
        >>> str(to_sqlalchemy(NEVER, {}))
        'false'
    """

    def column_for(field: str) -> ColumnTarget:
        try:
            return columns[field]
        except KeyError:
            raise ValueError(f"No column mapped for filter field '{field}'") from None

    if isinstance(predicate, Always):
        return true()
    if isinstance(predicate, Never):
        return false()
    if isinstance(predicate, Eq):
        return column_for(predicate.field) == _bind(predicate.value)
    if isinstance(predicate, In):
        if not predicate.values:
            return false()
        return column_for(predicate.field).in_(sorted(_bind(v) for v in predicate.values))
    if isinstance(predicate, Contains):
        target = column_for(predicate.field)
        if hasattr(target, "__clause_element__") or isinstance(target, ColumnElement):
            return target == _bind(predicate.value)
        return target(_bind(predicate.value))
    if isinstance(predicate, And):
        return and_(*(to_sqlalchemy(clause, columns) for clause in predicate.clauses))
    if isinstance(predicate, Or):
        return or_(*(to_sqlalchemy(clause, columns) for clause in predicate.clauses))
    raise ValueError(f"Unsupported predicate type: {type(predicate).__name__}")
