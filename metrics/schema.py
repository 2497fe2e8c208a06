"""Result shape inference for custom queries.

A custom query selects its measure first and its label dimensions after it::

    select count(*) as cnt, region, host from stats group by region, host

yields the value column ``cnt`` and the label names ``("region", "host")``.
The metric is a gauge when the query text contains ``gauge_value``, matched
case sensitively, and a counter otherwise.
"""
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple
from .models import MetricType
from .errors import ConfigurationError


GAUGE_MARKER = "gauge_value"

_SELECT_RE = re.compile(r"\bselect\b", re.IGNORECASE)
_FROM_RE = re.compile(r"from\b", re.IGNORECASE)
_ALIAS_RE = re.compile(r"\s+as\s+(\"[^\"]+\"|[A-Za-z_][A-Za-z0-9_$]*)\s*$", re.IGNORECASE)
_IDENTIFIER_RE = re.compile(r"^(?:[A-Za-z_][A-Za-z0-9_$]*\.)*(\"[^\"]+\"|[A-Za-z_][A-Za-z0-9_$]*)$")
_LABEL_NAME_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


@dataclass(frozen=True)
class QueryShape:
    """Value column, label dimensions and kind derived from a query"""
    value_column: str
    label_names: Tuple[str, ...]
    metric_type: MetricType

    @property
    def column_count(self) -> int:
        return len(self.label_names) + 1


def infer_query_shape(query: str, name: str = "") -> QueryShape:
    """Derive the result shape of a custom query from its select list.

    Raises ConfigurationError when the select list cannot be parsed into a
    value column followed by valid label names.
    """
    select_list = extract_select_list(query)
    if select_list is None:
        raise ConfigurationError(f"Couldn't parse columns from select clause of query {name!r}: {query}")

    columns = split_columns(select_list)
    if not columns or any(not column for column in columns):
        raise ConfigurationError(f"Query {name!r} has an empty column in its select clause: {query}")

    names = [column_name(column) for column in columns]
    value_column = names[0] or columns[0]

    label_names = []
    for column, label in zip(columns[1:], names[1:]):
        if label is None or not _LABEL_NAME_RE.match(label):
            raise ConfigurationError(
                f"Query {name!r} selects {column!r} which cannot be used as a label name; alias it with AS"
            )
        if label in label_names:
            raise ConfigurationError(f"Query {name!r} selects label {label!r} more than once")
        label_names.append(label)

    if GAUGE_MARKER in query:
        metric_type = MetricType.GAUGE
    else:
        metric_type = MetricType.COUNTER

    return QueryShape(value_column=value_column, label_names=tuple(label_names), metric_type=metric_type)


def extract_select_list(query: str) -> Optional[str]:
    """Text between the first ``select`` and its top-level ``from``"""
    match = _SELECT_RE.search(query)
    if not match:
        return None

    start = match.end()
    depth = 0
    quote = None
    for i in range(start, len(query)):
        ch = query[i]
        if quote:
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        elif depth == 0 and _FROM_RE.match(query, i) and not _is_word_char(query[i - 1]):
            return query[start:i]
    return None


def split_columns(select_list: str) -> List[str]:
    """Split a select list on top-level commas"""
    columns = []
    depth = 0
    quote = None
    current = []
    for ch in select_list:
        if quote:
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        elif ch == "," and depth == 0:
            columns.append("".join(current).strip())
            current = []
            continue
        current.append(ch)
    columns.append("".join(current).strip())
    return columns


def column_name(column: str) -> Optional[str]:
    """Result column name of one select expression, None for an unnamed expression"""
    alias = _ALIAS_RE.search(column)
    if alias:
        return _fold(alias.group(1))

    identifier = _IDENTIFIER_RE.match(column.strip())
    if identifier:
        return _fold(identifier.group(1))
    return None


def _fold(identifier: str) -> str:
    # unquoted identifiers are case-folded by the server
    if identifier.startswith('"'):
        return identifier.strip('"')
    return identifier.lower()


def _is_word_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_"
