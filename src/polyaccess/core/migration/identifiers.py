"""Identifier sanitizing and quoting for generated PostgreSQL DDL/DML."""

import hashlib
import re

# PostgreSQL truncates identifiers longer than NAMEDATALEN - 1 bytes.
MAX_IDENTIFIER_LENGTH = 63

_WHITESPACE = re.compile(r"\s+")
_UNSAFE = re.compile(r"[^a-z0-9_]")


def sanitize_name(name: str) -> str:
    """Normalize a legacy name into a lowercase ``[a-z0-9_]`` identifier.

    Whitespace runs become a single underscore; any other character outside
    the safe set is dropped. Applying it twice gives the same result.

    >>> sanitize_name("Order Details")
    'order_details'
    >>> sanitize_name("Qty (units)")
    'qty_units'
    """
    return _UNSAFE.sub("", _WHITESPACE.sub("_", name.lower()))


def quote_ident(name: str) -> str:
    """Quote an identifier, doubling embedded double quotes."""
    return '"' + name.replace('"', '""') + '"'


def qualified_name(schema_name: str, object_name: str) -> str:
    """Quoted ``schema.object`` reference."""
    return f"{quote_ident(schema_name)}.{quote_ident(object_name)}"


def index_name(table_name: str, legacy_index_name: str) -> str:
    """Name for a secondary index, scoped by its owning table.

    Legacy databases reuse index names across tables (``idx1``, ``PrimaryKey``,
    ...), but PostgreSQL index names share the schema namespace with tables.
    Names over the identifier limit keep a stable hash suffix so two long
    names sharing a prefix stay distinct.
    """
    name = f"{table_name}_{sanitize_name(legacy_index_name)}"
    if len(name) <= MAX_IDENTIFIER_LENGTH:
        return name
    digest = hashlib.sha1(name.encode("utf-8")).hexdigest()[:8]
    return f"{name[:MAX_IDENTIFIER_LENGTH - 9]}_{digest}"
