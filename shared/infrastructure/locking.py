"""
Row locking helpers.

Pessimistic locks (SELECT FOR UPDATE) are only meaningful inside
transaction.atomic() and on backends that support them; elsewhere the
queryset is returned unchanged. On SQLite the settings open every
transaction with BEGIN IMMEDIATE, which serializes writers instead.
"""

from django.db import connections  # type: ignore


def lock_queryset_if_possible(queryset, of: tuple[str, ...] = ()):
    """Apply select_for_update when inside transaction.atomic()."""

    connection = connections[queryset.db]
    if not connection.in_atomic_block or not connection.features.has_select_for_update:
        return queryset

    if of and connection.features.has_select_for_update_of:
        return queryset.select_for_update(of=of)
    return queryset.select_for_update()
