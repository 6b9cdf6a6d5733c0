"""Bookings app package.

The booking lifecycle (create, cancel), hard and soft conflict detection,
and the public entry points in ``apps.bookings.api``. Creation is
serialized per environment with a row lock, backed on PostgreSQL by an
exclusion constraint on overlapping active bookings.
"""
