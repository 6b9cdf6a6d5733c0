"""Calendars app package.

Schedules, the environments (bookable resources) they contain, schedule
and organization-wide holidays, and per-user schedule permissions. The
app also owns the availability resolver and the permission policy used
by the booking lifecycle.
"""
