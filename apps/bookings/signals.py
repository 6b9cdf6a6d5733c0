"""Signals sent by the bookings app.

``booking_notification_requested`` is the hand-off point to whatever
delivers mail or calendar invites. Receivers get ``booking``, ``kind``
(``"created"`` or ``"cancelled"``), ``recipient_ids`` and ``reason``.
"""

from django.dispatch import Signal  # type: ignore

booking_notification_requested = Signal()
