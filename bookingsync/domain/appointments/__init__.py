"""
Appointments Domain

Booking mutations (create, confirm, start, complete, reschedule, cancel,
invoice) and the calendar sync / notification side effects they trigger.
"""
