"""
Core business logic - transport-agnostic.

Exams, registrations, reminders and multi-channel delivery, plus Google
Calendar sync. Used by the web API and the scheduled notification sweep.
"""
