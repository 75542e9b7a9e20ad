"""
Events module.

Admin-managed events with optional capacity; members RSVP and cancel
idempotently. One RSVP per (event, alumnus), enforced by a unique constraint.
"""
