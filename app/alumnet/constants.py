"""
Central constants for the AlumNet application.
"""
from __future__ import annotations

# Principal roles
ROLE_ADMIN = "ADMIN"
ROLE_MODERATOR = "MODERATOR"
ROLE_MEMBER = "MEMBER"
ROLES = (ROLE_ADMIN, ROLE_MODERATOR, ROLE_MEMBER)
STAFF_ROLES = frozenset({ROLE_ADMIN, ROLE_MODERATOR})

# Alumni profile lifecycle
PROFILE_STATUSES = ("ACTIVE", "SUSPENDED", "INACTIVE")

# Accomplishment categories
ACCOMPLISHMENT_TYPES = ("WEDDING", "PROMOTION", "NEW_EMPLOYMENT", "BIRTH", "OTHER")

# Events
EVENT_OPEN = "OPEN"
EVENT_CLOSED = "CLOSED"
EVENT_CANCELLED = "CANCELLED"
EVENT_STATUSES = (EVENT_OPEN, EVENT_CLOSED, EVENT_CANCELLED)
RSVP_GOING = "GOING"
EVENT_GRACE_DAYS = 1
UPCOMING_EVENTS_LIMIT = 150

# Page sizes
MODERATION_PAGE_SIZE = 8
SEARCH_PAGE_SIZE = 12
MEMBERS_PAGE_SIZE = 20
JOB_BOARD_LIMIT = 40
ACTIVITY_FEED_LIMIT = 8

# Synthetic matric numbers for profiles created without registration
ADMIN_MATRIC_PREFIX = "ADMIN-"
GENERATED_MATRIC_PREFIX = "USR-"
