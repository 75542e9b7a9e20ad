"""
Dashboards: read-only aggregates for admins, moderators and members.
"""
