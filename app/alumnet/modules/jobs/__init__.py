"""
Job board module.

Jobs are submitted by any principal with an alumni profile, start pending or
approved depending on system settings, and are soft-deleted on rejection.
"""
