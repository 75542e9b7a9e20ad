"""
System settings module (admin-only).

A single JSON document of boolean policy flags, stored in the generic
app_settings key/value table and read on every policy decision.
"""
