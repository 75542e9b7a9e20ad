"""
Alumni directory module.

- Alumni profiles (1:1 with users), created at registration, by an admin, or
  lazily for admins who post content
- Directory search (read-only)
- Profile self-service and admin member management
"""
