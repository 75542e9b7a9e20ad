"""
Moderation module.

Staff (admins and moderators) review pending jobs and accomplishments:
- Pending queues are paginated newest-first
- Approve stamps the approver; rejecting a job deactivates it, rejecting an
  accomplishment deletes it
- Every decision is recorded to the audit trail
"""
