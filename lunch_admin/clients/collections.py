"""Document store collection names.

The document store has no schema; these constants are the single source of
truth for where each kind of record lives.
"""

COLLECTION_USERS = "users"
COLLECTION_USER_APPROVALS = "userApprovals"
COLLECTION_AUDIT_LOGS = "auditLogs"
