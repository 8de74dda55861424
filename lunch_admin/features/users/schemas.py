from typing import Optional
from pydantic import BaseModel, Field

ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"

APPROVAL_PENDING = "pending"
APPROVAL_APPROVED = "approved"
APPROVAL_REJECTED = "rejected"

# Pydantic Models
class UserRecord(BaseModel):
    """A ``users/{uid}`` document. Field names on the wire are camelCase."""

    uid: str
    email: str
    display_name: str = Field(alias="displayName")
    role: str
    department: str = ""
    employee_id: str = Field("", alias="employeeId")
    email_verified: bool = Field(False, alias="emailVerified")
    disabled: bool = False
    pending_approval: bool = Field(False, alias="pendingApproval")
    creation_time: str = Field(alias="creationTime")
    last_login: Optional[str] = Field(None, alias="lastLogin")
    last_activity: Optional[str] = Field(None, alias="lastActivity")
    created_by: str = Field(alias="createdBy")
    last_updated: str = Field(alias="lastUpdated")
    updated_by: str = Field(alias="updatedBy")

    class Config:
        populate_by_name = True

    def to_document(self):
        return self.model_dump(by_alias=True)

class ApprovalRequest(BaseModel):
    """A ``userApprovals/{uid}`` document gating activation of a manager account."""

    user_id: str = Field(alias="userId")
    email: str
    display_name: str = Field(alias="displayName")
    role: str
    department: str = ""
    employee_id: str = Field("", alias="employeeId")
    request_time: str = Field(alias="requestTime")
    status: str = APPROVAL_PENDING
    reviewed_by: Optional[str] = Field(None, alias="reviewedBy")
    reviewed_at: Optional[str] = Field(None, alias="reviewedAt")
    notes: str = ""

    class Config:
        populate_by_name = True

    def to_document(self):
        return self.model_dump(by_alias=True)
