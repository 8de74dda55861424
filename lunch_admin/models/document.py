from sqlalchemy import Column, String, JSON, DateTime
from datetime import datetime
from lunch_admin.config.database import Base

class Document(Base):
    __tablename__ = "documents"

    collection = Column(String, primary_key=True) # e.g. "users", "userApprovals"
    doc_id = Column(String, primary_key=True)
    data = Column(JSON, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
