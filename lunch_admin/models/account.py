from sqlalchemy import Column, String, Boolean, DateTime
from datetime import datetime
from lunch_admin.config.database import Base

class Account(Base):
    __tablename__ = "accounts"

    uid = Column(String, primary_key=True, index=True) # Same shape as a Firebase Auth UID
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    display_name = Column(String, nullable=True)
    disabled = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
