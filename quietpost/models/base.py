from sqlalchemy import Column, Integer, DateTime
from datetime import datetime
import uuid

from quietpost.db.base import Base

def generate_anonymous_id() -> str:
    return uuid.uuid4().hex

class BaseModel(Base):
    __abstract__ = True

    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
