from sqlalchemy import Column, LargeBinary, TIMESTAMP, func
from app.db.base import Base


class LedgerState(Base):
    """One ledger entry. ``key`` holds a UTF-8 encoded composite key."""
    __tablename__ = "ledger_state"
    key = Column(LargeBinary, primary_key=True)
    value = Column(LargeBinary, nullable=False)
    updated_at = Column(TIMESTAMP, nullable=False, server_default=func.now(), onupdate=func.now())
