import uuid

from sqlalchemy import Column, DateTime, Numeric, String, Text, text

from app.infrastructure.db.base import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class Transaction(Base):
    __tablename__ = "transactions"
    id = Column(String(36), primary_key=True, default=_new_id)
    type = Column(String(20), nullable=False, index=True)  # "Income" | "Expense"
    category = Column(String(50), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    description = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"))

    def __repr__(self) -> str:
        return f"<Transaction {self.id} {self.type} {self.category} {self.amount}>"
