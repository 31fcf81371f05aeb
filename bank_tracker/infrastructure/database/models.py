"""SQLAlchemy ORM models for the relational backend"""

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()

MONEY = Numeric(12, 2)


class UserRecord(Base):
    """Account holder allowed to sign in"""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True)
    email = Column(Text, nullable=False, unique=True, index=True)
    password_hash = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class BankRecord(Base):
    """Bank account with its initial balance"""

    __tablename__ = "banks"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(Text, nullable=False)
    initial_balance = Column(MONEY, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    transactions = relationship("TransactionRecord", back_populates="bank", cascade="all, delete-orphan")


class CreditCardRecord(Base):
    """Credit card with limit and accumulated balance"""

    __tablename__ = "credit_cards"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(Text, nullable=False)
    credit_limit = Column(MONEY, nullable=False, default=0)
    current_balance = Column(MONEY, nullable=False, default=0)
    closing_day = Column(Integer, nullable=False, default=1)
    due_day = Column(Integer, nullable=False, default=15)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    transactions = relationship("TransactionRecord", back_populates="credit_card", cascade="all, delete-orphan")
    installments = relationship("InstallmentRecord", back_populates="credit_card", cascade="all, delete-orphan")


class TransactionRecord(Base):
    """Income or expense, settled via a bank, a card, or cash"""

    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    bank_id = Column(String(36), ForeignKey("banks.id", ondelete="CASCADE"), nullable=True)
    credit_card_id = Column(String(36), ForeignKey("credit_cards.id", ondelete="CASCADE"), nullable=True)
    description = Column(Text, nullable=False)
    amount = Column(MONEY, nullable=False)
    type = Column(String(16), nullable=False)  # "income" or "expense"
    category = Column(Text, nullable=False)
    date = Column(Date, nullable=False)
    installments = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    bank = relationship("BankRecord", back_populates="transactions")
    credit_card = relationship("CreditCardRecord", back_populates="transactions")
    installment_records = relationship("InstallmentRecord", back_populates="transaction")


class InstallmentRecord(Base):
    """One scheduled portion of a card purchase"""

    __tablename__ = "installments"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    transaction_id = Column(String(36), ForeignKey("transactions.id", ondelete="SET NULL"), nullable=True)
    credit_card_id = Column(String(36), ForeignKey("credit_cards.id", ondelete="CASCADE"), nullable=False)
    installment_number = Column(Integer, nullable=False)
    total_installments = Column(Integer, nullable=False)
    amount = Column(MONEY, nullable=False)
    due_date = Column(Date, nullable=False)
    is_paid = Column(Boolean, nullable=False, default=False)

    transaction = relationship("TransactionRecord", back_populates="installment_records")
    credit_card = relationship("CreditCardRecord", back_populates="installments")
