"""SQLAlchemy models for finledger database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


def _now() -> datetime:
    return datetime.now(UTC)


class Account(Base):
    """Bank account model."""

    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True)
    name = Column(String, unique=True, nullable=False)
    opening_date = Column(Date, nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)

    transactions = relationship("Transaction", back_populates="account")


class Category(Base):
    """Category model."""

    __tablename__ = "categories"

    id = Column(String(36), primary_key=True)
    name = Column(String, nullable=False)
    kind = Column(String(16), nullable=False)
    is_system = Column(Boolean, default=False, nullable=False)
    monthly_budget = Column(Numeric(12, 2), nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)

    transactions = relationship("Transaction", back_populates="category")


class Transaction(Base):
    """Transaction model."""

    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True)
    account_id = Column(String(36), ForeignKey("accounts.id"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    category_id = Column(String(36), ForeignKey("categories.id"), nullable=False)
    kind = Column(String(16), nullable=False)
    description = Column(String(200), nullable=False, default="")
    settled = Column(Boolean, default=True, nullable=False)
    forecast = Column(Boolean, default=False, nullable=False)
    role = Column(String(16), nullable=False, default="normal")
    leg_role = Column(String(8), nullable=True)
    paired_transfer_id = Column(String(36), nullable=True)
    recurrence_rule = Column(String(8), nullable=True)
    recurrence_group_id = Column(String(36), nullable=True, index=True)
    card_id = Column(String(36), ForeignKey("card_accounts.id"), nullable=True)
    billing_competency = Column(String(7), nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)

    account = relationship("Account", back_populates="transactions")
    category = relationship("Category", back_populates="transactions")


class CardAccount(Base):
    """Credit card model."""

    __tablename__ = "card_accounts"

    id = Column(String(36), primary_key=True)
    nickname = Column(String, nullable=False)
    closing_day = Column(Integer, nullable=False)
    due_day = Column(Integer, nullable=False)
    credit_limit = Column(Numeric(12, 2), nullable=True)
    default_account_id = Column(String(36), ForeignKey("accounts.id"), nullable=True)
    brand = Column(String(16), nullable=False, default="other")
    created_at = Column(DateTime, default=_now, nullable=False)

    purchases = relationship("CardPurchase", back_populates="card")


class CardPurchase(Base):
    """Card purchase model."""

    __tablename__ = "card_purchases"

    id = Column(String(36), primary_key=True)
    card_id = Column(String(36), ForeignKey("card_accounts.id"), nullable=False, index=True)
    purchase_date = Column(Date, nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)
    installment_count = Column(Integer, nullable=False)
    category_id = Column(String(36), ForeignKey("categories.id"), nullable=False)
    description = Column(String(200), nullable=False, default="")
    is_reversal = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)

    card = relationship("CardAccount", back_populates="purchases")
    installments = relationship(
        "CardInstallment", back_populates="purchase", cascade="all, delete-orphan"
    )


class CardInstallment(Base):
    """Card installment model."""

    __tablename__ = "card_installments"

    id = Column(String(36), primary_key=True)
    purchase_id = Column(String(36), ForeignKey("card_purchases.id"), nullable=False, index=True)
    installment_number = Column(Integer, nullable=False)
    installment_amount = Column(Numeric(12, 2), nullable=False)
    billing_competency = Column(String(7), nullable=False, index=True)

    purchase = relationship("CardPurchase", back_populates="installments")


class InvestmentGoal(Base):
    """Savings goal model."""

    __tablename__ = "investment_goals"

    id = Column(String(36), primary_key=True)
    name = Column(String, nullable=False)
    target_amount = Column(Numeric(12, 2), nullable=False)
    target_date = Column(Date, nullable=False)
    category_id = Column(String(36), ForeignKey("categories.id"), nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)


class Setting(Base):
    """Key/value application state (e.g. last recurrence run)."""

    __tablename__ = "settings"

    key = Column(String, primary_key=True)
    value = Column(String, nullable=True)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)
