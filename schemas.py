"""
Database Schemas and API models for the Expense Manager

Document schemas map onto MongoDB collections; the collection name is
the lowercase of the class name:
- User -> "user"
- Transaction -> "transaction"

API models describe request and response bodies. JSON keys on the wire
are camelCase (userId, createdAt, totalIncome, ...).
"""

from datetime import date, datetime, time
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

TransactionType = Literal["income", "expense"]


def to_storage_date(value: date) -> datetime:
    """BSON has no date type, so calendar dates are kept as midnight datetimes."""
    return datetime.combine(value, time.min)


def from_storage_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


# ----------------------
# Collections
# ----------------------

class User(BaseModel):
    """
    Users collection schema
    Collection name: "user"
    """
    email: EmailStr = Field(..., description="Email address (unique)")
    password_hash: str = Field(..., description="BCrypt hashed password")


class Transaction(BaseModel):
    """
    Transactions collection schema
    Collection name: "transaction"
    """
    user_id: str = Field(..., description="ID of the owning user")
    description: str = Field(..., description="What the money was for")
    amount: float = Field(..., gt=0, description="Positive amount; the sign comes from type")
    date: datetime = Field(..., description="Transaction day, stored at midnight")
    category: str = Field(..., description="Free-text category label")
    type: TransactionType = Field(..., description="income or expense")


# ----------------------
# API models
# ----------------------

class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)


class LoginRequest(BaseModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class Token(BaseModel):
    token: str


class Message(BaseModel):
    message: str


class Identity(BaseModel):
    """Caller identity decoded from a session token."""
    id: str
    email: str


class TransactionIn(BaseModel):
    """Mutable fields of a transaction, as sent by the client."""
    model_config = ConfigDict(str_strip_whitespace=True)

    description: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)
    date: date
    category: str = Field(..., min_length=1)
    type: TransactionType

    def to_document_fields(self) -> dict:
        fields = self.model_dump()
        fields["date"] = to_storage_date(self.date)
        return fields


class TransactionOut(CamelModel):
    id: str
    description: str
    amount: float
    date: date
    category: str
    type: TransactionType
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: dict) -> "TransactionOut":
        return cls(
            id=str(doc["_id"]),
            description=doc["description"],
            amount=float(doc["amount"]),
            date=from_storage_date(doc["date"]),
            category=doc["category"],
            type=doc["type"],
            user_id=doc.get("user_id"),
            created_at=doc.get("created_at"),
        )


class CategoryTotal(CamelModel):
    category: str
    total: float


class MonthlySummary(CamelModel):
    month: str = Field(..., description="YYYY-MM")
    income: float
    expense: float
    balance: float


class DashboardSummary(CamelModel):
    total_income: float = 0.0
    total_expense: float = 0.0
    balance: float = 0.0
    category_totals: List[CategoryTotal] = Field(default_factory=list)
    monthly_data: List[MonthlySummary] = Field(default_factory=list)
