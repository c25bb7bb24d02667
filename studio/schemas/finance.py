from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from ..core.enums import EXPENSE_CATEGORIES, FINANCIAL_STATUSES, FINANCIAL_TYPES, pattern_for

TYPE_PATTERN = pattern_for(FINANCIAL_TYPES)
CATEGORY_PATTERN = pattern_for(EXPENSE_CATEGORIES)
STATUS_PATTERN = pattern_for(FINANCIAL_STATUSES)
PERIOD_PATTERN = pattern_for(("month", "quarter", "year", "all"))


class FinancialEntryBase(BaseModel):
    type: str = Field(..., pattern=TYPE_PATTERN)
    category: Optional[str] = Field(default=None, pattern=CATEGORY_PATTERN)
    description: str
    amount: float = Field(..., gt=0)
    currency: Optional[str] = None
    date: Optional[str] = None
    client_id: Optional[int] = None
    project_id: Optional[int] = None
    invoice_number: Optional[str] = None
    status: str = Field(default="pending", pattern=STATUS_PATTERN)


class FinancialEntryCreate(FinancialEntryBase):
    pass


class FinancialEntryUpdate(BaseModel):
    type: Optional[str] = Field(default=None, pattern=TYPE_PATTERN)
    category: Optional[str] = Field(default=None, pattern=CATEGORY_PATTERN)
    description: Optional[str] = None
    amount: Optional[float] = Field(default=None, gt=0)
    currency: Optional[str] = None
    date: Optional[str] = None
    client_id: Optional[int] = None
    project_id: Optional[int] = None
    invoice_number: Optional[str] = None
    status: Optional[str] = Field(default=None, pattern=STATUS_PATTERN)


class StatusChange(BaseModel):
    status: str = Field(..., pattern=STATUS_PATTERN)


class FinancialEntryOut(FinancialEntryBase):
    id: int
    currency: str
    date: str
    client_name: Optional[str] = None
    project_name: Optional[str] = None
    created_at: str
    updated_at: str

    class Config:
        from_attributes = True


class FinanceSummary(BaseModel):
    total_income: float = 0.0
    total_expenses: float = 0.0
    balance: float = 0.0
    pending_income: float = 0.0


class MonthlyFinance(BaseModel):
    month: str
    label: str
    income: float = 0.0
    expense: float = 0.0
    balance: float = 0.0


class CategoryFinance(BaseModel):
    category: str
    income: float = 0.0
    expense: float = 0.0
    balance: float = 0.0


class FinanceReport(BaseModel):
    period: str
    summary: FinanceSummary
    by_month: list[MonthlyFinance] = Field(default_factory=list)
    by_category: list[CategoryFinance] = Field(default_factory=list)
