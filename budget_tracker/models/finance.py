"""
Core Data Models for Budget Tracker

These models define the schemas for all data flowing through the tracker.
They are designed to:
1. Enforce type safety at runtime
2. Keep categories a closed set shared by transactions and budgets
3. Make a budget's scope explicit instead of a null/empty sentinel

DESIGN DECISION: Amounts are Decimals. Currency rounding is absorbed by
the progress calculator's tolerance, never by float arithmetic.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


MONTH_KEY_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"


def month_key(value: date) -> str:
    """Year-month key (``YYYY-MM``) of a date or datetime."""
    return value.strftime("%Y-%m")


def wall_clock(value: datetime) -> datetime:
    """
    Drop the UTC offset, keeping the time as recorded.

    Stored timestamps are all naive so they compare and sort together, and
    the month key stays the one the user saw when recording.
    """
    if value.tzinfo is not None:
        return value.replace(tzinfo=None)
    return value


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Category(str, Enum):
    """
    Supported transaction categories.

    Budgets share this set, except that a budget can never track INCOME.
    """
    FOOD_DINING = "Food & Dining"
    HOUSING = "Housing"
    TRANSPORTATION = "Transportation"
    UTILITIES = "Utilities"
    HEALTHCARE = "Healthcare"
    ENTERTAINMENT = "Entertainment"
    SHOPPING = "Shopping"
    EDUCATION = "Education"
    PERSONAL_CARE = "Personal Care"
    TRAVEL = "Travel"
    INVESTMENTS = "Investments"
    INCOME = "Income"
    OTHER = "Other"


class TransactionType(str, Enum):
    """Transaction classification. Authoritative over the amount's sign."""
    EXPENSE = "expense"
    INCOME = "income"


class BudgetStatus(str, Enum):
    """Where spending stands against a budget."""
    UNDER = "under"
    AT = "at"
    OVER = "over"


# =============================================================================
# TRANSACTIONS
# =============================================================================

class Transaction(BaseModel):
    """
    A recorded income or expense.

    The amount may be stored signed (expenses are often negative) but the
    sign carries no meaning here: `type` decides income vs expense and
    aggregations use the magnitude.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique transaction ID"
    )
    amount: Decimal = Field(
        ...,
        description="Signed amount; only the magnitude is aggregated"
    )
    description: str = Field(
        default="",
        max_length=200,
        description="What the money was for"
    )
    date: datetime = Field(
        ...,
        description="When the transaction happened"
    )
    category: Category = Field(
        default=Category.OTHER,
        description="Transaction category"
    )
    type: TransactionType = Field(
        default=TransactionType.EXPENSE,
        description="Expense or income"
    )

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator('date')
    @classmethod
    def naive_date(cls, v: datetime) -> datetime:
        return wall_clock(v)

    @property
    def magnitude(self) -> Decimal:
        return abs(self.amount)

    @property
    def month(self) -> str:
        return month_key(self.date)

    @property
    def is_expense(self) -> bool:
        return self.type == TransactionType.EXPENSE


# =============================================================================
# BUDGET SCOPE - explicit tagged variant
# =============================================================================

class AllCategories(BaseModel):
    """A monthly budget: every expense of the month counts."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["all"] = "all"

    def matches(self, category: Category) -> bool:
        return True


class SpecificCategory(BaseModel):
    """A category budget: only expenses of one category count."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["category"] = "category"
    category: Category

    @field_validator('category')
    @classmethod
    def reject_income(cls, v: Category) -> Category:
        if v == Category.INCOME:
            raise ValueError("A budget cannot track the Income category")
        return v

    def matches(self, category: Category) -> bool:
        return category == self.category


BudgetScope = Annotated[
    Union[AllCategories, SpecificCategory],
    Field(discriminator="kind"),
]


def _scope_data(category: Optional[Any]) -> dict:
    # None and blank strings both mean "no category", i.e. a monthly budget
    if category is None:
        return {"kind": "all"}
    if isinstance(category, str):
        if not category.strip():
            return {"kind": "all"}
        category = category.strip()
    return {"kind": "category", "category": category}


def scope_for(category: Optional[Any]) -> Union[AllCategories, SpecificCategory]:
    """
    Build a scope from an optional category value.

    Raises ValueError for unknown categories and for Income.
    """
    data = _scope_data(category)
    if data["kind"] == "all":
        return AllCategories()
    return SpecificCategory(category=data["category"])


# =============================================================================
# BUDGETS
# =============================================================================

class Budget(BaseModel):
    """
    A spending cap for one month.

    `amount` is expected to be positive (enforced by BudgetValidator), but
    the model admits zero so the progress calculator can be handed one. A
    missing amount is rejected here, at the budget source's boundary, so the
    calculator never sees one; its zero-amount guard covers the rest.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique budget ID"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Label shown to the user"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Allocated cap"
    )
    month: str = Field(
        ...,
        pattern=MONTH_KEY_PATTERN,
        description="Applicable period as YYYY-MM"
    )
    scope: BudgetScope = Field(
        default_factory=AllCategories,
        description="Which expenses count toward this budget"
    )
    is_active: bool = Field(
        default=True,
        description="Inactive budgets are left out of listings"
    )

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @model_validator(mode='before')
    @classmethod
    def category_to_scope(cls, data: Any) -> Any:
        """Accept a plain optional `category` in place of `scope`."""
        if isinstance(data, dict) and "category" in data:
            data = dict(data)
            category = data.pop("category")
            if "scope" not in data:
                data["scope"] = _scope_data(category)
        return data

    @property
    def category(self) -> Optional[Category]:
        if isinstance(self.scope, SpecificCategory):
            return self.scope.category
        return None

    @property
    def is_monthly(self) -> bool:
        return isinstance(self.scope, AllCategories)


class BudgetWithProgress(Budget):
    """
    A budget joined with its month's spending.

    Ephemeral: recomputed on every query and never persisted.
    """

    spent: Decimal = Field(
        ...,
        description="Sum of magnitudes of matching expenses"
    )
    remaining: Decimal = Field(
        ...,
        description="amount - spent; negative when over budget"
    )
    percentage: Decimal = Field(
        ...,
        description="spent / amount * 100, or 0 when amount is 0"
    )
    status: BudgetStatus


# =============================================================================
# INPUT DRAFTS - what the user typed, before validation
# =============================================================================

class TransactionDraft(BaseModel):
    """
    Unvalidated transaction input.

    Everything is optional or loosely typed so the validator can report
    every problem at once instead of failing on the first.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    draft_id: UUID = Field(default_factory=uuid4)
    amount: Optional[Decimal] = None
    description: str = ""
    date: Optional[datetime] = None
    category: Optional[str] = Category.OTHER.value
    type: Optional[str] = TransactionType.EXPENSE.value

    @field_validator('date')
    @classmethod
    def naive_date(cls, v: Optional[datetime]) -> Optional[datetime]:
        return wall_clock(v) if v is not None else None


class BudgetDraft(BaseModel):
    """Unvalidated budget input."""
    model_config = ConfigDict(str_strip_whitespace=True)

    draft_id: UUID = Field(default_factory=uuid4)
    name: Optional[str] = None
    amount: Optional[Decimal] = None
    month: Optional[str] = None
    category: Optional[str] = None
    is_active: Optional[bool] = Field(
        default=None,
        description="None keeps the current flag on edits and means active on create"
    )


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'duplicate')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = None


class ValidationResult(BaseModel):
    """
    Result of the two-stage validation.

    Stage 1: Schema validation (required fields, formats, enumerations)
    Stage 2: Semantic validation (sanity checks, duplicates)
    """

    draft_id: UUID
    validated_at: datetime = Field(
        default_factory=datetime.utcnow
    )

    schema_valid: bool
    semantic_valid: bool
    is_valid: bool

    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def error_messages(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "error"]
