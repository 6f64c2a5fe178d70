"""
Request and Response Schemas

Pydantic models for every entity. Field names are snake_case in Python and
camelCase on the wire; input models are the single validation step applied
before any service logic runs.
"""

from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Annotated, Any, Dict, List, Optional
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    PlainSerializer,
    StrictBool,
    field_validator,
)
from pydantic.alias_generators import to_camel


# Decimals go out as JSON numbers, not strings
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class CamelModel(BaseModel):
    """Base model: camelCase aliases, accepts either spelling on input"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =============================================================================
# CATALOG
# =============================================================================

class CategoryIn(CamelModel):
    """Category create/replace body"""
    name: str = Field(min_length=1)


class CategoryOut(CamelModel):
    id: str
    name: str


class ProductIn(CamelModel):
    """Product create/replace body"""
    name: str = Field(min_length=1)
    about: str
    price: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    category_ids: List[UUID] = Field(default_factory=list)

    def to_record(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "about": self.about,
            "price": self.price,
            "category_ids": [str(category_id) for category_id in self.category_ids],
        }


class ProductOut(CamelModel):
    id: str
    name: str
    about: str
    price: Money
    category_ids: List[str]
    average_score: Optional[Money] = None


class ProductWithCategories(ProductOut):
    """Product with its category references resolved"""
    categories: List[CategoryOut] = Field(default_factory=list)


# =============================================================================
# USERS
# =============================================================================

class UserIn(CamelModel):
    """User create/replace body"""
    username: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=6)


class UserPatch(CamelModel):
    """Partial user update; any subset of fields"""
    username: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=6)


class UserOut(CamelModel):
    """Public user projection, never carries the password"""
    id: str
    username: str
    email: str


# =============================================================================
# REVIEWS
# =============================================================================

class ReviewIn(CamelModel):
    user_id: UUID
    product_id: UUID
    score: int = Field(ge=1, le=5)
    content: str


class ReviewOut(CamelModel):
    id: str
    user_id: str
    product_id: str
    score: int
    content: str
    created_at: datetime


# =============================================================================
# ORDERS
# =============================================================================

class OrderIn(CamelModel):
    user_id: UUID
    product_ids: List[UUID] = Field(min_length=1)


class PaymentUpdate(CamelModel):
    payment: StrictBool


class OrderOut(CamelModel):
    id: str
    user_id: str
    product_ids: List[str]
    total: Money
    payment: bool
    created_at: datetime
    updated_at: datetime


class OrderDetail(OrderOut):
    """Order with its user and current product records resolved"""
    user: Optional[UserOut] = None
    products: List[ProductOut] = Field(default_factory=list)


# =============================================================================
# ANALYTICS
# =============================================================================

class AnalyticsEventIn(CamelModel):
    """Fields shared by views, actions and goals"""
    source: str
    url: str
    visitor: str
    created_at: datetime
    meta: Dict[str, Any]

    @field_validator("created_at", mode="before")
    @classmethod
    def coerce_created_at(cls, v: Any) -> Any:
        """Accept ISO strings, dates, or epoch milliseconds."""
        if isinstance(v, bool):
            return v
        if isinstance(v, (int, float)):
            try:
                return datetime.fromtimestamp(v / 1000, tz=timezone.utc)
            except (OverflowError, OSError, ValueError):
                raise ValueError("createdAt out of range") from None
        if isinstance(v, date) and not isinstance(v, datetime):
            return datetime.combine(v, time.min, tzinfo=timezone.utc)
        return v


class ViewIn(AnalyticsEventIn):
    pass


class ActionIn(AnalyticsEventIn):
    action: str


class GoalIn(AnalyticsEventIn):
    goal: str


class ViewOut(ViewIn):
    id: str


class ActionOut(ActionIn):
    id: str


class GoalOut(GoalIn):
    id: str


class GoalDetails(CamelModel):
    """A goal with every view and action from the same visitor"""
    goal: GoalOut
    views: List[ViewOut]
    actions: List[ActionOut]
