"""
Wire models for the TiffinHub REST API.

The backend owns these entities; the client only reads them. Field names on the
wire are camelCase (and Mongo-style ``_id``), so every model accepts both the
alias and the Python name and ignores fields it does not know about.
"""

from typing import List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class User(WireModel):
    id: str = Field(..., validation_alias=AliasChoices("id", "_id"))
    name: str = ""
    email: str = ""
    mobile: Optional[str] = None
    address: Optional[str] = None
    role: str = "customer"

    @property
    def is_provider(self) -> bool:
        return self.role == "provider"


class UserRef(WireModel):
    """A populated user/provider reference inside a menu or an order."""

    id: Optional[str] = Field(None, validation_alias=AliasChoices("_id", "id"))
    name: Optional[str] = None
    email: Optional[str] = None
    mobile: Optional[str] = None
    address: Optional[str] = None

    @property
    def key(self) -> str:
        return self.id or ""


def ref_id(value: Union[str, UserRef, None]) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return value.key


class Prices(WireModel):
    full: float
    half: float
    rice_only: float = Field(..., alias="riceOnly")

    def for_meal(self, meal_type: str) -> float:
        return {"full": self.full, "half": self.half, "riceOnly": self.rice_only}[meal_type]


class Menu(WireModel):
    id: str = Field(..., alias="_id")
    provider: Union[UserRef, str, None] = Field(None, alias="providerId")
    date: Optional[str] = None
    sabjis: List[str] = []
    prices: Prices
    is_active: Optional[bool] = Field(None, alias="isActive")
    deleted_at: Optional[str] = Field(None, alias="deletedAt")
    created_at: Optional[str] = Field(None, alias="createdAt")
    updated_at: Optional[str] = Field(None, alias="updatedAt")

    @property
    def provider_id(self) -> str:
        return ref_id(self.provider)

    @property
    def provider_name(self) -> str:
        if isinstance(self.provider, UserRef) and self.provider.name:
            return self.provider.name
        return "Provider"


class MenuRef(WireModel):
    """A populated menu reference inside an order (the backend may send only a few fields)."""

    id: Optional[str] = Field(None, alias="_id")
    date: Optional[str] = None


class OrderItem(WireModel):
    meal_type: str = Field(..., alias="mealType")
    sabji: Optional[str] = None
    quantity: int = Field(..., ge=1)
    price_per_unit: float = Field(0, alias="pricePerUnit")
    total_price: float = Field(0, alias="totalPrice")


class Order(WireModel):
    id: str = Field(..., alias="_id")
    user: Union[UserRef, str, None] = Field(None, alias="userId")
    provider: Union[UserRef, str, None] = Field(None, alias="providerId")
    menu: Union[MenuRef, str, None] = Field(None, alias="menuId")
    items: List[OrderItem] = []
    grand_total: float = Field(0, alias="grandTotal")
    status: Optional[str] = None
    order_date: Optional[str] = Field(None, alias="orderDate")
    created_at: Optional[str] = Field(None, alias="createdAt")
    updated_at: Optional[str] = Field(None, alias="updatedAt")

    @property
    def current_status(self) -> str:
        return self.status or "pending"

    @property
    def provider_name(self) -> str:
        if isinstance(self.provider, UserRef) and self.provider.name:
            return self.provider.name
        return "Provider"

    @property
    def customer(self) -> UserRef:
        if isinstance(self.user, UserRef):
            return self.user
        return UserRef.model_validate({"_id": self.user or None})

    @property
    def customer_name(self) -> str:
        return self.customer.name or "Customer"

    @property
    def menu_date(self) -> Optional[str]:
        if isinstance(self.menu, MenuRef):
            return self.menu.date
        return None


class Provider(WireModel):
    id: str = Field(..., alias="_id")
    name: str = ""
    email: str = ""
    mobile: Optional[str] = None
    address: Optional[str] = None

    @property
    def initial(self) -> str:
        return self.name[:1].upper() if self.name else "?"


# -----------------------
# Analytics (server-computed, read-only)
# -----------------------
class AnalyticsSummary(WireModel):
    total_revenue: float = Field(0, alias="totalRevenue")
    total_orders: int = Field(0, alias="totalOrders")
    total_customers: int = Field(0, alias="totalCustomers")
    average_order_value: float = Field(0, alias="averageOrderValue")


class GrowthRate(WireModel):
    growth_rate: float = Field(0, alias="growthRate")
    current_revenue: float = Field(0, alias="currentRevenue")
    previous_revenue: float = Field(0, alias="previousRevenue")


class AverageOrderValue(WireModel):
    average_order_value: float = Field(0, alias="averageOrderValue")
    total_orders: int = Field(0, alias="totalOrders")


class RevenueBucket(WireModel):
    label: str
    revenue: float = 0
    orders: int = 0


class BestSeller(WireModel):
    meal_type: str = Field(..., alias="mealType")
    sabji: Optional[str] = None
    quantity: int = 0
    revenue: float = 0

    @property
    def name(self) -> str:
        labels = {"full": "Full", "half": "Half", "riceOnly": "Rice Only"}
        label = labels.get(self.meal_type, self.meal_type)
        return f"{label} · {self.sabji}" if self.sabji else label
