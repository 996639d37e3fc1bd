"""Pydantic models for Shopify orders."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class OrderCustomer(BaseModel):
    id: Optional[str] = None
    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    phone: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class OrderLineItem(BaseModel):
    title: str
    quantity: int = 1
    sku: Optional[str] = None
    price: str = "0"

    model_config = ConfigDict(extra="ignore")


class Order(BaseModel):
    """A commerce order flattened from the Admin GraphQL shape."""

    id: str
    name: str = ""
    created_at: datetime = Field(alias="createdAt")
    total_price: str = Field(default="0", alias="totalPrice")
    currency: str = ""
    customer: Optional[OrderCustomer] = None
    line_items: List[OrderLineItem] = Field(default_factory=list, alias="lineItems")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _flatten_graphql(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        flattened = dict(data)
        money = (flattened.pop("totalPriceSet", None) or {}).get("shopMoney")
        if money:
            flattened.setdefault("totalPrice", money.get("amount", "0"))
            flattened.setdefault("currency", money.get("currencyCode", ""))
        items = flattened.get("lineItems")
        if isinstance(items, dict):
            nodes = [edge.get("node") or {} for edge in items.get("edges", [])]
            flattened["lineItems"] = [
                {
                    "title": node.get("title", ""),
                    "quantity": node.get("quantity", 1),
                    "sku": node.get("sku"),
                    "price": (node.get("variant") or {}).get("price") or "0",
                }
                for node in nodes
            ]
        return flattened

    @field_validator("created_at")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @property
    def customer_phone(self) -> str | None:
        return self.customer.phone if self.customer else None


__all__ = ["Order", "OrderCustomer", "OrderLineItem"]
