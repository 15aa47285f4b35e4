"""
Tycoon Game Entities

This module defines the records the player owns or trades: levelable
assets (businesses and properties) and stocks. They hold state only;
the economy module decides how that state changes each tick.
"""

from dataclasses import dataclass
from typing import Dict

from config import AssetSpec, StockSpec

BUSINESS = "business"
PROPERTY = "property"
ASSET_KINDS = (BUSINESS, PROPERTY)


@dataclass(slots=True)
class OwnableAsset:
    """
    A purchasable, levelable source of passive income.

    Businesses and properties are structurally identical; `kind` only
    changes how the income is labelled (revenue vs rent).
    """

    asset_id: str
    name: str
    base_cost: float
    base_revenue: float
    kind: str = BUSINESS
    level: int = 0  # 0 means unowned

    def __post_init__(self):
        """Validate invariants after initialization."""
        if self.kind not in ASSET_KINDS:
            raise ValueError(f"kind must be one of {ASSET_KINDS}, got {self.kind!r}")
        if self.level < 0:
            raise ValueError(f"level cannot be negative, got {self.level}")

    @classmethod
    def from_spec(cls, spec: AssetSpec, kind: str) -> "OwnableAsset":
        return cls(
            asset_id=spec.asset_id,
            name=spec.name,
            base_cost=spec.base_cost,
            base_revenue=spec.base_revenue,
            kind=kind,
        )

    @property
    def is_owned(self) -> bool:
        """An asset yields income once it has been purchased."""
        return self.level > 0

    def to_dict(self) -> Dict[str, object]:
        """
        Serialize all fields to basic Python types.

        Returns:
            Dictionary representation of the asset state
        """
        return {
            "asset_id": self.asset_id,
            "name": self.name,
            "base_cost": self.base_cost,
            "base_revenue": self.base_revenue,
            "kind": self.kind,
            "level": self.level,
        }


@dataclass(slots=True)
class TradableStock:
    """A stock with a randomly drifting price and a whole-share holding."""

    stock_id: str
    name: str
    price: float
    shares: int = 0

    def __post_init__(self):
        if self.price <= 0:
            raise ValueError(f"price must be positive, got {self.price}")
        if self.shares < 0:
            raise ValueError(f"shares cannot be negative, got {self.shares}")

    @classmethod
    def from_spec(cls, spec: StockSpec) -> "TradableStock":
        return cls(stock_id=spec.stock_id, name=spec.name, price=float(spec.price))

    @property
    def holding_value(self) -> float:
        return self.shares * self.price

    def to_dict(self) -> Dict[str, object]:
        return {
            "stock_id": self.stock_id,
            "name": self.name,
            "price": self.price,
            "shares": self.shares,
        }
