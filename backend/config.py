"""
Game Configuration

Centralizes all tunable parameters for the tycoon game.
Catalog values, growth curves and market noise live here instead of
being scattered through the engine as magic numbers.
"""

from dataclasses import dataclass, field
from typing import List


@dataclass
class TimeConfig:
    """Time-related constants."""
    tick_seconds: float = 1.0  # One tick = one second of wall-clock time


@dataclass
class EconomyConfig:
    """Cost and revenue curves for ownable assets."""
    cost_growth: float = 1.5  # Upgrade cost grows 50% per level
    revenue_growth: float = 1.6  # Revenue grows 60% per level after the first


@dataclass
class MarketConfig:
    """Stock price random walk parameters."""
    max_drift: float = 0.04  # Price moves by U[-4%, +4%) per tick
    price_floor: float = 1.0  # Prices never drop below this


@dataclass
class PlayerConfig:
    """Player starting conditions."""
    starting_balance: float = 1000.0


@dataclass
class AssetSpec:
    """Catalog entry for a business or property."""
    asset_id: str
    name: str
    base_cost: float
    base_revenue: float


@dataclass
class StockSpec:
    """Catalog entry for a tradable stock."""
    stock_id: str
    name: str
    price: float


def _default_businesses() -> List[AssetSpec]:
    return [
        AssetSpec("retail", "Retail Shop", base_cost=200, base_revenue=5),
        AssetSpec("tech", "Tech Startup", base_cost=600, base_revenue=20),
        AssetSpec("service", "Consulting Firm", base_cost=400, base_revenue=12),
    ]


def _default_properties() -> List[AssetSpec]:
    return [
        AssetSpec("apartment", "Rental Apartment", base_cost=300, base_revenue=6),
        AssetSpec("office", "Office Building", base_cost=800, base_revenue=25),
        AssetSpec("hotel", "Hotel", base_cost=1500, base_revenue=50),
    ]


def _default_stocks() -> List[StockSpec]:
    return [
        StockSpec("techStock", "TechCorp", price=50),
        StockSpec("retailStock", "RetailCo", price=30),
        StockSpec("energyStock", "EnergyInc", price=20),
        StockSpec("crypto", "CryptoCoin", price=10),
    ]


@dataclass
class CatalogConfig:
    """Everything the player can buy, created once at startup."""
    businesses: List[AssetSpec] = field(default_factory=_default_businesses)
    properties: List[AssetSpec] = field(default_factory=_default_properties)
    stocks: List[StockSpec] = field(default_factory=_default_stocks)


@dataclass
class ServerConfig:
    """Web server settings (overridable from the environment in main.py)."""
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False
    send_timeout: float = 0.25  # Seconds a view may take to accept one message


@dataclass
class GameConfig:
    """Master configuration for the entire game."""

    # Sub-configurations
    time: TimeConfig = field(default_factory=TimeConfig)
    economy: EconomyConfig = field(default_factory=EconomyConfig)
    market: MarketConfig = field(default_factory=MarketConfig)
    player: PlayerConfig = field(default_factory=PlayerConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    def __post_init__(self):
        """Validation of derived constraints."""
        if self.time.tick_seconds <= 0:
            raise ValueError("tick_seconds must be positive")

        # Growth factors must keep cost and revenue strictly increasing
        if self.economy.cost_growth <= 1.0:
            raise ValueError("cost_growth must be greater than 1")
        if self.economy.revenue_growth <= 1.0:
            raise ValueError("revenue_growth must be greater than 1")

        if not (0.0 <= self.market.max_drift < 1.0):
            raise ValueError("max_drift must be in [0, 1)")
        if self.market.price_floor <= 0:
            raise ValueError("price_floor must be positive")

        if self.server.send_timeout <= 0:
            raise ValueError("send_timeout must be positive")

        if self.player.starting_balance < 0:
            raise ValueError("starting_balance cannot be negative")

        asset_ids = [a.asset_id for a in self.catalog.businesses + self.catalog.properties]
        if len(asset_ids) != len(set(asset_ids)):
            raise ValueError("asset ids must be unique across businesses and properties")
        stock_ids = [s.stock_id for s in self.catalog.stocks]
        if len(stock_ids) != len(set(stock_ids)):
            raise ValueError("stock ids must be unique")

        for spec in self.catalog.businesses + self.catalog.properties:
            if spec.base_cost <= 0:
                raise ValueError(f"base_cost for {spec.asset_id} must be positive")
            if spec.base_revenue <= 0:
                raise ValueError(f"base_revenue for {spec.asset_id} must be positive")


# Global configuration instance
CONFIG = GameConfig()
