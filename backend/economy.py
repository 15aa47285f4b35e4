"""
Tycoon Economy Engine

This module implements the game state and its two update paths:
the periodic tick (income accrual and stock price drift) and player
actions (purchase/upgrade, buy share, sell share).

Everything here is synchronous. Callers that run in an event loop or
across threads must serialize calls into a single Economy instance.
"""

import math
from typing import Dict, List, Optional

import numpy as np

from config import CONFIG, EconomyConfig, GameConfig
from agents import OwnableAsset, TradableStock

PURCHASE = "PURCHASE"
UPGRADE = "UPGRADE"
BUY = "BUY"
SELL = "SELL"
ACTIONS = (PURCHASE, UPGRADE, BUY, SELL)


class GameError(ValueError):
    """Base class for requests the game cannot interpret."""


class UnknownEntityError(GameError):
    """Raised when an action targets an id that is not in the catalog."""


class UnknownActionError(GameError):
    """Raised when an action name is not one of ACTIONS."""


def _round_half_up(value: float) -> int:
    # Positive values only: halves go up, never to even
    return int(math.floor(value + 0.5))


def upgrade_cost(asset: OwnableAsset, economy_config: Optional[EconomyConfig] = None) -> int:
    """Cost of the next level; level 0 costs exactly base_cost."""
    growth = (economy_config or CONFIG.economy).cost_growth
    return _round_half_up(asset.base_cost * growth ** asset.level)


def revenue_per_tick(asset: OwnableAsset, economy_config: Optional[EconomyConfig] = None) -> int:
    """Income per tick; zero until the first purchase."""
    if asset.level == 0:
        return 0
    growth = (economy_config or CONFIG.economy).revenue_growth
    return _round_half_up(asset.base_revenue * growth ** (asset.level - 1))


class Economy:
    """
    Single explicit game state.

    Holds the player's balance plus the business, property and stock
    collections, and is the only place any of them are mutated.
    """

    def __init__(
        self,
        businesses: List[OwnableAsset],
        properties: List[OwnableAsset],
        stocks: List[TradableStock],
        balance: Optional[float] = None,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None,
    ):
        """
        Initialize the economy with pre-constructed entities.

        Args:
            businesses: Business assets, in display order
            properties: Property assets, in display order
            stocks: Tradable stocks, in display order
            balance: Starting balance (defaults to the configured one)
            config: Game configuration (defaults to CONFIG)
            seed: Seed for the stock price generator
        """
        self.config = config or CONFIG
        self.businesses = businesses
        self.properties = properties
        self.stocks = stocks
        self.balance = float(self.config.player.starting_balance if balance is None else balance)
        self.current_tick = 0
        self.rng = np.random.default_rng(seed)

        # Cache lookups for O(1) access by id
        self.asset_lookup: Dict[str, OwnableAsset] = {a.asset_id: a for a in businesses + properties}
        self.stock_lookup: Dict[str, TradableStock] = {s.stock_id: s for s in stocks}

    @property
    def assets(self) -> List[OwnableAsset]:
        """Businesses followed by properties."""
        return self.businesses + self.properties

    def get_asset(self, asset_id: str) -> OwnableAsset:
        asset = self.asset_lookup.get(asset_id)
        if asset is None:
            raise UnknownEntityError(f"Unknown asset id: {asset_id!r}")
        return asset

    def get_stock(self, stock_id: str) -> TradableStock:
        stock = self.stock_lookup.get(stock_id)
        if stock is None:
            raise UnknownEntityError(f"Unknown stock id: {stock_id!r}")
        return stock

    def upgrade_cost(self, asset: OwnableAsset) -> int:
        return upgrade_cost(asset, self.config.economy)

    def revenue_per_tick(self, asset: OwnableAsset) -> int:
        return revenue_per_tick(asset, self.config.economy)

    def total_revenue_per_tick(self) -> int:
        return sum(self.revenue_per_tick(a) for a in self.assets)

    def step(self) -> None:
        """
        Execute one tick.

        1. Add the revenue of every business and property to the balance
        2. Resample every stock price: max(floor, price * (1 + U)),
           U ~ uniform[-max_drift, max_drift), one draw per stock
        """
        self.balance += self.total_revenue_per_tick()

        market = self.config.market
        if self.stocks:
            changes = self.rng.uniform(-market.max_drift, market.max_drift, size=len(self.stocks))
            for stock, change in zip(self.stocks, changes):
                stock.price = max(market.price_floor, stock.price * (1.0 + float(change)))

        self.current_tick += 1

    def purchase_or_upgrade(self, asset: OwnableAsset) -> bool:
        """Buy the next level of `asset` if affordable. Returns whether it was applied."""
        cost = self.upgrade_cost(asset)
        if self.balance < cost:
            return False
        self.balance -= cost
        asset.level += 1
        return True

    def buy_share(self, stock: TradableStock) -> bool:
        """Buy one share at the current price if affordable."""
        if self.balance < stock.price:
            return False
        self.balance -= stock.price
        stock.shares += 1
        return True

    def sell_share(self, stock: TradableStock) -> bool:
        """Sell one share at the current price if any are held."""
        if stock.shares <= 0:
            return False
        stock.shares -= 1
        self.balance += stock.price
        return True

    def apply_action(self, action: str, target_id: str) -> bool:
        """
        Single dispatch entry point for player actions.

        Args:
            action: One of PURCHASE, UPGRADE, BUY, SELL (case-insensitive)
            target_id: Asset id for PURCHASE/UPGRADE, stock id for BUY/SELL

        Returns:
            True if the action changed state, False if its preconditions
            were not met (insufficient funds or shares)

        Raises:
            UnknownActionError: action is not recognised
            UnknownEntityError: target_id is not in the catalog
        """
        name = (action or "").upper()
        if name in (PURCHASE, UPGRADE):
            return self.purchase_or_upgrade(self.get_asset(target_id))
        if name == BUY:
            return self.buy_share(self.get_stock(target_id))
        if name == SELL:
            return self.sell_share(self.get_stock(target_id))
        raise UnknownActionError(f"Unknown action: {action!r}")

    def get_economic_metrics(self) -> Dict[str, float]:
        """Snapshot of headline figures for views and reports."""
        portfolio_value = float(sum(s.holding_value for s in self.stocks))
        prices = np.array([s.price for s in self.stocks], dtype=np.float64)
        return {
            "current_tick": self.current_tick,
            "balance": self.balance,
            "revenue_per_tick": self.total_revenue_per_tick(),
            "portfolio_value": portfolio_value,
            "net_worth": self.balance + portfolio_value,
            "owned_assets": sum(1 for a in self.assets if a.is_owned),
            "total_levels": sum(a.level for a in self.assets),
            "mean_stock_price": float(prices.mean()) if prices.size else 0.0,
        }
