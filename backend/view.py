"""
State payload for the web view.

The UI re-renders everything from this payload after every tick and
every action, so it carries pre-formatted labels and button states in
addition to the raw numbers.
"""

from typing import Dict, List

from agents import BUSINESS, OwnableAsset, TradableStock
from economy import Economy


def asset_row(economy: Economy, asset: OwnableAsset) -> Dict[str, object]:
    cost = economy.upgrade_cost(asset)
    revenue = economy.revenue_per_tick(asset)
    income_word = "Revenue" if asset.kind == BUSINESS else "Rent"
    button = "Purchase" if asset.level == 0 else "Upgrade"
    return {
        "id": asset.asset_id,
        "kind": asset.kind,
        "name": asset.name,
        "level": asset.level,
        "cost": cost,
        "revenue": revenue,
        "title": f"{asset.name} (Lvl {asset.level})",
        "incomeLabel": f"{income_word}: ${revenue}/sec",
        "costLabel": f"{button}: ${cost}",
        "buttonLabel": button,
        "disabled": economy.balance < cost,
    }


def stock_row(economy: Economy, stock: TradableStock) -> Dict[str, object]:
    return {
        "id": stock.stock_id,
        "name": stock.name,
        "price": round(stock.price, 2),
        "shares": stock.shares,
        "priceLabel": f"Price: ${stock.price:.2f}",
        "sharesLabel": f"Shares: {stock.shares}",
        "buyDisabled": economy.balance < stock.price,
        "sellDisabled": stock.shares <= 0,
    }


def build_state_payload(economy: Economy) -> Dict[str, object]:
    """Full view model of the game; published after every state change."""
    metrics = economy.get_economic_metrics()
    businesses: List[Dict[str, object]] = [asset_row(economy, a) for a in economy.businesses]
    properties: List[Dict[str, object]] = [asset_row(economy, a) for a in economy.properties]
    stocks: List[Dict[str, object]] = [stock_row(economy, s) for s in economy.stocks]
    return {
        "tick": economy.current_tick,
        "money": round(economy.balance, 2),
        "moneyLabel": f"{economy.balance:.2f}",
        "revenuePerTick": metrics["revenue_per_tick"],
        "portfolioValue": round(metrics["portfolio_value"], 2),
        "netWorth": round(metrics["net_worth"], 2),
        "businesses": businesses,
        "properties": properties,
        "stocks": stocks,
    }
