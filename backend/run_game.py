"""
Run the tycoon game headless.

This script builds the game from the catalog and runs it for a number of
ticks without waiting for the wall clock. An optional greedy investor
spends the balance after every tick so the growth curves can be inspected.

Running this file directly is the same as `main.py simulate`.
"""

import time
from dataclasses import replace
from typing import Optional

from agents import BUSINESS, PROPERTY, OwnableAsset, TradableStock
from config import CONFIG, GameConfig
from economy import Economy


def create_game(config: Optional[GameConfig] = None, seed: Optional[int] = None) -> Economy:
    """
    Create a fresh game from the configured catalog.

    Args:
        config: Game configuration (defaults to CONFIG)
        seed: Seed for stock price randomness

    Returns:
        Economy instance
    """
    config = config or CONFIG
    businesses = [OwnableAsset.from_spec(spec, BUSINESS) for spec in config.catalog.businesses]
    properties = [OwnableAsset.from_spec(spec, PROPERTY) for spec in config.catalog.properties]
    stocks = [TradableStock.from_spec(spec) for spec in config.catalog.stocks]
    return Economy(businesses, properties, stocks, config=config, seed=seed)


def greedy_invest(economy: Economy) -> int:
    """
    Keep buying the affordable asset level with the best revenue gain per
    unit of cost until nothing is affordable.

    Returns:
        Number of levels purchased
    """
    purchases = 0
    while True:
        best = None
        best_score = 0.0
        for asset in economy.assets:
            cost = economy.upgrade_cost(asset)
            if cost > economy.balance:
                continue
            next_level = replace(asset, level=asset.level + 1)
            gain = economy.revenue_per_tick(next_level) - economy.revenue_per_tick(asset)
            score = gain / cost
            if score > best_score:
                best, best_score = asset, score
        if best is None or not economy.purchase_or_upgrade(best):
            return purchases
        purchases += 1


def main(num_ticks: int = 300, auto_invest: bool = True, seed: Optional[int] = None,
         report_every: int = 60) -> Economy:
    economy = create_game(seed=seed)
    start_metrics = economy.get_economic_metrics()
    levels_bought = 0

    print("=" * 60)
    print(f"Running {num_ticks} ticks (auto-invest: {'on' if auto_invest else 'off'})")
    print("=" * 60)

    start_time = time.time()
    for _ in range(num_ticks):
        economy.step()
        if auto_invest:
            levels_bought += greedy_invest(economy)
        if report_every and economy.current_tick % report_every == 0:
            m = economy.get_economic_metrics()
            print(f"Tick {m['current_tick']:5d} | balance ${m['balance']:>14,.2f} | "
                  f"revenue ${m['revenue_per_tick']:>10,}/tick | net worth ${m['net_worth']:>14,.2f}")
    total_time = time.time() - start_time

    metrics = economy.get_economic_metrics()
    print()
    print("SUMMARY")
    print("-" * 60)
    print(f"  Starting balance:       ${start_metrics['balance']:>15,.2f}")
    print(f"  Final balance:          ${metrics['balance']:>15,.2f}")
    print(f"  Revenue per tick:       ${metrics['revenue_per_tick']:>15,}")
    print(f"  Net worth:              ${metrics['net_worth']:>15,.2f}")
    print(f"  Levels purchased:       {levels_bought:>16,}")
    print(f"  Mean stock price:       ${metrics['mean_stock_price']:>15,.2f}")
    print()
    print("ASSETS:")
    for asset in economy.assets:
        print(f"  {asset.name:20s} Lvl {asset.level:3d} | "
              f"${economy.revenue_per_tick(asset):>10,}/tick | next ${economy.upgrade_cost(asset):>14,}")
    print()
    print("STOCKS:")
    for stock in economy.stocks:
        print(f"  {stock.name:20s} ${stock.price:>10,.2f}")
    print()
    print(f"  Simulated in {total_time:.3f} seconds")
    return economy


if __name__ == "__main__":
    import sys

    from main import main as cli

    cli(["simulate", *sys.argv[1:]])
