"""
Unit tests for the Economy engine

Tests cover:
- Upgrade cost and revenue curves
- Tick income accrual and stock price drift
- Purchase/upgrade, buy and sell actions
- Action dispatch and error cases
"""

import pytest

from agents import BUSINESS, PROPERTY, OwnableAsset, TradableStock
from economy import (
    Economy,
    GameError,
    UnknownActionError,
    UnknownEntityError,
    revenue_per_tick,
    upgrade_cost,
)
from run_game import create_game


def make_asset(base_cost=200, base_revenue=5, level=0, kind=BUSINESS):
    return OwnableAsset("retail", "Retail Shop", base_cost=base_cost,
                        base_revenue=base_revenue, kind=kind, level=level)


class TestCostAndRevenueCurves:
    """Pure cost/revenue functions"""

    def test_level_zero_cost_is_base_cost(self):
        economy = create_game(seed=1)
        for asset in economy.assets:
            assert upgrade_cost(asset) == asset.base_cost

    def test_cost_strictly_increasing(self):
        for base_cost in (200, 300, 400, 600, 800, 1500):
            costs = [upgrade_cost(make_asset(base_cost=base_cost, level=lvl)) for lvl in range(20)]
            assert all(b > a for a, b in zip(costs, costs[1:]))

    def test_cost_values_for_retail(self):
        expected = [200, 300, 450, 675]
        assert [upgrade_cost(make_asset(level=lvl)) for lvl in range(4)] == expected

    def test_cost_rounds_half_up(self):
        """200 * 1.5^4 = 1012.5 must round to 1013, not to even"""
        assert upgrade_cost(make_asset(level=4)) == 1013

    def test_unowned_asset_has_no_revenue(self):
        economy = create_game(seed=1)
        for asset in economy.assets:
            assert revenue_per_tick(asset) == 0

    def test_revenue_values_for_retail(self):
        # 5, 5*1.6=8, 5*2.56=12.8 -> 13, 5*4.096=20.48 -> 20
        assert [revenue_per_tick(make_asset(level=lvl)) for lvl in range(5)] == [0, 5, 8, 13, 20]

    def test_revenue_strictly_increasing_once_owned(self):
        economy = create_game(seed=1)
        for asset in economy.assets:
            revenues = []
            for lvl in range(1, 16):
                asset.level = lvl
                revenues.append(revenue_per_tick(asset))
            assert all(b > a for a, b in zip(revenues, revenues[1:]))

    def test_functions_do_not_mutate(self):
        asset = make_asset(level=3)
        upgrade_cost(asset)
        revenue_per_tick(asset)
        assert asset.level == 3


class TestTick:
    """Economy.step"""

    def test_tick_adds_revenue_of_owned_assets(self):
        """Retail at level 1, office unowned: one tick adds exactly 5"""
        economy = create_game(seed=7)
        economy.get_asset("retail").level = 1
        assert economy.get_asset("office").level == 0
        before = economy.balance

        economy.step()

        assert economy.balance == before + 5
        assert economy.current_tick == 1

    def test_tick_sums_businesses_and_properties(self):
        economy = create_game(seed=7)
        economy.get_asset("tech").level = 2  # 32
        economy.get_asset("hotel").level = 1  # 50
        assert economy.total_revenue_per_tick() == 82

        economy.step()

        assert economy.balance == 1000 + 82

    def test_stock_prices_stay_within_drift_band(self):
        economy = create_game(seed=3)
        for _ in range(200):
            before = {s.stock_id: s.price for s in economy.stocks}
            economy.step()
            for stock in economy.stocks:
                ratio = stock.price / before[stock.stock_id]
                if stock.price > 1.0:
                    assert 0.96 - 1e-12 <= ratio < 1.04 + 1e-12

    def test_stock_price_never_below_floor(self):
        stocks = [TradableStock("penny", "Penny", price=1.0)]
        economy = Economy([], [], stocks, seed=11)
        for _ in range(500):
            economy.step()
            assert stocks[0].price >= 1.0

    def test_prices_are_drawn_independently(self):
        stocks = [TradableStock("a", "A", price=50.0), TradableStock("b", "B", price=50.0)]
        economy = Economy([], [], stocks, seed=5)
        economy.step()
        assert stocks[0].price != stocks[1].price

    def test_same_seed_gives_same_prices(self):
        first = create_game(seed=42)
        second = create_game(seed=42)
        for _ in range(10):
            first.step()
            second.step()
        assert [s.price for s in first.stocks] == [s.price for s in second.stocks]

    def test_shares_do_not_move_price(self):
        quiet = create_game(seed=9)
        busy = create_game(seed=9)
        busy.get_stock("crypto").shares = 50
        quiet.step()
        busy.step()
        assert quiet.get_stock("crypto").price == busy.get_stock("crypto").price


class TestActions:
    """purchase_or_upgrade, buy_share, sell_share"""

    def test_purchase_retail_scenario(self):
        economy = create_game(seed=1)
        retail = economy.get_asset("retail")

        assert economy.purchase_or_upgrade(retail) is True

        assert economy.balance == 800
        assert retail.level == 1
        assert economy.revenue_per_tick(retail) == 5

    def test_upgrade_uses_next_level_cost(self):
        economy = create_game(seed=1)
        retail = economy.get_asset("retail")
        economy.purchase_or_upgrade(retail)
        economy.purchase_or_upgrade(retail)
        assert retail.level == 2
        assert economy.balance == 1000 - 200 - 300

    def test_unaffordable_upgrade_leaves_state_unchanged(self):
        economy = create_game(seed=1)
        hotel = economy.get_asset("hotel")
        snapshot = [a.to_dict() for a in economy.assets]

        assert economy.purchase_or_upgrade(hotel) is False

        assert economy.balance == 1000
        assert [a.to_dict() for a in economy.assets] == snapshot

    def test_purchase_with_exact_balance(self):
        economy = create_game(seed=1)
        economy.balance = 200
        assert economy.purchase_or_upgrade(economy.get_asset("retail")) is True
        assert economy.balance == 0

    def test_balance_never_negative(self):
        economy = create_game(seed=1)
        for _ in range(50):
            for asset in economy.assets:
                economy.purchase_or_upgrade(asset)
                assert economy.balance >= 0
            economy.step()

    def test_buy_then_sell_restores_balance(self):
        economy = create_game(seed=1)
        tech = economy.get_stock("techStock")
        assert tech.price == 50

        assert economy.buy_share(tech) is True
        assert economy.balance == 950
        assert tech.shares == 1

        assert economy.sell_share(tech) is True
        assert economy.balance == 1000
        assert tech.shares == 0

    def test_buy_requires_funds(self):
        economy = create_game(seed=1)
        economy.balance = 49.99
        tech = economy.get_stock("techStock")
        assert economy.buy_share(tech) is False
        assert tech.shares == 0
        assert economy.balance == 49.99

    def test_sell_requires_shares(self):
        economy = create_game(seed=1)
        crypto = economy.get_stock("crypto")
        assert economy.sell_share(crypto) is False
        assert economy.balance == 1000
        assert crypto.shares == 0

    def test_sell_uses_current_price(self):
        economy = create_game(seed=1)
        crypto = economy.get_stock("crypto")
        economy.buy_share(crypto)
        crypto.price = 25.0
        economy.sell_share(crypto)
        assert economy.balance == 1000 - 10 + 25


class TestApplyAction:
    """Single dispatch entry point"""

    def test_dispatches_each_action(self):
        economy = create_game(seed=1)
        assert economy.apply_action("PURCHASE", "retail") is True
        assert economy.apply_action("upgrade", "retail") is True
        assert economy.apply_action("BUY", "crypto") is True
        assert economy.apply_action("SELL", "crypto") is True
        assert economy.get_asset("retail").level == 2
        assert economy.balance == 1000 - 200 - 300

    def test_unknown_action(self):
        economy = create_game(seed=1)
        with pytest.raises(UnknownActionError):
            economy.apply_action("SHORT", "crypto")

    def test_unknown_asset(self):
        economy = create_game(seed=1)
        with pytest.raises(UnknownEntityError):
            economy.apply_action("PURCHASE", "castle")

    def test_stock_ids_are_not_assets(self):
        economy = create_game(seed=1)
        with pytest.raises(UnknownEntityError):
            economy.apply_action("PURCHASE", "crypto")
        with pytest.raises(UnknownEntityError):
            economy.apply_action("BUY", "retail")

    def test_errors_are_value_errors(self):
        assert issubclass(UnknownEntityError, GameError)
        assert issubclass(GameError, ValueError)


class TestMetrics:
    """get_economic_metrics"""

    def test_initial_metrics(self):
        economy = create_game(seed=1)
        metrics = economy.get_economic_metrics()
        assert metrics["balance"] == 1000
        assert metrics["revenue_per_tick"] == 0
        assert metrics["portfolio_value"] == 0
        assert metrics["net_worth"] == 1000
        assert metrics["owned_assets"] == 0
        assert metrics["mean_stock_price"] == pytest.approx((50 + 30 + 20 + 10) / 4)

    def test_net_worth_includes_shares(self):
        economy = create_game(seed=1)
        economy.apply_action("BUY", "techStock")
        economy.apply_action("BUY", "crypto")
        metrics = economy.get_economic_metrics()
        assert metrics["portfolio_value"] == 60
        assert metrics["net_worth"] == 1000

    def test_empty_market(self):
        economy = Economy([make_asset(kind=PROPERTY)], [], [])
        assert economy.get_economic_metrics()["mean_stock_price"] == 0.0
