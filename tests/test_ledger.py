"""
tests/test_ledger.py — MattBucks Ledger Tests
==============================================

Covers balance arithmetic (clamp at zero), periodic rewards, purchases,
the richest list, JSON persistence, and thread-safety of concurrent
mutations.
"""

from __future__ import annotations

import json
import threading
from datetime import UTC, datetime, timedelta

import pytest

from mattbot.engine.ledger import Ledger
from mattbot.engine.shop import SHOP_ITEMS, PurchaseStatus

ALICE = 349007194768801792
BOB = 1000
CAROL = 2000

SIX_HOURS = timedelta(hours=6)
T0 = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)


class TestBalances:
    def test_unknown_user_has_zero(self, ledger):
        assert ledger.get_balance(ALICE) == 0

    def test_unknown_user_query_has_no_side_effect(self, ledger, ledger_path):
        ledger.get_balance(ALICE)
        assert ledger.balances() == {}
        assert not ledger_path.exists()

    def test_credit_then_debit(self, ledger):
        assert ledger.modify_balance(ALICE, 100) == 100
        assert ledger.modify_balance(ALICE, -40) == 60
        assert ledger.get_balance(ALICE) == 60

    def test_debit_clamps_at_zero(self, ledger):
        ledger.modify_balance(ALICE, 10)
        assert ledger.modify_balance(ALICE, -30) == 0
        assert ledger.get_balance(ALICE) == 0

    def test_debit_on_new_account_clamps(self, ledger):
        assert ledger.modify_balance(BOB, -5) == 0

    def test_clamp_applies_in_order(self, ledger):
        for delta in (5, -10, 7, 3):
            ledger.modify_balance(ALICE, delta)
        # 5 → 0 (clamped) → 7 → 10
        assert ledger.get_balance(ALICE) == 10

    def test_accounts_are_independent(self, ledger):
        ledger.modify_balance(ALICE, 10)
        ledger.modify_balance(BOB, 3)
        assert ledger.get_balance(ALICE) == 10
        assert ledger.get_balance(BOB) == 3

    def test_adjust_returns_old_and_new(self, ledger):
        ledger.modify_balance(ALICE, 20)
        assert ledger.adjust_balance(ALICE, -50) == (20, 0)
        assert ledger.adjust_balance(BOB, 7) == (0, 7)


class TestPeriodicReward:
    def test_first_reward_is_granted(self, ledger):
        assert ledger.grant_periodic_reward(ALICE, 1, SIX_HOURS, T0) is True
        assert ledger.get_balance(ALICE) == 1
        assert ledger.reward_times()[ALICE] == T0

    def test_second_reward_within_interval_is_skipped(self, ledger):
        ledger.grant_periodic_reward(ALICE, 1, SIX_HOURS, T0)
        assert ledger.grant_periodic_reward(ALICE, 1, SIX_HOURS, T0 + timedelta(hours=5)) is False
        assert ledger.get_balance(ALICE) == 1
        assert ledger.reward_times()[ALICE] == T0

    def test_reward_after_interval_is_granted_again(self, ledger):
        ledger.grant_periodic_reward(ALICE, 1, SIX_HOURS, T0)
        assert ledger.grant_periodic_reward(ALICE, 1, SIX_HOURS, T0 + SIX_HOURS) is True
        assert ledger.get_balance(ALICE) == 2

    def test_naive_now_is_treated_as_utc(self, ledger):
        ledger.grant_periodic_reward(ALICE, 1, SIX_HOURS, T0)
        naive = datetime(2026, 10, 19, 13, 0)
        assert ledger.grant_periodic_reward(ALICE, 1, SIX_HOURS, naive) is False

    def test_default_now(self, ledger):
        assert ledger.grant_periodic_reward(ALICE, 2, SIX_HOURS) is True
        assert ledger.grant_periodic_reward(ALICE, 2, SIX_HOURS) is False
        assert ledger.get_balance(ALICE) == 2


class TestPurchase:
    def test_scenario_buy_1v1_twice(self, ledger):
        ledger.modify_balance(ALICE, 100)

        first = ledger.purchase(ALICE, "1v1")
        assert first.ok
        assert first.item is SHOP_ITEMS["1v1"]
        assert first.balance == 0
        assert ledger.get_balance(ALICE) == 0

        second = ledger.purchase(ALICE, "1v1")
        assert second.status is PurchaseStatus.INSUFFICIENT_FUNDS
        assert second.balance == 0
        assert ledger.get_balance(ALICE) == 0

    def test_purchase_leaves_change(self, ledger):
        ledger.modify_balance(ALICE, 1600)
        result = ledger.purchase(ALICE, "nitro")
        assert result.ok
        assert result.balance == 100

    def test_insufficient_funds_leaves_balance(self, ledger):
        ledger.modify_balance(ALICE, 99)
        result = ledger.purchase(ALICE, "1v1")
        assert result.status is PurchaseStatus.INSUFFICIENT_FUNDS
        assert result.item is SHOP_ITEMS["1v1"]
        assert ledger.get_balance(ALICE) == 99

    @pytest.mark.parametrize("code", ["sword", "", "1V1", None])
    def test_unknown_item(self, ledger, code):
        ledger.modify_balance(ALICE, 1_000_000)
        result = ledger.purchase(ALICE, code)
        assert result.status is PurchaseStatus.UNKNOWN_ITEM
        assert result.item is None
        assert ledger.get_balance(ALICE) == 1_000_000


class TestTopBalances:
    def test_excludes_empty_accounts_and_sorts(self, ledger):
        ledger.modify_balance(ALICE, 50)
        ledger.modify_balance(BOB, 500)
        ledger.modify_balance(CAROL, 5)
        ledger.modify_balance(CAROL, -5)

        assert ledger.top_balances(10) == [(BOB, 500), (ALICE, 50)]

    def test_limit(self, ledger):
        for user_id in range(1, 21):
            ledger.modify_balance(user_id, user_id)
        top = ledger.top_balances(5)
        assert len(top) == 5
        assert [bal for _, bal in top] == [20, 19, 18, 17, 16]

    def test_ties_break_on_user_id(self, ledger):
        ledger.modify_balance(CAROL, 7)
        ledger.modify_balance(BOB, 7)
        ledger.modify_balance(ALICE, 9)
        assert ledger.top_balances(3) == [(ALICE, 9), (BOB, 7), (CAROL, 7)]

    def test_non_positive_limit(self, ledger):
        ledger.modify_balance(ALICE, 1)
        assert ledger.top_balances(0) == []
        assert ledger.top_balances(-1) == []


class TestPersistence:
    def test_round_trip(self, ledger, ledger_path):
        ledger.modify_balance(ALICE, 120)
        ledger.modify_balance(BOB, 3)
        ledger.grant_periodic_reward(BOB, 1, SIX_HOURS, T0)

        restarted = Ledger.open(ledger_path)
        assert restarted.balances() == ledger.balances()
        assert restarted.reward_times() == ledger.reward_times()
        assert restarted.get_balance(BOB) == 4

    def test_file_layout(self, ledger, ledger_path):
        ledger.grant_periodic_reward(ALICE, 1, SIX_HOURS, T0)

        data = json.loads(ledger_path.read_text(encoding="utf-8"))
        assert data["UserMattBucks"] == {str(ALICE): 1}
        stamp = data["LastBoosterRewardTime"][str(ALICE)]
        assert datetime.fromisoformat(stamp.replace("Z", "+00:00")) == T0

    def test_loads_legacy_file(self, ledger_path):
        ledger_path.write_text(json.dumps({
            "UserMattBucks": {str(ALICE): 42, str(BOB): -3},
            "LastBoosterRewardTime": {str(ALICE): "2026-10-19T12:00:00"},
        }), encoding="utf-8")

        ledger = Ledger.open(ledger_path)
        assert ledger.get_balance(ALICE) == 42
        assert ledger.get_balance(BOB) == 0
        assert ledger.reward_times()[ALICE] == T0

    def test_loads_null_sections(self, ledger_path):
        ledger_path.write_text(
            '{"UserMattBucks": null, "LastBoosterRewardTime": null}', encoding="utf-8",
        )
        ledger = Ledger.open(ledger_path)
        assert ledger.balances() == {}
        assert ledger.reward_times() == {}

    def test_missing_file_starts_empty(self, ledger_path, caplog):
        with caplog.at_level("WARNING"):
            ledger = Ledger.open(ledger_path)
        assert ledger.balances() == {}
        assert "not found" in caplog.text

    def test_corrupt_file_starts_empty_and_is_kept(self, ledger_path, caplog):
        ledger_path.write_text("{not json", encoding="utf-8")

        with caplog.at_level("WARNING"):
            ledger = Ledger.open(ledger_path)

        assert ledger.balances() == {}
        assert "unusable" in caplog.text
        corrupt = ledger_path.with_name(ledger_path.name + ".corrupt")
        assert corrupt.read_text(encoding="utf-8") == "{not json"

        ledger.modify_balance(ALICE, 1)
        assert corrupt.exists()
        assert Ledger.open(ledger_path).get_balance(ALICE) == 1

    def test_empty_file_starts_empty(self, ledger_path):
        ledger_path.write_text("", encoding="utf-8")
        assert Ledger.open(ledger_path).balances() == {}

    def test_invalid_utf8_starts_empty(self, ledger_path, caplog):
        ledger_path.write_bytes(b'{"UserMattBucks": {"1": 5}, "x": "\xff\xfe"}')

        with caplog.at_level("WARNING"):
            ledger = Ledger.open(ledger_path)

        assert ledger.balances() == {}
        assert "unusable" in caplog.text
        assert ledger_path.with_name(ledger_path.name + ".corrupt").exists()

    def test_out_of_range_timestamp_starts_empty(self, ledger_path, caplog):
        ledger_path.write_text(
            '{"LastBoosterRewardTime": {"1": "0001-01-01T00:00:00+05:00"}}', encoding="utf-8",
        )

        with caplog.at_level("WARNING"):
            ledger = Ledger.open(ledger_path)

        assert ledger.reward_times() == {}
        assert "unusable" in caplog.text

    def test_write_failure_is_swallowed(self, tmp_path, caplog):
        blocked = tmp_path / "ledger_dir"
        blocked.mkdir()
        ledger = Ledger(blocked)

        with caplog.at_level("ERROR"):
            assert ledger.modify_balance(ALICE, 5) == 5
        assert ledger.get_balance(ALICE) == 5
        assert ledger.persist() is False
        assert "Failed to save ledger" in caplog.text

    def test_no_temp_files_left_behind(self, ledger, ledger_path):
        for _ in range(3):
            ledger.modify_balance(ALICE, 1)
        assert sorted(p.name for p in ledger_path.parent.iterdir()) == [ledger_path.name]


class TestConcurrency:
    def test_parallel_credits_are_not_lost(self, ledger):
        threads_n, per_thread = 4, 50

        def worker():
            for _ in range(per_thread):
                ledger.modify_balance(ALICE, 1)

        threads = [threading.Thread(target=worker) for _ in range(threads_n)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert ledger.get_balance(ALICE) == threads_n * per_thread

    def test_parallel_purchases_cannot_overspend(self, ledger):
        ledger.modify_balance(ALICE, 100)
        barrier = threading.Barrier(8)
        results = []

        def worker():
            barrier.wait()
            results.append(ledger.purchase(ALICE, "1v1"))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sum(r.ok for r in results) == 1
        assert ledger.get_balance(ALICE) == 0

    def test_parallel_rewards_grant_once(self, ledger):
        barrier = threading.Barrier(8)
        granted = []

        def worker():
            barrier.wait()
            granted.append(ledger.grant_periodic_reward(ALICE, 1, SIX_HOURS, T0))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert granted.count(True) == 1
        assert ledger.get_balance(ALICE) == 1
