"""Tests for turning depth deltas into store changes."""

import pytest

from market_sync.core.models import BookSide, ExchangeName
from market_sync.orderbook.deltas import (
    apply_book_deltas,
    apply_level_delta,
    level_delta_commands,
    snapshot_commands,
)
from market_sync.orderbook.engine import levels_from_pairs
from market_sync.store.commands import RemoveArrayElement, Update
from market_sync.store.patch_store import PatchStore
from market_sync.store.paths import Index, Key, order_book_path, order_book_side_path

ASKS_PATH = order_book_side_path(ExchangeName.BYBIT, "BTCUSDT", BookSide.ASKS)


@pytest.fixture
def asks() -> list[dict]:
    return levels_from_pairs([(100, 10), (101, 5)])


class TestLevelDeltaCommands:
    def test_new_price_appends(self, asks: list[dict]) -> None:
        commands = level_delta_commands(ASKS_PATH, asks, 102, 4)
        assert commands == [
            Update(
                path=ASKS_PATH + (Index(2),),
                value={"price": 102.0, "amount": 4.0, "total": 0.0},
            )
        ]

    @pytest.mark.parametrize("amount", [0, -1])
    def test_new_price_without_size_ignored(self, asks: list[dict], amount: float) -> None:
        assert level_delta_commands(ASKS_PATH, asks, 102, amount) == []

    def test_zero_amount_removes(self, asks: list[dict]) -> None:
        commands = level_delta_commands(ASKS_PATH, asks, 101, 0)
        assert commands == [RemoveArrayElement(path=ASKS_PATH, index=1)]

    def test_known_price_replaces_amount(self, asks: list[dict]) -> None:
        commands = level_delta_commands(ASKS_PATH, asks, 100, 7)
        assert commands == [Update(path=ASKS_PATH + (Index(0), Key("amount")), value=7)]

    def test_commands_apply_to_store(self, bybit_store: PatchStore) -> None:
        book_path = order_book_path(ExchangeName.BYBIT, "BTCUSDT")
        bybit_store.apply_changes(snapshot_commands(book_path, bids=[], asks=[(100, 10), (101, 5)]))

        stored = bybit_store.get(ASKS_PATH)
        bybit_store.apply_changes(level_delta_commands(ASKS_PATH, stored, 100, 0))

        assert [level["price"] for level in bybit_store.get(ASKS_PATH)] == [101]


class TestSnapshotCommands:
    def test_sides_are_normalized(self) -> None:
        book_path = order_book_path(ExchangeName.HYPERLIQUID, "ETH")
        bids_update, asks_update = snapshot_commands(
            book_path,
            bids=[(80, 8), (95, 3), (90, 12)],
            asks=[(200, 5), (100, 10), (150, 7)],
        )

        assert bids_update.path[-1] == Key("bids")
        assert [level["total"] for level in bids_update.value] == [3, 15, 23]
        assert asks_update.path[-1] == Key("asks")
        assert [level["price"] for level in asks_update.value] == [100, 150, 200]


class TestApplyLevelDelta:
    def test_local_side(self, asks: list[dict]) -> None:
        apply_level_delta(asks, 99, 1)
        apply_level_delta(asks, 101, 0)
        apply_level_delta(asks, 100, 2)
        assert [(level["price"], level["amount"]) for level in asks] == [(100, 2), (99, 1)]


class TestApplyBookDeltas:
    def test_builds_book_from_nothing(self, bybit_store: PatchStore) -> None:
        book = apply_book_deltas(
            bybit_store,
            "bybit",
            "BTCUSDT",
            [("asks", 101, 5), ("asks", 100, 10), (BookSide.BIDS, 99, 3)],
        )

        assert [(a["price"], a["total"]) for a in book["asks"]] == [(100, 10), (101, 15)]
        assert [(b["price"], b["total"]) for b in book["bids"]] == [(99, 3)]

    def test_remove_and_replace(self, bybit_store: PatchStore) -> None:
        apply_book_deltas(
            bybit_store, "bybit", "BTCUSDT", [("asks", 100, 10), ("asks", 101, 5), ("bids", 99, 3)]
        )
        book = apply_book_deltas(
            bybit_store, "bybit", "BTCUSDT", [("asks", 100, 0), ("bids", 99, 4), ("bids", 98, 1)]
        )

        assert [(a["price"], a["amount"], a["total"]) for a in book["asks"]] == [(101, 5, 5)]
        assert [(b["price"], b["total"]) for b in book["bids"]] == [(99, 4), (98, 5)]

    def test_one_notification_per_batch(self, bybit_store: PatchStore) -> None:
        seen: list[dict] = []
        bybit_store.subscribe(seen.append, path=order_book_path("bybit", "BTCUSDT"))

        apply_book_deltas(
            bybit_store, "bybit", "BTCUSDT", [("asks", 100, 10), ("bids", 99, 3), ("bids", 98, 2)]
        )

        assert len(seen) == 1
        assert set(seen[0]) == {"bids", "asks"}
