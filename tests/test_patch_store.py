"""Tests for the PatchStore."""

import logging

import pytest
from pydantic import ValidationError

from market_sync.config import MarketSyncConfig
from market_sync.core.errors import PathError
from market_sync.core.models import Balance, ExchangeName, Ticker
from market_sync.store.commands import RemoveArrayElement, Update, remove_array_element, update
from market_sync.store.patch_store import PatchStore
from market_sync.store.paths import Key, account_path, latency_path, loaded_path, ticker_path


@pytest.fixture
def btc_ticker() -> dict:
    return Ticker(
        id="BTCUSDT",
        symbol="BTCUSDT",
        clean_symbol="BTC/USDT",
        bid=49900,
        ask=50100,
        last=50000,
    ).model_dump()


@pytest.fixture
def funded_store(bybit_store: PatchStore) -> PatchStore:
    """Bybit store with one account holding two positions."""
    bybit_store.apply_changes(
        [
            update(
                "bybit.private.main",
                {
                    "balance": {"used": 1000, "free": 9000, "total": 10000, "upnl": 500},
                    "positions": [{"upnl": 100}, {"upnl": 200}],
                    "orders": [],
                    "notifications": [],
                },
            )
        ]
    )
    return bybit_store


class TestDefaults:
    def test_every_exchange_has_schema_defaults(self, store: PatchStore) -> None:
        assert set(store.memory) == {name.value for name in ExchangeName}
        assert store.memory["bybit"] == {
            "loaded": {"markets": False, "tickers": False},
            "public": {"latency": 0, "tickers": {}, "markets": {}, "order_books": {}},
            "private": {},
        }

    def test_selected_exchanges_only(self, bybit_store: PatchStore) -> None:
        assert list(bybit_store.memory) == ["bybit"]

    def test_from_config(self) -> None:
        config = MarketSyncConfig(exchanges=[ExchangeName.HYPERLIQUID, ExchangeName.BINANCE])
        store = PatchStore.from_config(config)
        assert set(store.memory) == {"hyperliquid", "binance"}


class TestUpdate:
    def test_update_ticker(self, bybit_store: PatchStore, btc_ticker: dict) -> None:
        bybit_store.apply_changes([Update(path=ticker_path("bybit", "BTCUSDT"), value=btc_ticker)])
        assert bybit_store.memory["bybit"]["public"]["tickers"]["BTCUSDT"] == btc_ticker

    def test_nested_update_keeps_siblings(self, funded_store: PatchStore) -> None:
        funded_store.apply_changes([update("bybit.private.main.balance.free", 8500)])

        balance = funded_store.get("bybit.private.main.balance")
        assert balance["free"] == 8500
        assert balance["total"] == 10000

    def test_update_replaces_instead_of_merging(self, funded_store: PatchStore) -> None:
        funded_store.apply_changes(
            [update("bybit.private.main.balance", Balance(free=1).model_dump())]
        )
        assert funded_store.get("bybit.private.main.balance") == {
            "used": 0.0,
            "free": 1.0,
            "total": 0.0,
            "upnl": 0.0,
        }

    def test_creates_missing_containers(self, bybit_store: PatchStore) -> None:
        """A list is created before an index segment, a dict otherwise."""
        bybit_store.apply_changes([update("bybit.private.main.positions.0.upnl", 100)])
        assert bybit_store.memory["bybit"]["private"]["main"] == {"positions": [{"upnl": 100}]}

    def test_update_array_element(self, funded_store: PatchStore) -> None:
        funded_store.apply_changes([update("bybit.private.main.positions.0.upnl", 250)])
        assert funded_store.get("bybit.private.main.positions.0.upnl") == 250

    def test_index_one_past_end_appends(self, funded_store: PatchStore) -> None:
        funded_store.apply_changes([update("bybit.private.main.positions.2", {"upnl": 300})])
        assert [p["upnl"] for p in funded_store.get("bybit.private.main.positions")] == [
            100,
            200,
            300,
        ]

    def test_last_write_wins_within_batch(self, bybit_store: PatchStore) -> None:
        bybit_store.apply_changes(
            [
                update("bybit.public.latency", 10),
                update("bybit.public.tickers.ETHUSDT.last", 3000),
                update("bybit.public.latency", 25),
                update("bybit.public.tickers.ETHUSDT.last", 3010),
            ]
        )
        assert bybit_store.get("bybit.public.latency") == 25
        assert bybit_store.get("bybit.public.tickers.ETHUSDT.last") == 3010

    def test_numeric_dict_keys_with_typed_paths(self, store: PatchStore) -> None:
        token_id = "21742633143463906290569050155826241533067272736897614950488156847949938836455"
        store.apply_changes(
            [update(("polymarket", "public", "order_books", token_id), {"bids": [], "asks": []})]
        )
        assert store.get(("polymarket", "public", "order_books", Key(token_id))) == {
            "bids": [],
            "asks": [],
        }

    def test_initial_load_flag(self, bybit_store: PatchStore) -> None:
        bybit_store.apply_changes([update(loaded_path("bybit", "markets"), True)])
        assert bybit_store.get(loaded_path("bybit", "markets")) is True
        assert bybit_store.get(loaded_path("bybit", "tickers")) is False

    def test_dict_commands_accepted(self, bybit_store: PatchStore) -> None:
        bybit_store.apply_changes([{"type": "update", "path": "bybit.loaded.markets", "value": True}])
        assert bybit_store.get("bybit.loaded.markets") is True

    def test_invalid_dict_command_rejected(self, bybit_store: PatchStore) -> None:
        with pytest.raises(ValidationError):
            bybit_store.apply_changes([{"type": "merge", "path": "bybit.public", "value": {}}])


class TestPathDefects:
    """Wrong container kinds are programming defects and must fail fast."""

    def test_index_on_dict(self, bybit_store: PatchStore) -> None:
        with pytest.raises(PathError):
            bybit_store.apply_changes([update("bybit.public.0", 1)])

    def test_key_on_list(self, funded_store: PatchStore) -> None:
        with pytest.raises(PathError):
            funded_store.apply_changes([update(("bybit", "private", "main", "positions", "x"), 1)])

    def test_walk_into_scalar(self, bybit_store: PatchStore) -> None:
        with pytest.raises(PathError):
            bybit_store.apply_changes([update("bybit.public.latency.ms", 1)])

    def test_index_past_end(self, funded_store: PatchStore) -> None:
        with pytest.raises(PathError):
            funded_store.apply_changes([update("bybit.private.main.positions.5", {})])

    def test_removal_from_non_list(self, funded_store: PatchStore) -> None:
        with pytest.raises(PathError):
            funded_store.apply_changes([remove_array_element("bybit.private.main.balance", 0)])

    def test_path_error_is_a_type_error(self, bybit_store: PatchStore) -> None:
        with pytest.raises(TypeError, match="bybit.public.0"):
            bybit_store.apply_changes([update("bybit.public.0", 1)])


class TestRemoveArrayElement:
    def test_removes_by_position(self, funded_store: PatchStore) -> None:
        funded_store.apply_changes([remove_array_element("bybit.private.main.positions", 0)])
        assert funded_store.get("bybit.private.main.positions") == [{"upnl": 200}]

    def test_sequential_removals_in_one_batch(self, funded_store: PatchStore) -> None:
        funded_store.apply_changes(
            [update("bybit.private.main.positions", [{"upnl": u} for u in (100, 200, 300, 400)])]
        )
        funded_store.apply_changes(
            [
                RemoveArrayElement(path="bybit.private.main.positions", index=0),
                RemoveArrayElement(path="bybit.private.main.positions", index=0),
            ]
        )
        assert funded_store.get("bybit.private.main.positions") == [{"upnl": 300}, {"upnl": 400}]

    @pytest.mark.parametrize("index", [-1, 2, 99])
    def test_out_of_range_is_noop(self, funded_store: PatchStore, index: int) -> None:
        funded_store.apply_changes([remove_array_element("bybit.private.main.positions", index)])
        assert len(funded_store.get("bybit.private.main.positions")) == 2

    def test_out_of_range_is_logged(
        self, funded_store: PatchStore, caplog: pytest.LogCaptureFixture
    ) -> None:
        caplog.set_level(logging.DEBUG, logger="market_sync.store.patch_store")
        funded_store.apply_changes([remove_array_element("bybit.private.main.positions", 7)])
        assert "out-of-range removal index 7" in caplog.text

    def test_missing_target_is_noop(self, bybit_store: PatchStore) -> None:
        bybit_store.apply_changes([remove_array_element("bybit.private.ghost.orders", 0)])
        assert bybit_store.get("bybit.private") == {}

    def test_numeric_segments_in_path(self, bybit_store: PatchStore) -> None:
        bybit_store.apply_changes(
            [
                update(
                    "bybit.private.accounts",
                    [{"subaccounts": [{"positions": [{"upnl": 100}, {"upnl": 200}]}]}],
                )
            ]
        )
        bybit_store.apply_changes(
            [remove_array_element("bybit.private.accounts.0.subaccounts.0.positions", 0)]
        )
        assert bybit_store.get("bybit.private.accounts.0.subaccounts.0.positions") == [
            {"upnl": 200}
        ]


class TestReadAndReset:
    def test_get_default(self, bybit_store: PatchStore) -> None:
        assert bybit_store.get("bybit.private.main.balance") is None
        assert bybit_store.get("bybit.private.main", default={}) == {}

    def test_snapshot_is_detached(self, funded_store: PatchStore) -> None:
        snapshot = funded_store.snapshot()
        funded_store.apply_changes([update("bybit.private.main.balance.free", 1)])
        assert snapshot["bybit"]["private"]["main"]["balance"]["free"] == 9000

    def test_reset_restores_defaults(self, funded_store: PatchStore) -> None:
        funded_store.reset()
        assert funded_store.memory == PatchStore(exchanges=[ExchangeName.BYBIT]).memory

    def test_reset_gives_fresh_copy_each_time(self, bybit_store: PatchStore) -> None:
        """Writes after one reset must not leak into the next."""
        bybit_store.reset()
        bybit_store.apply_changes([update("bybit.public.tickers.BTCUSDT", {"last": 1})])
        bybit_store.reset()
        assert bybit_store.get("bybit.public.tickers") == {}


class TestObservers:
    def test_one_notification_per_batch(self, bybit_store: PatchStore) -> None:
        calls: list[dict] = []
        bybit_store.subscribe(calls.append)

        bybit_store.apply_changes(
            [
                update("bybit.public.latency", 1),
                update("bybit.public.latency", 2),
                update("bybit.loaded.tickers", True),
            ]
        )

        assert len(calls) == 1
        assert calls[0] is bybit_store.memory

    def test_path_observer_gets_subtree(self, bybit_store: PatchStore, btc_ticker: dict) -> None:
        seen: list[dict] = []
        bybit_store.subscribe(seen.append, path="bybit.public.tickers")

        bybit_store.apply_changes([update(ticker_path("bybit", "BTCUSDT"), btc_ticker)])

        assert seen == [{"BTCUSDT": btc_ticker}]

    def test_unrelated_batch_not_notified(self, bybit_store: PatchStore) -> None:
        seen: list[dict] = []
        bybit_store.subscribe(seen.append, path="bybit.public.tickers")

        bybit_store.apply_changes([update("bybit.public.latency", 5)])

        assert seen == []

    def test_ancestor_replace_notifies(self, bybit_store: PatchStore) -> None:
        seen: list = []
        bybit_store.subscribe(seen.append, path="bybit.public.tickers")

        bybit_store.apply_changes([update("bybit.public", {"latency": 0})])

        assert seen == [None]

    def test_unsubscribe(self, bybit_store: PatchStore) -> None:
        calls: list = []
        unsubscribe = bybit_store.subscribe(calls.append)
        unsubscribe()
        unsubscribe()

        bybit_store.apply_changes([update("bybit.public.latency", 5)])

        assert calls == []

    def test_empty_batch_is_silent(self, bybit_store: PatchStore) -> None:
        calls: list = []
        bybit_store.subscribe(calls.append)
        bybit_store.apply_changes([])
        assert calls == []

    def test_failed_batch_not_notified(self, bybit_store: PatchStore) -> None:
        calls: list = []
        bybit_store.subscribe(calls.append)

        with pytest.raises(PathError):
            bybit_store.apply_changes(
                [update("bybit.public.latency", 5), update("bybit.public.0", 1)]
            )

        assert calls == []
        assert bybit_store.get("bybit.public.latency") == 5

    def test_raising_observer_does_not_starve_others(self, bybit_store: PatchStore) -> None:
        def broken(_: object) -> None:
            raise RuntimeError("redraw failed")

        calls: list = []
        bybit_store.subscribe(broken)
        bybit_store.subscribe(calls.append, path=latency_path("bybit"))

        with pytest.raises(RuntimeError, match="redraw failed"):
            bybit_store.apply_changes([update(latency_path("bybit"), 7)])

        assert calls == [7]
        assert bybit_store.get("bybit.public.latency") == 7

    def test_reset_notifies_everyone(self, funded_store: PatchStore) -> None:
        seen: list = []
        funded_store.subscribe(seen.append, path=account_path("bybit", "main"))

        funded_store.reset()

        assert seen == [None]
