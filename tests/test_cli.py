from dataclasses import dataclass

import pytest

from market_vaults.cache import cache_key, clear_cache, get_cache_dir, get_cached, set_cached
from market_vaults.cli import default_rpc_urls, main, parse_args, print_replication_report, replicate_market
from market_vaults.constants import DEFAULT_PUBLIC_ETH_RPC_URLS, WAD
from market_vaults.onchain import fetch_snapshot
from tests.fakes import FakeMarket, FakeToken


@dataclass
class PinnedMarket(FakeMarket):
    """FakeMarket exposing the block-pinning surface of Web3Market."""

    block_identifier: int | str = "latest"
    head: int = 110
    reported_rate: int | None = None

    def block_number(self) -> int:
        return self.block_identifier if isinstance(self.block_identifier, int) else self.head

    def current_exchange_rate(self) -> int:
        return self.reported_rate if self.reported_rate is not None else self.exchange_rate_stored


@pytest.fixture(autouse=True)
def isolated_cache(tmp_path, monkeypatch):
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path))


def _lending_market(**kwargs) -> PinnedMarket:
    return PinnedMarket(
        token=FakeToken(address="0xasset"),
        cash_held=1000 * WAD,
        borrows=500 * WAD,
        reserves=10 * WAD,
        supply=5000 * WAD,
        exchange_rate_stored=298 * 10**15,
        rate=10**12,
        **kwargs,
    )


def test_default_rpc_urls_order_and_dedup():
    env = "https://example.invalid"
    urls = default_rpc_urls(env)
    assert urls[0] == env
    assert list(DEFAULT_PUBLIC_ETH_RPC_URLS) == urls[1:]
    assert default_rpc_urls(None) == list(DEFAULT_PUBLIC_ETH_RPC_URLS)
    assert default_rpc_urls(DEFAULT_PUBLIC_ETH_RPC_URLS[0]) == list(DEFAULT_PUBLIC_ETH_RPC_URLS)


def test_parse_args_collects_markets():
    args = parse_args(["--market", "0xa", "--market", "0xb", "--block", "123", "--no-cache"])
    assert args.market == ["0xa", "0xb"]
    assert args.block == 123
    assert args.no_cache is True
    assert args.rpc_url is None


def test_parse_args_requires_market():
    with pytest.raises(SystemExit):
        parse_args([])


def test_replicate_market_matches_reported_rate():
    market = _lending_market(reported_rate=298_009_000_000_000_000)
    market.accrual = 10
    report = replicate_market(market)

    assert report.block_number == 110
    assert report.result.elapsed == 100
    assert report.result.exchange_rate == 298_009_000_000_000_000
    assert report.matches
    assert report.issues == ()


def test_replicate_market_reports_mismatch(capsys):
    market = _lending_market(reported_rate=1)
    market.accrual = 10
    report = replicate_market(market)

    assert not report.matches
    assert any("mismatch" in issue for issue in report.issues)

    print_replication_report(report)
    out = capsys.readouterr().out
    assert "❌ Market: 0xmarket" in out
    assert "Replicated rate:        0.298009" in out
    assert "⚠️  Market 0xmarket: exchange rate mismatch" in out


def test_print_report_for_current_market_skips_accrual_lines(capsys):
    market = _lending_market()
    market.accrual = market.head
    report = replicate_market(market)

    print_replication_report(report)
    out = capsys.readouterr().out
    assert "✅ Market: 0xmarket" in out
    assert "(0 blocks ago)" in out
    assert "Borrow rate" not in out
    assert market.rate_model_calls == 0


def test_fetch_snapshot_caches_only_pinned_blocks():
    pinned = _lending_market(block_identifier=105)
    first = fetch_snapshot(pinned)
    pinned.cash_held = 1
    assert fetch_snapshot(pinned) == first
    assert fetch_snapshot(pinned, use_cache=False).cash == 1

    latest = _lending_market()
    assert fetch_snapshot(latest).cash == 1000 * WAD
    latest.cash_held = 2
    assert fetch_snapshot(latest).cash == 2


def test_cache_roundtrip_and_clear(capsys):
    key = cache_key("snapshot", "0xm", 1)
    assert key == cache_key("snapshot", "0xm", "1")
    assert get_cached(key) is None
    set_cached(key, {"cash": 5})
    assert get_cached(key) == {"cash": 5}

    clear_cache()
    assert "Cache cleared" in capsys.readouterr().err
    assert get_cached(key) is None


def test_corrupted_cache_entry_is_discarded(capsys):
    key = cache_key("snapshot", "0xm", 2)
    (get_cache_dir() / f"{key}.json").write_text("{not json", encoding="utf-8")
    assert get_cached(key) is None
    assert "unreadable cache entry" in capsys.readouterr().err
    assert not (get_cache_dir() / f"{key}.json").exists()


def test_main_without_reachable_rpc(monkeypatch, capsys):
    monkeypatch.delenv("ETH_RPC_URL", raising=False)
    monkeypatch.setattr("web3.Web3.is_connected", lambda self, *args, **kwargs: False)

    assert main(["--market", "0x" + "11" * 20, "--rpc-url", "http://127.0.0.1:1"]) == 2
    err = capsys.readouterr().err
    assert "Failed to connect to RPC at http://127.0.0.1:1" in err
    assert "no reachable RPC endpoint" in err
