"""CLI and main logic."""

import argparse
import os
import sys

from tqdm import tqdm

from market_vaults.constants import DEFAULT_PUBLIC_ETH_RPC_URLS
from market_vaults.contracts import resolve_market_contracts
from market_vaults.errors import MarketVaultError
from market_vaults.exchange_rate import simulate_accrual
from market_vaults.formatters import borrow_apr_pct, format_pct, format_wad, utilization_pct
from market_vaults.models import ReplicationReport
from market_vaults.onchain import Web3Market, fetch_snapshot
from market_vaults.validation import validate_market_snapshot, validate_replication

# Internal defaults (not exposed as CLI flags)
DEFAULT_TIMEOUT = 30


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse command-line arguments."""
    p = argparse.ArgumentParser(
        description="Replicate money-market exchange rates without accruing, and compare with the market's own."
    )
    p.add_argument(
        "--rpc-url",
        default=None,
        help="Execution-layer RPC URL. Falls back to ETH_RPC_URL, then to public endpoints.",
    )
    p.add_argument(
        "--market",
        action="append",
        required=True,
        help="Market (principal token) address. Repeat to check several markets.",
    )
    p.add_argument(
        "--block",
        type=int,
        default=None,
        help="Block number to pin all reads to. Default: latest.",
    )
    p.add_argument(
        "--no-cache",
        action="store_true",
        help="Disable caching for this run (fetch all data fresh from network).",
    )
    return p.parse_args(argv)


def default_rpc_urls(explicit_url: str | None) -> list[str]:
    """RPC endpoints to try, in order: explicit/env URL first, then public fallbacks (deduplicated)."""
    urls = [explicit_url] if explicit_url else []
    urls.extend(u for u in DEFAULT_PUBLIC_ETH_RPC_URLS if u not in urls)
    return urls


def replicate_market(market: Web3Market, *, use_cache: bool = True) -> ReplicationReport:
    """Replicate one market's exchange rate at its pinned block and compare with `exchangeRateCurrent`."""
    snapshot = fetch_snapshot(market, use_cache=use_cache)
    issues = validate_market_snapshot(snapshot, market=market.address, warn_only=True)
    block_number = market.block_number()
    result = simulate_accrual(snapshot, block_number, market.borrow_rate)
    reported = market.current_exchange_rate()
    issues += validate_replication(result, reported, market=market.address, warn_only=True)
    return ReplicationReport(
        market=market.address,
        block_number=block_number,
        snapshot=snapshot,
        result=result,
        reported_exchange_rate=reported,
        issues=tuple(issues),
    )


def print_replication_report(report: ReplicationReport) -> None:
    """Print one market's replication summary."""
    s = report.snapshot
    r = report.result
    status = "✅" if report.matches else "❌"
    print("=" * 70)
    print(f"{status} Market: {report.market}  •  block={report.block_number}")
    print("─" * 70)
    print(f"   Last accrual block:     {s.accrual_timestamp} ({r.elapsed} blocks ago)")
    print(f"   Stored exchange rate:   {format_wad(s.stored_exchange_rate, decimals=18)}")
    print(f"   Replicated rate:        {format_wad(r.exchange_rate, decimals=18)}")
    print(f"   Market-reported rate:   {format_wad(report.reported_exchange_rate, decimals=18)}")
    if r.simulated:
        print(f"   Borrow rate:            {r.borrow_rate}/block (~{format_pct(borrow_apr_pct(r.borrow_rate))} APR)")
        print(f"   Interest since accrual: {r.interest_accrued}")
    print(f"   Cash:                   {s.cash}")
    print(f"   Borrows (accrued):      {r.total_borrows}")
    print(f"   Reserves (accrued):     {r.total_reserves}")
    print(f"   Utilization:            {format_pct(utilization_pct(s.cash, r.total_borrows, r.total_reserves))}")
    for issue in report.issues:
        print(f"   ⚠️  {issue}")
    print("")


def main(argv: list[str]) -> int:
    """Main entry point."""
    args = parse_args(argv)

    use_cache = not args.no_cache

    try:
        from web3 import Web3
    except ImportError as ex:  # pragma: no cover
        print("Missing dependency. Run: uv sync", file=sys.stderr)
        raise SystemExit(2) from ex

    w3 = None
    for rpc_url in default_rpc_urls(args.rpc_url or os.getenv("ETH_RPC_URL")):
        candidate = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": DEFAULT_TIMEOUT}))
        if candidate.is_connected():
            w3 = candidate
            print(f"ℹ️ Connected to {rpc_url}", file=sys.stderr)
            break
        print(f"⚠️  Failed to connect to RPC at {rpc_url}", file=sys.stderr)
    if w3 is None:
        print("Error: no reachable RPC endpoint. Provide --rpc-url or set ETH_RPC_URL.", file=sys.stderr)
        return 2

    block_identifier: int | str = args.block if args.block is not None else "latest"

    reports: list[ReplicationReport] = []
    with tqdm(args.market, desc="🔗 Replicating exchange rates", unit="market", file=sys.stderr) as pbar:
        for market_address in pbar:
            pbar.set_postfix(market=market_address[:10])
            try:
                contracts = resolve_market_contracts(w3, market_address)
                market = Web3Market(w3, contracts, block_identifier=block_identifier)
                reports.append(replicate_market(market, use_cache=use_cache))
            except MarketVaultError as ex:
                tqdm.write(f"⚠️  {market_address}: {type(ex).__name__}: {ex}", file=sys.stderr)
            except Exception as ex:  # pylint: disable=broad-exception-caught
                tqdm.write(f"⚠️  {market_address}: RPC failure: {ex}", file=sys.stderr)

    if not reports:
        print("No market could be replicated.", file=sys.stderr)
        return 1

    print("")
    for report in reports:
        print_replication_report(report)

    mismatched = [r.market for r in reports if not r.matches]
    if mismatched:
        print(f"⚠️  {len(mismatched)} of {len(reports)} market(s) did not match exactly.", file=sys.stderr)
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
