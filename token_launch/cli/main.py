"""Main CLI entry point"""

import sys
import json
import logging
import argparse
from pathlib import Path

from ..core.balances import BalanceQuery
from ..core.connection import Web3Manager
from ..contracts.erc20 import ERC20
from ..operations.deploy import TokenDeployer
from ..protocols.uniswap_v3 import UniswapV3Config, Factory, Pool, LiquidityBootstrapper, LaunchConfig
from ..protocols.uniswap_v3.math import (
    clamp_single_sided,
    compute_single_sided_range,
    is_single_sided,
    resolve_start_price,
    sqrt_price_x96_to_price,
    tick_to_price,
)


RESULTS_DIR = "results"


def emit(result, filename):
    """Print the result as JSON and keep a copy under ./results"""
    text = json.dumps(result, indent=2, default=str)
    print("\n" + text)

    results_dir = Path.cwd() / RESULTS_DIR
    results_dir.mkdir(exist_ok=True)
    (results_dir / filename).write_text(text + "\n")
    print(f"\nSaved to {results_dir / filename}", file=sys.stderr)


def _resolve_spacing(args):
    if args.spacing is not None:
        return args.spacing
    return UniswapV3Config().get_tick_spacing(args.fee)


def cmd_range(args):
    """Compute a single-sided tick range offline"""
    spacing = _resolve_spacing(args)
    base_is_token0 = not args.base_is_token1
    start_price = resolve_start_price(args.start_price, args.price_lower, args.price_upper)

    derived = compute_single_sided_range(
        args.price_lower,
        args.price_upper,
        start_price,
        spacing,
        base_is_token0,
        decimals_base=args.decimals_base,
        decimals_quote=args.decimals_quote,
    )
    tick_range = derived if args.no_clamp else clamp_single_sided(
        derived, derived.current_tick, spacing, base_is_token0
    )

    if base_is_token0:
        decimals0, decimals1 = args.decimals_base, args.decimals_quote
    else:
        decimals0, decimals1 = args.decimals_quote, args.decimals_base

    result = {
        "price_lower": args.price_lower,
        "price_upper": args.price_upper,
        "start_price": str(start_price),
        "base_is_token0": base_is_token0,
        "tick_spacing": spacing,
        "derived_tick_lower": derived.tick_lower,
        "derived_tick_upper": derived.tick_upper,
        "tick_lower": tick_range.tick_lower,
        "tick_upper": tick_range.tick_upper,
        "current_tick": tick_range.current_tick,
        "sqrt_price_x96": str(tick_range.sqrt_price_x96),
        "pool_price": sqrt_price_x96_to_price(tick_range.sqrt_price_x96, decimals0, decimals1),
        "price_at_tick_lower": tick_to_price(tick_range.tick_lower, decimals0, decimals1),
        "price_at_tick_upper": tick_to_price(tick_range.tick_upper, decimals0, decimals1),
        "single_sided": is_single_sided(
            tick_range.tick_lower, tick_range.tick_upper, tick_range.current_tick, base_is_token0
        ),
        "clamped": (tick_range.tick_lower, tick_range.tick_upper) != (derived.tick_lower, derived.tick_upper),
    }

    side = "token0" if base_is_token0 else "token1"
    print(f"Range {args.price_lower} .. {args.price_upper} (base is {side}, spacing {spacing})")
    print("-" * 60)
    print(f"  Start price:  {result['start_price']}")
    print(f"  Current tick: {result['current_tick']}")
    print(f"  Derived:      [{derived.tick_lower}, {derived.tick_upper}]")
    print(f"  Ticks:        [{tick_range.tick_lower}, {tick_range.tick_upper}]"
          + (" (clamped)" if result["clamped"] else ""))
    print(f"  Single-sided: {'yes' if result['single_sided'] else 'NO'}")
    print("-" * 60)

    emit(result, f"range_{tick_range.tick_lower}_{tick_range.tick_upper}.json")


def cmd_deploy(args):
    """Deploy the launch token"""
    deployer = TokenDeployer()

    print(f"Deploying {args.artifact} from {deployer.manager.address}")
    result = deployer.deploy(args.artifact, owner=args.owner)

    print(f"\nSuccess! {result['name']} ({result['symbol']}) at {result['address']}")
    print(f"Total supply: {result['total_supply']}")
    print(f"Tx: {result['tx_hash']}")

    emit(result, f"deploy_{result['symbol']}.json")


def cmd_bootstrap(args):
    """Create the launch pool and mint the single-sided position"""
    launch = LaunchConfig.load(args.config)
    manager = Web3Manager(require_signer=not args.dry_run)
    bootstrapper = LiquidityBootstrapper(manager=manager, launch=launch)

    print(f"Bootstrapping {launch.amount} {launch.token} against {launch.quote_token} "
          f"(fee {launch.fee}, range {launch.price_lower} .. {launch.price_upper})")
    if args.dry_run:
        print("\n*** DRY RUN - no transactions will be sent ***")

    result = bootstrapper.bootstrap(dry_run=args.dry_run)

    print("-" * 60)
    print(f"  Pool:         {result['pool'] or '(will be created)'}")
    print(f"  token0:       {result['token0']}")
    print(f"  token1:       {result['token1']}")
    print(f"  Current tick: {result['current_tick']}")
    print(f"  Ticks:        [{result['tick_lower']}, {result['tick_upper']}]")
    print(f"  Single-sided: {'yes' if result['single_sided'] else 'NO'}")
    if not args.dry_run:
        print(f"  Token ID:     {result['token_id']}")
        print(f"  Mint tx:      {result['mint_tx']}")
    print("-" * 60)

    symbol = result["token"]["symbol"]
    emit(result, f"bootstrap_{symbol}_dry_run.json" if args.dry_run else f"bootstrap_{symbol}.json")


def cmd_query_balances(args):
    """ETH and token balances, e.g. to check the deployer before bootstrapping"""
    result = BalanceQuery().get_all_balances(args.address, extra_tokens=args.token or ())

    print(f"Balances for {result['address']}")
    print("-" * 60)
    for row in result["balances"]:
        value = f"ERROR - {row['error']}" if "error" in row else f"{row['balance']:.6f}"
        print(f"  {row['symbol']:<10} {value}")
    print("-" * 60)

    emit(result, f"balances_{result['address'][:10]}.json")


def cmd_query_pool(args):
    """Query a pool by pair and fee tier"""
    manager = Web3Manager()
    v3_config = UniswapV3Config()
    token_a = manager.checksum(manager.config.get_token_address(args.token_a))
    token_b = manager.checksum(manager.config.get_token_address(args.token_b))

    factory = Factory(manager, v3_config.factory_address(manager.chain_id))
    address = factory.get_pool(token_a, token_b, args.fee)
    if address is None:
        result = {"exists": False, "token_a": token_a, "token_b": token_b, "fee": args.fee}
        print(f"No pool for {args.token_a}/{args.token_b} at fee {args.fee}")
    else:
        pool = Pool(manager, address)
        sqrt_price_x96, tick = pool.slot0()[:2]
        token0 = ERC20(manager, pool.token0)
        token1 = ERC20(manager, pool.token1)
        result = {
            "exists": True,
            "address": address,
            "fee": pool.fee,
            "tick_spacing": pool.tick_spacing,
            "token0": token0.info,
            "token1": token1.info,
            "sqrt_price_x96": str(sqrt_price_x96),
            "tick": tick,
            "liquidity": str(pool.liquidity),
            "price": sqrt_price_x96_to_price(sqrt_price_x96, token0.decimals, token1.decimals)
            if sqrt_price_x96 else None,
        }
        print(f"Pool {token0.symbol}/{token1.symbol} ({pool.fee}) at {address}")
        print("-" * 60)
        print(f"  Tick:      {tick}")
        print(f"  Price:     {result['price']} {token1.symbol} per {token0.symbol}")
        print(f"  Liquidity: {result['liquidity']}")
        print("-" * 60)

    emit(result, f"pool_{token_a[:10]}_{token_b[:10]}_{args.fee}.json")


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="token-launch",
        description="Token Launch Toolkit - deploy a token and seed a single-sided Uniswap V3 position",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""commands overview:
  range       Compute a single-sided tick range (offline)
  deploy      Deploy the launch token from a compiled artifact
  bootstrap   Create the pool and mint the launch position
  query       Query balances and pools

examples:
  token-launch range 0.0001 0.1 --fee 10000 --base-is-token1        # Launch range vs WETH
  token-launch deploy artifacts/Token.json                           # Deploy token
  token-launch bootstrap --dry-run                                   # Plan without sending
  token-launch query pool WETH HOLMES 10000                          # Inspect pool

configuration:
  RPC_URL      Set in .env file
  wallet       Set PUBLIC_KEY and PRIVATE_KEY in wallet.env
  tokens       config/tokens.json
  launch       config/launch.json
  gas          gas_config.json
""",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log transactions and derived parameters")
    subparsers = parser.add_subparsers(dest="command", help="Command")

    # ── range ──────────────────────────────────────────────────────────
    range_parser = subparsers.add_parser("range", help="Compute a single-sided tick range (offline)")
    range_parser.add_argument("price_lower", help="Lower price, quote per base (e.g., 0.0001)")
    range_parser.add_argument("price_upper", help="Upper price, quote per base (e.g., 0.1)")
    spacing_group = range_parser.add_mutually_exclusive_group(required=True)
    spacing_group.add_argument("--spacing", type=int, help="Tick spacing")
    spacing_group.add_argument("--fee", type=int, help="Fee tier (100, 500, 3000, 10000)")
    range_parser.add_argument("--start-price", default="lower",
                              help="Initial price: lower, upper, or an explicit price (default: lower)")
    range_parser.add_argument("--base-is-token1", action="store_true",
                              help="The launch token sorts after the quote token")
    range_parser.add_argument("--decimals-base", type=int, default=18, help="Launch token decimals")
    range_parser.add_argument("--decimals-quote", type=int, default=18, help="Quote token decimals")
    range_parser.add_argument("--no-clamp", action="store_true",
                              help="Report the derived range without moving the near boundary")
    range_parser.set_defaults(func=cmd_range)

    # ── deploy ─────────────────────────────────────────────────────────
    deploy_parser = subparsers.add_parser("deploy", help="Deploy the launch token")
    deploy_parser.add_argument("artifact", help="Compiled artifact JSON (abi + bytecode)")
    deploy_parser.add_argument("--owner", help="Initial owner (default: wallet address)")
    deploy_parser.set_defaults(func=cmd_deploy)

    # ── bootstrap ──────────────────────────────────────────────────────
    bootstrap_parser = subparsers.add_parser("bootstrap", help="Create the pool and mint the launch position")
    bootstrap_parser.add_argument("--config", help="Launch config (default: config/launch.json)")
    bootstrap_parser.add_argument("--dry-run", action="store_true", help="Plan without sending transactions")
    bootstrap_parser.set_defaults(func=cmd_bootstrap)

    # ── query ──────────────────────────────────────────────────────────
    query_parser = subparsers.add_parser("query", help="Query operations")
    query_sub = query_parser.add_subparsers(dest="query_type")

    balances_parser = query_sub.add_parser("balances", help="Query ETH and token balances")
    balances_parser.add_argument("--address", help="Address to query")
    balances_parser.add_argument("--token", action="append", metavar="ADDRESS",
                                 help="Extra token to include (repeatable), e.g. a just-deployed token")
    balances_parser.set_defaults(func=cmd_query_balances)

    pool_parser = query_sub.add_parser("pool", help="Query a pool by pair and fee")
    pool_parser.add_argument("token_a", help="Token symbol or address")
    pool_parser.add_argument("token_b", help="Token symbol or address")
    pool_parser.add_argument("fee", type=int, help="Fee tier (100, 500, 3000, 10000)")
    pool_parser.set_defaults(func=cmd_query_pool)

    # ── Parse and dispatch ─────────────────────────────────────────────
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == "query" and not args.query_type:
        query_parser.print_help()
        sys.exit(1)

    try:
        args.func(args)
    except KeyboardInterrupt:
        print("\nCancelled.")
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
