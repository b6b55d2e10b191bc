"""
Command-line access to the pricing engine.

Every subcommand is a pure computation (nothing is stored) and prints one
canonical JSON object on stdout.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, Dict, Optional

from .core import cpmm
from .errors import AmmError
from .integration.config import ConfigError, config_from_env, configure_logging
from .state.canonical import canonical_json_bytes
from .state.pools import derive_pool_key

logger = logging.getLogger(__name__)


def _cmd_pool_key(args: argparse.Namespace) -> Dict[str, Any]:
    key = derive_pool_key(args.asset_x, args.asset_y)
    return {"pool_key": key.hex, "asset_a": key.asset0, "asset_b": key.asset1}


def _cmd_seed(args: argparse.Namespace) -> Dict[str, Any]:
    return {"shares": cpmm.seed_pool(args.amount_a, args.amount_b)}


def _cmd_quote(args: argparse.Namespace) -> Dict[str, Any]:
    amount_out, (new_in, new_out) = cpmm.swap_exact_in(args.reserve_in, args.reserve_out, args.amount_in)
    return {"amount_in": args.amount_in, "amount_out": amount_out, "new_reserve_in": new_in, "new_reserve_out": new_out}


def _cmd_quote_in(args: argparse.Namespace) -> Dict[str, Any]:
    amount_in, (new_in, new_out) = cpmm.swap_exact_out(args.reserve_in, args.reserve_out, args.amount_out)
    return {"amount_in": amount_in, "amount_out": args.amount_out, "new_reserve_in": new_in, "new_reserve_out": new_out}


def _cmd_burn(args: argparse.Namespace) -> Dict[str, Any]:
    amount_a, amount_b = cpmm.compute_liquidity_burn(args.shares, args.reserve_a, args.reserve_b, args.total_shares)
    return {"amount_a": amount_a, "amount_b": amount_b}


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="cpamm", description="Constant-product AMM pricing calculator.")
    p.add_argument("--log-level", default=None, help="Override CPAMM_LOG_LEVEL (default: INFO)")
    sub = p.add_subparsers(dest="command", required=True)

    s = sub.add_parser("pool-key", help="Derive the pool key for an asset pair")
    s.add_argument("asset_x")
    s.add_argument("asset_y")
    s.set_defaults(func=_cmd_pool_key)

    s = sub.add_parser("seed", help="Shares minted by an initial deposit")
    s.add_argument("amount_a", type=int)
    s.add_argument("amount_b", type=int)
    s.set_defaults(func=_cmd_seed)

    s = sub.add_parser("quote", help="Exact-in swap output")
    s.add_argument("reserve_in", type=int)
    s.add_argument("reserve_out", type=int)
    s.add_argument("amount_in", type=int)
    s.set_defaults(func=_cmd_quote)

    s = sub.add_parser("quote-in", help="Input required for an exact-out swap")
    s.add_argument("reserve_in", type=int)
    s.add_argument("reserve_out", type=int)
    s.add_argument("amount_out", type=int)
    s.set_defaults(func=_cmd_quote_in)

    s = sub.add_parser("burn", help="Assets returned for burning shares")
    s.add_argument("shares", type=int)
    s.add_argument("reserve_a", type=int)
    s.add_argument("reserve_b", type=int)
    s.add_argument("total_shares", type=int)
    s.set_defaults(func=_cmd_burn)
    return p


def main(argv: Optional[list[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    try:
        config = config_from_env()
        configure_logging(args.log_level or config.log_level)
    except ConfigError as exc:
        print(f"cpamm error: {exc}", file=sys.stderr)
        return 2

    try:
        out = args.func(args)
    except AmmError as exc:
        logger.debug("%s failed: %s", args.command, exc)
        print(f"cpamm error [{exc.code}]: {exc}", file=sys.stderr)
        return 1
    except (TypeError, ValueError) as exc:
        print(f"cpamm error: {exc}", file=sys.stderr)
        return 2

    print(canonical_json_bytes(out).decode("utf-8"))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
