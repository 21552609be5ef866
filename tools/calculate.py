"""
Command-line position calculator.

Usage (from repo root):
    python tools/calculate.py --entry-price 50000 --account-size 10000 --leverage 10
    python tools/calculate.py --entry-price 50000 --risk-usd 500 --stop-loss 49000 --json
    python tools/calculate.py --short --entry-price 3000 --target-profit 250

Account size, leverage and entry price fall back to the configured defaults
(DEFAULT_ACCOUNT_SIZE, DEFAULT_LEVERAGE, DEFAULT_ENTRY_PRICE) when omitted.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Optional, Sequence

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from position_calculator.core.config import get_log_level, get_settings  # noqa: E402
from position_calculator.core.logging import init_logging  # noqa: E402
from position_calculator.risk.formatting import format_messages, format_table  # noqa: E402
from position_calculator.risk.models import CalculatorInputs, PositionType, default_inputs  # noqa: E402
from position_calculator.risk.risk_engine import evaluate  # noqa: E402


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Size a leveraged position and derive its stop, target and liquidation.")
    parser.add_argument("--account-size", type=float, help="Capital base in USD.")
    parser.add_argument("--leverage", type=float, help="Leverage multiplier, e.g. 10.")
    parser.add_argument("--entry-price", type=float, help="Entry price.")
    side = parser.add_mutually_exclusive_group()
    side.add_argument("--long", dest="position_type", action="store_const", const="long", help="Long position (default).")
    side.add_argument("--short", dest="position_type", action="store_const", const="short", help="Short position.")
    parser.add_argument("--stop-loss", type=float, dest="stop_loss_price", help="Stop-loss price.")
    parser.add_argument("--risk-usd", type=float, help="Maximum acceptable loss in USD.")
    parser.add_argument("--take-profit", type=float, dest="take_profit_price", help="Take-profit price.")
    parser.add_argument("--target-profit", type=float, dest="target_profit_usd", help="Desired gain in USD.")
    parser.add_argument("--position-size", type=float, help="Quantity of the asset; derived when omitted.")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON instead of a table.")
    return parser


def inputs_from_args(args: argparse.Namespace) -> CalculatorInputs:
    defaults = default_inputs(get_settings())
    return CalculatorInputs(
        account_size=args.account_size if args.account_size is not None else defaults.account_size,
        leverage=args.leverage if args.leverage is not None else defaults.leverage,
        entry_price=args.entry_price if args.entry_price is not None else defaults.entry_price,
        position_type=PositionType.parse(args.position_type) if args.position_type else defaults.position_type,
        stop_loss_price=args.stop_loss_price,
        risk_usd=args.risk_usd,
        take_profit_price=args.take_profit_price,
        target_profit_usd=args.target_profit_usd,
        position_size=args.position_size,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    init_logging(get_log_level())

    settings = get_settings()
    outcome = evaluate(inputs_from_args(args), price_offset_pct=settings.default_price_offset_pct)

    if args.json:
        payload = {
            "ok": outcome.ok,
            "result": outcome.result.as_dict() if outcome.result else None,
            "errors": outcome.errors,
            "error_code": outcome.error_code,
            "warnings": outcome.warnings,
        }
        print(json.dumps(payload, indent=2))
        return 0 if outcome.ok else 1

    if not outcome.ok:
        print(format_messages(outcome.errors, prefix="error:"), file=sys.stderr)
        return 1

    print(format_table(outcome.result))
    if outcome.warnings:
        print()
        print(format_messages(outcome.warnings, prefix="warning:"))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
