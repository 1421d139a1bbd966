#!/usr/bin/env python3
"""
Paper trading runner

Wires the range trading engine to the synthetic feed, the paper venue and the
pandas moving-average provider. With ``--simulate`` the clock is simulated and
every wait advances it instead of sleeping, so a full trading day runs in
seconds; without it the engine runs on wall-clock time until interrupted.
"""

import argparse
import logging
import sys
from datetime import UTC, datetime

from range_trader.config.config_manager import ConfigManager, set_config
from range_trader.config.constants import DEFAULT_INITIAL_BALANCE
from range_trader.config.providers.dotenv_provider import DotEnvProvider
from range_trader.config.providers.env_provider import EnvVarProvider
from range_trader.config.providers.mapping_provider import MappingProvider
from range_trader.config.settings import SignalMode, StrategySettings
from range_trader.data_providers.instrument import InstrumentSpec
from range_trader.data_providers.mock_data_provider import MockMarketDataFeed
from range_trader.data_providers.paper_venue import PaperExecutionVenue
from range_trader.engines.live.trading_engine import RangeTradingEngine
from range_trader.indicators.moving_average import PandasIndicatorProvider
from range_trader.infrastructure.logging.config import configure_logging
from range_trader.scheduling.clock import Clock, ManualClock, SystemClock

logger = logging.getLogger(__name__)


def _parse_override(raw: str) -> tuple[str, str]:
    key, sep, value = raw.partition("=")
    if not sep or not key.strip():
        raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got {raw!r}")
    return key.strip(), value.strip()


def _parse_start(raw: str) -> datetime:
    try:
        start = datetime.fromisoformat(raw)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid ISO timestamp {raw!r}") from e
    return start if start.tzinfo is not None else start.replace(tzinfo=UTC)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Run the range trading engine on a paper venue")

    parser.add_argument("--symbol", help="Instrument symbol (overrides RT_SYMBOL)")
    parser.add_argument("--digits", type=int, default=5, help="Quote precision of the instrument")
    parser.add_argument(
        "--stops-level", type=int, default=0, help="Venue minimum stop distance in points"
    )
    parser.add_argument(
        "--balance", type=float, default=DEFAULT_INITIAL_BALANCE, help="Initial paper balance"
    )
    parser.add_argument("--seed", type=int, help="Random seed (overrides RT_RANDOM_SEED)")
    parser.add_argument("--cycles", type=int, help="Stop after this many cycles")
    parser.add_argument(
        "--simulate", action="store_true", help="Use a simulated clock instead of wall time"
    )
    parser.add_argument(
        "--start",
        type=_parse_start,
        help="Simulated start time, ISO format (default: today 00:00 UTC)",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        action="append",
        type=_parse_override,
        default=[],
        metavar="KEY=VALUE",
        help="Configuration override, e.g. --set RT_SIGNAL_MODE=random",
    )
    parser.add_argument("--env-file", default=".env", help="Path to a .env file")
    parser.add_argument("--log-level", help="Logging level (default: LOG_LEVEL or INFO)")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")

    return parser.parse_args(argv)


def build_config(args) -> ConfigManager:
    overrides = MappingProvider(dict(args.overrides), name="command_line")
    if args.symbol:
        overrides.set("RT_SYMBOL", args.symbol)
    if args.seed is not None:
        overrides.set("RT_RANDOM_SEED", args.seed)
    return ConfigManager([overrides, EnvVarProvider(), DotEnvProvider(args.env_file)])


def build_engine(args, settings: StrategySettings) -> RangeTradingEngine:
    """Assemble the engine and its paper collaborators."""
    instrument = InstrumentSpec.forex(
        settings.symbol, digits=args.digits, stops_level=args.stops_level
    )

    clock: Clock
    if args.simulate:
        start = args.start or datetime.now(UTC).replace(hour=0, minute=0, second=0, microsecond=0)
        clock = ManualClock(start)

        def sleep(seconds: float) -> None:
            clock.advance(seconds=seconds)

    else:
        clock = SystemClock()
        sleep = None

    feed = MockMarketDataFeed(instrument, start=clock.now(), seed=settings.random_seed)
    venue = PaperExecutionVenue(instrument, feed, initial_balance=args.balance, clock=clock)
    provider = None
    if settings.signal_mode is not SignalMode.RANDOM:
        provider = PandasIndicatorProvider(feed)

    def on_tick(now: datetime) -> None:
        feed.advance(now)
        closed = venue.process_quote()
        if closed:
            logger.debug("Paper venue closed %s on stop or target", closed)

    return RangeTradingEngine(
        settings=settings,
        instrument=instrument,
        feed=feed,
        venue=venue,
        indicator_provider=provider,
        clock=clock,
        sleep=sleep,
        on_tick=on_tick,
    )


def main(argv=None) -> int:
    """Main entry point for paper trading"""
    args = parse_args(argv)
    config = build_config(args)
    set_config(config)
    configure_logging(args.log_level, use_json=True if args.json_logs else None)

    try:
        settings = StrategySettings.from_config(config)
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    if args.simulate and args.cycles is None:
        logger.error("--simulate requires --cycles")
        return 2

    engine = build_engine(args, settings)
    logger.info(
        "Starting range trader for %s (%s, signal=%s, balance=%.2f)",
        settings.symbol,
        "simulated clock" if args.simulate else "wall clock",
        settings.signal_mode.value,
        args.balance,
    )
    engine.run(max_cycles=args.cycles)
    logger.info("Final paper balance: %.2f", engine.venue.get_account_balance())
    return 0


if __name__ == "__main__":
    sys.exit(main())
