"""
Range trading engine.

One cycle handler owns all session state and runs to completion before the
next cycle starts. Each cycle:

1. rolls the daily counters and schedule over at midnight;
2. reconciles tracked positions against the venue (closure by absence);
3. liquidates everything once the end-of-day close time is reached;
4. when a check is due and the gates pass, evaluates the volatility window and
   the signal, then plans and submits an entry;
5. trails stops on profitable positions and force-closes positions that stayed
   in loss past their time budget.

The driving loop (``run``) survives failing cycles, backs off after repeated
errors and stops on SIGINT/SIGTERM.
"""

from __future__ import annotations

import logging
import signal
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import numpy as np

from range_trader.config.constants import (
    BAR_INTERVAL,
    DEFAULT_ERROR_COOLDOWN,
    DEFAULT_MAX_CONSECUTIVE_ERRORS,
)
from range_trader.config.settings import StrategySettings
from range_trader.data_providers.exchange_interface import (
    ExecutionVenue,
    Fill,
    Reject,
    VenuePosition,
    VenueTransportError,
)
from range_trader.data_providers.instrument import InstrumentSpec
from range_trader.data_providers.market_data import MarketDataFeed, PriceBar, Quote
from range_trader.engines.live.session import TradingSession
from range_trader.indicators.moving_average import IndicatorProvider
from range_trader.infrastructure.logging.context import new_request_id, set_context, use_context
from range_trader.infrastructure.logging.events import (
    log_data_event,
    log_decision_event,
    log_engine_error,
    log_engine_event,
    log_engine_warning,
    log_order_event,
    log_order_rejection,
)
from range_trader.infrastructure.retry import bounded_poll
from range_trader.position_management.ledger import ReconcileResult
from range_trader.position_management.time_exits import EndOfDayLiquidation, LossTimeLimitMonitor
from range_trader.position_management.trailing_stops import TrailingStopManager
from range_trader.risk.order_planner import OrderPlanner
from range_trader.scheduling.clock import Clock, SystemClock
from range_trader.scheduling.scheduler import CheckScheduler, TradingHours
from range_trader.strategies.signal_generator import SignalDirection, create_signal_generator
from range_trader.strategies.volatility import VolatilityWindowAnalyzer

logger = logging.getLogger(__name__)


class SkipReason:
    NOT_DUE = "not_due"
    OUTSIDE_HOURS = "outside_trading_hours"
    DAILY_CAP = "daily_trade_cap"
    MAX_OPEN = "max_open_positions"
    AFTER_CLOSE_ALL = "after_close_all_time"
    VOLATILITY = "volatility_rejected"
    NO_SIGNAL = "no_signal"
    PLAN_REJECTED = "plan_rejected"
    VENUE_REJECTED = "venue_rejected"
    TRANSPORT_FAILURE = "transport_failure"


@dataclass
class CycleReport:
    """What one cycle did; returned for callers and tests"""

    cycle_id: str
    now: datetime
    checked: bool = False
    entry_ticket: int | None = None
    skip_reason: str | None = None
    removed: tuple[int, ...] = ()
    adopted: tuple[int, ...] = ()
    eod_closed: list[int] = field(default_factory=list)
    stops_moved: list[int] = field(default_factory=list)
    forced_closed: list[int] = field(default_factory=list)


class RangeTradingEngine:
    """Low-volatility range entry with trailing and time-boxed exits"""

    def __init__(
        self,
        settings: StrategySettings,
        instrument: InstrumentSpec,
        feed: MarketDataFeed,
        venue: ExecutionVenue,
        indicator_provider: IndicatorProvider | None = None,
        clock: Clock | None = None,
        sleep: Callable[[float], None] | None = None,
        on_tick: Callable[[datetime], None] | None = None,
        error_cooldown: float = DEFAULT_ERROR_COOLDOWN,
        max_consecutive_errors: int = DEFAULT_MAX_CONSECUTIVE_ERRORS,
    ):
        if instrument.symbol != settings.symbol:
            raise ValueError(
                f"Instrument {instrument.symbol} does not match configured symbol {settings.symbol}"
            )
        self.settings = settings
        self.instrument = instrument
        self.feed = feed
        self.venue = venue
        self.clock = clock or SystemClock()
        self.on_tick = on_tick
        self.error_cooldown = error_cooldown
        self.max_consecutive_errors = max_consecutive_errors

        # Separate streams so backoff draws never shift the schedule or direction draws
        schedule_seed, signal_seed, backoff_seed = np.random.SeedSequence(
            settings.random_seed
        ).spawn(3)
        self.backoff_rng = np.random.default_rng(backoff_seed)

        self.stop_event = threading.Event()
        self._sleep = sleep or self._sleep_with_interrupt
        self.is_running = False
        self.consecutive_errors = 0
        self._previous_handlers: dict[int, Any] = {}

        self.session = TradingSession()
        self.scheduler = CheckScheduler.from_settings(
            settings, np.random.default_rng(schedule_seed)
        )
        self.trading_hours = TradingHours(settings.trading_start, settings.trading_end)
        self.analyzer = VolatilityWindowAnalyzer(instrument, settings)
        self.signal_generator = create_signal_generator(
            settings,
            indicator_provider,
            signal_rng=np.random.default_rng(signal_seed),
            backoff_rng=self.backoff_rng,
            sleep=self._sleep,
        )
        self.planner = OrderPlanner(instrument, settings)
        self.trailing = TrailingStopManager.from_settings(settings, instrument, venue)
        self.loss_monitor = LossTimeLimitMonitor(
            settings.loss_time_limit_seconds, instrument, venue
        )
        self.end_of_day = EndOfDayLiquidation(settings.close_all_time, venue)

    # ---- cycle -------------------------------------------------------------

    def run_cycle(self, now: datetime | None = None) -> CycleReport:
        """Run one complete cycle at ``now`` (defaults to the engine clock)."""
        now = now or self.clock.now()
        report = CycleReport(cycle_id=new_request_id(), now=now)
        with use_context(cycle_id=report.cycle_id, symbol=self.settings.symbol):
            if self.on_tick is not None:
                self.on_tick(now)
            self.session.stats.cycles += 1
            self._roll_day(now)

            live = self._reconcile(now, report)
            quote = self.feed.get_bid_ask(self.settings.symbol)

            for ticket in self._liquidate_end_of_day(live, now):
                report.eod_closed.append(ticket)
                live.pop(ticket, None)
                self.session.ledger.remove(ticket)

            self._check_entry(now, quote, len(live), report)
            self._manage_positions(live, quote, now, report)
        return report

    def _roll_day(self, now: datetime) -> None:
        counters = self.session.counters
        if not counters.is_new_day(now):
            return
        if counters.current_day is not None:
            log_engine_event(
                "New trading day",
                previous_day=counters.current_day.date().isoformat(),
                trades_previous_day=counters.daily_trade_count,
                **self.session.stats.summary(),
            )
        counters.roll(now)
        self.scheduler.reset(self.session.schedule, now)

    def _reconcile(self, now: datetime, report: CycleReport) -> dict[int, VenuePosition]:
        positions = self.venue.list_open_positions(
            self.settings.symbol, self.settings.magic_number
        )
        result: ReconcileResult = self.session.ledger.reconcile(positions, now)
        report.removed = result.removed
        report.adopted = result.adopted
        self.session.stats.positions_closed_at_venue += len(result.removed)
        return dict(result.live)

    def _liquidate_end_of_day(
        self, live: dict[int, VenuePosition], now: datetime
    ) -> list[int]:
        closed = self.end_of_day.liquidate(list(live.values()), now)
        self.session.stats.eod_closes += len(closed)
        return closed

    def _skip(self, report: CycleReport, skip_reason: str, **fields: Any) -> None:
        # Diagnostic fields may carry their own "reason" key
        report.skip_reason = skip_reason
        log_decision_event("Entry skipped", skip_reason=skip_reason, **fields)

    def _check_entry(
        self, now: datetime, quote: Quote, open_count: int, report: CycleReport
    ) -> None:
        schedule = self.session.schedule
        if not self.scheduler.is_due(now, schedule.next_check_time):
            report.skip_reason = SkipReason.NOT_DUE
            return
        self.scheduler.mark_checked(schedule, now)
        report.checked = True
        self.session.stats.checks += 1

        counters = self.session.counters
        if not self.trading_hours.contains(now):
            self._skip(report, SkipReason.OUTSIDE_HOURS, time=now.strftime("%H:%M"))
            return
        if self.end_of_day.past_close(now):
            self._skip(report, SkipReason.AFTER_CLOSE_ALL)
            return
        if counters.daily_trade_count >= self.settings.max_daily_trades:
            self._skip(report, SkipReason.DAILY_CAP, daily_trades=counters.daily_trade_count)
            return
        if open_count >= self.settings.max_open_positions:
            self._skip(report, SkipReason.MAX_OPEN, open_positions=open_count)
            return

        if self.settings.volatility_check:
            analysis = self.analyzer.analyze(self._fetch_bars(), quote.bid)
            if not analysis.accepted:
                self._skip(report, SkipReason.VOLATILITY, **analysis.to_log_fields())
                return
            log_decision_event("Volatility window accepted", **analysis.to_log_fields())

        signal_ = self.signal_generator.generate_signal(quote)
        if not signal_.is_actionable:
            self._skip(report, SkipReason.NO_SIGNAL, source=signal_.source, **signal_.metadata)
            return
        log_decision_event(
            "Signal generated",
            direction=signal_.direction.value,
            source=signal_.source,
            **signal_.metadata,
        )

        self._enter(signal_.direction, quote, now, report)

    def _fetch_bars(self) -> list[PriceBar]:
        period = self.settings.volatility_period_minutes
        result = bounded_poll(
            lambda: self.feed.get_recent_bars(self.settings.symbol, BAR_INTERVAL, period),
            max_attempts=self.settings.bar_fetch_attempts,
            min_delay=self.settings.indicator_backoff_min_ms / 1000.0,
            max_delay=self.settings.indicator_backoff_max_ms / 1000.0,
            rng=self.backoff_rng,
            sleep=self._sleep,
            description="bar fetch",
        )
        if not result.ready:
            log_data_event("No bars returned", interval=BAR_INTERVAL, attempts=result.attempts)
            return []
        if len(result.value) < period:
            logger.debug("Short bar window: %d of %d bars", len(result.value), period)
        return list(result.value)

    def _enter(
        self, direction: SignalDirection, quote: Quote, now: datetime, report: CycleReport
    ) -> None:
        stats = self.session.stats
        try:
            balance = self.venue.get_account_balance()
        except VenueTransportError as e:
            stats.transport_failures += 1
            self._skip(report, SkipReason.TRANSPORT_FAILURE, error=str(e))
            return

        plan = self.planner.plan(direction, quote, balance)
        if not plan.ok:
            stats.rejections += 1
            report.skip_reason = SkipReason.PLAN_REJECTED
            log_order_rejection("Order plan rejected", reason=plan.reason, **plan.details)
            return

        request = self.planner.build_request(plan.intent)
        try:
            result = self.venue.submit(request)
        except VenueTransportError as e:
            stats.transport_failures += 1
            report.skip_reason = SkipReason.TRANSPORT_FAILURE
            log_order_rejection("Order submission failed", error=str(e), **plan.details)
            return

        if isinstance(result, Reject):
            stats.rejections += 1
            report.skip_reason = SkipReason.VENUE_REJECTED
            log_order_rejection(
                "Order rejected by venue",
                code=result.code,
                venue_message=result.message,
                **plan.details,
            )
            return

        fill: Fill = result
        self.session.counters.daily_trade_count += 1
        self.session.ledger.add(fill.ticket, now)
        stats.trades_opened += 1
        report.entry_ticket = fill.ticket
        log_order_event(
            "Position opened",
            ticket=fill.ticket,
            side=request.side.value,
            volume=fill.volume,
            fill_price=fill.price,
            stop_loss=request.stop_loss,
            take_profit=request.take_profit,
            daily_trades=self.session.counters.daily_trade_count,
        )

    def _manage_positions(
        self, live: dict[int, VenuePosition], quote: Quote, now: datetime, report: CycleReport
    ) -> None:
        stats = self.session.stats
        for record in self.session.ledger:
            position = live.get(record.ticket)
            if position is None:
                # Opened this cycle; managed from the next one
                continue

            if self.settings.trailing_enabled:
                update = self.trailing.update(record, position, quote, now)
                if update.activated_now:
                    stats.record_activation(update.profit_pips)
                if update.modified:
                    stats.stop_modifications += 1
                    report.stops_moved.append(record.ticket)

            forced = self.loss_monitor.check(record, position, quote, now)
            if forced is not None:
                stats.record_forced_close(forced.loss_pips, forced.succeeded)
                if forced.succeeded:
                    report.forced_closed.append(record.ticket)

    # ---- driving loop ------------------------------------------------------

    def run(self, max_cycles: int | None = None) -> None:
        """Drive cycles until stopped, or for ``max_cycles`` cycles."""
        if self.is_running:
            logger.warning("Trading engine is already running")
            return

        self.is_running = True
        self.stop_event.clear()
        self.session.started_at = self.clock.now()
        set_context(component="range_engine", symbol=self.settings.symbol)
        self._install_signal_handlers()
        log_engine_event("Engine started", **self.settings.to_dict())
        self.signal_generator.open()

        cycles = 0
        try:
            while self.is_running and not self.stop_event.is_set():
                if max_cycles is not None and cycles >= max_cycles:
                    logger.info("Reached max_cycles=%s, stopping engine", max_cycles)
                    break
                cycles += 1
                try:
                    self.run_cycle()
                    self.consecutive_errors = 0
                except Exception as e:
                    self.consecutive_errors += 1
                    logger.error(
                        "Error in trading cycle (#%d): %s", self.consecutive_errors, e, exc_info=True
                    )
                    if self.consecutive_errors >= self.max_consecutive_errors:
                        log_engine_error(
                            "Too many consecutive errors; stopping engine",
                            consecutive_errors=self.consecutive_errors,
                        )
                        break
                    self._sleep(
                        min(
                            self.error_cooldown,
                            self.settings.tick_interval_seconds * self.consecutive_errors,
                        )
                    )
                    continue
                self._sleep(self.settings.tick_interval_seconds)
        finally:
            self._shutdown()

    def stop(self) -> None:
        """Ask the loop to finish after the current cycle."""
        self.stop_event.set()

    def _shutdown(self) -> None:
        self.is_running = False
        self.signal_generator.close()
        self._restore_signal_handlers()
        if len(self.session.ledger):
            log_engine_warning(
                "Engine stopped with open positions", tickets=self.session.ledger.tickets
            )
        log_engine_event("Engine stopped", **self.session.stats.summary())

    def _signal_handler(self, signum: int, frame: Any) -> None:
        logger.info("Received signal %s", signum)
        self.stop()

    def _install_signal_handlers(self) -> None:
        if threading.current_thread() is not threading.main_thread():
            return
        for signum in (signal.SIGINT, signal.SIGTERM):
            self._previous_handlers[signum] = signal.signal(signum, self._signal_handler)

    def _restore_signal_handlers(self) -> None:
        for signum, handler in self._previous_handlers.items():
            signal.signal(signum, handler)
        self._previous_handlers.clear()

    def _sleep_with_interrupt(self, seconds: float) -> None:
        """Sleep up to ``seconds``, returning early when a stop is requested."""
        if seconds > 0:
            self.stop_event.wait(seconds)
