"""
Periodic re-check of tracked flights.

`ChangeDetector.run_cycle` performs one pass over the registry and pushes
gate and status alerts. `FlightTracker` owns the background task that runs
a cycle every polling interval for the lifetime of the application.
"""

import asyncio
from dataclasses import dataclass
from typing import List, Optional

from flightrelay.domain.interfaces.provider_interface import FlightDataProvider
from flightrelay.domain.interfaces.transport_interface import MessagingTransport
from flightrelay.domain.models.subscription import ChangeEvent, Subscription
from flightrelay.domain.services.subscription_registry import SubscriptionRegistry
from flightrelay.formatters.flight import FlightFormatter
from flightrelay.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class CycleReport:
    """Outcome counters for one detection cycle."""
    checked: int = 0
    skipped: int = 0
    notifications_sent: int = 0
    notifications_failed: int = 0

    @property
    def notifications(self) -> int:
        return self.notifications_sent + self.notifications_failed


class ChangeDetector:
    """
    Diffs fresh provider data against the last-known state of every
    subscription and notifies users of gate and status changes.

    Provider misses and failures skip the subscription for this cycle.
    Delivery failures are logged and never roll back the recorded state,
    so each transition is alerted at most once.
    """

    def __init__(
        self,
        registry: SubscriptionRegistry,
        provider: FlightDataProvider,
        transport: MessagingTransport,
        formatter: Optional[FlightFormatter] = None,
        max_concurrent_checks: int = 5,
        check_timeout: float = 20.0
    ):
        self.registry = registry
        self.provider = provider
        self.transport = transport
        self.formatter = formatter or FlightFormatter()
        self.check_timeout = check_timeout
        self.max_concurrent_checks = max(1, max_concurrent_checks)

    async def run_cycle(self) -> CycleReport:
        """Check every subscription once."""
        report = CycleReport()
        subscriptions = await self.registry.snapshot()
        if not subscriptions:
            return report

        logger.info(f"Checking {len(subscriptions)} subscriptions")
        semaphore = asyncio.Semaphore(self.max_concurrent_checks)
        results = await asyncio.gather(
            *(self._check_guarded(s, report, semaphore) for s in subscriptions),
            return_exceptions=True
        )
        for subscription, result in zip(subscriptions, results):
            if isinstance(result, BaseException):
                report.skipped += 1
                logger.error(
                    f"Unexpected error checking {subscription.flight_code} for {subscription.user_address}",
                    exc_info=result
                )

        logger.info(
            "Detection cycle complete",
            extra={
                "checked": report.checked,
                "skipped": report.skipped,
                "notifications_sent": report.notifications_sent,
                "notifications_failed": report.notifications_failed,
            }
        )
        return report

    async def _check_guarded(
        self,
        subscription: Subscription,
        report: CycleReport,
        semaphore: asyncio.Semaphore
    ) -> None:
        async with semaphore:
            await self.check_subscription(subscription, report)

    async def check_subscription(self, subscription: Subscription, report: Optional[CycleReport] = None) -> List[ChangeEvent]:
        """
        Fetch one tracked flight, record any changes and notify the user.

        Returns the changes that were detected.
        """
        report = report if report is not None else CycleReport()
        try:
            flight = await asyncio.wait_for(
                self.provider.get_flight(subscription.flight_code),
                timeout=self.check_timeout
            )
        except asyncio.TimeoutError:
            logger.warning(f"Timed out fetching {subscription.flight_code} for {subscription.user_address}")
            report.skipped += 1
            return []
        except Exception as e:
            logger.warning(f"Could not fetch {subscription.flight_code} for {subscription.user_address}: {str(e)}")
            report.skipped += 1
            return []

        if flight is None:
            logger.warning(f"Flight {subscription.flight_code} not found for {subscription.user_address}")
            report.skipped += 1
            return []

        report.checked += 1
        changes = await self.registry.observe(subscription.user_address, subscription.flight_code, flight)
        for change in changes:
            await self._notify(change, report)
        return changes

    async def _notify(self, change: ChangeEvent, report: CycleReport) -> None:
        logger.info(
            f"{change.kind.value.upper()} change for {change.flight_code}: {change.previous} -> {change.current}",
            extra={"user_address": change.user_address}
        )
        try:
            await self.transport.send(change.user_address, self.formatter.format_change(change))
            report.notifications_sent += 1
        except Exception as e:
            report.notifications_failed += 1
            logger.error(
                f"Failed to deliver {change.kind.value} alert to {change.user_address}: {str(e)}"
            )


class FlightTracker:
    """
    Owns the single long-lived polling task.

    `start` is idempotent; the task is created once and keeps running until
    `stop` is called at application shutdown.
    """

    def __init__(self, detector: ChangeDetector, interval_seconds: float = 180.0):
        self.detector = detector
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    def start(self) -> None:
        if self.is_running():
            return
        self._task = asyncio.create_task(self._run(), name="flight-tracker")
        logger.info(f"Flight tracker started ({self.interval_seconds:g}s interval)")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Flight tracker stopped")

    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.detector.run_cycle()
            except Exception as e:
                logger.error(f"Detection cycle failed: {str(e)}", exc_info=True)
