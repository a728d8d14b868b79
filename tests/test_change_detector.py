"""Unit tests for the detection cycle and the flight tracker."""

import asyncio

from flightrelay.domain.services.change_detector import ChangeDetector, FlightTracker
from flightrelay.domain.services.subscription_registry import SubscriptionRegistry

from conftest import FakeProvider, FakeTransport, make_flight

ALICE = "whatsapp:+391111111111"
BOB = "whatsapp:+392222222222"


def build(provider=None, transport=None, **kwargs):
    registry = SubscriptionRegistry()
    provider = provider or FakeProvider()
    transport = transport or FakeTransport()
    detector = ChangeDetector(registry, provider, transport, **kwargs)
    return registry, provider, transport, detector


def test_empty_registry_makes_no_provider_calls():
    registry, provider, transport, detector = build()
    report = asyncio.run(detector.run_cycle())
    assert provider.calls == []
    assert report.checked == 0
    assert report.notifications == 0


def test_unchanged_gate_sends_nothing():
    async def scenario():
        registry, provider, transport, detector = build()
        provider.flights["EK509"] = make_flight(status="scheduled", departure_gate="A1")
        await registry.upsert(ALICE, "EK509", last_known_gate="A1", last_known_status="scheduled")
        report = await detector.run_cycle()
        return report, transport

    report, transport = asyncio.run(scenario())
    assert report.checked == 1
    assert transport.sent == []


def test_gate_change_sends_exactly_one_alert():
    async def scenario():
        registry, provider, transport, detector = build()
        provider.flights["EK509"] = make_flight(status="scheduled", departure_gate="B3")
        await registry.upsert(ALICE, "EK509", last_known_gate="A1", last_known_status="scheduled")
        await detector.run_cycle()
        return transport, await registry.get(ALICE)

    transport, subscription = asyncio.run(scenario())
    assert len(transport.sent) == 1
    recipient, text = transport.sent[0]
    assert recipient == ALICE
    assert "GATE CHANGE" in text
    assert "B3" in text
    assert subscription.last_known_gate == "B3"


def test_first_status_fires_one_alert():
    async def scenario():
        registry, provider, transport, detector = build()
        provider.flights["EK509"] = make_flight(status="active")
        await registry.upsert(ALICE, "EK509")
        await detector.run_cycle()
        return transport, await registry.get(ALICE)

    transport, subscription = asyncio.run(scenario())
    assert len(transport.sent) == 1
    assert "STATUS UPDATE" in transport.sent[0][1]
    assert "ACTIVE" in transport.sent[0][1]
    assert subscription.last_known_status == "active"


def test_gate_and_status_change_both_fire():
    async def scenario():
        registry, provider, transport, detector = build()
        provider.flights["EK509"] = make_flight(status="active", departure_gate="C7")
        await registry.upsert(ALICE, "EK509", last_known_gate="A1", last_known_status="scheduled")
        report = await detector.run_cycle()
        return report, transport

    report, transport = asyncio.run(scenario())
    assert report.notifications_sent == 2
    assert "GATE" in transport.sent[0][1]
    assert "STATUS" in transport.sent[1][1]


def test_second_identical_cycle_sends_nothing():
    async def scenario():
        registry, provider, transport, detector = build()
        provider.flights["EK509"] = make_flight(status="active", departure_gate="B3")
        await registry.upsert(ALICE, "EK509", last_known_gate="A1", last_known_status="scheduled")
        await detector.run_cycle()
        first = len(transport.sent)
        await detector.run_cycle()
        return first, len(transport.sent)

    first, total = asyncio.run(scenario())
    assert first == 2
    assert total == 2


def test_cancelled_user_is_not_polled_or_notified():
    async def scenario():
        registry, provider, transport, detector = build()
        provider.flights["EK509"] = make_flight(status="active", departure_gate="B3")
        await registry.upsert(ALICE, "EK509")
        await registry.remove(ALICE)
        await detector.run_cycle()
        return provider, transport

    provider, transport = asyncio.run(scenario())
    assert provider.flight_calls() == []
    assert transport.sent == []


def test_failing_provider_call_does_not_stop_other_subscriptions():
    async def scenario():
        registry, provider, transport, detector = build()
        provider.failing.add("EK509")
        provider.flights["AZ610"] = make_flight(code="AZ610", status="active", departure_gate="D2")
        await registry.upsert(ALICE, "EK509", last_known_gate="A1", last_known_status="scheduled")
        await registry.upsert(BOB, "AZ610")
        report = await detector.run_cycle()
        return report, transport, await registry.get(ALICE)

    report, transport, alice = asyncio.run(scenario())
    assert report.skipped == 1
    assert report.checked == 1
    assert {recipient for recipient, _ in transport.sent} == {BOB}
    assert alice.last_known_gate == "A1"
    assert alice.last_known_status == "scheduled"


def test_flight_not_found_skips_subscription():
    async def scenario():
        registry, provider, transport, detector = build()
        await registry.upsert(ALICE, "EK509", last_known_gate="A1")
        report = await detector.run_cycle()
        return report, transport, await registry.get(ALICE)

    report, transport, alice = asyncio.run(scenario())
    assert report.skipped == 1
    assert transport.sent == []
    assert alice.last_known_gate == "A1"


def test_hanging_provider_call_times_out():
    async def scenario():
        registry, provider, transport, detector = build(check_timeout=0.05)
        provider.hanging.add("EK509")
        provider.flights["AZ610"] = make_flight(code="AZ610", status="landed")
        await registry.upsert(ALICE, "EK509")
        await registry.upsert(BOB, "AZ610")
        return await detector.run_cycle(), transport

    report, transport = asyncio.run(scenario())
    assert report.skipped == 1
    assert [recipient for recipient, _ in transport.sent] == [BOB]


def test_delivery_failure_keeps_new_state():
    async def scenario():
        transport = FakeTransport()
        transport.failing.add(ALICE)
        registry, provider, transport, detector = build(transport=transport)
        provider.flights["EK509"] = make_flight(status="scheduled", departure_gate="B3")
        provider.flights["AZ610"] = make_flight(code="AZ610", status="active")
        await registry.upsert(ALICE, "EK509", last_known_gate="A1", last_known_status="scheduled")
        await registry.upsert(BOB, "AZ610")
        first = await detector.run_cycle()
        second = await detector.run_cycle()
        return first, second, transport, await registry.get(ALICE)

    first, second, transport, alice = asyncio.run(scenario())
    assert first.notifications_failed == 1
    assert first.notifications_sent == 1
    assert alice.last_known_gate == "B3"
    assert second.notifications == 0
    assert [recipient for recipient, _ in transport.sent] == [BOB]


def test_concurrent_checks_are_bounded():
    class CountingProvider(FakeProvider):
        def __init__(self):
            super().__init__()
            self.active = 0
            self.peak = 0

        async def get_flight(self, flight_code):
            self.active += 1
            self.peak = max(self.peak, self.active)
            await asyncio.sleep(0.01)
            self.active -= 1
            return await super().get_flight(flight_code)

    async def scenario():
        provider = CountingProvider()
        registry, provider, transport, detector = build(provider=provider, max_concurrent_checks=2)
        for i in range(6):
            await registry.upsert(f"whatsapp:+3900000000{i}", f"EK{500 + i}")
        report = await detector.run_cycle()
        return report, provider

    report, provider = asyncio.run(scenario())
    assert provider.peak <= 2
    assert report.skipped == 6


class TestFlightTracker:
    def test_start_is_idempotent_and_stop_cancels(self):
        async def scenario():
            registry, provider, transport, detector = build()
            tracker = FlightTracker(detector, interval_seconds=3600)
            tracker.start()
            task = tracker._task
            tracker.start()
            same_task = tracker._task is task
            running = tracker.is_running()
            await tracker.stop()
            return same_task, running, tracker.is_running(), task.cancelled()

        same_task, running, stopped_running, cancelled = asyncio.run(scenario())
        assert same_task
        assert running
        assert not stopped_running
        assert cancelled

    def test_tracker_runs_cycles_and_survives_errors(self):
        class FlakyDetector:
            def __init__(self):
                self.cycles = 0

            async def run_cycle(self):
                self.cycles += 1
                if self.cycles == 1:
                    raise RuntimeError("first cycle fails")

        async def scenario():
            detector = FlakyDetector()
            tracker = FlightTracker(detector, interval_seconds=0.01)
            tracker.start()
            await asyncio.sleep(0.1)
            await tracker.stop()
            return detector.cycles

        assert asyncio.run(scenario()) >= 2

    def test_stop_without_start_is_noop(self):
        registry, provider, transport, detector = build()
        tracker = FlightTracker(detector)
        asyncio.run(tracker.stop())
        assert not tracker.is_running()
