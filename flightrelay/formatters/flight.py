from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from flightrelay.domain.models.flight import FlightEndpoint, FlightSnapshot
from flightrelay.domain.models.subscription import ChangeEvent, ChangeKind
from flightrelay.utils.logger import get_logger


class FlightFormatter:
    """
    Renders flight records and alerts as WhatsApp text.

    WhatsApp renders *single asterisks* as bold.
    """

    MAX_LENGTH = 4096

    STATUS_EMOJI = {
        "scheduled": "🕒",
        "active": "✈️",
        "landed": "✅",
        "cancelled": "❌",
        "diverted": "🔄",
        "incident": "⚠️",
    }

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.logger = get_logger(__name__)
        self.config = config or {}
        self.home_airport = self.config.get("home_airport", "FCO")
        self.airport_name = self.config.get("airport_name", "Fiumicino Airport")

    def format_flight(self, flight: FlightSnapshot) -> str:
        """Full flight card for a tracked flight."""
        status = flight.status or "unknown"
        emoji = self.STATUS_EMOJI.get(status, "📋")
        title = " ".join(p for p in (flight.airline.name or flight.airline.iata, flight.code) if p)

        lines = [
            f"{emoji} *{title or 'Flight'}*",
            f"Status: *{status.upper()}*",
            "",
        ]
        lines.extend(self._format_endpoint("🛫 *Departure:*", flight.departure, departure=True))
        lines.append("")
        lines.extend(self._format_endpoint("🛬 *Arrival:*", flight.arrival, departure=False))

        if flight.is_airborne:
            live = flight.live
            lines.append("")
            lines.append("📡 *Live Position*")
            if live.altitude is not None:
                lines.append(f"   Altitude: {round(live.altitude)}m")
            if live.speed_horizontal is not None:
                lines.append(f"   Speed: {round(live.speed_horizontal)} km/h")
            if live.latitude is not None and live.longitude is not None:
                lines.append(f"   📍 Track on map: https://www.google.com/maps?q={live.latitude},{live.longitude}")

        if flight.aircraft and flight.aircraft.registration:
            lines.append("")
            lines.append(f"✈️ Aircraft: {flight.aircraft.iata or 'N/A'} ({flight.aircraft.registration})")

        return self.truncate("\n".join(lines))

    def _format_endpoint(self, title: str, endpoint: FlightEndpoint, departure: bool) -> List[str]:
        lines = [f"{title} {endpoint.airport or 'Unknown'} ({endpoint.iata or '---'})"]
        if endpoint.terminal:
            lines.append(f"   Terminal: {endpoint.terminal}")
        if endpoint.gate:
            lines.append(f"   🛤️ Gate: *{endpoint.gate}*" if departure else f"   Gate: {endpoint.gate}")
        elif departure:
            lines.append("   ⏳ Gate TBA")
        if not departure and endpoint.baggage:
            lines.append(f"   🧳 Baggage: {endpoint.baggage}")
        lines.append(f"   Scheduled: {self.format_time(endpoint.scheduled)}")
        if endpoint.delay:
            lines.append(f"   ⚠️ Delay: {endpoint.delay} min")
        if endpoint.actual:
            lines.append(f"   Actual: {self.format_time(endpoint.actual)}")
        return lines

    def format_departures(self, flights: Sequence[FlightSnapshot], limit: int = 10) -> str:
        lines = [f"🛫 *{self.home_airport} Departures*", ""]
        for i, f in enumerate(flights[:limit], start=1):
            status = "✈️" if f.status == "active" else "❌" if f.status == "cancelled" else "🕒"
            lines.append(f"{i}. {status} {f.code} → {f.arrival.iata or '---'}")
            lines.append(f"   {self.format_time(f.departure.scheduled)} | Gate: {f.departure.gate or 'TBA'}")
            lines.append("")
        return self.truncate("\n".join(lines).rstrip())

    def format_arrivals(self, flights: Sequence[FlightSnapshot], limit: int = 10) -> str:
        lines = [f"🛬 *{self.home_airport} Arrivals*", ""]
        for i, f in enumerate(flights[:limit], start=1):
            lines.append(f"{i}. {f.code} from {f.departure.iata or '---'}")
            lines.append(f"   {self.format_time(f.arrival.scheduled)} | Gate: {f.arrival.gate or 'TBA'}")
            lines.append("")
        return self.truncate("\n".join(lines).rstrip())

    def format_route(self, departure: str, arrival: str, flights: Sequence[FlightSnapshot]) -> str:
        if not flights:
            return f"❌ No flights found for {departure} → {arrival}"
        lines = [f"✈️ *{departure} → {arrival}*", ""]
        for i, f in enumerate(flights, start=1):
            lines.append(f"{i}. {f.code} - {f.airline.name or f.airline.iata or 'Unknown airline'}")
            lines.append(f"   {self.format_time(f.departure.scheduled)}")
            lines.append("")
        return self.truncate("\n".join(lines).rstrip())

    def format_change(self, change: ChangeEvent) -> str:
        """Alert text for a detected gate or status transition."""
        if change.kind is ChangeKind.GATE:
            if change.previous:
                return (
                    f"🛑 *GATE CHANGE*\n\n{change.flight_code} gate moved from "
                    f"{change.previous} to:\n*{change.current}*\n\nHurry! ⏰"
                )
            return f"🛑 *GATE ALERT*\n\n{change.flight_code} gate announced:\n*{change.current}*\n\nHurry! ⏰"
        return f"📊 *STATUS UPDATE*\n\n{change.flight_code} is now: *{change.current.upper()}*"

    def format_welcome(self) -> str:
        return (
            f"👋 *Welcome to {self.airport_name}*\n\n"
            "I can help with:\n\n"
            "✈️ Flight status (e.g., \"EK509\")\n"
            "🛫 Departures (type \"departures\")\n"
            "🛬 Arrivals (type \"arrivals\")\n"
            f"🗺️ Route search (e.g., \"{self.home_airport} to LHR\")\n\n"
            "*What do you need?*"
        )

    def format_help(self) -> str:
        return (
            f"🏛️ *{self.airport_name} Bot*\n\n"
            "✈️ Track flight: \"EK509\"\n"
            "🛫 View departures\n"
            "🛬 View arrivals\n"
            f"🗺️ Search route: \"{self.home_airport} to LHR\"\n\n"
            "*What do you need?*"
        )

    def format_tracking_cancelled(self, had_subscription: bool = True) -> str:
        if not had_subscription:
            return "ℹ️ You are not tracking any flight.\n\nType a flight number to start tracking."
        return "✅ *Tracking cancelled*\n\nType flight number to track new flight."

    def format_flight_not_found(self, flight_code: str) -> str:
        return f"❌ Flight {flight_code} not found.\n\nCheck the flight number and try again."

    def format_list_empty(self, what: str) -> str:
        return f"❌ No {what} found. Try again later."

    def format_provider_unavailable(self) -> str:
        return "⚠️ I couldn't reach the flight data provider right now. Please try again in a few minutes."

    def format_security_times(self, now: Optional[datetime] = None) -> str:
        now = now or datetime.now()
        return (
            "🛡️ *Security Check Times*\n\n"
            "Terminal 1: 10 min ✅\n"
            "Terminal 3: 8 min ✅\n"
            "Gates E: 15 min ⏳\n\n"
            f"_Updated: {now.strftime('%H:%M')}_"
        )

    def format_passport_control(self) -> str:
        return (
            "📖 *Passport Control*\n\n"
            "Schengen: 5 min ✅\n"
            "Non-Schengen: 18 min ⏳\n"
            "Priority: 3 min 🚀"
        )

    @staticmethod
    def format_time(value: Optional[str]) -> str:
        """Render an ISO-8601 timestamp as HH:MM in its own offset."""
        if not value:
            return "TBA"
        try:
            return datetime.fromisoformat(value).strftime("%H:%M")
        except ValueError:
            return "TBA"

    def truncate(self, text: str) -> str:
        if len(text) <= self.MAX_LENGTH:
            return text
        self.logger.warning(f"Reply exceeds {self.MAX_LENGTH} characters; truncating")
        return text[: self.MAX_LENGTH - 1] + "…"
