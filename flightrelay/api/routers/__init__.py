from flightrelay.api.routers import health, webhooks

__all__ = ["health", "webhooks"]
