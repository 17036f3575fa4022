"""Realtime — edit-session coordination and presence tracking."""

from mortar.realtime.coordinator import EditSession, SubscriptionCoordinator
from mortar.realtime.presence import InMemoryPresence

__all__ = ["EditSession", "InMemoryPresence", "SubscriptionCoordinator"]
