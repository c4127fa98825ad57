"""Clients for the hosted models behind the gateway."""

from fluxgate.clients.workers_ai import WorkersAIClient, WorkersAIError

__all__ = ["WorkersAIClient", "WorkersAIError"]
