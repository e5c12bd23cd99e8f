"""Tournament domain services: scoring, the round state machine and storage.

The scoring engine and state machine are pure and know nothing about HTTP or
sockets; the service ties them to a document store. Routes and socket handlers
import from here and stay transport-only.
"""

from .service import TournamentService

__all__ = ['TournamentService']
