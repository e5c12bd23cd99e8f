"""Errors raised by the tournament core and mapped to HTTP/socket replies."""


class ScorekeeperError(Exception):
    """Base class for every rejected tournament operation.

    ``status_code`` is the HTTP status the API answers with and ``code`` is the
    stable machine-readable name sent to clients next to the message.
    """

    status_code = 400
    code = 'scorekeeper_error'

    def __init__(self, message=None):
        super().__init__(message or self.__doc__.strip().splitlines()[0])
        self.message = str(self)

    def to_dict(self):
        return {'error': self.message, 'code': self.code}


class InvalidConfiguration(ScorekeeperError):
    """Invalid tournament configuration."""

    code = 'invalid_configuration'


class InvalidInput(ScorekeeperError):
    """Invalid input value."""

    code = 'invalid_input'


class UnknownPlayer(ScorekeeperError):
    """Player is not part of this tournament."""

    code = 'unknown_player'


class DuplicateSubmission(ScorekeeperError):
    """Score already submitted for this round."""

    status_code = 409
    code = 'duplicate_submission'


class RoundIncomplete(ScorekeeperError):
    """All players must submit scores before advancing."""

    status_code = 409
    code = 'round_incomplete'


class TournamentComplete(ScorekeeperError):
    """Tournament is already complete."""

    status_code = 409
    code = 'tournament_complete'


class NotFound(ScorekeeperError):
    """Tournament not found."""

    status_code = 404
    code = 'not_found'


class PersistenceFailure(ScorekeeperError):
    """Tournament storage is unavailable."""

    status_code = 503
    code = 'persistence_failure'
