import logging
import time
from typing import Callable, Optional, Tuple

from scorekeeper.exceptions import NotFound, PersistenceFailure
from . import state as machine
from .passcodes import generate_passcode, normalize_passcode
from .store import DocumentStore


class TournamentService:
    """Runs state-machine operations against the document store.

    Every mutation goes through ``_update``: read the whole document, apply a
    pure operation, write the whole document back. There is no version check,
    so two concurrent updates of the same tournament are last-write-wins.
    """

    def __init__(self, store: DocumentStore, logger=None, max_rounds: Optional[int] = None,
                 strict_persistence: bool = True, persistence_retries: int = 0,
                 persistence_backoff_sec: float = 0.0, passcode_attempts: int = 50):
        self.store = store
        self.logger = logger or logging.getLogger(__name__)
        self.max_rounds = max_rounds
        self.strict_persistence = strict_persistence
        self.persistence_retries = max(0, int(persistence_retries))
        self.persistence_backoff_sec = max(0.0, float(persistence_backoff_sec))
        self.passcode_attempts = max(1, int(passcode_attempts))

    @classmethod
    def from_config(cls, store, config, logger=None):
        return cls(
            store,
            logger=logger,
            max_rounds=config.get('MAX_ROUNDS'),
            strict_persistence=config.get('STRICT_PERSISTENCE', True),
            persistence_retries=config.get('PERSISTENCE_RETRIES', 0),
            persistence_backoff_sec=config.get('PERSISTENCE_BACKOFF_SEC', 0.0),
            passcode_attempts=config.get('PASSCODE_ATTEMPTS', 50),
        )

    # ---- lifecycle ----

    def create(self, total_rounds, player_names) -> Tuple[str, machine.TournamentState]:
        new_state = machine.create(total_rounds, player_names, max_rounds=self.max_rounds)
        passcode = self._allocate_passcode()
        self._persist(passcode, new_state)
        self.logger.info(
            f"[create] passcode={passcode} rounds={new_state.total_rounds} players={len(new_state.player_names)}"
        )
        return passcode, new_state

    def join(self, passcode) -> machine.TournamentState:
        return self.load(passcode)

    def load(self, passcode) -> machine.TournamentState:
        code = normalize_passcode(passcode)
        document = self.store.get(code)
        if document is None:
            raise NotFound(f'Tournament {code} not found. Please check the passcode and try again.')
        return machine.from_document(document)

    def terminate(self, passcode) -> None:
        code = normalize_passcode(passcode)
        self.store.delete(code)
        self.logger.info(f"[terminate] passcode={code}")

    # ---- mutations ----

    def submit_score(self, passcode, player, place, eliminations, self_eliminated=False):
        def op(current):
            return machine.submit_score(current, player, place, eliminations, self_eliminated)

        code, new_state = self._update(passcode, op)
        round_score = new_state.scores[player][new_state.current_round]
        self.logger.info(
            f"[score] passcode={code} round={new_state.current_round} player={player!r} "
            f"place={round_score.place} elims={round_score.eliminations} self_elim={round_score.self_eliminated} total={round_score.total}"
        )
        return new_state, round_score

    def advance_round(self, passcode) -> machine.TournamentState:
        code, new_state = self._update(passcode, machine.advance_round)
        if new_state.complete:
            self.logger.info(f"[complete] passcode={code} rounds={new_state.total_rounds}")
        else:
            self.logger.info(f"[advance] passcode={code} round={new_state.current_round - 1} -> {new_state.current_round}")
        return new_state

    def leaderboard(self, passcode):
        return machine.leaderboard(self.load(passcode))

    def _update(self, passcode, operation: Callable[[machine.TournamentState], machine.TournamentState]):
        code = normalize_passcode(passcode)
        current = self.load(code)
        new_state = operation(current)
        self._persist(code, new_state)
        return code, new_state

    # ---- persistence ----

    def _allocate_passcode(self) -> str:
        for _ in range(self.passcode_attempts):
            code = generate_passcode()
            if self.store.get(code) is None:
                return code
        raise PersistenceFailure('Could not allocate a free passcode')

    def _persist(self, passcode, new_state) -> None:
        document = machine.to_document(new_state)
        delay = self.persistence_backoff_sec
        attempt = 0
        while True:
            try:
                self.store.set(passcode, document)
                return
            except PersistenceFailure as exc:
                if attempt >= self.persistence_retries:
                    if self.strict_persistence:
                        self.logger.error(f"[persist-failed] passcode={passcode} attempts={attempt + 1} error={exc}")
                        raise
                    # Lenient mode: the caller still gets the new state even though the store did not
                    self.logger.error(
                        f"[persist-failed] passcode={passcode} attempts={attempt + 1} error={exc} (continuing with unsaved state)"
                    )
                    return
                attempt += 1
                self.logger.warning(f"[persist-retry] passcode={passcode} attempt={attempt} delay={delay}s")
                if delay:
                    time.sleep(delay)
                delay *= 2
