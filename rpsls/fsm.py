from __future__ import annotations

from statemachine import State, StateMachine
from statemachine.exceptions import TransitionNotAllowed

from rpsls.api.models import GameState, GameStatus
from rpsls.errors import GuardViolation


class GameFSM(StateMachine):
    """FSM wrapper around GameState.

    Only guards which transitions exist; the action layer validates callers,
    escrow, commitments and timeouts before firing an event.
    """

    awaiting_opponent = State(
        GameStatus.awaiting_opponent.value,
        value=GameStatus.awaiting_opponent.value,
        initial=True,
    )
    awaiting_reveal = State(GameStatus.awaiting_reveal.value, value=GameStatus.awaiting_reveal.value)
    resolved = State(GameStatus.resolved.value, value=GameStatus.resolved.value, final=True)
    timed_out_creator_wins = State(
        GameStatus.timed_out_creator_wins.value,
        value=GameStatus.timed_out_creator_wins.value,
        final=True,
    )
    timed_out_opponent_wins = State(
        GameStatus.timed_out_opponent_wins.value,
        value=GameStatus.timed_out_opponent_wins.value,
        final=True,
    )

    play = awaiting_opponent.to(awaiting_reveal)
    reveal = awaiting_reveal.to(resolved)
    claim_creator_timeout = awaiting_opponent.to(timed_out_creator_wins)
    claim_opponent_timeout = awaiting_reveal.to(timed_out_opponent_wins)

    def __init__(self, game: GameState):
        self.game = game
        super().__init__(start_value=game.status.value)

    def fire(self, event: str) -> None:
        try:
            self.send(event)
        except TransitionNotAllowed as e:
            raise GuardViolation(f"'{event}' not allowed in status '{self.game.status.value}'") from e
        self.sync_status_to_model()

    def sync_status_to_model(self) -> None:
        self.game.status = GameStatus(str(self.current_state.value))
