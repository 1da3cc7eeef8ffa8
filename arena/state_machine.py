from enum import Enum
from typing import Optional, List
from dataclasses import dataclass


class TournamentStatus(str, Enum):
    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    DONE = "done"


class TransitionError(Exception):
    def __init__(self, from_state: str, to_state: str, reason: str = None):
        self.from_state = from_state
        self.to_state = to_state
        self.reason = reason or f"Cannot change tournament status from {from_state} to {to_state}"
        super().__init__(self.reason)


@dataclass
class Transition:
    from_state: TournamentStatus
    to_state: TournamentStatus
    action: str


class TournamentStateMachine:
    TRANSITIONS = [
        Transition(TournamentStatus.UPCOMING, TournamentStatus.ONGOING, "start"),
        Transition(TournamentStatus.ONGOING, TournamentStatus.DONE, "finish"),
        Transition(TournamentStatus.ONGOING, TournamentStatus.UPCOMING, "reopen"),
    ]

    # Roster changes the registry checks before touching competitors
    ALLOWED_ACTIONS = {
        TournamentStatus.UPCOMING: ["register_competitor", "withdraw_competitor"],
        TournamentStatus.ONGOING: ["withdraw_competitor"],
        TournamentStatus.DONE: [],
    }

    def __init__(self, initial_state: TournamentStatus = TournamentStatus.UPCOMING):
        self._state = initial_state

    @property
    def state(self) -> TournamentStatus:
        return self._state

    @property
    def allowed_actions(self) -> List[str]:
        return self.ALLOWED_ACTIONS.get(self._state, [])

    def can_perform(self, action: str) -> bool:
        return action in self.allowed_actions

    def transition(self, action: str) -> TournamentStatus:
        t = self._find(action)
        if t is None:
            raise TransitionError(
                self._state.value,
                "unknown",
                f"No valid transition for action '{action}' from status '{self._state.value}'"
            )

        self._state = t.to_state
        return self._state

    def move_to(self, target: TournamentStatus) -> TournamentStatus:
        """Move directly to a target status, if some transition allows it."""
        if target == self._state:
            return self._state

        for t in self.TRANSITIONS:
            if t.from_state == self._state and t.to_state == target:
                return self.transition(t.action)

        raise TransitionError(self._state.value, target.value)

    def _find(self, action: str) -> Optional[Transition]:
        for t in self.TRANSITIONS:
            if t.from_state == self._state and t.action == action:
                return t
        return None

    @classmethod
    def from_state_string(cls, state_str: str) -> "TournamentStateMachine":
        try:
            state = TournamentStatus(state_str)
        except ValueError:
            state = TournamentStatus.UPCOMING
        return cls(initial_state=state)
