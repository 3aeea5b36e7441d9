from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Set, Tuple, Union

from .errors import DanglingReference, InvalidEdit, InvariantViolation

EPSILON_SYMBOLS: Tuple[str, ...] = ("", "ε")
DEFAULT_SYMBOL = "a"

SnapshotHook = Callable[[str], None]
SymbolsArg = Union[None, str, Iterable[str]]


def is_epsilon(symbol: str) -> bool:
    return symbol in EPSILON_SYMBOLS


def default_label(state_id: int) -> str:
    return f"q{state_id}"


def coerce_symbols(symbols: SymbolsArg) -> List[str]:
    if symbols is None:
        return [DEFAULT_SYMBOL]
    if isinstance(symbols, str):
        return [symbols]
    try:
        result = [str(symbol) for symbol in symbols]
    except TypeError:
        raise InvalidEdit(
            f"Transition symbols must be a string or a list of strings, not {symbols!r}"
        ) from None
    return result or [DEFAULT_SYMBOL]


def parse_symbols(text: str) -> List[str]:
    """Split a comma separated label such as ``"a, b"`` into transition symbols."""
    symbols = [part.strip() for part in text.split(",")]
    symbols = [symbol for symbol in symbols if symbol]
    return symbols or [DEFAULT_SYMBOL]


@dataclass
class State:
    id: int
    label: str
    x: float
    y: float
    is_start: bool = False
    is_accept: bool = False


@dataclass(eq=False)
class Transition:
    from_id: int
    to_id: int
    symbols: List[str] = field(default_factory=lambda: [DEFAULT_SYMBOL])
    curved: bool = False

    @property
    def is_self_loop(self) -> bool:
        return self.from_id == self.to_id

    @property
    def is_epsilon(self) -> bool:
        return any(is_epsilon(symbol) for symbol in self.symbols)

    def matches(self, symbol: str) -> bool:
        return not is_epsilon(symbol) and symbol in self.symbols

    def joins(self, a: int, b: int) -> bool:
        return (self.from_id, self.to_id) in ((a, b), (b, a))


class Diagram:
    """States, transitions, start state and accept set of one state diagram.

    States live in an arena keyed by id and transitions refer to them by id, so
    deleting a state only has to drop the transitions that mention its id. Every
    mutator calls the snapshot hook (normally ``History.snapshot``) with an
    action label before it changes anything, unless ``record=False`` is passed.
    Precondition failures are raised before the hook runs.
    """

    __slots__ = (
        "_states",
        "_transitions",
        "_start_id",
        "_accept_ids",
        "_next_id",
        "_snapshot_hook",
    )

    def __init__(self) -> None:
        self._states: Dict[int, State] = {}
        self._transitions: List[Transition] = []
        self._start_id: Optional[int] = None
        self._accept_ids: Set[int] = set()
        self._next_id = 0
        self._snapshot_hook: Optional[SnapshotHook] = None

    def set_snapshot_hook(self, hook: Optional[SnapshotHook]) -> None:
        self._snapshot_hook = hook

    def _record(self, action: str, record: bool) -> None:
        if record and self._snapshot_hook is not None:
            self._snapshot_hook(action)

    # ---------------------------------------------------------------
    @property
    def states(self) -> List[State]:
        return list(self._states.values())

    @property
    def transitions(self) -> List[Transition]:
        return list(self._transitions)

    @property
    def start_id(self) -> Optional[int]:
        return self._start_id

    @property
    def start_state(self) -> Optional[State]:
        if self._start_id is None:
            return None
        return self._states[self._start_id]

    @property
    def accept_ids(self) -> FrozenSet[int]:
        return frozenset(self._accept_ids)

    @property
    def accept_states(self) -> List[State]:
        return [state for state in self._states.values() if state.id in self._accept_ids]

    @property
    def next_id(self) -> int:
        return self._next_id

    def __len__(self) -> int:
        return len(self._states)

    def is_empty(self) -> bool:
        return not self._states

    def has_state(self, state_id: int) -> bool:
        return state_id in self._states

    def find_state(self, state_id: int) -> Optional[State]:
        return self._states.get(state_id)

    def get_state(self, state_id: int) -> State:
        try:
            return self._states[state_id]
        except KeyError as exc:
            raise DanglingReference(f"State with id {state_id} not found", state_id) from exc

    def is_accepting(self, state_id: int) -> bool:
        return state_id in self._accept_ids

    def contains_transition(self, transition: Transition) -> bool:
        return any(existing is transition for existing in self._transitions)

    def transitions_from(self, state_id: int) -> List[Transition]:
        return [t for t in self._transitions if t.from_id == state_id]

    def has_transition_between(self, a: int, b: int) -> bool:
        return any(t.joins(a, b) for t in self._transitions)

    def alphabet(self) -> List[str]:
        symbols = {symbol for t in self._transitions for symbol in t.symbols if not is_epsilon(symbol)}
        return sorted(symbols)

    def knows_symbol(self, symbol: str) -> bool:
        return any(t.matches(symbol) for t in self._transitions)

    def has_epsilon(self) -> bool:
        return any(t.is_epsilon for t in self._transitions)

    def looks_nondeterministic(self) -> bool:
        if self.has_epsilon():
            return True
        seen: Set[Tuple[int, str]] = set()
        for transition in self._transitions:
            for symbol in transition.symbols:
                key = (transition.from_id, symbol)
                if key in seen:
                    return True
                seen.add(key)
        return False

    def validate(self) -> bool:
        for transition in self._transitions:
            for endpoint in (transition.from_id, transition.to_id):
                if endpoint not in self._states:
                    raise InvariantViolation(f"Transition refers to dead state {endpoint}.")
        flagged_accept = {state.id for state in self._states.values() if state.is_accept}
        if flagged_accept != self._accept_ids:
            raise InvariantViolation("Accept set and accept flags have diverged.")
        flagged_start = [state.id for state in self._states.values() if state.is_start]
        expected_start = [] if self._start_id is None else [self._start_id]
        if flagged_start != expected_start:
            raise InvariantViolation("Start state and start flags have diverged.")
        if self._states and self._next_id <= max(self._states):
            raise InvariantViolation("Id counter is behind the live states.")
        return True

    def _require_transition(self, transition: Transition) -> Transition:
        if not self.contains_transition(transition):
            raise DanglingReference("Transition is not part of this diagram.")
        return transition

    # ---------------------------------------------------------------
    def add_state(self, x: float, y: float, label: Optional[str] = None, *, record: bool = True) -> State:
        self._record("add state", record)
        state_id = self._next_id
        self._next_id += 1
        state = State(
            id=state_id,
            label=label or default_label(state_id),
            x=x,
            y=y,
            is_start=not self._states,
        )
        self._states[state_id] = state
        if state.is_start:
            self._start_id = state_id
        return state

    def insert_state(self, state: State, *, record: bool = True) -> State:
        """Add a state that already carries its id (imports and history restores)."""
        if state.id in self._states:
            raise InvariantViolation(f"Duplicate state id {state.id}.")
        self._record("add state", record)
        self._states[state.id] = state
        if state.is_start:
            if self._start_id is not None:
                self._states[self._start_id].is_start = False
            self._start_id = state.id
        if state.is_accept:
            self._accept_ids.add(state.id)
        self._next_id = max(self._next_id, state.id + 1)
        return state

    def delete_state(self, state_id: int, *, record: bool = True) -> int:
        self.get_state(state_id)
        if len(self._states) == 1:
            raise InvariantViolation("Cannot delete the last remaining state")
        self._record("delete state", record)
        return self._remove_state(state_id)

    def _remove_state(self, state_id: int) -> int:
        del self._states[state_id]
        kept = [t for t in self._transitions if t.from_id != state_id and t.to_id != state_id]
        removed = len(self._transitions) - len(kept)
        self._transitions = kept
        if self._start_id == state_id:
            self._start_id = None
        self._accept_ids.discard(state_id)
        return removed

    def delete_elements(
        self,
        state_ids: Iterable[int] = (),
        transitions: Iterable[Transition] = (),
        *,
        record: bool = True,
    ) -> Tuple[int, int]:
        ids = list(dict.fromkeys(state_ids))
        for state_id in ids:
            self.get_state(state_id)
        selected: List[Transition] = []
        for transition in transitions:
            self._require_transition(transition)
            if not any(t is transition for t in selected):
                selected.append(transition)
        if not ids and not selected:
            return 0, 0
        self._record("delete elements", record)
        self._transitions = [t for t in self._transitions if not any(t is s for s in selected)]
        for state_id in ids:
            self._remove_state(state_id)
        return len(ids), len(selected)

    def add_transition(
        self,
        from_id: int,
        to_id: int,
        symbols: SymbolsArg = None,
        curved: Optional[bool] = None,
        *,
        record: bool = True,
    ) -> Transition:
        self.get_state(from_id)
        self.get_state(to_id)
        if curved is None:
            curved = from_id == to_id or self.has_transition_between(from_id, to_id)
        coerced = coerce_symbols(symbols)
        self._record("add transition", record)
        transition = Transition(from_id, to_id, coerced, bool(curved))
        self._transitions.append(transition)
        return transition

    def delete_transition(self, transition: Transition, *, record: bool = True) -> None:
        self._require_transition(transition)
        self._record("delete transition", record)
        self._transitions = [t for t in self._transitions if t is not transition]

    def set_transition_symbols(self, transition: Transition, symbols: SymbolsArg, *, record: bool = True) -> None:
        self._require_transition(transition)
        coerced = coerce_symbols(symbols)
        self._record("edit transition", record)
        transition.symbols = coerced

    def rename_state(self, state_id: int, label: Optional[str], *, record: bool = True) -> bool:
        state = self.get_state(state_id)
        new_label = (label or "").strip() or default_label(state_id)
        if new_label == state.label:
            return False
        self._record("edit state label", record)
        state.label = new_label
        return True

    def move_states(self, positions: Mapping[int, Tuple[float, float]], *, record: bool = True) -> None:
        moves: List[Tuple[State, float, float]] = []
        for state_id, position in positions.items():
            state = self.get_state(state_id)
            try:
                x, y = position
            except (TypeError, ValueError):
                raise InvalidEdit(
                    f"Position for state {state_id} must be an (x, y) pair, not {position!r}"
                ) from None
            moves.append((state, x, y))
        if not moves:
            return
        self._record("move states", record)
        for state, x, y in moves:
            state.x = x
            state.y = y

    def toggle_accept(self, state_id: int, *, record: bool = True) -> bool:
        state = self.get_state(state_id)
        self._record("toggle accepting state", record)
        self._set_accept(state, not state.is_accept)
        return state.is_accept

    def set_accepting(self, state_ids: Sequence[int], accepting: bool, *, record: bool = True) -> int:
        states = [self.get_state(state_id) for state_id in state_ids]
        if not states:
            return 0
        self._record("set all accepting" if accepting else "remove all accepting", record)
        for state in states:
            self._set_accept(state, accepting)
        return len(states)

    def _set_accept(self, state: State, accepting: bool) -> None:
        state.is_accept = accepting
        if accepting:
            self._accept_ids.add(state.id)
        else:
            self._accept_ids.discard(state.id)

    def set_start(self, state_id: int, *, record: bool = True) -> None:
        state = self.get_state(state_id)
        self._record("set start state", record)
        for other in self._states.values():
            other.is_start = False
        state.is_start = True
        self._start_id = state_id

    def clear_start(self, *, record: bool = True) -> None:
        if self._start_id is None:
            return
        self._record("remove start state", record)
        self._states[self._start_id].is_start = False
        self._start_id = None

    def clear(self, *, record: bool = True) -> None:
        self._record("clear diagram", record)
        self._states = {}
        self._transitions = []
        self._start_id = None
        self._accept_ids = set()
        self._next_id = 0

    # ---------------------------------------------------------------
    def copy(self) -> "Diagram":
        """Return a detached duplicate: new State and Transition objects, no hook."""
        duplicate = Diagram()
        for state in self._states.values():
            duplicate.insert_state(dataclasses.replace(state), record=False)
        for transition in self._transitions:
            duplicate._transitions.append(
                Transition(transition.from_id, transition.to_id, list(transition.symbols), transition.curved)
            )
        duplicate._next_id = self._next_id
        return duplicate

    def reserve_ids(self, next_id: int) -> None:
        self._next_id = max(self._next_id, next_id)

    def adopt(self, other: "Diagram", *, action: str = "load diagram", record: bool = True) -> None:
        """Replace this diagram's contents with a detached copy of ``other``."""
        other.validate()
        fresh = other.copy()
        self._record(action, record)
        self._states = fresh._states
        self._transitions = fresh._transitions
        self._start_id = fresh._start_id
        self._accept_ids = fresh._accept_ids
        self._next_id = fresh._next_id
