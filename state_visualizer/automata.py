from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Set, Tuple, Type

from .diagram import Diagram, Transition
from .errors import InvariantViolation, NoStartState, UnknownSymbol

DFA = "dfa"
NFA = "nfa"
AUTOMATON_TYPES: Tuple[str, ...] = (DFA, NFA)


@dataclass(frozen=True)
class Step:
    """One consumed input symbol; ``targets`` is empty when the run rejected on it."""

    index: int
    symbol: str
    sources: FrozenSet[int]
    targets: FrozenSet[int]
    transitions: Tuple[Transition, ...]

    @property
    def rejected(self) -> bool:
        return not self.targets


def epsilon_closure(diagram: Diagram, state_ids: Iterable[int]) -> FrozenSet[int]:
    edges: Dict[int, List[int]] = {}
    for transition in diagram.transitions:
        if transition.is_epsilon:
            edges.setdefault(transition.from_id, []).append(transition.to_id)

    closure: Set[int] = set(state_ids)
    stack = list(closure)
    while stack:
        here = stack.pop()
        for nxt in edges.get(here, ()):
            if nxt not in closure:
                closure.add(nxt)
                stack.append(nxt)
    return frozenset(closure)


class Run(ABC):
    """Symbol-by-symbol evaluation of one input string.

    Callers that animate a run call :meth:`step` on their own schedule; batch
    evaluation simply calls :meth:`run_to_end`. The diagram must not be edited
    while a run is in flight.
    """

    automaton_type = ""

    def __init__(self, diagram: Diagram, text: str) -> None:
        if diagram.start_id is None:
            raise NoStartState()
        self._diagram = diagram
        self._text = text
        self._position = 0
        self._rejected = False

    @property
    def text(self) -> str:
        return self._text

    @property
    def position(self) -> int:
        return self._position

    @property
    @abstractmethod
    def current(self) -> FrozenSet[int]:
        """Ids of the states the run currently occupies."""

    @property
    def finished(self) -> bool:
        return self._rejected or self._position >= len(self._text)

    @property
    def accepted(self) -> Optional[bool]:
        if not self.finished:
            return None
        if self._rejected:
            return False
        return any(self._diagram.is_accepting(state_id) for state_id in self.current)

    def step(self) -> Step:
        if self.finished:
            raise InvariantViolation("Run has already consumed its input.")
        index = self._position
        symbol = self._text[index]
        sources = self.current
        taken = self._advance(symbol)
        if not taken:
            if not self._diagram.knows_symbol(symbol):
                raise UnknownSymbol(symbol, self._diagram.alphabet())
            self._rejected = True
            return Step(index, symbol, sources, frozenset(), ())
        self._position += 1
        return Step(index, symbol, sources, self.current, tuple(taken))

    @abstractmethod
    def _advance(self, symbol: str) -> List[Transition]:
        """Consume ``symbol`` and return the transitions taken; empty means stuck."""

    def __iter__(self) -> Iterator[Step]:
        while not self.finished:
            yield self.step()

    def run_to_end(self) -> bool:
        for _ in self:
            pass
        return bool(self.accepted)


class DFARun(Run):
    automaton_type = DFA

    def __init__(self, diagram: Diagram, text: str) -> None:
        super().__init__(diagram, text)
        self._state_id: int = diagram.start_id  # type: ignore[assignment]

    @property
    def current(self) -> FrozenSet[int]:
        return frozenset((self._state_id,))

    def _advance(self, symbol: str) -> List[Transition]:
        # first matching transition in insertion order wins
        for transition in self._diagram.transitions_from(self._state_id):
            if transition.matches(symbol):
                self._state_id = transition.to_id
                return [transition]
        return []


class NFARun(Run):
    automaton_type = NFA

    def __init__(self, diagram: Diagram, text: str) -> None:
        super().__init__(diagram, text)
        self._states = epsilon_closure(diagram, (diagram.start_id,))  # type: ignore[arg-type]

    @property
    def current(self) -> FrozenSet[int]:
        return self._states

    def _advance(self, symbol: str) -> List[Transition]:
        taken = [
            t for t in self._diagram.transitions
            if t.from_id in self._states and t.matches(symbol)
        ]
        if taken:
            self._states = epsilon_closure(self._diagram, {t.to_id for t in taken})
        return taken


_RUNS: Dict[str, Type[Run]] = {DFA: DFARun, NFA: NFARun}


def normalize_type(automaton_type: str) -> str:
    value = str(automaton_type).strip().lower()
    if value not in _RUNS:
        raise ValueError(f"Automaton type must be one of {', '.join(AUTOMATON_TYPES)}, got '{automaton_type}'.")
    return value


def suggest_type(diagram: Diagram) -> str:
    return NFA if diagram.looks_nondeterministic() else DFA


def start_run(diagram: Diagram, text: str, automaton_type: str = DFA) -> Run:
    return _RUNS[normalize_type(automaton_type)](diagram, text)


def evaluate_dfa(diagram: Diagram, text: str) -> bool:
    return DFARun(diagram, text).run_to_end()


def evaluate_nfa(diagram: Diagram, text: str) -> bool:
    return NFARun(diagram, text).run_to_end()


def evaluate(diagram: Diagram, text: str, automaton_type: str = DFA) -> bool:
    return start_run(diagram, text, automaton_type).run_to_end()
