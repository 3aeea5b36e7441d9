from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple

from .automata import DFA, evaluate, normalize_type, suggest_type
from .diagram import Diagram
from .errors import EmptyDiagram, NoStartState, StateVisualizerError

logger = logging.getLogger(__name__)

ProgressSink = Callable[[int, int, str], None]


@dataclass(frozen=True)
class BatchResult:
    string: str
    accepted: bool
    error: Optional[str] = None

    @property
    def passed(self) -> bool:
        return self.accepted and self.error is None

    @property
    def verdict(self) -> str:
        if self.error is not None:
            return "ERROR"
        return "ACCEPTED" if self.accepted else "REJECTED"


def parse_batch_input(text: str) -> List[str]:
    return [line.strip() for line in text.splitlines() if line.strip()]


def run_batch(
    diagram: Diagram,
    strings: Sequence[str],
    automaton_type: str = DFA,
    progress: Optional[ProgressSink] = None,
) -> List[BatchResult]:
    if diagram.is_empty():
        raise EmptyDiagram()
    if diagram.start_id is None:
        raise NoStartState()
    automaton_type = normalize_type(automaton_type)

    results: List[BatchResult] = []
    total = len(strings)
    for index, raw in enumerate(strings, start=1):
        string = raw.strip()
        if progress is not None:
            progress(index, total, string)
        try:
            accepted = evaluate(diagram, string, automaton_type)
        except StateVisualizerError as exc:
            logger.debug("Batch string %r failed: %s", string, exc)
            results.append(BatchResult(string=string, accepted=False, error=str(exc)))
        else:
            results.append(BatchResult(string=string, accepted=accepted))
    return results


def summarize_results(results: Sequence[BatchResult]) -> Dict[str, int]:
    summary = {"total": len(results), "passed": 0, "failed": 0, "errors": 0}
    for result in results:
        if result.passed:
            summary["passed"] += 1
        else:
            summary["failed"] += 1
        if result.error is not None:
            summary["errors"] += 1
    return summary


def analyze_diagram(diagram: Diagram) -> Dict[str, object]:
    state_ids = [state.id for state in diagram.states]
    state_set = set(state_ids)
    transitions = diagram.transitions
    alphabet = diagram.alphabet()

    forward: Dict[int, Set[int]] = {state_id: set() for state_id in state_ids}
    reverse: Dict[int, Set[int]] = {state_id: set() for state_id in state_ids}
    for transition in transitions:
        forward[transition.from_id].add(transition.to_id)
        reverse[transition.to_id].add(transition.from_id)

    reachable: Set[int] = set()
    queue: deque[int] = deque()
    if diagram.start_id is not None:
        queue.append(diagram.start_id)
    while queue:
        state_id = queue.popleft()
        if state_id in reachable:
            continue
        reachable.add(state_id)
        for dest in forward[state_id]:
            if dest not in reachable:
                queue.append(dest)

    alive: Set[int] = set()
    queue.extend(diagram.accept_ids)
    while queue:
        state_id = queue.popleft()
        if state_id in alive:
            continue
        alive.add(state_id)
        for src in reverse[state_id]:
            if src not in alive:
                queue.append(src)

    missing: List[Tuple[int, str]] = []
    nondeterministic: Set[int] = set()
    for state_id in state_ids:
        outgoing = diagram.transitions_from(state_id)
        for symbol in alphabet:
            count = sum(1 for t in outgoing if t.matches(symbol))
            if count == 0:
                missing.append((state_id, symbol))
            elif count > 1:
                nondeterministic.add(state_id)
        if any(t.is_epsilon for t in outgoing):
            nondeterministic.add(state_id)

    report: Dict[str, object] = {
        "state_count": len(state_ids),
        "transition_count": len(transitions),
        "accept_count": len(diagram.accept_ids),
        "alphabet": alphabet,
        "start": diagram.start_id,
        "reachable_count": len(reachable),
        "unreachable": sorted(state_set - reachable),
        "dead_states": sorted(state_set - alive),
        "missing_symbols": missing,
        "nondeterministic_states": sorted(nondeterministic),
        "is_total": not missing,
        "has_epsilon": diagram.has_epsilon(),
        "suggested_type": suggest_type(diagram),
    }
    return report
