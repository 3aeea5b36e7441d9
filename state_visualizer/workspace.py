from __future__ import annotations

import logging
import random
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .analysis import BatchResult, ProgressSink, analyze_diagram, run_batch, summarize_results
from .automata import DFA, Run, Step, evaluate, start_run
from .codec import EXPORT_STYLE, build_diagram, export_structure, loads, structure_title
from .diagram import Diagram, State, Transition, parse_symbols
from .errors import Busy, StateVisualizerError, UnknownTemplate
from .history import HISTORY_LIMIT, History
from .templates import get_example, get_template, random_dfa_structure

logger = logging.getLogger(__name__)

StatusSink = Callable[[str], None]

class Workspace:
    """One editable diagram with its undo history and an optional status sink.

    This is the surface the UI layer talks to. Every edit goes through the
    diagram's mutators (which snapshot into ``history`` first), every outcome is
    logged and, when a sink is attached, reported as a human readable message.
    """

    def __init__(self, status: Optional[StatusSink] = None, history_limit: int = HISTORY_LIMIT) -> None:
        self.diagram = Diagram()
        self.history = History(self.diagram, limit=history_limit)
        self._status = status
        self._run: Optional[Run] = None

    def notify(self, message: str) -> None:
        logger.info("%s", message)
        if self._status is not None:
            self._status(message)

    @property
    def busy(self) -> bool:
        return self._run is not None

    def _ensure_idle(self) -> None:
        if self._run is not None:
            raise Busy()

    def _label(self, state_id: int) -> str:
        return self.diagram.get_state(state_id).label

    # ---------------------------------------------------------------
    def add_state(self, x: float, y: float, label: Optional[str] = None) -> State:
        self._ensure_idle()
        state = self.diagram.add_state(x, y, label)
        self.notify(f"Added state {state.label}")
        return state

    def delete_state(self, state_id: int) -> int:
        self._ensure_idle()
        state = self.diagram.get_state(state_id)
        label, was_start = state.label, state.is_start
        removed = self.diagram.delete_state(state_id)
        if was_start:
            self.notify(f"Deleted start state {label} and {removed} transitions. Set a new start state!")
        else:
            self.notify(f"Deleted state {label} and {removed} transitions")
        return removed

    def delete_elements(
        self, state_ids: Iterable[int] = (), transitions: Iterable[Transition] = ()
    ) -> Tuple[int, int]:
        self._ensure_idle()
        states_deleted, transitions_deleted = self.diagram.delete_elements(state_ids, transitions)
        if not states_deleted and not transitions_deleted:
            self.notify("No elements selected to delete")
            return 0, 0
        self.notify(f"Deleted {states_deleted} states and {transitions_deleted} transitions")
        if not self.diagram.is_empty() and self.diagram.start_id is None:
            self.notify("Warning: No start state defined. Set a state as start.")
        return states_deleted, transitions_deleted

    def add_transition(
        self,
        from_id: int,
        to_id: int,
        symbols: Union[None, str, Sequence[str]] = None,
        curved: Optional[bool] = None,
    ) -> Transition:
        self._ensure_idle()
        transition = self.diagram.add_transition(from_id, to_id, symbols, curved)
        self.notify(
            f"Added transition {self._label(from_id)} → {self._label(to_id)} "
            f"on \"{', '.join(transition.symbols)}\""
        )
        return transition

    def delete_transition(self, transition: Transition) -> None:
        self._ensure_idle()
        self.diagram.delete_transition(transition)
        self.notify(f"Deleted transition {self._label(transition.from_id)} → {self._label(transition.to_id)}")

    def edit_transition(self, transition: Transition, symbols: Union[str, Sequence[str]]) -> None:
        """Replace a transition's symbols; a string is read as a comma separated list."""
        self._ensure_idle()
        if isinstance(symbols, str):
            symbols = parse_symbols(symbols)
        self.diagram.set_transition_symbols(transition, symbols)
        self.notify(
            f"Updated transition {self._label(transition.from_id)} → {self._label(transition.to_id)} "
            f"to \"{', '.join(transition.symbols)}\""
        )

    def rename_state(self, state_id: int, label: Optional[str]) -> bool:
        self._ensure_idle()
        old_label = self._label(state_id)
        changed = self.diagram.rename_state(state_id, label)
        if changed:
            self.notify(f"Renamed state from \"{old_label}\" to \"{self._label(state_id)}\"")
        return changed

    def move_states(self, positions: Mapping[int, Tuple[float, float]]) -> None:
        self._ensure_idle()
        self.diagram.move_states(positions)
        if len(positions) > 1:
            self.notify(f"Moved {len(positions)} selected states")
        elif positions:
            self.notify("State repositioned")

    def toggle_accept(self, state_id: int) -> bool:
        self._ensure_idle()
        accepting = self.diagram.toggle_accept(state_id)
        if accepting:
            self.notify(f"{self._label(state_id)} is now an accepting state")
        else:
            self.notify(f"{self._label(state_id)} is no longer an accepting state")
        return accepting

    def set_accepting(self, state_ids: Sequence[int], accepting: bool = True) -> int:
        self._ensure_idle()
        count = self.diagram.set_accepting(state_ids, accepting)
        if accepting:
            self.notify(f"Set {count} states as accepting")
        else:
            self.notify(f"Removed {count} states from accepting")
        return count

    def set_start(self, state_id: int) -> None:
        self._ensure_idle()
        self.diagram.set_start(state_id)
        self.notify(f"{self._label(state_id)} is now the start state")

    def clear_start(self) -> None:
        self._ensure_idle()
        self.diagram.clear_start()
        self.notify("Start state removed")

    def clear(self) -> None:
        self._ensure_idle()
        self.diagram.clear()
        self.notify("Diagram cleared")

    def new_diagram(self) -> None:
        """Start over with an empty diagram and no undo history."""
        self._ensure_idle()
        self.diagram.clear(record=False)
        self.history.reset()
        self.notify("Started a new diagram")

    # ---------------------------------------------------------------
    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    def undo(self) -> bool:
        self._ensure_idle()
        entry = self.history.undo()
        if entry is None:
            self.notify("Nothing to undo")
            return False
        self.notify(f"Undid: {entry.action}")
        return True

    def redo(self) -> bool:
        self._ensure_idle()
        entry = self.history.redo()
        if entry is None:
            self.notify("Nothing to redo")
            return False
        self.notify(f"Redid: {entry.action}")
        return True

    # ---------------------------------------------------------------
    def alphabet(self) -> List[str]:
        return self.diagram.alphabet()

    def describe(self) -> Dict[str, object]:
        return analyze_diagram(self.diagram)

    def evaluate(self, text: str, automaton_type: str = DFA) -> bool:
        return evaluate(self.diagram, text, automaton_type)

    def run_batch(
        self,
        strings: Sequence[str],
        automaton_type: str = DFA,
        progress: Optional[ProgressSink] = None,
    ) -> List[BatchResult]:
        results = run_batch(self.diagram, strings, automaton_type, progress)
        summary = summarize_results(results)
        self.notify(f"Batch test completed: {summary['passed']} passed, {summary['failed']} failed")
        return results

    def start_run(self, text: str, automaton_type: str = DFA) -> Optional[Run]:
        """Begin a step-by-step run; returns None while another run is in flight."""
        if self._run is not None:
            logger.debug("Ignoring run request for %r: another run is in flight", text)
            return None
        run = start_run(self.diagram, text, automaton_type)
        self._run = run
        self.notify(f"Processing string \"{text}\" with {run.automaton_type.upper()}...")
        if run.finished:
            self.finish_run()
        return run

    def step_run(self) -> Optional[Step]:
        if self._run is None:
            return None
        run = self._run
        try:
            step = run.step()
        except StateVisualizerError:
            self._run = None
            raise
        if step.rejected:
            self.notify(f"No transition on symbol \"{step.symbol}\". String rejected!")
        if run.finished:
            self.finish_run()
        return step

    def finish_run(self) -> Optional[bool]:
        """Release the busy flag; returns the verdict if the run got to the end."""
        run, self._run = self._run, None
        if run is None or not run.finished:
            return None
        accepted = bool(run.accepted)
        if accepted:
            self.notify(f"String \"{run.text}\" accepted!")
        else:
            self.notify(f"String \"{run.text}\" rejected!")
        return accepted

    # ---------------------------------------------------------------
    def export_structure(self, style: str = EXPORT_STYLE, title: Optional[str] = None) -> Dict[str, Any]:
        return export_structure(self.diagram, style=style, title=title)

    def import_structure(self, description: Any) -> Diagram:
        self._ensure_idle()
        built = build_diagram(description)
        self.diagram.adopt(built, action="load diagram")
        title = structure_title(description)
        if title:
            self.notify(f"Loaded: {title}")
        else:
            self.notify(
                f"Programmatically created diagram with {len(self.diagram)} states "
                f"and {len(self.diagram.transitions)} transitions"
            )
        return self.diagram

    def import_json(self, text: str) -> Diagram:
        return self.import_structure(loads(text))

    def load_template(self, name: str) -> Diagram:
        try:
            structure = get_template(name)
        except UnknownTemplate as exc:
            self.notify(str(exc))
            raise
        return self.import_structure(structure)

    def load_example(self, kind: str = DFA) -> Diagram:
        return self.import_structure(get_example(kind))

    def load_random_dfa(self, rng: Optional[random.Random] = None) -> Diagram:
        return self.import_structure(random_dfa_structure(rng))
