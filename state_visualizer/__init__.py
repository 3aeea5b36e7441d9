from .automata import DFARun, NFARun, epsilon_closure, evaluate
from .cli import run
from .diagram import Diagram, State, Transition
from .history import History, HistoryEntry
from .workspace import Workspace

__all__ = [
    "DFARun",
    "Diagram",
    "History",
    "HistoryEntry",
    "NFARun",
    "State",
    "Transition",
    "Workspace",
    "epsilon_closure",
    "evaluate",
    "run",
]
