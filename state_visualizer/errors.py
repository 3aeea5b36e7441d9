from __future__ import annotations

from typing import Optional, Sequence


class StateVisualizerError(Exception):
    """Base class for everything the diagram core raises."""


class InvariantViolation(StateVisualizerError):
    """An edit would leave the diagram in an invalid shape."""


class InvalidEdit(StateVisualizerError):
    """Edit argument that cannot be applied, such as a symbols value or a position of the wrong shape."""


class NoStartState(StateVisualizerError):
    def __init__(self, message: str = "No start state defined. Please set a start state.") -> None:
        super().__init__(message)


class EmptyDiagram(StateVisualizerError):
    def __init__(self, message: str = "No diagram loaded. Please create a diagram first.") -> None:
        super().__init__(message)


class UnknownSymbol(StateVisualizerError):
    """Input symbol that no transition in the diagram mentions."""

    def __init__(self, symbol: str, alphabet: Sequence[str]) -> None:
        self.symbol = symbol
        self.alphabet = tuple(alphabet)
        available = ", ".join(self.alphabet) if self.alphabet else "<none>"
        super().__init__(f"Symbol '{symbol}' not in alphabet. Available symbols: {available}")


class MalformedStructure(StateVisualizerError):
    """Structural description that cannot be turned into a diagram."""


class UnknownTemplate(StateVisualizerError):
    """Template or example name that is not built in."""


class DanglingReference(MalformedStructure):
    """Reference to a state id (or transition) that is not part of the diagram."""

    def __init__(self, message: str, state_id: Optional[int] = None) -> None:
        self.state_id = state_id
        super().__init__(message)


class Busy(StateVisualizerError):
    def __init__(self, message: str = "A string is being simulated; finish it first.") -> None:
        super().__init__(message)
