from __future__ import annotations

import copy
from typing import List

import pytest

from state_visualizer.diagram import Diagram
from state_visualizer.workspace import Workspace

ENDS_WITH_AB = {
    "states": [
        {"id": 0, "label": "q0", "x": 100, "y": 100, "isStart": True},
        {"id": 1, "label": "q1", "x": 200, "y": 100},
        {"id": 2, "label": "q2", "x": 300, "y": 100, "isAccept": True},
    ],
    "transitions": [
        {"from": 0, "to": 1, "symbols": ["a"]},
        {"from": 0, "to": 0, "symbols": ["b"]},
        {"from": 1, "to": 1, "symbols": ["a"]},
        {"from": 1, "to": 2, "symbols": ["b"]},
        {"from": 2, "to": 1, "symbols": ["a"]},
        {"from": 2, "to": 0, "symbols": ["b"]},
    ],
}

EPSILON_FORK = {
    "states": [
        {"id": 0, "isStart": True},
        {"id": 1},
        {"id": 2},
        {"id": 3, "isAccept": True},
    ],
    "transitions": [
        {"from": 0, "to": 1, "symbols": ["ε"]},
        {"from": 0, "to": 2, "symbols": [""]},
        {"from": 1, "to": 3, "symbols": ["a"]},
        {"from": 2, "to": 3, "symbols": ["b"]},
    ],
}


def _observe(diagram: Diagram):
    """Everything an observer can see, in a comparable form."""
    states = sorted(
        (s.id, s.label, s.x, s.y, s.is_start, s.is_accept) for s in diagram.states
    )
    transitions = sorted(
        (t.from_id, t.to_id, tuple(t.symbols), t.curved) for t in diagram.transitions
    )
    return states, transitions, diagram.start_id, diagram.accept_ids


@pytest.fixture
def observe():
    return _observe


@pytest.fixture
def ends_with_ab():
    return copy.deepcopy(ENDS_WITH_AB)


@pytest.fixture
def epsilon_fork():
    return copy.deepcopy(EPSILON_FORK)


@pytest.fixture
def messages() -> List[str]:
    return []


@pytest.fixture
def workspace(messages: List[str]) -> Workspace:
    return Workspace(status=messages.append)


@pytest.fixture
def dfa_workspace(workspace: Workspace) -> Workspace:
    workspace.import_structure(ENDS_WITH_AB)
    return workspace


@pytest.fixture
def nfa_workspace(workspace: Workspace) -> Workspace:
    workspace.import_structure(EPSILON_FORK)
    return workspace
