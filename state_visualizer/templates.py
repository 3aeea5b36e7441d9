from __future__ import annotations

import copy
import random
from typing import Any, Dict, List, Optional, Sequence

from .errors import UnknownTemplate

Structure = Dict[str, Any]

_TEMPLATES: Dict[str, Structure] = {
    "endsWithAB": {
        "metadata": {"title": "DFA: Strings ending with 'ab'"},
        "states": [
            {"id": 0, "label": "q0", "x": 200, "y": 300, "isStart": True},
            {"id": 1, "label": "q1", "x": 450, "y": 300},
            {"id": 2, "label": "q2", "x": 700, "y": 300, "isAccept": True},
        ],
        "transitions": [
            {"from": 0, "to": 1, "symbols": ["a"]},
            {"from": 0, "to": 0, "symbols": ["b"]},
            {"from": 1, "to": 1, "symbols": ["a"]},
            {"from": 1, "to": 2, "symbols": ["b"]},
            {"from": 2, "to": 1, "symbols": ["a"]},
            {"from": 2, "to": 0, "symbols": ["b"]},
        ],
    },
    "evenZerosOnes": {
        "metadata": {"title": "DFA: Even number of 0s and 1s"},
        "states": [
            {"id": 0, "label": "q00", "x": 300, "y": 200, "isStart": True, "isAccept": True},
            {"id": 1, "label": "q01", "x": 600, "y": 200},
            {"id": 2, "label": "q10", "x": 300, "y": 400},
            {"id": 3, "label": "q11", "x": 600, "y": 400},
        ],
        "transitions": [
            {"from": 0, "to": 2, "symbols": ["0"]},
            {"from": 0, "to": 1, "symbols": ["1"]},
            {"from": 1, "to": 3, "symbols": ["0"]},
            {"from": 1, "to": 0, "symbols": ["1"]},
            {"from": 2, "to": 0, "symbols": ["0"]},
            {"from": 2, "to": 3, "symbols": ["1"]},
            {"from": 3, "to": 1, "symbols": ["0"]},
            {"from": 3, "to": 2, "symbols": ["1"]},
        ],
    },
    "contains101": {
        "metadata": {"title": "NFA: Strings containing '101'"},
        "states": [
            {"id": 0, "label": "q0", "x": 200, "y": 300, "isStart": True},
            {"id": 1, "label": "q1", "x": 350, "y": 300},
            {"id": 2, "label": "q2", "x": 500, "y": 300},
            {"id": 3, "label": "q3", "x": 650, "y": 300, "isAccept": True},
        ],
        "transitions": [
            {"from": 0, "to": 0, "symbols": ["0", "1"]},
            {"from": 0, "to": 1, "symbols": ["1"]},
            {"from": 1, "to": 2, "symbols": ["0"]},
            {"from": 2, "to": 3, "symbols": ["1"]},
            {"from": 3, "to": 3, "symbols": ["0", "1"]},
        ],
    },
    "binaryMod3": {
        "metadata": {"title": "DFA: Binary numbers divisible by 3 (complete)"},
        "states": [
            {"id": 0, "label": "q0", "x": 300, "y": 250, "isStart": True, "isAccept": True},
            {"id": 1, "label": "q1", "x": 500, "y": 150},
            {"id": 2, "label": "q2", "x": 500, "y": 350},
        ],
        "transitions": [
            {"from": 0, "to": 0, "symbols": ["0"]},
            {"from": 0, "to": 1, "symbols": ["1"]},
            {"from": 1, "to": 2, "symbols": ["0"]},
            {"from": 1, "to": 0, "symbols": ["1"]},
            {"from": 2, "to": 1, "symbols": ["0"]},
            {"from": 2, "to": 2, "symbols": ["1"]},
        ],
    },
    "endsWithBinary01": {
        "metadata": {"title": "DFA: Binary strings ending with '01'"},
        "states": [
            {"id": 0, "label": "q0", "x": 200, "y": 300, "isStart": True},
            {"id": 1, "label": "q1", "x": 450, "y": 300},
            {"id": 2, "label": "q2", "x": 700, "y": 300, "isAccept": True},
        ],
        "transitions": [
            {"from": 0, "to": 1, "symbols": ["0"]},
            {"from": 0, "to": 0, "symbols": ["1"]},
            {"from": 1, "to": 1, "symbols": ["0"]},
            {"from": 1, "to": 2, "symbols": ["1"]},
            {"from": 2, "to": 1, "symbols": ["0"]},
            {"from": 2, "to": 0, "symbols": ["1"]},
        ],
    },
    "epsilonNFA": {
        "metadata": {"title": "NFA: With epsilon transitions"},
        "states": [
            {"id": 0, "label": "q0", "x": 200, "y": 300, "isStart": True},
            {"id": 1, "label": "q1", "x": 400, "y": 200},
            {"id": 2, "label": "q2", "x": 400, "y": 400},
            {"id": 3, "label": "q3", "x": 600, "y": 300, "isAccept": True},
        ],
        "transitions": [
            {"from": 0, "to": 1, "symbols": ["ε"]},
            {"from": 0, "to": 2, "symbols": ["ε"]},
            {"from": 1, "to": 3, "symbols": ["a"]},
            {"from": 2, "to": 3, "symbols": ["b"]},
        ],
    },
}

# the two diagrams behind the toolbar's "load example" buttons
_EXAMPLES: Dict[str, Structure] = {
    "dfa": {
        "metadata": {"title": "Example DFA: accepts strings ending with 'ab'"},
        "states": [
            {"id": 0, "label": "q0", "x": 200, "y": 200, "isStart": True},
            {"id": 1, "label": "q1", "x": 400, "y": 200},
            {"id": 2, "label": "q2", "x": 600, "y": 200, "isAccept": True},
        ],
        "transitions": [
            {"from": 0, "to": 1, "symbols": ["a"], "curved": False},
            {"from": 0, "to": 0, "symbols": ["b"], "curved": True},
            {"from": 1, "to": 1, "symbols": ["a"], "curved": True},
            {"from": 1, "to": 2, "symbols": ["b"], "curved": False},
            {"from": 2, "to": 1, "symbols": ["a"], "curved": False},
            {"from": 2, "to": 0, "symbols": ["b"], "curved": False},
        ],
    },
    "nfa": {
        "metadata": {"title": "Example NFA: accepts 'ab' or 'ac'"},
        "states": [
            {"id": 0, "label": "q0", "x": 200, "y": 200, "isStart": True},
            {"id": 1, "label": "q1", "x": 400, "y": 150},
            {"id": 2, "label": "q2", "x": 400, "y": 250},
            {"id": 3, "label": "q3", "x": 600, "y": 200, "isAccept": True},
        ],
        "transitions": [
            {"from": 0, "to": 1, "symbols": ["a"], "curved": False},
            {"from": 0, "to": 2, "symbols": ["a"], "curved": False},
            {"from": 1, "to": 3, "symbols": ["b"], "curved": False},
            {"from": 2, "to": 3, "symbols": ["c"], "curved": False},
        ],
    },
}


def template_names() -> List[str]:
    return list(_TEMPLATES)


def get_template(name: str) -> Structure:
    """Return a private copy of the named template; ``UnknownTemplate`` lists the known names."""
    try:
        return copy.deepcopy(_TEMPLATES[name])
    except KeyError:
        raise UnknownTemplate(
            f"Template '{name}' not found. Available: {', '.join(_TEMPLATES)}"
        ) from None


def get_example(kind: str) -> Structure:
    try:
        return copy.deepcopy(_EXAMPLES[kind])
    except KeyError:
        raise UnknownTemplate(f"Example '{kind}' not found. Available: {', '.join(_EXAMPLES)}") from None


def random_dfa_structure(
    rng: Optional[random.Random] = None,
    alphabet: Sequence[str] = ("a", "b"),
) -> Structure:
    """A complete DFA with 3 to 5 states, one transition per state and symbol."""
    rng = rng or random.Random()
    count = rng.randint(3, 5)
    states: List[Dict[str, Any]] = []
    for index in range(count):
        states.append(
            {
                "id": index,
                "label": f"q{index}",
                "x": 150 + index * 150 + rng.random() * 100,
                "y": 200 + rng.random() * 200,
                "isStart": index == 0,
                "isAccept": False,
            }
        )
    for _ in range(rng.randint(1, 2)):
        rng.choice(states)["isAccept"] = True

    transitions: List[Dict[str, Any]] = []
    for state in states:
        for symbol in alphabet:
            target = rng.choice(states)
            transitions.append({"from": state["id"], "to": target["id"], "symbols": [symbol]})
    return {
        "metadata": {"title": "Random DFA"},
        "states": states,
        "transitions": transitions,
    }
