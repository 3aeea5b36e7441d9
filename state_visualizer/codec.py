from __future__ import annotations

import json
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .diagram import DEFAULT_SYMBOL, Diagram, State, default_label
from .errors import DanglingReference, MalformedStructure

EXPORT_STYLE = "export"
STRUCTURE_STYLE = "structure"

GRID_ORIGIN = (200, 200)
GRID_STEP = (200, 150)
GRID_COLUMNS = 4

_ENDPOINT_KEYS: Dict[str, Tuple[str, str]] = {
    EXPORT_STYLE: ("fromId", "toId"),
    STRUCTURE_STYLE: ("from", "to"),
}


def grid_position(index: int) -> Tuple[float, float]:
    column = index % GRID_COLUMNS
    row = index // GRID_COLUMNS
    return GRID_ORIGIN[0] + column * GRID_STEP[0], GRID_ORIGIN[1] + row * GRID_STEP[1]


def export_structure(
    diagram: Diagram,
    *,
    style: str = EXPORT_STYLE,
    title: Optional[str] = None,
) -> Dict[str, Any]:
    """Plain, JSON ready description of ``diagram``.

    The default ``export`` style names transition endpoints ``fromId``/``toId``
    (the save file format); ``structure`` uses ``from``/``to`` and always carries
    metadata, matching hand written structures and templates. Both are accepted
    by :func:`build_diagram`.
    """
    try:
        from_key, to_key = _ENDPOINT_KEYS[style]
    except KeyError:
        raise ValueError(f"Unknown export style '{style}'.") from None

    data: Dict[str, Any] = {}
    if title is not None or style == STRUCTURE_STYLE:
        data["metadata"] = {"title": title or "Current Diagram"}
    data["states"] = [
        {
            "id": state.id,
            "label": state.label,
            "x": state.x,
            "y": state.y,
            "isStart": state.is_start,
            "isAccept": state.is_accept,
        }
        for state in diagram.states
    ]
    data["transitions"] = [
        {
            from_key: transition.from_id,
            to_key: transition.to_id,
            "symbols": list(transition.symbols),
            "curved": transition.curved,
        }
        for transition in diagram.transitions
    ]
    return data


def structure_title(description: Mapping[str, Any]) -> Optional[str]:
    metadata = description.get("metadata")
    if isinstance(metadata, Mapping):
        title = metadata.get("title")
        if isinstance(title, str) and title:
            return title
    return None


def build_diagram(description: Any) -> Diagram:
    """Validate ``description`` into a new, detached diagram.

    Nothing outside the returned diagram is touched, so a failure part way
    through leaves the caller's live diagram as it was.
    """
    if not isinstance(description, Mapping):
        raise MalformedStructure("Structure must be an object.")
    raw_states = description.get("states")
    if not isinstance(raw_states, list):
        raise MalformedStructure('Structure must have a "states" array')

    diagram = Diagram()
    for index, entry in enumerate(raw_states):
        if not isinstance(entry, Mapping):
            raise MalformedStructure(f"State entry {index} must be an object.")
        state_id = _require_int(entry.get("id", index), f"State entry {index} id")
        if diagram.has_state(state_id):
            raise MalformedStructure(f"Duplicate state id {state_id}.")
        default_x, default_y = grid_position(index)
        diagram.insert_state(
            State(
                id=state_id,
                label=str(entry.get("label") or default_label(state_id)),
                x=_coordinate(entry.get("x"), default_x),
                y=_coordinate(entry.get("y"), default_y),
                is_start=bool(entry.get("isStart", False)),
                is_accept=bool(entry.get("isAccept", False)),
            ),
            record=False,
        )

    raw_transitions = description.get("transitions")
    if raw_transitions is None:
        raw_transitions = []
    if not isinstance(raw_transitions, list):
        raise MalformedStructure('Structure "transitions" must be an array.')
    for index, entry in enumerate(raw_transitions):
        if not isinstance(entry, Mapping):
            raise MalformedStructure(f"Transition entry {index} must be an object.")
        from_id = _endpoint(entry, "from", "fromId")
        to_id = _endpoint(entry, "to", "toId")
        if from_id is None or not diagram.has_state(from_id):
            raise DanglingReference(f"From state with id {from_id} not found", from_id)
        if to_id is None or not diagram.has_state(to_id):
            raise DanglingReference(f"To state with id {to_id} not found", to_id)
        curved = entry.get("curved")
        diagram.add_transition(
            from_id,
            to_id,
            _symbols(entry.get("symbols")),
            None if curved is None else bool(curved),
            record=False,
        )
    return diagram


def load_structure(target: Diagram, description: Any, *, record: bool = True) -> Diagram:
    """Replace ``target``'s contents with ``description``, all or nothing."""
    built = build_diagram(description)
    target.adopt(built, action="load diagram", record=record)
    return target


def loads(text: str) -> Dict[str, Any]:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedStructure(f"Invalid JSON structure: {exc}") from exc
    if not isinstance(payload, dict):
        raise MalformedStructure("Structure must be an object.")
    return payload


def dumps(description: Mapping[str, Any]) -> str:
    return json.dumps(description, indent=2, ensure_ascii=False)


def _require_int(value: Any, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedStructure(f"{what} must be an integer, got {value!r}.")
    return value


def _coordinate(value: Any, default: float) -> float:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedStructure(f"Coordinate must be a number, got {value!r}.")
    return value


def _endpoint(entry: Mapping[str, Any], key: str, alternate: str) -> Optional[int]:
    value = entry.get(key, entry.get(alternate))
    if value is None:
        return None
    return _require_int(value, f"Transition '{key}'")


def _symbols(value: Any) -> List[str]:
    if isinstance(value, list):
        symbols = [str(symbol) for symbol in value]
        return symbols or [DEFAULT_SYMBOL]
    if isinstance(value, str) and value:
        return [value]
    return [DEFAULT_SYMBOL]
