from __future__ import annotations

import random

import pytest

from state_visualizer.codec import (
    build_diagram,
    dumps,
    export_structure,
    grid_position,
    load_structure,
    loads,
    structure_title,
)
from state_visualizer.diagram import Diagram
from state_visualizer.errors import DanglingReference, MalformedStructure, UnknownTemplate
from state_visualizer.templates import (
    get_example,
    get_template,
    random_dfa_structure,
    template_names,
)


def test_export_uses_from_id_to_id(ends_with_ab):
    data = export_structure(build_diagram(ends_with_ab))
    assert "metadata" not in data
    assert data["states"][0] == {
        "id": 0, "label": "q0", "x": 100, "y": 100, "isStart": True, "isAccept": False,
    }
    assert data["transitions"][0] == {"fromId": 0, "toId": 1, "symbols": ["a"], "curved": False}


def test_structure_style_uses_from_to(ends_with_ab):
    data = export_structure(build_diagram(ends_with_ab), style="structure")
    assert data["metadata"] == {"title": "Current Diagram"}
    assert set(data["transitions"][0]) == {"from", "to", "symbols", "curved"}
    with pytest.raises(ValueError):
        export_structure(Diagram(), style="svg")


def test_export_is_detached(ends_with_ab):
    diagram = build_diagram(ends_with_ab)
    data = export_structure(diagram)
    data["transitions"][0]["symbols"].append("zz")
    data["states"][0]["label"] = "changed"
    assert diagram.transitions[0].symbols == ["a"]
    assert diagram.get_state(0).label == "q0"


@pytest.mark.parametrize("style", ["export", "structure"])
def test_round_trip(ends_with_ab, observe, style):
    diagram = build_diagram(ends_with_ab)
    diagram.add_transition(2, 2, ["", "b"])
    diagram.rename_state(1, "middle")
    diagram.delete_state(0)
    diagram.set_start(2)
    rebuilt = build_diagram(loads(dumps(export_structure(diagram, style=style))))
    assert observe(rebuilt) == observe(diagram)


def test_defaults_for_missing_fields():
    diagram = build_diagram(
        {
            "states": [{"id": 7}, {}, {"id": 3, "x": 0, "y": 0}],
            "transitions": [
                {"from": 7, "to": 1},
                {"from": 1, "to": 7, "symbols": "b"},
                {"from": 3, "to": 3, "symbols": []},
            ],
        }
    )
    assert [s.label for s in diagram.states] == ["q7", "q1", "q3"]
    assert (diagram.get_state(7).x, diagram.get_state(7).y) == grid_position(0)
    assert (diagram.get_state(1).x, diagram.get_state(1).y) == (400, 200)
    assert (diagram.get_state(3).x, diagram.get_state(3).y) == (0, 0)
    forward, backward, loop = diagram.transitions
    assert forward.symbols == ["a"] and not forward.curved
    assert backward.symbols == ["b"] and backward.curved
    assert loop.symbols == ["a"] and loop.curved
    assert diagram.start_id is None
    assert diagram.next_id == 8


def test_grid_wraps_after_four_columns():
    assert grid_position(3) == (800, 200)
    assert grid_position(4) == (200, 350)


def test_accepts_export_field_names():
    diagram = build_diagram(
        {"states": [{"id": 0, "isStart": True}, {"id": 1}], "transitions": [{"fromId": 0, "toId": 1}]}
    )
    assert [(t.from_id, t.to_id) for t in diagram.transitions] == [(0, 1)]


@pytest.mark.parametrize(
    "description",
    [
        {},
        {"states": "q0"},
        {"states": [1, 2]},
        {"states": [{"id": 0}, {"id": 0}]},
        {"states": [{"id": "zero"}]},
        {"states": [{"id": 0}], "transitions": {"from": 0}},
        [],
    ],
)
def test_malformed_structures(description):
    with pytest.raises(MalformedStructure):
        build_diagram(description)


def test_dangling_reference():
    with pytest.raises(DanglingReference) as info:
        build_diagram({"states": [{"id": 0}], "transitions": [{"from": 0, "to": 5}]})
    assert info.value.state_id == 5
    with pytest.raises(DanglingReference):
        build_diagram({"states": [{"id": 0}], "transitions": [{"to": 0}]})


def test_failed_load_leaves_target_untouched(ends_with_ab, observe):
    target = build_diagram(ends_with_ab)
    before = observe(target)
    with pytest.raises(DanglingReference):
        load_structure(target, {"states": [{"id": 0}], "transitions": [{"from": 0, "to": 1}]})
    assert observe(target) == before


def test_loads_rejects_bad_json():
    with pytest.raises(MalformedStructure):
        loads("{not json")
    with pytest.raises(MalformedStructure):
        loads("[1, 2]")


def test_last_start_flag_wins():
    diagram = build_diagram({"states": [{"id": 0, "isStart": True}, {"id": 1, "isStart": True}]})
    assert diagram.start_id == 1
    assert diagram.validate()


def test_templates_are_importable_copies():
    assert template_names() == [
        "endsWithAB",
        "evenZerosOnes",
        "contains101",
        "binaryMod3",
        "endsWithBinary01",
        "epsilonNFA",
    ]
    for name in template_names():
        diagram = build_diagram(get_template(name))
        assert diagram.start_id is not None
        assert diagram.accept_ids
        assert structure_title(get_template(name))
    mutated = get_template("endsWithAB")
    mutated["states"].clear()
    assert get_template("endsWithAB")["states"]
    with pytest.raises(UnknownTemplate):
        get_template("nope")
    with pytest.raises(UnknownTemplate):
        get_example("pda")


def test_examples():
    dfa = build_diagram(get_example("dfa"))
    nfa = build_diagram(get_example("nfa"))
    assert not dfa.looks_nondeterministic()
    assert nfa.looks_nondeterministic()


def test_random_dfa_is_complete_and_seeded():
    first = random_dfa_structure(random.Random(7))
    second = random_dfa_structure(random.Random(7))
    assert first == second
    diagram = build_diagram(first)
    assert 3 <= len(diagram) <= 5
    assert diagram.accept_ids
    for state in diagram.states:
        outgoing = diagram.transitions_from(state.id)
        assert sorted(s for t in outgoing for s in t.symbols) == ["a", "b"]


@pytest.mark.parametrize("endpoint", ["0", 1.5, True])
def test_non_integer_endpoint_is_malformed_not_dangling(endpoint):
    with pytest.raises(MalformedStructure) as info:
        build_diagram({"states": [{"id": 0}], "transitions": [{"from": endpoint, "to": 0}]})
    assert not isinstance(info.value, DanglingReference)
