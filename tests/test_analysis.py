from __future__ import annotations

import pytest

from state_visualizer.analysis import (
    BatchResult,
    analyze_diagram,
    parse_batch_input,
    run_batch,
    summarize_results,
)
from state_visualizer.codec import build_diagram
from state_visualizer.diagram import Diagram
from state_visualizer.errors import EmptyDiagram, NoStartState


def test_batch_keeps_order_and_count(ends_with_ab):
    diagram = build_diagram(ends_with_ab)
    results = run_batch(diagram, ["ab", "ba", "aab"], "dfa")
    assert [r.string for r in results] == ["ab", "ba", "aab"]
    assert [r.accepted for r in results] == [True, False, True]
    assert all(r.error is None for r in results)


def test_batch_records_errors_per_string(epsilon_fork):
    diagram = build_diagram(epsilon_fork)
    results = run_batch(diagram, ["a", "c", " b "], "nfa")
    assert len(results) == 3
    assert results[0] == BatchResult("a", True)
    assert results[1].accepted is False
    assert results[1].verdict == "ERROR"
    assert "not in alphabet" in results[1].error
    assert results[2] == BatchResult("b", True)


def test_batch_reports_progress_before_each_string(ends_with_ab):
    diagram = build_diagram(ends_with_ab)
    calls = []
    run_batch(diagram, ["ab", "x"], "dfa", progress=lambda *args: calls.append(args))
    assert calls == [(1, 2, "ab"), (2, 2, "x")]


def test_batch_fails_wholesale_on_bad_diagram():
    with pytest.raises(EmptyDiagram):
        run_batch(Diagram(), ["a"], "dfa")
    diagram = Diagram()
    diagram.add_state(0, 0)
    diagram.clear_start()
    calls = []
    with pytest.raises(NoStartState):
        run_batch(diagram, ["a"], "dfa", progress=lambda *args: calls.append(args))
    assert calls == []


def test_summary_counts():
    results = [
        BatchResult("ab", True),
        BatchResult("ba", False),
        BatchResult("z", False, "Symbol 'z' not in alphabet."),
    ]
    assert summarize_results(results) == {"total": 3, "passed": 1, "failed": 2, "errors": 1}
    assert [r.verdict for r in results] == ["ACCEPTED", "REJECTED", "ERROR"]


def test_parse_batch_input_drops_blank_lines():
    assert parse_batch_input("ab\n\n  ba \n\t\naab") == ["ab", "ba", "aab"]


def test_analyze_diagram_report():
    diagram = Diagram()
    q0 = diagram.add_state(0, 0)
    q1 = diagram.add_state(1, 0)
    q2 = diagram.add_state(2, 0)
    q3 = diagram.add_state(3, 0)
    diagram.add_transition(q0.id, q1.id, ["a"])
    diagram.add_transition(q0.id, q2.id, ["a", "b"])
    diagram.add_transition(q3.id, q1.id, ["b"])
    diagram.toggle_accept(q1.id)

    report = analyze_diagram(diagram)

    assert report["state_count"] == 4
    assert report["transition_count"] == 3
    assert report["alphabet"] == ["a", "b"]
    assert report["unreachable"] == [q3.id]
    assert report["dead_states"] == [q2.id]
    assert report["nondeterministic_states"] == [q0.id]
    assert (q1.id, "a") in report["missing_symbols"]
    assert report["is_total"] is False
    assert report["has_epsilon"] is False
    assert report["suggested_type"] == "nfa"
