"""Tests for peer_council/disagreement.py."""

import math

import pytest

from peer_council.disagreement import analyze_disagreements
from peer_council.models import ModelRef
from tests.conftest import make_ranking


@pytest.fixture
def label_to_model() -> dict[str, ModelRef]:
    return {label: ModelRef(f"model-{label.lower()}", f"Model {label}") for label in "ABCD"}


def test_single_valid_ranking_short_circuits(label_to_model):
    rankings = [
        make_ranking("model-a", ["A", "B", "C", "D"]),
        make_ranking("model-b", [], is_valid=False, error="boom"),
        make_ranking("model-c", ["D", "C"], is_valid=False),
    ]
    report = analyze_disagreements(rankings, label_to_model)
    assert report.consensus == 1.0
    assert report.disagreements == []
    assert report.most_contested is None
    assert report.per_label_variance == {}


def test_identical_rankings_full_consensus(label_to_model):
    rankings = [make_ranking(f"model-{i}", ["B", "A", "D", "C"]) for i in range(3)]
    report = analyze_disagreements(rankings, label_to_model)
    assert report.consensus == 1.0
    assert all(stats.variance == 0 for stats in report.per_label_variance.values())
    assert report.disagreements == []
    # All tied at zero variance: first label wins
    assert report.most_contested == "A"


def test_variance_statistics(label_to_model):
    rankings = [
        make_ranking("model-a", ["A", "B", "C", "D"]),
        make_ranking("model-b", ["D", "B", "C", "A"]),
    ]
    report = analyze_disagreements(rankings, label_to_model)

    a = report.per_label_variance["A"]
    assert a.positions == [1, 4]
    assert a.mean == 2.5
    assert a.variance == 2.25
    assert a.std_dev == 1.5
    assert report.per_label_variance["B"].variance == 0

    # total 4.5 against 4**2 / 12 * 4
    assert report.consensus == pytest.approx(1 - 4.5 / (16 / 12 * 4))
    assert report.most_contested == "A"

    assert [d.label for d in report.disagreements] == ["A", "D"]
    assert report.disagreements[0].rank_min == 1
    assert report.disagreements[0].rank_max == 4
    assert report.disagreements[0].model_name == "Model A"


def test_absent_label_adds_no_position(label_to_model):
    rankings = [
        make_ranking("model-a", ["A", "B", "C", "D"]),
        make_ranking("model-b", ["B", "A", "C"]),
    ]
    report = analyze_disagreements(rankings, label_to_model)
    assert report.position_matrix["A"] == [1, 2]
    assert report.position_matrix["D"] == [4]
    assert report.per_label_variance["D"].variance == 0


def test_two_label_swap_consensus():
    label_to_model = {label: ModelRef(label, label) for label in "AB"}
    rankings = [make_ranking("m1", ["A", "B"]), make_ranking("m2", ["B", "A"])]
    report = analyze_disagreements(rankings, label_to_model)
    # Each label variance 0.25, total 0.5 against 4/12 * 2
    assert report.consensus == pytest.approx(max(0.0, 1 - 0.5 / (4 / 12 * 2)))


def test_disagreement_threshold_is_strict(label_to_model):
    rankings = [
        make_ranking("model-a", ["A", "B", "C", "D"]),
        make_ranking("model-b", ["C", "B", "A", "D"]),
    ]
    report = analyze_disagreements(rankings, label_to_model)
    # A and C swap 1 <-> 3: std dev exactly 1.0, not above the threshold
    assert math.isclose(report.per_label_variance["A"].std_dev, 1.0)
    assert report.disagreements == []
    assert report.most_contested == "A"


def test_consensus_floors_at_zero():
    label_to_model = {label: ModelRef(label, label) for label in "ABC"}
    rankings = [
        # Unknown labels push every known one down three places
        make_ranking("m1", ["D", "E", "F", "A", "B", "C"]),
        make_ranking("m2", ["A", "B", "C"]),
    ]
    report = analyze_disagreements(rankings, label_to_model)
    # Each label variance 2.25, total 6.75 against 9/12 * 3
    assert sum(s.variance for s in report.per_label_variance.values()) == 6.75
    assert report.consensus == 0.0
