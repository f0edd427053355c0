"""
Example-based tests for the almanac software reference: the puzzle
scenarios, the parser and the error paths.
"""

import os
import runpy
import sys
import pytest

from software_reference.almanac import (
    Almanac, Interval, MissingStageError, NoSeedsError, ParseError, Pipeline,
    Solver, TranslationRule, TranslationStage,
    parse_almanac, parse_rule_line, read_input, solve_a, solve_b,
)


HERE = os.path.dirname(__file__)
EXAMPLE_INPUT = os.path.join(HERE, "..", "testcases", "example_input.txt")
ALMANAC_SCRIPT = os.path.join(HERE, "..", "software_reference", "almanac.py")


@pytest.fixture
def almanac():
    return read_input(EXAMPLE_INPUT)


def test_parse_example(almanac):
    assert almanac.seeds == [79, 14, 55, 13]
    assert [stage.name for stage in almanac.stages] == [
        "seed-to-soil",
        "soil-to-fertilizer",
        "fertilizer-to-water",
        "water-to-light",
        "light-to-temperature",
        "temperature-to-humidity",
        "humidity-to-location",
    ]
    assert almanac.stages[0].rules == [TranslationRule(50, 98, 2), TranslationRule(52, 50, 48)]


def test_solve_a(almanac):
    assert solve_a(almanac) == 35


def test_solve_b(almanac):
    assert solve_b(almanac) == 46


def test_split_boundary():
    rule = TranslationRule(50, 98, 2)
    pieces = rule.map(Interval(95, 105))

    assert pieces == [Interval(95, 97), Interval(50, 51), Interval(100, 105)]
    assert sum(piece.length for piece in pieces) == 11


def test_split_upper_boundary_only():
    rule = TranslationRule(50, 98, 2)
    assert rule.map(Interval(99, 101)) == [Interval(51, 51), Interval(100, 101)]


def test_domain_is_half_open():
    rule = TranslationRule(50, 98, 2)
    assert rule.translate(99) == 51
    assert rule.translate(100) == 100
    assert rule.map(Interval(100, 100)) == [Interval(100, 100)]


def test_zero_length_rule_never_applies():
    rule = TranslationRule(0, 10, 0)
    assert rule.overlap(Interval(0, 20)) is None
    assert rule.map(Interval(10, 10)) == [Interval(10, 10)]


def test_first_overlapping_rule_only(almanac):
    light_to_temperature = almanac.stages[4]

    # [74, 76] belongs to the third rule but the first rule is applied,
    # and the remainder is not checked again
    assert light_to_temperature.resolve(Interval(74, 87)) == [Interval(74, 76), Interval(45, 55)]
    assert light_to_temperature.translate(74) == 78


def test_no_rule_passes_through(almanac):
    soil_to_fertilizer = almanac.stages[1]
    assert soil_to_fertilizer.find_rule(Interval(81, 94)) is None
    assert soil_to_fertilizer.resolve(Interval(81, 94)) == [Interval(81, 94)]


def test_explicit_categories(almanac):
    solver = Solver(Pipeline(almanac.stages), "soil", "water")
    assert solver.solve_points([53]) == 27


def test_start_is_terminal(almanac):
    solver = almanac.solver("location", "location")
    assert solver.solve_points([7, 3]) == 3


def test_chain_order(almanac):
    pipeline = Pipeline(list(reversed(almanac.stages)))
    chain = pipeline.chain("seed", "location")

    assert [stage.source_category for stage in chain] == [
        "seed", "soil", "fertilizer", "water", "light", "temperature", "humidity",
    ]


def test_missing_stage(almanac):
    solver = Solver(Pipeline(almanac.stages[:-1]), "seed", "location")

    with pytest.raises(MissingStageError) as excinfo:
        solver.solve_points(almanac.seeds)
    assert excinfo.value.category == "humidity"


def test_duplicate_source_category():
    stages = [TranslationStage("seed", "soil", []), TranslationStage("seed", "water", [])]
    with pytest.raises(ParseError):
        Pipeline(stages)


def test_cycle_detected():
    pipeline = Pipeline([TranslationStage("a", "b", []), TranslationStage("b", "a", [])])
    with pytest.raises(ParseError):
        pipeline.chain("a", "z")


def test_no_seeds(almanac):
    solver = almanac.solver()

    with pytest.raises(NoSeedsError):
        solver.solve_points([])
    with pytest.raises(NoSeedsError):
        solver.solve_ranges([5, 0])


def test_odd_seed_count(almanac):
    with pytest.raises(ParseError):
        solve_b(Almanac([79, 14, 55], almanac.stages))


@pytest.mark.parametrize("line", ["50 98", "50 98 2 1", "50 98 x", "-1 98 2", ""])
def test_bad_rule_line(line):
    with pytest.raises(ParseError):
        parse_rule_line(line)


def test_bad_rule_line_reports_position():
    text = "seeds: 1 2\n\nseed-to-soil map:\n50 98\n"
    with pytest.raises(ParseError) as excinfo:
        parse_almanac(text)

    assert excinfo.value.lineno == 4
    assert excinfo.value.line == "50 98"
    assert "line 4" in str(excinfo.value)


@pytest.mark.parametrize("text", [
    "",
    "\n\n",
    "seed-to-soil map:\n1 2 3\n",
    "seeds: 1 two\n",
    "seeds: 1 2\n\nseed to soil map:\n1 2 3\n",
    "seeds: 1 2\nseed-to-soil map:\n1 2 3\n",
])
def test_bad_almanac(text):
    with pytest.raises(ParseError):
        parse_almanac(text)


def test_parse_tolerates_surrounding_blank_lines():
    almanac = parse_almanac("\n\nseeds: 1\n\n\n\na-to-b map:\n5 1 1\n\n")
    assert almanac.seeds == [1]
    assert len(almanac.stages) == 1
    assert almanac.solver("a", "b").solve_points(almanac.seeds) == 5


def test_main(monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["almanac.py", EXAMPLE_INPUT])
    runpy.run_path(ALMANAC_SCRIPT, run_name="__main__")

    assert capsys.readouterr().out.splitlines() == ["A: 35", "B: 46"]


def test_main_usage(monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["almanac.py"])
    with pytest.raises(SystemExit) as excinfo:
        runpy.run_path(ALMANAC_SCRIPT, run_name="__main__")

    assert excinfo.value.code == 1
    assert "Usage" in capsys.readouterr().out
