"""
Property-based tests for the almanac interval translation using Hypothesis.

This module checks TranslationRule.map, TranslationStage.resolve and the
Pipeline against the point-wise translation, which is slow but obviously
correct, on small inputs.
"""

import os
import pytest
from hypothesis import given, strategies as st, assume, settings, HealthCheck
from hypothesis.strategies import lists, integers

from software_reference.almanac import (
    Interval, Pipeline, TranslationRule, TranslationStage,
    point_intervals, range_intervals, read_input,
)


EXAMPLE_INPUT = os.path.join(os.path.dirname(__file__), "..", "testcases", "example_input.txt")


# Strategy for generating valid closed intervals (start <= end)
@st.composite
def valid_interval(draw, max_value=10**12):
    start = draw(integers(min_value=0, max_value=max_value))
    end = draw(integers(min_value=start, max_value=max_value))
    return Interval(start, end)


def rule_strategy(max_value=10**12):
    return st.builds(
        TranslationRule,
        integers(min_value=0, max_value=max_value),  # destination_start
        integers(min_value=0, max_value=max_value),  # source_start
        integers(min_value=0, max_value=max_value),  # length
    )


# Strategy for rules whose domains never overlap: laid out left to right
# with a gap (possibly empty) before each one
@st.composite
def disjoint_rules(draw, max_rules=5):
    gaps_and_lengths = draw(lists(st.tuples(integers(min_value=0, max_value=30),
                                            integers(min_value=1, max_value=30)),
                                  min_size=0, max_size=max_rules))
    rules = []
    position = 0
    for gap, length in gaps_and_lengths:
        position += gap
        destination = draw(integers(min_value=0, max_value=300))
        rules.append(TranslationRule(destination, position, length))
        position += length
    return draw(st.permutations(rules))


# Short intervals, so that most of them meet at most one rule domain
@st.composite
def short_interval(draw, max_value=400, max_length=40):
    start = draw(integers(min_value=0, max_value=max_value))
    length = draw(integers(min_value=1, max_value=max_length))
    return Interval(start, start + length - 1)


def covered_values(intervals):
    """Multiset of every value covered, as a sorted list."""
    values = []
    for interval in intervals:
        values.extend(range(interval.start, interval.end + 1))
    return sorted(values)


@pytest.fixture(scope="module")
def example_pipeline():
    return Pipeline(read_input(EXAMPLE_INPUT).stages)


# Property 1: Length conservation
@given(rule_strategy(), valid_interval())
@settings(max_examples=1000)
def test_length_conservation(rule, interval):
    """
    Property: The pieces returned by map cover as many values as the input.
    """
    pieces = rule.map(interval)
    assert sum(piece.length for piece in pieces) == interval.length


# Property 2: Pass-through idempotence
@given(rule_strategy(), valid_interval())
def test_pass_through(rule, interval):
    """
    Property: An interval outside the rule domain comes back unchanged.
    """
    assume(rule.overlap(interval) is None)
    assert rule.map(interval) == [interval]


# Property 3: Full containment exactness
@given(rule_strategy(), integers(min_value=0, max_value=10**12), integers(min_value=0, max_value=10**12))
def test_full_containment(rule, a, b):
    """
    Property: An interval inside the domain is shifted as a whole.
    """
    assume(rule.length > 0)
    start = rule.source_start + a % rule.length
    end = rule.source_start + max(a, b) % rule.length
    assume(start <= end)
    interval = Interval(start, end)

    offset = rule.destination_start - rule.source_start
    assert rule.map(interval) == [Interval(start + offset, end + offset)]


# Property 4: Pieces are well formed, at most three, at most one translated
@given(rule_strategy(), valid_interval())
def test_piece_shape(rule, interval):
    pieces = rule.map(interval)

    assert 1 <= len(pieces) <= 3
    assert all(piece.start <= piece.end for piece in pieces)

    translated = [piece for piece in pieces
                  if not (interval.start <= piece.start and piece.end <= interval.end
                          and rule.overlap(piece) is None)]
    assert len(translated) <= 1


# Property 5: Interval map agrees with point-wise translation
@given(rule_strategy(max_value=500), valid_interval(max_value=500))
@settings(max_examples=500)
def test_rule_image(rule, interval):
    """
    Property: The values covered by the output are exactly the translated
    input values.
    """
    expected = sorted(rule.translate(v) for v in range(interval.start, interval.end + 1))
    assert covered_values(rule.map(interval)) == expected


# Property 6: Stage resolution is exact when only one rule domain is met
@given(disjoint_rules(), short_interval())
@settings(max_examples=500, suppress_health_check=[HealthCheck.filter_too_much])
def test_stage_image_single_domain(rules, interval):
    stage = TranslationStage("a", "b", rules)
    assert stage.has_disjoint_domains()
    assume(sum(1 for rule in rules if rule.overlap(interval) is not None) <= 1)

    expected = sorted(stage.translate(v) for v in range(interval.start, interval.end + 1))
    assert covered_values(stage.resolve(interval)) == expected


# Property 7: Stage resolution conserves length even across several domains
@given(disjoint_rules(), valid_interval(max_value=400))
def test_stage_length_conservation(rules, interval):
    stage = TranslationStage("a", "b", rules)
    assert sum(piece.length for piece in stage.resolve(interval)) == interval.length


# Property 8: Chain determinism
@given(lists(valid_interval(max_value=200), min_size=1, max_size=10))
def test_chain_determinism(example_pipeline, intervals):
    first = example_pipeline.run(intervals, "seed", "location")
    second = example_pipeline.run(intervals, "seed", "location")
    assert sorted(first) == sorted(second)


# Property 9: Degenerate intervals follow the point-wise chain
@given(lists(integers(min_value=0, max_value=200), min_size=1, max_size=20))
def test_points_match_pointwise_chain(example_pipeline, seeds):
    expected = []
    for seed in seeds:
        value = seed
        for stage in example_pipeline.chain("seed", "location"):
            value = stage.translate(value)
        expected.append(Interval(value, value))

    assert example_pipeline.run(point_intervals(seeds), "seed", "location") == expected


# Property 10: Seed ranges cover exactly start..start+length-1
@given(lists(st.tuples(integers(min_value=0, max_value=10**9),
                       integers(min_value=0, max_value=10**9)), max_size=10))
def test_range_intervals(pairs):
    seeds = [n for pair in pairs for n in pair]
    intervals = range_intervals(seeds)

    assert sum(interval.length for interval in intervals) == sum(length for _, length in pairs)
    assert [interval.start for interval in intervals] == [start for start, length in pairs if length]


# Concrete test cases for edge cases
def test_example_maps_have_disjoint_domains(example_pipeline):
    for stage in example_pipeline.stages:
        assert stage.has_disjoint_domains(), stage.name


def test_overlapping_domains_detected():
    stage = TranslationStage("a", "b", [TranslationRule(0, 10, 5), TranslationRule(0, 14, 5)])
    assert not stage.has_disjoint_domains()


def test_touching_domains_are_disjoint():
    stage = TranslationStage("a", "b", [TranslationRule(0, 10, 5), TranslationRule(0, 15, 5)])
    assert stage.has_disjoint_domains()


if __name__ == "__main__":
    # Run pytest
    pytest.main([__file__, "-v", "--tb=short"])
