"""
Property-based testing for the translation hardware using Hypothesis.

Checks RuleSplitter and TranslationStageUnit against the software
reference on randomly generated rules and intervals, and makes sure the
formal wrapper and the stage unit still elaborate to RTLIL.
"""

from hypothesis import given, strategies as st, settings
from amaranth.sim import Simulator
from rtl.rule_splitter import RuleSplitter, NUM_PIECES
from rtl.translation_stage import TranslationStageUnit, generate_il
from formal.rule_splitter import generate_formal_il
from software_reference.almanac import Interval, TranslationRule, TranslationStage


def read_pieces(ctx, dut):
    pieces = []
    for i in range(NUM_PIECES):
        if ctx.get(dut.piece_valid[i]):
            pieces.append(Interval(ctx.get(dut.piece_start[i]), ctx.get(dut.piece_end[i])))
    return pieces


def simulate_splitter(rule, interval, width=64):
    """Apply one rule to one interval on the combinational splitter."""
    dut = RuleSplitter(width=width)
    pieces = []

    async def testbench(ctx):
        ctx.set(dut.start_in, interval.start)
        ctx.set(dut.end_in, interval.end)
        ctx.set(dut.src_in, rule.source_start)
        ctx.set(dut.dst_in, rule.destination_start)
        ctx.set(dut.len_in, rule.length)
        pieces.extend(read_pieces(ctx, dut))

    sim = Simulator(dut)
    sim.add_testbench(testbench)
    sim.run()

    return pieces


def simulate_stage(rules, intervals, max_rules=8):
    """Load rules once, then resolve every interval. Returns (pieces, hit, idx) per interval."""
    dut = TranslationStageUnit(max_rules=max_rules, width=64)
    results = []

    async def testbench(ctx):
        for rule in rules:
            ctx.set(dut.rule_src_in, rule.source_start)
            ctx.set(dut.rule_dst_in, rule.destination_start)
            ctx.set(dut.rule_len_in, rule.length)
            ctx.set(dut.rule_valid_in, 1)
            await ctx.tick()
        ctx.set(dut.rule_valid_in, 0)

        for interval in intervals:
            ctx.set(dut.start_in, interval.start)
            ctx.set(dut.end_in, interval.end)
            results.append((read_pieces(ctx, dut), ctx.get(dut.hit), ctx.get(dut.rule_idx)))

    sim = Simulator(dut)
    sim.add_clock(1e-6)
    sim.add_testbench(testbench)
    sim.run()

    return results


@st.composite
def intervals(draw, max_value=1000):
    start = draw(st.integers(min_value=0, max_value=max_value))
    end = draw(st.integers(min_value=start, max_value=max_value))
    return Interval(start, end)


rules = st.builds(
    TranslationRule,
    st.integers(min_value=0, max_value=1000),  # destination_start
    st.integers(min_value=0, max_value=1000),  # source_start
    st.integers(min_value=0, max_value=200),   # length
)


@given(rules, intervals())
@settings(max_examples=100, deadline=None)
def test_splitter_matches_software(rule, interval):
    """
    Property: RuleSplitter produces the same pieces, in the same order,
    as TranslationRule.map
    """
    assert simulate_splitter(rule, interval) == rule.map(interval)


def test_splitter_scenario():
    rule = TranslationRule(50, 98, 2)
    assert simulate_splitter(rule, Interval(95, 105)) == [
        Interval(95, 97), Interval(50, 51), Interval(100, 105),
    ]


@given(st.lists(rules, min_size=0, max_size=4), st.lists(intervals(), min_size=1, max_size=6))
@settings(max_examples=50, deadline=None)
def test_stage_matches_software(stage_rules, queries):
    """
    Property: TranslationStageUnit resolves each interval like
    TranslationStage.resolve, including which rule it picked
    """
    stage = TranslationStage("a", "b", stage_rules)
    hw_results = simulate_stage(stage_rules, queries, max_rules=4)

    for interval, (pieces, hit, idx) in zip(queries, hw_results):
        rule = stage.find_rule(interval)
        assert pieces == stage.resolve(interval)
        assert hit == (rule is not None)
        if rule is not None:
            assert idx == stage_rules.index(rule)


def test_stage_drops_rules_when_full():
    stage_rules = [TranslationRule(100 + i, 10 * i, 5) for i in range(3)]

    # Third rule does not fit, so [20, 24] stays untranslated
    results = simulate_stage(stage_rules, [Interval(0, 4), Interval(20, 24)], max_rules=2)

    assert results[0][0] == [Interval(100, 104)]
    assert results[1][0] == [Interval(20, 24)]
    assert not results[1][1]


def test_rtlil_generation():
    assert "module" in generate_il(max_rules=4, width=16)
    assert "module" in generate_formal_il(width=8)
