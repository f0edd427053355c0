"""
Comprehensive testbench for TranslationStageUnit RTL implementation.

Runs the whole almanac chain on a single TranslationStageUnit, reloading
its rule register file for every stage, and compares the resulting
location intervals with the software reference.

Usage:
    python3 -m amaranth_benchs.rtl_translation_stage_tests [test_file]

Default test file: testcases/example_input.txt
"""

import os
import sys
from amaranth import *
from amaranth.sim import Simulator
from rtl.rule_splitter import NUM_PIECES
from rtl.translation_stage import TranslationStageUnit
from software_reference.almanac import (
    Interval, Pipeline, TranslationRule, TranslationStage,
    START_CATEGORY, TERMINAL_CATEGORY,
    point_intervals, range_intervals, read_input,
)


DEFAULT_INPUT = os.path.join(os.path.dirname(__file__), "..", "testcases", "example_input.txt")


async def load_rules(ctx, dut, rules):
    """Clear the unit and store rules in declaration order."""
    if len(rules) > dut.max_rules:
        raise ValueError(f"{len(rules)} rules do not fit in {dut.max_rules} slots")

    ctx.set(dut.clear, 1)
    await ctx.tick()
    ctx.set(dut.clear, 0)

    for rule in rules:
        ctx.set(dut.rule_src_in, rule.source_start)
        ctx.set(dut.rule_dst_in, rule.destination_start)
        ctx.set(dut.rule_len_in, rule.length)
        ctx.set(dut.rule_valid_in, 1)
        await ctx.tick()

    ctx.set(dut.rule_valid_in, 0)


def read_pieces(ctx, dut):
    pieces = []
    for i in range(NUM_PIECES):
        if ctx.get(dut.piece_valid[i]):
            pieces.append(Interval(ctx.get(dut.piece_start[i]), ctx.get(dut.piece_end[i])))
    return pieces


def simulate_chain(stages, intervals, start_category=START_CATEGORY,
                   terminal_category=TERMINAL_CATEGORY, max_rules=8, vcd_file=None):
    """
    Translate intervals through the stage chain on the hardware unit.

    Args:
        stages: TranslationStage list (chain order is taken from a Pipeline)
        intervals: Initial closed intervals
        vcd_file: Optional waveform dump path

    Returns:
        list: Intervals reached at the terminal category
    """
    chain = Pipeline(stages).chain(start_category, terminal_category)
    dut = TranslationStageUnit(max_rules=max_rules, width=64)
    result = []

    async def testbench(ctx):
        current = list(intervals)

        for stage in chain:
            await load_rules(ctx, dut, stage.rules)

            translated = []
            for interval in current:
                ctx.set(dut.start_in, interval.start)
                ctx.set(dut.end_in, interval.end)
                translated.extend(read_pieces(ctx, dut))
            current = translated

        result.extend(current)

    sim = Simulator(dut)
    sim.add_clock(1e-6)
    sim.add_testbench(testbench)

    if vcd_file:
        with sim.write_vcd(vcd_file):
            sim.run()
    else:
        sim.run()

    return result


def compare_results(sw_result, hw_result):
    """Compare two interval lists as multisets, printing any difference."""
    sw_sorted = sorted(sw_result)
    hw_sorted = sorted(hw_result)

    if len(sw_sorted) != len(hw_sorted):
        print(f"\n    [BAD] MISMATCH: Different number of intervals!")
        print(f"       Software: {len(sw_sorted)}, Hardware: {len(hw_sorted)}")
        return False

    mismatches = [(i, sw, hw) for i, (sw, hw) in enumerate(zip(sw_sorted, hw_sorted)) if sw != hw]
    if mismatches:
        print(f"\n    [BAD] MISMATCH: Found {len(mismatches)} differing intervals!")
        for i, sw, hw in mismatches[:5]:
            print(f"       Interval {i}: SW={tuple(sw)}, HW={tuple(hw)}")
        return False

    return True


def test_translation_stage_with_actual_data(test_file=DEFAULT_INPUT, vcd_file=None):
    """
    Run both seed readings through the hardware chain and compare
    with the software reference.
    """

    print("=" * 80)
    print("TranslationStageUnit RTL Verification")
    print("=" * 80)

    print("\n[1] Loading input data...")
    print(f"    File: {test_file}")
    almanac = read_input(test_file)
    print(f"    Loaded {len(almanac.seeds)} seed numbers, {len(almanac.stages)} maps")

    solver = almanac.solver()
    all_match = True

    for label, intervals in (("Part A (points)", point_intervals(almanac.seeds)),
                             ("Part B (ranges)", range_intervals(almanac.seeds))):
        print(f"\n[2] {label}: computing software reference...")
        sw_result = solver.translate_all(intervals)
        sw_lowest = min(interval.start for interval in sw_result)
        print(f"    Software intervals: {len(sw_result)}, lowest location: {sw_lowest}")

        print(f"\n[3] {label}: running hardware RTL simulation...")
        hw_result = simulate_chain(almanac.stages, intervals, vcd_file=vcd_file)
        hw_lowest = min(interval.start for interval in hw_result)
        print(f"    Hardware intervals: {len(hw_result)}, lowest location: {hw_lowest}")

        if compare_results(sw_result, hw_result) and sw_lowest == hw_lowest:
            print(f"    [OK] {label}: hardware and software agree")
        else:
            all_match = False

    assert all_match


def test_small_examples():
    """Single stage hand-crafted cases."""

    print("\n" + "=" * 80)
    print("Small Example Tests")
    print("=" * 80)

    test_cases = [
        {
            "name": "Split at both edges",
            "rules": [TranslationRule(50, 98, 2)],
            "input": [Interval(95, 105)],
            "expected": [Interval(95, 97), Interval(50, 51), Interval(100, 105)],
        },
        {
            "name": "Fully contained",
            "rules": [TranslationRule(52, 50, 48)],
            "input": [Interval(79, 92)],
            "expected": [Interval(81, 94)],
        },
        {
            "name": "No rule applies",
            "rules": [TranslationRule(50, 98, 2), TranslationRule(52, 50, 48)],
            "input": [Interval(0, 49)],
            "expected": [Interval(0, 49)],
        },
        {
            "name": "First overlapping rule wins",
            "rules": [TranslationRule(45, 77, 23), TranslationRule(68, 64, 13)],
            "input": [Interval(74, 87)],
            "expected": [Interval(74, 76), Interval(45, 55)],
        },
        {
            "name": "Zero length rule is skipped",
            "rules": [TranslationRule(0, 10, 0), TranslationRule(100, 10, 5)],
            "input": [Interval(10, 10)],
            "expected": [Interval(100, 100)],
        },
        {
            "name": "Domain reaching the top of the value range",
            "rules": [TranslationRule(0, 2**64 - 4, 4)],
            "input": [Interval(2**64 - 6, 2**64 - 1)],
            "expected": [Interval(2**64 - 6, 2**64 - 5), Interval(0, 3)],
        },
    ]

    all_passed = True

    for test in test_cases:
        print(f"\n  Test: {test['name']}")
        print(f"    Input: {[tuple(i) for i in test['input']]}")

        stage = TranslationStage("a", "b", test["rules"])
        sw_result = [piece for interval in test["input"] for piece in stage.resolve(interval)]
        print(f"    Software: {[tuple(i) for i in sw_result]}")

        if sw_result != test["expected"]:
            print(f"    [BAD] Software reference doesn't match expected!")
            all_passed = False
            continue

        hw_result = simulate_chain([stage], test["input"], "a", "b")
        print(f"    Hardware: {[tuple(i) for i in hw_result]}")

        if hw_result == test["expected"]:
            print(f"    [OK] PASS")
        else:
            print(f"    [BAD] FAIL: Hardware output doesn't match!")
            all_passed = False

    assert all_passed


if __name__ == "__main__":
    test_file = DEFAULT_INPUT
    if len(sys.argv) > 1:
        test_file = sys.argv[1]

    print("\n" + "=" * 80)
    print("Amaranth HDL TranslationStageUnit Verification Suite")
    print("=" * 80)

    os.makedirs("generated", exist_ok=True)

    results = {}
    for name, run in (("Small examples", test_small_examples),
                      ("Full data test", lambda: test_translation_stage_with_actual_data(
                          test_file, vcd_file="generated/translation_stage.vcd"))):
        try:
            run()
            results[name] = True
        except AssertionError:
            results[name] = False

    print("\n" + "=" * 80)
    print("Final Results")
    print("=" * 80)
    for name, passed in results.items():
        print(f"  {name}: {'[OK] PASS' if passed else '[BAD] FAIL'}")

    if all(results.values()):
        print("\n  [OK] ALL TESTS PASSED! Hardware RTL verified against software!")
        sys.exit(0)
    else:
        print("\n  [BAD] SOME TESTS FAILED!")
        sys.exit(1)
