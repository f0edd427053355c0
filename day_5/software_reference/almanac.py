"""
Almanac - Seed to Location Translation over Intervals

Pushes seed numbers through a chain of translation maps
(seed -> soil -> fertilizer -> ... -> location) and reports the lowest
location reached.

Part A treats every seed as a single value. Part B reads the seeds as
(start, length) pairs, which describe far too many values to translate one
by one, so the whole chain works on closed intervals instead:

    [95, 105] through rule "50 98 2" (domain [98, 100), offset -48)

        [95, 97]   -> [95, 97]     (outside the domain, unchanged)
        [98, 99]   -> [50, 51]     (inside the domain, shifted)
        [100, 105] -> [100, 105]   (outside the domain, unchanged)

Rule domains are half-open: [source_start, source_start + length).
"""

import re
import sys
from typing import Dict, List, NamedTuple, Optional


START_CATEGORY = "seed"
TERMINAL_CATEGORY = "location"

HEADER_RE = re.compile(r"^(\w+)-to-(\w+) map:$")


class AlmanacError(Exception):
    """Base class for almanac errors."""


class ParseError(AlmanacError):
    """Malformed almanac input."""

    def __init__(self, message, line=None, lineno=None):
        if lineno is not None:
            message = f"line {lineno}: {message}"
        if line is not None:
            message = f"{message}: {line!r}"
        super().__init__(message)
        self.line = line
        self.lineno = lineno


class MissingStageError(AlmanacError):
    """No stage translates from the category the chain has reached."""

    def __init__(self, category: str):
        super().__init__(f"no translation map from category {category!r}")
        self.category = category


class NoSeedsError(AlmanacError):
    """The initial interval set is empty, so there is no minimum."""

    def __init__(self):
        super().__init__("no seeds to translate")


class Interval(NamedTuple):
    """Closed range [start, end] of integers."""

    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    def shifted(self, offset: int) -> "Interval":
        return Interval(self.start + offset, self.end + offset)


class TranslationRule:
    """
    One line of a translation map: ``destination_start source_start length``.

    Values in [source_start, source_start + length) move by
    destination_start - source_start. Everything else is left alone.
    """

    def __init__(self, destination_start: int, source_start: int, length: int):
        self.destination_start = destination_start
        self.source_start = source_start
        self.length = length

    def __repr__(self):
        return (f"TranslationRule({self.destination_start}, "
                f"{self.source_start}, {self.length})")

    def __eq__(self, other):
        if not isinstance(other, TranslationRule):
            return NotImplemented
        return ((self.destination_start, self.source_start, self.length) ==
                (other.destination_start, other.source_start, other.length))

    @property
    def source_end(self) -> int:
        """Exclusive upper bound of the domain."""
        return self.source_start + self.length

    @property
    def offset(self) -> int:
        return self.destination_start - self.source_start

    def contains(self, value: int) -> bool:
        return self.source_start <= value < self.source_end

    def translate(self, value: int) -> int:
        if not self.contains(value):
            return value
        return value + self.offset

    def overlap(self, interval: Interval) -> Optional[Interval]:
        """
        Intersect a closed interval with the rule domain.

        Returns:
            The overlapping part as an Interval, or None when disjoint
            (always None for a zero-length rule).
        """
        start = max(interval.start, self.source_start)
        end = min(interval.end, self.source_end - 1)
        if start > end:
            return None
        return Interval(start, end)

    def map(self, interval: Interval) -> List[Interval]:
        """
        Translate an interval through this rule.

        Args:
            interval: Closed interval to translate

        Returns:
            list: Pieces in ascending source order. At most one of them is
                  translated; the others lie outside the domain and are
                  passed through unchanged.

        Algorithm:
            A work list holds the pieces still to be classified. A piece
            that is disjoint from the domain or fully inside it is final.
            A piece that straddles a domain boundary is cut at that
            boundary and both halves go back on the work list. Each cut
            removes one boundary from the piece, so a piece is cut at most
            twice.
        """
        results = []
        pending = [interval]

        while pending:
            piece = pending.pop()
            common = self.overlap(piece)

            if common is None:
                results.append(piece)
            elif common == piece:
                results.append(piece.shifted(self.offset))
            elif piece.start < self.source_start:
                # Cut at the domain start; push the upper half first so the
                # lower half comes off the stack next
                pending.append(Interval(self.source_start, piece.end))
                pending.append(Interval(piece.start, self.source_start - 1))
            else:
                # Starts inside the domain, runs past its end
                pending.append(Interval(self.source_end, piece.end))
                pending.append(Interval(piece.start, self.source_end - 1))

        return results


class TranslationStage:
    """A ``<source>-to-<destination> map`` block."""

    def __init__(self, source_category: str, destination_category: str,
                 rules: List[TranslationRule]):
        self.source_category = source_category
        self.destination_category = destination_category
        self.rules = list(rules)

    def __repr__(self):
        return (f"TranslationStage({self.source_category!r} -> "
                f"{self.destination_category!r}, {len(self.rules)} rules)")

    @property
    def name(self) -> str:
        return f"{self.source_category}-to-{self.destination_category}"

    def find_rule(self, interval: Interval) -> Optional[TranslationRule]:
        """First rule, in declaration order, whose domain overlaps."""
        for rule in self.rules:
            if rule.overlap(interval) is not None:
                return rule
        return None

    def resolve(self, interval: Interval) -> List[Interval]:
        """
        Translate an interval through this stage.

        Only the first overlapping rule is applied. The pieces it leaves
        outside its own domain come back untranslated, even where another
        rule of this stage covers them, so the result is exact only for an
        interval that meets at most one rule domain.
        """
        rule = self.find_rule(interval)
        if rule is None:
            return [interval]
        return rule.map(interval)

    def translate(self, value: int) -> int:
        for rule in self.rules:
            if rule.contains(value):
                return rule.translate(value)
        return value

    def has_disjoint_domains(self) -> bool:
        """True when no two rule domains share a value."""
        domains = sorted((rule.source_start, rule.source_end)
                         for rule in self.rules if rule.length > 0)
        for (_, prev_end), (next_start, _) in zip(domains, domains[1:]):
            if next_start < prev_end:
                return False
        return True


class Pipeline:
    """Translation stages indexed by source category."""

    def __init__(self, stages: List[TranslationStage]):
        self.stages = list(stages)
        self.by_category: Dict[str, TranslationStage] = {}

        for stage in self.stages:
            if stage.source_category in self.by_category:
                raise ParseError(
                    f"more than one map from category {stage.source_category!r}")
            self.by_category[stage.source_category] = stage

    def stage_for(self, category: str) -> TranslationStage:
        try:
            return self.by_category[category]
        except KeyError:
            raise MissingStageError(category) from None

    def chain(self, start_category: str,
              terminal_category: str) -> List[TranslationStage]:
        """
        Stages visited going from start_category to terminal_category.

        Raises:
            MissingStageError: The chain breaks before the terminal category
            ParseError: The chain loops back to a category already visited
        """
        stages = []
        visited = {start_category}
        category = start_category

        while category != terminal_category:
            stage = self.stage_for(category)
            stages.append(stage)
            category = stage.destination_category
            if category in visited and category != terminal_category:
                raise ParseError(f"translation maps loop back to {category!r}")
            visited.add(category)

        return stages

    def run(self, intervals: List[Interval], start_category: str,
            terminal_category: str) -> List[Interval]:
        current = list(intervals)

        for stage in self.chain(start_category, terminal_category):
            translated = []
            for interval in current:
                translated.extend(stage.resolve(interval))
            current = translated

        return current


def point_intervals(seeds: List[int]) -> List[Interval]:
    """Part A: every seed is a single value."""
    return [Interval(seed, seed) for seed in seeds]


def range_intervals(seeds: List[int]) -> List[Interval]:
    """
    Part B: seeds are (start, length) pairs.

    Args:
        seeds: Flat list of seed numbers, as read from the seeds line

    Returns:
        list: One closed interval [start, start + length - 1] per pair.
              Pairs with length 0 cover no values and are dropped.
    """
    if len(seeds) % 2:
        raise ParseError(f"seed ranges need (start, length) pairs, got {len(seeds)} numbers")

    intervals = []
    for start, length in zip(seeds[0::2], seeds[1::2]):
        if length > 0:
            intervals.append(Interval(start, start + length - 1))
    return intervals


class Solver:
    """Finds the lowest terminal-category value reachable from the seeds."""

    def __init__(self, pipeline: Pipeline, start_category: str,
                 terminal_category: str):
        self.pipeline = pipeline
        self.start_category = start_category
        self.terminal_category = terminal_category

    def translate_all(self, intervals: List[Interval]) -> List[Interval]:
        return self.pipeline.run(intervals, self.start_category,
                                 self.terminal_category)

    def lowest(self, intervals: List[Interval]) -> int:
        if not intervals:
            raise NoSeedsError()
        return min(interval.start for interval in self.translate_all(intervals))

    def solve_points(self, seeds: List[int]) -> int:
        return self.lowest(point_intervals(seeds))

    def solve_ranges(self, seeds: List[int]) -> int:
        return self.lowest(range_intervals(seeds))


class Almanac(NamedTuple):
    seeds: List[int]
    stages: List[TranslationStage]

    def solver(self, start_category=START_CATEGORY,
               terminal_category=TERMINAL_CATEGORY) -> Solver:
        return Solver(Pipeline(self.stages), start_category, terminal_category)


def parse_numbers(text: str, lineno: Optional[int] = None) -> List[int]:
    numbers = []
    for word in text.split():
        if not word.isdecimal():
            raise ParseError("expected non-negative integers", text, lineno)
        numbers.append(int(word))
    return numbers


def parse_rule_line(line: str, lineno: Optional[int] = None) -> TranslationRule:
    """Parse ``destination_start source_start length``."""
    numbers = parse_numbers(line, lineno)
    if len(numbers) != 3:
        raise ParseError("translation rule needs exactly three numbers", line, lineno)
    destination_start, source_start, length = numbers
    return TranslationRule(destination_start, source_start, length)


def parse_seeds(line: str, lineno: Optional[int] = None) -> List[int]:
    label, sep, rest = line.partition(":")
    if label.strip() != "seeds" or not sep:
        raise ParseError("expected 'seeds:' line", line, lineno)
    return parse_numbers(rest, lineno)


def parse_almanac(text: str) -> Almanac:
    """
    Parse the puzzle input.

    Args:
        text: Full input: a seeds line, then blank-line-separated
              ``<src>-to-<dst> map:`` blocks of rule lines

    Returns:
        Almanac: seeds and stages, stages in input order

    Raises:
        ParseError: On any malformed line, with its 1-based line number
    """
    # Blocks of (lineno, line), split on blank lines
    blocks = []
    current = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if line:
            current.append((lineno, line))
        elif current:
            blocks.append(current)
            current = []
    if current:
        blocks.append(current)

    if not blocks:
        raise ParseError("empty almanac")

    seed_block = blocks[0]
    lineno, line = seed_block[0]
    seeds = parse_seeds(line, lineno)
    if len(seed_block) > 1:
        lineno, line = seed_block[1]
        raise ParseError("expected a blank line after the seeds", line, lineno)

    stages = []
    for block in blocks[1:]:
        lineno, header = block[0]
        match = HEADER_RE.match(header)
        if match is None:
            raise ParseError("expected '<source>-to-<destination> map:' header", header, lineno)

        rules = [parse_rule_line(line, lineno) for lineno, line in block[1:]]
        stages.append(TranslationStage(match.group(1), match.group(2), rules))

    return Almanac(seeds, stages)


def read_input(filename) -> Almanac:
    """
    Read an almanac file.

    Args:
        filename: Path to input file

    Returns:
        Almanac: parsed seeds and translation stages
    """
    with open(filename) as f:
        return parse_almanac(f.read())


def solve_a(almanac: Almanac) -> int:
    """Lowest location for the seeds read as single values."""
    return almanac.solver().solve_points(almanac.seeds)


def solve_b(almanac: Almanac) -> int:
    """Lowest location for the seeds read as (start, length) ranges."""
    return almanac.solver().solve_ranges(almanac.seeds)


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python -m software_reference.almanac <input_file>")
        sys.exit(1)

    almanac = read_input(sys.argv[1])

    print(f"A: {solve_a(almanac)}")
    print(f"B: {solve_b(almanac)}")
