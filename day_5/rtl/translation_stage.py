"""
Translation Stage - Hardware RTL Implementation

One "<source>-to-<destination> map" of the almanac in hardware.

Architecture:
    Rule loading:  rule_src_in / rule_dst_in / rule_len_in stream
                   -> register file (max_rules entries)
    Resolution:    interval -> priority encoder (first overlapping rule)
                   -> RuleSplitter -> up to 3 pieces

Resolution is purely combinational: a new interval can be presented every
cycle and its pieces are valid in the same cycle. As in
TranslationStage.resolve, only the first overlapping rule is applied and
the pieces left outside its domain are passed through unchanged.
"""

from amaranth import *
from rtl.rule_splitter import RuleSplitter, NUM_PIECES


class TranslationStageUnit(Elaboratable):
    """
    Loadable translation stage.

    Ports:
        Input (rule loading phase):
            - rule_src_in, rule_dst_in, rule_len_in: Rule to store
            - rule_valid_in: Store the rule at the next free slot
            - clear: Forget all stored rules

        Input (resolution):
            - start_in, end_in: Closed interval to translate

        Output:
            - piece_start[i], piece_end[i], piece_valid[i]: Pieces (i = 0..2)
            - hit: Some stored rule overlaps the interval
            - rule_idx: Index of the rule applied (valid when hit)
            - rule_count: Number of rules stored
            - full: Register file is full, further rules are dropped
    """

    def __init__(self, max_rules=8, width=64):
        self.max_rules = max_rules
        self.width = width

        # Rule loading interface
        self.rule_src_in = Signal(width)
        self.rule_dst_in = Signal(width)
        self.rule_len_in = Signal(width)
        self.rule_valid_in = Signal()
        self.clear = Signal()

        # Interval input
        self.start_in = Signal(width)
        self.end_in = Signal(width)

        # Outputs
        self.piece_start = [Signal(width, name=f"piece_start_{i}") for i in range(NUM_PIECES)]
        self.piece_end = [Signal(width, name=f"piece_end_{i}") for i in range(NUM_PIECES)]
        self.piece_valid = [Signal(name=f"piece_valid_{i}") for i in range(NUM_PIECES)]
        self.hit = Signal()
        self.rule_idx = Signal(range(max_rules))
        self.rule_count = Signal(range(max_rules + 1))
        self.full = Signal()

    def elaborate(self, platform):
        m = Module()
        m.submodules.splitter = splitter = RuleSplitter(width=self.width)

        # =============================================================
        # RULE REGISTER FILE
        # =============================================================

        rule_src = [Signal(self.width, name=f"rule_src_{i}") for i in range(self.max_rules)]
        rule_dst = [Signal(self.width, name=f"rule_dst_{i}") for i in range(self.max_rules)]
        rule_len = [Signal(self.width, name=f"rule_len_{i}") for i in range(self.max_rules)]

        m.d.comb += self.full.eq(self.rule_count == self.max_rules)

        with m.If(self.clear):
            m.d.sync += self.rule_count.eq(0)

        with m.Elif(self.rule_valid_in & ~self.full):
            for i in range(self.max_rules):
                with m.If(self.rule_count == i):
                    m.d.sync += [
                        rule_src[i].eq(self.rule_src_in),
                        rule_dst[i].eq(self.rule_dst_in),
                        rule_len[i].eq(self.rule_len_in),
                    ]
            m.d.sync += self.rule_count.eq(self.rule_count + 1)

        # =============================================================
        # RULE SELECTION
        # =============================================================

        hits = []
        for i in range(self.max_rules):
            hit = Signal(name=f"hit_{i}")
            m.d.comb += hit.eq((self.rule_count > i) &
                               (rule_len[i] != 0) &
                               (self.start_in < rule_src[i] + rule_len[i]) &
                               (self.end_in >= rule_src[i]))
            hits.append(hit)

        # Later assignments win, so walk backwards: lowest index has priority
        for i in reversed(range(self.max_rules)):
            with m.If(hits[i]):
                m.d.comb += [
                    splitter.src_in.eq(rule_src[i]),
                    splitter.dst_in.eq(rule_dst[i]),
                    splitter.len_in.eq(rule_len[i]),
                    self.rule_idx.eq(i),
                ]

        # With no hit the splitter sees a zero-length rule and passes through
        m.d.comb += [
            self.hit.eq(Cat(*hits).any()),
            splitter.start_in.eq(self.start_in),
            splitter.end_in.eq(self.end_in),
        ]

        for i in range(NUM_PIECES):
            m.d.comb += [
                self.piece_start[i].eq(splitter.piece_start[i]),
                self.piece_end[i].eq(splitter.piece_end[i]),
                self.piece_valid[i].eq(splitter.piece_valid[i]),
            ]

        return m

    def ports(self):
        return [
            self.rule_src_in, self.rule_dst_in, self.rule_len_in,
            self.rule_valid_in, self.clear,
            self.start_in, self.end_in,
            *self.piece_start, *self.piece_end, *self.piece_valid,
            self.hit, self.rule_idx, self.rule_count, self.full,
        ]


def generate_il(max_rules=8, width=64):
    """Generate RTLIL for the translation stage."""
    from amaranth.back import rtlil

    dut = TranslationStageUnit(max_rules=max_rules, width=width)
    return rtlil.convert(dut, ports=dut.ports())


if __name__ == "__main__":
    import os

    os.makedirs("generated", exist_ok=True)
    filename = "generated/translation_stage.il"
    with open(filename, "w") as f:
        f.write(generate_il())

    print(f"Generated {filename}")
