"""
Rule Splitter - Hardware RTL Implementation

Applies one translation rule to one closed interval in a single
combinational step. This is the hardware counterpart of
TranslationRule.map in the software reference.

    Input interval [start, end], rule (src, dst, length)
    Rule domain: [src, src + length)

    piece 0: part below the domain, or the whole interval when the
             domain is missed entirely (passed through)
    piece 1: part inside the domain, shifted by dst - src
    piece 2: part above the domain (passed through)

Pieces come out in ascending source order, matching the software
reference, so the valid pieces can be compared one to one.
"""

from amaranth import *


NUM_PIECES = 3


class RuleSplitter(Elaboratable):
    """
    Combinational interval splitter for one translation rule.

    Ports:
        Input:
            - start_in, end_in: Closed interval to translate
            - src_in: Rule source start
            - dst_in: Rule destination start
            - len_in: Rule length (0 disables the rule)

        Output:
            - piece_start[i], piece_end[i]: Output pieces (i = 0..2)
            - piece_valid[i]: Piece i carries a value range
            - overlap: Interval and rule domain share at least one value
    """

    def __init__(self, width=64):
        self.width = width

        # Interval input
        self.start_in = Signal(width)
        self.end_in = Signal(width)

        # Rule input
        self.src_in = Signal(width)
        self.dst_in = Signal(width)
        self.len_in = Signal(width)

        # Piece outputs
        self.piece_start = [Signal(width, name=f"piece_start_{i}") for i in range(NUM_PIECES)]
        self.piece_end = [Signal(width, name=f"piece_end_{i}") for i in range(NUM_PIECES)]
        self.piece_valid = [Signal(name=f"piece_valid_{i}") for i in range(NUM_PIECES)]

        self.overlap = Signal()

    def elaborate(self, platform):
        m = Module()

        # Exclusive domain end, one bit wider so src + length cannot wrap
        src_end = Signal(self.width + 1)
        m.d.comb += src_end.eq(self.src_in + self.len_in)

        below = Signal()
        above = Signal()
        m.d.comb += [
            self.overlap.eq((self.len_in != 0) &
                            (self.start_in < src_end) &
                            (self.end_in >= self.src_in)),
            below.eq(self.overlap & (self.start_in < self.src_in)),
            above.eq(self.overlap & (self.end_in >= src_end)),
        ]

        # Overlapping part, clamped to the domain
        inner_start = Signal(self.width)
        inner_end = Signal(self.width)
        m.d.comb += [
            inner_start.eq(Mux(below, self.src_in, self.start_in)),
            inner_end.eq(Mux(above, src_end - 1, self.end_in)),
        ]

        with m.If(~self.overlap):
            m.d.comb += [
                self.piece_start[0].eq(self.start_in),
                self.piece_end[0].eq(self.end_in),
                self.piece_valid[0].eq(1),
            ]

        with m.Else():
            with m.If(below):
                m.d.comb += [
                    self.piece_start[0].eq(self.start_in),
                    self.piece_end[0].eq(self.src_in - 1),
                    self.piece_valid[0].eq(1),
                ]

            # inner - src is never negative, so the sum only needs truncating
            m.d.comb += [
                self.piece_start[1].eq(inner_start - self.src_in + self.dst_in),
                self.piece_end[1].eq(inner_end - self.src_in + self.dst_in),
                self.piece_valid[1].eq(1),
            ]

            with m.If(above):
                m.d.comb += [
                    self.piece_start[2].eq(src_end),
                    self.piece_end[2].eq(self.end_in),
                    self.piece_valid[2].eq(1),
                ]

        return m

    def ports(self):
        return [
            self.start_in, self.end_in,
            self.src_in, self.dst_in, self.len_in,
            *self.piece_start, *self.piece_end, *self.piece_valid,
            self.overlap,
        ]
