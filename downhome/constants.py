"""Reference constants for the downhome generator.

Phrase structure of one stanza (three lines, two phrases each):

- Line 1 (bars 1-4): phrases ``a``, ``b`` over I
- Line 2 (bars 5-8): phrases ``c``, ``d`` over IV then I
- Line 3 (bars 9-12): phrases ``e``, ``f`` over V then I

Phrase lengths, closure and repetition constants are the tuned reference
values; every component accepts overrides at construction.
"""

import typing


PHRASE_SEQUENCE: typing.Tuple[str, ...] = ("a", "b", "c", "d", "e", "f")

PHRASE_TO_LINE: typing.Dict[str, int] = {
	"a": 1, "b": 1,
	"c": 2, "d": 2,
	"e": 3, "f": 3,
}

PHRASE_TO_HARMONY: typing.Dict[str, str] = {
	"a": "I", "b": "I",
	"c": "IV", "d": "I",
	"e": "V", "f": "I",
}

PHRASE_TRAITS: typing.Dict[str, typing.FrozenSet[str]] = {
	"a": frozenset({"line_start", "rising"}),
	"b": frozenset({"line_end", "falling"}),
	"c": frozenset({"line_start", "rising", "echo"}),
	"d": frozenset({"line_end", "falling", "echo"}),
	"e": frozenset({"line_start", "dominant"}),
	"f": frozenset({"line_end", "falling", "echo", "stanza_end"}),
}

CADENTIAL_PHRASES: typing.FrozenSet[str] = frozenset({"b", "d", "f"})
RISING_PHRASES: typing.FrozenSet[str] = frozenset({"a", "c"})
DOMINANT_PHRASES: typing.FrozenSet[str] = frozenset({"e"})

# Echo phrase -> source phrase whose frozen melody it replays.
ECHO_SOURCES: typing.Dict[str, str] = {
	"c": "a",
	"d": "b",
	"f": "b",
}

SOURCE_PHRASES: typing.FrozenSet[str] = frozenset(ECHO_SOURCES.values())

# Phrase length window (in chosen notes, restart note excluded).
MIN_LENGTH = 5
MAX_LENGTH = 12

# Continuation constant: closure probability = weight / (weight + K).
CONTINUATION_K = 5.0

DEFAULT_STEPS_PER_PHRASE = 8
MIN_STEPS_PER_PHRASE = 5
MAX_STEPS_PER_PHRASE = 12

CONTOUR_IB = "IB"
CONTOUR_IA = "IA"
CONTOUR_IIB = "IIB"

# Rise-then-fall dominates; pure descent and rise-to-peak are rarer.
CONTOUR_WEIGHTS: typing.List[typing.Tuple[str, int]] = [
	(CONTOUR_IB, 17),
	(CONTOUR_IA, 3),
	(CONTOUR_IIB, 2),
]

VARIATION_PROBABILITY = 0.10
F_SPLIT_PROBABILITY = 0.35

# Phrase e moves from V to IV at this step (bar 10 of the form).
E_SPLIT_STEP = 4

# Phrase f, when split, stays on IV until this step before returning to I.
F_SPLIT_STEP = 2

# Number of final steps of a cadential phrase locked to the tonic chord.
CADENCE_LOCK_STEPS = 2

DEFAULT_HISTORY_LENGTH = 10
