"""Chord context and pitch-role helpers.

Chords are opaque tags (``"I"``, ``"IV"``, ``"V"``) produced by the stanza
tracker. Pitch classes here are relative to the tonic, so the tables read
as if the key were C.
"""

import typing

import downhome.transition_graph


TONIC = 0
SUPERTONIC = 2
FLAT_MEDIANT = 3
MEDIANT = 4
SUBDOMINANT = 5
FLAT_FIFTH = 6
DOMINANT = 7
SUBMEDIANT = 9
FLAT_SEVENTH = 10
LEADING = 11

CHORD_ROOTS: typing.Dict[str, int] = {
	"I": TONIC,
	"IV": SUBDOMINANT,
	"V": DOMINANT,
}

CHORD_TONES: typing.Dict[str, typing.FrozenSet[int]] = {
	"I": frozenset({TONIC, MEDIANT, DOMINANT}),
	"IV": frozenset({SUBDOMINANT, SUBMEDIANT, TONIC}),
	"V": frozenset({DOMINANT, LEADING, SUPERTONIC}),
}

# Pitches that rub against the chord and make weak resting points.
CHORD_CLASHES: typing.Dict[str, typing.FrozenSet[int]] = {
	"I": frozenset({1, FLAT_FIFTH}),
	"IV": frozenset({MEDIANT, LEADING}),
	"V": frozenset({TONIC, FLAT_FIFTH}),
}

BB_COMPLEX: typing.FrozenSet[int] = frozenset({FLAT_SEVENTH, LEADING})
E_COMPLEX: typing.FrozenSet[int] = frozenset({FLAT_MEDIANT, MEDIANT})
TONIC_TRIAD: typing.FrozenSet[int] = CHORD_TONES["I"]


def chord_relation (pitch_class: int, chord: typing.Optional[str]) -> str:

	"""Classify a pitch class against a chord as ``root``, ``tone``, ``clash`` or ``neutral``."""

	if chord is None or chord not in CHORD_ROOTS:
		return "neutral"

	if pitch_class == CHORD_ROOTS[chord]:
		return "root"

	if pitch_class in CHORD_TONES[chord]:
		return "tone"

	if pitch_class in CHORD_CLASHES[chord]:
		return "clash"

	return "neutral"


def is_tonic (graph: downhome.transition_graph.TransitionGraph, pitch: str) -> bool:

	"""Return True for any octave of the keynote."""

	return graph.pitch_class(pitch) == TONIC


def is_dominant (graph: downhome.transition_graph.TransitionGraph, pitch: str) -> bool:

	"""Return True for any octave of the fifth degree."""

	return graph.pitch_class(pitch) == DOMINANT


def is_bb_complex (graph: downhome.transition_graph.TransitionGraph, pitch: str) -> bool:

	"""Return True for Bb or B."""

	return graph.pitch_class(pitch) in BB_COMPLEX


def is_e_complex (graph: downhome.transition_graph.TransitionGraph, pitch: str) -> bool:

	"""Return True for Eb, E quarter-flat or E."""

	return graph.pitch_class(pitch) in E_COMPLEX


def is_upper_tonic (graph: downhome.transition_graph.TransitionGraph, pitch: str) -> bool:

	"""Return True for the keynote an octave above the lowest tonic (C')."""

	return is_tonic(graph, pitch) and graph.is_upper(pitch)
