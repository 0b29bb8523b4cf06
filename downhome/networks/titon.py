"""The downhome blues pitch network.

Transitions follow Titon's summary network of downhome blues melody
(*Early Downhome Blues*, figure 64), notated as LilyPond pitches: ``ees``
is E flat, ``eeh`` E quarter-flat, ``ges`` G flat, ``bes`` B flat, and each
``'`` raises an octave (``c'`` is middle C).

The network spans three overlapping regions: the lower E complex around
``c'``, the G - C' region around the hub ``g'``, and the upper E' complex
around ``c''``. ``c'`` is the only sink.
"""

import typing

import downhome.networks
import downhome.transition_graph


FREQUENCIES: typing.Dict[str, float] = {
	"c'": 261.63,
	"d'": 293.66,
	"ees'": 311.13,
	"eeh'": 320.24,
	"e'": 329.63,
	"f'": 349.23,
	"ges'": 369.99,
	"g'": 392.00,
	"a'": 440.00,
	"bes'": 466.16,
	"b'": 493.88,
	"c''": 523.25,
	"d''": 587.33,
	"ees''": 622.25,
	"eeh''": 640.49,
	"e''": 659.26,
}

TRANSITIONS: typing.List[typing.Tuple[str, str]] = [

	# Lower region: E complex down to the keynote, up through F to G.
	("ees'", "c'"),
	("ees'", "eeh'"),
	("eeh'", "e'"),
	("ees'", "e'"),
	("e'", "f'"),
	("f'", "e'"),
	("e'", "c'"),
	("f'", "g'"),
	("g'", "f'"),
	("g'", "ges'"),
	("ges'", "g'"),
	("e'", "g'"),
	("g'", "e'"),
	("g'", "ees'"),

	# Middle region: G up through A and the Bb complex to C'.
	("g'", "a'"),
	("g'", "bes'"),
	("bes'", "b'"),
	("a'", "c''"),
	("a'", "g'"),
	("bes'", "g'"),
	("b'", "bes'"),
	("c''", "bes'"),
	("b'", "g'"),
	("a'", "b'"),
	("c''", "g'"),

	# Upper region: the E' complex around C'.
	("c''", "eeh''"),
	("eeh''", "e''"),
	("e''", "eeh''"),
	("eeh''", "ees''"),
	("ees''", "eeh''"),
	("eeh''", "c''"),
	("d''", "c''"),
	("ees''", "d''"),
	("d''", "ees''"),
	("c''", "ees''"),
	("ees''", "c''"),
]

HUB = "g'"
UPPER_TONIC = "c''"
SUBMEDIANT = "a'"


class TitonNetwork (downhome.networks.PitchNetwork):

	"""The downhome blues network in C."""

	def build (self) -> downhome.transition_graph.TransitionGraph:

		"""Build the graph from the transition table."""

		graph = downhome.transition_graph.TransitionGraph(frequencies=FREQUENCIES, tonic_pc=0)

		for source, target in TRANSITIONS:
			graph.add_transition(source, target)

		return graph

	def restart_options (self, graph: downhome.transition_graph.TransitionGraph, phrase: str) -> typing.List[typing.Tuple[str, float]]:

		"""
		Return weighted restart pitches for a phrase.

		Rising phrases (a, c) restart on G so the opening can lift to C'.
		The dominant phrase (e) restarts on G or on A below the Bb complex.
		Everything else mostly restarts on the hub, sometimes on C'.
		"""

		if phrase in ("a", "c"):
			return [(HUB, 1.0)]

		if phrase == "e":
			return [(HUB, 6.0), (SUBMEDIANT, 4.0)]

		return [(HUB, 7.0), (UPPER_TONIC, 3.0)]
