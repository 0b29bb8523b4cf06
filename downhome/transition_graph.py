import dataclasses
import math
import typing


# Intervals within this many semitones of zero count as level motion.
DIRECTION_THRESHOLD = 0.5


def frequency_to_midi (frequency: float) -> float:

	"""Convert a frequency in Hz to a fractional MIDI note number (A4 = 69)."""

	return 69.0 + 12.0 * math.log2(frequency / 440.0)


def round_half_up (value: float) -> int:

	"""Round to the nearest integer, with halves rounding up."""

	return int(math.floor(value + 0.5))


@dataclasses.dataclass(frozen=True)
class Edge:

	"""
	A directed transition between two pitches.

	Attributes:
		source: The pitch the transition leaves.
		target: The pitch the transition reaches.
		interval: Signed distance in semitones (target minus source).
		direction: ``-1`` down, ``0`` level, ``+1`` up.
	"""

	source: str
	target: str
	interval: float
	direction: int

	@property
	def size (self) -> float:

		"""Return the absolute interval in semitones."""

		return abs(self.interval)


class TransitionGraph:

	"""
	A directed graph of permissible pitch transitions with frequency metadata.

	Neighbour lists keep insertion order, which is also the candidate order
	seen by the weighting engine (and therefore the tie-break order).
	"""

	def __init__ (self, frequencies: typing.Optional[typing.Dict[str, float]] = None, tonic_pc: int = 0) -> None:

		"""
		Initialize an empty graph.

		Parameters:
			frequencies: Optional pitch -> Hz table to preload.
			tonic_pc: Pitch class of the tonic (0 = C). Pitch classes reported
				by :meth:`pitch_class` are relative to it.
		"""

		if tonic_pc < 0 or tonic_pc > 11:
			raise ValueError("Tonic pitch class must be between 0 and 11")

		self.tonic_pc = tonic_pc
		self._frequencies: typing.Dict[str, float] = {}
		self._edges: typing.Dict[str, typing.List[str]] = {}

		if frequencies:
			for pitch, hz in frequencies.items():
				self.set_frequency(pitch, hz)


	def set_frequency (self, pitch: str, frequency: float) -> None:

		"""Register (or replace) the frequency of a pitch."""

		if frequency <= 0:
			raise ValueError(f"Frequency for {pitch!r} must be positive")

		self._frequencies[pitch] = float(frequency)


	def add_transition (self, source: str, target: str) -> None:

		"""Add a directed transition; repeated transitions are ignored."""

		for pitch in (source, target):
			if pitch not in self._frequencies:
				raise ValueError(f"No frequency registered for pitch {pitch!r}")

		if source not in self._edges:
			self._edges[source] = []

		if target not in self._edges:
			self._edges[target] = []

		if target not in self._edges[source]:
			self._edges[source].append(target)


	@property
	def nodes (self) -> typing.List[str]:

		"""Return every pitch that takes part in a transition, in insertion order."""

		return list(self._edges)


	@property
	def sinks (self) -> typing.List[str]:

		"""Return the pitches with no outgoing transitions."""

		return [pitch for pitch, targets in self._edges.items() if not targets]


	@property
	def hub (self) -> str:

		"""Return the pitch with the most outgoing transitions (first on ties)."""

		if not self._edges:
			raise ValueError("Graph has no transitions")

		return max(self._edges, key=lambda pitch: len(self._edges[pitch]))


	@property
	def tonic_midi (self) -> float:

		"""Return the MIDI number of the lowest tonic-class pitch in the graph."""

		tonics = [self.midi(pitch) for pitch in self._edges if self.pitch_class(pitch) == 0]

		if not tonics:
			raise ValueError("Graph contains no tonic pitch")

		return min(tonics)


	def neighbors (self, pitch: str) -> typing.List[str]:

		"""Return the ordered targets reachable from a pitch (empty for sinks)."""

		return list(self._edges.get(pitch, []))


	def out_degree (self, pitch: str) -> int:

		"""Return how many transitions leave a pitch."""

		return len(self._edges.get(pitch, []))


	def is_sink (self, pitch: str) -> bool:

		"""Return True when a pitch has no outgoing transitions."""

		return not self._edges.get(pitch)


	def can_reach (self, source: str, predicate: typing.Callable[[str], bool]) -> bool:

		"""Return True if any one-step target of ``source`` satisfies ``predicate``."""

		return any(predicate(target) for target in self._edges.get(source, []))


	def frequency (self, pitch: str) -> float:

		"""Return the frequency of a pitch in Hz."""

		if pitch not in self._frequencies:
			raise ValueError(f"Unknown pitch {pitch!r}")

		return self._frequencies[pitch]


	def midi (self, pitch: str) -> float:

		"""Return the fractional MIDI number of a pitch."""

		return frequency_to_midi(self.frequency(pitch))


	def pitch_class (self, pitch: str) -> int:

		"""Return the pitch class relative to the tonic (0 = tonic, 7 = dominant)."""

		return (round_half_up(self.midi(pitch)) - self.tonic_pc) % 12


	def is_upper (self, pitch: str) -> bool:

		"""Return True if a pitch sits an octave or more above the lowest tonic."""

		return self.midi(pitch) >= self.tonic_midi + 12 - DIRECTION_THRESHOLD


	def edge (self, source: str, target: str) -> Edge:

		"""Describe the transition from ``source`` to ``target``."""

		interval = self.midi(target) - self.midi(source)

		if interval > DIRECTION_THRESHOLD:
			direction = 1

		elif interval < -DIRECTION_THRESHOLD:
			direction = -1

		else:
			direction = 0

		return Edge(source=source, target=target, interval=interval, direction=direction)
