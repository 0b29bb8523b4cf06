"""Probabilistic phrase termination.

After each chosen note the evaluator asks whether the phrase should end.
Below the minimum length it never does and at the maximum it always does;
in between a closure weight is built from five factors (pitch role in the
phrase, melodic direction, stanza contour, harmony and length pressure) and
turned into a probability against a fixed continuation constant::

	probability = weight / (weight + K)

A keynote arrived at by descent over the tonic chord late in a cadential
phrase is therefore almost certain to close it, while a rising note on a
clashing tone early on rarely does.
"""

import dataclasses
import logging
import math
import typing

import downhome.constants
import downhome.harmony
import downhome.randomness
import downhome.transition_graph


logger = logging.getLogger(__name__)


# Pitch-role weights per phrase role: tonic, dominant, E (pitch class 4 only), F, other.
CADENTIAL_PITCH_WEIGHTS = (18.0, 0.7, 1.0, 0.5, 0.3)
RISING_PITCH_WEIGHTS = (6.0, 4.0, 3.0, 2.0, 1.0)
DOMINANT_PITCH_WEIGHTS = (4.0, 6.0, 3.0, 1.5, 1.0)

DESCENT_FACTOR = 1.25
ASCENT_FACTOR = 0.6

CHORD_RELATION_FACTORS: typing.Dict[str, float] = {
	"root": 1.25,
	"tone": 1.1,
	"clash": 0.85,
	"neutral": 1.0,
}

LENGTH_PRESSURE = 0.2


@dataclasses.dataclass(frozen=True)
class ClosureResult:

	"""
	The decision for one note.

	Attributes:
		should_end: Whether the phrase ends on this note.
		probability: Closure probability used for the draw (0.0 or 1.0 when
			no draw was made).
		weight: Composite closure weight (``math.inf`` at the ceiling).
	"""

	should_end: bool
	probability: float
	weight: float


class ClosureEvaluator:

	"""Decide, note by note, whether a phrase has come to rest."""

	def __init__ (
		self,
		rng: typing.Optional[downhome.randomness.RandomSource] = None,
		min_length: int = downhome.constants.MIN_LENGTH,
		max_length: int = downhome.constants.MAX_LENGTH,
		continuation_k: float = downhome.constants.CONTINUATION_K
	) -> None:

		if min_length < 1 or max_length <= min_length:
			raise ValueError("Phrase length window must satisfy 1 <= min_length < max_length")

		if continuation_k <= 0:
			raise ValueError("Continuation constant must be positive")

		self._rng = rng or downhome.randomness.RandomSource()
		self.min_length = min_length
		self.max_length = max_length
		self.continuation_k = continuation_k


	def evaluate (
		self,
		pitch: str,
		step_in_phrase: int,
		phrase: str,
		contour_type: str,
		chord: typing.Optional[str],
		previous: typing.Optional[str],
		graph: downhome.transition_graph.TransitionGraph
	) -> ClosureResult:

		"""Return the closure decision for ``pitch`` as note ``step_in_phrase + 1`` of the phrase."""

		note_count = step_in_phrase + 1

		if note_count >= self.max_length:
			return ClosureResult(should_end=True, probability=1.0, weight=math.inf)

		if note_count < self.min_length:
			return ClosureResult(should_end=False, probability=0.0, weight=0.0)

		weight = self.closure_weight(pitch, note_count, phrase, contour_type, chord, previous, graph)
		probability = weight / (weight + self.continuation_k)
		should_end = self._rng.chance(probability)

		logger.debug(f"Closure {phrase}[{step_in_phrase}] {pitch}: p={probability:.2f} -> {'end' if should_end else 'continue'}")

		return ClosureResult(should_end=should_end, probability=probability, weight=weight)


	def closure_weight (
		self,
		pitch: str,
		note_count: int,
		phrase: str,
		contour_type: str,
		chord: typing.Optional[str],
		previous: typing.Optional[str],
		graph: downhome.transition_graph.TransitionGraph
	) -> float:

		"""Return the product of the five closure factors."""

		return (
			self.pitch_weight(graph, pitch, phrase)
			* self.direction_factor(graph, previous, pitch)
			* self.contour_factor(contour_type, note_count)
			* CHORD_RELATION_FACTORS[downhome.harmony.chord_relation(graph.pitch_class(pitch), chord)]
			* self.length_pressure(note_count)
		)


	@staticmethod
	def pitch_weight (graph: downhome.transition_graph.TransitionGraph, pitch: str, phrase: str) -> float:

		"""Weight a pitch by how final it sounds in this phrase role."""

		if phrase in downhome.constants.CADENTIAL_PHRASES:
			table = CADENTIAL_PITCH_WEIGHTS

		elif phrase in downhome.constants.DOMINANT_PHRASES:
			table = DOMINANT_PITCH_WEIGHTS

		else:
			table = RISING_PITCH_WEIGHTS

		tonic, dominant, mediant, subdominant, other = table
		pitch_class = graph.pitch_class(pitch)

		if pitch_class == downhome.harmony.TONIC:
			return tonic

		if pitch_class == downhome.harmony.DOMINANT:
			return dominant

		if pitch_class == downhome.harmony.MEDIANT:
			return mediant

		if pitch_class == downhome.harmony.SUBDOMINANT:
			return subdominant

		return other


	@staticmethod
	def direction_factor (graph: downhome.transition_graph.TransitionGraph, previous: typing.Optional[str], pitch: str) -> float:

		"""Descent into a note favours closure; ascent works against it."""

		if previous is None:
			return 1.0

		direction = graph.edge(previous, pitch).direction

		if direction < 0:
			return DESCENT_FACTOR

		if direction > 0:
			return ASCENT_FACTOR

		return 1.0


	def contour_factor (self, contour_type: str, note_count: int) -> float:

		"""Bias phrase length by the stanza contour."""

		progress = note_count / self.max_length

		if contour_type == downhome.constants.CONTOUR_IB:
			return 0.85 if progress < 0.4 else 1.15

		if contour_type == downhome.constants.CONTOUR_IA:
			return 0.9 + 0.2 * progress

		if contour_type == downhome.constants.CONTOUR_IIB:
			return 0.85 if progress < 0.6 else 1.1

		return 1.0


	def length_pressure (self, note_count: int) -> float:

		"""Grow the closure weight linearly across the length window."""

		span = self.max_length - self.min_length

		return 1.0 + LENGTH_PRESSURE * (note_count - self.min_length) / span
