"""Stanza position tracking - phrase sequence, contour and harmony splits.

Defines :class:`StanzaPosition` (immutable per-step snapshot) and
:class:`StanzaTracker` (the state machine that advances through the six
phrases of each stanza).

The tracker is the only writer of position state; the weighting engine,
closure evaluator and phrase memory all read snapshots.
"""

import dataclasses
import logging
import typing

import downhome.constants
import downhome.randomness


logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class StanzaPosition:

	"""
	An immutable snapshot of the current place in the 12-bar form.

	Attributes:
		stanza: Stanza number, starting at 1.
		phrase_index: Index into ``PHRASE_SEQUENCE`` (0-5).
		step_in_phrase: Steps taken in the current phrase (0-indexed).
		steps_per_phrase: Nominal step budget of a phrase (5-12).
		contour_type: Macro shape of the stanza: ``"IB"`` (rise then fall),
			``"IA"`` (pure descent) or ``"IIB"`` (rise to a late peak).
		split_f: Whether phrase f deviates from the tonic before resolving.

	Example:
		```python
		position = tracker.get_position()

		if position.is_cadential and position.is_near_phrase_end:
			# Line-ending phrases settle on the keynote
			...
		```
	"""

	stanza: int
	phrase_index: int
	step_in_phrase: int
	steps_per_phrase: int
	contour_type: str
	split_f: bool = False

	@property
	def phrase (self) -> str:

		"""Return the phrase label (a-f)."""

		return downhome.constants.PHRASE_SEQUENCE[self.phrase_index]

	@property
	def line (self) -> int:

		"""Return the line number (1-3)."""

		return downhome.constants.PHRASE_TO_LINE[self.phrase]

	@property
	def harmony (self) -> str:

		"""Return the nominal chord of the phrase, before splits and cadence lock."""

		return downhome.constants.PHRASE_TO_HARMONY[self.phrase]

	@property
	def traits (self) -> typing.FrozenSet[str]:

		"""Return the role tags of the phrase (``line_start``, ``echo``, ...)."""

		return downhome.constants.PHRASE_TRAITS[self.phrase]

	@property
	def is_cadential (self) -> bool:

		"""Return True for the line-ending phrases b, d and f."""

		return self.phrase in downhome.constants.CADENTIAL_PHRASES

	@property
	def is_echo (self) -> bool:

		"""Return True for phrases that replay an earlier phrase."""

		return self.phrase in downhome.constants.ECHO_SOURCES

	@property
	def is_near_phrase_start (self) -> bool:

		"""Return True during the first two steps of a phrase."""

		return self.step_in_phrase < 2

	@property
	def steps_remaining (self) -> int:

		"""Return how many steps are left in the nominal budget."""

		return self.steps_per_phrase - self.step_in_phrase

	@property
	def is_near_phrase_end (self) -> bool:

		"""Return True during the last two steps of the nominal budget."""

		return self.step_in_phrase >= self.steps_per_phrase - 2

	@property
	def progress_in_phrase (self) -> float:

		"""Return how far through the phrase budget we are (0.0 to ~1.0)."""

		return self.step_in_phrase / self.steps_per_phrase

	@property
	def stanza_progress (self) -> float:

		"""Return how far through the stanza we are (0.0 to 1.0)."""

		within = min(self.progress_in_phrase, 1.0)
		return (self.phrase_index + within) / len(downhome.constants.PHRASE_SEQUENCE)


class StanzaTracker:

	"""Track the position within the stanza form: stanza, phrase and step."""

	def __init__ (
		self,
		rng: typing.Optional[downhome.randomness.RandomSource] = None,
		steps_per_phrase: int = downhome.constants.DEFAULT_STEPS_PER_PHRASE,
		split_probability: float = downhome.constants.F_SPLIT_PROBABILITY,
		e_split_step: int = downhome.constants.E_SPLIT_STEP,
		f_split_step: int = downhome.constants.F_SPLIT_STEP
	) -> None:

		"""
		Initialize at stanza 1, phrase a, step 0.

		Parameters:
			rng: Shared random source for the contour and split draws.
			steps_per_phrase: Nominal phrase budget (5-12). Drives the cadence
				windows and, when closure is disabled, the phrase length.
			split_probability: Chance that phrase f leaves the tonic chord
				before its cadence.
			e_split_step: Step at which phrase e moves from V to IV.
			f_split_step: Step at which a split phrase f returns to I.
		"""

		if split_probability < 0 or split_probability > 1:
			raise ValueError("Split probability must be between 0 and 1")

		if e_split_step < 0 or f_split_step < 0:
			raise ValueError("Split steps cannot be negative")

		self._rng = rng or downhome.randomness.RandomSource()
		self._split_probability = split_probability
		self._e_split_step = e_split_step
		self._f_split_step = f_split_step

		self._stanza: int = 1
		self._phrase_index: int = 0
		self._step_in_phrase: int = 0
		self._steps_per_phrase: int = downhome.constants.DEFAULT_STEPS_PER_PHRASE
		self._contour_type: str = downhome.constants.CONTOUR_IB
		self._split_f: bool = False

		self.set_steps_per_phrase(steps_per_phrase)

	def get_position (self) -> StanzaPosition:

		"""Return a snapshot of the current position."""

		return StanzaPosition(
			stanza = self._stanza,
			phrase_index = self._phrase_index,
			step_in_phrase = self._step_in_phrase,
			steps_per_phrase = self._steps_per_phrase,
			contour_type = self._contour_type,
			split_f = self._split_f
		)

	def advance_step (self) -> bool:

		"""Advance one step within the phrase, returning True if the step budget is exhausted."""

		self._step_in_phrase += 1

		return self._step_in_phrase >= self._steps_per_phrase

	def advance_phrase (self) -> bool:

		"""Move to the next phrase, returning True if a stanza boundary was crossed."""

		self._step_in_phrase = 0
		self._phrase_index += 1

		stanza_ended = False

		if self._phrase_index >= len(downhome.constants.PHRASE_SEQUENCE):
			self._phrase_index = 0
			self._stanza += 1
			stanza_ended = True
			self.choose_contour_type()
			logger.info(f"Stanza {self._stanza}: contour {self._contour_type}")

		self.decide_splits(downhome.constants.PHRASE_SEQUENCE[self._phrase_index])

		return stanza_ended

	def choose_contour_type (self) -> str:

		"""Draw the macro contour for the stanza (IB : IA : IIB = 17 : 3 : 2)."""

		self._contour_type = self._rng.choose_weighted(downhome.constants.CONTOUR_WEIGHTS)

		return self._contour_type

	def decide_splits (self, phrase: str) -> bool:

		"""Decide whether phrase f leaves the tonic before its cadence; other phrases never split."""

		if phrase != "f":
			self._split_f = False
			return False

		self._split_f = self._rng.chance(self._split_probability)

		if self._split_f:
			logger.debug("Phrase f: harmony split")

		return self._split_f

	def get_chord_for_position (self, position: typing.Optional[StanzaPosition] = None) -> str:

		"""
		Return the chord under a position.

		The cadence lock comes first: the last two steps of phrases b, d and
		f always sit on I. Phrase e moves from V to IV at ``e_split_step``;
		a split phrase f holds IV until ``f_split_step``.
		"""

		if position is None:
			position = self.get_position()

		phrase = position.phrase
		step = position.step_in_phrase

		if position.is_cadential and step >= position.steps_per_phrase - downhome.constants.CADENCE_LOCK_STEPS:
			return "I"

		if phrase == "e":
			return "V" if step < self._e_split_step else "IV"

		if phrase == "f" and position.split_f and step < self._f_split_step:
			return "IV"

		return position.harmony

	def set_position (self, phrase_index: int, step: int = 0) -> None:

		"""Force the phrase and step (phrase index wraps modulo six); phrase f draws its own split."""

		self._phrase_index = phrase_index % len(downhome.constants.PHRASE_SEQUENCE)
		self._step_in_phrase = max(0, step)
		self.decide_splits(downhome.constants.PHRASE_SEQUENCE[self._phrase_index])

	def set_steps_per_phrase (self, steps: int) -> None:

		"""Set the nominal phrase budget."""

		if steps < downhome.constants.MIN_STEPS_PER_PHRASE or steps > downhome.constants.MAX_STEPS_PER_PHRASE:
			raise ValueError(
				f"Steps per phrase must be between {downhome.constants.MIN_STEPS_PER_PHRASE} "
				f"and {downhome.constants.MAX_STEPS_PER_PHRASE}"
			)

		self._steps_per_phrase = steps

	def reset_stanza (self) -> None:

		"""Return to phrase a without touching the stanza counter."""

		self._phrase_index = 0
		self._step_in_phrase = 0
		self._split_f = False

	def reset_song (self, draw_contour: bool = True) -> None:

		"""Return to stanza 1, phrase a, and (unless told not to) draw a fresh contour."""

		self._stanza = 1
		self.reset_stanza()

		if draw_contour:
			self.choose_contour_type()
			logger.info(f"Stanza 1: contour {self._contour_type}")

	def restore (self, position: StanzaPosition) -> None:

		"""Restore every field from a snapshot."""

		self._stanza = position.stanza
		self._phrase_index = position.phrase_index
		self._step_in_phrase = position.step_in_phrase
		self._steps_per_phrase = position.steps_per_phrase
		self._contour_type = position.contour_type
		self._split_f = position.split_f
