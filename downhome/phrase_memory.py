"""Melodic memory for phrase repetition.

In downhome blues the second line (phrases c and d) more or less repeats
the first (a and b) even as the harmony moves to IV underneath, and the
closing phrase f usually restates b. :class:`PhraseMemory` records what was
sung in each phrase, freezes a and b when they end, and answers "what did
the source phrase do at this step?" for the echo phrases.

Echoes are allowed to drift: a small variation chance hands the step back
to free weighted selection, and any target that the graph cannot reach from
the current pitch is skipped the same way.
"""

import dataclasses
import logging
import typing

import downhome.constants
import downhome.randomness


logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class MemorySnapshot:

	"""An immutable copy of the live records and frozen phrases."""

	live: typing.Dict[str, typing.Tuple[str, ...]]
	frozen: typing.Dict[str, typing.Optional[typing.Tuple[str, ...]]]


class PhraseMemory:

	"""Records phrase melodies and replays frozen source phrases for echo phrases."""

	def __init__ (
		self,
		rng: typing.Optional[downhome.randomness.RandomSource] = None,
		variation_probability: float = downhome.constants.VARIATION_PROBABILITY
	) -> None:

		"""
		Initialise empty records.

		Parameters:
			rng: Shared random source for the variation draw.
			variation_probability: Chance that a reachable echo note is
				skipped in favour of free selection (default 0.1).
		"""

		if variation_probability < 0 or variation_probability > 1:
			raise ValueError("Variation probability must be between 0 and 1")

		self._rng = rng or downhome.randomness.RandomSource()
		self.variation_probability = variation_probability

		self._live: typing.Dict[str, typing.List[str]] = {
			phrase: [] for phrase in downhome.constants.PHRASE_SEQUENCE
		}

		self._frozen: typing.Dict[str, typing.Optional[typing.Tuple[str, ...]]] = {
			phrase: None for phrase in downhome.constants.SOURCE_PHRASES
		}


	def record_note (self, phrase: str, pitch: str) -> None:

		"""Append a pitch to the live record of a phrase (unknown labels are ignored)."""

		if phrase in self._live:
			self._live[phrase].append(pitch)


	def freeze_phrase (self, phrase: str) -> None:

		"""Snapshot the live record of a source phrase (a or b) for later echoes."""

		if phrase not in self._frozen:
			return

		self._frozen[phrase] = tuple(self._live[phrase])
		logger.debug(f"Froze phrase {phrase}: {' -> '.join(self._frozen[phrase])}")


	@staticmethod
	def source_for (phrase: str) -> typing.Optional[str]:

		"""Return the source phrase an echo phrase replays (c -> a, d -> b, f -> b)."""

		return downhome.constants.ECHO_SOURCES.get(phrase)


	def is_echo (self, phrase: str) -> bool:

		"""Return True if the phrase replays an earlier phrase."""

		return phrase in downhome.constants.ECHO_SOURCES


	def get_repetition_note (
		self,
		phrase: str,
		step_in_phrase: int,
		candidates: typing.Sequence[str]
	) -> typing.Optional[str]:

		"""
		Return the source phrase's pitch for this step, or None to defer to weighted selection.

		The lookup index is ``step_in_phrase + 1`` because index 0 of the
		frozen source is its restart note, which the echo phrase has already
		sounded.
		"""

		source = self.source_for(phrase)

		if source is None:
			return None

		melody = self._frozen.get(source)
		index = step_in_phrase + 1

		if melody is None or index >= len(melody):
			# Decision path: frozen melody missing or exhausted - generate freely.
			return None

		target = melody[index]

		if target not in candidates:
			# Decision path: target unreachable from here - generate freely.
			return None

		if self._rng.chance(self.variation_probability):
			logger.debug(f"Phrase {phrase}: varied step {step_in_phrase} instead of {target}")
			return None

		logger.debug(f"Phrase {phrase}: repeating {target} from phrase {source}")

		return target


	def get_phrase_melody (self, phrase: str) -> typing.List[str]:

		"""Return a copy of the live record of a phrase."""

		return list(self._live.get(phrase, []))


	def get_frozen (self, phrase: str) -> typing.Optional[typing.Tuple[str, ...]]:

		"""Return the frozen melody of a source phrase, or None."""

		return self._frozen.get(phrase)


	def clear_phrases (self) -> None:

		"""Forget all live records and frozen phrases (new stanza)."""

		for phrase in self._live:
			self._live[phrase] = []

		for phrase in self._frozen:
			self._frozen[phrase] = None


	def snapshot (self) -> MemorySnapshot:

		"""Return an immutable copy of the memory state."""

		return MemorySnapshot(
			live = {phrase: tuple(notes) for phrase, notes in self._live.items()},
			frozen = dict(self._frozen)
		)


	def restore (self, snapshot: MemorySnapshot) -> None:

		"""Replace the memory state with a snapshot."""

		self._live = {phrase: list(notes) for phrase, notes in snapshot.live.items()}
		self._frozen = dict(snapshot.frozen)


	def debug_info (self) -> typing.Dict[str, int]:

		"""Return the number of recorded notes per phrase."""

		return {phrase: len(notes) for phrase, notes in self._live.items()}
