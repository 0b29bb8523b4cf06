"""The generator session: one pitch per call, shaped by the 12-bar form.

:class:`MelodyGenerator` owns every piece of state a melody needs - the
transition graph, the shared random source, the stanza tracker, the phrase
memory, the weighting engine, the closure evaluator, the event emitter and
a replay log - so independent melodies are simply independent instances.

Each call to :meth:`MelodyGenerator.advance` does one of two things:

- at the start of a phrase, sound the phrase's restart pitch,
- otherwise choose the next pitch from the graph (replaying the source
  phrase when the current phrase is an echo, else by weighted selection)
  and decide whether the phrase ends on it.

Example:
	```python
	import downhome

	gen = downhome.MelodyGenerator(seed=42)

	for result in gen.generate_stanzas(1):
		print(result.position.phrase, result.pitch)
	```
"""

import collections
import dataclasses
import logging
import math
import typing

import downhome.closure
import downhome.constants
import downhome.edge_rules
import downhome.event_emitter
import downhome.networks
import downhome.phrase_memory
import downhome.randomness
import downhome.stanza_state
import downhome.transition_graph
import downhome.weighting


logger = logging.getLogger(__name__)

EVENTS = ("note", "phrase_end", "stanza_end")

DEFAULT_LOG_LENGTH = 1000


@dataclasses.dataclass(frozen=True)
class StepResult:

	"""
	The outcome of one :meth:`MelodyGenerator.advance` call.

	Attributes:
		pitch: The pitch produced.
		phrase_ended: Whether the phrase ended on this pitch.
		stanza_ended: Whether the stanza ended on this pitch.
		position: Stanza position at which the pitch was produced.
		source: ``"restart"``, ``"repetition"``, ``"weighted"`` or ``"single"``.
		end_reason: ``None``, ``"closure"``, ``"ceiling"``, ``"sink"`` or ``"budget"``.
		closure: The closure decision, when one was evaluated.
		selection: The weighted choice, when one was made.
	"""

	pitch: str
	phrase_ended: bool
	stanza_ended: bool
	position: downhome.stanza_state.StanzaPosition
	source: str
	end_reason: typing.Optional[str] = None
	closure: typing.Optional[downhome.closure.ClosureResult] = None
	selection: typing.Optional[downhome.weighting.Selection] = None


@dataclasses.dataclass(frozen=True)
class _SessionState:

	position: downhome.stanza_state.StanzaPosition
	memory: downhome.phrase_memory.MemorySnapshot
	current: typing.Optional[str]
	history: typing.Tuple[str, ...]
	restart_pending: bool
	song_started: bool


@dataclasses.dataclass(frozen=True)
class LogEntry:

	"""A produced pitch and the session state right after it."""

	pitch: str
	position: downhome.stanza_state.StanzaPosition
	source: str
	end_reason: typing.Optional[str]
	state: _SessionState = dataclasses.field(repr=False, compare=False)


class MelodyGenerator:

	"""One isolated melody session over a pitch network."""

	def __init__ (
		self,
		network: typing.Union[str, downhome.networks.PitchNetwork, None] = None,
		seed: typing.Optional[int] = None,
		steps_per_phrase: int = downhome.constants.DEFAULT_STEPS_PER_PHRASE,
		use_closure: bool = True,
		variation_probability: float = downhome.constants.VARIATION_PROBABILITY,
		split_probability: float = downhome.constants.F_SPLIT_PROBABILITY,
		e_split_step: int = downhome.constants.E_SPLIT_STEP,
		f_split_step: int = downhome.constants.F_SPLIT_STEP,
		rules: typing.Optional[typing.Sequence[downhome.edge_rules.EdgeRule]] = None,
		history_length: int = downhome.constants.DEFAULT_HISTORY_LENGTH,
		log_length: int = DEFAULT_LOG_LENGTH
	) -> None:

		"""
		Create a session.

		Parameters:
			network: A :class:`~downhome.networks.PitchNetwork`, a network name
				(``"titon"``) or None for the default downhome blues network.
			seed: Seed for reproducible output. None draws from the system.
			steps_per_phrase: Nominal phrase budget (5-12). Shapes cadence
				windows; ends phrases only when ``use_closure`` is False.
			use_closure: End phrases by probabilistic closure (True) or by
				the fixed step budget (False).
			variation_probability: Chance that an echo phrase departs from
				its source at a step.
			split_probability: Chance that phrase f leaves the tonic chord.
			e_split_step: Step at which phrase e moves from V to IV.
			f_split_step: Step at which a split phrase f returns to I.
			rules: Edge rules in evaluation order (default: the built-in set).
			history_length: How many pitches of the current phrase rules see.
			log_length: How many entries the replay log keeps.
		"""

		if history_length < 2:
			raise ValueError("History length must be at least 2")

		if log_length < 1:
			raise ValueError("Log length must be positive")

		self._network = downhome.networks.resolve_network(network)
		self.graph: downhome.transition_graph.TransitionGraph = self._network.build()

		if not self.graph.nodes:
			raise ValueError("Pitch network has no transitions")

		self._rng = downhome.randomness.RandomSource(seed)

		self.tracker = downhome.stanza_state.StanzaTracker(
			rng = self._rng,
			steps_per_phrase = steps_per_phrase,
			split_probability = split_probability,
			e_split_step = e_split_step,
			f_split_step = f_split_step
		)

		self.memory = downhome.phrase_memory.PhraseMemory(rng=self._rng, variation_probability=variation_probability)
		self.weighting = downhome.weighting.EdgeWeighting(rules)
		self.closure = downhome.closure.ClosureEvaluator(rng=self._rng)
		self.use_closure = use_closure
		self.history_length = history_length

		self._emitter = downhome.event_emitter.EventEmitter(EVENTS)
		self._log: typing.Deque[LogEntry] = collections.deque(maxlen=log_length)

		self._current: typing.Optional[str] = None
		self._history: typing.List[str] = []
		self._restart_pending: bool = True
		self._song_started: bool = False
		self._last_selection: typing.Optional[downhome.weighting.Selection] = None
		self._start_state = self._capture_state()


	# Seeding

	@property
	def seed (self) -> typing.Optional[int]:

		"""Return the active seed, or None when unseeded."""

		return self._rng.seed

	def set_seed (self, seed: int) -> None:

		"""Reseed the shared random source."""

		self._rng.set_seed(seed)

	def clear_seed (self) -> None:

		"""Return to non-deterministic output."""

		self._rng.clear_seed()


	# Events

	def on (self, event_name: str, callback: downhome.event_emitter.CallbackType) -> None:

		"""
		Register a listener.

		``note`` listeners receive the :class:`StepResult`; ``phrase_end``
		listeners receive the position of the phrase that ended and the end
		reason; ``stanza_end`` listeners receive the stanza number that ended.
		"""

		self._emitter.on(event_name, callback)

	def off (self, event_name: str, callback: downhome.event_emitter.CallbackType) -> None:

		"""Unregister a listener."""

		self._emitter.off(event_name, callback)


	# Generation

	@property
	def current_pitch (self) -> typing.Optional[str]:

		"""Return the most recent pitch, or None before the first call."""

		return self._current

	def get_position (self) -> downhome.stanza_state.StanzaPosition:

		"""Return the position the next chosen pitch will occupy."""

		return self.tracker.get_position()

	def advance (
		self,
		current_pitch: typing.Optional[str] = None,
		history: typing.Optional[typing.Sequence[str]] = None
	) -> StepResult:

		"""
		Produce the next pitch.

		Parameters:
			current_pitch: Override the pitch to move from (for example when
				a performer deviates). A sink or unknown pitch ends the phrase.
			history: Override the pitches of the current phrase, ending with
				the current pitch.
		"""

		if not self._song_started:
			self.tracker.reset_song()
			self._song_started = True

		if history is not None:
			self._history = list(history)[-self.history_length:]

			if current_pitch is None and self._history:
				current_pitch = self._history[-1]

		if current_pitch is not None:

			if history is None and current_pitch != self._current:
				self._history = [current_pitch]

			self._current = current_pitch

		if self._restart_pending or self._current is None:
			return self._restart()

		candidates = self.graph.neighbors(self._current)

		if not candidates:
			# Decision path: a sink can only be current through an override - close and restart.
			logger.debug(f"No transitions from {self._current}: closing phrase")
			self._finish_phrase(self.tracker.get_position(), "sink")
			return self._restart()

		return self._choose(candidates)

	def generate_stanzas (self, count: int) -> typing.List[StepResult]:

		"""Advance until ``count`` stanzas have ended and return every result."""

		if count < 0:
			raise ValueError("Stanza count cannot be negative")

		results: typing.List[StepResult] = []
		completed = 0

		while completed < count:
			result = self.advance()
			results.append(result)

			if result.stanza_ended:
				completed += 1

		return results

	def reset (self) -> None:

		"""Start a new song: position, memory and log are cleared, the random source is kept."""

		self.tracker.reset_song(draw_contour=False)
		self.memory.clear_phrases()
		self._log.clear()
		self._current = None
		self._history = []
		self._restart_pending = True
		self._song_started = False
		self._last_selection = None
		self._start_state = self._capture_state()


	# Diagnostics

	@property
	def last_selection (self) -> typing.Optional[downhome.weighting.Selection]:

		"""Return the most recent weighted choice, or None."""

		return self._last_selection

	def explain (self, current_pitch: typing.Optional[str] = None) -> typing.List[downhome.weighting.ScoredCandidate]:

		"""Score the candidates of the next step without drawing or changing state."""

		pitch = current_pitch if current_pitch is not None else self._current

		if pitch is None or (current_pitch is None and self._restart_pending):
			return []

		candidates = self.graph.neighbors(pitch)

		if not candidates:
			return []

		history = self._history if pitch == self._current else [pitch]

		return self.weighting.score(pitch, history, candidates, self.tracker.get_position(), self.graph)

	def memory_snapshot (self) -> downhome.phrase_memory.MemorySnapshot:

		"""Return an immutable copy of the phrase memory."""

		return self.memory.snapshot()


	# Replay log

	@property
	def log (self) -> typing.Tuple[LogEntry, ...]:

		"""Return the replay log, oldest first."""

		return tuple(self._log)

	def rewind (self, index: int) -> LogEntry:

		"""
		Return the session to the moment just after log entry ``index``.

		Later entries are discarded. The random source is not rewound, so
		generation resumes along a fresh path. Negative indexes count from
		the end.
		"""

		if index < 0:
			index += len(self._log)

		if index < 0 or index >= len(self._log):
			raise IndexError(f"Log index out of range (log has {len(self._log)} entries)")

		while len(self._log) > index + 1:
			self._log.pop()

		entry = self._log[index]
		self._restore_state(entry.state)

		logger.debug(f"Rewound to {entry.pitch} at {entry.position.phrase}[{entry.position.step_in_phrase}]")

		return entry

	def back (self) -> typing.Optional[LogEntry]:

		"""Undo the most recent pitch; return the entry now current, or None at the start."""

		if len(self._log) >= 2:
			return self.rewind(len(self._log) - 2)

		if self._log:
			self._log.clear()
			self._restore_state(self._start_state)

		return None


	# Internals

	def _restart (self) -> StepResult:

		"""Sound the restart pitch of the phrase at the current position."""

		position = self.tracker.get_position()
		options = self._network.restart_options(self.graph, position.phrase)

		if len(options) == 1:
			pitch = options[0][0]

		else:
			pitch = self._rng.choose_weighted(options)

		logger.debug(f"Phrase {position.phrase} (stanza {position.stanza}): restart on {pitch}")

		self.memory.record_note(position.phrase, pitch)
		self._current = pitch
		self._history = [pitch]
		self._restart_pending = False

		result = StepResult(
			pitch = pitch,
			phrase_ended = False,
			stanza_ended = False,
			position = position,
			source = "restart"
		)

		self._record(result)
		self._emitter.emit("note", result)

		return result

	def _choose (self, candidates: typing.List[str]) -> StepResult:

		"""Choose the next pitch from the current one and decide whether the phrase ends."""

		position = self.tracker.get_position()
		previous = self._current
		pitch: typing.Optional[str] = None
		selection: typing.Optional[downhome.weighting.Selection] = None
		source = "repetition"

		if position.is_echo:
			pitch = self.memory.get_repetition_note(position.phrase, position.step_in_phrase, candidates)

		if pitch is None:
			selection = self.weighting.select(previous, self._history, candidates, position, self.graph, self._rng)
			pitch = selection.pitch
			source = "single" if len(candidates) == 1 else "weighted"
			self._last_selection = selection

		self.memory.record_note(position.phrase, pitch)
		self._current = pitch
		self._history.append(pitch)
		del self._history[:-self.history_length]

		closure: typing.Optional[downhome.closure.ClosureResult] = None
		end_reason: typing.Optional[str] = None

		if self.graph.is_sink(pitch):
			end_reason = "sink"

		elif self.use_closure:

			closure = self.closure.evaluate(
				pitch = pitch,
				step_in_phrase = position.step_in_phrase,
				phrase = position.phrase,
				contour_type = position.contour_type,
				chord = self.tracker.get_chord_for_position(position),
				previous = previous,
				graph = self.graph
			)

			if closure.should_end:
				end_reason = "ceiling" if math.isinf(closure.weight) else "closure"

		budget_exhausted = self.tracker.advance_step()

		if end_reason is None and not self.use_closure and budget_exhausted:
			end_reason = "budget"

		stanza_ended = False

		if end_reason is not None:
			stanza_ended = self._finish_phrase(position, end_reason, emit=False)

		result = StepResult(
			pitch = pitch,
			phrase_ended = end_reason is not None,
			stanza_ended = stanza_ended,
			position = position,
			source = source,
			end_reason = end_reason,
			closure = closure,
			selection = selection
		)

		self._record(result)
		self._emitter.emit("note", result)

		if end_reason is not None:
			self._emit_phrase_end(position, end_reason, stanza_ended)

		return result

	def _finish_phrase (self, position: downhome.stanza_state.StanzaPosition, reason: str, emit: bool = True) -> bool:

		"""Freeze the phrase if it is a source, move to the next phrase, and return True at a stanza boundary."""

		self.memory.freeze_phrase(position.phrase)

		stanza_ended = self.tracker.advance_phrase()

		if stanza_ended:
			self.memory.clear_phrases()

		self._restart_pending = True
		self._history = []

		logger.debug(f"Phrase {position.phrase} ended ({reason}) after {position.step_in_phrase + 1} notes")

		if emit:
			self._emit_phrase_end(position, reason, stanza_ended)

		return stanza_ended

	def _emit_phrase_end (self, position: downhome.stanza_state.StanzaPosition, reason: str, stanza_ended: bool) -> None:

		self._emitter.emit("phrase_end", position, reason)

		if stanza_ended:
			self._emitter.emit("stanza_end", position.stanza)

	def _capture_state (self) -> _SessionState:

		return _SessionState(
			position = self.tracker.get_position(),
			memory = self.memory.snapshot(),
			current = self._current,
			history = tuple(self._history),
			restart_pending = self._restart_pending,
			song_started = self._song_started
		)

	def _restore_state (self, state: _SessionState) -> None:

		self.tracker.restore(state.position)
		self.memory.restore(state.memory)
		self._current = state.current
		self._history = list(state.history)
		self._restart_pending = state.restart_pending
		self._song_started = state.song_started

	def _record (self, result: StepResult) -> None:

		self._log.append(LogEntry(
			pitch = result.pitch,
			position = result.position,
			source = result.source,
			end_reason = result.end_reason,
			state = self._capture_state()
		))
