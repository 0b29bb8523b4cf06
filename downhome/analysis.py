"""Offline analysis: network structure and batch-run statistics.

:func:`analyze_network` describes a transition graph on its own - sinks,
hub, out-degrees, the transition matrix of an unbiased random walk, where
that walk spends its time and how quickly it forgets where it started.
:func:`simulate` runs a seeded generator for many stanzas and counts how
the form behaved: how often cadential phrases closed on the keynote, how
long phrases ran and why they ended, and how faithfully echo phrases
replayed their sources.
"""

import collections
import dataclasses
import logging
import math
import random
import typing

import downhome.constants
import downhome.generator
import downhome.harmony
import downhome.randomness
import downhome.transition_graph


logger = logging.getLogger(__name__)

POWER_ITERATIONS = 2000
CONVERGENCE_TOLERANCE = 1e-12

EIGENVALUE_ITERATIONS = 500
EIGENVALUE_SEED = 0


@dataclasses.dataclass(frozen=True)
class NetworkReport:

	"""
	Structural facts about a transition graph.

	Attributes:
		transition_matrix: Row-stochastic matrix as ``{from: {to: probability}}``;
			sinks move to the hub with probability 1.
		stationary: Long-run share of time the walk spends on each pitch.
		second_eigenvalue: Modulus of the second largest eigenvalue of the matrix.
		mixing_time: ``-1 / ln(second_eigenvalue)``, in steps; 0 when the walk
			forgets its start at once, infinite when it never does.
	"""

	nodes: typing.Tuple[str, ...]
	sinks: typing.Tuple[str, ...]
	hub: str
	out_degrees: typing.Dict[str, int]
	transition_matrix: typing.Dict[str, typing.Dict[str, float]]
	stationary: typing.Dict[str, float]
	second_eigenvalue: float
	mixing_time: float
	edge_count: int


@dataclasses.dataclass
class RunReport:

	"""
	Statistics gathered from a batch of generated stanzas.

	Attributes:
		seed: Seed the run used (generated when none was given).
		stanzas: Stanzas generated.
		notes: Pitches produced, restart pitches included.
		cadence_attempts: Phrases b, d and f that ended.
		cadence_hits: Of those, how many ended on the keynote.
		phrase_lengths: Phrase label -> note counts (restart pitch excluded).
		end_reasons: End reason -> count.
		ending_pitches: Pitch -> number of phrases ending on it.
		contours: Contour type -> number of stanzas.
		echo_reachable: Echo steps whose source pitch was one transition away.
		echo_hits: Of those, how many replayed the source pitch.
		echo_reachable_by_phrase: ``echo_reachable`` split by echo phrase (c, d, f).
		echo_hits_by_phrase: ``echo_hits`` split by echo phrase.
		forced_short: Phrases that ended before the minimum length.
	"""

	seed: int
	stanzas: int = 0
	notes: int = 0
	cadence_attempts: int = 0
	cadence_hits: int = 0
	phrase_lengths: typing.Dict[str, typing.List[int]] = dataclasses.field(default_factory=lambda: collections.defaultdict(list))
	end_reasons: typing.Counter[str] = dataclasses.field(default_factory=collections.Counter)
	ending_pitches: typing.Counter[str] = dataclasses.field(default_factory=collections.Counter)
	contours: typing.Counter[str] = dataclasses.field(default_factory=collections.Counter)
	echo_reachable: int = 0
	echo_hits: int = 0
	echo_reachable_by_phrase: typing.Counter[str] = dataclasses.field(default_factory=collections.Counter)
	echo_hits_by_phrase: typing.Counter[str] = dataclasses.field(default_factory=collections.Counter)
	forced_short: int = 0

	@property
	def cadence_rate (self) -> float:

		"""Return the share of cadential phrases that closed on the keynote."""

		return self.cadence_hits / self.cadence_attempts if self.cadence_attempts else 0.0

	@property
	def echo_rate (self) -> float:

		"""Return the share of reachable echo steps that replayed their source."""

		return self.echo_hits / self.echo_reachable if self.echo_reachable else 0.0

	def phrase_echo_rate (self, phrase: str) -> float:

		"""Return the echo reproduction rate of one echo phrase."""

		reachable = self.echo_reachable_by_phrase[phrase]

		return self.echo_hits_by_phrase[phrase] / reachable if reachable else 0.0

	def mean_phrase_length (self, phrase: typing.Optional[str] = None) -> float:

		"""Return the mean phrase length, for one label or across all."""

		if phrase is not None:
			lengths = self.phrase_lengths.get(phrase, [])

		else:
			lengths = [n for values in self.phrase_lengths.values() for n in values]

		return sum(lengths) / len(lengths) if lengths else 0.0

	def summary_lines (self) -> typing.List[str]:

		"""Return a short human-readable summary."""

		lines = [
			f"seed {self.seed}: {self.stanzas} stanzas, {self.notes} notes",
			f"cadences on keynote: {self.cadence_hits}/{self.cadence_attempts} ({self.cadence_rate:.0%})",
			f"echo reproduction: {self.echo_hits}/{self.echo_reachable} ({self.echo_rate:.0%}); " + ", ".join(
				f"{phrase}={self.phrase_echo_rate(phrase):.0%}" for phrase in downhome.constants.ECHO_SOURCES
			),
			f"forced short endings: {self.forced_short}",
			"phrase lengths: " + ", ".join(
				f"{phrase}={self.mean_phrase_length(phrase):.1f}" for phrase in downhome.constants.PHRASE_SEQUENCE
			),
			"end reasons: " + ", ".join(f"{reason}={count}" for reason, count in self.end_reasons.most_common()),
			"ending pitches: " + ", ".join(f"{pitch}={count}" for pitch, count in self.ending_pitches.most_common()),
			"contours: " + ", ".join(f"{contour}={count}" for contour, count in self.contours.most_common()),
		]

		return lines


def transition_matrix (graph: downhome.transition_graph.TransitionGraph) -> typing.Dict[str, typing.Dict[str, float]]:

	"""
	Return the row-stochastic matrix of a uniform random walk on the graph.

	Each pitch moves to each of its targets with equal probability; sinks
	jump back to the hub so the chain never dies.
	"""

	hub = graph.hub
	matrix: typing.Dict[str, typing.Dict[str, float]] = {}

	for pitch in graph.nodes:

		targets = graph.neighbors(pitch) or [hub]
		matrix[pitch] = {target: 1.0 / len(targets) for target in targets}

	return matrix


def _left_multiply (matrix: typing.Dict[str, typing.Dict[str, float]], vector: typing.Dict[str, float]) -> typing.Dict[str, float]:

	"""Return ``vector * matrix`` for a row vector over the matrix's pitches."""

	product = {pitch: 0.0 for pitch in matrix}

	for pitch, value in vector.items():
		for target, probability in matrix[pitch].items():
			product[target] += value * probability

	return product


def stationary_distribution (matrix: typing.Dict[str, typing.Dict[str, float]]) -> typing.Dict[str, float]:

	"""
	Estimate the stationary distribution by power iteration.

	The walk is made lazy (half the mass stays put each round), which leaves
	the stationary distribution unchanged and lets power iteration converge
	on periodic graphs.
	"""

	distribution = {pitch: 1.0 / len(matrix) for pitch in matrix}

	for _ in range(POWER_ITERATIONS):

		moved = _left_multiply(matrix, distribution)
		following = {pitch: 0.5 * (distribution[pitch] + moved[pitch]) for pitch in matrix}

		delta = sum(abs(following[pitch] - distribution[pitch]) for pitch in matrix)
		distribution = following

		if delta < CONVERGENCE_TOLERANCE:
			break

	return distribution


def second_eigenvalue (matrix: typing.Dict[str, typing.Dict[str, float]], stationary: typing.Dict[str, float]) -> float:

	"""
	Estimate the modulus of the second largest eigenvalue.

	Row vectors whose entries sum to zero stay that way under a stochastic
	matrix, so iterating from such a vector (deflated against the
	stationary distribution each round) grows at the rate of the second
	eigenvalue. The growth is averaged geometrically over the second half of
	the run, which also settles when that eigenvalue is one of a complex pair.
	"""

	rng = random.Random(EIGENVALUE_SEED)
	vector = {pitch: rng.random() - 0.5 for pitch in matrix}
	growth: typing.List[float] = []

	for _ in range(EIGENVALUE_ITERATIONS + 1):

		total = sum(vector.values())
		vector = {pitch: value - total * stationary[pitch] for pitch, value in vector.items()}
		norm = math.sqrt(sum(value * value for value in vector.values()))

		# Decision path: the vector has died out, so every other eigenvalue is zero.
		if norm < CONVERGENCE_TOLERANCE:
			return 0.0

		vector = {pitch: value / norm for pitch, value in vector.items()}
		vector = _left_multiply(matrix, vector)
		growth.append(math.log(max(math.sqrt(sum(value * value for value in vector.values())), 1e-300)))

	tail = growth[len(growth) // 2:]

	return min(1.0, math.exp(sum(tail) / len(tail)))


def mixing_time (eigenvalue: float) -> float:

	"""Return ``-1 / ln(eigenvalue)``: the steps it takes to forget the start by a factor of e."""

	if eigenvalue <= 0.0:
		return 0.0

	if eigenvalue >= 1.0:
		return math.inf

	return -1.0 / math.log(eigenvalue)


def analyze_network (graph: downhome.transition_graph.TransitionGraph) -> NetworkReport:

	"""Describe a graph and the uniform random walk on it."""

	nodes = graph.nodes

	if not nodes:
		raise ValueError("Graph has no transitions")

	matrix = transition_matrix(graph)
	stationary = stationary_distribution(matrix)
	lambda_2 = second_eigenvalue(matrix, stationary)

	logger.debug(f"Network of {len(nodes)} pitches: second eigenvalue {lambda_2:.4f}")

	return NetworkReport(
		nodes = tuple(nodes),
		sinks = tuple(graph.sinks),
		hub = graph.hub,
		out_degrees = {pitch: graph.out_degree(pitch) for pitch in nodes},
		transition_matrix = matrix,
		stationary = stationary,
		second_eigenvalue = lambda_2,
		mixing_time = mixing_time(lambda_2),
		edge_count = sum(graph.out_degree(pitch) for pitch in nodes)
	)


def simulate (stanzas: int, seed: typing.Optional[int] = None, **generator_kwargs: typing.Any) -> RunReport:

	"""
	Generate ``stanzas`` stanzas and collect statistics.

	Echo reproduction is reconstructed from the output alone: for every
	chosen pitch of an echo phrase, the matching pitch of the source phrase
	is looked up and, when it was one transition away from the previous
	pitch, the step counts as reachable.
	"""

	if seed is None:
		seed = downhome.randomness.generate_seed()

	generator = downhome.generator.MelodyGenerator(seed=seed, **generator_kwargs)
	graph = generator.graph
	results = generator.generate_stanzas(stanzas)

	report = RunReport(seed=seed, stanzas=stanzas, notes=len(results))

	sung: typing.Dict[str, typing.List[str]] = collections.defaultdict(list)
	frozen: typing.Dict[str, typing.List[str]] = {}
	previous: typing.Optional[str] = None

	for result in results:

		position = result.position
		phrase = position.phrase

		if result.source == "restart":

			if phrase == "a" and not sung:
				report.contours[position.contour_type] += 1

			sung[phrase] = [result.pitch]
			previous = result.pitch
			continue

		source = downhome.constants.ECHO_SOURCES.get(phrase)
		melody = frozen.get(source) if source else None
		index = position.step_in_phrase + 1

		if melody is not None and index < len(melody) and previous is not None:

			if melody[index] in graph.neighbors(previous):
				report.echo_reachable += 1
				report.echo_reachable_by_phrase[phrase] += 1

				if result.source == "repetition":
					report.echo_hits += 1
					report.echo_hits_by_phrase[phrase] += 1

		sung[phrase].append(result.pitch)
		previous = result.pitch

		if not result.phrase_ended:
			continue

		length = position.step_in_phrase + 1
		report.phrase_lengths[phrase].append(length)
		report.end_reasons[result.end_reason] += 1
		report.ending_pitches[result.pitch] += 1

		if length < downhome.constants.MIN_LENGTH:
			report.forced_short += 1

		if phrase in downhome.constants.CADENTIAL_PHRASES:
			report.cadence_attempts += 1

			if downhome.harmony.is_tonic(graph, result.pitch):
				report.cadence_hits += 1

		if phrase in downhome.constants.SOURCE_PHRASES:
			frozen[phrase] = list(sung[phrase])

		if result.stanza_ended:
			sung.clear()
			frozen.clear()

	logger.info(f"Simulated {stanzas} stanzas (seed {seed}): cadence rate {report.cadence_rate:.2f}, echo rate {report.echo_rate:.2f}")

	return report
