import dataclasses
import logging
import typing

import downhome.edge_rules
import downhome.randomness
import downhome.stanza_state
import downhome.transition_graph


logger = logging.getLogger(__name__)

# How many trailing pitches rules see as ``recent``.
RECENT_WINDOW = 5


@dataclasses.dataclass(frozen=True)
class ScoredCandidate:

	"""
	A candidate pitch with its composite weight.

	Attributes:
		pitch: The candidate target.
		edge: The transition from the current pitch to the candidate.
		weight: Product of every rule contribution (starting from 1.0).
		contributions: Rule id -> multiplier, in evaluation order.
	"""

	pitch: str
	edge: downhome.transition_graph.Edge
	weight: float
	contributions: typing.Dict[str, float]


@dataclasses.dataclass(frozen=True)
class Selection:

	"""The outcome of one weighted choice, kept for diagnostics."""

	pitch: str
	scored: typing.Tuple[ScoredCandidate, ...]
	probabilities: typing.Tuple[float, ...]

	def probability_of (self, pitch: str) -> float:

		"""Return the normalised probability a candidate had (0.0 if absent)."""

		for candidate, probability in zip(self.scored, self.probabilities):
			if candidate.pitch == pitch:
				return probability

		return 0.0


class EdgeWeighting:

	"""
	Score outgoing edges with an ordered rule list and sample one.

	Every candidate starts at 1.0 and each rule multiplies in its
	contribution, so a rule that does not apply leaves the weight alone and
	a rule returning 0.0 removes the edge.
	"""

	def __init__ (self, rules: typing.Optional[typing.Sequence[downhome.edge_rules.EdgeRule]] = None) -> None:

		"""Use the given rules, or the default rule set."""

		self.rules: typing.Tuple[downhome.edge_rules.EdgeRule, ...] = tuple(
			downhome.edge_rules.DEFAULT_RULES if rules is None else rules
		)

		seen: typing.Set[str] = set()

		for rule in self.rules:
			if rule.id in seen:
				raise ValueError(f"Duplicate rule id: {rule.id}")
			seen.add(rule.id)


	def score (
		self,
		current: str,
		history: typing.Sequence[str],
		candidates: typing.Sequence[str],
		position: downhome.stanza_state.StanzaPosition,
		graph: downhome.transition_graph.TransitionGraph
	) -> typing.List[ScoredCandidate]:

		"""
		Return the composite weight of every candidate, in candidate order.

		``history`` ends with the current pitch; the entry before it (if any)
		is the previous pitch seen by the anti-backtrack rule.
		"""

		previous = history[-2] if len(history) >= 2 else None

		ctx = downhome.edge_rules.RuleContext(
			current = current,
			previous = previous,
			recent = tuple(history[-RECENT_WINDOW:]),
			position = position,
			graph = graph,
			candidates = tuple(candidates)
		)

		scored: typing.List[ScoredCandidate] = []

		for target in candidates:

			edge = graph.edge(current, target)
			weight = 1.0
			contributions: typing.Dict[str, float] = {}

			for rule in self.rules:
				factor = rule.evaluate(edge, ctx)
				contributions[rule.id] = factor
				weight *= factor

			scored.append(ScoredCandidate(pitch=target, edge=edge, weight=weight, contributions=contributions))

		return scored


	@staticmethod
	def normalize (scored: typing.Sequence[ScoredCandidate]) -> typing.List[float]:

		"""Return selection probabilities that sum to 1.0."""

		if not scored:
			return []

		total = sum(candidate.weight for candidate in scored)

		if total <= 0:
			# Decision path: every edge suppressed - treat the candidates as equal.
			return [1.0 / len(scored)] * len(scored)

		return [candidate.weight / total for candidate in scored]


	def select (
		self,
		current: str,
		history: typing.Sequence[str],
		candidates: typing.Sequence[str],
		position: downhome.stanza_state.StanzaPosition,
		graph: downhome.transition_graph.TransitionGraph,
		rng: downhome.randomness.RandomSource
	) -> Selection:

		"""Choose one candidate by weighted sampling."""

		if len(candidates) == 1:
			# Decision path: a single edge needs neither scoring nor a draw.
			return Selection(pitch=candidates[0], scored=(), probabilities=(1.0,))

		scored = self.score(current, history, candidates, position, graph)
		probabilities = self.normalize(scored)

		pitch = rng.choose_weighted([(candidate.pitch, p) for candidate, p in zip(scored, probabilities)])

		logger.debug(
			f"{position.phrase}[{position.step_in_phrase}] {current} -> {pitch} "
			f"({', '.join(f'{c.pitch}={p:.2f}' for c, p in zip(scored, probabilities))})"
		)

		return Selection(pitch=pitch, scored=tuple(scored), probabilities=tuple(probabilities))
