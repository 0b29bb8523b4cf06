"""Context-sensitive edge weighting rules.

Each rule is an :class:`EdgeRule` - an id, a precondition and a weight
function - and the default rule set is an ordered tuple. The weighting
engine multiplies the contributions of every rule, in order, starting from
a neutral 1.0. A rule whose precondition is false contributes exactly 1.0,
and rules never raise, so any subset or reordering still composes.

The rules encode melodic conventions of downhome blues singing:

- general motion: descent is more common and more gradual than ascent,
  pendular back-and-forth is rare, repetition (especially on the fifth) is
  common, upward skips are larger than downward ones,
- phrase position: openings lift, line endings settle on the keynote,
- phrase role: the dominant phrase e swings between G and the Bb complex,
- stanza shape: the contour type biases ascent early and descent late.
"""

import dataclasses
import typing

import downhome.constants
import downhome.harmony
import downhome.stanza_state
import downhome.transition_graph


@dataclasses.dataclass(frozen=True)
class RuleContext:

	"""
	Everything a rule may read about the current step.

	Attributes:
		current: The pitch being left.
		previous: The pitch before it in this phrase, if any.
		recent: Up to five most recent pitches, oldest first.
		position: Stanza position at which the choice is made.
		graph: The transition graph.
		candidates: All candidates under consideration this step.
	"""

	current: str
	previous: typing.Optional[str]
	recent: typing.Tuple[str, ...]
	position: downhome.stanza_state.StanzaPosition
	graph: downhome.transition_graph.TransitionGraph
	candidates: typing.Tuple[str, ...] = ()


EdgePredicate = typing.Callable[[downhome.transition_graph.Edge, RuleContext], bool]
EdgeWeight = typing.Callable[[downhome.transition_graph.Edge, RuleContext], float]


@dataclasses.dataclass(frozen=True)
class EdgeRule:

	"""A tagged weighting rule: contributes ``weight()`` when ``applies()``, else 1.0."""

	id: str
	description: str
	applies: EdgePredicate
	weight: EdgeWeight

	def evaluate (self, edge: downhome.transition_graph.Edge, ctx: RuleContext) -> float:

		"""Return this rule's multiplier for an edge."""

		if not self.applies(edge, ctx):
			return 1.0

		return max(0.0, float(self.weight(edge, ctx)))


def _always (edge: downhome.transition_graph.Edge, ctx: RuleContext) -> bool:
	return True


# --- General motion ---

def _downward_motion (edge: downhome.transition_graph.Edge, ctx: RuleContext) -> float:
	return 1.10 if edge.direction < 0 else 1.0


def _is_backtrack (edge: downhome.transition_graph.Edge, ctx: RuleContext) -> bool:
	return ctx.previous is not None and edge.target == ctx.previous


def _repetition (edge: downhome.transition_graph.Edge, ctx: RuleContext) -> float:

	weight = 1.0

	if edge.target == ctx.current:
		weight *= 1.15

	if edge.target == ctx.graph.hub:
		weight *= 1.25

	return weight


def _is_leap (edge: downhome.transition_graph.Edge, ctx: RuleContext) -> bool:
	return edge.size > 3 and edge.direction != 0


def _leap_asymmetry (edge: downhome.transition_graph.Edge, ctx: RuleContext) -> float:

	if edge.direction < 0:
		return 0.4

	# Upward leaps are most welcome in the first three notes of a phrase.
	return 1.35 if ctx.position.step_in_phrase <= 2 else 1.10


def _is_long_descent (edge: downhome.transition_graph.Edge, ctx: RuleContext) -> bool:

	if edge.direction >= 0 or edge.size <= 3:
		return False

	# Slurs down to the keynote are the exception.
	return not downhome.harmony.is_tonic(ctx.graph, edge.target)


def _is_premature_sink (edge: downhome.transition_graph.Edge, ctx: RuleContext) -> bool:

	if not ctx.graph.is_sink(edge.target):
		return False

	notes_after = ctx.position.step_in_phrase + 1

	if notes_after >= downhome.constants.MIN_LENGTH:
		return False

	return any(not ctx.graph.is_sink(pitch) for pitch in ctx.candidates)


# --- Phrase position ---

def _in_lift_window (edge: downhome.transition_graph.Edge, ctx: RuleContext) -> bool:
	return ctx.position.step_in_phrase <= 1 and not ctx.position.is_echo and edge.direction > 0


def _phrase_start_lift (edge: downhome.transition_graph.Edge, ctx: RuleContext) -> float:
	return 1.80 if ctx.position.step_in_phrase == 0 else 1.35


def _in_cadence (edge: downhome.transition_graph.Edge, ctx: RuleContext) -> bool:
	return ctx.position.is_cadential


def _cadence_pull (edge: downhome.transition_graph.Edge, ctx: RuleContext) -> float:

	remaining = ctx.position.steps_remaining
	weight = 1.0

	if downhome.harmony.is_tonic(ctx.graph, edge.target):

		if remaining <= 1:
			weight *= 20.0

		elif remaining <= 2:
			weight *= 6.0

		elif remaining <= 3:
			weight *= 2.0

	elif remaining <= 2:
		# Approach tones: anything one step away from the keynote.
		if ctx.graph.can_reach(edge.target, lambda pitch: downhome.harmony.is_tonic(ctx.graph, pitch)):
			weight *= 2.0

	return weight


def _in_rising_opening (edge: downhome.transition_graph.Edge, ctx: RuleContext) -> bool:
	return ctx.position.phrase in downhome.constants.RISING_PHRASES and ctx.position.is_near_phrase_start


def _rising_opening (edge: downhome.transition_graph.Edge, ctx: RuleContext) -> float:

	if downhome.harmony.is_dominant(ctx.graph, ctx.current) and downhome.harmony.is_upper_tonic(ctx.graph, edge.target):
		return 1.8

	if edge.direction > 0:
		return 1.2

	return 1.0


def _in_subdominant_opening (edge: downhome.transition_graph.Edge, ctx: RuleContext) -> bool:
	return ctx.position.phrase == "c" and ctx.position.step_in_phrase <= 3


def _subdominant_opening (edge: downhome.transition_graph.Edge, ctx: RuleContext) -> float:
	return 1.5 if ctx.graph.pitch_class(edge.target) == downhome.harmony.SUBDOMINANT else 1.0


def _in_line_end (edge: downhome.transition_graph.Edge, ctx: RuleContext) -> bool:
	return "line_end" in ctx.position.traits and ctx.position.is_near_phrase_end


def _line_end_triad (edge: downhome.transition_graph.Edge, ctx: RuleContext) -> float:
	return 1.4 if ctx.graph.pitch_class(edge.target) in downhome.harmony.TONIC_TRIAD else 1.0


# --- Phrase role ---

def _in_dominant_phrase (edge: downhome.transition_graph.Edge, ctx: RuleContext) -> bool:
	return ctx.position.phrase in downhome.constants.DOMINANT_PHRASES


def _dominant_pendulum (edge: downhome.transition_graph.Edge, ctx: RuleContext) -> float:

	graph = ctx.graph
	from_g = downhome.harmony.is_dominant(graph, ctx.current)
	from_bb = downhome.harmony.is_bb_complex(graph, ctx.current)
	to_g = downhome.harmony.is_dominant(graph, edge.target)
	to_bb = downhome.harmony.is_bb_complex(graph, edge.target)

	if (from_g and to_bb) or (from_bb and to_g):
		return 1.6

	if to_bb:
		return 1.3

	return 1.0


def _is_bb_from_above (edge: downhome.transition_graph.Edge, ctx: RuleContext) -> bool:
	return downhome.harmony.is_bb_complex(ctx.graph, edge.target) and downhome.harmony.is_upper_tonic(ctx.graph, ctx.current)


def _bb_from_above (edge: downhome.transition_graph.Edge, ctx: RuleContext) -> float:

	phrase = ctx.position.phrase

	if phrase in ("a", "c"):
		return 1.5

	if phrase in ("b", "d"):
		return 0.8

	return 1.0


def _is_bb_in_dominant (edge: downhome.transition_graph.Edge, ctx: RuleContext) -> bool:
	return _in_dominant_phrase(edge, ctx) and downhome.harmony.is_bb_complex(ctx.graph, edge.target)


def _bb_in_dominant (edge: downhome.transition_graph.Edge, ctx: RuleContext) -> float:

	from_pc = ctx.graph.pitch_class(ctx.current)

	if from_pc in (downhome.harmony.DOMINANT, downhome.harmony.SUBMEDIANT):
		return 1.7

	return 1.2


def _is_passing_a (edge: downhome.transition_graph.Edge, ctx: RuleContext) -> bool:
	return ctx.graph.pitch_class(edge.target) == downhome.harmony.SUBMEDIANT


def _passing_a (edge: downhome.transition_graph.Edge, ctx: RuleContext) -> float:

	graph = ctx.graph

	if downhome.harmony.is_dominant(graph, ctx.current) or downhome.harmony.is_bb_complex(graph, ctx.current):
		return 1.3

	if downhome.harmony.is_upper_tonic(graph, ctx.current):
		return 1.3

	return 1.0


def _is_e_complex_descent (edge: downhome.transition_graph.Edge, ctx: RuleContext) -> bool:
	return edge.direction < 0 and downhome.harmony.is_e_complex(ctx.graph, edge.target)


def _e_complex_approach (edge: downhome.transition_graph.Edge, ctx: RuleContext) -> float:

	# The lower E complex is often reached from above; the upper one almost never.
	return 0.5 if ctx.graph.is_upper(edge.target) else 1.3


# --- Stanza shape ---

def _in_contour_window (edge: downhome.transition_graph.Edge, ctx: RuleContext) -> bool:

	position = ctx.position

	if edge.direction == 0:
		return False

	# Lift and cadence windows already steer direction; stay out of their way.
	if position.step_in_phrase <= 1:
		return False

	if position.is_cadential and position.steps_remaining <= 2:
		return False

	return True


def _macro_contour (edge: downhome.transition_graph.Edge, ctx: RuleContext) -> float:

	contour = ctx.position.contour_type
	progress = ctx.position.stanza_progress
	rising = edge.direction > 0

	if contour == downhome.constants.CONTOUR_IB:

		if progress < 0.4:
			return 1.2 if rising else 0.9

		return 0.9 if rising else 1.15

	if contour == downhome.constants.CONTOUR_IA:
		return 0.85 if rising else 1.15

	if contour == downhome.constants.CONTOUR_IIB:

		if progress < 0.6:
			return 1.25 if rising else 0.85

		return 0.95 if rising else 1.1

	return 1.0


DEFAULT_RULES: typing.Tuple[EdgeRule, ...] = (
	EdgeRule("downward_motion", "Downward motion is more frequent than upward.", _always, _downward_motion),
	EdgeRule("anti_backtrack", "Stepwise motion in one direction beats pendular return.", _is_backtrack, lambda edge, ctx: 0.15),
	EdgeRule("repetition", "Repetition is common, especially on the hub (G).", _always, _repetition),
	EdgeRule("leap_asymmetry", "Skips upward are larger than skips downward.", _is_leap, _leap_asymmetry),
	EdgeRule("descent_limit", "Descent rarely exceeds a third, except onto the keynote.", _is_long_descent, lambda edge, ctx: 0.1),
	EdgeRule("premature_sink", "Do not fall into a sink before the minimum phrase length.", _is_premature_sink, lambda edge, ctx: 0.0),
	EdgeRule("phrase_start_lift", "Free phrases lift over their first two notes.", _in_lift_window, _phrase_start_lift),
	EdgeRule("cadence_pull", "Line-ending phrases come to rest on the keynote.", _in_cadence, _cadence_pull),
	EdgeRule("rising_opening", "Phrases a and c open with upward motion, G to C'.", _in_rising_opening, _rising_opening),
	EdgeRule("subdominant_opening", "F appears near the start of phrase c.", _in_subdominant_opening, _subdominant_opening),
	EdgeRule("dominant_pendulum", "Phrase e swings between G and the Bb complex.", _in_dominant_phrase, _dominant_pendulum),
	EdgeRule("bb_from_above", "The Bb complex is approached from C' in a and c, less in b and d.", _is_bb_from_above, _bb_from_above),
	EdgeRule("bb_in_dominant", "In phrase e the Bb complex is approached from G or A below.", _is_bb_in_dominant, _bb_in_dominant),
	EdgeRule("line_end_triad", "The tonic triad closes each line.", _in_line_end, _line_end_triad),
	EdgeRule("passing_a", "A passes between G and the Bb complex, or G and C'.", _is_passing_a, _passing_a),
	EdgeRule("e_complex_approach", "The E complex is reached from above, the E' complex rarely.", _is_e_complex_descent, _e_complex_approach),
	EdgeRule("macro_contour", "The stanza contour favours ascent early and descent late.", _in_contour_window, _macro_contour),
)


def rule_ids (rules: typing.Sequence[EdgeRule] = DEFAULT_RULES) -> typing.List[str]:

	"""Return rule ids in evaluation order."""

	return [rule.id for rule in rules]
