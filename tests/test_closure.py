import math

import pytest

import downhome.closure
import downhome.constants
import downhome.randomness
import downhome.transition_graph


def _evaluate (evaluator: downhome.closure.ClosureEvaluator, graph: downhome.transition_graph.TransitionGraph, step: int, **kwargs) -> downhome.closure.ClosureResult:

	params = dict(
		pitch = "c'",
		step_in_phrase = step,
		phrase = "b",
		contour_type = downhome.constants.CONTOUR_IB,
		chord = "I",
		previous = "e'",
		graph = graph
	)
	params.update(kwargs)

	return evaluator.evaluate(**params)


def test_no_closure_below_minimum (graph: downhome.transition_graph.TransitionGraph) -> None:

	"""The first four notes never close a phrase, and no draw is made."""

	rng = downhome.randomness.RandomSource(seed=4)
	twin = downhome.randomness.RandomSource(seed=4)
	evaluator = downhome.closure.ClosureEvaluator(rng)

	for step in range(4):
		assert _evaluate(evaluator, graph, step) == downhome.closure.ClosureResult(False, 0.0, 0.0)

	assert rng.random() == twin.random()


def test_closure_possible_at_minimum (graph: downhome.transition_graph.TransitionGraph) -> None:

	"""The fifth note has a positive closure probability."""

	evaluator = downhome.closure.ClosureEvaluator(downhome.randomness.RandomSource(seed=4))
	result = _evaluate(evaluator, graph, 4)

	assert result.probability > 0.0
	assert result.weight > 0.0


def test_ceiling_always_closes (graph: downhome.transition_graph.TransitionGraph) -> None:

	"""The twelfth note always closes, even on an unlikely pitch."""

	evaluator = downhome.closure.ClosureEvaluator(downhome.randomness.RandomSource(seed=4))
	result = _evaluate(evaluator, graph, 11, pitch="bes'", previous="g'", phrase="a")

	assert result.should_end is True
	assert result.probability == 1.0
	assert math.isinf(result.weight)


def test_cadential_keynote_weight (graph: downhome.transition_graph.TransitionGraph) -> None:

	"""A keynote reached by descent over I in phrase b is very likely to close."""

	evaluator = downhome.closure.ClosureEvaluator(downhome.randomness.RandomSource(seed=4))
	result = _evaluate(evaluator, graph, 4)

	expected = 18.0 * 1.25 * 1.15 * 1.25 * 1.0

	assert result.weight == pytest.approx(expected)
	assert result.probability == pytest.approx(expected / (expected + 5.0))


def test_rising_note_rarely_closes (graph: downhome.transition_graph.TransitionGraph) -> None:

	"""An ascending non-tonic pitch in a rising phrase has a low closure probability."""

	evaluator = downhome.closure.ClosureEvaluator(downhome.randomness.RandomSource(seed=4))
	keynote = _evaluate(evaluator, graph, 5)
	ascent = _evaluate(evaluator, graph, 5, pitch="bes'", previous="g'", phrase="a")

	assert ascent.probability < 0.3
	assert ascent.probability < keynote.probability


def test_pitch_weight_tables (graph: downhome.transition_graph.TransitionGraph) -> None:

	"""Pitch roles are weighted by phrase role."""

	pitch_weight = downhome.closure.ClosureEvaluator.pitch_weight

	assert pitch_weight(graph, "c'", "d") == 18.0
	assert pitch_weight(graph, "g'", "f") == 0.7
	assert pitch_weight(graph, "g'", "e") == 6.0
	assert pitch_weight(graph, "e'", "a") == 3.0
	assert pitch_weight(graph, "f'", "c") == 2.0
	assert pitch_weight(graph, "bes'", "e") == 1.0


def test_direction_factor (graph: downhome.transition_graph.TransitionGraph) -> None:

	"""Descent favours closure, ascent works against it, no previous pitch is neutral."""

	direction = downhome.closure.ClosureEvaluator.direction_factor

	assert direction(graph, "e'", "c'") == 1.25
	assert direction(graph, "g'", "a'") == 0.6
	assert direction(graph, None, "c'") == 1.0


def test_contour_and_length_factors () -> None:

	"""Contour and length pressure follow the note count."""

	evaluator = downhome.closure.ClosureEvaluator(downhome.randomness.RandomSource(seed=1))

	assert evaluator.contour_factor(downhome.constants.CONTOUR_IB, 4) == 0.85
	assert evaluator.contour_factor(downhome.constants.CONTOUR_IB, 5) == 1.15
	assert evaluator.contour_factor(downhome.constants.CONTOUR_IA, 12) == pytest.approx(1.1)
	assert evaluator.contour_factor(downhome.constants.CONTOUR_IIB, 7) == 0.85
	assert evaluator.contour_factor(downhome.constants.CONTOUR_IIB, 8) == 1.1
	assert evaluator.length_pressure(5) == 1.0
	assert evaluator.length_pressure(12) == pytest.approx(1.2)


@pytest.mark.parametrize("kwargs", [
	{"min_length": 0},
	{"min_length": 8, "max_length": 8},
	{"continuation_k": 0.0},
])
def test_invalid_configuration (kwargs: dict) -> None:

	"""Nonsensical length windows and constants raise ValueError."""

	with pytest.raises(ValueError):
		downhome.closure.ClosureEvaluator(downhome.randomness.RandomSource(seed=1), **kwargs)


@pytest.mark.parametrize("pitch, phrase, expected", [
	("ees'", "b", 0.3),
	("ees''", "f", 0.3),
	("ees'", "a", 1.0),
	("e''", "b", 1.0),
	("eeh''", "d", 1.0),
	("eeh'", "d", 0.3),
])
def test_flat_third_is_not_weighted_as_e (graph: downhome.transition_graph.TransitionGraph, pitch: str, phrase: str, expected: float) -> None:

	"""Only pitches that round to E take the E weight; Eb is weighted as any other pitch."""

	assert downhome.closure.ClosureEvaluator.pitch_weight(graph, pitch, phrase) == expected
