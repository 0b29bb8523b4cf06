import math

import pytest

import downhome.analysis
import downhome.constants
import downhome.transition_graph


@pytest.fixture(scope="module")
def run () -> downhome.analysis.RunReport:

	"""A 200-stanza batch shared by the statistical tests."""

	return downhome.analysis.simulate(200, seed=1)


def test_cadences_mostly_on_keynote (run: downhome.analysis.RunReport) -> None:

	"""Most, but not all, cadential phrases end on the keynote."""

	assert run.cadence_attempts == 600
	assert 0.55 < run.cadence_rate < 0.75


def test_echo_reproduction (run: downhome.analysis.RunReport) -> None:

	"""Reachable echo steps replay their source at least 80% of the time."""

	assert run.echo_reachable > 100
	assert run.echo_rate >= 0.8


@pytest.mark.parametrize("phrase", ["c", "d", "f"])
def test_echo_reproduction_per_phrase (run: downhome.analysis.RunReport, phrase: str) -> None:

	"""Each echo phrase replays its own source (c from a, d and f from b) at least 80% of the time."""

	assert run.echo_reachable_by_phrase[phrase] > 20
	assert run.phrase_echo_rate(phrase) >= 0.8


def test_echo_tallies_add_up (run: downhome.analysis.RunReport) -> None:

	"""Per-phrase echo counts sum to the totals."""

	assert sum(run.echo_reachable_by_phrase.values()) == run.echo_reachable
	assert sum(run.echo_hits_by_phrase.values()) == run.echo_hits
	assert set(run.echo_reachable_by_phrase) <= set(downhome.constants.ECHO_SOURCES)


def test_no_forced_short_endings (run: downhome.analysis.RunReport) -> None:

	"""No phrase ends before the minimum length."""

	assert run.forced_short == 0

	for lengths in run.phrase_lengths.values():
		assert min(lengths) >= downhome.constants.MIN_LENGTH
		assert max(lengths) <= downhome.constants.MAX_LENGTH


def test_run_totals (run: downhome.analysis.RunReport) -> None:

	"""Counts add up across phrases, reasons and contours."""

	assert sum(run.end_reasons.values()) == 1200
	assert sum(run.ending_pitches.values()) == 1200
	assert sum(run.contours.values()) == 200
	assert set(run.phrase_lengths) == set(downhome.constants.PHRASE_SEQUENCE)
	assert run.contours["IB"] > run.contours["IA"]
	assert 5.0 <= run.mean_phrase_length() <= 12.0


def test_summary_lines (run: downhome.analysis.RunReport) -> None:

	"""The summary mentions the seed and the cadence rate."""

	lines = run.summary_lines()

	assert lines[0].startswith("seed 1:")
	assert any("cadences on keynote" in line for line in lines)


def test_simulate_is_reproducible () -> None:

	"""The same seed gives the same statistics."""

	a = downhome.analysis.simulate(10, seed=5)
	b = downhome.analysis.simulate(10, seed=5)

	assert a.phrase_lengths == b.phrase_lengths
	assert a.ending_pitches == b.ending_pitches


def test_simulate_records_generated_seed () -> None:

	"""An unseeded run reports the seed it used."""

	report = downhome.analysis.simulate(1)

	assert isinstance(report.seed, int)
	assert report.stanzas == 1


def test_simulate_passes_generator_options () -> None:

	"""Generator keyword arguments reach the session."""

	report = downhome.analysis.simulate(5, seed=2, use_closure=False, steps_per_phrase=6)

	assert set(report.end_reasons) <= {"budget", "sink"}
	assert max(max(lengths) for lengths in report.phrase_lengths.values()) == 6


def test_analyze_network (graph: downhome.transition_graph.TransitionGraph) -> None:

	"""Structure and stationary distribution of the default network."""

	report = downhome.analysis.analyze_network(graph)

	assert report.hub == "g'"
	assert report.sinks == ("c'",)
	assert report.edge_count == 36
	assert report.out_degrees["g'"] == 6
	assert sum(report.stationary.values()) == pytest.approx(1.0)
	assert all(mass > 0 for mass in report.stationary.values())


def test_analyze_empty_graph () -> None:

	"""An empty graph cannot be analysed."""

	with pytest.raises(ValueError):
		downhome.analysis.analyze_network(downhome.transition_graph.TransitionGraph())


def test_transition_matrix_is_row_stochastic (graph: downhome.transition_graph.TransitionGraph) -> None:

	"""Every row sums to one, each target equally likely, and the sink jumps to the hub."""

	matrix = downhome.analysis.analyze_network(graph).transition_matrix

	assert set(matrix) == set(graph.nodes)

	for pitch, row in matrix.items():
		assert sum(row.values()) == pytest.approx(1.0)
		assert len(set(row.values())) == 1

	assert matrix["c'"] == {"g'": 1.0}
	assert set(matrix["g'"]) == set(graph.neighbors("g'"))


def test_stationary_is_fixed_point (graph: downhome.transition_graph.TransitionGraph) -> None:

	"""One step of the walk leaves the stationary distribution unchanged."""

	report = downhome.analysis.analyze_network(graph)
	moved = {pitch: 0.0 for pitch in report.nodes}

	for pitch, row in report.transition_matrix.items():
		for target, probability in row.items():
			moved[target] += report.stationary[pitch] * probability

	for pitch in report.nodes:
		assert moved[pitch] == pytest.approx(report.stationary[pitch], abs=1e-9)


def test_second_eigenvalue (graph: downhome.transition_graph.TransitionGraph) -> None:

	"""The walk on the downhome network mixes: 0 < |lambda_2| < 1 and the mixing time is finite."""

	report = downhome.analysis.analyze_network(graph)

	assert 0.0 < report.second_eigenvalue < 1.0
	assert report.mixing_time == pytest.approx(-1.0 / math.log(report.second_eigenvalue))
	assert 0.0 < report.mixing_time < math.inf


def test_second_eigenvalue_is_deterministic (graph: downhome.transition_graph.TransitionGraph) -> None:

	"""Repeated analyses agree exactly."""

	first = downhome.analysis.analyze_network(graph)
	second = downhome.analysis.analyze_network(graph)

	assert first.second_eigenvalue == second.second_eigenvalue


def test_second_eigenvalue_of_periodic_cycle () -> None:

	"""A two-pitch cycle never forgets its start: |lambda_2| is 1 and mixing is infinite."""

	graph = downhome.transition_graph.TransitionGraph({"c'": 261.63, "g'": 392.0})
	graph.add_transition("c'", "g'")
	graph.add_transition("g'", "c'")

	report = downhome.analysis.analyze_network(graph)

	assert report.second_eigenvalue == pytest.approx(1.0)
	assert report.stationary == pytest.approx({"c'": 0.5, "g'": 0.5})


def test_second_eigenvalue_of_instant_mixer () -> None:

	"""A walk that jumps straight to one pitch has no second mode."""

	graph = downhome.transition_graph.TransitionGraph({"c'": 261.63, "g'": 392.0})
	graph.add_transition("c'", "g'")
	graph.add_transition("g'", "g'")

	report = downhome.analysis.analyze_network(graph)

	assert report.second_eigenvalue == 0.0
	assert report.mixing_time == 0.0


@pytest.mark.parametrize("eigenvalue, expected", [(0.0, 0.0), (1.0, math.inf), (math.exp(-0.5), 2.0)])
def test_mixing_time (eigenvalue: float, expected: float) -> None:

	"""Mixing time is -1/ln(lambda), with the limits at 0 and 1."""

	assert downhome.analysis.mixing_time(eigenvalue) == pytest.approx(expected)
