import pytest

import downhome.phrase_memory
import downhome.randomness


def _memory (variation_probability: float = 0.0) -> downhome.phrase_memory.PhraseMemory:
	return downhome.phrase_memory.PhraseMemory(
		rng = downhome.randomness.RandomSource(seed=1),
		variation_probability = variation_probability
	)


def _freeze (memory: downhome.phrase_memory.PhraseMemory, phrase: str, pitches: list) -> None:

	for pitch in pitches:
		memory.record_note(phrase, pitch)

	memory.freeze_phrase(phrase)


def test_repetition_lookup_skips_restart_note () -> None:

	"""Step 0 of an echo phrase replays index 1 of the source (index 0 is its restart note)."""

	memory = _memory()
	_freeze(memory, "a", ["g'", "a'", "c''"])

	assert memory.get_repetition_note("c", 0, ["a'", "bes'"]) == "a'"
	assert memory.get_repetition_note("c", 1, ["c''"]) == "c''"


def test_unreachable_target_defers () -> None:

	"""A source pitch that is not a candidate yields None."""

	memory = _memory()
	_freeze(memory, "a", ["g'", "a'", "c''"])

	assert memory.get_repetition_note("c", 0, ["bes'", "f'"]) is None


def test_exhausted_source_defers () -> None:

	"""Past the end of the source phrase there is nothing to replay."""

	memory = _memory()
	_freeze(memory, "b", ["g'", "e'"])

	assert memory.get_repetition_note("d", 1, ["e'"]) is None


def test_missing_source_defers () -> None:

	"""Without a frozen source, or for a non-echo phrase, lookups return None."""

	memory = _memory()

	assert memory.get_repetition_note("d", 0, ["g'"]) is None

	_freeze(memory, "a", ["g'", "a'"])

	assert memory.get_repetition_note("e", 0, ["a'"]) is None


def test_f_replays_b () -> None:

	"""Phrases d and f both replay phrase b."""

	memory = _memory()
	_freeze(memory, "b", ["g'", "e'", "c'"])

	assert memory.get_repetition_note("d", 1, ["c'"]) == "c'"
	assert memory.get_repetition_note("f", 1, ["c'"]) == "c'"


def test_variation_always_defers () -> None:

	"""With variation probability 1 every lookup is handed back."""

	memory = _memory(variation_probability=1.0)
	_freeze(memory, "a", ["g'", "a'"])

	assert memory.get_repetition_note("c", 0, ["a'"]) is None


def test_variation_rate () -> None:

	"""Roughly one lookup in ten is varied at the default probability."""

	memory = _memory(variation_probability=0.1)
	_freeze(memory, "a", ["g'", "a'"])

	hits = sum(memory.get_repetition_note("c", 0, ["a'"]) == "a'" for _ in range(2000))

	assert 0.86 < hits / 2000 < 0.94


def test_freeze_is_a_copy () -> None:

	"""Later notes in the live record do not leak into the frozen phrase."""

	memory = _memory()
	_freeze(memory, "a", ["g'", "a'"])
	memory.record_note("a", "c''")

	assert memory.get_frozen("a") == ("g'", "a'")
	assert memory.get_phrase_melody("a") == ["g'", "a'", "c''"]


def test_only_sources_freeze () -> None:

	"""Freezing a phrase other than a or b does nothing."""

	memory = _memory()
	_freeze(memory, "e", ["g'", "bes'"])

	assert memory.get_frozen("e") is None


def test_clear_phrases () -> None:

	"""Clearing forgets live and frozen material."""

	memory = _memory()
	_freeze(memory, "a", ["g'", "a'"])
	memory.clear_phrases()

	assert memory.get_frozen("a") is None
	assert memory.debug_info()["a"] == 0


def test_snapshot_restore () -> None:

	"""A snapshot restores earlier records."""

	memory = _memory()
	_freeze(memory, "a", ["g'", "a'"])
	snapshot = memory.snapshot()

	memory.clear_phrases()
	memory.restore(snapshot)

	assert memory.get_frozen("a") == ("g'", "a'")
	assert memory.get_phrase_melody("a") == ["g'", "a'"]


def test_source_for () -> None:

	"""Echo phrases map to their sources."""

	source_for = downhome.phrase_memory.PhraseMemory.source_for

	assert [source_for(phrase) for phrase in "abcdef"] == [None, None, "a", "b", None, "b"]


def test_invalid_probability () -> None:

	"""Probabilities outside 0-1 raise ValueError."""

	with pytest.raises(ValueError):
		_memory(variation_probability=1.5)
