import typing

import mido
import pytest

import downhome.networks.titon
import downhome.randomness
import downhome.transition_graph


class FakeMidiOut:

	"""MIDI output stub that keeps every message it is sent."""

	def __init__ (self, name: str = "Dummy MIDI") -> None:

		"""Start with an empty message list."""

		self.name = name
		self.sent: typing.List[mido.Message] = []
		self.closed = False


	def send (self, message: mido.Message) -> None:

		"""Record an outgoing MIDI message."""

		self.sent.append(message)


	def close (self) -> None:

		"""Mark the fake device closed."""

		self.closed = True


# Module-level reference so tests can inspect the most recently opened port.
_current_fake_output: typing.Optional[FakeMidiOut] = None


def _fake_get_output_names () -> list[str]:

	"""Return a fixed list of MIDI output names for tests."""

	return ["Dummy MIDI"]


def _fake_open_output (name: str) -> FakeMidiOut:

	"""Return a fake MIDI output regardless of the name."""

	global _current_fake_output
	fake = FakeMidiOut(name)
	_current_fake_output = fake
	return fake


@pytest.fixture
def patch_midi (monkeypatch: pytest.MonkeyPatch) -> None:

	"""Patch mido to use a fake MIDI output for all tests that need it."""

	monkeypatch.setattr(mido, "get_output_names", _fake_get_output_names)
	monkeypatch.setattr(mido, "open_output", _fake_open_output)


@pytest.fixture
def fake_output (patch_midi: None) -> typing.Callable[[], typing.Optional[FakeMidiOut]]:

	"""Return an accessor for the most recently opened fake port."""

	return lambda: _current_fake_output


@pytest.fixture
def graph () -> downhome.transition_graph.TransitionGraph:

	"""The default downhome blues network."""

	return downhome.networks.titon.TitonNetwork().build()


@pytest.fixture
def rng () -> downhome.randomness.RandomSource:

	"""A seeded random source."""

	return downhome.randomness.RandomSource(seed=1)
