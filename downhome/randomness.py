"""Shared pseudorandom source.

Every stochastic decision in a generator session (contour draw, phrase f
split, echo variation, weighted selection, closure) draws from a single
:class:`RandomSource`, so one seed reproduces a whole run.
"""

import random
import time
import typing


OptionType = typing.TypeVar("OptionType")


class RandomSource:

	"""A seedable wrapper around ``random.Random``."""

	def __init__ (self, seed: typing.Optional[int] = None) -> None:

		"""Create the source, seeded when ``seed`` is given."""

		self._seed: typing.Optional[int] = None
		self._rng = random.Random()

		if seed is not None:
			self.set_seed(seed)


	@property
	def seed (self) -> typing.Optional[int]:

		"""Return the active seed, or None when unseeded."""

		return self._seed


	def set_seed (self, seed: int) -> None:

		"""Reseed for a reproducible sequence of draws."""

		self._seed = seed
		self._rng = random.Random(seed)


	def clear_seed (self) -> None:

		"""Switch back to an unseeded, non-deterministic generator."""

		self._seed = None
		self._rng = random.Random()


	def random (self) -> float:

		"""Return a float in [0, 1)."""

		return self._rng.random()


	def chance (self, probability: float) -> bool:

		"""Return True with the given probability."""

		return self._rng.random() < probability


	def choose_weighted (self, options: typing.Sequence[typing.Tuple[OptionType, float]]) -> OptionType:

		"""
		Choose one option by a cumulative-weight scan.

		The first option whose running total exceeds the draw wins, so ties
		resolve in list order. Zero-weight options are never chosen.
		"""

		if not options:
			raise ValueError("Options cannot be empty")

		total_weight = 0.0

		for _, weight in options:
			if weight < 0:
				raise ValueError("Weights cannot be negative")
			total_weight += weight

		if total_weight <= 0:
			raise ValueError("Total weight must be positive")

		roll = self._rng.random() * total_weight
		accum = 0.0

		for option, weight in options:
			accum += weight
			if roll < accum:
				return option

		# Float rounding can leave the roll at the very top of the range.
		for option, weight in reversed(options):
			if weight > 0:
				return option

		return options[-1][0]


def generate_seed () -> int:

	"""Return a time-derived seed, useful for logging a reproducible run."""

	return int(time.time() * 1000) % 2147483647
