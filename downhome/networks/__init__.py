"""
Pitch networks: the static transition graphs a generator walks.
"""

import abc
import typing

import downhome.transition_graph


class PitchNetwork (abc.ABC):

	"""Abstract base for pitch transition networks."""

	@abc.abstractmethod
	def build (self) -> downhome.transition_graph.TransitionGraph:

		"""Build and return the transition graph."""

		...

	def restart_options (self, graph: downhome.transition_graph.TransitionGraph, phrase: str) -> typing.List[typing.Tuple[str, float]]:

		"""Return weighted restart pitches for the start of a phrase (default: the hub)."""

		return [(graph.hub, 1.0)]


def resolve_network (network: typing.Union[str, PitchNetwork, None]) -> PitchNetwork:

	"""Create a PitchNetwork from a style name, or pass an instance through."""

	if network is None or network == "titon":

		import downhome.networks.titon

		return downhome.networks.titon.TitonNetwork()

	if isinstance(network, PitchNetwork):
		return network

	raise ValueError(f"Unknown pitch network: {network}")
