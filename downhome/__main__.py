"""Generate downhome blues stanzas from the command line.

Usage:
    python -m downhome [--config FILE] [--stanzas N] [--seed N] [--report]
                       [--osc] [--midi [DEVICE]] [--verbose]

Settings are read from a YAML file (default ``config.yaml``, optional) and
overridden by the flags. Example file::

    generator:
      seed: 42
      stanzas: 3
      steps_per_phrase: 8
      use_closure: true
    osc:
      host: 127.0.0.1
      port: 9001
    midi:
      device_name: "IAC Driver Bus 1"
      channel: 0
"""

import argparse
import logging
import os
import typing

import yaml

import downhome.analysis
import downhome.consumers
import downhome.generator
import downhome.randomness


logger = logging.getLogger(__name__)

# Keys of the ``generator:`` section passed straight to MelodyGenerator.
GENERATOR_KEYS = (
	"steps_per_phrase",
	"use_closure",
	"variation_probability",
	"split_probability",
	"e_split_step",
	"f_split_step",
)


def load_config (config_path: str = 'config.yaml') -> dict:

	"""
	Load configuration from a YAML file.
	"""

	if not os.path.exists(config_path):
		logger.warning(f"Config file {config_path} not found. Using defaults.")
		return {}

	with open(config_path, 'r') as f:
		config = yaml.safe_load(f) or {}

	if not isinstance(config, dict):
		raise ValueError(f"Config file {config_path} must contain a mapping")

	return config


def generator_options (config: dict) -> typing.Dict[str, typing.Any]:

	"""Pick the MelodyGenerator keyword arguments out of the ``generator:`` section."""

	section = config.get('generator') or {}

	return {key: section[key] for key in GENERATOR_KEYS if key in section}


def format_phrase (results: typing.List[downhome.generator.StepResult]) -> str:

	"""Render one phrase as ``1a: g' a' c'' ... (closure)``."""

	position = results[0].position
	pitches = " ".join(result.pitch for result in results)

	return f"{position.stanza}{position.phrase}: {pitches} ({results[-1].end_reason})"


def main (argv: typing.Optional[typing.List[str]] = None) -> None:

	"""
	Main entry point for the downhome command.
	"""

	parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
	parser.add_argument("--config",  type=str, default="config.yaml", help="YAML config file (default: config.yaml)")
	parser.add_argument("--stanzas", type=int, default=None,          help="Stanzas to generate (default: 1)")
	parser.add_argument("--seed",    type=int, default=None,          help="Seed for a reproducible run")
	parser.add_argument("--report",  action="store_true",             help="Print run statistics and network analysis")
	parser.add_argument("--osc",     action="store_true",             help="Forward pitches over OSC")
	parser.add_argument("--midi",    nargs="?", const="", default=None, metavar="DEVICE", help="Forward pitches to a MIDI output")
	parser.add_argument("--verbose", action="store_true",             help="Log every step")
	args = parser.parse_args(argv)

	logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

	config = load_config(args.config)
	section = config.get('generator') or {}
	options = generator_options(config)

	stanzas = args.stanzas if args.stanzas is not None else int(section.get('stanzas', 1))
	seed = args.seed if args.seed is not None else section.get('seed')

	if seed is None:
		seed = downhome.randomness.generate_seed()

	logger.info(f"Generating {stanzas} stanza(s) with seed {seed}")

	generator = downhome.generator.MelodyGenerator(seed=seed, **options)
	midi: typing.Optional[downhome.consumers.MidiForwarder] = None

	if args.osc:
		osc_config = config.get('osc') or {}
		downhome.consumers.OscForwarder(
			host = osc_config.get('host', '127.0.0.1'),
			port = int(osc_config.get('port', 9001))
		).attach(generator)

	if args.midi is not None:
		midi_config = config.get('midi') or {}
		midi = downhome.consumers.MidiForwarder(
			output_device = args.midi or midi_config.get('device_name'),
			channel = int(midi_config.get('channel', 0))
		)
		midi.attach(generator)

	try:
		phrase: typing.List[downhome.generator.StepResult] = []

		for result in generator.generate_stanzas(stanzas):

			phrase.append(result)

			if result.phrase_ended:
				print(format_phrase(phrase))
				phrase = []

	finally:
		if midi is not None:
			midi.close()

	if args.report:

		run = downhome.analysis.simulate(stanzas, seed=seed, **options)
		network = downhome.analysis.analyze_network(generator.graph)

		print()

		for line in run.summary_lines():
			print(line)

		print(f"network: {len(network.nodes)} pitches, {network.edge_count} transitions, hub {network.hub}, sinks {', '.join(network.sinks)}")
		print("stationary: " + ", ".join(
			f"{pitch}={mass:.3f}" for pitch, mass in sorted(network.stationary.items(), key=lambda item: -item[1])
		))
		print(f"second eigenvalue: {network.second_eigenvalue:.4f}, mixing time {network.mixing_time:.2f} steps")
		print("transitions:")

		for pitch, row in network.transition_matrix.items():
			print(f"  {pitch}: " + ", ".join(f"{target}={probability:.2f}" for target, probability in row.items()))


if __name__ == "__main__":
	main()
