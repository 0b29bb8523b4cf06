"""Forward generated pitches to external collaborators.

The generator knows nothing about sound; these adapters listen to its
events and pass each pitch on. They do no scheduling: a pitch goes out the
moment :meth:`~downhome.generator.MelodyGenerator.advance` produces it, so
a caller that wants rhythm paces its own ``advance()`` calls.

OSC messages (:class:`OscForwarder`)
────────────────────────────────────
- ``/downhome/note <pitch> <frequency> <phrase> <step>``: every pitch
- ``/downhome/phrase <phrase>``: a phrase ended
- ``/downhome/stanza <stanza>``: a stanza ended

MIDI (:class:`MidiForwarder`)
─────────────────────────────
Each pitch sounds as the nearest MIDI note plus a pitch-wheel bend for the
remainder, so the quarter-flat thirds come out in tune on any synth whose
bend range is +/- 2 semitones.
"""

import logging
import typing

import mido
import pythonosc.udp_client

import downhome.stanza_state
import downhome.transition_graph

if typing.TYPE_CHECKING:
	from downhome.generator import MelodyGenerator, StepResult


logger = logging.getLogger(__name__)

# Semitones covered by a full pitch-wheel deflection.
PITCH_BEND_RANGE = 2.0
PITCH_BEND_MAX = 8191
PITCH_BEND_MIN = -8192

ALL_NOTES_OFF = 123


def pitch_to_midi (frequency: float) -> typing.Tuple[int, int]:

	"""Return the nearest MIDI note and the pitch-wheel value that makes up the difference."""

	midi = downhome.transition_graph.frequency_to_midi(frequency)
	note = downhome.transition_graph.round_half_up(midi)
	bend = int(round((midi - note) / PITCH_BEND_RANGE * 8192))

	return note, max(PITCH_BEND_MIN, min(PITCH_BEND_MAX, bend))


def select_output_device (device_name: typing.Optional[str] = None) -> typing.Tuple[typing.Optional[str], typing.Optional[typing.Any]]:

	"""
	Select and open a MIDI output device.

	If ``device_name`` is given, that device is opened. Otherwise a single
	available device is used automatically and, when several exist, the
	user is asked to choose one at the console.

	Returns:
		A tuple of (device_name, midi_out_object) or (None, None) on failure.
	"""

	try:
		outputs = mido.get_output_names()
		logger.info(f"Available MIDI outputs: {outputs}")

		if not outputs:
			logger.error("No MIDI output devices found.")
			return None, None

		if device_name is not None:

			if device_name not in outputs:
				logger.error(f"MIDI output device '{device_name}' not found. Available devices: {outputs}")
				return None, None

			selected_name = device_name

		elif len(outputs) == 1:
			selected_name = outputs[0]

		else:
			print("\nAvailable MIDI output devices:\n")

			for i, name in enumerate(outputs, 1):
				print(f"  {i}. {name}")

			print()

			while True:
				try:
					choice = int(input(f"Select a device (1-{len(outputs)}): "))
					if 1 <= choice <= len(outputs):
						break
				except (ValueError, EOFError):
					pass
				print(f"Enter a number between 1 and {len(outputs)}.")

			selected_name = outputs[choice - 1]

		midi_out = mido.open_output(selected_name)
		logger.info(f"Opened MIDI output: {selected_name}")

		return selected_name, midi_out

	except Exception as e:
		logger.error(f"Failed to open MIDI output: {e}")
		return None, None


class OscForwarder:

	"""Send each pitch and phrase boundary as an OSC message over UDP."""

	def __init__ (self, host: str = "127.0.0.1", port: int = 9001) -> None:

		self.host = host
		self.port = port
		self._client = pythonosc.udp_client.SimpleUDPClient(host, port)
		self._graph: typing.Optional[downhome.transition_graph.TransitionGraph] = None

		logger.info(f"OSC sending to {host}:{port}")


	def attach (self, generator: "MelodyGenerator") -> None:

		"""Start forwarding a generator's events."""

		self._graph = generator.graph
		generator.on("note", self.on_note)
		generator.on("phrase_end", self.on_phrase_end)
		generator.on("stanza_end", self.on_stanza_end)


	def detach (self, generator: "MelodyGenerator") -> None:

		"""Stop forwarding a generator's events."""

		generator.off("note", self.on_note)
		generator.off("phrase_end", self.on_phrase_end)
		generator.off("stanza_end", self.on_stanza_end)


	def send (self, address: str, *args: typing.Any) -> None:

		"""Send an OSC message, logging rather than raising on failure."""

		try:
			self._client.send_message(address, list(args))
		except OSError as e:
			logger.warning(f"OSC send error: {e}")


	def on_note (self, result: "StepResult") -> None:

		frequency = self._graph.frequency(result.pitch) if self._graph is not None else 0.0

		self.send("/downhome/note", result.pitch, frequency, result.position.phrase, result.position.step_in_phrase)


	def on_phrase_end (self, position: downhome.stanza_state.StanzaPosition, reason: str) -> None:
		self.send("/downhome/phrase", position.phrase)


	def on_stanza_end (self, stanza: int) -> None:
		self.send("/downhome/stanza", stanza)


class MidiForwarder:

	"""Sound each pitch on a MIDI output, one note at a time."""

	def __init__ (self, output_device: typing.Optional[str] = None, channel: int = 0, velocity: int = 90) -> None:

		"""
		Open the output port.

		Parameters:
			output_device: Port name; None auto-selects (see :func:`select_output_device`).
			channel: MIDI channel, 0-15.
			velocity: Note-on velocity, 1-127.
		"""

		if channel < 0 or channel > 15:
			raise ValueError("MIDI channel must be between 0 and 15")

		if velocity < 1 or velocity > 127:
			raise ValueError("Velocity must be between 1 and 127")

		self.channel = channel
		self.velocity = velocity
		self.device_name, self.port = select_output_device(output_device)
		self._graph: typing.Optional[downhome.transition_graph.TransitionGraph] = None
		self._sounding: typing.Optional[int] = None


	def attach (self, generator: "MelodyGenerator") -> None:

		"""Start sounding a generator's pitches."""

		self._graph = generator.graph
		generator.on("note", self.on_note)


	def detach (self, generator: "MelodyGenerator") -> None:

		"""Stop sounding a generator's pitches."""

		generator.off("note", self.on_note)
		self._release()


	def on_note (self, result: "StepResult") -> None:

		if self.port is None or self._graph is None:
			return

		note, bend = pitch_to_midi(self._graph.frequency(result.pitch))

		self._release()
		self.port.send(mido.Message("pitchwheel", channel=self.channel, pitch=bend))
		self.port.send(mido.Message("note_on", channel=self.channel, note=note, velocity=self.velocity))
		self._sounding = note


	def close (self) -> None:

		"""Silence the channel and close the port."""

		if self.port is None:
			return

		self._release()
		self.port.send(mido.Message("control_change", channel=self.channel, control=ALL_NOTES_OFF, value=0))
		self.port.close()
		self.port = None

		logger.info(f"Closed MIDI output: {self.device_name}")


	def _release (self) -> None:

		if self.port is not None and self._sounding is not None:
			self.port.send(mido.Message("note_off", channel=self.channel, note=self._sounding))

		self._sounding = None
