import logging
import time

import downhome
import downhome.consumers

logging.basicConfig(level=logging.INFO)

# Seconds per note. The generator has no clock, so the caller paces it.
NOTE_SECONDS = 0.35

gen = downhome.MelodyGenerator(seed=21)

osc = downhome.consumers.OscForwarder("127.0.0.1", 9001)
osc.attach(gen)

midi = downhome.consumers.MidiForwarder(channel=0)
midi.attach(gen)

try:
	while True:
		result = gen.advance()
		time.sleep(NOTE_SECONDS * (2 if result.phrase_ended else 1))

except KeyboardInterrupt:
	pass

finally:
	midi.close()
