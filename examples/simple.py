import logging

import downhome

logging.basicConfig(level=logging.INFO)

gen = downhome.MelodyGenerator(seed=12)

# One line per phrase: restart pitch first, then the chosen notes.
phrase = []

for result in gen.generate_stanzas(2):

	phrase.append(result.pitch)

	if result.phrase_ended:
		position = result.position
		print(f"stanza {position.stanza} phrase {position.phrase} [{position.contour_type}]: {' '.join(phrase)} ({result.end_reason})")
		phrase = []
