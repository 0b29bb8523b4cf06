"""
Downhome - a rule-driven melody generator for the 12-bar blues.

Downhome walks a directed graph of permissible pitch transitions drawn from
early downhome blues singing and shapes every step with the form of the
stanza it is in: three lines, six phrases (a-f), I / IV / V underneath.

What it models:

- **Form.** A stanza tracker knows the line, phrase and step, draws a
  macro contour per stanza (rise-then-fall, pure descent, late peak) and
  reports the chord under every step, including the V to IV move in phrase
  e and the optional IV at the start of phrase f.
- **Biased walking.** Each outgoing edge is scored by an ordered list of
  small rules (downward bias, anti-backtracking, upward skips at phrase
  starts, cadence pull to the keynote, the G / Bb pendulum over V) whose
  multipliers compose. Every contribution is available for inspection.
- **Closure.** Phrases end when they come to rest, not on a fixed count:
  each note after the fourth earns a closure probability from its pitch
  role, direction, harmony, contour and length.
- **Repetition.** The second line echoes the first and the last phrase
  echoes the second, with a small chance of variation at every step.
- **Determinism.** One seed reproduces a whole run.

Minimal example:

    ```python
    import downhome

    gen = downhome.MelodyGenerator(seed=7)

    for result in gen.generate_stanzas(1):
        print(result.position.phrase, result.pitch)
    ```

Pitches can be forwarded as they are generated with
:class:`~downhome.consumers.OscForwarder` or
:class:`~downhome.consumers.MidiForwarder`, or from the command line with
``python -m downhome --osc`` / ``--midi``.

Package-level exports: ``MelodyGenerator``, ``StepResult``, ``TitonNetwork``, ``PitchNetwork``.
"""

import downhome.generator
import downhome.networks
import downhome.networks.titon


MelodyGenerator = downhome.generator.MelodyGenerator
StepResult = downhome.generator.StepResult
PitchNetwork = downhome.networks.PitchNetwork
TitonNetwork = downhome.networks.titon.TitonNetwork
