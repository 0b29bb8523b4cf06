import downhome

gen = downhome.MelodyGenerator(seed=3)

# Walk into phrase b and show how each rule shaped the next choice.
while gen.get_position().phrase != "b" or gen.get_position().step_in_phrase < 5:
	gen.advance()

print(f"From {gen.current_pitch} at {gen.get_position().phrase}[{gen.get_position().step_in_phrase}]:")

scored = gen.explain()
total = sum(candidate.weight for candidate in scored)

for candidate in scored:

	active = {rule: factor for rule, factor in candidate.contributions.items() if factor != 1.0}
	share = candidate.weight / total if total else 0.0

	print(f"  {candidate.pitch:6} {share:5.1%}  {active}")
