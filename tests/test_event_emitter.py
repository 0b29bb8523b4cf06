import pytest

import downhome.event_emitter


def _emitter () -> downhome.event_emitter.EventEmitter:
	return downhome.event_emitter.EventEmitter(["note", "phrase_end"])


def test_on_and_emit () -> None:

	"""Registered callbacks are called on emit."""

	emitter = _emitter()
	received: list[int] = []

	emitter.on("note", lambda v: received.append(v))
	emitter.emit("note", 42)

	assert received == [42]


def test_callbacks_run_in_registration_order () -> None:

	"""Listeners are called in the order they were added."""

	emitter = _emitter()
	order: list[str] = []

	emitter.on("note", lambda: order.append("first"))
	emitter.on("note", lambda: order.append("second"))
	emitter.emit("note")

	assert order == ["first", "second"]


def test_off_only_removes_target_callback () -> None:

	"""off() leaves other callbacks for the same event intact."""

	emitter = _emitter()
	a: list[int] = []
	b: list[int] = []

	def cb_a (v: int) -> None:
		a.append(v)

	def cb_b (v: int) -> None:
		b.append(v)

	emitter.on("note", cb_a)
	emitter.on("note", cb_b)
	emitter.off("note", cb_a)
	emitter.emit("note", 7)

	assert a == []
	assert b == [7]
	assert emitter.listener_count("note") == 1


def test_off_raises_for_unregistered_callback () -> None:

	"""off() raises ValueError for a callback that was never registered."""

	emitter = _emitter()

	with pytest.raises(ValueError):
		emitter.off("note", lambda: None)


def test_unknown_event_rejected () -> None:

	"""Only the declared events can be used."""

	emitter = _emitter()

	with pytest.raises(ValueError):
		emitter.on("tick", lambda: None)

	with pytest.raises(ValueError):
		emitter.emit("tick")


def test_async_callback_rejected () -> None:

	"""Coroutine functions cannot be registered on a synchronous emitter."""

	emitter = _emitter()

	async def cb () -> None:
		return None

	with pytest.raises(ValueError):
		emitter.on("note", cb)


def test_listener_may_unregister_itself () -> None:

	"""A callback can remove itself while the event is being emitted."""

	emitter = _emitter()
	calls: list[int] = []

	def once (v: int) -> None:
		calls.append(v)
		emitter.off("note", once)

	emitter.on("note", once)
	emitter.emit("note", 1)
	emitter.emit("note", 2)

	assert calls == [1]
