import asyncio
import typing


CallbackType = typing.Callable[..., typing.Any]


class EventEmitter:

	"""
	A synchronous listener registry restricted to a fixed set of event names.
	"""

	def __init__ (self, events: typing.Iterable[str]) -> None:

		"""
		Initialize an empty registry for the given event names.
		"""

		self._listeners: typing.Dict[str, typing.List[CallbackType]] = {name: [] for name in events}


	@property
	def events (self) -> typing.List[str]:

		"""
		Return the event names this emitter accepts.
		"""

		return list(self._listeners)


	def on (self, event_name: str, callback: CallbackType) -> None:

		"""
		Register a callback for an event name.

		Raises ``ValueError`` for unknown events and for coroutine functions,
		which a synchronous generator cannot await.
		"""

		self._check_event(event_name)

		if asyncio.iscoroutinefunction(callback):
			raise ValueError(f"Async callbacks are not supported for event {event_name!r}")

		self._listeners[event_name].append(callback)

	def off (self, event_name: str, callback: CallbackType) -> None:

		"""
		Unregister a previously registered callback.

		Raises ``ValueError`` if the callback is not registered for the event.
		"""

		self._check_event(event_name)

		if callback not in self._listeners[event_name]:
			raise ValueError(f"Callback not registered for event {event_name!r}")

		self._listeners[event_name].remove(callback)


	def listener_count (self, event_name: str) -> int:

		"""
		Return how many callbacks are registered for an event.
		"""

		self._check_event(event_name)

		return len(self._listeners[event_name])


	def emit (self, event_name: str, *args: typing.Any, **kwargs: typing.Any) -> None:

		"""
		Call every listener for an event, in registration order.
		"""

		self._check_event(event_name)

		# Copy so a listener may unregister itself while being called.
		for callback in list(self._listeners[event_name]):
			callback(*args, **kwargs)


	def _check_event (self, event_name: str) -> None:

		if event_name not in self._listeners:
			raise ValueError(f"Unknown event {event_name!r}; expected one of {', '.join(self._listeners)}")
