from collections import defaultdict
from typing import Any
from typing import Callable
from typing import Dict
from typing import List
from typing import Tuple

from cdav.lib.error import log

Handler = Callable[..., Any]


class DAVEventListener:
    """
    Minimal event emitter.  Handlers are called synchronously, in the
    order they were added.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        self._event_listeners: Dict[str, List[Tuple[Handler, bool]]] = defaultdict(list)
        super().__init__(*args, **kwargs)

    def add_event_listener(self, event_type: str, handler: Handler, once: bool = False) -> None:
        """
        Args:
            event_type: name of the event, i.e. "update" or "delete".
            handler: called with the arguments given to ``dispatch_event``.
            once: remove the handler after its first call.
        """
        self._event_listeners[event_type].append((handler, once))

    def remove_event_listener(self, event_type: str, handler: Handler) -> None:
        self._event_listeners[event_type] = [
            (h, once) for h, once in self._event_listeners[event_type] if h is not handler
        ]

    def dispatch_event(self, event_type: str, *args: Any) -> None:
        listeners = self._event_listeners.get(event_type)
        if not listeners:
            return
        log.debug(f"dispatching {event_type} to {len(listeners)} listener(s)")

        self._event_listeners[event_type] = [(h, once) for h, once in listeners if not once]
        for handler, _once in listeners:
            handler(*args)
