import logging
from collections import deque
from enum import Enum
from typing import Callable, Iterable, Mapping, Optional
from .logic import ScriptAction, Wait

logger = logging.getLogger(__name__)

DEFAULT_WAIT_TICKS = 60

class HandlerResult(Enum):
    """What an effect handler tells the script runner after it has been called"""
    COMPLETE = "complete"       # Advance to the next action
    PENDING = "pending"         # Handler is waiting on something external and will call advance()

ActionHandler = Callable[[ScriptAction], Optional[HandlerResult]]

class ScriptRunner:
    """
    Executes an action list one action per tick.

    Effects are applied by caller-supplied handlers, keyed by action tag.
    'wait' is handled by the runner itself by counting ticks. Only one
    action list runs at a time. Starting another replaces it.
    """
    def __init__(self, default_wait: int = DEFAULT_WAIT_TICKS):
        self.default_wait = default_wait
        self.queue: deque[ScriptAction] = deque()
        self.current_action: Optional[ScriptAction] = None
        self.running = False
        self.pending = False
        self.wait_ticks = 0
        self.on_complete: Optional[Callable[[], object]] = None
        self._generation = 0
        self._dispatching = False      # A handler is running inside update()
        self._advanced_early = False   # That handler called advance() before returning

    def run(self, actions: Iterable[ScriptAction], on_complete: Optional[Callable[[], object]] = None):
        if self.running:
            logger.debug("Replacing running script (%d actions not executed)", len(self.queue) + 1)
        self._generation += 1
        self.queue = deque(actions)
        self.running = True
        self.on_complete = on_complete
        self._next()

    def is_running(self) -> bool:
        return self.running

    def update(self, handlers: Mapping[str, ActionHandler]):
        """Called once per tick."""
        if not self.running or self.current_action is None or self.pending:
            return
        action = self.current_action

        if isinstance(action, Wait):
            self.wait_ticks += 1
            if self.wait_ticks >= self.wait_duration(action):
                self._next()
            return

        generation = self._generation
        handler = handlers.get(action.tag)
        if handler is None:
            logger.warning("No handler for script action '%s'. Skipping.", action.tag)
        else:
            self._dispatching = True
            self._advanced_early = False
            try:
                result = handler(action)
            finally:
                self._dispatching = False
            if generation != self._generation:
                return      # Handler started or cancelled a script
            if result == HandlerResult.PENDING and not self._advanced_early:
                self.pending = True
                return

        self._next()

    def advance(self):
        """Resume after a handler returned HandlerResult.PENDING. May also be called by the handler itself."""
        if self._dispatching:
            self._advanced_early = True
            return
        if not self.pending:
            logger.warning("advance() called with no pending script action")
            return
        self._next()

    def cancel(self):
        """Stop immediately. Already applied actions stay applied and on_complete is not called."""
        self._generation += 1
        self.queue.clear()
        self.running = False
        self.pending = False
        self.current_action = None
        self.wait_ticks = 0
        self.on_complete = None

    def wait_duration(self, action: Wait) -> int:
        return self.default_wait if action.duration is None else action.duration

    def _next(self):
        self.wait_ticks = 0
        self.pending = False

        if not self.queue:
            on_complete = self.on_complete
            self.running = False
            self.current_action = None
            self.on_complete = None
            if on_complete:
                on_complete()
            return

        self.current_action = self.queue.popleft()
