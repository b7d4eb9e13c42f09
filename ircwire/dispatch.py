"""
Route events to the handlers registered for their code.
"""

import concurrent.futures
import itertools
import logging
import threading

log = logging.getLogger(__name__)


class Registry:
    """
    Handlers keyed by event code.

    Codes are matched exactly and case-sensitively: numerics ("001"),
    commands ("PRIVMSG", "KICK") and CTCP keywords ("VERSION") all
    share the same namespace. Handlers are called as
    ``handler(connection, event)`` in the order they were added.

    >>> registry = Registry()
    >>> registry.add('PRIVMSG', print)
    >>> len(registry.handlers_for('PRIVMSG'))
    1
    >>> registry.handlers_for('NOTICE')
    ()

    The methods of this class are thread-safe.
    """

    def __init__(self):
        self.handlers = {}
        self.mutex = threading.RLock()

    def add(self, code, handler):
        """Add a handler function for events with the given code."""
        with self.mutex:
            self.handlers.setdefault(str(code), []).append(handler)

    def handlers_for(self, code):
        with self.mutex:
            return tuple(self.handlers.get(str(code), ()))

    def dispatch(self, connection, event):
        """
        Call every handler registered for ``event.code``.

        A handler that raises is logged; the remaining handlers still
        run.
        """
        for handler in self.handlers_for(event.code):
            try:
                handler(connection, event)
            except Exception:
                log.exception("Handler %r failed on %s", handler, event.code)


class ThreadExecutor(concurrent.futures.Executor):
    """
    Run every submitted call on a new daemon thread.

    Unlike a pool, there is no queue: work submitted now starts now,
    however many earlier calls are still blocked.

    >>> executor = ThreadExecutor(thread_name_prefix='doc')
    >>> executor.submit(sum, [1, 2, 3]).result(timeout=5)
    6
    """

    def __init__(self, thread_name_prefix='ircwire'):
        self.thread_name_prefix = thread_name_prefix
        self._counter = itertools.count()

    def submit(self, fn, *args, **kwargs):
        future = concurrent.futures.Future()

        def run():
            if not future.set_running_or_notify_cancel():
                return
            try:
                result = fn(*args, **kwargs)
            except Exception as exc:
                future.set_exception(exc)
            else:
                future.set_result(result)

        name = '{}_{}'.format(self.thread_name_prefix, next(self._counter))
        threading.Thread(target=run, name=name, daemon=True).start()
        return future
