"""
Connection lifecycle tracking.
"""

import collections
import enum
import logging
import threading

log = logging.getLogger(__name__)


class State(enum.IntEnum):
    """
    The lifecycle of one server session. Later members imply the
    earlier ones, apart from DISCONNECTED.
    """

    DISCONNECTED = 0
    CONNECTING = 1
    CONNECTED = 2
    REGISTERED = 3
    IDENTIFIED = 4


Disconnected = collections.namedtuple('Disconnected', 'value requested')


class ConnectionState:
    """
    Synchronized connection flags with change notification.

    >>> state = ConnectionState()
    >>> state.current
    <State.DISCONNECTED: 0>
    >>> state.disconnected
    Disconnected(value=True, requested=False)
    >>> state.connected()
    >>> state.advance(State.REGISTERED)
    True
    >>> state.advance(State.REGISTERED)
    False
    >>> state.registered
    True
    >>> state.disconnect(requested=True)
    >>> state.disconnected
    Disconnected(value=True, requested=True)
    >>> state.advance(State.IDENTIFIED)
    False
    """

    def __init__(self):
        self.condition = threading.Condition(threading.RLock())
        self._current = State.DISCONNECTED
        self._disconnected = Disconnected(True, False)
        self._observers = []

    @property
    def current(self):
        return self._current

    @property
    def registered(self):
        return self._current >= State.REGISTERED

    @property
    def identified(self):
        return self._current is State.IDENTIFIED

    @property
    def disconnected(self):
        return self._disconnected

    def subscribe(self, observer):
        """
        Call ``observer(old, new)`` on every state transition.
        """
        with self.condition:
            self._observers.append(observer)

    def reached(self, state):
        """
        Has ``state`` been reached in the current session?
        """
        if state is State.DISCONNECTED:
            return self._current is State.DISCONNECTED
        return self._current >= state

    def wait_for(self, state, timeout=None):
        """
        Block until ``state`` is reached. Return False on timeout.
        """
        with self.condition:
            return self.condition.wait_for(lambda: self.reached(state), timeout)

    def connecting(self):
        with self.condition:
            change = self._set(State.CONNECTING)
        self._notify(*change)

    def connected(self):
        with self.condition:
            self._disconnected = Disconnected(False, False)
            change = self._set(State.CONNECTED)
        self._notify(*change)

    def restore(self, state):
        """
        Go back to ``state`` after an aborted transition.
        """
        with self.condition:
            change = self._set(state)
        self._notify(*change)

    def advance(self, state):
        """
        Move forward to ``state`` while connected.

        Return True if this call made the transition, False if the
        state was already reached or the connection is down.
        """
        with self.condition:
            if self._current < State.CONNECTED or self._current >= state:
                return False
            change = self._set(state)
        self._notify(*change)
        return True

    def disconnect(self, requested):
        with self.condition:
            self._disconnected = Disconnected(True, requested)
            change = self._set(State.DISCONNECTED)
        self._notify(*change)

    def _set(self, new):
        "[Internal] must hold the condition"
        old, self._current = self._current, new
        self.condition.notify_all()
        return old, new, list(self._observers)

    def _notify(self, old, new, observers):
        log.debug("State %s -> %s", old.name, new.name)
        for observer in observers:
            observer(old, new)
