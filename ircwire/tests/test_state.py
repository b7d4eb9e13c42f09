import threading

from ircwire.state import ConnectionState, Disconnected, State


def test_initial_state():
    state = ConnectionState()
    assert state.current is State.DISCONNECTED
    assert state.disconnected == Disconnected(True, False)
    assert not state.registered
    assert not state.identified


def test_observers_see_transitions():
    state = ConnectionState()
    seen = []
    state.subscribe(lambda old, new: seen.append((old, new)))
    state.connecting()
    state.connected()
    state.advance(State.IDENTIFIED)
    state.disconnect(requested=False)
    assert seen == [
        (State.DISCONNECTED, State.CONNECTING),
        (State.CONNECTING, State.CONNECTED),
        (State.CONNECTED, State.IDENTIFIED),
        (State.IDENTIFIED, State.DISCONNECTED),
    ]


def test_advance_only_moves_forward():
    state = ConnectionState()
    assert not state.advance(State.REGISTERED)
    state.connected()
    assert state.advance(State.IDENTIFIED)
    assert not state.advance(State.REGISTERED)
    assert state.registered
    assert state.identified


def test_reconnect_starts_a_fresh_session():
    state = ConnectionState()
    state.connected()
    state.advance(State.IDENTIFIED)
    state.disconnect(requested=False)
    state.connected()
    assert state.disconnected == Disconnected(False, False)
    assert not state.registered
    assert state.advance(State.REGISTERED)


def test_restore():
    state = ConnectionState()
    state.connecting()
    state.restore(State.DISCONNECTED)
    assert state.current is State.DISCONNECTED


def test_wait_for():
    state = ConnectionState()
    assert not state.wait_for(State.CONNECTED, timeout=0.01)
    timer = threading.Timer(0.05, state.connected)
    timer.start()
    assert state.wait_for(State.CONNECTED, timeout=5)
    timer.join()


def test_only_one_thread_wins_the_transition():
    state = ConnectionState()
    state.connected()
    results = []
    barrier = threading.Barrier(8)

    def contend():
        barrier.wait()
        results.append(state.advance(State.REGISTERED))

    threads = [threading.Thread(target=contend) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert results.count(True) == 1
