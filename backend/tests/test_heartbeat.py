from conftest import frame


def test_sweep_pings_live_sessions_without_touching_last_seen(hub, join, clock):
    alice = join('Alice')
    alice.clear()
    alice_id = hub.registry.sessions()[0].id
    before = hub.registry.get(alice_id).last_seen

    clock.advance(15)
    assert hub.heartbeat.sweep() == []
    assert alice.sent == [{'type': 'ping'}]
    assert hub.registry.get(alice_id).last_seen == before


def test_session_at_exact_timeout_is_kept(hub, join, clock):
    join('Alice')
    clock.advance(30)
    assert hub.heartbeat.sweep() == []
    assert len(hub.registry) == 1


def test_silent_session_is_evicted_with_one_leave(hub, join, clock):
    alice = join('Alice')
    bob = join('Bob')
    alice_id = alice.frames('welcome')[0]['id']
    bob.clear()

    clock.advance(20)
    hub.receive(bob, frame(type='pong'))
    clock.advance(15)

    assert hub.heartbeat.sweep() == [alice_id]
    assert alice.terminated
    assert alice_id not in hub.registry
    assert bob.frames('leave') == [{'type': 'leave', 'id': alice_id}]
    assert bob.frames('ping') == [{'type': 'ping'}]
    assert alice.frames('leave') == []

    # A later close event from the transport must not announce the leave again
    assert hub.release(alice) is False
    assert len(bob.frames('leave')) == 1


def test_pong_keeps_session_alive_across_ticks(hub, join, clock):
    alice = join('Alice')
    for _ in range(5):
        clock.advance(15)
        hub.heartbeat.sweep()
        hub.receive(alice, frame(type='pong'))
    assert len(hub.registry) == 1
    assert len(alice.frames('ping')) == 5


def test_evicted_session_disappears_from_welcome(hub, join, clock):
    alice = join('Alice')
    clock.advance(31)
    hub.heartbeat.sweep()
    bob = join('Bob')
    assert bob.frames('welcome')[0]['players'] == []
    assert alice.terminated


def test_terminate_failure_still_evicts(hub, join, clock):
    alice = join('Alice')
    bob = join('Bob')

    def broken_terminate():
        raise OSError('already gone')
    alice.terminate = broken_terminate
    clock.advance(31)
    hub.receive(bob, frame(type='pong'))
    assert len(hub.heartbeat.sweep()) == 1
    assert len(bob.frames('leave')) == 1


def test_run_loop_sweeps_each_interval_until_stopped(hub, join, clock):
    alice = join('Alice')
    alice.clear()
    sleeps = []

    def fake_sleep(seconds):
        sleeps.append(seconds)
        clock.advance(seconds)
        hub.receive(alice, frame(type='pong'))
        if len(sleeps) == 3:
            hub.heartbeat.stop()

    hub.heartbeat.run(sleep=fake_sleep)
    assert sleeps == [15, 15, 15]
    # The third tick is skipped because stop() happened during the sleep
    assert alice.frames('ping') == [{'type': 'ping'}, {'type': 'ping'}]
    assert not hub.heartbeat.running


def test_run_loop_survives_sweep_errors(hub, clock, monkeypatch):
    calls = []

    def failing_sweep(now=None):
        calls.append(now)
        if len(calls) == 2:
            hub.heartbeat.stop()
        raise RuntimeError('tick failed')
    monkeypatch.setattr(hub.heartbeat, 'sweep', failing_sweep)
    hub.heartbeat.run(sleep=lambda seconds: None)
    assert len(calls) == 2
