import asyncio
import json
from unittest.mock import MagicMock, patch

import pytest

from config.catalog import build_initial_catalog
from config.config import InvalidParametersError, SimulationParams
from environments.session import SimulationSession
from models.enums import ConnectionStatus, SchedulerState

# --- Test Fixtures --- #


@pytest.fixture
def slow_params() -> SimulationParams:
    """Interval long enough that only the immediate tick runs during a test."""
    return SimulationParams(simulation_interval=60)


@pytest.fixture
def session(recording_transport, slow_params, fixed_clock) -> SimulationSession:
    return SimulationSession(transport=recording_transport, params=slow_params, seed=1, clock=fixed_clock)


# --- Lifecycle --- #


def test_session_initial_state(session):
    assert session.state == SchedulerState.STOPPED
    assert session.products == ()
    assert session.history == []
    assert session.current is None
    assert session.connection_status == ConnectionStatus.DISCONNECTED.value


@pytest.mark.asyncio
async def test_start_runs_immediate_tick_and_publishes(session, recording_transport):
    assert session.start() is True
    try:
        assert session.state == SchedulerState.RUNNING
        assert session.connection_status == "Connected"
        assert session.tick_count == 1
        assert len(session.history) == 1
        # three product updates followed by the aggregate
        messages = [json.loads(m) for m in recording_transport.published]
        assert [m.get("event") for m in messages] == ["product_update"] * 3 + [None]
        assert messages[-1]["inventory_level"] == sum(p.current_stock for p in session.products)
        assert session.current.aggregate == session.history[-1]
        assert session.current.products == session.products
    finally:
        session.stop()


@pytest.mark.asyncio
async def test_start_while_running_is_noop(session, recording_transport):
    session.start()
    try:
        assert session.start() is False
        assert recording_transport.connect_calls == 1
        assert session.tick_count == 1
    finally:
        session.stop()


@pytest.mark.asyncio
async def test_invalid_params_rejected_before_side_effects(recording_transport, fixed_clock):
    session = SimulationSession(
        transport=recording_transport,
        params=SimulationParams(lead_time_min=6, lead_time_max=2),
        clock=fixed_clock,
    )
    with pytest.raises(InvalidParametersError):
        session.start()
    assert session.state == SchedulerState.STOPPED
    assert recording_transport.connect_calls == 0
    assert session.products == ()


def test_start_without_event_loop_leaves_session_stopped(recording_transport, fixed_clock):
    session = SimulationSession(transport=recording_transport, clock=fixed_clock)
    with pytest.raises(RuntimeError, match="running event loop"):
        session.start()
    assert session.state == SchedulerState.STOPPED
    assert recording_transport.connect_calls == 0
    assert session.tick_count == 0
    assert session.products == ()
    assert session.connection_status == ConnectionStatus.DISCONNECTED.value


@pytest.mark.asyncio
async def test_stop_disconnects_and_halts_ticks(recording_transport, fixed_clock):
    session = SimulationSession(
        transport=recording_transport,
        params=SimulationParams(simulation_interval=0.01),
        seed=3,
        clock=fixed_clock,
    )
    session.start()
    await asyncio.sleep(0.1)
    session.stop()
    ticks_at_stop = session.tick_count

    assert ticks_at_stop >= 2
    assert session.state == SchedulerState.STOPPED
    assert recording_transport.disconnect_calls == 1
    assert session.connection_status == "Disconnected"

    await asyncio.sleep(0.05)
    assert session.tick_count == ticks_at_stop
    assert len(session.history) == ticks_at_stop


def test_stop_when_stopped_is_noop(session, recording_transport):
    session.stop()
    assert recording_transport.disconnect_calls == 0
    assert session.state == SchedulerState.STOPPED


@pytest.mark.asyncio
async def test_restart_resets_catalog_and_history(session, fixed_now):
    session.start()
    for _ in range(5):
        session.run_tick()
    session.stop()
    assert len(session.history) == 6

    with patch.object(session, "run_tick") as mock_tick:
        session.start()
        try:
            mock_tick.assert_called_once()
            assert session.history == []
            assert list(session.products) == build_initial_catalog(fixed_now)
            assert session.current is None
        finally:
            session.stop()


@pytest.mark.asyncio
async def test_offline_transport_does_not_block_ticks(offline_transport, slow_params, fixed_clock):
    session = SimulationSession(transport=offline_transport, params=slow_params, seed=2, clock=fixed_clock)
    session.start()
    try:
        session.run_tick()
        assert session.tick_count == 2
        assert offline_transport.published == []
        assert session.connection_status == "Connecting"
    finally:
        session.stop()


@pytest.mark.asyncio
async def test_publish_exception_does_not_abort_tick(slow_params, fixed_clock, caplog):
    transport = MagicMock()
    transport.publish.side_effect = RuntimeError("socket closed")
    session = SimulationSession(transport=transport, params=slow_params, seed=2, clock=fixed_clock)

    session.start()
    try:
        assert session.tick_count == 1
        assert len(session.history) == 1
        assert "socket closed" in caplog.text
    finally:
        session.stop()
    transport.disconnect.assert_called_once()


def test_run_tick_when_stopped_does_nothing(session):
    assert session.run_tick() is None
    assert session.history == []


# --- Observers and params --- #


@pytest.mark.asyncio
async def test_tick_listeners_receive_snapshots(session):
    received = []
    failing = MagicMock(side_effect=ValueError("boom"))
    session.add_tick_listener(failing)
    session.add_tick_listener(received.append)

    session.start()
    try:
        session.run_tick()
    finally:
        session.stop()

    assert len(received) == 2
    assert received[-1].aggregate == session.history[-1]
    assert failing.call_count == 2


def test_add_tick_listener_rejects_non_callable(session):
    with pytest.raises(TypeError):
        session.add_tick_listener("nope")  # type: ignore [arg-type]


def test_remove_tick_listener(session):
    listener = MagicMock()
    session.add_tick_listener(listener)
    session.remove_tick_listener(listener)
    session.remove_tick_listener(listener)  # unknown listener is ignored
    assert session._listeners == []


@pytest.mark.asyncio
async def test_update_params_only_while_stopped(session):
    session.update_params(SimulationParams(demand_max=20, simulation_interval=30))
    assert session.params.demand_max == 20

    with pytest.raises(InvalidParametersError):
        session.update_params(SimulationParams(simulation_interval=-1))

    session.start()
    try:
        with pytest.raises(RuntimeError):
            session.update_params(SimulationParams())
    finally:
        session.stop()


@pytest.mark.asyncio
async def test_seeded_sessions_are_reproducible(fixed_clock, slow_params):
    first = SimulationSession(transport=MagicMock(), params=slow_params, seed=21, clock=fixed_clock)
    second = SimulationSession(transport=MagicMock(), params=slow_params, seed=21, clock=fixed_clock)
    for session in (first, second):
        session.start()
        for _ in range(10):
            session.run_tick()
        session.stop()
    assert first.history == second.history
    assert first.products == second.products
