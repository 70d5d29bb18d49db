"""Unit tests for the phase poller."""

from __future__ import annotations

import asyncio

import pytest

from localssd_e2e.errors import ClusterError, SchedulingTimeout
from localssd_e2e.poller import PhasePoller, WorkloadPhase


class TestWorkloadPhase:
    """Tests for WorkloadPhase."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("Pending", WorkloadPhase.PENDING),
            ("Running", WorkloadPhase.RUNNING),
            ("Succeeded", WorkloadPhase.SUCCEEDED),
            ("Failed", WorkloadPhase.FAILED),
            ("", WorkloadPhase.PENDING),
            ("Evicted", WorkloadPhase.UNKNOWN),
        ],
    )
    def test_parse(self, raw, expected):
        """Test raw phase strings are mapped."""
        assert WorkloadPhase.parse(raw) == expected

    def test_terminal_phases(self):
        """Test only Succeeded and Failed are terminal."""
        terminal = {phase for phase in WorkloadPhase if phase.is_terminal}
        assert terminal == {WorkloadPhase.SUCCEEDED, WorkloadPhase.FAILED}


class TestPhasePoller:
    """Tests for PhasePoller."""

    def test_default_config(self):
        """Test default poller configuration."""
        poller = PhasePoller()
        assert poller.interval_seconds == 2.0
        assert poller.timeout_seconds == 300.0

    @pytest.mark.parametrize("kwargs", [{"interval_seconds": 0}, {"timeout_seconds": -1}])
    def test_invalid_config(self, kwargs):
        """Test non-positive interval or timeout is rejected."""
        with pytest.raises(ValueError):
            PhasePoller(**kwargs)

    @pytest.mark.asyncio
    async def test_wait_until_succeeded(self, make_cluster, fast_poller):
        """Test polling stops at the first terminal phase."""
        cluster = make_cluster(phases=["Pending", "Running", "Succeeded"])
        result = await fast_poller.wait_for_terminal("pod-1", cluster.get_phase)

        assert result.phase == WorkloadPhase.SUCCEEDED
        assert result.attempts == 3
        assert cluster.phase_calls == 3

    @pytest.mark.asyncio
    async def test_wait_until_failed(self, make_cluster, fast_poller):
        """Test Failed is terminal too."""
        cluster = make_cluster(phases=["Running", "Failed"])
        result = await fast_poller.wait_for_terminal("pod-1", cluster.get_phase)
        assert result.phase == WorkloadPhase.FAILED

    @pytest.mark.asyncio
    async def test_timeout_when_never_terminal(self, make_cluster):
        """Test a pod stuck in Pending times out."""
        cluster = make_cluster(phases=["Pending"])
        poller = PhasePoller(interval_seconds=0.01, timeout_seconds=0.1)

        with pytest.raises(SchedulingTimeout) as exc_info:
            await poller.wait_for_terminal("pod-1", cluster.get_phase)

        assert exc_info.value.last_phase == "Pending"
        assert "pod-1" in str(exc_info.value)
        assert cluster.phase_calls > 1

    @pytest.mark.asyncio
    async def test_errors_are_retried(self, fast_poller):
        """Test a failing phase query is retried until it succeeds."""
        calls = []

        def get_phase(name):
            calls.append(name)
            if len(calls) < 3:
                raise ClusterError("connection refused")
            return "Succeeded"

        result = await fast_poller.wait_for_terminal("pod-1", get_phase)
        assert result.phase == WorkloadPhase.SUCCEEDED
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_timeout_reports_last_error(self):
        """Test the last query error appears in the timeout."""

        def get_phase(name):
            raise ClusterError("connection refused")

        poller = PhasePoller(interval_seconds=0.01, timeout_seconds=0.05)
        with pytest.raises(SchedulingTimeout) as exc_info:
            await poller.wait_for_terminal("pod-1", get_phase)

        assert exc_info.value.last_error == "connection refused"
        assert "connection refused" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_on_attempt_callback(self, make_cluster, fast_poller):
        """Test progress callback receives every attempt."""
        cluster = make_cluster(phases=["Pending", "Succeeded"])
        attempts = []

        await fast_poller.wait_for_terminal(
            "pod-1",
            cluster.get_phase,
            on_attempt=lambda attempt, phase, error: attempts.append((attempt, phase, error)),
        )

        assert attempts == [
            (1, WorkloadPhase.PENDING, None),
            (2, WorkloadPhase.SUCCEEDED, None),
        ]

    @pytest.mark.asyncio
    async def test_cancellation_stops_polling(self, make_cluster):
        """Test cancelling the task aborts the wait promptly."""
        cluster = make_cluster(phases=["Pending"])
        poller = PhasePoller(interval_seconds=0.05, timeout_seconds=60.0)

        task = asyncio.create_task(poller.wait_for_terminal("pod-1", cluster.get_phase))
        await asyncio.sleep(0.1)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        await asyncio.sleep(0.01)
        calls_after_cancel = cluster.phase_calls
        await asyncio.sleep(0.15)
        assert cluster.phase_calls == calls_after_cancel

    def test_sync_wrapper(self, make_cluster, fast_poller):
        """Test synchronous wrapper."""
        cluster = make_cluster(phases=["Succeeded"])
        result = fast_poller.wait_for_terminal_sync("pod-1", cluster.get_phase)
        assert result.phase == WorkloadPhase.SUCCEEDED
        assert result.attempts == 1
