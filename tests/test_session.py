"""
Tests for the export session: submission fan-out, failure accounting,
and the end-to-end batch scenarios.
"""
import asyncio

import pytest

from services.clip_export import (
    ExportInputError,
    LocalJobId,
    Platform,
    RejectedError,
    RemoteJobId,
    RenderStatus,
    TransportError,
    UnauthorizedError,
)
from services.clip_export.engines.base import EngineStatus, StatusReport
from services.clip_export.engines.mock import MockRenderEngine
from services.event_bus import Topics


class CrashingEngine(MockRenderEngine):
    """Raises a non-dispatch error on the n-th submit."""

    def __init__(self, crash_on):
        super().__init__()
        self.crash_on = crash_on

    async def submit(self, descriptor, output_spec):
        if len(self.submissions) + 1 == self.crash_on:
            self.submissions.append((descriptor, output_spec))
            raise RuntimeError("adapter bug")
        return await super().submit(descriptor, output_spec)


class TestSubmitBatch:
    @pytest.mark.asyncio
    async def test_successful_submissions_start_rendering(self, make_session, make_clip):
        async with make_session() as session:
            jobs = await session.submit_batch([make_clip(), make_clip()], Platform.TIKTOK)

            assert len(jobs) == 2
            for job in jobs:
                assert isinstance(job.id, RemoteJobId)
                assert job.status is RenderStatus.RENDERING
                assert job.progress == 0
                assert job.platform is Platform.TIKTOK

    @pytest.mark.asyncio
    async def test_caption_flag_overrides_clip(self, make_session, make_clip, engine):
        async with make_session() as session:
            await session.submit_batch([make_clip(captions_enabled=True)], Platform.TIKTOK, captions_enabled=False)

        descriptor, output_spec = engine.submissions[0]
        assert descriptor.caption_layer is None
        assert (output_spec.width, output_spec.height, output_spec.frame_rate) == (1080, 1920, 30)

    @pytest.mark.asyncio
    async def test_empty_selection_rejected_before_dispatch(self, make_session, engine):
        async with make_session() as session:
            with pytest.raises(ExportInputError):
                await session.submit_batch([], Platform.TIKTOK)

            assert len(session.registry) == 0
        assert engine.submissions == []

    @pytest.mark.asyncio
    async def test_invalid_range_rejected_before_any_dispatch(self, make_session, make_clip, engine):
        from services.clip_export import ClipRequest

        bad = ClipRequest.model_construct(
            clip_id="bad", source_video_ref="abc", start_offset_seconds=50,
            end_offset_seconds=10, title="", captions_enabled=True,
        )
        async with make_session() as session:
            with pytest.raises(ExportInputError):
                await session.submit_batch([make_clip(), bad], Platform.TIKTOK)

            assert len(session.registry) == 0
        assert engine.submissions == []

    @pytest.mark.asyncio
    async def test_failures_do_not_block_siblings(self, make_session, make_clip, engine, recorded_events):
        engine.fail_next_submit(TransportError("engine down", status_code=503))
        async with make_session() as session:
            jobs = await session.submit_batch([make_clip(), make_clip(), make_clip()], Platform.TIKTOK)

            assert [j.status for j in jobs] == [RenderStatus.FAILED, RenderStatus.RENDERING, RenderStatus.RENDERING]
            assert isinstance(jobs[0].id, LocalJobId)
            assert len(engine.submissions) == 3

        failures = [e for e in recorded_events if e.topic == Topics.RENDER_DISPATCH_FAILED]
        assert len(failures) == 1
        assert failures[0].payload["message"] == "Failed to start export for TikTok"
        assert failures[0].payload["error_type"] == "TransportError"

    @pytest.mark.asyncio
    async def test_unexpected_engine_error_does_not_block_siblings(self, make_session, make_clip, recorded_events):
        engine = CrashingEngine(crash_on=2)
        async with make_session(engine=engine) as session:
            jobs = await session.submit_batch([make_clip(), make_clip(), make_clip()], Platform.TIKTOK)

            assert len(engine.submissions) == 3
            assert [j.status for j in session.snapshot()] == [
                RenderStatus.RENDERING, RenderStatus.FAILED, RenderStatus.RENDERING,
            ]
            assert isinstance(jobs[1].id, LocalJobId)
            assert "adapter bug" in jobs[1].error_message
            assert session.poller.is_running

        failures = [e for e in recorded_events if e.topic == Topics.RENDER_DISPATCH_FAILED]
        assert [e.payload["error_type"] for e in failures] == ["RuntimeError"]

    @pytest.mark.asyncio
    async def test_accepted_jobs_are_polled_before_batch_ends(self, make_session, make_clip):
        engine = CrashingEngine(crash_on=2)
        session = make_session(engine=engine)
        polling_seen = []

        async def on_submitted(event):
            polling_seen.append(session.poller.is_running)

        session.subscribe(Topics.RENDER_SUBMITTED, on_submitted)
        await session.submit_batch([make_clip(), make_clip()], Platform.TIKTOK)

        assert polling_seen == [True]
        await session.close()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        UnauthorizedError("bad key", status_code=401),
        RejectedError("unsupported source", status_code=400),
        TransportError("timeout"),
    ])
    async def test_job_count_matches_attempts(self, make_session, make_clip, engine, error):
        engine.fail_next_submit(error)
        engine.fail_next_submit(error)
        async with make_session() as session:
            await session.submit_batch([make_clip() for _ in range(4)], Platform.YOUTUBE_SHORTS)

            snapshot = session.snapshot()
            assert len(snapshot) == 4
            assert sum(1 for j in snapshot if j.status is RenderStatus.FAILED) == 2

    @pytest.mark.asyncio
    async def test_batch_started_notification(self, make_session, make_clip, recorded_events):
        async with make_session() as session:
            jobs = await session.submit_batch([make_clip(), make_clip()], Platform.TIKTOK)

        started = [e for e in recorded_events if e.topic == Topics.EXPORT_BATCH_STARTED]
        assert len(started) == 1
        assert started[0].payload["message"] == "Started rendering 2 clips"
        assert started[0].payload["job_ids"] == [str(j.id) for j in jobs]


class TestSubmitSingle:
    @pytest.mark.asyncio
    async def test_one_job_per_platform(self, make_session, make_clip):
        clip = make_clip()
        async with make_session() as session:
            jobs = await session.submit_single(clip, [Platform.TIKTOK, Platform.INSTAGRAM_REELS])

            assert [j.platform for j in jobs] == [Platform.TIKTOK, Platform.INSTAGRAM_REELS]
            assert {j.clip_ref for j in jobs} == {clip.clip_id}
            assert len(session.registry.find_by_clip(clip.clip_id)) == 2

    @pytest.mark.asyncio
    async def test_duplicate_platforms_submitted_once(self, make_session, make_clip, engine):
        async with make_session() as session:
            jobs = await session.submit_single(make_clip(), [Platform.TIKTOK, Platform.TIKTOK])

        assert len(jobs) == 1
        assert len(engine.submissions) == 1

    @pytest.mark.asyncio
    async def test_no_platforms_rejected(self, make_session, make_clip, engine):
        async with make_session() as session:
            with pytest.raises(ExportInputError):
                await session.submit_single(make_clip(), [])
        assert engine.submissions == []


class TestScenarios:
    @pytest.mark.asyncio
    async def test_mixed_outcome_batch(self, make_session, make_clip, engine):
        async with make_session() as session:
            jobs = await session.submit_batch(
                [make_clip(), make_clip(), make_clip()], Platform.TIKTOK, captions_enabled=True
            )
            assert all(j.status is RenderStatus.RENDERING for j in jobs)
            assert all(d.caption_layer is not None for d, _ in engine.submissions)

            first, second, third = (str(j.id) for j in jobs)
            engine.script_status(first, StatusReport(first, EngineStatus.SUCCEEDED, 1.0, url="X"))
            engine.script_status(second, StatusReport(second, EngineStatus.FAILED))
            engine.script_status(third, StatusReport(third, EngineStatus.RENDERING, 0.4))

            await session.poller.tick()

            progress = session.progress()
            assert [j.result_url for j in progress.completed] == ["X"]
            assert progress.failed_count == 1
            assert progress.rendering_count == 1
            rendering = [j for j in session.snapshot() if j.status is RenderStatus.RENDERING]
            assert rendering[0].progress == pytest.approx(40)
            assert progress.overall_progress == pytest.approx((100 + 0 + 40) / 3)

    @pytest.mark.asyncio
    async def test_unauthorized_job_is_never_polled(self, make_session, make_clip, engine):
        engine.submit_error = UnauthorizedError("Invalid API key", status_code=401)
        async with make_session() as session:
            jobs = await session.submit_batch([make_clip()], Platform.TIKTOK)

            assert jobs[0].status is RenderStatus.FAILED
            assert jobs[0].error_message == "Invalid API key"
            assert not session.poller.is_running

            await session.poller.tick()
        assert engine.status_checks == []

    @pytest.mark.asyncio
    async def test_transient_status_error_changes_nothing(self, make_session, make_clip, engine):
        from services.clip_export import StatusError

        async with make_session() as session:
            jobs = await session.submit_batch([make_clip()], Platform.TIKTOK)
            job_id = str(jobs[0].id)
            engine.script_status(job_id, StatusReport(job_id, EngineStatus.RENDERING, 0.3), StatusError("reset"))
            await session.poller.tick()
            before = session.snapshot()

            await session.poller.tick()

            assert session.snapshot() == before

    @pytest.mark.asyncio
    async def test_background_polling_completes_batch(self, make_session, make_clip, recorded_events):
        async with make_session(poll_interval=0.01) as session:
            await session.submit_single(make_clip(), list(Platform))

            for _ in range(200):
                if session.progress().is_finished:
                    break
                await asyncio.sleep(0.01)

            progress = session.progress()
            assert progress.overall_progress == 100
            assert len(progress.ready_urls) == 3

        completed = [e for e in recorded_events if e.topic == Topics.RENDER_COMPLETED]
        assert len(completed) == 3


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_reset_drops_jobs_and_stops_polling(self, make_session, make_clip, engine, recorded_events):
        session = make_session()
        await session.submit_batch([make_clip()], Platform.TIKTOK)
        assert session.poller.is_running

        await session.reset()

        assert session.snapshot() == []
        assert not session.poller.is_running
        assert engine.status_checks == []
        assert any(e.topic == Topics.EXPORT_SESSION_RESET for e in recorded_events)
        await session.close()

    @pytest.mark.asyncio
    async def test_subscribe(self, make_session, make_clip):
        seen = []

        async def on_event(event):
            seen.append(event.topic)

        async with make_session() as session:
            session.subscribe("render.*", on_event)
            await session.submit_batch([make_clip()], Platform.TIKTOK)

        assert seen == [Topics.RENDER_SUBMITTED]
