"""Tests for the identification loop driven through SessionManager."""

import asyncio
import time

import pytest

from identification.models import SearchResult, SessionStatus

from conftest import (
    FakeFilms,
    FakeFrameSource,
    FakeFrameStore,
    FakeSearch,
    FakeVision,
    bttf_result,
    build_manager,
    collect_updates,
    delorean_analysis,
    fast_config,
    spaceship_analysis,
    update_types,
)


def _run(manager, video_id: str = "video-1"):
    async def scenario():
        session = manager.start(video_id)
        updates = await collect_updates(session)
        await session.task
        return session, updates

    return asyncio.run(scenario())


class TestCompletion:
    def test_completes_on_first_confident_frame(self):
        films = FakeFilms()
        store = FakeFrameStore()
        manager = build_manager(FakeVision(delorean_analysis()), FakeSearch([bttf_result()]), films, store)

        session, updates = _run(manager)

        assert update_types(updates) == ["chips", "candidates", "complete"]
        assert session.status is SessionStatus.COMPLETE
        assert session.completed_at is not None
        assert films.requested == ["105"]
        assert store.created == [0]

        complete = updates[-1].data
        assert complete["session_id"] == session.id
        assert complete["video_id"] == "video-1"
        assert complete["frames_used"] == 1
        assert complete["confidence"] == pytest.approx(0.75)
        assert complete["film_details"]["title"] == "Back to the Future"
        assert complete["time_elapsed"] >= 0

    def test_candidates_event_payload(self):
        manager = build_manager(FakeVision(delorean_analysis()), FakeSearch([bttf_result()]))
        _, updates = _run(manager)

        chips = updates[0].data
        assert [c["value"] for c in chips["chips"]] == ["1980s", "sci-fi", "car"]

        candidates = updates[1].data
        assert candidates["frame"] == 0
        assert candidates["confidence"] == pytest.approx(0.75)
        [top] = candidates["candidates"]
        assert top["title"] == "Back to the Future"
        assert top["catalog_id"] == "105"
        assert top["year"] == 1985

    def test_reuses_existing_analyses(self):
        record = delorean_analysis().to_record("video-1", 0)
        source = FakeFrameSource()
        vision = FakeVision(spaceship_analysis())
        manager = build_manager(
            vision, FakeSearch([bttf_result()]), frame_store=FakeFrameStore([record]), frame_source=source
        )

        session, updates = _run(manager)

        assert session.status is SessionStatus.COMPLETE
        assert source.calls == []
        assert vision.frames == []

    def test_analyzes_last_extracted_frame(self):
        vision = FakeVision(spaceship_analysis())
        source = FakeFrameSource()
        manager = build_manager(vision, FakeSearch([bttf_result()]), frame_source=source)

        _run(manager)

        assert source.calls == [1, 2, 3]
        assert vision.frames == [b"frame-1", b"frame-2", b"frame-3"]


class TestExhaustion:
    def test_needs_input_after_max_frames(self):
        store = FakeFrameStore()
        manager = build_manager(FakeVision(spaceship_analysis()), FakeSearch([bttf_result()]), frame_store=store)

        session, updates = _run(manager)

        assert update_types(updates) == ["chips", "candidates"] * 3 + ["needs_input"]
        assert session.status is SessionStatus.NEEDS_INPUT
        assert "selecting more chips" in updates[-1].data["message"]
        assert [u.data["frame"] for u in updates if u.type.value == "candidates"] == [0, 1, 2]
        assert store.created == [0, 1, 2]

    def test_no_results_keeps_confidence(self):
        manager = build_manager(FakeVision(spaceship_analysis()), FakeSearch([]))
        session, updates = _run(manager)
        assert session.status is SessionStatus.NEEDS_INPUT
        assert session.confidence == 0.0
        assert all(u.data["candidates"] == [] for u in updates if u.type.value == "candidates")

    def test_empty_pass_keeps_previous_confidence(self):
        search = FakeSearch(lambda call: [bttf_result()] if call == 0 else [])
        manager = build_manager(FakeVision(spaceship_analysis()), search)
        session, updates = _run(manager)

        passes = [u.data for u in updates if u.type.value == "candidates"]
        assert len(passes) == 3
        assert passes[0]["confidence"] == pytest.approx(0.45)
        assert [p["candidates"] for p in passes[1:]] == [[], []]
        assert all(p["confidence"] == passes[0]["confidence"] for p in passes[1:])
        assert session.confidence == pytest.approx(0.45)
        assert session.status is SessionStatus.NEEDS_INPUT

    def test_single_slot_outbox_keeps_needs_input_for_late_reader(self):
        manager = build_manager(
            FakeVision(spaceship_analysis()), FakeSearch([]), config=fast_config(event_queue_size=1)
        )

        async def scenario():
            session = manager.start("video-1")
            await session.task
            return session, await collect_updates(session)

        session, updates = asyncio.run(scenario())
        assert session.status is SessionStatus.NEEDS_INPUT
        assert update_types(updates) == ["needs_input"]
        assert session.updates.dropped == session.updates.emitted - 1

    def test_frame_failures_are_skipped(self):
        manager = build_manager(
            FakeVision(spaceship_analysis()), FakeSearch([bttf_result()]), frame_source=FakeFrameSource(fail=True)
        )
        session, updates = _run(manager)
        assert update_types(updates) == ["needs_input"]
        assert session.status is SessionStatus.NEEDS_INPUT

    def test_search_failure_moves_to_next_frame(self):
        def results(call: int):
            if call == 0:
                raise RuntimeError("quota exceeded")
            return [bttf_result()]

        source = FakeFrameSource()
        manager = build_manager(FakeVision(delorean_analysis()), FakeSearch(results), frame_source=source)

        session, updates = _run(manager)

        assert update_types(updates) == ["chips", "candidates", "complete"]
        assert updates[-1].data["frames_used"] == 2
        assert source.calls == [1, 2]
        assert session.status is SessionStatus.COMPLETE

    def test_detail_failure_without_feedback_ends_needing_input(self):
        films = FakeFilms(failures=10)
        manager = build_manager(FakeVision(delorean_analysis()), FakeSearch([bttf_result()]), films)

        session, updates = _run(manager)

        assert update_types(updates) == ["chips", "candidates", "needs_input"]
        assert session.status is SessionStatus.NEEDS_INPUT
        assert films.requested == ["105"]


class TestStoreFailure:
    def test_error_status_and_closed_outbox(self):
        vision = FakeVision(delorean_analysis())
        manager = build_manager(vision, FakeSearch([bttf_result()]), frame_store=FakeFrameStore(fail_get=True))

        session, updates = _run(manager)

        assert updates == []
        assert session.status is SessionStatus.ERROR
        assert session.updates.closed
        assert vision.frames == []

    def test_persist_failure_does_not_skip_frame(self):
        class FailingCreateStore(FakeFrameStore):
            async def create(self, video_id, frame_number, analysis):
                raise RuntimeError("disk full")

        manager = build_manager(
            FakeVision(delorean_analysis()), FakeSearch([bttf_result()]), frame_store=FailingCreateStore()
        )
        session, _ = _run(manager)
        assert session.status is SessionStatus.COMPLETE


class TestInteraction:
    """Feedback and cancellation while the loop is parked in its idle wait."""

    def _manager(self, analysis, results, films=None, **config):
        values = {"idle_wait_seconds": 5.0}
        values.update(config)
        self.search = FakeSearch(results)
        return build_manager(FakeVision(analysis), self.search, films, config=fast_config(**values))

    def test_cancel_emits_single_cancelled_event(self):
        manager = self._manager(spaceship_analysis(), [bttf_result()])

        async def scenario():
            session = manager.start("video-1")
            head = [await session.updates.next(timeout=2), await session.updates.next(timeout=2)]
            started = time.monotonic()
            manager.cancel(session.id)
            rest = await collect_updates(session)
            await session.task
            return session, head + rest, time.monotonic() - started

        session, updates, elapsed = asyncio.run(scenario())

        assert update_types(updates) == ["chips", "candidates", "cancelled"]
        assert updates[-1].data["message"] == "Identification cancelled by user"
        assert session.status is SessionStatus.CANCELLED
        assert session.updates.closed
        assert len(self.search.queries) == 1
        assert elapsed < 1.0

    def test_cancel_twice_is_harmless(self):
        manager = self._manager(spaceship_analysis(), [bttf_result()])

        async def scenario():
            session = manager.start("video-1")
            manager.cancel(session.id)
            manager.cancel(session.id)
            updates = await collect_updates(session)
            await session.task
            return updates

        assert update_types(asyncio.run(scenario())) == ["cancelled"]

    def test_feedback_triggers_rescore_and_completion(self):
        result = SearchResult(
            title="Back to the Future - IMDb",
            link="https://www.themoviedb.org/movie/105-back-to-the-future",
            snippet="1985 action sci-fi",
        )
        manager = self._manager(spaceship_analysis(), [result], score_threshold=0.45)

        async def scenario():
            session = manager.start("video-1")
            head = [await session.updates.next(timeout=2), await session.updates.next(timeout=2)]
            manager.update_feedback(session.id, "action", True)
            rest = await collect_updates(session)
            await session.task
            return session, head + rest

        session, updates = asyncio.run(scenario())

        assert update_types(updates) == ["chips", "candidates", "chips", "candidates", "complete"]
        confidences = [u.data["confidence"] for u in updates if u.type.value == "candidates"]
        assert confidences == [pytest.approx(0.3), pytest.approx(0.5)]
        action_chip = [c for c in updates[2].data["chips"] if c["value"] == "action"][0]
        assert action_chip["selected"] is True
        assert len(self.search.queries) == 2
        assert session.status is SessionStatus.COMPLETE
        assert updates[-1].data["frames_used"] == 1

    def test_detail_failure_retried_after_feedback(self):
        films = FakeFilms(failures=1)
        manager = self._manager(delorean_analysis(), [bttf_result()], films)

        async def scenario():
            session = manager.start("video-1")
            head = [await session.updates.next(timeout=2), await session.updates.next(timeout=2)]
            manager.update_feedback(session.id, "1980s", True)
            rest = await collect_updates(session)
            await session.task
            return session, head + rest

        session, updates = asyncio.run(scenario())

        assert update_types(updates) == ["chips", "candidates", "chips", "candidates", "complete"]
        assert films.requested == ["105", "105"]
        assert session.status is SessionStatus.COMPLETE
