import asyncio

import pytest

from todo_stopwatch.presentation import Ticker, TodoStore, format_time

START = 1_700_000_000_000


def todo(tid, **fields):
    data = {
        "_id": tid,
        "text": f"Task {tid}",
        "completed": False,
        "timerStarted": False,
        "timerStartTime": None,
        "savedTime": 0,
        "createdAt": "2024-06-04T10:15:30",
    }
    data.update(fields)
    return data


@pytest.fixture
def store(clock):
    s = TodoStore(clock=clock)
    s.apply({"event": "todos-list", "data": [todo("a"), todo("b", savedTime=30)]})
    return s


class TestFormatTime:
    @pytest.mark.parametrize(
        "seconds,expected",
        [(0, "0:00"), (9, "0:09"), (75, "1:15"), (3599, "59:59"), (3600, "1:00:00"), (36_125, "10:02:05")],
    )
    def test_format(self, seconds, expected):
        assert format_time(seconds) == expected


class TestTodoStore:
    def test_list_replaces_state_and_seeds_elapsed(self, clock):
        store = TodoStore(clock=clock)
        store.apply({"event": "todo-added", "data": todo("stale")})
        running = todo("r", timerStarted=True, timerStartTime=clock.now - 12_500, savedTime=3)
        store.apply({"event": "todos-list", "data": [running, todo("x")]})
        assert [t.id for t in store] == ["r", "x"]
        assert store.elapsed == {"r": 12}
        assert store.total_time("r") == 15

    def test_added_appends(self, store):
        store.apply({"event": "todo-added", "data": todo("c")})
        assert [t.id for t in store] == ["a", "b", "c"]

    def test_updated_replaces_known_record_only(self, store):
        store.apply({"event": "todo-updated", "data": todo("a", completed=True)})
        store.apply({"event": "todo-updated", "data": todo("zzz")})
        assert store.get("a").completed is True
        assert store.get("zzz") is None

    def test_updated_running_record_seeds_elapsed(self, store, clock):
        running = todo("b", timerStarted=True, timerStartTime=clock.now - 7_900, savedTime=0)
        store.apply({"event": "todo-updated", "data": running})
        assert store.elapsed["b"] == 7
        assert store.total_time("b") == 7
        store.apply({"event": "todo-updated", "data": todo("b", savedTime=9)})
        assert "b" not in store.elapsed
        assert store.total_time("b") == 9

    def test_deleted_drops_record_and_cache(self, store, clock):
        store.apply({"event": "timer-started", "data": {"id": "a", "startTime": clock.now}})
        store.apply({"event": "todo-deleted", "data": "a"})
        assert store.get("a") is None
        assert "a" not in store.elapsed
        # Unknown ids are ignored
        store.apply({"event": "todo-deleted", "data": "nope"})
        assert len(store) == 1

    def test_tick_interpolates_running_timers(self, store, clock):
        store.apply({"event": "timer-started", "data": {"id": "b", "startTime": clock.now}})
        assert store.get("b").timer_started is True
        assert store.total_time("b") == 30

        clock.advance(seconds=4.2)
        store.tick()
        assert store.elapsed == {"b": 4}
        assert store.total_time("b") == 34
        assert store.total_time("a") == 0

    def test_timer_stopped_takes_server_value(self, store, clock):
        store.apply({"event": "timer-started", "data": {"id": "b", "startTime": clock.now}})
        clock.advance(seconds=10)
        store.tick()
        store.apply({"event": "timer-stopped", "data": {"id": "b", "savedTime": 41}})
        b = store.get("b")
        assert b.timer_started is False
        assert b.timer_start_time is None
        assert store.total_time("b") == 41
        assert "b" not in store.elapsed

    def test_optimistic_start_resets_locally(self, store, clock):
        store.optimistic_start("b")
        b = store.get("b")
        assert b.saved_time == 0
        assert b.timer_start_time == clock.now
        assert store.elapsed["b"] == 0
        store.optimistic_start("missing")
        assert store.get("missing") is None

    def test_render_lines_show_state_dependent_actions(self, store, clock):
        store.apply({"event": "todo-added", "data": todo("c", completed=True, savedTime=3725)})
        store.apply({"event": "todo-added", "data": todo("d", completed=True)})
        store.apply({"event": "timer-started", "data": {"id": "a", "startTime": clock.now}})
        clock.advance(seconds=65)
        store.tick()

        lines = store.render_lines()
        assert lines == [
            "a  [ ]  Task a  1:05  [Stop] [Delete]",
            "b  [ ]  Task b  0:30  [Resume] [Start New] [Delete]",
            "c  [x]  Task c  1:02:05  [Delete]",
            "d  [x]  Task d  [Delete]",
        ]

    def test_render_idle_todo_offers_start(self, clock):
        store = TodoStore(clock=clock)
        store.apply({"event": "todo-added", "data": todo("e")})
        assert store.render_lines() == ["e  [ ]  Task e  [Start] [Delete]"]


class TestTicker:
    @pytest.mark.asyncio
    async def test_ticks_until_stopped(self):
        calls = []
        ticker = Ticker(lambda: calls.append(1), interval=0.01)
        ticker.start()
        assert ticker.running
        await asyncio.sleep(0.1)
        await ticker.stop()
        assert not ticker.running
        seen = len(calls)
        assert seen >= 2
        await asyncio.sleep(0.05)
        assert len(calls) == seen

    @pytest.mark.asyncio
    async def test_callback_errors_do_not_stop_ticking(self):
        calls = []

        def flaky():
            calls.append(1)
            raise RuntimeError("redraw failed")

        ticker = Ticker(flaky, interval=0.01)
        ticker.start()
        await asyncio.sleep(0.1)
        await ticker.stop()
        assert len(calls) >= 2

    @pytest.mark.asyncio
    async def test_stop_without_start_is_noop(self):
        await Ticker(lambda: None).stop()
