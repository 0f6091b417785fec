from fastapi.testclient import TestClient

from conftest import make_settings
from todo_stopwatch.main import create_app
from todo_stopwatch.presentation import TodoStore


def emit(ws, event, data=None):
    ws.send_json({"event": event, "data": data})


def add(ws, text="Write report"):
    emit(ws, "add-todo", text)
    msg = ws.receive_json()
    assert msg["event"] == "todo-added"
    return msg["data"]


def load(ws):
    emit(ws, "load-todos")
    msg = ws.receive_json()
    assert msg["event"] == "todos-list"
    return msg["data"]


class TestChannel:
    def test_add_and_load(self, client):
        with client.websocket_connect("/ws") as ws:
            assert load(ws) == []
            todo = add(ws, "Buy milk")
            assert todo["text"] == "Buy milk"
            assert todo["completed"] is False
            assert todo["timerStarted"] is False
            assert todo["timerStartTime"] is None
            assert todo["savedTime"] == 0
            assert [t["_id"] for t in load(ws)] == [todo["_id"]]

    def test_timer_lifecycle(self, client, clock):
        with client.websocket_connect("/ws") as ws:
            tid = add(ws)["_id"]

            emit(ws, "start-timer", tid)
            assert ws.receive_json() == {"event": "timer-started", "data": {"id": tid, "startTime": clock.now}}

            clock.advance(seconds=90.5)
            emit(ws, "stop-timer", tid)
            assert ws.receive_json() == {"event": "timer-stopped", "data": {"id": tid, "savedTime": 90}}

            clock.advance(seconds=10)
            emit(ws, "resume-timer", tid)
            assert ws.receive_json()["data"]["startTime"] == clock.now

            clock.advance(seconds=15)
            emit(ws, "toggle-todo", tid)
            msg = ws.receive_json()
            assert msg["event"] == "todo-updated"
            assert msg["data"]["completed"] is True
            assert msg["data"]["savedTime"] == 105
            assert msg["data"]["timerStarted"] is False
            assert msg["data"]["timerStartTime"] is None

    def test_noops_emit_nothing_and_keep_connection_open(self, client):
        with client.websocket_connect("/ws") as ws:
            tid = add(ws)["_id"]
            emit(ws, "stop-timer", tid)  # not running
            emit(ws, "toggle-todo", "missing")
            emit(ws, "launch-rocket", tid)
            ws.send_text("{not json")
            ws.send_bytes(b"\xff\xfe")
            # The next frame is the answer to load-todos: nothing else was emitted.
            todos = load(ws)
            assert [t["_id"] for t in todos] == [tid]

    def test_binary_frames_are_decoded_as_json(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_bytes(b'{"event": "add-todo", "data": "From bytes"}')
            msg = ws.receive_json()
            assert msg["event"] == "todo-added"
            assert msg["data"]["text"] == "From bytes"

    def test_delete_nonexistent_leaves_list_unchanged(self, client):
        with client.websocket_connect("/ws") as ws:
            tid = add(ws)["_id"]
            emit(ws, "delete-todo", "000000000000000000000000")
            assert ws.receive_json() == {"event": "todo-deleted", "data": "000000000000000000000000"}
            assert [t["_id"] for t in load(ws)] == [tid]

    def test_updates_only_reach_sender_by_default(self, client):
        with client.websocket_connect("/ws") as sender, client.websocket_connect("/ws") as other:
            load(other)
            todo = add(sender)
            # The other client sees the record only once it asks for the list.
            assert [t["_id"] for t in load(other)] == [todo["_id"]]


class TestBroadcast:
    def test_mutations_reach_every_connection(self, repo, clock):
        app = create_app(make_settings(broadcast_updates=True), repository=repo, clock=clock)
        with TestClient(app) as client:
            with client.websocket_connect("/ws") as sender, client.websocket_connect("/ws") as other:
                load(other)
                load(sender)

                emit(sender, "add-todo", "Shared")
                added_sender = sender.receive_json()
                added_other = other.receive_json()
                assert added_sender == added_other
                assert added_other["event"] == "todo-added"

                tid = added_other["data"]["_id"]
                emit(other, "start-timer", tid)
                # Other connections get the whole record; the starter gets the compact event.
                assert sender.receive_json()["event"] == "todo-updated"
                assert other.receive_json()["event"] == "timer-started"

                # The list itself is still only answered to the requester.
                emit(sender, "load-todos")
                assert sender.receive_json()["event"] == "todos-list"
                emit(other, "delete-todo", tid)
                assert sender.receive_json() == {"event": "todo-deleted", "data": tid}
                assert other.receive_json() == {"event": "todo-deleted", "data": tid}

    def test_fresh_start_resets_saved_time_on_other_connections(self, repo, clock):
        app = create_app(make_settings(broadcast_updates=True), repository=repo, clock=clock)
        with TestClient(app) as client:
            with client.websocket_connect("/ws") as sender, client.websocket_connect("/ws") as other:
                tid = add(sender)["_id"]
                other.receive_json()

                emit(sender, "start-timer", tid)
                sender.receive_json()
                other.receive_json()
                clock.advance(seconds=30)
                emit(sender, "stop-timer", tid)
                sender.receive_json()
                other.receive_json()

                store = TodoStore(clock=clock)
                store.apply({"event": "todos-list", "data": load(other)})
                assert store.total_time(tid) == 30

                clock.advance(seconds=5)
                emit(sender, "start-timer", tid)
                assert sender.receive_json()["event"] == "timer-started"
                update = other.receive_json()
                assert update["event"] == "todo-updated"
                store.apply(update)
                assert store.get(tid).saved_time == 0
                assert store.total_time(tid) == 0
                clock.advance(seconds=2)
                store.tick()
                assert store.total_time(tid) == 2
