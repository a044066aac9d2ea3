"""Unit tests for db.dispatch."""

import threading

from db.dispatch import ImmediateDispatcher, QueueDispatcher


def test_immediate_runs_inline() -> None:
    seen = []
    ImmediateDispatcher().dispatch(lambda a, b: seen.append((a, b, threading.get_ident())), 1, 2)
    assert seen == [(1, 2, threading.get_ident())]


def test_immediate_logs_callback_errors(caplog) -> None:
    def bad(_):
        raise RuntimeError("callback blew up")

    ImmediateDispatcher().dispatch(bad, None)
    assert "callback blew up" in caplog.text


def test_queue_defers_until_drained_in_fifo_order() -> None:
    dispatcher = QueueDispatcher()
    seen = []
    for i in range(3):
        dispatcher.dispatch(seen.append, i)

    assert seen == []
    assert dispatcher.pending == 3
    assert dispatcher.run_pending() == 3
    assert seen == [0, 1, 2]
    assert dispatcher.thread_ident == threading.get_ident()


def test_queue_runs_callbacks_posted_from_other_threads_on_owner() -> None:
    dispatcher = QueueDispatcher()
    seen = []
    worker = threading.Thread(
        target=dispatcher.dispatch, args=(lambda: seen.append(threading.get_ident()),)
    )
    worker.start()
    worker.join()

    assert dispatcher.run_pending(timeout=1) == 1
    assert seen == [threading.get_ident()]


def test_queue_survives_failing_callback(caplog) -> None:
    dispatcher = QueueDispatcher()
    seen = []

    def bad():
        raise ValueError("nope")

    dispatcher.dispatch(bad)
    dispatcher.dispatch(seen.append, "after")

    assert dispatcher.run_pending() == 2
    assert seen == ["after"]
    assert "nope" in caplog.text


def test_queue_run_pending_timeout_on_empty_queue() -> None:
    assert QueueDispatcher().run_pending(timeout=0.01) == 0


def test_queue_run_forever_flushes_on_stop() -> None:
    dispatcher = QueueDispatcher()
    stop = threading.Event()
    seen = []

    def last(value):
        seen.append(value)
        stop.set()

    dispatcher.dispatch(seen.append, "first")
    dispatcher.dispatch(last, "second")
    dispatcher.run_forever(stop, poll_interval=0.01)

    assert seen == ["first", "second"]
