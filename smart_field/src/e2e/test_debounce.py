import threading
from dictinput.debounce import Debouncer

def test_burst_delivers_last_call_once():
    calls = []
    done = threading.Event()

    def fn(x):
        calls.append(x)
        done.set()

    d = Debouncer(0.05, fn)
    for x in ("t", "to", "tok"):
        d(x)
    assert done.wait(2.0)
    # give a superseded timer a chance to misfire
    threading.Event().wait(0.15)
    assert calls == ["tok"]
    assert not d.pending

def test_flush_runs_pending_call_now():
    calls = []
    d = Debouncer(30, calls.append)
    d("a"); d("b")
    assert d.pending
    assert d.flush() is True
    assert calls == ["b"]
    assert d.flush() is False

def test_cancel_and_close():
    calls = []
    d = Debouncer(30, calls.append)
    d("a")
    d.cancel()
    assert d.flush() is False
    d.close()
    d.close()
    d("b")
    assert not d.pending
    assert calls == []
