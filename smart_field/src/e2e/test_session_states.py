import asyncio
import pytest
from dictinput.DB.memory_store import MemoryStore
from dictinput.session import SessionState, SuggestionSession

class AsyncStore(MemoryStore):
    async def query_exact(self, table, predicate, key):
        await asyncio.sleep(0)
        return MemoryStore.query_exact(self, table, predicate, key)

    async def query_partial(self, table, predicate, key):
        await asyncio.sleep(0)
        return MemoryStore.query_partial(self, table, predicate, key)

@pytest.fixture
def store():
    s = MemoryStore()
    s.import_values("fruit", ["apple", "apricot", "banana"])
    return s

def test_typing_presents_then_select_commits(store):
    committed = []
    s = SuggestionSession(store, "fruit", on_commit=committed.append)
    assert s.state is SessionState.IDLE

    s.focus()
    sl = s.on_input("ap")
    assert s.state is SessionState.PRESENTING
    assert sl.values() == ["apple", "apricot", "ap"]
    assert s.suggestions is sl

    s.select("apple")
    assert committed == ["apple"]
    assert s.text == "apple"
    assert s.state is SessionState.IDLE
    assert s.suggestions.values() == []
    assert store.count("fruit") == 3

def test_selecting_the_sentinel_adds_it(store):
    s = SuggestionSession(store, "fruit", clear_on_select=True)
    s.focus()
    s.on_input("cherry")
    s.select("cherry")
    assert s.text == ""
    assert store.count("fruit") == 4
    s.focus()
    assert s.on_input("che").values() == ["cherry", "che"]

def test_unfocused_input_stays_idle(store):
    s = SuggestionSession(store, "fruit")
    sl = s.on_input("ap")
    assert s.state is SessionState.IDLE
    assert len(sl) == 3

def test_blank_input_is_ignored_and_matches_session_state(store):
    s = SuggestionSession(store, "fruit")
    s.focus()
    before = s.on_input("ap")
    sl = s.on_input("   ")
    # no query and no transition: what is returned is what the session holds
    assert sl is s.suggestions is before
    assert s.state is SessionState.PRESENTING
    assert s.text == "   "

def test_blank_first_input_is_empty(store):
    s = SuggestionSession(store, "fruit")
    assert s.on_input("").values() == []
    assert s.state is SessionState.IDLE

def test_blur_hides_but_keeps_text(store):
    s = SuggestionSession(store, "fruit")
    s.focus()
    s.on_input("ban")
    s.blur()
    assert s.text == "ban"
    assert s.state is SessionState.IDLE
    assert not s.focused
    assert s.suggestions.values() == []

def test_show_all_lists_dictionary_and_new_text(store):
    s = SuggestionSession(store, "fruit", initial_text="kiwi")
    sl = s.show_all()
    assert sl.values() == ["apple", "apricot", "banana", "kiwi"]
    assert s.state is SessionState.PRESENTING

    s2 = SuggestionSession(store, "fruit", initial_text="banana")
    assert s2.show_all().sentinel is None

def test_show_all_degrades_on_fault(store):
    s = SuggestionSession(store, "fruit", "value = 1")   # not evaluable in memory
    sl = s.show_all()
    assert sl.fault is True
    assert sl.values() == ["Can't access database!"]

def test_store_write_failure_still_commits_text():
    class ReadOnly(MemoryStore):
        def insert_if_missing(self, table, value):
            raise OSError("read-only")
    s = SuggestionSession(ReadOnly(), "fruit")
    s.select("plum")
    assert s.text == "plum"
    assert s.state is SessionState.IDLE

def test_stale_async_results_are_dropped(store):
    astore = AsyncStore()
    astore.import_values("fruit", ["apple", "apricot", "banana"])
    s = SuggestionSession(astore, "fruit")
    s.focus()

    async def race():
        return await asyncio.gather(s.on_input_async("ap"), s.on_input_async("apr"))

    first, second = asyncio.run(race())
    assert first is None
    assert second.values() == ["apricot", "apple", "apr"]
    assert s.suggestions is second

def test_debounced_input_runs_latest_text_once(store):
    s = SuggestionSession(store, "fruit", debounce_seconds=30)
    s.focus()
    s.on_input_debounced("b")
    s.on_input_debounced("ba")
    assert s.flush() is True
    assert s.text == "ba"
    assert s.suggestions.values() == ["banana", "ba"]
    assert s.flush() is False

def test_closed_session_ignores_everything(store):
    s = SuggestionSession(store, "fruit")
    s.close()
    s.close()
    assert s.closed
    assert s.on_input("ap").values() == []
    s.select("zzz")
    assert store.count("fruit") == 3
    assert asyncio.run(s.on_input_async("ap")) is None
