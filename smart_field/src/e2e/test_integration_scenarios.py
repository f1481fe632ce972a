import pytest
from dictinput import SuggestionService, StoreError
from dictinput.DB.memory_store import MemoryStore
from dictinput.voice import NullRecognizer, Token

class BrokenStore(MemoryStore):
    def query_exact(self, table, predicate, key):
        raise StoreError("database is locked")

    def query_partial(self, table, predicate, key):
        raise StoreError("database is locked")

class ScriptedRecognizer:
    def __init__(self):
        self.listener = None

    def is_available(self):
        return True

    def start(self, locale, on_transcript):
        self.listener = on_transcript

    def stop(self):
        pass

    def destroy(self):
        self.listener = None

class TableTokenizer:
    READINGS = {"tokyo": "トウキョウ", "station": "エキ"}

    def tokenize(self, text):
        return [Token(w, self.READINGS[w]) for w in text.split()]

def _no_voice():
    return NullRecognizer(), None

@pytest.mark.e2e
def test_prefix_matches_then_typed_text():
    svc = SuggestionService(capabilities=_no_voice)
    try:
        svc.import_values("fruit", ["apple", "apricot", "banana"])
        h = svc.open_session("fruit")
        sl = svc.on_input(h, "ap")
        assert list(sl.exact) == ["apple", "apricot"]
        assert sl.partial == ()
        assert sl.values() == ["apple", "apricot", "ap"]
    finally:
        svc.shutdown()

@pytest.mark.e2e
def test_empty_dictionary_offers_only_the_text():
    svc = SuggestionService(capabilities=_no_voice)
    try:
        h = svc.open_session("empty")
        assert svc.on_input(h, "xyz").values() == ["xyz"]
    finally:
        svc.shutdown()

@pytest.mark.e2e
def test_store_fault_degrades_to_placeholder():
    svc = SuggestionService(BrokenStore(), capabilities=_no_voice)
    try:
        h = svc.open_session("fruit")
        sl = svc.on_input(h, "xyz")
        assert sl.values() == ["Can't access database!", "xyz"]
        assert sl.fault
    finally:
        svc.shutdown()

@pytest.mark.e2e
def test_dictated_phrase_becomes_one_reading_query():
    rec = ScriptedRecognizer()
    svc = SuggestionService(capabilities=lambda: (rec, TableTokenizer()))
    try:
        svc.import_values("stations", ["トウキョウエキ", "トウキョウタワー"])
        h = svc.open_session("stations")
        assert svc.start_voice(h) is True
        rec.listener("tokyo")
        rec.listener("tokyo station")
        voice = svc.session(h).voice
        assert voice.flush() is True
        s = svc.session(h)
        assert s.text == "トウキョウエキ"
        assert s.suggestions.values() == ["トウキョウエキ", "トウキョウタワー", "トウキョウエキ"]
        assert voice.state.value == "stopped"
    finally:
        svc.shutdown()

@pytest.mark.e2e
def test_unknown_handle_raises_key_error():
    svc = SuggestionService(capabilities=_no_voice)
    try:
        with pytest.raises(KeyError):
            svc.on_input("nope", "a")
        svc.close_session("nope")   # closing twice / unknown is harmless
    finally:
        svc.shutdown()
