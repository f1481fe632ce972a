from pathlib import Path
import pytest
from dictinput import SuggestionService, layer_field_table
from dictinput.voice import NullRecognizer

def _no_voice():
    return NullRecognizer(), None

@pytest.mark.e2e
def test_commit_is_shared_and_persisted(tmp_path: Path):
    dsn = f"sqlite:///{tmp_path / 'dict.sqlite'}"
    table = layer_field_table("L1", "species")

    svc = SuggestionService(db_dsn=dsn, capabilities=_no_voice)
    try:
        a = svc.open_session(table)
        b = svc.open_session(table)
        svc.on_input(a, "Quercus")
        svc.commit(a, "Quercus robur")
        assert svc.session(a).text == "Quercus robur"
        assert svc.on_input(b, "quer").values() == ["Quercus robur", "quer"]
        svc.commit(b, "Quercus robur")   # already there
        assert svc.store.count(table) == 1
    finally:
        svc.shutdown()

    svc = SuggestionService(db_dsn=dsn, capabilities=_no_voice)
    try:
        h = svc.open_session(table)
        assert svc.on_input(h, "robur").values() == ["Quercus robur", "robur"]
    finally:
        svc.shutdown()

@pytest.mark.e2e
def test_per_field_dictionary_lives_with_the_session():
    svc = SuggestionService(capabilities=_no_voice)
    try:
        h = svc.open_session(seed=["north", "south", "", "north"])
        s = svc.session(h)
        assert s.table.startswith("mem_")
        assert svc.dynamic.count(s.table) == 2
        svc.commit(h, "east")
        assert svc.show_all(h).values()[0] == "east"

        svc.close_session(h)
        assert svc.dynamic.tables() == []
        assert s.closed
    finally:
        svc.shutdown()

@pytest.mark.e2e
def test_clear_on_select_and_blur():
    svc = SuggestionService(capabilities=_no_voice)
    try:
        svc.import_values("colour", ["red", "green"])
        h = svc.open_session("colour", clear_on_select=True)
        svc.on_input(h, "gr")
        svc.commit(h, "green")
        assert svc.session(h).text == ""

        svc.on_input(h, "re")
        svc.blur(h)
        s = svc.session(h)
        assert s.text == "re" and s.suggestions.values() == []
    finally:
        svc.shutdown()

@pytest.mark.e2e
def test_import_file_then_suggest(tmp_path: Path):
    csv_path = tmp_path / "cities.csv"
    csv_path.write_text("\ufeffOsaka,JP\nOslo,NO\n,\n Ottawa ,CA\n", encoding="utf-8")
    svc = SuggestionService(db_dsn="sqlite://", capabilities=_no_voice)
    try:
        assert svc.import_file("cities", str(csv_path)) == 3
        h = svc.open_session("cities", "value <> 'Oslo'")
        assert svc.on_input(h, "os").values() == ["Osaka", "os"]
    finally:
        svc.shutdown()
