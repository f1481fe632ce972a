import pytest
from dictinput import SuggestionService
from dictinput.voice import NullRecognizer, Token
from frontend.web import app as flask_app

@pytest.fixture
def client():
    svc = SuggestionService(capabilities=lambda: (NullRecognizer(), None))
    svc.import_values("_L1_fruit", ["apple", "apricot", "banana"])

    import frontend.web as webmod
    webmod._service = svc
    try:
        yield flask_app.test_client()
    finally:
        svc.shutdown()
        webmod._service = None

def _open(client, **body):
    rv = client.post("/api/sessions", json=body)
    assert rv.status_code == 201
    return rv.get_json()["handle"]

@pytest.mark.e2e
def test_health(client):
    rv = client.get("/api/health")
    assert rv.status_code == 200 and rv.get_json() == {"ok": True}

@pytest.mark.e2e
def test_input_returns_suggestion_json(client):
    h = _open(client, table="_L1_fruit")
    rv = client.post(f"/api/sessions/{h}/input", json={"q": "ap"})
    assert rv.status_code == 200
    data = rv.get_json()
    for key in ("query", "exact", "partial", "sentinel", "fault", "values"):
        assert key in data
    assert data["values"] == ["apple", "apricot", "ap"]
    assert data["fault"] is False

@pytest.mark.e2e
def test_commit_then_listed(client):
    h = _open(client, table="_L1_fruit")
    rv = client.post(f"/api/sessions/{h}/commit", json={"value": "cherry"})
    assert rv.get_json() == {"ok": True, "text": "cherry"}
    values = client.get(f"/api/sessions/{h}/all").get_json()["values"]
    assert "cherry" in values

@pytest.mark.e2e
def test_bad_bodies_are_rejected(client):
    h = _open(client, table="_L1_fruit")
    assert client.post(f"/api/sessions/{h}/input", json={"q": 5}).status_code == 400
    assert client.post(f"/api/sessions/{h}/commit", json={"value": "  "}).status_code == 400

@pytest.mark.e2e
def test_unknown_and_closed_sessions_404(client):
    assert client.post("/api/sessions/deadbeef/input", json={"q": "a"}).status_code == 404
    h = _open(client)
    assert client.delete(f"/api/sessions/{h}").status_code == 200
    assert client.post(f"/api/sessions/{h}/blur").status_code == 404

@pytest.mark.e2e
def test_seeded_field_without_table(client):
    h = _open(client, seed=["north", "south"], value="no")
    data = client.post(f"/api/sessions/{h}/input", json={"q": "no"}).get_json()
    assert data["values"] == ["north", "no"]

@pytest.mark.e2e
def test_voice_unsupported_reports_notice(client):
    h = _open(client, table="_L1_fruit")
    data = client.post(f"/api/sessions/{h}/voice/start", json={}).get_json()
    assert data["listening"] is False
    assert data["notice"] == "Voice input is not supported on this device."
    assert client.post(f"/api/sessions/{h}/voice/stop").get_json() == {"listening": False}

@pytest.mark.e2e
def test_home_page_renders(client):
    rv = client.get("/")
    assert rv.status_code == 200
    assert b"Smart field" in rv.data

class ScriptedRecognizer:
    def __init__(self):
        self.listener = None
        self.started = 0

    def is_available(self):
        return True

    def start(self, locale, on_transcript):
        self.started += 1
        self.listener = on_transcript

    def stop(self):
        pass

    def destroy(self):
        self.listener = None

class WordTokenizer:
    READINGS = {"tokyo": "トウキョウ", "station": "エキ"}

    def tokenize(self, text):
        return [Token(w, self.READINGS.get(w)) for w in text.split()]

@pytest.fixture
def voice_client():
    rec = ScriptedRecognizer()
    svc = SuggestionService(capabilities=lambda: (rec, WordTokenizer()))
    svc.import_values("stations", ["トウキョウエキ", "キョウト"])

    import frontend.web as webmod
    webmod._service = svc
    try:
        yield flask_app.test_client(), svc, rec
    finally:
        svc.shutdown()
        webmod._service = None

@pytest.mark.e2e
def test_dictation_result_is_visible_through_session_state(voice_client):
    client, svc, rec = voice_client
    h = _open(client, table="stations")
    assert client.post(f"/api/sessions/{h}/voice/start", json={}).get_json() == {"listening": True}

    state = client.get(f"/api/sessions/{h}").get_json()
    assert state["listening"] is True and state["text"] == ""

    rec.listener("tokyo station")
    assert svc.session(h).voice.flush() is True

    state = client.get(f"/api/sessions/{h}").get_json()
    assert state["listening"] is False
    assert state["text"] == "トウキョウエキ"
    assert state["values"][0] == "トウキョウエキ"

@pytest.mark.e2e
def test_second_voice_start_is_not_reported_unsupported(voice_client):
    client, _, rec = voice_client
    h = _open(client, table="stations")
    client.post(f"/api/sessions/{h}/voice/start", json={})
    data = client.post(f"/api/sessions/{h}/voice/start", json={}).get_json()
    assert data == {"listening": True}
    assert rec.started == 1
