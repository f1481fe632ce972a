from __future__ import annotations
import argparse
import os
from flask import Flask, request, jsonify, Response
from dictinput.engine import SuggestionService
from dictinput import config as CFG
from dictinput.voice import VoiceState

app = Flask(__name__)
_service: SuggestionService | None = None

def _svc() -> SuggestionService:
    global _service
    if _service is None:
        _service = SuggestionService(db_dsn=os.environ.get("DICTINPUT_DB", CFG.DEFAULT_DSN))
    return _service

def _body() -> dict:
    return request.get_json(silent=True) or {}

@app.errorhandler(KeyError)
def _unknown_session(e):
    return jsonify({"error": "unknown session"}), 404

# ---------- API ----------
@app.get("/api/health")
def api_health():
    return jsonify({"ok": True})

@app.post("/api/sessions")
def api_open():
    b = _body()
    handle = _svc().open_session(
        b.get("table") or None,
        b.get("filter") or None,
        clear_on_select=bool(b.get("clear_on_select", CFG.CLEAR_ON_SELECT)),
        initial_text=b.get("value", "") or "",
        seed=b.get("seed"),
    )
    return jsonify({"handle": handle}), 201

@app.post("/api/sessions/<handle>/input")
def api_input(handle: str):
    q = _body().get("q", "")
    if not isinstance(q, str):
        return jsonify({"error": "q must be a string"}), 400
    return jsonify(_svc().on_input(handle, q).to_dict())

@app.post("/api/sessions/<handle>/commit")
def api_commit(handle: str):
    value = _body().get("value", "")
    if not isinstance(value, str) or not value.strip():
        return jsonify({"error": "value required"}), 400
    svc = _svc()
    svc.commit(handle, value)
    return jsonify({"ok": True, "text": svc.session(handle).text})

@app.post("/api/sessions/<handle>/blur")
def api_blur(handle: str):
    _svc().blur(handle)
    return jsonify({"ok": True})

@app.get("/api/sessions/<handle>/all")
def api_all(handle: str):
    return jsonify(_svc().show_all(handle).to_dict())

def _listening(handle: str) -> bool:
    voice = _svc().session(handle).voice
    return voice is not None and voice.state is VoiceState.LISTENING

@app.get("/api/sessions/<handle>")
def api_state(handle: str):
    # polled by the page while dictating; recognition results land here
    s = _svc().session(handle)
    return jsonify({"text": s.text, "listening": _listening(handle), **s.suggestions.to_dict()})

@app.post("/api/sessions/<handle>/voice/start")
def api_voice_start(handle: str):
    locale = _body().get("locale", CFG.VOICE_LOCALE)
    if _listening(handle):
        return jsonify({"listening": True})
    ok = _svc().start_voice(handle, locale)
    body = {"listening": ok}
    if not ok:
        body["notice"] = CFG.NOT_SUPPORTED_TEXT
    return jsonify(body)

@app.post("/api/sessions/<handle>/voice/stop")
def api_voice_stop(handle: str):
    _svc().stop_voice(handle)
    return jsonify({"listening": False})

@app.delete("/api/sessions/<handle>")
def api_close(handle: str):
    _svc().close_session(handle)
    return jsonify({"ok": True})

# ---------- UI ----------
@app.get("/")
def home():
    # A tiny page: one smart field, no external deps.
    html = r"""
<!doctype html>
<html lang="en">
<head>
<meta charset="utf-8" />
<meta name="viewport" content="width=device-width,initial-scale=1" />
<title>Smart field • dictionary input</title>
<style>
:root{
  --bg:#0b0f14; --panel:#0f141b; --ink:#cfd8e3; --muted:#8a94a6;
  --accent:#6ee7ff; --border:#1c2530; --danger:#ff5d5d;
}
*{box-sizing:border-box}
body{ margin:0; background:var(--bg); color:var(--ink);
  font:16px/1.45 system-ui,-apple-system,Segoe UI,Roboto,Ubuntu,"Helvetica Neue",Arial; }
.container{ max-width:720px; margin:24px auto; padding:0 16px; }
.card{ background:var(--panel); border:1px solid var(--border); border-radius:16px; padding:18px; }
h1{ font-size:20px; margin:0 0 8px 0 }
.controls{ display:flex; gap:12px; align-items:center; margin:12px 0 4px 0 }
.controls input{ flex:1; padding:12px 14px; border-radius:12px; border:1px solid var(--border);
  background:#0b1117; color:var(--ink); outline:none; font-size:16px; }
.controls input:focus{ border-color:var(--accent) }
.btn{ padding:10px 14px; border-radius:10px; border:1px solid var(--border);
  background:#0b1117; color:var(--ink); cursor:pointer; }
.btn.on{ border-color:var(--danger); color:var(--danger) }
.list{ margin-top:8px; border-radius:12px; border:1px solid var(--border); max-height:260px; overflow:auto }
.item{ padding:8px 14px; border-top:1px solid var(--border); cursor:pointer }
.item:first-child{ border-top:none }
.item:hover{ background:#0d131a }
.item.new{ color:var(--muted) }
.meta{ color:var(--muted); font-size:13px; margin-top:6px }
</style>
</head>
<body>
  <div class="container">
    <div class="card">
      <h1>Smart field</h1>
      <div class="controls">
        <input id="q" type="text" placeholder="Search..." autocomplete="off" autofocus />
        <button id="mic" class="btn">Mic</button>
      </div>
      <div id="list" class="list" style="display:none"></div>
      <div id="meta" class="meta">Ready.</div>
    </div>
  </div>
<script>
const $ = (sel) => document.querySelector(sel);
const q = $("#q"), list = $("#list"), meta = $("#meta"), mic = $("#mic");
let handle = null, t;

async function api(method, path, body){
  const resp = await fetch(path, {method, headers:{"Content-Type":"application/json"},
                                  body: body ? JSON.stringify(body) : undefined});
  if(!resp.ok) throw new Error(`HTTP ${resp.status}`);
  return resp.json();
}
async function open(){ handle = (await api("POST", "/api/sessions", {})).handle; }

function render(data){
  const vals = data.values || [];
  if(!q.value || vals.length === 0){ list.style.display = "none"; return; }
  list.style.display = "block";
  list.innerHTML = "";
  vals.forEach((v, i) => {
    const div = document.createElement("div");
    const isNew = (i === vals.length - 1) && data.sentinel !== null;
    div.className = "item" + (isNew ? " new" : "");
    div.textContent = isNew ? `${v} (new)` : v;
    div.onclick = () => select(v);
    list.appendChild(div);
  });
  meta.textContent = data.fault ? "Dictionary unavailable." : `${vals.length} suggestions`;
}
async function search(){ render(await api("POST", `/api/sessions/${handle}/input`, {q: q.value})); }
async function select(v){
  const r = await api("POST", `/api/sessions/${handle}/commit`, {value: v});
  q.value = r.text; list.style.display = "none"; meta.textContent = `Saved: ${v}`;
}
q.addEventListener("input", () => { clearTimeout(t); t = setTimeout(search, 150); });
q.addEventListener("blur", () => setTimeout(() => { list.style.display = "none"; }, 200));
mic.addEventListener("click", async () => {
  if(mic.classList.contains("on")){
    await api("POST", `/api/sessions/${handle}/voice/stop`); mic.classList.remove("on"); return;
  }
  const r = await api("POST", `/api/sessions/${handle}/voice/start`, {});
  if(r.listening){
    mic.classList.add("on"); q.value = ""; meta.textContent = "Listening...";
    setTimeout(poll, 300);
  } else { meta.textContent = r.notice; }
});
// voice stops itself after one delivered query; then show what it produced
async function poll(){
  if(!mic.classList.contains("on")) return;
  const s = await api("GET", `/api/sessions/${handle}`);
  if(s.listening){ setTimeout(poll, 300); return; }
  mic.classList.remove("on");
  q.value = s.text;
  render(s);
}
window.addEventListener("beforeunload", () => { if(handle) fetch(`/api/sessions/${handle}`, {method:"DELETE", keepalive:true}); });
open();
</script>
</body>
</html>
"""
    return Response(html, mimetype="text/html")

def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Run the smart-field web host")
    ap.add_argument("--db", dest="db", default=None)  # DSN: "sqlite:///path" or "memory://"
    ap.add_argument("--import", dest="import_file", default=None, help="CSV/TXT of values to load")
    ap.add_argument("--table", default=None, help="Target table for --import")
    ap.add_argument("--host", default="127.0.0.1")
    ap.add_argument("--port", type=int, default=8000)
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args(argv)

    global _service
    _service = SuggestionService(db_dsn=args.db, verbose=args.verbose)
    if args.import_file:
        if not args.table:
            ap.error("--import requires --table")
        _service.import_file(args.table, args.import_file)

    try:
        app.run(host=args.host, port=args.port, debug=args.verbose)
    finally:
        _service.shutdown()
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
