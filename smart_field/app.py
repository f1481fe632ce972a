# app.py
# CustomTkinter desktop host for smart fields (dark theme).
# - One smart field bound to a dictionary table (shared layer/field table or in-memory).
# - Live suggestions with debounce; click a suggestion to commit it.
# - Mic toggle for voice dictation; CSV/TXT import into the current table.

from __future__ import annotations
import threading
from typing import Optional

import tkinter.filedialog as fd
import tkinter.messagebox as mb
import customtkinter as ctk

# Project imports (ensure PYTHONPATH=src)
from dictinput import SuggestionList, SuggestionService, layer_field_table
from dictinput import config as CFG
from dictinput.voice import VoiceState


# -------------------- small helpers --------------------

def shorten_path(p: str, max_chars: int = 60) -> str:
    """Shorten long paths neatly for labels."""
    if len(p) <= max_chars:
        return p
    keep = max_chars // 2 - 3
    return p[:keep] + "..." + p[-keep:]


def label_for(value: str, sl: SuggestionList, index: int) -> str:
    """Button text for the index-th suggestion; the trailing sentinel is marked as new."""
    if sl.sentinel is not None and index == len(sl) - 1:
        return f"+ {value}  (new)"
    return value


# -------------------- main app --------------------

class SmartFieldApp(ctk.CTk):
    """Dark-themed form with a single dictionary-backed text field."""

    def __init__(self, db_dsn: Optional[str] = None, layer: str = "layer1", field: str = "name") -> None:
        super().__init__()

        ctk.set_appearance_mode("dark")
        ctk.set_default_color_theme("blue")

        self.title("Smart Field")
        self.geometry("720x560")
        self.minsize(560, 420)

        # State
        self.service = SuggestionService(db_dsn=db_dsn)
        self.table = layer_field_table(layer, field)
        self._search_after_id: Optional[str] = None
        self._import_thread: Optional[threading.Thread] = None
        self._listening = False

        self.font_title = ctk.CTkFont(size=18, weight="bold")
        self.font_label = ctk.CTkFont(size=13)

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(2, weight=1)  # suggestions
        self.grid_rowconfigure(3, weight=0)  # log

        self._build_header()
        self._build_field()
        self._build_suggestions()
        self._build_log()

        # UI-thread marshalling for voice results
        self.handle = self.service.open_session(
            self.table,
            on_commit=lambda v: self._log(f"Committed: {v}"),
            on_notice=self._notice,
            dispatch=lambda fn: self.after(0, fn),
        )
        self._set_status(f"Table {self.table}")
        self.protocol("WM_DELETE_WINDOW", self._on_close)

    # --------- UI sections ---------

    def _build_header(self) -> None:
        header = ctk.CTkFrame(self, corner_radius=10)
        header.grid(row=0, column=0, sticky="ew", padx=12, pady=(12, 6))
        header.grid_columnconfigure(1, weight=1)

        ctk.CTkLabel(header, text="Smart Field", font=self.font_title).grid(
            row=0, column=0, sticky="w", padx=12, pady=10
        )
        self.lbl_status = ctk.CTkLabel(header, text="Status: -", anchor="e")
        self.lbl_status.grid(row=0, column=1, sticky="e", padx=6, pady=10)

        ctk.CTkButton(header, text="Import CSV", width=110, command=self._choose_import).grid(
            row=0, column=2, padx=(6, 12), pady=10
        )

    def _build_field(self) -> None:
        box = ctk.CTkFrame(self, corner_radius=10)
        box.grid(row=1, column=0, sticky="ew", padx=12, pady=6)
        box.grid_columnconfigure(0, weight=1)

        self.entry = ctk.CTkEntry(box, placeholder_text="Start typing...")
        self.entry.grid(row=0, column=0, sticky="ew", padx=(12, 6), pady=10)
        self.entry.bind("<KeyRelease>", self._on_text_changed)
        self.entry.bind("<FocusIn>", lambda _e: self.service.session(self.handle).focus())

        self.btn_all = ctk.CTkButton(box, text="All", width=60, command=self._show_all)
        self.btn_all.grid(row=0, column=1, padx=6, pady=10)

        self.btn_mic = ctk.CTkButton(box, text="Mic", width=60, command=self._toggle_mic)
        self.btn_mic.grid(row=0, column=2, padx=(6, 12), pady=10)

    def _build_suggestions(self) -> None:
        self.list_frame = ctk.CTkScrollableFrame(self, corner_radius=10, label_text="Suggestions")
        self.list_frame.grid(row=2, column=0, sticky="nsew", padx=12, pady=6)
        self.list_frame.grid_columnconfigure(0, weight=1)

    def _build_log(self) -> None:
        self.txt_log = ctk.CTkTextbox(self, height=90, wrap="word", font=ctk.CTkFont(size=12))
        self.txt_log.grid(row=3, column=0, sticky="nsew", padx=12, pady=(6, 12))
        self._log("Ready.")

    # --------- input ---------

    def _on_text_changed(self, _ev=None) -> None:
        if self._search_after_id is not None:
            self.after_cancel(self._search_after_id)
        self._search_after_id = self.after(160, self._do_search)

    def _do_search(self) -> None:
        self._search_after_id = None
        q = self.entry.get()
        sl = self.service.on_input(self.handle, q)
        if not q.strip():
            self._render(SuggestionList(query=q))
            return
        self._render(sl)

    def _show_all(self) -> None:
        self._render(self.service.show_all(self.handle))

    def _select(self, value: str) -> None:
        self.service.commit(self.handle, value)
        self.entry.delete(0, "end")
        self.entry.insert(0, self.service.session(self.handle).text)
        self._render(self.service.session(self.handle).suggestions)

    def _render(self, sl: SuggestionList) -> None:
        for child in self.list_frame.winfo_children():
            child.destroy()
        if sl.fault:
            self._log(CFG.DB_ERROR_TEXT)
        for i, value in enumerate(sl.values()):
            btn = ctk.CTkButton(self.list_frame, text=label_for(value, sl, i), anchor="w",
                                fg_color="transparent", command=lambda v=value: self._select(v))
            btn.grid(row=i, column=0, sticky="ew", padx=4, pady=1)

    # --------- voice ---------

    def _toggle_mic(self) -> None:
        if self._listening:
            self.service.stop_voice(self.handle)
            self._set_listening(False)
            return
        if self.service.start_voice(self.handle):
            self.entry.delete(0, "end")
            self._set_listening(True)
            self._poll_voice()

    def _poll_voice(self) -> None:
        # voice stops itself after one delivered query
        if not self._listening:
            return
        s = self.service.session(self.handle)
        if s.voice is not None and s.voice.state is VoiceState.LISTENING:
            self.after(200, self._poll_voice)
            return
        self._set_listening(False)
        self.entry.delete(0, "end")
        self.entry.insert(0, s.text)
        self._render(s.suggestions)

    def _set_listening(self, on: bool) -> None:
        self._listening = on
        self.btn_mic.configure(text="Stop" if on else "Mic")

    def _notice(self, text: str) -> None:
        self._log(text)
        mb.showinfo("Voice input", text)

    # --------- import (threaded) ---------

    def _choose_import(self) -> None:
        path = fd.askopenfilename(
            title="Choose dictionary file",
            filetypes=[("CSV files", "*.csv"), ("Text files", "*.txt"), ("All files", "*.*")]
        )
        if not path:
            return
        if self._import_thread and self._import_thread.is_alive():
            mb.showinfo("Import", "An import is already running. Please wait.")
            return
        self._set_status(f"Importing {shorten_path(path)}...")
        self._import_thread = threading.Thread(target=self._import_worker, args=(path,), daemon=True)
        self._import_thread.start()

    def _import_worker(self, path: str) -> None:
        try:
            n = self.service.import_file(self.table, path)
        except Exception as exc:
            self.after(0, lambda: self._on_import_error(exc))
            return
        self.after(0, lambda: self._on_import_ok(n))

    def _on_import_ok(self, n: int) -> None:
        self._set_status(f"Table {self.table} ({n:,} values)")
        self._log(f"Imported {n} values.")

    def _on_import_error(self, exc: Exception) -> None:
        self._set_status("Import failed.")
        self._log(f"ERROR: {exc!r}")
        mb.showerror("Import error", "Failed to import dictionary.\nSee log for details.")

    # --------- misc UI helpers ---------

    def _set_status(self, text: str) -> None:
        self.lbl_status.configure(text=f"Status: {text}")

    def _log(self, msg: str) -> None:
        self.txt_log.insert("end", msg + "\n")
        self.txt_log.see("end")

    # --------- lifecycle ---------

    def _on_close(self) -> None:
        self.service.shutdown()
        self.destroy()


if __name__ == "__main__":
    app = SmartFieldApp(db_dsn="sqlite:///./dictionary.sqlite")
    app.mainloop()
