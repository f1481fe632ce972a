"""
Dictionary suggestions for smart text fields.

As the user types (or dictates), a field surfaces completions from a per-field or shared
term dictionary: prefix matches first (ascending), then fuzzy matches ranked by edit
distance, and finally the literal text itself so a new value can always be committed.

Example Usage:
    from dictinput import SuggestionService, layer_field_table

    svc = SuggestionService(db_dsn="sqlite:///./dictionary.sqlite")
    h = svc.open_session(layer_field_table("L1", "species"))
    svc.on_input(h, "ap").values()   # ['apple', 'apricot', 'ap']
    svc.commit(h, "apple pie")
    svc.close_session(h)
"""
from .DB.api import StoreError, ephemeral_table, layer_field_table, make_store
from .engine import SuggestionService
from .models import CandidateSet, Entry, Query, SuggestionList
from .normalize import normalize_key
from .ranker import Ranker
from .session import SessionState, SuggestionSession
from .voice import VoiceDictationAdapter, VoiceState

__version__ = "1.0.0"
__all__ = [
    "SuggestionService", "SuggestionSession", "SessionState",
    "VoiceDictationAdapter", "VoiceState", "Ranker",
    "Entry", "Query", "CandidateSet", "SuggestionList",
    "StoreError", "make_store", "layer_field_table", "ephemeral_table",
    "normalize_key",
]
