# dictinput/voice.py
"""
Voice dictation for smart fields.

The adapter turns recognizer transcripts into the same query a keystroke would issue:
  transcript -> (debounce) -> morphological readings -> concatenated text -> session.on_input

Platform pieces sit behind two small capability interfaces so that targets without speech
support get a recognizer that simply reports "not supported":
  - SpeechRecognizer: is_available / start(locale, on_transcript) / stop / destroy
  - MorphTokenizer:   tokenize(text) -> [Token(surface, reading)]

Transcripts arrive on the recognizer's own thread. They are coalesced by a Debouncer and
handed back to the host through `dispatch` (e.g. a UI toolkit's call-soon hook).
"""
from __future__ import annotations
import logging
import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Callable, List, Optional, Protocol, Tuple, TYPE_CHECKING

from . import config as CFG
from .debounce import Debouncer

if TYPE_CHECKING:  # pragma: no cover
    from .session import SuggestionSession

log = logging.getLogger(__name__)

_WS = re.compile(r"\s+")


@dataclass(frozen=True)
class Token:
    surface: str
    reading: Optional[str] = None   # phonetic reading; None when the analyser has none


class SpeechRecognizer(Protocol):
    def is_available(self) -> bool: ...
    def start(self, locale: str, on_transcript: Callable[[str], None]) -> None: ...
    def stop(self) -> None: ...
    def destroy(self) -> None: ...


class MorphTokenizer(Protocol):
    def tokenize(self, text: str) -> List[Token]: ...


# ---------- capability implementations ----------

class NullRecognizer:
    """Recognizer for platforms without speech input."""

    def is_available(self) -> bool:
        return False

    def start(self, locale: str, on_transcript: Callable[[str], None]) -> None:
        raise RuntimeError("speech recognition is not supported on this platform")

    def stop(self) -> None:
        pass

    def destroy(self) -> None:
        pass


class SpeechRecognitionRecognizer:
    """Microphone dictation through the SpeechRecognition package (needs PyAudio)."""

    def __init__(self, energy_adjust_seconds: float = 0.0) -> None:
        self.energy_adjust_seconds = energy_adjust_seconds
        self._stopper: Optional[Callable[..., None]] = None
        self._listener: Optional[Callable[[str], None]] = None

    def is_available(self) -> bool:
        try:
            import speech_recognition as sr
            sr.Microphone.list_microphone_names()
        except ImportError:
            log.info("SpeechRecognition not installed; voice input disabled")
            return False
        except (AttributeError, OSError) as e:
            # raised when PyAudio or an input device is missing
            log.info("no microphone backend: %s", e)
            return False
        return True

    def start(self, locale: str, on_transcript: Callable[[str], None]) -> None:
        import speech_recognition as sr

        recognizer = sr.Recognizer()
        mic = sr.Microphone()
        # calibration blocks the caller; off unless asked for, dynamic energy adapts while listening
        if self.energy_adjust_seconds > 0:
            with mic as source:
                recognizer.adjust_for_ambient_noise(source, duration=self.energy_adjust_seconds)
        self._listener = on_transcript

        def _heard(rec, audio) -> None:
            listener = self._listener
            if listener is None:
                return
            try:
                text = rec.recognize_google(audio, language=locale)
            except sr.UnknownValueError:
                return
            except sr.RequestError as e:
                log.warning("speech service unavailable: %s", e)
                return
            listener(text)

        self._stopper = recognizer.listen_in_background(mic, _heard)

    def stop(self) -> None:
        stopper, self._stopper = self._stopper, None
        if stopper is not None:
            stopper(wait_for_stop=False)

    def destroy(self) -> None:
        self.stop()
        self._listener = None


class JanomeTokenizer:
    """Japanese morphological analysis with janome; '*' readings mean 'no reading'."""

    def __init__(self) -> None:
        from janome.tokenizer import Tokenizer
        self._tokenizer = Tokenizer()

    def tokenize(self, text: str) -> List[Token]:
        out: List[Token] = []
        for tok in self._tokenizer.tokenize(text):
            reading = tok.reading if tok.reading not in ("*", "") else None
            out.append(Token(tok.surface, reading))
        return out


@lru_cache(maxsize=1)
def _shared_tokenizer() -> Optional[MorphTokenizer]:
    # the analyser dictionary is large; load it once per process
    try:
        return JanomeTokenizer()
    except ImportError:
        log.info("janome not installed; voice input disabled")
        return None


def default_capabilities() -> Tuple[SpeechRecognizer, Optional[MorphTokenizer]]:
    """Best recognizer/tokenizer pair for this environment (fresh recognizer per field)."""
    tokenizer = _shared_tokenizer()
    if tokenizer is None:
        return NullRecognizer(), None
    return SpeechRecognitionRecognizer(), tokenizer


# ---------- adapter ----------

class VoiceState(str, Enum):
    STOPPED = "stopped"
    LISTENING = "listening"


def _call_now(fn: Callable[[], None]) -> None:
    fn()


class VoiceDictationAdapter:
    """STOPPED -> LISTENING -> STOPPED; one recognition session per field."""

    def __init__(self,
                 session: "SuggestionSession",
                 recognizer: SpeechRecognizer,
                 tokenizer: Optional[MorphTokenizer],
                 *,
                 on_notice: Optional[Callable[[str], None]] = None,
                 dispatch: Optional[Callable[[Callable[[], None]], None]] = None,
                 debounce_seconds: float = CFG.DEBOUNCE_SECONDS) -> None:
        self.session = session
        self.recognizer = recognizer
        self.tokenizer = tokenizer
        self.on_notice = on_notice
        self.dispatch = dispatch or _call_now
        self.state = VoiceState.STOPPED
        self._noticed = False
        self._closed = False
        self._debounce = Debouncer(debounce_seconds, self._process)
        session.voice = self

    @property
    def supported(self) -> bool:
        return self.tokenizer is not None and self.recognizer.is_available()

    # ------------- control -------------

    def start(self, locale: str = CFG.VOICE_LOCALE) -> bool:
        if self._closed:
            return False
        if self.state is VoiceState.LISTENING:
            log.debug("voice already listening on %s; start ignored", self.session.table)
            return False
        if not self.supported:
            self._not_supported()
            return False

        self.session.focus()
        self.session.text = ""
        self.state = VoiceState.LISTENING
        try:
            self.recognizer.start(locale, self.on_transcript)
        except Exception as e:
            log.warning("could not start speech recognition (%s): %s", locale, e)
            self.state = VoiceState.STOPPED
            self._not_supported()
            return False
        log.info("voice listening (%s) on %s", locale, self.session.table)
        return True

    def stop(self) -> None:
        self._debounce.cancel()
        if self.state is not VoiceState.LISTENING:
            return
        self.state = VoiceState.STOPPED
        try:
            self.recognizer.stop()
        except Exception as e:
            log.warning("stopping speech recognition failed: %s", e)

    def destroy(self) -> None:
        """Stop and deregister every recognizer listener; idempotent."""
        if self._closed:
            return
        self.stop()
        self._closed = True
        self._debounce.close()
        try:
            self.recognizer.destroy()
        except Exception as e:
            log.warning("releasing speech recognizer failed: %s", e)
        if self.session.voice is self:
            self.session.voice = None

    # ------------- transcripts -------------

    def on_transcript(self, text: str) -> None:
        """Recognizer callback; bursts of partial results collapse into one query."""
        if self.state is not VoiceState.LISTENING or not text or not text.strip():
            return
        self._debounce(text)

    def flush(self) -> bool:
        return self._debounce.flush()

    def reading_of(self, text: str) -> str:
        """Concatenated phonetic reading of a transcript (surface form where none)."""
        tokens = self.tokenizer.tokenize(text) if self.tokenizer is not None else []
        if not tokens:
            return ""
        joined = "".join(t.reading or t.surface for t in tokens)
        return _WS.sub("", joined).lower()

    def _process(self, text: str) -> None:
        try:
            query = self.reading_of(text)
        except Exception as e:
            log.warning("tokenizing transcript %r failed: %s", text, e)
            return
        if not query:
            return
        gen = self.session.generation
        self.dispatch(lambda: self._deliver(query, gen))

    def _deliver(self, query: str, gen: int) -> None:
        if self._closed or self.session.closed:
            return
        # blur, stop or typing since the transcript was processed
        if self.state is not VoiceState.LISTENING or gen != self.session.generation:
            log.debug("dropping dictated query %r on %s", query, self.session.table)
            return
        self.session.on_input(query)
        self.stop()

    def _not_supported(self) -> None:
        log.info("voice input not supported for %s", self.session.table)
        if self._noticed:
            return
        self._noticed = True
        if self.on_notice is not None:
            self.on_notice(CFG.NOT_SUPPORTED_TEXT)
