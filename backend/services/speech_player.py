"""Single global speech playback toggle."""
import logging
from typing import Callable, Protocol

from config import SPEECH_RATE
from services.speech_filter import clean_for_speech

logger = logging.getLogger(__name__)


class Synthesizer(Protocol):
    """Text-to-speech engine boundary."""

    def speak(self, text: str, rate: float, on_end: Callable[[], None]) -> None:
        ...

    def cancel(self) -> None:
        ...


class SpeechPlayer:
    """Plays at most one utterance at a time; re-invoking while speaking stops it."""

    def __init__(self, synthesizer: Synthesizer, rate: float = SPEECH_RATE):
        self.synthesizer = synthesizer
        self.rate = rate
        self.speaking = False

    def toggle(self, raw_answer: str) -> bool:
        """
        Start speaking ``raw_answer``, or stop the current utterance.

        Returns:
            True if a new utterance was started
        """
        if self.speaking:
            self.stop()
            return False

        text = clean_for_speech(raw_answer)
        if not text:
            logger.debug("Nothing speakable in answer")
            return False

        self.synthesizer.cancel()
        self.speaking = True
        self.synthesizer.speak(text, self.rate, self._finished)
        return True

    def stop(self) -> None:
        self.synthesizer.cancel()
        self.speaking = False

    def _finished(self) -> None:
        self.speaking = False
