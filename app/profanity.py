# app/profanity.py
import logging

from better_profanity import Profanity

logger = logging.getLogger(__name__)


class ProfanityFilter:
    """Censors free text; any failure inside the word list returns the text unchanged."""

    def __init__(self, extra_words=None):
        self._engine = Profanity()
        self._engine.load_censor_words()
        if extra_words:
            self._engine.add_censor_words(list(extra_words))

    def clean(self, text):
        if not isinstance(text, str) or not text.strip():
            return text
        try:
            return self._engine.censor(text)
        except Exception as e:
            logger.warning("[WARN] profanity filter failed, keeping original text: %s", e)
            return text


# Built once at import and shared by every write path
profanity_filter = ProfanityFilter()
