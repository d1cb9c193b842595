"""Per-item translation state for product titles and attribute rows."""

import logging
from collections import OrderedDict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)

TranslateFn = Callable[[str, str], Awaitable[str]]

SOURCE_LANGUAGE = "en"


class TranslationPhase(str, Enum):
    IDLE = "idle"
    TRANSLATING = "translating"
    DONE = "done"


@dataclass(frozen=True)
class TranslationState:
    phase: TranslationPhase
    text: str | None = None
    lang: str | None = None


_IDLE = TranslationState(TranslationPhase.IDLE)


class TitleTranslator:
    def __init__(self, translate: TranslateFn, *, max_items: int = 512) -> None:
        self._translate = translate
        self._max_items = max_items
        self._states: OrderedDict[str, TranslationState] = OrderedDict()

    def state(self, item_id: str) -> TranslationState:
        return self._states.get(item_id, _IDLE)

    def _set(self, item_id: str, state: TranslationState) -> None:
        self._states[item_id] = state
        self._states.move_to_end(item_id)
        while len(self._states) > self._max_items:
            self._states.popitem(last=False)

    def reset(self, item_id: str | None = None) -> None:
        if item_id is None:
            self._states.clear()
        else:
            self._states.pop(item_id, None)

    async def request(self, item_id: str, text: str, lang: str) -> str:
        if not text or not lang or lang == SOURCE_LANGUAGE:
            self.reset(item_id)
            return text

        current = self.state(item_id)
        if current.phase == TranslationPhase.DONE and current.lang == lang and current.text is not None:
            return current.text

        self._set(item_id, TranslationState(TranslationPhase.TRANSLATING, lang=lang))
        try:
            translated = await self._translate(text, lang)
        except Exception as exc:
            logger.warning("Translation of %s to %s failed: %s", item_id, lang, exc)
            translated = text

        # A newer request for another language supersedes this one.
        latest = self.state(item_id)
        if latest.phase == TranslationPhase.TRANSLATING and latest.lang == lang:
            self._set(item_id, TranslationState(TranslationPhase.DONE, text=translated or text, lang=lang))
        return translated or text


__all__ = ["TitleTranslator", "TranslateFn", "TranslationPhase", "TranslationState"]
