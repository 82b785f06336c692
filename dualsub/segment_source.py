"""Produces raw bilingual segment records from local transcription and translation models."""

import logging
from typing import Any, Dict, List, Sequence

from .exceptions import TranslationError
from .models import Segment
from .timeline import format_seconds
from .transcriber import Transcriber
from .translator import Translator

logger = logging.getLogger(__name__)

class BilingualSegmentSource:
    """
    Transcribes audio and translates every segment.

    The output has the same record shape as a generative service response
    (``index``, ``startTime``, ``endTime``, ``originalText``,
    ``translatedText``), so both paths share ``timeline.ingest``.
    """

    def __init__(self, transcriber: Transcriber, translator: Translator, batch_size: int = 16):
        self.transcriber = transcriber
        self.translator = translator
        self.batch_size = max(1, batch_size)

    def produce(self, audio_path: str) -> List[Dict[str, Any]]:
        segments = self.transcriber.transcribe(audio_path).segments
        total = len(segments)
        logger.info(f"Translating {total} segments...")

        translations: List[str] = []
        for start in range(0, total, self.batch_size):
            translations.extend(self._translate_chunk(segments[start:start + self.batch_size], start))
            logger.info(f"Translated segment {len(translations)}/{total}")

        failed = sum(1 for seg, text in zip(segments, translations) if seg.text and not text)
        if failed:
            logger.warning(f"{failed} of {total} segments have no translation.")

        return [
            {
                "index": i + 1,
                "startTime": format_seconds(segment.start_time),
                "endTime": format_seconds(segment.end_time),
                "originalText": segment.text,
                "translatedText": translated,
            }
            for i, (segment, translated) in enumerate(zip(segments, translations))
        ]

    def _translate_chunk(self, chunk: Sequence[Segment], offset: int) -> List[str]:
        texts = [segment.text for segment in chunk]
        try:
            return self.translator.translate_batch(texts)
        except TranslationError as e:
            logger.warning(f"Batch translation failed ({e}); retrying segments {offset + 1}-{offset + len(chunk)} one by one.")

        results = []
        for i, text in enumerate(texts, start=offset + 1):
            try:
                results.append(self.translator.translate(text))
            except TranslationError as e:
                logger.warning(f"Failed to translate segment {i} ('{text[:30]}'): {e}. Leaving translation empty.")
                results.append("")
        return results
