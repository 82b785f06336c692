"""Machine translation of subtitle text with Hugging Face sequence-to-sequence models."""

import logging
from abc import ABC, abstractmethod
from typing import List, Sequence

from .exceptions import TranslationError
from .transcriber import resolve_device

logger = logging.getLogger(__name__)

class Translator(ABC):
    """Abstract base class for translation services."""

    @abstractmethod
    def translate(self, text: str) -> str:
        """
        Translates text from the source into the target language.

        Args:
            text: The text to translate.

        Returns:
            The translated text.

        Raises:
            TranslationError: If translation fails.
        """
        pass

    def translate_batch(self, texts: Sequence[str]) -> List[str]:
        """Translates several texts, preserving order. The default calls translate() for each."""
        return [self.translate(text) for text in texts]

class HuggingFaceTranslator(Translator):
    """
    Translates with a MarianMT-style model (e.g. Helsinki-NLP/opus-mt-en-zh).

    Subtitle lines are short, so they are translated in padded batches of
    ``batch_size``; empty lines are passed through without touching the model.
    """

    def __init__(
        self,
        model_name: str = "Helsinki-NLP/opus-mt-en-zh",
        device: str = "cuda",
        max_length: int = 512,
        batch_size: int = 16,
    ):
        """
        Args:
            model_name: The Hugging Face model id.
            device: "cuda" or "cpu"; CUDA falls back to CPU when unavailable.
            max_length: Token limit for a single input; longer lines are truncated.
            batch_size: Number of lines per generate() call.

        Raises:
            ValueError: If the specified device is invalid.
            TranslationError: If the model or tokenizer fails to load.
        """
        from transformers import AutoModelForSeq2SeqLM, AutoTokenizer

        self.model_name = model_name
        self.device = resolve_device(device)
        self.max_length = max_length
        self.batch_size = max(1, batch_size)

        logger.info(f"Loading translation model '{self.model_name}' on '{self.device}' (batch size {self.batch_size})")
        try:
            self.tokenizer = AutoTokenizer.from_pretrained(self.model_name)
            self.model = AutoModelForSeq2SeqLM.from_pretrained(self.model_name).to(self.device)
            self.model.eval()
        except Exception as e:
            logger.error(f"Failed to load translation model '{self.model_name}': {e}", exc_info=True)
            raise TranslationError(f"Failed to load translation model '{self.model_name}': {e}") from e

    def translate(self, text: str) -> str:
        return self.translate_batch([text])[0]

    def translate_batch(self, texts: Sequence[str]) -> List[str]:
        pending = [text for text in texts if text and text.strip()]
        translated: List[str] = []
        for start in range(0, len(pending), self.batch_size):
            translated.extend(self._generate(pending[start:start + self.batch_size]))

        results = iter(translated)
        return [next(results) if text and text.strip() else "" for text in texts]

    def _generate(self, batch: List[str]) -> List[str]:
        import torch

        logger.debug(f"Translating batch of {len(batch)} lines, first: '{batch[0][:50]}'")
        try:
            inputs = self.tokenizer(batch, return_tensors="pt", padding=True, truncation=True, max_length=self.max_length)
            inputs = {k: v.to(self.device) for k, v in inputs.items()}
            with torch.no_grad():
                tokens = self.model.generate(**inputs)
            return self.tokenizer.batch_decode(tokens, skip_special_tokens=True)
        except Exception as e:
            logger.error(f"Translation batch failed (first line '{batch[0][:50]}'): {e}", exc_info=True)
            raise TranslationError(f"Hugging Face translation failed: {e}") from e
