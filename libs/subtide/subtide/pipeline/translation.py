"""LLM-backed subtitle translation in index-keyed JSON batches."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence

from subtide.exceptions import ResultCountMismatchError
from subtide.models.translation import TranslationBatch, TranslationItem, TranslationResult
from subtide.pipeline.concurrent import DEFAULT_CONCURRENCY, run_concurrent
from subtide.providers.llm.base import LLMProvider, Message
from subtide.utils.llm_json import extract_translation_results

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 50

_INSTRUCTIONS = (
    "IMPORTANT INSTRUCTIONS:\n"
    "1. Translate ONLY the text content, preserving the meaning.\n"
    "2. Translations MUST make sense given the context of the original text "
    "rather than a literal translation.\n"
    "3. Keep any formatting tags (like {\\pos}, {\\an}, etc.) unchanged.\n"
    "4. Preserve line breaks (\\N) in the same positions.\n"
    "5. Return ONLY a JSON array with the same structure.\n"
    "6. Each object must have 'index' and 'text' fields.\n"
    "7. The 'index' values must match the input indices exactly.\n"
    "8. Do not add any explanation or markdown formatting.\n\n"
)


def make_batches(items: Sequence[TranslationItem], batch_size: int) -> list[TranslationBatch]:
    if batch_size <= 0:
        batch_size = DEFAULT_BATCH_SIZE
    return [
        TranslationBatch(index=n, items=list(items[start : start + batch_size]))
        for n, start in enumerate(range(0, len(items), batch_size))
    ]


class BatchTranslator:
    """Translates items through an LLMProvider, `batch_size` items per request."""

    def __init__(
        self,
        llm: LLMProvider,
        *,
        target_language: str,
        input_language: str = "",
        prompt: str = "",
        batch_size: int = DEFAULT_BATCH_SIZE,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> None:
        self.llm = llm
        self.target_language = target_language
        self.input_language = input_language
        self.prompt = prompt
        self.batch_size = batch_size if batch_size > 0 else DEFAULT_BATCH_SIZE
        self.temperature = temperature
        self.max_tokens = max_tokens

    @property
    def provider(self) -> str:
        return self.llm.provider

    @property
    def model(self) -> str:
        return self.llm.model

    def build_prompt(self, items: Sequence[TranslationItem]) -> str:
        if self.input_language:
            header = (
                f"Translate the following {self.input_language} subtitle texts "
                f"to {self.target_language}.\n\n"
            )
        else:
            header = f"Translate the following subtitle texts to {self.target_language}.\n\n"

        extra = f"Additional instructions: {self.prompt}\n\n" if self.prompt else ""
        payload = json.dumps([item.to_dict() for item in items], ensure_ascii=False, indent=2)
        return (
            f"{header}{_INSTRUCTIONS}{extra}Input JSON:\n{payload}"
            "\n\nOutput the translated JSON array only:"
        )

    async def translate_batch(self, batch: TranslationBatch) -> list[TranslationResult]:
        """One request for one batch; the result count must equal the item count."""
        prompt = self.build_prompt(batch.items)
        text = await self.llm.complete(
            [Message(role="user", content=prompt)],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        results = extract_translation_results(text)
        if len(results) != len(batch.items):
            raise ResultCountMismatchError(self.provider, len(batch.items), len(results))
        logger.debug(
            "batch translated (batch=%s, items=%s, provider=%s)",
            batch.index,
            len(batch.items),
            self.provider,
        )
        return results

    async def translate(
        self,
        items: Sequence[TranslationItem],
        *,
        concurrency: int = DEFAULT_CONCURRENCY,
    ) -> list[TranslationResult]:
        batches = make_batches(items, self.batch_size)
        logger.info(
            "translation start (items=%s, batches=%s, batch_size=%s, concurrency=%s, target=%s)",
            len(items),
            len(batches),
            self.batch_size,
            concurrency,
            self.target_language,
        )
        results = await run_concurrent(
            batches,
            self.translate_batch,
            concurrency=concurrency,
            unit_label="batch",
        )
        logger.info("translation done (results=%s)", len(results))
        return results

    async def close(self) -> None:
        await self.llm.close()
