from __future__ import annotations

import pytest

from subtide.exceptions import ResultCountMismatchError, UnitFailedError
from subtide.models.translation import TranslationBatch, TranslationItem
from subtide.pipeline.translation import BatchTranslator, make_batches

from _fakes import FakeTranslationLLM


def _items(n: int) -> list[TranslationItem]:
    return [TranslationItem(index=i, text=f"line {i}") for i in range(n)]


def test_prompt_names_languages_and_embeds_items() -> None:
    translator = BatchTranslator(
        FakeTranslationLLM(), target_language="Japanese", input_language="English"
    )

    prompt = translator.build_prompt(
        [TranslationItem(0, "Hello world"), TranslationItem(1, "Goodbye")]
    )

    assert prompt.startswith(
        "Translate the following English subtitle texts to Japanese.\n\nIMPORTANT INSTRUCTIONS:\n"
        "1. Translate ONLY the text content, preserving the meaning.\n"
    )
    assert "8. Do not add any explanation or markdown formatting.\n\nInput JSON:\n" in prompt
    assert '"index": 0' in prompt
    assert "Hello world" in prompt
    assert "Additional instructions" not in prompt


def test_prompt_without_input_language_and_with_extra_instructions() -> None:
    translator = BatchTranslator(
        FakeTranslationLLM(), target_language="Spanish", prompt="Keep it formal"
    )

    prompt = translator.build_prompt([TranslationItem(0, "こんにちは")])

    assert prompt.startswith("Translate the following subtitle texts to Spanish.\n\n")
    assert "English" not in prompt
    assert "Additional instructions: Keep it formal\n\nInput JSON:\n" in prompt
    assert prompt.endswith(
        'Input JSON:\n[\n  {\n    "index": 0,\n    "text": "こんにちは"\n  }\n]'
        "\n\nOutput the translated JSON array only:"
    )


def test_make_batches_slices_contiguously() -> None:
    batches = make_batches(_items(5), 2)

    assert [b.index for b in batches] == [0, 1, 2]
    assert [[i.index for i in b.items] for b in batches] == [[0, 1], [2, 3], [4]]


@pytest.mark.asyncio
async def test_translate_runs_one_request_per_batch_in_order() -> None:
    llm = FakeTranslationLLM()
    translator = BatchTranslator(llm, target_language="French", batch_size=2)

    results = await translator.translate(_items(5), concurrency=2)

    assert [(r.index, r.text) for r in results] == [(i, f"T:line {i}") for i in range(5)]
    assert len(llm.calls) == 3
    assert all(call["temperature"] is None for call in llm.calls)
    assert all(call["messages"][0].role == "user" for call in llm.calls)


@pytest.mark.asyncio
async def test_translate_batch_rejects_wrong_result_count() -> None:
    llm = FakeTranslationLLM(respond=lambda items: [{"index": items[0]["index"], "text": "only one"}])
    translator = BatchTranslator(llm, target_language="French")

    with pytest.raises(ResultCountMismatchError, match="expected 2 results, got 1"):
        await translator.translate_batch(TranslationBatch(index=0, items=_items(2)))


@pytest.mark.asyncio
async def test_translate_wraps_batch_failures() -> None:
    llm = FakeTranslationLLM(respond=lambda items: [{"index": items[0]["index"], "text": "short"}])
    translator = BatchTranslator(llm, target_language="French", batch_size=2)

    with pytest.raises(UnitFailedError) as exc_info:
        await translator.translate(_items(4), concurrency=1)

    assert exc_info.value.unit_label == "batch"
    assert isinstance(exc_info.value.cause, ResultCountMismatchError)


@pytest.mark.asyncio
async def test_sampling_options_are_forwarded() -> None:
    llm = FakeTranslationLLM()
    translator = BatchTranslator(llm, target_language="German", temperature=0.2, max_tokens=1024)

    await translator.translate(_items(1))

    assert llm.calls[0]["temperature"] == 0.2
    assert llm.calls[0]["max_tokens"] == 1024
