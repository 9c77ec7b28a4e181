"""Translation item/result models."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class TranslationItem:
    """Text to translate; `index` ties the result back to an entry position."""

    index: int
    text: str

    def to_dict(self) -> dict[str, object]:
        return {"index": self.index, "text": self.text}


@dataclass(frozen=True)
class TranslationResult:
    index: int
    text: str


@dataclass(frozen=True)
class TranslationBatch:
    """A contiguous slice of items; `index` is the batch position in the run."""

    index: int
    items: list[TranslationItem] = field(default_factory=list)
