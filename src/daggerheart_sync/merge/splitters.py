"""
Domain cards whose text needs a hand-written cut into actions.

Splitters are registered under the normalized English card name and return
Markdown segments; ``distribute_actions`` renders and fits them.
"""

from __future__ import annotations

import re
from typing import Callable

from ..text.normalize import normalize_key, strip_links
from .splitter import ActionSplitter, SplitRequest, normalize_markdown, split_paragraphs


class SplitterRegistry:
    """Mapping of normalized entity names to splitters."""

    def __init__(self) -> None:
        self._splitters: dict[str, ActionSplitter] = {}

    def register(self, name: str, force_unique: bool = True) -> Callable:
        def decorator(func: Callable[[SplitRequest], list[str] | None]):
            key = normalize_key(name)
            if key:
                self._splitters[key] = ActionSplitter(split=func, force_unique=force_unique)
            return func

        return decorator

    def get(self, key: str | None) -> ActionSplitter | None:
        if not key:
            return None
        return self._splitters.get(key)

    def __contains__(self, key: str) -> bool:
        return key in self._splitters

    def __len__(self) -> int:
        return len(self._splitters)


DOMAIN_SPLITTERS = SplitterRegistry()


def split_with_regex(markdown: str, pattern: re.Pattern) -> list[str]:
    source = normalize_markdown(markdown)
    if not source:
        return []
    return [part.strip() for part in pattern.split(source) if part.strip()]


_EXOTA_CUT_RE = re.compile(r"(?=Совершите)", re.IGNORECASE)
_CHAIN_LIGHTNING_RE = re.compile(r"(?=Дополнительные|Additional\s+targets?)", re.IGNORECASE)
_ENRAPTURE_RE = re.compile(r"(?=Один раз)", re.IGNORECASE)
_RAIN_OF_BLADES_RE = re.compile(r"(?=Если)", re.IGNORECASE)
_STRESS_COST_RE = re.compile(r"\*\*\s*(?:Отметьте|Mark\s+Stress)[\s\S]*", re.IGNORECASE)
_HEALING_RE = re.compile(r"2\s*[Рр]ан", re.IGNORECASE)
_HEALING_CHOICE_RE = re.compile(r"2\s*[Рр]ан[аыё]\s+или\s+2\s*[Сс]тресс[аыё]", re.IGNORECASE)
_CONDITION_RE = re.compile(r"состояни|заболеван", re.IGNORECASE)


@DOMAIN_SPLITTERS.register("Book of Exota")
def split_book_of_exota(request: SplitRequest) -> list[str]:
    segments = []
    features = list(request.features or ())
    if features and features[0].main_body:
        segments.append(features[0].main_body)
    if len(features) > 1 and features[1].main_body:
        second = normalize_markdown(features[1].main_body)
        parts = [part.strip() for part in _EXOTA_CUT_RE.split(second) if part.strip()]
        if len(parts) > 1:
            segments.append(parts[0])
            segments.append(" ".join(parts[1:]).strip())
        elif second:
            segments.append(second)
    return segments


@DOMAIN_SPLITTERS.register("Chain Lightning")
def split_chain_lightning(request: SplitRequest) -> list[str]:
    return split_with_regex(request.markdown, _CHAIN_LIGHTNING_RE)


@DOMAIN_SPLITTERS.register("Chokehold")
@DOMAIN_SPLITTERS.register("Cinder Grasp")
def split_on_paragraphs(request: SplitRequest) -> list[str]:
    return split_paragraphs(request.markdown)


@DOMAIN_SPLITTERS.register("Codex-Touched")
def split_codex_touched(request: SplitRequest) -> list[str]:
    lines = [line.strip() for line in normalize_markdown(request.markdown).split("\n")]
    return [re.sub(r"^-+\s*", "", line).strip() for line in lines if line.startswith("- ")]


@DOMAIN_SPLITTERS.register("Enrapture")
def split_enrapture(request: SplitRequest) -> list[str]:
    return split_with_regex(request.markdown, _ENRAPTURE_RE)


@DOMAIN_SPLITTERS.register("Rain of Blades")
def split_rain_of_blades(request: SplitRequest) -> list[str]:
    return split_with_regex(request.markdown, _RAIN_OF_BLADES_RE)


def _from_touch(text: str) -> str:
    index = text.lower().find("прикоснитесь")
    return text[index:].strip() if index > -1 else text.strip()


@DOMAIN_SPLITTERS.register("Restoration")
def split_restoration(request: SplitRequest) -> list[str]:
    """One action per healing choice, plus one for clearing a condition."""
    paragraphs = split_paragraphs(request.markdown)
    if not paragraphs:
        return []
    healing = next(
        (p for p in paragraphs if _HEALING_RE.search(p) and re.search("Стресс", p, re.IGNORECASE)),
        paragraphs[0],
    )
    segments = []
    plain = strip_links(healing)
    if _HEALING_CHOICE_RE.search(plain):
        segments.append(_from_touch(_HEALING_CHOICE_RE.sub("2 Раны", plain, count=1)))
        segments.append(_from_touch(_HEALING_CHOICE_RE.sub("2 Стресса", plain, count=1)))
    else:
        segments.append(_from_touch(plain))
    condition = next((p for p in paragraphs if _CONDITION_RE.search(p)), None)
    if condition:
        segments.append(strip_links(condition).strip())
    return segments


@DOMAIN_SPLITTERS.register("Unleash Chaos")
def split_unleash_chaos(request: SplitRequest) -> list[str]:
    """Main effect in one action, the Stress-powered option in another."""
    paragraphs = split_paragraphs(request.markdown)
    if len(paragraphs) <= 1:
        return paragraphs
    first, second = paragraphs[0], paragraphs[1]
    stress = _STRESS_COST_RE.search(second)
    stress_part = ""
    if stress:
        stress_part = stress.group(0).strip()
        second = second[:stress.start()].strip()
    segments = [f"{first}\n\n{second}" if second else first]
    if stress_part:
        segments.append(stress_part)
    return segments
