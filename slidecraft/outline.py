"""
Storyboard Outline Generator

Asks the text model for a 6-7 slide storyboard, normalizes whatever comes back
into a usable slide list with a single closing call to action, and falls back
to a fixed outline when the model cannot be used.
"""

import json
import re
from dataclasses import asdict, dataclass
from typing import Any, Dict, List

from slidecraft.core.constants import (
    CTA_PHRASE,
    CTA_TITLE,
    FALLBACK_SLIDE_COUNT,
    MAX_STORYBOARD_SLIDES,
    MIN_STORYBOARD_SLIDES,
    STORYBOARD_REQUEST_TEMPLATE,
    STORYBOARD_RESPONSE_SCHEMA,
    STORYBOARD_SYSTEM_INSTRUCTION,
)
from slidecraft.core.exceptions import EmptyTopicError, OutlineInvalidError, OutlineParseError
from slidecraft.core.logging_config import get_logger

logger = get_logger("outline")

CODE_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


@dataclass
class SlideContent:
    """One storyboard slide as produced by the outline step."""
    title: str = ""
    description: str = ""
    prompt: str = ""

    @property
    def is_empty(self) -> bool:
        return not (self.title or self.description or self.prompt)

    def mentions_cta(self) -> bool:
        return CTA_PHRASE.lower() in self.description.lower()

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


def welcome_prompt(topic: str) -> str:
    return (
        f"The boy stands in the center waving hello with a bright, welcoming smile, "
        f"excited to explore \"{topic}\" together."
    )


def cta_slide(topic: str) -> SlideContent:
    return SlideContent(
        title=CTA_TITLE,
        description=(
            f"You now know the basics of {topic}. "
            f"{CTA_PHRASE} to plan it, track it and keep it going every day."
        ),
        prompt="",
    )


def parse_outline(text: str) -> List[Any]:
    """
    Parse the model's JSON answer into a list.

    Raises:
        OutlineParseError: the text is not a JSON array
    """
    cleaned = (text or "").strip()
    fenced = CODE_FENCE_PATTERN.match(cleaned)
    if fenced:
        cleaned = fenced.group(1)

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise OutlineParseError(str(e))

    if not isinstance(data, list):
        raise OutlineParseError(f"expected a JSON array, got {type(data).__name__}")
    return data


def _coerce_slide(item: Any) -> SlideContent:
    if not isinstance(item, dict):
        return SlideContent()

    def text(key: str) -> str:
        value = item.get(key)
        return value.strip() if isinstance(value, str) else ""

    return SlideContent(title=text("title"), description=text("description"), prompt=text("prompt"))


def normalize_slides(raw: List[Any], topic: str) -> List[SlideContent]:
    """
    Normalize a raw outline into a usable slide list.

    The result has between 3 and 7 slides, a titled cover slide with an
    illustration prompt, and exactly one call-to-action slide in last place.
    Returns an empty list when the outline cannot be made usable.
    """
    slides = [slide for slide in (_coerce_slide(item) for item in raw) if not slide.is_empty]
    if not slides:
        return []

    cover = slides[0]
    if not cover.title:
        cover.title = topic
    if not cover.prompt:
        cover.prompt = welcome_prompt(topic)

    cta_indices = [idx for idx in range(1, len(slides)) if slides[idx].mentions_cta()]
    if cta_indices:
        cta = slides[cta_indices[-1]]
        dropped = set(cta_indices)
        slides = [slide for idx, slide in enumerate(slides) if idx not in dropped]
    else:
        cta = cta_slide(topic)
    slides.append(cta)

    if len(slides) < MIN_STORYBOARD_SLIDES:
        return []

    if len(slides) > MAX_STORYBOARD_SLIDES:
        slides = slides[:MAX_STORYBOARD_SLIDES - 1] + [cta]

    return slides


def build_fallback_storyboard(topic: str) -> List[SlideContent]:
    """Deterministic six-slide storyboard used when generation fails."""
    slides = [
        SlideContent(title=topic, description="", prompt=welcome_prompt(topic)),
        SlideContent(
            title=f"What is {topic}?",
            description=(
                f"{topic} is something we can learn about step by step. "
                "Let's discover what it means and where we see it every day."
            ),
            prompt=(
                "The boy looks through a big magnifying glass with wide, curious eyes, "
                "discovering something new on a small table."
            ),
        ),
        SlideContent(
            title=f"Why {topic} matters",
            description=(
                f"Understanding {topic} helps us feel better and make good choices. "
                "Small changes can make a big difference."
            ),
            prompt=(
                "The boy holds a glowing heart in both hands, smiling warmly "
                "with a proud and happy expression."
            ),
        ),
        SlideContent(
            title="Getting started",
            description=(
                "Start with one small, simple step today. "
                "Every big journey begins with a first try."
            ),
            prompt=(
                "The boy takes a confident first step onto a path of stepping stones, "
                "arms out for balance, looking determined and cheerful."
            ),
        ),
        SlideContent(
            title="Making it a habit",
            description=(
                "Doing a little every day turns it into a habit. "
                "Celebrate your progress along the way."
            ),
            prompt=(
                "The boy puts a shiny star sticker on a simple calendar, "
                "grinning with excitement and pride."
            ),
        ),
        cta_slide(topic),
    ]
    return slides[:FALLBACK_SLIDE_COUNT]


class StoryboardOutlineGenerator:
    """
    One-shot storyboard generation.

    ``generate_outline`` only raises for a blank topic; every model, parse or
    validation failure is answered with ``build_fallback_storyboard``.
    """

    def __init__(self, text_client):
        self.text_client = text_client

    async def generate_outline(self, topic: str) -> List[SlideContent]:
        topic = (topic or "").strip()
        if not topic:
            raise EmptyTopicError()

        try:
            text = await self.text_client.generate_json(
                STORYBOARD_REQUEST_TEMPLATE.format(topic=topic),
                STORYBOARD_SYSTEM_INSTRUCTION,
                STORYBOARD_RESPONSE_SCHEMA,
            )
            raw = parse_outline(text)
            slides = normalize_slides(raw, topic)
            if not slides:
                raise OutlineInvalidError(len(raw))
        except Exception as e:
            logger.warning(f"Storyboard for '{topic}' fell back to default outline: {e}")
            return build_fallback_storyboard(topic)

        logger.info(f"Storyboard for '{topic}' generated with {len(slides)} slides")
        return slides
