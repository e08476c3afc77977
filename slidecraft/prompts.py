"""
Prompt Sources

Turns typed prompt blocks and storyboard outlines into ordered scene lists,
and builds the final text sent with each image request.
"""

from typing import List, Sequence

from slidecraft.core.constants import DEFAULT_CHARACTER_PROMPT, SCENE_HEADING
from slidecraft.outline import SlideContent
from slidecraft.scenes import CallToAction, Pending, SceneResult


def parse_manual_prompts(text: str) -> List[str]:
    """Split a line-delimited block into prompts, dropping blank lines."""
    return [line.strip() for line in text.split("\n") if line.strip()]


def build_scene_prompt(prompt: str) -> str:
    """Prefix a scene description with the fixed character and style lock."""
    return f"{DEFAULT_CHARACTER_PROMPT}\n\n{SCENE_HEADING}\n{prompt}".strip()


def scenes_from_prompts(prompts: Sequence[str]) -> List[SceneResult]:
    return [SceneResult(prompt=prompt, state=Pending()) for prompt in prompts]


def scenes_from_slides(slides: Sequence[SlideContent]) -> List[SceneResult]:
    """
    Seed one scene per slide.

    The last slide of a storyboard is the call to action and is never rendered.
    """
    last = len(slides) - 1
    return [
        SceneResult(
            prompt=slide.prompt,
            title=slide.title,
            description=slide.description,
            state=CallToAction() if idx == last else Pending(),
        )
        for idx, slide in enumerate(slides)
    ]
