"""
Project Generator - Create projects with random names and sample content.

The sample project mirrors what the host design tool typically exports: a
few standard ad sizes, each with a small layer tree (background, a content
group with headline and button, a logo) and a short frame sequence.
"""

import random
import uuid
from typing import Optional

from adforge.config import settings
from adforge.identity import make_frame_id
from adforge.layers import Composition, Frame, Layer, LayerKind

from .project import Project


ADJECTIVES = [
    "luminous", "radiant", "velvet", "azure",
    "emerald", "coral", "golden", "silver",
]

NOUNS = [
    "campaign", "launch", "promo", "teaser",
    "banner", "spotlight", "showcase", "drop",
]

# (name, width, height) of the standard sizes
AD_SIZES = [
    ("Medium Rectangle", 300, 250),
    ("Leaderboard", 728, 90),
    ("Wide Skyscraper", 160, 600),
    ("Half Page", 300, 600),
]


def generate_project_name() -> str:
    """Generate a random project name like "Golden Launch"."""
    return f"{random.choice(ADJECTIVES).title()} {random.choice(NOUNS).title()}"


def create_empty_project(name: Optional[str] = None) -> Project:
    """
    Create an empty project.

    Args:
        name: Project name (random if not provided)

    Returns:
        Project with no compositions
    """
    return Project(id=str(uuid.uuid4()), name=name or generate_project_name())


def create_sample_layers(prefix: str) -> list[Layer]:
    """
    Build the sample layer tree for one frame.

    Ids are ``<prefix>-<role>`` so they stay unique within a frame.
    """
    return [
        Layer(id=f"{prefix}-background", name="Background", kind=LayerKind.RECTANGLE.value, locked=True),
        Layer(
            id=f"{prefix}-content",
            name="Content",
            kind=LayerKind.GROUP.value,
            children=[
                Layer(id=f"{prefix}-headline", name="Headline", kind=LayerKind.TEXT.value),
                Layer(
                    id=f"{prefix}-cta",
                    name="Button",
                    kind=LayerKind.GROUP.value,
                    children=[
                        Layer(id=f"{prefix}-cta-shape", name="Button Shape", kind=LayerKind.RECTANGLE.value),
                        Layer(id=f"{prefix}-cta-label", name="Button Label", kind=LayerKind.TEXT.value),
                    ],
                ),
            ],
        ),
        Layer(id=f"{prefix}-logo", name="Logo", kind=LayerKind.IMAGE.value),
    ]


def create_sample_project(
    name: Optional[str] = None,
    composition_count: int = 2,
    frames_per_composition: int = 3,
    delay: Optional[float] = None,
) -> Project:
    """
    Create a sample project with layer trees and frame sequences.

    Frame n of every composition hides the headline when n is even, so the
    sample already exercises the exclusion lists.

    Args:
        name: Project name (random if not provided)
        composition_count: Number of ad sizes (at most len(AD_SIZES))
        frames_per_composition: Frames in each sequence
        delay: Per-frame delay (settings.DEFAULT_FRAME_DELAY if not provided)

    Returns:
        Project instance
    """
    project = create_empty_project(name)
    delay = settings.DEFAULT_FRAME_DELAY if delay is None else delay

    for index, (size_name, width, height) in enumerate(AD_SIZES[:composition_count], start=1):
        composition_id = f"frame-{index}"
        composition = Composition(
            id=composition_id,
            name=size_name,
            width=width,
            height=height,
            selected=index == 1,
        )

        for number in range(1, frames_per_composition + 1):
            frame_id = make_frame_id(composition_id, number)
            layers = create_sample_layers(frame_id)
            hidden = []
            if number % 2 == 0:
                layers[1].children[0].visible = False
                hidden.append(layers[1].children[0].id)

            composition.frames.append(
                Frame(
                    id=frame_id,
                    name=f"Frame {number}",
                    width=width,
                    height=height,
                    hidden_layers=hidden,
                    layers=layers,
                    delay=delay,
                    frame_index=number - 1,
                    composition_id=composition_id,
                )
            )

        project.compositions.append(composition)

    if project.compositions:
        first = project.compositions[0]
        project.active_composition_id = first.id
        project.active_frame_id = first.frames[0].id if first.frames else None

    return project
