"""
Pytest fixtures for adforge tests
"""

import pytest

from adforge.formats import create_sample_project
from adforge.layers import Frame, Layer, LayerKind
from adforge.playback import ManualScheduler, PlaybackDriver


@pytest.fixture
def frame() -> Frame:
    """
    A consistent frame with a nested tree:

        bg, group(title, button(shape, label)), logo (hidden)
    """
    return Frame(
        id="gif-frame-frame-1-1",
        name="Frame 1",
        composition_id="frame-1",
        hidden_layers=["logo"],
        layers=[
            Layer(id="bg", name="Background", kind=LayerKind.RECTANGLE.value),
            Layer(
                id="group",
                name="Content",
                kind=LayerKind.GROUP.value,
                children=[
                    Layer(id="title", name="Title", kind=LayerKind.TEXT.value),
                    Layer(
                        id="button",
                        name="Button",
                        kind=LayerKind.GROUP.value,
                        children=[
                            Layer(id="shape", name="Shape"),
                            Layer(id="label", name="Label", kind=LayerKind.TEXT.value),
                        ],
                    ),
                ],
            ),
            Layer(id="logo", name="Logo", kind=LayerKind.IMAGE.value, visible=False),
        ],
    )


@pytest.fixture
def timed_frames() -> list[Frame]:
    """Three frames with delays 1, 2 and 3 seconds."""
    return [
        Frame(id="f0", delay=1.0, frame_index=0),
        Frame(id="f1", delay=2.0, frame_index=1),
        Frame(id="f2", delay=3.0, frame_index=2),
    ]


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def driver(scheduler) -> PlaybackDriver:
    """Stopped driver with D = 2s, clocked by the manual scheduler."""
    d = PlaybackDriver(scheduler, clock=lambda: scheduler.now)
    d.set_animation_duration(2.0)
    return d


@pytest.fixture
def sample_project():
    """Two compositions of three frames each, every even frame hides its headline."""
    return create_sample_project(name="Test Campaign", delay=1.0)
