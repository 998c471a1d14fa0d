"""
Composition - An ad size: a canvas holding an ordered set of frames.

All frames in a composition share the composition's dimensions.
"""

import uuid
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from .frame import Frame


class Composition(BaseModel):
    """
    A single ad size within a project.

    Serialization format:
    {
        "id": "frame-1",
        "name": "Medium Rectangle",
        "width": 300,
        "height": 250,
        "frames": [...],
        "selected": true
    }
    """

    model_config = ConfigDict(
        populate_by_name=True,
        validate_assignment=False,
        extra='ignore',
    )

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = Field(default='Ad Size')
    width: int = Field(default=300, ge=0)
    height: int = Field(default=250, ge=0)
    frames: list[Frame] = Field(default_factory=list)
    selected: bool = Field(default=False)

    def to_api_dict(self) -> dict[str, Any]:
        """Convert to a camelCase dictionary."""
        return self.model_dump(by_alias=True, mode='json')

    @classmethod
    def from_api_dict(cls, data: dict[str, Any]) -> 'Composition':
        """Create Composition from a serialized dictionary, migrating its frames."""
        data = dict(data)
        data['frames'] = [Frame.migrate(dict(f)) for f in data.get('frames', [])]
        return cls.model_validate(data)

    def get_frame(self, frame_id: str) -> Optional[Frame]:
        """
        Get a frame by ID.

        Args:
            frame_id: Frame ID to find

        Returns:
            Frame or None if not found
        """
        for frame in self.frames:
            if frame.id == frame_id:
                return frame
        return None

    def ordered_frames(self) -> list[Frame]:
        """Frames in playback order (stable on equal frameIndex)."""
        return sorted(self.frames, key=lambda f: f.frame_index)

    def replace_frame(self, frame: Frame) -> bool:
        """
        Replace the frame with the same ID.

        Returns:
            True if a frame was replaced
        """
        for i, existing in enumerate(self.frames):
            if existing.id == frame.id:
                self.frames[i] = frame
                return True
        return False
