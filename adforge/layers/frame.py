"""
Frame - One discrete snapshot of the layer tree.

Each frame carries two representations of which layers are hidden:
- the per-layer ``visible`` flag inside the tree
- the flat ``hiddenLayers`` exclusion list

The visibility engine (adforge.visibility) keeps them in agreement. This
model only stores data; it never reconciles on its own.
"""

from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field

from adforge.config import settings
from adforge.identity import FrameRef, parse_frame_ref

from .base import Layer, iter_layers


class Frame(BaseModel):
    """
    Frame model matching the sequence frame export.

    Serialization format:
    {
        "_version": 1,
        "id": "gif-frame-frame-1-1",
        "name": "Frame 1",
        "width": 300,
        "height": 250,
        "hiddenLayers": ["layer-3"],
        "layers": [...],
        "visibleLayerCount": 4,
        "delay": 2.5,
        "frameIndex": 0,
        "adSizeId": "frame-1"
    }
    """

    model_config = ConfigDict(
        populate_by_name=True,
        validate_assignment=False,
        extra='ignore',
    )

    VERSION: ClassVar[int] = 1

    version: int = Field(default=1, alias='_version')

    id: str
    name: str = Field(default='Frame')

    width: int = Field(default=0, ge=0)
    height: int = Field(default=0, ge=0)

    # Exclusion list, order-irrelevant
    hidden_layers: list[str] = Field(default_factory=list, alias='hiddenLayers')
    layers: list[Layer] = Field(default_factory=list)
    visible_layer_count: int = Field(default=0, ge=0, alias='visibleLayerCount')

    # Sequence playback
    delay: float = Field(default_factory=lambda: settings.DEFAULT_FRAME_DELAY)
    frame_index: int = Field(default=0, ge=0, alias='frameIndex')

    # Owning composition, established at creation time
    composition_id: Optional[str] = Field(default=None, alias='adSizeId')

    def model_post_init(self, __context: Any) -> None:
        """Derive visibleLayerCount when the input did not supply one."""
        if 'visible_layer_count' not in self.model_fields_set:
            self.visible_layer_count = sum(1 for layer in iter_layers(self.layers) if layer.visible)

    def to_api_dict(self) -> dict[str, Any]:
        """Convert to a camelCase dictionary."""
        self.version = self.VERSION
        return self.model_dump(by_alias=True, mode='json')

    def ref(self) -> FrameRef:
        """Structured identifier (owning composition + 1-based frame number)."""
        return FrameRef(
            composition_id=self.composition_id or settings.DEFAULT_COMPOSITION_ID,
            frame_number=self.frame_index + 1,
        )

    def iter_layers(self):
        """Iterate over every layer in the tree, depth-first."""
        return iter_layers(self.layers)

    @classmethod
    def migrate(cls, data: dict[str, Any]) -> dict[str, Any]:
        """
        Migrate serialized data from older versions.

        Pre-versioned frames only encoded their owner and position in the
        id string (``gif-frame-<composition>-<n>``). v1 stores both as
        separate fields, parsed once here.

        Args:
            data: Serialized frame data

        Returns:
            Migrated data at current version
        """
        version = data.get('_version', 0)

        # v0 -> v1: Split legacy composite ids into adSizeId/frameIndex
        if version < 1:
            ref = parse_frame_ref(data.get('id', ''))
            if ref is not None:
                if not data.get('adSizeId'):
                    data['adSizeId'] = ref.composition_id
                if 'frameIndex' not in data:
                    data['frameIndex'] = max(ref.frame_number - 1, 0)
            data['hiddenLayers'] = data.get('hiddenLayers') or []
            data['_version'] = 1

        return data

    @classmethod
    def from_api_dict(cls, data: dict[str, Any]) -> 'Frame':
        """
        Create Frame from a serialized dictionary.

        Args:
            data: Serialized frame data (camelCase or snake_case keys)

        Returns:
            Frame instance
        """
        data = cls.migrate(dict(data))
        return cls.model_validate(data)
