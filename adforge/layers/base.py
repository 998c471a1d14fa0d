"""
Layer - Recursive model for a node in a frame's layer tree.

Provides shared properties for all layers:
- Identity: id, name, type
- Appearance: visible, locked
- Hierarchy: children (None for leaves)
- Linking: linkedLayer (cross-frame sync metadata)
- Animation: animations (opaque per-layer animation records)

Uses Pydantic v2 with camelCase aliases for JS serialization compatibility.
"""

from enum import Enum
from typing import Any, ClassVar, Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field


class LayerKind(str, Enum):
    """Layer kind identifiers as delivered by the host document."""
    GROUP = "group"
    FRAME = "frame"
    COMPONENT = "component"
    INSTANCE = "instance"
    TEXT = "text"
    SHAPE = "shape"
    RECTANGLE = "rectangle"
    ELLIPSE = "ellipse"
    IMAGE = "image"
    VECTOR = "vector"
    OTHER = "other"


# Kinds that may carry children
CONTAINER_KINDS = frozenset({
    LayerKind.GROUP.value,
    LayerKind.FRAME.value,
    LayerKind.COMPONENT.value,
    LayerKind.INSTANCE.value,
})


class SyncMode(str, Enum):
    """Which edits propagate from a linked layer to its counterparts."""
    FULL = "full"
    VISIBILITY = "visibility"
    ANIMATION = "animation"


class LinkedLayerInfo(BaseModel):
    """
    Link metadata tying layers in different frames together.

    Serialization format:
    {
        "groupId": "link-logo",
        "syncMode": "full",
        "isMain": true,
        "overrides": ["visible"]
    }
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra='ignore',
        use_enum_values=True,
    )

    group_id: str = Field(alias='groupId')
    sync_mode: SyncMode = Field(default=SyncMode.FULL, alias='syncMode')
    is_main: bool = Field(default=False, alias='isMain')
    # Property names exempt from propagation ("visible", "animations")
    overrides: list[str] = Field(default_factory=list)

    def propagates_visibility(self) -> bool:
        return self.sync_mode in (SyncMode.FULL.value, SyncMode.VISIBILITY.value)

    def propagates_animation(self) -> bool:
        return self.sync_mode in (SyncMode.FULL.value, SyncMode.ANIMATION.value)

    def is_overridden(self, prop: str) -> bool:
        """Check if a property is exempt from propagation for this layer."""
        return prop in self.overrides


class Layer(BaseModel):
    """
    Node in a frame's layer tree.

    Serializes to JSON format matching the host document export:
    {
        "id": "layer-1",
        "name": "Headline",
        "type": "text",
        "visible": true,
        "locked": false,
        "children": null,
        "linkedLayer": null,
        "animations": []
    }
    """

    model_config = ConfigDict(
        # Allow both snake_case and camelCase input
        populate_by_name=True,
        validate_assignment=False,
        # Allow extra fields for forward compatibility
        extra='ignore',
        # Serialize enums by value (e.g., "group" not "LayerKind.GROUP")
        use_enum_values=True,
    )

    VERSION: ClassVar[int] = 1

    id: str
    name: str = Field(default='Layer')

    # Unknown host kinds are kept verbatim
    kind: str = Field(default=LayerKind.SHAPE.value, alias='type')

    visible: bool = Field(default=True)
    locked: bool = Field(default=False)

    # None marks a leaf, an empty list an empty container
    children: Optional[list['Layer']] = Field(default=None)

    linked_layer: Optional[LinkedLayerInfo] = Field(default=None, alias='linkedLayer')

    # Carried through untouched, only copied by animation link sync
    animations: list[dict[str, Any]] = Field(default_factory=list)

    def to_api_dict(self) -> dict[str, Any]:
        """Convert to a camelCase dictionary."""
        return self.model_dump(by_alias=True, mode='json')

    @classmethod
    def from_api_dict(cls, data: dict[str, Any]) -> 'Layer':
        """Create layer from a camelCase or snake_case dictionary."""
        return cls.model_validate(data)

    def is_group(self) -> bool:
        """Check if this is a container layer."""
        return self.kind in CONTAINER_KINDS or self.children is not None

    def has_children(self) -> bool:
        return bool(self.children)

    def is_linked(self) -> bool:
        return self.linked_layer is not None

    def iter_tree(self) -> Iterator['Layer']:
        """Yield this layer and all descendants, depth-first pre-order."""
        yield self
        for child in self.children or []:
            yield from child.iter_tree()


def iter_layers(layers: list[Layer]) -> Iterator[Layer]:
    """Yield every layer of a tree given its root sequence."""
    for layer in layers:
        yield from layer.iter_tree()
