"""
Adforge Layer Models

Pydantic models for the in-memory document: compositions (ad sizes) own
ordered frames, frames own a recursive layer tree plus an exclusion list.

Hierarchy:
    Composition
    └── Frame (hiddenLayers, delay, frameIndex)
        └── Layer (recursive via children)
            └── LinkedLayerInfo (optional)

For document file I/O, use adforge.formats.Project.
"""

from .base import CONTAINER_KINDS, Layer, LayerKind, LinkedLayerInfo, SyncMode, iter_layers
from .frame import Frame
from .composition import Composition


__all__ = [
    'CONTAINER_KINDS',
    'Layer',
    'LayerKind',
    'LinkedLayerInfo',
    'SyncMode',
    'Frame',
    'Composition',
    'iter_layers',
]
