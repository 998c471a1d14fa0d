"""
Adforge - playback sequencing and layer visibility for multi-frame ad animations.

Modules:
    adforge.layers      Composition / Frame / Layer models
    adforge.visibility  Visibility consistency engine and linked-layer sync
    adforge.identity    Frame identifiers and the legacy id resolver
    adforge.playback    Sequence snapshots and the tick-driven playback driver
    adforge.formats     Project serialization and file I/O
    adforge.editor      EditorState, the injectable state object for a UI
"""

from .config import Settings, settings
from .exceptions import (
    AdforgeError,
    CompositionNotFoundError,
    EmptySequenceError,
    FrameNotFoundError,
    LayerNotFoundError,
    NotFoundError,
    UnparseableIdentifierError,
)
from .identity import FrameRef, make_frame_id, parse_frame_ref, resolve_composition_id
from .layers import Composition, Frame, Layer, LayerKind, LinkedLayerInfo, SyncMode
from .formats import Project, create_sample_project
from .playback import PlaybackDriver, PlaybackMode, PlaybackState, TickResult
from .editor import EditorState, MemoryStateStore, StateStore

__version__ = "0.1.0"

__all__ = [
    'Settings',
    'settings',
    'AdforgeError',
    'CompositionNotFoundError',
    'EmptySequenceError',
    'FrameNotFoundError',
    'LayerNotFoundError',
    'NotFoundError',
    'UnparseableIdentifierError',
    'FrameRef',
    'make_frame_id',
    'parse_frame_ref',
    'resolve_composition_id',
    'Composition',
    'Frame',
    'Layer',
    'LayerKind',
    'LinkedLayerInfo',
    'SyncMode',
    'Project',
    'create_sample_project',
    'PlaybackDriver',
    'PlaybackMode',
    'PlaybackState',
    'TickResult',
    'EditorState',
    'MemoryStateStore',
    'StateStore',
]
