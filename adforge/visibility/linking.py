"""Linked-layer propagation across frames.

Layers in different frames (typically the same frame number in different
ad sizes) can share a link group via ``Layer.linked_layer``. Edits on one
member are copied to the others according to each member's sync mode,
skipping members that override the edited property.
"""

import logging
import re
from collections import defaultdict
from typing import Iterable

from adforge.exceptions import FrameNotFoundError, LayerNotFoundError
from adforge.layers import Frame, LinkedLayerInfo

from .engine import _apply, find_layer

logger = logging.getLogger(__name__)

VISIBLE = 'visible'
ANIMATIONS = 'animations'


def linked_groups(frames: Iterable[Frame]) -> dict[str, list[tuple[str, str]]]:
    """
    Collect link groups.

    Returns:
        Mapping of group id to (frame id, layer id) members, in frame order
    """
    groups: dict[str, list[tuple[str, str]]] = defaultdict(list)
    for frame in frames:
        for layer in frame.iter_layers():
            if layer.linked_layer is not None:
                groups[layer.linked_layer.group_id].append((frame.id, layer.id))
    return dict(groups)


def _index_of(frames: list[Frame], frame_id: str) -> int:
    for i, frame in enumerate(frames):
        if frame.id == frame_id:
            return i
    raise FrameNotFoundError(frame_id)


def propagate_visibility(
    frames: list[Frame],
    source_frame_id: str,
    layer_id: str,
    visible: bool,
) -> list[Frame]:
    """
    Set a layer's visibility and copy it to its linked counterparts.

    Nothing propagates unless the source layer's sync mode carries
    visibility. Counterparts are updated when their own sync mode propagates
    visibility and they do not override ``visible``. Both representations are kept
    consistent in every touched frame.

    Args:
        frames: All frames that may hold linked layers (not modified)
        source_frame_id: Frame holding the edited layer
        layer_id: Edited layer
        visible: Target visibility

    Returns:
        New list of frames; the input list (same frame objects) if the
        source frame or layer cannot be found
    """
    try:
        source_index = _index_of(frames, source_frame_id)
        source_layer = find_layer(frames[source_index].layers, layer_id)
        if source_layer is None:
            raise LayerNotFoundError(layer_id, source_frame_id)
    except (FrameNotFoundError, LayerNotFoundError) as e:
        logger.warning(f"propagate_visibility: {e}, leaving frames unchanged")
        return list(frames)

    updated = [frame.model_copy(deep=True) for frame in frames]
    updated[source_index] = _apply(frames[source_index], layer_id, visible)

    link = source_layer.linked_layer
    if link is None or not link.propagates_visibility():
        return updated

    synced = 0
    for i, frame in enumerate(frames):
        for layer in frame.iter_layers():
            if (i == source_index and layer.id == layer_id) or not _accepts(layer.linked_layer, link, VISIBLE):
                continue
            updated[i] = _apply(updated[i], layer.id, visible)
            synced += 1

    logger.info(f"Synced visibility of {layer_id} to {synced} linked layers in group {link.group_id}")
    return updated


def propagate_animations(
    frames: list[Frame],
    source_frame_id: str,
    layer_id: str,
) -> list[Frame]:
    """
    Copy a layer's animation records to its linked counterparts.

    Nothing propagates unless the source layer's sync mode carries
    animation. Counterparts are updated when their own sync mode propagates
    animation and they do not override ``animations``.

    Returns:
        New list of frames; the input list if the source cannot be found
    """
    try:
        source_index = _index_of(frames, source_frame_id)
        source_layer = find_layer(frames[source_index].layers, layer_id)
        if source_layer is None:
            raise LayerNotFoundError(layer_id, source_frame_id)
    except (FrameNotFoundError, LayerNotFoundError) as e:
        logger.warning(f"propagate_animations: {e}, leaving frames unchanged")
        return list(frames)

    link = source_layer.linked_layer
    if link is None or not link.propagates_animation():
        return list(frames)

    updated = []
    for i, frame in enumerate(frames):
        copy = frame.model_copy(deep=True)
        for layer in copy.iter_layers():
            if (i == source_index and layer.id == layer_id) or not _accepts(layer.linked_layer, link, ANIMATIONS):
                continue
            layer.animations = [dict(a) for a in source_layer.animations]
        updated.append(copy)
    return updated


def _accepts(target: LinkedLayerInfo | None, source: LinkedLayerInfo, prop: str) -> bool:
    if target is None or target.group_id != source.group_id:
        return False
    if target.is_overridden(prop):
        return False
    if prop == VISIBLE:
        return target.propagates_visibility()
    return target.propagates_animation()


def link_group_id(layer_name: str, prefix: str = 'link') -> str:
    """Deterministic link group id for a layer name."""
    slug = re.sub(r'[^a-z0-9]+', '-', layer_name.lower()).strip('-')
    return f"{prefix}-{slug or 'unnamed'}"


def link_layers_by_name(frames: list[Frame], prefix: str = 'link') -> list[Frame]:
    """
    Link same-named layers across frames.

    Names are compared case-insensitively. Only names occurring in more
    than one frame are linked; the first occurrence becomes the main layer.
    Existing link metadata is replaced.

    Returns:
        New list of frames
    """
    frames_by_name: dict[str, set[str]] = defaultdict(set)
    for frame in frames:
        for layer in frame.iter_layers():
            frames_by_name[layer.name.lower()].add(frame.id)

    seen: set[str] = set()
    updated = []
    for frame in frames:
        copy = frame.model_copy(deep=True)
        for layer in copy.iter_layers():
            key = layer.name.lower()
            if len(frames_by_name[key]) < 2:
                continue
            layer.linked_layer = LinkedLayerInfo(
                group_id=link_group_id(layer.name, prefix),
                is_main=key not in seen,
            )
            seen.add(key)
        updated.append(copy)

    logger.debug(f"Linked {len(seen)} layer names across {len(frames)} frames")
    return updated
