"""Visibility consistency engine.

A frame records hidden layers twice: as ``Layer.visible`` flags in its tree
and as ids in ``Frame.hidden_layers``. Every function here treats its input
as immutable and returns a deep copy in which both representations agree.

Identifiers that no longer resolve (e.g. a deleted layer referenced by a
lingering UI event) never raise: the unmodified input comes back together
with the error, so callers can no-op.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Union

from adforge.exceptions import AdforgeError, LayerNotFoundError
from adforge.layers import Frame, Layer, iter_layers

logger = logging.getLogger(__name__)

# (layer, requested visibility, is_background_layer) -> visibility to apply
VisibilityPolicy = Callable[[Layer, bool, bool], bool]

BACKGROUND_PATTERNS = ('background', 'bg', 'backdrop', 'bkgd', 'bkg')


@dataclass
class VisibilityResult:
    """Outcome of a visibility mutation.

    ``frame`` is the updated copy, or the untouched input when ``error``
    is set.
    """

    frame: Frame
    error: Optional[AdforgeError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def passthrough_policy(layer: Layer, requested: bool, is_background_layer: bool) -> bool:
    """Default policy: apply the requested visibility as-is."""
    return requested


def is_likely_background_layer(layer: Union[Layer, str]) -> bool:
    """Guess from its name whether a layer is a background layer."""
    name = layer if isinstance(layer, str) else layer.name
    name = (name or '').lower()
    return any(pattern in name for pattern in BACKGROUND_PATTERNS)


def find_layer(layers: Iterable[Layer], layer_id: str) -> Optional[Layer]:
    """Depth-first search for a layer by id. First match wins."""
    for layer in iter_layers(list(layers)):
        if layer.id == layer_id:
            return layer
    return None


def count_visible_layers(layers: Iterable[Layer]) -> int:
    """Count layers whose ``visible`` flag is set, recursively.

    Only the tree is consulted, not the exclusion list.
    """
    return sum(1 for layer in iter_layers(list(layers)) if layer.visible)


def _require_layer(frame: Frame, layer_id: str) -> Layer:
    layer = find_layer(frame.layers, layer_id)
    if layer is None:
        raise LayerNotFoundError(layer_id, frame.id)
    return layer


def _apply(frame: Frame, layer_id: str, visible: bool) -> Frame:
    """Set both representations on a private copy and recount."""
    updated = frame.model_copy(deep=True)
    layer = _require_layer(updated, layer_id)
    layer.visible = visible

    if visible:
        updated.hidden_layers = [i for i in updated.hidden_layers if i != layer_id]
    elif layer_id not in updated.hidden_layers:
        updated.hidden_layers.append(layer_id)

    updated.visible_layer_count = count_visible_layers(updated.layers)
    return updated


def set_layer_visible(frame: Frame, layer_id: str, visible: bool) -> VisibilityResult:
    """
    Show or hide a layer in a frame.

    Args:
        frame: Source frame (not modified)
        layer_id: Layer to update
        visible: Target visibility

    Returns:
        VisibilityResult with the updated copy, or the input frame and a
        LayerNotFoundError if the layer does not exist
    """
    try:
        updated = _apply(frame, layer_id, visible)
    except LayerNotFoundError as e:
        logger.warning(f"set_layer_visible: {e}, leaving frame unchanged")
        return VisibilityResult(frame=frame, error=e)

    logger.debug(f"Layer {layer_id} in frame {frame.id} -> {'visible' if visible else 'hidden'}")
    return VisibilityResult(frame=updated)


def toggle_layer_visible(
    frame: Frame,
    layer_id: str,
    is_background_layer: bool = False,
    policy: Optional[VisibilityPolicy] = None,
) -> VisibilityResult:
    """
    Invert a layer's current visibility.

    ``policy`` is the hook for composition-specific rules, for example
    background layers whose hidden semantics differ from ordinary layers.
    It receives the layer, the requested (inverted) visibility and the
    background flag, and returns the visibility to apply.

    Args:
        frame: Source frame (not modified)
        layer_id: Layer to toggle
        is_background_layer: Passed through to ``policy``
        policy: Visibility policy, defaults to ``passthrough_policy``

    Returns:
        VisibilityResult as for ``set_layer_visible``
    """
    layer = find_layer(frame.layers, layer_id)
    if layer is None:
        error = LayerNotFoundError(layer_id, frame.id)
        logger.warning(f"toggle_layer_visible: {error}, leaving frame unchanged")
        return VisibilityResult(frame=frame, error=error)

    requested = not is_layer_visible(frame, layer_id)
    target = (policy or passthrough_policy)(layer, requested, is_background_layer)
    return set_layer_visible(frame, layer_id, target)


def is_layer_visible(frame: Frame, layer_id: str) -> bool:
    """
    Check whether a layer is visible in a frame.

    The exclusion list is consulted first; otherwise the tree flag decides.
    Unknown layers are reported as not visible.
    """
    if layer_id in frame.hidden_layers:
        return False
    layer = find_layer(frame.layers, layer_id)
    return layer.visible if layer is not None else False


def normalize_frame(frame: Frame) -> Frame:
    """
    Repair drift between the tree flags and the exclusion list.

    Pass 1: every id in the exclusion list forces its layer hidden.
    Pass 2: every hidden layer missing from the exclusion list is added.

    The exclusion list therefore wins for ids it names, and the tree wins
    only for ids the tree alone marks hidden. Ids in the exclusion list
    with no matching layer are kept.

    Args:
        frame: Source frame (not modified)

    Returns:
        A consistent copy of the frame
    """
    updated = frame.model_copy(deep=True)
    hidden = set(updated.hidden_layers)

    for layer in iter_layers(updated.layers):
        if layer.id in hidden and layer.visible:
            logger.warning(
                f"Frame {frame.id}: layer {layer.id} is in hiddenLayers but flagged visible, hiding it"
            )
            layer.visible = False

    for layer in iter_layers(updated.layers):
        if not layer.visible and layer.id not in hidden:
            logger.warning(
                f"Frame {frame.id}: layer {layer.id} is flagged hidden but missing from hiddenLayers, adding it"
            )
            updated.hidden_layers.append(layer.id)
            hidden.add(layer.id)

    count = count_visible_layers(updated.layers)
    if count != updated.visible_layer_count:
        logger.debug(
            f"Frame {frame.id}: visibleLayerCount {updated.visible_layer_count} -> {count}"
        )
    updated.visible_layer_count = count
    return updated


def normalize_all(frames: Iterable[Frame]) -> list[Frame]:
    """Normalize every frame. See ``normalize_frame``."""
    return [normalize_frame(frame) for frame in frames]


def check_consistency(frame: Frame) -> list[str]:
    """
    List disagreements between the two representations.

    Returns:
        Human-readable problems, empty if the frame is consistent
    """
    problems = []
    hidden = set(frame.hidden_layers)
    for layer in iter_layers(frame.layers):
        if layer.visible == (layer.id in hidden):
            state = 'visible' if layer.visible else 'hidden'
            listed = 'listed' if layer.id in hidden else 'not listed'
            problems.append(f"layer {layer.id} is {state} but {listed} in hiddenLayers")
    if len(hidden) != len(frame.hidden_layers):
        problems.append("hiddenLayers contains duplicates")
    count = count_visible_layers(frame.layers)
    if count != frame.visible_layer_count:
        problems.append(f"visibleLayerCount is {frame.visible_layer_count}, expected {count}")
    return problems
