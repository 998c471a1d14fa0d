"""Layer visibility: consistency engine and linked-layer propagation."""

from .engine import (
    BACKGROUND_PATTERNS,
    VisibilityPolicy,
    VisibilityResult,
    check_consistency,
    count_visible_layers,
    find_layer,
    is_layer_visible,
    is_likely_background_layer,
    normalize_all,
    normalize_frame,
    passthrough_policy,
    set_layer_visible,
    toggle_layer_visible,
)
from .linking import (
    link_group_id,
    link_layers_by_name,
    linked_groups,
    propagate_animations,
    propagate_visibility,
)

__all__ = [
    'BACKGROUND_PATTERNS',
    'VisibilityPolicy',
    'VisibilityResult',
    'check_consistency',
    'count_visible_layers',
    'find_layer',
    'is_layer_visible',
    'is_likely_background_layer',
    'normalize_all',
    'normalize_frame',
    'passthrough_policy',
    'set_layer_visible',
    'toggle_layer_visible',
    'link_group_id',
    'link_layers_by_name',
    'linked_groups',
    'propagate_animations',
    'propagate_visibility',
]
