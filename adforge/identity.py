"""Frame identity: structured references and the legacy id parser.

New frames carry their owning composition and position as separate fields
(see ``FrameRef``). Older documents encode both in a single string, in one of
several historical formats:

    gif-frame-frame-<X>-<Y>   owner is "frame-<X>"
    gif-frame-<X>-<Y>         owner is <X> when <X> starts with "frame"
    gif-frame-<N>-<M>         owner is "frame-<N>" when <N> is a bare integer

Layer ids append further tokens to their frame id (``gif-frame-frame-1-2-logo``)
and resolve to the same owner.

``resolve_composition_id`` is the single parser every caller goes through.
It is a frozen compatibility shim: the rules and their precedence are fixed
and must not grow new cases.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from adforge.exceptions import UnparseableIdentifierError

logger = logging.getLogger(__name__)

PREFIX = "gif-frame-"


@dataclass(frozen=True)
class FrameRef:
    """Canonical frame identifier: owning composition plus 1-based frame number."""

    composition_id: str
    frame_number: int

    def to_id(self) -> str:
        return make_frame_id(self.composition_id, self.frame_number)


def make_frame_id(composition_id: str, frame_number: int) -> str:
    """Build the string id for a sequence frame.

    Composition ids of the form ``frame-<X>`` produce the double-``frame``
    format (``gif-frame-frame-<X>-<n>``), which parses back unambiguously.
    """
    return f"{PREFIX}{composition_id}-{frame_number}"


def _tokens(identifier: str) -> Optional[list[str]]:
    """Tokens after the prefix, or None if the id is not prefixed."""
    if not identifier.startswith(PREFIX):
        return None
    tokens = identifier[len(PREFIX):].split("-")
    if len(tokens) < 2 or not all(tokens):
        return None
    return tokens


def try_parse_frame_ref(identifier: str) -> FrameRef:
    """Parse a legacy frame id into a ``FrameRef``.

    Layer ids built as ``<frame id>-<suffix>`` resolve to the same owner as
    their frame; tokens past the owner are ignored.

    Args:
        identifier: Frame or layer identifier

    Returns:
        The parsed reference. ``frame_number`` is read from the trailing
        token and is 0 when that token is not an integer.

    Raises:
        UnparseableIdentifierError: If no known format matches
    """
    tokens = _tokens(identifier)
    if tokens is None:
        raise UnparseableIdentifierError(identifier)
    first, last = tokens[0], tokens[-1]
    number = int(last) if last.isdigit() else 0

    # 1. gif-frame-frame-<X>-<Y>[-...]
    if first == "frame" and len(tokens) >= 3:
        return FrameRef(f"frame-{tokens[1]}", number)

    # 2. gif-frame-<X>-<Y>[-...], X itself composition-shaped
    if first.startswith("frame"):
        return FrameRef(first, number)

    # 3. gif-frame-<N>-<M>[-...], N a bare integer
    if first.isdigit():
        return FrameRef(f"frame-{first}", number)

    raise UnparseableIdentifierError(identifier)


def parse_frame_ref(identifier: str) -> Optional[FrameRef]:
    """Parse a legacy frame id, returning None when no format matches."""
    try:
        return try_parse_frame_ref(identifier)
    except UnparseableIdentifierError as e:
        logger.debug(f"{e}")
        return None


def resolve_composition_id(identifier: str, default: str) -> str:
    """Extract the owning composition id from a frame or layer identifier.

    Never raises. Unparseable identifiers resolve to ``default``.

    Args:
        identifier: Frame or layer identifier in any supported format
        default: Composition id used when nothing can be extracted

    Returns:
        The owning composition id
    """
    ref = parse_frame_ref(identifier)
    if ref is None:
        logger.debug(f"Falling back to '{default}' for identifier '{identifier}'")
        return default
    return ref.composition_id
