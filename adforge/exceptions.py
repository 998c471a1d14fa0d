"""Exception classes for adforge.

None of these are fatal. Core operations raise them internally, catch them at
the public boundary and hand back the last known-good state, attaching the
error to the returned result where the caller may want to inspect it.
"""


class AdforgeError(Exception):
    """Base exception for adforge errors."""

    pass


class NotFoundError(AdforgeError):
    """Raised when an identifier has no match."""

    def __init__(self, kind: str, identifier: str, container: str | None = None):
        self.kind = kind
        self.identifier = identifier
        self.container = container
        where = f" in {container}" if container else ""
        super().__init__(f"{kind} '{identifier}' not found{where}")


class FrameNotFoundError(NotFoundError):
    """Raised when a frame identifier cannot be resolved."""

    def __init__(self, frame_id: str, container: str | None = None):
        super().__init__("Frame", frame_id, container)


class LayerNotFoundError(NotFoundError):
    """Raised when a layer identifier cannot be resolved within a frame."""

    def __init__(self, layer_id: str, frame_id: str | None = None):
        super().__init__("Layer", layer_id, f"frame '{frame_id}'" if frame_id else None)


class CompositionNotFoundError(NotFoundError):
    """Raised when a composition (ad size) identifier cannot be resolved."""

    def __init__(self, composition_id: str):
        super().__init__("Composition", composition_id)


class UnparseableIdentifierError(AdforgeError):
    """Raised when an owning composition cannot be extracted from an identifier."""

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(f"Cannot extract composition from identifier '{identifier}'")


class EmptySequenceError(AdforgeError):
    """Raised when sequence playback is requested with zero frames."""

    pass
