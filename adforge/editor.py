"""Editor state: the object a UI talks to.

``EditorState`` owns the project and the playback driver and is passed
explicitly to whatever needs it. Visibility edits go through the
consistency engine and replace frames in the project; playback reads the
active composition's frames from the project.

Persistence is an external collaborator reached through ``StateStore``:
an async key/value store of opaque string blobs. Saving and loading are
explicit calls that notify ``on_saved`` / ``on_loaded`` listeners.

Example:
    editor = EditorState(create_sample_project())
    frame = editor.set_visibility("gif-frame-frame-1-1", "gif-frame-frame-1-1-logo", False)

    store = MemoryStateStore()
    await editor.save(store)
"""

import logging
import threading
from typing import Callable, Optional, Protocol

from adforge.config import Settings, settings as default_settings
from adforge.exceptions import CompositionNotFoundError, FrameNotFoundError
from adforge.formats import Project
from adforge.identity import parse_frame_ref, resolve_composition_id
from adforge.layers import Frame
from adforge.playback import PlaybackDriver, PlaybackMode, PlaybackSession, TickResult
from adforge.visibility import (
    VisibilityPolicy,
    find_layer,
    is_likely_background_layer,
    normalize_all,
    propagate_visibility,
    set_layer_visible,
    toggle_layer_visible,
)

logger = logging.getLogger(__name__)


class StateStore(Protocol):
    """Async key/value persistence for serialized editor state."""

    async def get(self, key: str) -> Optional[str]:
        ...

    async def set(self, key: str, value: str) -> None:
        ...


class MemoryStateStore:
    """Thread-safe in-memory ``StateStore``."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}
        self._lock = threading.Lock()

    async def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._data)


class EditorState:
    """Project plus playback, with visibility edits kept consistent."""

    def __init__(
        self,
        project: Project | None = None,
        driver: PlaybackDriver | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings or default_settings
        self.project = project or Project()
        self.driver = driver or PlaybackDriver(settings=self._settings)
        self.driver.on_frame_change(self._on_driver_frame_change)

        self._saved_listeners: list[Callable[[str], None]] = []
        self._loaded_listeners: list[Callable[[str], None]] = []

        self._sync_driver()

    # -------------------------------------------------------------------------
    # Visibility
    # -------------------------------------------------------------------------

    def get_frame(self, frame_id: str) -> Optional[Frame]:
        located = self.project.find_frame(frame_id)
        return located[1] if located else None

    def set_visibility(
        self,
        frame_id: str,
        layer_id: str,
        visible: bool,
        propagate: bool = False,
    ) -> Optional[Frame]:
        """
        Show or hide a layer and store the updated frame.

        Args:
            frame_id: Frame holding the layer
            layer_id: Layer to update
            visible: Target visibility
            propagate: Also update linked layers in other frames

        Returns:
            The frame as stored after the call (unchanged if the layer is
            unknown), or None if the frame is unknown
        """
        located = self.project.find_frame(frame_id)
        if located is None:
            logger.warning(f"set_visibility: {FrameNotFoundError(frame_id)}")
            return None
        composition, frame = located

        if propagate:
            return self._set_visibility_linked(frame_id, layer_id, visible)

        result = set_layer_visible(frame, layer_id, visible)
        if result.ok:
            composition.replace_frame(result.frame)
            self._sync_driver()
        return result.frame

    def _set_visibility_linked(self, frame_id: str, layer_id: str, visible: bool) -> Optional[Frame]:
        frames = self.project.all_frames()
        updated = propagate_visibility(frames, frame_id, layer_id, visible)
        for before, after in zip(frames, updated):
            if after is not before:
                owner, _ = self.project.find_frame(after.id)
                owner.replace_frame(after)
        self._sync_driver()
        return self.get_frame(frame_id)

    def toggle_visibility(
        self,
        frame_id: str,
        layer_id: str,
        policy: Optional[VisibilityPolicy] = None,
    ) -> Optional[Frame]:
        """
        Toggle a layer. The layer's name decides the background flag
        passed to ``policy``.

        Returns:
            As for ``set_visibility``
        """
        located = self.project.find_frame(frame_id)
        if located is None:
            logger.warning(f"toggle_visibility: {FrameNotFoundError(frame_id)}")
            return None
        composition, frame = located

        layer = find_layer(frame.layers, layer_id)
        is_background = layer is not None and is_likely_background_layer(layer)
        result = toggle_layer_visible(frame, layer_id, is_background, policy)
        if result.ok:
            composition.replace_frame(result.frame)
            self._sync_driver()
        return result.frame

    def normalize(self, frames: Optional[list[Frame]] = None) -> list[Frame]:
        """
        Normalize frames.

        Args:
            frames: Frames to normalize and return without storing. If not
                given, every frame in the project is normalized in place.

        Returns:
            Normalized frames
        """
        if frames is not None:
            return normalize_all(frames)

        result = []
        for composition in self.project.compositions:
            composition.frames = normalize_all(composition.frames)
            result.extend(composition.frames)
        self._sync_driver()
        return result

    # -------------------------------------------------------------------------
    # Selection
    # -------------------------------------------------------------------------

    def select_composition(self, composition_id: str) -> bool:
        """Make a composition active. Stops playback."""
        composition = self.project.get_composition(composition_id)
        if composition is None:
            logger.warning(f"select_composition: {CompositionNotFoundError(composition_id)}")
            return False

        self.driver.stop()
        for c in self.project.compositions:
            c.selected = c.id == composition_id
        self.project.active_composition_id = composition_id
        frames = composition.ordered_frames()
        self.project.active_frame_id = frames[0].id if frames else None
        self._sync_driver()
        return True

    def select_frame(self, frame_id: str) -> bool:
        """
        Make a frame (and its composition) active. Stops playback.

        Frame ids from older documents that no longer match a stored frame
        are resolved to their owning composition and frame number.

        Returns:
            False if the frame cannot be found
        """
        located = self.project.find_frame(frame_id)
        if located is None:
            located = self._resolve_legacy_frame(frame_id)
        if located is None:
            logger.warning(f"select_frame: {FrameNotFoundError(frame_id)}")
            return False

        composition, frame = located
        if composition.id != self.project.active_composition_id:
            self.select_composition(composition.id)
        self.project.active_frame_id = frame.id
        self._sync_driver()
        self.driver.select_frame(frame.id)
        return True

    def _resolve_legacy_frame(self, frame_id: str):
        composition_id = resolve_composition_id(frame_id, self._settings.DEFAULT_COMPOSITION_ID)
        composition = self.project.get_composition(composition_id)
        ref = parse_frame_ref(frame_id)
        if composition is None or ref is None:
            return None
        frames = composition.ordered_frames()
        if 1 <= ref.frame_number <= len(frames):
            return composition, frames[ref.frame_number - 1]
        return None

    # -------------------------------------------------------------------------
    # Playback
    # -------------------------------------------------------------------------

    def set_mode(self, mode: PlaybackMode | str) -> None:
        mode = PlaybackMode(mode)
        self.project.timeline_mode = mode
        self.driver.set_mode(mode)

    def set_animation_duration(self, duration: float) -> None:
        self.project.animation_duration = max(0.0, duration)
        self.driver.set_animation_duration(self.project.animation_duration)

    def play(self, now: float | None = None) -> Optional[PlaybackSession]:
        return self.driver.play(now)

    def stop(self) -> None:
        self.driver.stop()

    def advance_tick(self, now: float) -> TickResult:
        return self.driver.advance_tick(now)

    def _on_driver_frame_change(self, frame_id: str) -> None:
        self.project.active_frame_id = frame_id

    def _sync_driver(self, project: Project | None = None) -> None:
        """Push the active composition's frames and timing into the driver."""
        project = project or self.project
        composition = project.active_composition()
        frames = composition.ordered_frames() if composition else []
        self.driver.set_mode(project.timeline_mode)
        self.driver.set_animation_duration(project.animation_duration)
        self.driver.set_frames(frames, project.active_frame_id)

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def on_saved(self, callback: Callable[[str], None]) -> None:
        """Register ``callback(key)`` run after a successful save."""
        self._saved_listeners.append(callback)

    def on_loaded(self, callback: Callable[[str], None]) -> None:
        """Register ``callback(key)`` run after a successful load."""
        self._loaded_listeners.append(callback)

    async def save(self, store: StateStore, key: str | None = None) -> None:
        """Serialize the project into ``store``."""
        key = key or self._settings.STATE_KEY
        await store.set(key, self.project.to_json())
        logger.info(f"Saved project {self.project.id} to '{key}'")
        self._notify(self._saved_listeners, key)

    async def load(self, store: StateStore, key: str | None = None) -> bool:
        """
        Replace the project with the one stored under ``key``.

        Returns:
            False (project unchanged) if nothing is stored or the blob is
            not a valid project
        """
        key = key or self._settings.STATE_KEY
        blob = await store.get(key)
        if blob is None:
            logger.info(f"No saved state under '{key}'")
            return False

        try:
            project = Project.from_json(blob)
        except (TypeError, ValueError) as e:
            logger.error(f"Ignoring invalid saved state under '{key}': {e}")
            return False

        self.driver.stop()
        self._sync_driver(project)
        self.project = project
        logger.info(f"Loaded project {project.id} from '{key}'")
        self._notify(self._loaded_listeners, key)
        return True

    @staticmethod
    def _notify(listeners: list[Callable[[str], None]], key: str) -> None:
        for callback in list(listeners):
            try:
                callback(key)
            except Exception:
                logger.exception(f"Persistence listener {callback!r} failed")
