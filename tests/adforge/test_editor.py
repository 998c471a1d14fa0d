"""Tests for EditorState and the state store."""

import json
import logging

import pytest

from adforge.editor import EditorState, MemoryStateStore
from adforge.playback import PlaybackDriver, PlaybackMode
from adforge.visibility import check_consistency, find_layer, link_layers_by_name


@pytest.fixture
def editor(sample_project, scheduler) -> EditorState:
    driver = PlaybackDriver(scheduler, clock=lambda: scheduler.now)
    return EditorState(sample_project, driver)


def headline(frame_id: str) -> str:
    return f"{frame_id}-headline"


class TestVisibility:
    """Visibility edits through the editor."""

    def test_set_visibility_stores_frame(self, editor):
        frame_id = "gif-frame-frame-1-1"
        updated = editor.set_visibility(frame_id, headline(frame_id), False)

        assert editor.get_frame(frame_id) is updated
        assert headline(frame_id) in updated.hidden_layers
        assert check_consistency(updated) == []

    def test_unknown_frame(self, editor):
        assert editor.set_visibility("gif-frame-frame-9-9", "x", False) is None

    def test_unknown_layer(self, editor):
        frame_id = "gif-frame-frame-1-1"
        before = editor.get_frame(frame_id)
        assert editor.set_visibility(frame_id, "nonexistent", True) is before

    def test_propagate_to_linked(self, editor):
        frames = link_layers_by_name(editor.project.all_frames())
        for frame in frames:
            owner, _ = editor.project.find_frame(frame.id)
            owner.replace_frame(frame)

        editor.set_visibility("gif-frame-frame-1-1", "gif-frame-frame-1-1-logo", False, propagate=True)

        for frame in editor.project.all_frames():
            logo = find_layer(frame.layers, f"{frame.id}-logo")
            assert logo.visible is False
            assert check_consistency(frame) == []

    def test_toggle_visibility(self, editor):
        frame_id = "gif-frame-frame-1-2"
        updated = editor.toggle_visibility(frame_id, headline(frame_id))
        assert updated.hidden_layers == []
        assert updated.visible_layer_count == 7

    def test_toggle_passes_background_flag(self, editor):
        seen = []

        def policy(layer, requested, is_background_layer):
            seen.append(is_background_layer)
            return requested

        editor.toggle_visibility("gif-frame-frame-1-1", "gif-frame-frame-1-1-background", policy)
        editor.toggle_visibility("gif-frame-frame-1-1", "gif-frame-frame-1-1-logo", policy)
        assert seen == [True, False]

    def test_normalize_project(self, editor):
        frame = editor.get_frame("gif-frame-frame-2-1")
        frame.hidden_layers.append(headline(frame.id))

        editor.normalize()

        repaired = editor.get_frame("gif-frame-frame-2-1")
        assert find_layer(repaired.layers, headline(frame.id)).visible is False
        assert repaired.visible_layer_count == 6


class TestSelection:
    """Composition and frame selection."""

    def test_select_frame(self, editor):
        assert editor.select_frame("gif-frame-frame-1-3") is True
        assert editor.project.active_frame_id == "gif-frame-frame-1-3"
        assert editor.driver.active_frame_id == "gif-frame-frame-1-3"

    def test_select_frame_other_composition(self, editor):
        assert editor.select_frame("gif-frame-frame-2-2") is True
        assert editor.project.active_composition_id == "frame-2"
        assert editor.driver.snapshot.frame_ids[0] == "gif-frame-frame-2-1"
        assert editor.driver.active_frame_id == "gif-frame-frame-2-2"

    def test_select_legacy_id(self, editor):
        """An integer-style legacy id finds the frame by owner and number."""
        assert editor.select_frame("gif-frame-2-3") is True
        assert editor.project.active_frame_id == "gif-frame-frame-2-3"

    def test_select_unknown(self, editor):
        assert editor.select_frame("gif-frame-frame-1-99") is False
        assert editor.select_frame("garbage") is False
        assert editor.project.active_frame_id == "gif-frame-frame-1-1"

    def test_select_composition(self, editor):
        assert editor.select_composition("frame-2") is True
        assert editor.project.active_frame_id == "gif-frame-frame-2-1"
        assert [c.selected for c in editor.project.compositions] == [False, True]
        assert editor.select_composition("nope") is False


class TestPlayback:
    """Playback through the editor."""

    def test_sequence_updates_active_frame(self, editor, scheduler):
        editor.set_mode(PlaybackMode.SEQUENCE)
        assert editor.project.timeline_mode == "sequence"

        editor.play(now=0.0)
        # delay 1s + D 2s per frame
        scheduler.fire(3.5)

        assert editor.project.active_frame_id == "gif-frame-frame-1-2"

    def test_edit_keeps_playback_running(self, editor, scheduler):
        editor.set_mode("sequence")
        editor.play(now=0.0)
        scheduler.fire(3.5)

        editor.set_visibility("gif-frame-frame-1-3", "gif-frame-frame-1-3-logo", False)
        scheduler.fire(6.5)

        assert editor.driver.is_playing
        assert editor.project.active_frame_id == "gif-frame-frame-1-3"

    def test_animation_duration(self, editor):
        editor.set_animation_duration(1.0)
        assert editor.project.animation_duration == 1.0
        assert editor.driver.snapshot.total == 6.0


class TestPersistence:
    """Async save/load through a StateStore."""

    @pytest.mark.asyncio
    async def test_save_and_load(self, editor):
        store = MemoryStateStore()
        saved = []
        editor.on_saved(saved.append)

        await editor.save(store)
        assert saved == ["adforge-state"]
        assert store.keys() == ["adforge-state"]

        other = EditorState()
        loaded = []
        other.on_loaded(loaded.append)

        assert await other.load(store) is True
        assert loaded == ["adforge-state"]
        assert other.project.to_api_dict() == editor.project.to_api_dict()
        assert other.driver.active_frame_id == "gif-frame-frame-1-1"

    @pytest.mark.asyncio
    async def test_custom_key(self, editor):
        store = MemoryStateStore()
        await editor.save(store, key="draft")
        assert await store.get("draft") is not None
        assert await store.get("adforge-state") is None

    @pytest.mark.asyncio
    async def test_load_missing(self):
        editor = EditorState()
        assert await editor.load(MemoryStateStore()) is False

    @pytest.mark.asyncio
    async def test_load_invalid(self, editor):
        store = MemoryStateStore()
        await store.set("adforge-state", "{not json")
        name = editor.project.name

        assert await editor.load(store) is False
        assert editor.project.name == name

    @pytest.mark.asyncio
    async def test_load_stops_playback(self, editor):
        store = MemoryStateStore()
        await editor.save(store)
        editor.play(now=0.0)

        await editor.load(store)
        assert not editor.driver.is_playing

    @pytest.mark.asyncio
    async def test_load_unknown_mode(self, editor):
        """A blob with an unknown timeline mode is rejected and state kept."""
        store = MemoryStateStore()
        other = editor.project.model_copy(deep=True)
        other.name = "Replacement"
        data = other.to_api_dict()
        data["timelineMode"] = "bogus"
        await store.set("adforge-state", json.dumps(data))
        frame_ids = editor.driver.snapshot.frame_ids

        assert await editor.load(store) is False
        assert editor.project.name == "Test Campaign"
        assert editor.driver.snapshot.frame_ids == frame_ids

    @pytest.mark.asyncio
    @pytest.mark.parametrize("blob", ["[]", "42", '"text"'])
    async def test_load_non_object(self, editor, blob):
        store = MemoryStateStore()
        await store.set("adforge-state", blob)

        assert await editor.load(store) is False
        assert len(editor.project.compositions) == 2

    @pytest.mark.asyncio
    async def test_failing_listeners_logged(self, editor, caplog):
        def broken(key):
            raise RuntimeError("listener failed")

        store = MemoryStateStore()
        editor.on_saved(broken)
        editor.on_loaded(broken)

        with caplog.at_level(logging.ERROR, logger="adforge.editor"):
            await editor.save(store)
            assert await editor.load(store) is True

        assert store.keys() == ["adforge-state"]
        assert len([r for r in caplog.records if "listener" in r.getMessage()]) == 2
