"""Tests for frame identifiers and the legacy id resolver."""

import pytest

from adforge.exceptions import UnparseableIdentifierError
from adforge.identity import (
    FrameRef,
    make_frame_id,
    parse_frame_ref,
    resolve_composition_id,
    try_parse_frame_ref,
)


class TestResolveCompositionId:
    """Tests for resolve_composition_id."""

    @pytest.mark.parametrize("identifier, expected", [
        ("gif-frame-frame-2-3", "frame-2"),
        ("gif-frame-frame-1-1", "frame-1"),
        ("gif-frame-1-1", "frame-1"),
        ("gif-frame-4-2", "frame-4"),
        ("gif-frame-frameX-7", "frameX"),
        ("gif-frame-frame3-1", "frame3"),
    ])
    def test_known_formats(self, identifier, expected):
        assert resolve_composition_id(identifier, "fallback") == expected

    @pytest.mark.parametrize("identifier", [
        "",
        "layer-123",
        "gif-frame-",
        "gif-frame-abc-1",
        "gif-frame-abc-def-1",
        "gif-frame--1",
        "gif-frame-7",
    ])
    def test_unparseable_falls_back(self, identifier):
        assert resolve_composition_id(identifier, "fallback") == "fallback"

    @pytest.mark.parametrize("identifier, expected", [
        ("gif-frame-2-layer", "frame-2"),
        ("gif-frame-frame-1-1-logo", "frame-1"),
        ("gif-frame-frame-2-3-cta-label", "frame-2"),
        ("gif-frame-1-2-logo", "frame-1"),
        ("gif-frame-frameX-7-logo", "frameX"),
    ])
    def test_layer_ids_resolve_to_owner(self, identifier, expected):
        """Layer ids built from their frame id resolve to the frame's owner."""
        assert resolve_composition_id(identifier, "fallback") == expected

    def test_sample_layer_ids(self, sample_project):
        for composition in sample_project.compositions:
            for frame in composition.frames:
                for layer in frame.iter_layers():
                    assert resolve_composition_id(layer.id, "fallback") == composition.id


class TestParseFrameRef:
    """Tests for try_parse_frame_ref / parse_frame_ref."""

    def test_double_frame_format(self):
        assert try_parse_frame_ref("gif-frame-frame-2-3") == FrameRef("frame-2", 3)

    def test_integer_format(self):
        assert try_parse_frame_ref("gif-frame-3-2") == FrameRef("frame-3", 2)

    def test_non_integer_frame_number(self):
        assert try_parse_frame_ref("gif-frame-frame-2-x") == FrameRef("frame-2", 0)

    def test_layer_id_owner(self):
        """Tokens past the owner do not change it; the frame number comes from the last token."""
        assert try_parse_frame_ref("gif-frame-frame-1-2-logo") == FrameRef("frame-1", 0)
        assert try_parse_frame_ref("gif-frame-3-1-shape-2") == FrameRef("frame-3", 2)

    def test_raises_on_unknown(self):
        with pytest.raises(UnparseableIdentifierError) as exc_info:
            try_parse_frame_ref("banner-1")
        assert exc_info.value.identifier == "banner-1"

    def test_parse_returns_none(self):
        assert parse_frame_ref("banner-1") is None


class TestFrameRef:
    """Tests for FrameRef and make_frame_id."""

    def test_make_frame_id(self):
        assert make_frame_id("frame-1", 2) == "gif-frame-frame-1-2"

    def test_to_id_round_trip(self):
        ref = FrameRef("frame-3", 4)
        assert parse_frame_ref(ref.to_id()) == ref

    def test_frozen(self):
        ref = FrameRef("frame-1", 1)
        with pytest.raises(AttributeError):
            ref.frame_number = 2
