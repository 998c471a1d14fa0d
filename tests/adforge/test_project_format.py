"""Tests for project serialization and file I/O."""

import io
import json
from zipfile import ZipFile

import pytest

from adforge.formats import FORMAT_NAME, Project, create_empty_project
from adforge.layers import Composition, Frame, Layer, LinkedLayerInfo
from adforge.visibility import check_consistency


class TestSampleProject:
    """Tests for the sample project generator."""

    def test_structure(self, sample_project):
        assert sample_project.name == "Test Campaign"
        assert [c.id for c in sample_project.compositions] == ["frame-1", "frame-2"]
        assert len(sample_project.all_frames()) == 6
        assert sample_project.active_composition_id == "frame-1"
        assert sample_project.active_frame_id == "gif-frame-frame-1-1"

    def test_frames_consistent(self, sample_project):
        for frame in sample_project.all_frames():
            assert check_consistency(frame) == []

    def test_even_frames_hide_headline(self, sample_project):
        frames = sample_project.compositions[0].ordered_frames()
        assert [f.visible_layer_count for f in frames] == [7, 6, 7]
        assert frames[1].hidden_layers == ["gif-frame-frame-1-2-headline"]

    def test_frame_refs(self, sample_project):
        frame = sample_project.compositions[1].ordered_frames()[2]
        assert frame.ref().composition_id == "frame-2"
        assert frame.ref().frame_number == 3
        assert frame.ref().to_id() == frame.id

    def test_empty_project(self):
        project = create_empty_project("Blank")
        assert project.name == "Blank"
        assert project.compositions == []
        assert project.active_composition() is None


class TestRoundTrip:
    """Serialization round-trips."""

    def test_dict_round_trip(self, sample_project):
        data = sample_project.to_api_dict()
        restored = Project.from_api_dict(data)
        assert restored.to_api_dict() == data

    def test_json_round_trip(self, sample_project):
        restored = Project.from_json(sample_project.to_json())
        assert restored.to_api_dict() == sample_project.to_api_dict()

    def test_camel_case_keys(self, sample_project):
        data = sample_project.to_api_dict()
        frame = data["compositions"][0]["frames"][1]

        assert data["_version"] == Project.DOC_VERSION
        assert data["activeFrameId"] == "gif-frame-frame-1-1"
        assert "hiddenLayers" in frame
        assert "visibleLayerCount" in frame
        assert frame["adSizeId"] == "frame-1"
        assert frame["layers"][0]["type"] == "rectangle"

    def test_linked_layer_round_trip(self):
        layer = Layer(id="a", linked_layer=LinkedLayerInfo(group_id="link-a", is_main=True, overrides=["visible"]))
        data = layer.to_api_dict()

        assert data["linkedLayer"] == {
            "groupId": "link-a",
            "syncMode": "full",
            "isMain": True,
            "overrides": ["visible"],
        }
        assert Layer.from_api_dict(data).to_api_dict() == data

    def test_unknown_fields_ignored(self):
        frame = Frame.from_api_dict({"_version": 1, "id": "f", "thumbnail": "data:..."})
        assert frame.id == "f"

    def test_frame_count_preserved(self):
        """A stored visibleLayerCount is kept as-is on load."""
        frame = Frame.from_api_dict({"_version": 1, "id": "f", "layers": [{"id": "a"}], "visibleLayerCount": 0})
        assert frame.visible_layer_count == 0
        assert check_consistency(frame) != []


class TestMigration:
    """Loading pre-versioned data."""

    def test_project_v0(self):
        data = {
            "name": "Old",
            "adSizes": [{"id": "frame-2", "frames": [{"id": "gif-frame-2-3"}]}],
            "timelineMode": "gifFrames",
        }
        project = Project.from_api_dict(data)

        assert project.version == 1
        assert project.timeline_mode == "sequence"
        assert [c.id for c in project.compositions] == ["frame-2"]

    def test_animation_mode_renamed(self):
        project = Project.from_api_dict({"timelineMode": "animation"})
        assert project.timeline_mode == "single"

    def test_frame_v0_parses_legacy_id(self):
        frame = Frame.from_api_dict({"id": "gif-frame-2-3", "hiddenLayers": None})

        assert frame.composition_id == "frame-2"
        assert frame.frame_index == 2
        assert frame.hidden_layers == []

    def test_frame_v0_keeps_explicit_owner(self):
        frame = Frame.from_api_dict({"id": "gif-frame-frame-1-2", "adSizeId": "frame-9", "frameIndex": 5})
        assert frame.composition_id == "frame-9"
        assert frame.frame_index == 5

    def test_frame_v0_unparseable_id(self):
        frame = Frame.from_api_dict({"id": "custom-frame"})
        assert frame.composition_id is None
        assert frame.ref().composition_id == "frame-1"

    def test_input_not_mutated(self):
        data = {"adSizes": [], "timelineMode": "gifFrames"}
        Project.from_api_dict(data)
        assert data == {"adSizes": [], "timelineMode": "gifFrames"}


class TestFileIO:
    """Tests for Project.save / load / is_valid."""

    def test_save_and_load(self, sample_project, tmp_path):
        path = tmp_path / "campaign.afp"
        sample_project.save(path)

        assert Project.is_valid(path)
        assert Project.load(path).to_api_dict() == sample_project.to_api_dict()

    def test_file_like(self, sample_project):
        buffer = io.BytesIO()
        sample_project.save(buffer)
        buffer.seek(0)

        assert Project.load(buffer).name == sample_project.name

    def test_content_header(self, sample_project, tmp_path):
        path = tmp_path / "campaign.afp"
        sample_project.save(path)

        with ZipFile(path) as zf:
            content = json.loads(zf.read("content.json"))
        assert content["format"] == FORMAT_NAME
        assert content["version"] == Project.FILE_VERSION
        assert content["project"]["name"] == "Test Campaign"

    def test_not_a_zip(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("hello")
        assert Project.is_valid(path) is False

    def test_missing_file(self, tmp_path):
        assert Project.is_valid(tmp_path / "missing.afp") is False

    def test_wrong_format(self, tmp_path):
        path = tmp_path / "other.afp"
        with ZipFile(path, "w") as zf:
            zf.writestr("content.json", json.dumps({"format": "other-editor", "project": {}}))

        assert Project.is_valid(path) is False
        with pytest.raises(ValueError, match="not an adforge project"):
            Project.load(path)

    def test_missing_content(self, tmp_path):
        path = tmp_path / "empty.afp"
        with ZipFile(path, "w") as zf:
            zf.writestr("readme.txt", "nothing here")

        with pytest.raises(ValueError, match="missing content.json"):
            Project.load(path)

    def test_load_not_a_zip(self, tmp_path):
        path = tmp_path / "notes.afp"
        path.write_text("hello")

        with pytest.raises(ValueError, match="Invalid project file"):
            Project.load(path)


class TestComposition:
    """Tests for Composition helpers."""

    def test_ordered_frames(self):
        composition = Composition(
            id="frame-1",
            frames=[Frame(id="b", frame_index=1), Frame(id="a", frame_index=0)],
        )
        assert [f.id for f in composition.ordered_frames()] == ["a", "b"]

    def test_replace_frame(self):
        composition = Composition(id="frame-1", frames=[Frame(id="a", name="Old")])

        assert composition.replace_frame(Frame(id="a", name="New")) is True
        assert composition.get_frame("a").name == "New"
        assert composition.replace_frame(Frame(id="zzz")) is False


class TestValidation:
    """Rejected project data."""

    @pytest.mark.parametrize("data", [[], 42, "text", None])
    def test_non_mapping_rejected(self, data):
        with pytest.raises(ValueError, match="expected an object"):
            Project.from_api_dict(data)

    def test_empty_list_json_rejected(self):
        with pytest.raises(ValueError):
            Project.from_json("[]")

    def test_unknown_timeline_mode_rejected(self):
        with pytest.raises(ValueError):
            Project.from_api_dict({"_version": 1, "timelineMode": "bogus"})

    def test_timeline_mode_serialized_as_string(self):
        project = Project.from_api_dict({"_version": 1, "timelineMode": "sequence"})
        assert project.to_api_dict()["timelineMode"] == "sequence"
