"""
Project - Pydantic model for an adforge project and its file I/O.

Project file format (.afp): ZIP archive containing:
- content.json: Format header plus the serialized project

The same serialized dictionary is used as the opaque blob handed to a
persistence store (see adforge.editor). It is plain JSON data without
cycles, so a dump/load round-trip yields an equal project.
"""

import json
import uuid
from pathlib import Path
from typing import Any, BinaryIO, ClassVar, Mapping, Optional, Union
from zipfile import ZIP_DEFLATED, BadZipFile, ZipFile

from pydantic import BaseModel, ConfigDict, Field

from adforge.config import settings
from adforge.layers import Composition, Frame
from adforge.playback import PlaybackMode


# Current project file format version
VERSION = 1

FORMAT_NAME = 'adforge'


class Project(BaseModel):
    """
    Adforge project: every composition with its frames and layer trees.

    Serialization format:
    {
        "_version": 1,
        "_type": "Project",
        "id": "uuid",
        "name": "Spring Campaign",
        "compositions": [...],
        "activeCompositionId": "frame-1",
        "activeFrameId": "gif-frame-frame-1-1",
        "timelineMode": "sequence",
        "animationDuration": 2.0
    }

    Example usage:
        # Load from file
        project = Project.load('campaign.afp')

        # Save to file
        project.save('campaign.afp')

        # Create new project
        project = Project(name="Spring Campaign")
    """

    model_config = ConfigDict(
        populate_by_name=True,
        validate_assignment=False,
        extra='ignore',
    )

    DOC_VERSION: ClassVar[int] = 1
    FILE_VERSION: ClassVar[int] = VERSION

    # Serialization metadata
    version: int = Field(default=1, alias='_version')
    type_name: str = Field(default='Project', alias='_type')

    # Identity
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = Field(default='Untitled')

    compositions: list[Composition] = Field(default_factory=list)
    active_composition_id: Optional[str] = Field(default=None, alias='activeCompositionId')
    active_frame_id: Optional[str] = Field(default=None, alias='activeFrameId')

    # Playback
    timeline_mode: PlaybackMode = Field(default=PlaybackMode.SINGLE, alias='timelineMode')
    animation_duration: float = Field(
        default_factory=lambda: settings.ANIMATION_DURATION, ge=0.0, alias='animationDuration'
    )

    def model_post_init(self, __context: Any) -> None:
        """Set type_name to Project."""
        self.type_name = 'Project'

    # --- Project Data Methods ---

    def to_api_dict(self) -> dict[str, Any]:
        """
        Convert to a serializable dictionary.

        Returns:
            Dict with camelCase keys
        """
        self.version = self.DOC_VERSION
        return self.model_dump(by_alias=True, mode='json')

    def to_json(self) -> str:
        return json.dumps(self.to_api_dict())

    @classmethod
    def from_json(cls, text: str) -> 'Project':
        return cls.from_api_dict(json.loads(text))

    def get_composition(self, composition_id: str) -> Optional[Composition]:
        """
        Get a composition by ID.

        Args:
            composition_id: Composition ID to find

        Returns:
            Composition or None if not found
        """
        for composition in self.compositions:
            if composition.id == composition_id:
                return composition
        return None

    def active_composition(self) -> Optional[Composition]:
        """Get the active composition, falling back to the first one."""
        if self.active_composition_id:
            composition = self.get_composition(self.active_composition_id)
            if composition is not None:
                return composition
        return self.compositions[0] if self.compositions else None

    def find_frame(self, frame_id: str) -> Optional[tuple[Composition, Frame]]:
        """
        Find a frame in any composition.

        Returns:
            (owning composition, frame) or None if not found
        """
        for composition in self.compositions:
            frame = composition.get_frame(frame_id)
            if frame is not None:
                return composition, frame
        return None

    def all_frames(self) -> list[Frame]:
        """Every frame of every composition, in composition then frame order."""
        return [frame for c in self.compositions for frame in c.ordered_frames()]

    @classmethod
    def migrate(cls, data: dict[str, Any]) -> dict[str, Any]:
        """
        Migrate serialized data from older versions.

        Args:
            data: Serialized project data

        Returns:
            Migrated data at current version
        """
        # Handle pre-versioned data
        version = data.get('_version', 0)

        # v0 -> v1: 'adSizes' renamed to 'compositions', 'gifFrames' mode renamed
        if version < 1:
            if 'compositions' not in data and 'adSizes' in data:
                data['compositions'] = data.pop('adSizes')
            if data.get('timelineMode') == 'gifFrames':
                data['timelineMode'] = 'sequence'
            elif data.get('timelineMode') == 'animation':
                data['timelineMode'] = 'single'
            data['_version'] = 1

        return data

    @classmethod
    def from_api_dict(cls, data: dict[str, Any]) -> 'Project':
        """
        Create Project from a serialized dictionary.

        Args:
            data: Serialized project data

        Returns:
            Project instance

        Raises:
            ValueError: If data is not a mapping or fails validation
        """
        if not isinstance(data, Mapping):
            raise ValueError(f"Invalid project data: expected an object, got {type(data).__name__}")
        data = cls.migrate(dict(data))
        data['compositions'] = [
            Composition.from_api_dict(c) for c in data.get('compositions', [])
        ]
        return cls.model_validate(data)

    # --- File I/O Methods ---

    @classmethod
    def load(cls, file: Union[str, Path, BinaryIO]) -> 'Project':
        """
        Load a project from a project file.

        Args:
            file: Path to project file or file-like object

        Returns:
            Project instance

        Raises:
            ValueError: If file is not a valid project file
        """
        try:
            with ZipFile(file, 'r') as zip_file:
                content_text = zip_file.read('content.json').decode('utf-8')
        except BadZipFile as e:
            raise ValueError(f'Invalid project file: {e}') from e
        except KeyError:
            raise ValueError('Invalid project file: missing content.json')

        data = json.loads(content_text)
        if not isinstance(data, dict) or data.get('format') != FORMAT_NAME:
            raise ValueError('Invalid file format: not an adforge project')

        return cls.from_api_dict(data.get('project', {}))

    @classmethod
    def is_valid(cls, file: Union[str, Path, BinaryIO]) -> bool:
        """
        Check if a file is a valid project file.

        Args:
            file: Path to file or file-like object

        Returns:
            True if file is a valid project file
        """
        try:
            with ZipFile(file, 'r') as zip_file:
                if 'content.json' not in zip_file.namelist():
                    return False
                data = json.loads(zip_file.read('content.json').decode('utf-8'))
                return data.get('format') == FORMAT_NAME
        except (BadZipFile, OSError, ValueError):
            return False

    def save(self, file: Union[str, Path, BinaryIO]) -> None:
        """
        Save the project to a project file.

        Args:
            file: Path to project file or file-like object
        """
        content = {
            'format': FORMAT_NAME,
            'version': self.FILE_VERSION,
            'project': self.to_api_dict(),
        }
        with ZipFile(file, 'w', compression=ZIP_DEFLATED) as zip_file:
            zip_file.writestr('content.json', json.dumps(content, indent=2))
