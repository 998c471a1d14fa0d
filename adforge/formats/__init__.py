"""Adforge file formats.

This module contains project serialization and file I/O classes.
"""

from .project import Project, VERSION, FORMAT_NAME
from .sample import (
    AD_SIZES,
    create_empty_project,
    create_sample_layers,
    create_sample_project,
    generate_project_name,
)

__all__ = [
    # Project format
    'Project',
    'VERSION',
    'FORMAT_NAME',
    # Sample generation
    'AD_SIZES',
    'create_empty_project',
    'create_sample_layers',
    'create_sample_project',
    'generate_project_name',
]
