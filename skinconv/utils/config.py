"""
Configuration management for skinconv.

Provides the conversion configuration and JSON load/save helpers.
"""

import json
from dataclasses import dataclass, field, asdict
from typing import Optional, Dict, Any
from pathlib import Path

from ..core.constants import MAX_INFLUENCES, DEFAULT_POSE_TOLERANCE


@dataclass
class ConvertConfig:
    """
    Configuration for asset conversion.

    Attributes:
        # Skinning
        max_influences: Joint influences kept per vertex

        # Animation
        include_animation: Export animation tracks when the document has them

        # Pose validation
        validate_pose: Run the matrix/quaternion cross-check on every frame
        pose_tolerance: Largest accepted position disagreement

        # OBJ conversion
        obj_include_normals: Read 'vn' lines and face normal indices
        obj_include_uvs: Read 'vt' lines and face uv indices

        # Output
        output_dir: Directory for JSON files (None = next to the input)
        indent: JSON indentation (None = compact)
        plot_skeleton: Save a skeleton plot next to each DAE snapshot
    """

    # Skinning
    max_influences: int = MAX_INFLUENCES

    # Animation
    include_animation: bool = True

    # Pose validation
    validate_pose: bool = False
    pose_tolerance: float = DEFAULT_POSE_TOLERANCE

    # OBJ conversion
    obj_include_normals: bool = True
    obj_include_uvs: bool = False

    # Output
    output_dir: Optional[str] = None
    indent: Optional[int] = None
    plot_skeleton: bool = False

    # Additional fields
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'ConvertConfig':
        """Create config from dictionary."""
        # Extract known fields
        known_fields = {f.name for f in cls.__dataclass_fields__.values()}
        known_kwargs = {k: v for k, v in config_dict.items() if k in known_fields and k != 'extra'}
        extra_kwargs = {k: v for k, v in config_dict.items() if k not in known_fields}
        extra_kwargs.update(config_dict.get('extra') or {})

        config = cls(**known_kwargs)
        config.extra = extra_kwargs
        return config

    def update(self, **kwargs) -> 'ConvertConfig':
        """Return a new config with updated values."""
        config_dict = self.to_dict()
        config_dict.update(kwargs)
        return ConvertConfig.from_dict(config_dict)


def load_config(filepath: str) -> ConvertConfig:
    """
    Load configuration from JSON file.

    Args:
        filepath: Path to JSON config file

    Returns:
        ConvertConfig object
    """
    filepath = Path(filepath)
    with open(filepath, 'r') as f:
        config_dict = json.load(f)
    return ConvertConfig.from_dict(config_dict)


def save_config(config: ConvertConfig, filepath: str) -> None:
    """
    Save configuration to JSON file.

    Args:
        config: ConvertConfig object to save
        filepath: Output file path
    """
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    with open(filepath, 'w') as f:
        json.dump(config.to_dict(), f, indent=2)
