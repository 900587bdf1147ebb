# signature/models/signature_config.py
from __future__ import annotations
from dataclasses import dataclass

from core.config.config_service import config_service


@dataclass
class SignatureConfig:
    """
    Capture settings for freehand/text signatures and pen extraction.
    Defaults come from the ``[Signature]`` config section.
    """
    stroke_width: int = 3
    surface_width: int = 600
    surface_height: int = 200
    luminance_threshold: int = 130
    text_font_size: int = 24
    ink_rgba: tuple = (0, 0, 0, 255)

    @classmethod
    def from_settings(cls) -> "SignatureConfig":
        s = config_service.signature
        return cls(
            stroke_width=int(s.stroke_width),
            surface_width=int(s.surface_width),
            surface_height=int(s.surface_height),
            luminance_threshold=int(s.luminance_threshold),
        )
