from .colors import EDITOR_COLORS, color_for_editor
from .hashing import fingerprint, rolling_hash32, to_base36

__all__ = [
    "EDITOR_COLORS",
    "color_for_editor",
    "fingerprint",
    "rolling_hash32",
    "to_base36",
]
