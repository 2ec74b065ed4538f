"""
baz-archive: single-file, versioned dataset archives.

Packs a Borg Backup repository into one compressed container file and
drives snapshot creation, listing, extraction and read-only mounting through
a safe expand/operate/re-pack lifecycle.
"""
from .operations import Operations
from .settings import Settings, create_settings_from_env

__version__ = "0.1.0"

__all__ = ["Operations", "Settings", "create_settings_from_env", "__version__"]
