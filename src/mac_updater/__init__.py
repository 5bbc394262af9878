"""mac-updater: runs macOS update and cleanup steps in a fixed, configurable order."""

__version__ = "0.1.0"
