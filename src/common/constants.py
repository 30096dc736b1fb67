"""
Application-wide constants for the NVIDIA GPU Setup Tool.

Centralizes app name, version info, and other constants to ensure consistency.
"""

# Application display name (user-facing)
APP_NAME = "NVIDIA GPU Setup Tool"

# Application full description
APP_DESCRIPTION = "Automatic Driver & CUDA Installation for Live Boot Linux Systems"

# Technical identifiers (for paths, files - DO NOT change without migration)
APP_FOLDER_NAME = "NvidiaSetupTool"  # Used in ~/.local/share/NvidiaSetupTool/
APP_LOG_FILENAME = "nvidia-setup-tool.log"
APP_CONFIG_FILENAME = "config.ini"

# Log console
DEFAULT_LOG_MAX_LINES = 1000

# Free space on / below this many KB triggers a warning
LOW_DISK_THRESHOLD_KB = 2000000
