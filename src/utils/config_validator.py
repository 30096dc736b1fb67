"""
Configuration Validator

Validates configuration values at startup to prevent runtime errors.
Auto-fixes invalid configurations with warnings.
"""

import logging
import sys
from typing import List, Tuple

from common.constants import DEFAULT_LOG_MAX_LINES, LOW_DISK_THRESHOLD_KB

logger = logging.getLogger(__name__)


class ConfigValidationError:
    """Represents a configuration validation issue."""

    def __init__(self, key: str, current_value, recommended_value, reason: str, severity: str = "warning"):
        self.key = key
        self.current_value = current_value
        self.recommended_value = recommended_value
        self.reason = reason
        self.severity = severity  # "warning", "error", "info"

    @property
    def section(self) -> str:
        return self.key.split(".", 1)[0]

    @property
    def option(self) -> str:
        return self.key.split(".", 1)[1]

    def __str__(self):
        return (
            f"[{self.severity.upper()}] {self.key}={self.current_value} "
            f"(recommended: {self.recommended_value}) - {self.reason}"
        )


# (attribute, config key, minimum, maximum, fallback, reason when out of range)
_INT_RANGES = [
    ("log_max_lines", "General.log_max_lines", 1, None, DEFAULT_LOG_MAX_LINES, "Log console must keep at least one line"),
    ("probe_timeout_sec", "Probe.probe_timeout_sec", 1, None, 30, "Detection commands need a positive timeout"),
    ("step_timeout_sec", "Install.step_timeout_sec", 0, None, 3600, "Step timeout cannot be negative (0 disables it)"),
    ("connectivity_timeout_sec", "Preflight.connectivity_timeout_sec", 1, 60, 5, "ping timeout must be 1-60 seconds"),
    ("min_free_disk_kb", "Preflight.min_free_disk_kb", 0, None, LOW_DISK_THRESHOLD_KB, "Free space threshold cannot be negative"),
]


def validate_setup_config(config) -> List[ConfigValidationError]:
    """
    Check numeric ranges and install settings.

    Returns:
        List of ConfigValidationError objects (empty if all valid)
    """
    errors = []

    for attribute, key, minimum, maximum, fallback, reason in _INT_RANGES:
        value = getattr(config, attribute, None)
        if value is None:
            continue
        if value < minimum or (maximum is not None and value > maximum):
            errors.append(ConfigValidationError(key, value, fallback, reason, severity="error"))

    delay = getattr(config, "probe_delay_ms", 0)
    if delay < 0:
        errors.append(ConfigValidationError("Probe.probe_delay_ms", delay, 500, "Delay cannot be negative", "error"))
    elif delay > 5000:
        errors.append(
            ConfigValidationError("Probe.probe_delay_ms", delay, 500, "Long delay slows down detection", "warning")
        )

    if not getattr(config, "cuda_home", "").startswith("/"):
        errors.append(
            ConfigValidationError(
                "Install.cuda_home", config.cuda_home, "/usr/local/cuda", "CUDA home should be an absolute path", "warning"
            )
        )

    template = getattr(config, "keyring_url_template", "")
    if "{repo}" not in template:
        errors.append(
            ConfigValidationError(
                "Install.keyring_url_template",
                template,
                "...{repo}/{arch}/{package}",
                "Template has no {repo} placeholder; every distribution downloads the same keyring",
                "warning",
            )
        )

    return errors


def validate_config(config, auto_fix: bool = True) -> Tuple[bool, List[ConfigValidationError]]:
    """
    Validate configuration and optionally auto-fix errors.

    Args:
        config: Config object to validate
        auto_fix: If True, replace invalid values with their defaults and save

    Returns:
        Tuple of (is_valid, list_of_errors)
        is_valid is False only if there are unfixed errors
    """
    all_errors = validate_setup_config(config)

    fixed_any = False
    if auto_fix:
        attributes = {key: attribute for attribute, key, *_ in _INT_RANGES}
        attributes["Probe.probe_delay_ms"] = "probe_delay_ms"
        for error in all_errors:
            if error.severity != "error" or error.key not in attributes:
                continue
            logger.warning(f"Auto-fixing config: {error}")
            setattr(config, attributes[error.key], error.recommended_value)
            config._config.set(error.section, error.option, str(error.recommended_value))
            fixed_any = True

        if fixed_any:
            try:
                config.save()
                logger.info("Auto-fixes saved to config file")
            except OSError as e:
                logger.error(f"Failed to save auto-fixes: {e}")
            all_errors = validate_setup_config(config)

    remaining_errors = [e for e in all_errors if e.severity == "error"]
    is_valid = len(remaining_errors) == 0

    warnings = [e for e in all_errors if e.severity == "warning"]
    if warnings:
        logger.info(f"Configuration has {len(warnings)} warning(s):")
        for warning in warnings:
            logger.warning(f"  {warning}")

    return is_valid, all_errors


def print_validation_report(errors: List[ConfigValidationError], stream=None):
    """Print a validation report grouped by severity (used by --health-check)."""
    if not errors:
        return
    stream = stream or sys.stdout

    grouped = {"error": [], "warning": [], "info": []}
    for error in errors:
        grouped.setdefault(error.severity, []).append(error)

    print("=" * 70, file=stream)
    print("CONFIGURATION VALIDATION REPORT", file=stream)
    print("=" * 70, file=stream)
    for severity in ("error", "warning", "info"):
        if grouped[severity]:
            print(f"\n{severity.upper()}S ({len(grouped[severity])}):", file=stream)
            for error in grouped[severity]:
                print(f"  - {error.key}={error.current_value} - {error.reason}", file=stream)
    print("=" * 70, file=stream)
