import os
import configparser
import logging
from PySide6.QtCore import QObject
from common.constants import APP_CONFIG_FILENAME, DEFAULT_LOG_MAX_LINES, LOW_DISK_THRESHOLD_KB
from utils.files import get_localappdata_dir

logger = logging.getLogger(__name__)


def _split_list(value: str) -> list:
    return [item.strip() for item in value.split(",") if item.strip()]


class Config(QObject):
    def __init__(self, custom_config_path: str | None = None):
        """Initialize Config from file.

        Args:
            custom_config_path: Optional path to custom config file.
                               Useful for testing different parameter sets.
                               If None, uses system config location.
        """
        super().__init__()

        # Determine config path
        if custom_config_path:
            self.config_path = custom_config_path
            logger.debug(f"Using custom config: {self.config_path}")
        else:
            # Check if running in test mode (pytest sets PYTEST_CURRENT_TEST)
            # In test mode, use temp config to avoid polluting user's real config
            if "PYTEST_CURRENT_TEST" in os.environ:
                import tempfile

                test_config_dir = os.path.join(tempfile.gettempdir(), "nvidia_setup_tool_test")
                os.makedirs(test_config_dir, exist_ok=True)
                self.config_path = os.path.join(test_config_dir, APP_CONFIG_FILENAME)
                logger.debug(f"Test mode detected, using temp config: {self.config_path}")
            else:
                self.config_path = os.path.join(get_localappdata_dir(), APP_CONFIG_FILENAME)

        self._config = configparser.ConfigParser()
        if os.path.exists(self.config_path):
            # Existing config: Load without injecting defaults
            logger.debug(f"Loading existing config from: {self.config_path}")
            self._config.read(self.config_path, encoding="utf-8-sig")
        else:
            # New config: Create with defaults
            logger.info(f"Config file not found. Creating default config at: {self.config_path}")
            self._set_defaults()

            config_dir = os.path.dirname(self.config_path)
            if config_dir:
                os.makedirs(config_dir, exist_ok=True)
            with open(self.config_path, "w", encoding="utf-8") as configfile:
                self._config.write(configfile)
            logger.info("Default config.ini created successfully")

        # Initialize properties from config values (using fallbacks for missing keys)
        self._initialize_properties()

    def _get_defaults(self):
        """Get default configuration values as a dictionary structure."""
        return {
            "General": {
                "log_level": "INFO",
                "log_max_lines": DEFAULT_LOG_MAX_LINES,
            },
            "Probe": {
                "probe_delay_ms": 500,
                "probe_timeout_sec": 30,
                "os_release_path": "/etc/os-release",
                "proc_version_path": "/proc/version",
            },
            "Install": {
                "driver_package": "cuda-drivers",
                "cuda_toolkit_package": "cuda-toolkit-12-6",
                "keyring_package": "cuda-keyring_1.1-1_all.deb",
                "keyring_url_template": "https://developer.download.nvidia.com/compute/cuda/repos/{repo}/{arch}/{package}",
                "repo_arch": "x86_64",
                "cuda_home": "/usr/local/cuda",
                "profile_path": "/etc/profile.d/cuda.sh",
                "step_timeout_sec": 3600,
                "work_directory": "",
                "supported_codenames": "bookworm,jammy,noble",
                "eol_codenames": "bullseye",
            },
            "Preflight": {
                "connectivity_host": "8.8.8.8",
                "connectivity_timeout_sec": 5,
                "min_free_disk_kb": LOW_DISK_THRESHOLD_KB,
            },
        }

    def _set_defaults(self):
        """Set default configuration values in the ConfigParser object."""
        defaults = self._get_defaults()

        for section, values in defaults.items():
            self._config[section] = {}
            for key, value in values.items():
                # Convert all values to strings for ConfigParser
                if isinstance(value, bool):
                    self._config[section][key] = "true" if value else "false"
                else:
                    self._config[section][key] = str(value)

    def _initialize_properties(self):
        """Initialize class properties from config values with fallbacks."""
        defaults = self._get_defaults()

        self._init_general(defaults)
        self._init_probe(defaults)
        self._init_install(defaults)
        self._init_preflight(defaults)

        logger.debug("Configuration loaded: %s", self.config_path)

    def _init_general(self, defaults: dict):
        """Initialize General section properties."""
        g = defaults["General"]
        self.log_level_str = self._config.get("General", "log_level", fallback=g["log_level"])
        self.log_level = self._get_log_level(self.log_level_str)
        self.log_max_lines = self._config.getint("General", "log_max_lines", fallback=g["log_max_lines"])

    def _init_probe(self, defaults: dict):
        """Initialize Probe section properties."""
        p = defaults["Probe"]
        self.probe_delay_ms = self._config.getint("Probe", "probe_delay_ms", fallback=p["probe_delay_ms"])
        self.probe_timeout_sec = self._config.getint("Probe", "probe_timeout_sec", fallback=p["probe_timeout_sec"])
        self.os_release_path = self._config.get("Probe", "os_release_path", fallback=p["os_release_path"])
        self.proc_version_path = self._config.get("Probe", "proc_version_path", fallback=p["proc_version_path"])

    def _init_install(self, defaults: dict):
        """Initialize Install section properties."""
        i = defaults["Install"]
        self.driver_package = self._config.get("Install", "driver_package", fallback=i["driver_package"])
        self.cuda_toolkit_package = self._config.get(
            "Install", "cuda_toolkit_package", fallback=i["cuda_toolkit_package"]
        )
        self.keyring_package = self._config.get("Install", "keyring_package", fallback=i["keyring_package"])
        # Raw: the template holds {placeholders}, not configparser interpolations
        self.keyring_url_template = self._config.get(
            "Install", "keyring_url_template", raw=True, fallback=i["keyring_url_template"]
        )
        self.repo_arch = self._config.get("Install", "repo_arch", fallback=i["repo_arch"])
        self.cuda_home = self._config.get("Install", "cuda_home", fallback=i["cuda_home"])
        self.profile_path = self._config.get("Install", "profile_path", fallback=i["profile_path"])
        self.step_timeout_sec = self._config.getint("Install", "step_timeout_sec", fallback=i["step_timeout_sec"])
        self.work_directory = self._config.get("Install", "work_directory", fallback=i["work_directory"])
        self.supported_codenames = _split_list(
            self._config.get("Install", "supported_codenames", fallback=i["supported_codenames"])
        )
        self.eol_codenames = _split_list(self._config.get("Install", "eol_codenames", fallback=i["eol_codenames"]))

    def _init_preflight(self, defaults: dict):
        """Initialize Preflight section properties."""
        p = defaults["Preflight"]
        self.connectivity_host = self._config.get("Preflight", "connectivity_host", fallback=p["connectivity_host"])
        self.connectivity_timeout_sec = self._config.getint(
            "Preflight", "connectivity_timeout_sec", fallback=p["connectivity_timeout_sec"]
        )
        self.min_free_disk_kb = self._config.getint("Preflight", "min_free_disk_kb", fallback=p["min_free_disk_kb"])

    # Path Helper Properties

    @property
    def data_dir(self) -> str:
        """
        Get the base application data directory.

        Returns:
            str: Path to ~/.local/share/NvidiaSetupTool/ (respects XDG_DATA_HOME)
        """
        return get_localappdata_dir()

    @property
    def effective_work_directory(self) -> str:
        """
        Directory that receives downloaded artifacts (the repository keyring package).

        Returns:
            str: User-configured path or {data_dir}/downloads/
        """
        if self.work_directory:
            return self.work_directory
        return os.path.join(self.data_dir, "downloads")

    def get(self, section: str, key: str, fallback: str | None = None) -> str:
        """Get a string value from the config."""
        return self._config.get(section, key, fallback=fallback)

    def get_int(self, section: str, key: str, fallback: int | None = None) -> int:
        """Get an integer value from the config."""
        return self._config.getint(section, key, fallback=fallback)

    def get_bool(self, section: str, key: str, fallback: bool | None = None) -> bool:
        """Get a boolean value from the config."""
        return self._config.getboolean(section, key, fallback=fallback)

    def _get_log_level(self, level_str):
        """Convert string log level to logging level constant"""
        levels = {
            "DEBUG": logging.DEBUG,
            "INFO": logging.INFO,
            "WARNING": logging.WARNING,
            "ERROR": logging.ERROR,
            "CRITICAL": logging.CRITICAL,
        }
        return levels.get(level_str.upper(), logging.INFO)  # Default to INFO if invalid

    def _update_managed_sections(self, config: configparser.ConfigParser):
        """Write the values that may be changed at runtime (validator auto-fixes)."""
        if not config.has_section("General"):
            config.add_section("General")
        config["General"]["log_level"] = self.log_level_str
        config["General"]["log_max_lines"] = str(self.log_max_lines)

        if not config.has_section("Probe"):
            config.add_section("Probe")
        config["Probe"]["probe_delay_ms"] = str(self.probe_delay_ms)
        config["Probe"]["probe_timeout_sec"] = str(self.probe_timeout_sec)

        if not config.has_section("Install"):
            config.add_section("Install")
        config["Install"]["step_timeout_sec"] = str(self.step_timeout_sec)

        if not config.has_section("Preflight"):
            config.add_section("Preflight")
        config["Preflight"]["connectivity_timeout_sec"] = str(self.connectivity_timeout_sec)
        config["Preflight"]["min_free_disk_kb"] = str(self.min_free_disk_kb)

    def _create_backup(self):
        """Create backup of config file before modifying."""
        import shutil

        if os.path.exists(self.config_path):
            backup_path = self.config_path + ".bak"
            try:
                shutil.copy2(self.config_path, backup_path)
                logger.debug(f"Created backup at {backup_path}")
            except OSError as e:
                logger.warning(f"Failed to create backup: {e}")

    def save(self):
        """Save current configuration to file with minimal mutation.

        Re-reads the existing config file, updates ONLY managed keys,
        creates a backup, and preserves all unrelated sections/keys.
        """
        current = configparser.ConfigParser()
        config_loaded = False

        if os.path.exists(self.config_path):
            try:
                current.read(self.config_path, encoding="utf-8-sig")
                config_loaded = True
            except configparser.Error as e:
                logger.warning(f"Failed to re-read config file: {e}. Will create fresh config.")

        # If config doesn't exist or failed to load, populate with defaults
        if not config_loaded:
            logger.debug("Populating config with defaults before save")
            for section, values in self._get_defaults().items():
                current[section] = {}
                for key, value in values.items():
                    current[section][key] = str(value)

        self._create_backup()
        self._update_managed_sections(current)

        try:
            with open(self.config_path, "w", encoding="utf-8") as configfile:
                current.write(configfile)
            logger.debug(f"Configuration saved to {self.config_path}")
        except OSError as e:
            logger.error(f"Failed to save config: {e}")
            raise

    def log_config_location(self):
        """Log the configuration file location (call after logging is set up)"""
        logger.info(f"Configuration loaded from: {self.config_path}")
