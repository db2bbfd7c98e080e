"""
Configuration management module for vCloud Director Client.
Validates connection settings and loads them from a YAML file.
"""

from pathlib import Path
from typing import Any, Dict, Optional, Union
import yaml


DEFAULT_ORGNAME = 'System'
DEFAULT_TIMEOUT = 120


class ConfigError(Exception):
    """Raised when configuration is invalid or missing."""
    pass


class ClientConfig:
    """
    Connection settings for a vCloud Director endpoint.

    Everything except ``timeout`` and ``debug`` is fixed once constructed.
    """

    REQUIRED_FIELDS = [
        'vcloud.hostname',
        'vcloud.username',
        'vcloud.password',
    ]

    def __init__(self, hostname: str, username: str, password: str,
                 orgname: str = DEFAULT_ORGNAME, ssl_verify: bool = True,
                 ssl_ca_file: Optional[Union[str, Path]] = None,
                 timeout: int = DEFAULT_TIMEOUT, debug: bool = False,
                 log_file: Optional[Union[str, Path]] = None,
                 log_level: str = 'INFO', log_max_size_mb: int = 10,
                 log_backup_count: int = 5):
        """
        Initialize configuration.

        Args:
            hostname: Host name (optionally with port) of the vCloud endpoint
            username: User to log in as
            password: Password for the user
            orgname: Organization the user belongs to
            ssl_verify: Whether to verify the server certificate
            ssl_ca_file: CA bundle to verify against. If None, the certifi bundle is used.
            timeout: Request timeout in seconds
            debug: Trace requests and version selection to the log
            log_file: Optional path of a rotating log file
            log_level: Logging level name
            log_max_size_mb: Maximum log file size in MB
            log_backup_count: Number of rotated log files to keep
        """
        missing = [
            name for name, value in (
                ('hostname', hostname),
                ('username', username),
                ('password', password),
            ) if not value
        ]
        if missing:
            raise ConfigError(
                "Missing required connection settings: " + ", ".join(missing)
            )

        self._hostname = str(hostname)
        self._username = str(username)
        self._password = str(password)
        self._orgname = str(orgname or DEFAULT_ORGNAME)
        self._ssl_verify = bool(ssl_verify)
        self._ssl_ca_file = Path(ssl_ca_file) if ssl_ca_file else None

        self.timeout = timeout
        self.debug = bool(debug)

        self.log_file = Path(log_file) if log_file else None
        self.log_level = log_level
        self.log_max_size_mb = log_max_size_mb
        self.log_backup_count = log_backup_count

    def __repr__(self):
        return (
            f"ClientConfig(hostname={self._hostname!r}, username={self._username!r}, "
            f"orgname={self._orgname!r}, ssl_verify={self._ssl_verify!r}, "
            f"timeout={self._timeout!r})"
        )

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> 'ClientConfig':
        """
        Load configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            ClientConfig instance

        Raises:
            ConfigError: If the file is missing, unreadable or incomplete
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise ConfigError(
                f"Configuration file not found: {config_path}\n"
                f"Please copy config/config.example.yaml and configure it."
            )

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in configuration file: {e}")
        except OSError as e:
            raise ConfigError(f"Error reading configuration file: {e}")

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ClientConfig':
        """
        Build configuration from a mapping shaped like the YAML file.

        Raises:
            ConfigError: If required fields are missing
        """
        if not isinstance(data, dict):
            raise ConfigError("Configuration must be a mapping")

        missing_fields = [
            field for field in cls.REQUIRED_FIELDS
            if not _get_nested(data, field)
        ]
        if missing_fields:
            raise ConfigError(
                f"Missing required configuration fields:\n" +
                "\n".join(f"  - {field}" for field in missing_fields)
            )

        return cls(
            hostname=_get_nested(data, 'vcloud.hostname'),
            username=_get_nested(data, 'vcloud.username'),
            password=_get_nested(data, 'vcloud.password'),
            orgname=_get_nested(data, 'vcloud.orgname', DEFAULT_ORGNAME),
            ssl_verify=_get_nested(data, 'vcloud.ssl_verify', True),
            ssl_ca_file=_get_nested(data, 'vcloud.ssl_ca_file'),
            timeout=_get_nested(data, 'vcloud.timeout', DEFAULT_TIMEOUT),
            debug=_get_nested(data, 'vcloud.debug', False),
            log_file=_get_nested(data, 'logging.file'),
            log_level=_get_nested(data, 'logging.level', 'INFO'),
            log_max_size_mb=_get_nested(data, 'logging.max_size_mb', 10),
            log_backup_count=_get_nested(data, 'logging.backup_count', 5),
        )

    @property
    def hostname(self) -> str:
        """Get the endpoint host name."""
        return self._hostname

    @property
    def username(self) -> str:
        return self._username

    @property
    def password(self) -> str:
        return self._password

    @property
    def orgname(self) -> str:
        """Get the organization used to build the login identity."""
        return self._orgname

    @property
    def ssl_verify(self) -> bool:
        return self._ssl_verify

    @property
    def ssl_ca_file(self) -> Optional[Path]:
        """Get the configured CA bundle, or None for the default bundle."""
        return self._ssl_ca_file

    @property
    def timeout(self) -> int:
        """Get request timeout in seconds."""
        return self._timeout

    @timeout.setter
    def timeout(self, value: int):
        self._timeout = validate_timeout(value)


def validate_timeout(value: Any) -> int:
    """
    Check that a timeout is a positive whole number of seconds.

    Raises:
        ConfigError: If the value is not a positive integer
    """
    timeout = value
    if isinstance(timeout, str) and timeout.strip().isdigit():
        timeout = int(timeout)
    if isinstance(timeout, bool) or not isinstance(timeout, int) or timeout <= 0:
        raise ConfigError(f"Invalid timeout {value!r}: must be a positive integer")
    return timeout


def _get_nested(data: Dict[str, Any], key: str, default=None) -> Any:
    """
    Get a nested configuration value using dot notation.

    Args:
        data: Configuration mapping
        key: Dot-separated key (e.g., 'vcloud.hostname')
        default: Default value if key not found

    Returns:
        Configuration value or default
    """
    value = data
    for k in key.split('.'):
        if isinstance(value, dict) and k in value:
            value = value[k]
        else:
            return default
    return value
