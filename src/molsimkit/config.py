"""
Configuration Management

Tolerances and runtime options for the geometry routines, readable from and
writable to JSON, YAML and TOML files.

Key Features:
- Nested defaults with dot-notation access
- YAML/TOML/JSON configuration files, format chosen by file suffix
- Validation of tolerances and backend names
- A process-wide active configuration, consulted whenever a function's
  tolerance argument is left as None
"""

import copy
import json
import pprint
from pathlib import Path
from typing import Dict, Any, Optional


def _read_json(f):
    return json.load(f)


def _write_json(data, f):
    json.dump(data, f, indent=2)


def _read_yaml(f):
    import yaml
    return yaml.safe_load(f)


def _write_yaml(data, f):
    import yaml
    yaml.safe_dump(data, f, default_flow_style=False)


def _read_toml(f):
    import toml
    return toml.load(f)


def _write_toml(data, f):
    import toml
    toml.dump(data, f)


# suffix -> (reader, writer)
_FORMATS = {
    '.json': (_read_json, _write_json),
    '.yaml': (_read_yaml, _write_yaml),
    '.yml': (_read_yaml, _write_yaml),
    '.toml': (_read_toml, _write_toml),
}


def _format_for(filename) -> tuple:
    suffix = Path(filename).suffix.lower()

    if suffix not in _FORMATS:
        raise ValueError(
            f"Unsupported configuration format '{suffix}'. Use .json, .yaml, .yml or .toml"
        )

    return _FORMATS[suffix]


class GeometryConfig:
    """Configuration container for molsimkit numerical options."""

    # Default parameters
    DEFAULTS = {
        # Structural alignment
        'alignment': {
            'degeneracy_tol': 1e-8,  # relative gap between the two lowest eigenvalues
            'check_rotation': True,
            'rotation_tol': 1e-6
        },
        # Periodic wrapping
        'periodic': {
            'max_condition': 1e12  # largest accepted cell condition number
        },
        # Dihedral angles
        'dihedral': {
            'degrees': True
        },
        # Computational kernels
        'kernels': {
            'backend': 'numba'  # 'numba' or 'numpy'
        }
    }

    def __init__(self, settings: Optional[Dict[str, Any]] = None):
        """
        Args:
            settings: Optional nested dictionary merged over the defaults.
                Missing keys keep their default values.
        """
        self._config = copy.deepcopy(self.DEFAULTS)

        if settings:
            self._merge(self._config, settings)

    @classmethod
    def _merge(cls, target: Dict, source: Dict) -> None:
        for key, value in source.items():
            if isinstance(value, dict) and isinstance(target.get(key), dict):
                cls._merge(target[key], value)
            else:
                target[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """
        Look up a value by dotted path.

        Args:
            key: Dotted path, e.g. 'alignment.degeneracy_tol'
            default: Returned when the path does not exist

        Example:
            >>> config.get('periodic.max_condition')
            1000000000000.0
        """
        node = self._config

        for part in key.split('.'):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]

        return node

    def set(self, key: str, value: Any) -> None:
        """
        Assign a value by dotted path, creating intermediate sections.

        Example:
            >>> config.set('alignment.degeneracy_tol', 1e-6)
        """
        *sections, leaf = key.split('.')
        node = self._config

        for part in sections:
            if not isinstance(node.get(part), dict):
                node[part] = {}
            node = node[part]

        node[leaf] = value

    def to_dict(self) -> Dict:
        """Deep copy of the nested settings."""
        return copy.deepcopy(self._config)

    def save(self, filename: str) -> None:
        """
        Write the settings to ``filename``; the suffix selects the format.

        Raises:
            ValueError: For suffixes other than .json, .yaml, .yml and .toml
        """
        _, write = _format_for(filename)

        with open(filename, 'w') as f:
            write(self._config, f)

    @classmethod
    def load(cls, filename: str) -> 'GeometryConfig':
        """
        Read settings from a .json, .yaml/.yml or .toml file.

        Keys absent from the file keep their defaults.

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: For unsupported suffixes

        Example:
            >>> config = GeometryConfig.load('geometry.yaml')
        """
        if not Path(filename).exists():
            raise FileNotFoundError(f"Configuration file not found: {filename}")

        read, _ = _format_for(filename)

        with open(filename, 'r') as f:
            settings = read(f)

        return cls(settings)

    def validate(self) -> bool:
        """
        Check tolerances and option values.

        Returns:
            True when every option is valid

        Raises:
            ValueError: Naming the first invalid option
        """
        tol = self.get('alignment.degeneracy_tol')
        if not (isinstance(tol, (int, float)) and 0 <= tol < 1):
            raise ValueError(f"alignment.degeneracy_tol must be in [0, 1), got {tol}")

        rot_tol = self.get('alignment.rotation_tol')
        if not (isinstance(rot_tol, (int, float)) and rot_tol > 0):
            raise ValueError(f"alignment.rotation_tol must be positive, got {rot_tol}")

        cond = self.get('periodic.max_condition')
        if not (isinstance(cond, (int, float)) and cond > 1):
            raise ValueError(f"periodic.max_condition must be > 1, got {cond}")

        backend = self.get('kernels.backend')
        if backend not in ('numba', 'numpy'):
            raise ValueError(f"kernels.backend must be 'numba' or 'numpy', got {backend}")

        return True

    def __repr__(self) -> str:
        return f"GeometryConfig({self._config})"

    def __str__(self) -> str:
        return pprint.pformat(self._config, indent=2)


_ACTIVE_CONFIG = GeometryConfig()


def get_config() -> GeometryConfig:
    """Return the active configuration."""
    return _ACTIVE_CONFIG


def set_config(config: GeometryConfig) -> None:
    """Validate and install ``config`` as the active configuration."""
    global _ACTIVE_CONFIG

    config.validate()
    _ACTIVE_CONFIG = config


def load_config_with_overrides(config_file: Optional[str] = None,
                               activate: bool = False,
                               **overrides) -> GeometryConfig:
    """
    Build a configuration from an optional file plus keyword overrides.

    Args:
        config_file: Path of a configuration file, or None for the defaults
        activate: Install the result as the active configuration
        **overrides: Values to set after loading; a double underscore in the
            keyword separates nesting levels

    Returns:
        config: The validated GeometryConfig

    Example:
        >>> config = load_config_with_overrides(
        ...     'geometry.yaml',
        ...     alignment__degeneracy_tol=1e-6,
        ...     kernels__backend='numpy'
        ... )
    """
    config = GeometryConfig() if config_file is None else GeometryConfig.load(config_file)

    for name, value in overrides.items():
        config.set(name.replace('__', '.'), value)

    config.validate()

    if activate:
        set_config(config)

    return config


__all__ = [
    'GeometryConfig',
    'get_config',
    'set_config',
    'load_config_with_overrides',
]
