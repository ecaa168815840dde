"""
Configuration management for MediaSight

The packaged ``config.yaml`` mirrors :func:`get_default_config`. User files
are deep-merged over the defaults and may reference environment variables
as ``${NAME}``.
"""

import copy
import dataclasses
import yaml
import os
import re
from pathlib import Path
from typing import Dict, Any, Optional, Union
import logging

from .errors import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"

_ENV_REFERENCE = re.compile(r'\$\{([^}]+)\}')


def _substitute_env(node: Any) -> Any:
    """Resolve ``${NAME}`` references in every string of a parsed YAML tree.

    Unset variables are left as written.
    """
    if isinstance(node, dict):
        return {key: _substitute_env(item) for key, item in node.items()}
    if isinstance(node, list):
        return [_substitute_env(item) for item in node]
    if isinstance(node, str):
        return _ENV_REFERENCE.sub(lambda m: os.environ.get(m.group(1), m.group(0)), node)
    return node

def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge override into a copy of base, recursing into nested dicts."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged

def load_config(config_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Load configuration from YAML file

    Args:
        config_path: Path to config file. If None, uses the packaged config.yaml

    Returns:
        Defaults with the file's values merged over them. A missing or
        unreadable file yields the defaults alone.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH

    if not path.exists():
        logger.warning(f"No configuration at {path}, falling back to defaults")
        return get_default_config()

    try:
        with open(path, 'r') as f:
            overrides = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Unreadable configuration {path}: {e}")
        return get_default_config()

    if not isinstance(overrides, dict):
        logger.error(f"Configuration {path} must be a mapping, got {type(overrides).__name__}")
        return get_default_config()

    logger.debug(f"Loaded configuration from {path}")
    return _deep_merge(get_default_config(), _substitute_env(overrides))

def get_default_config() -> Dict[str, Any]:
    """Built-in configuration; every section the components read via ``from_config``."""
    return {
        'brand': {
            'name': 'Storefront Co.',
            'url': 'https://shop.example.com',
            'cdn_base_url': 'https://cdn.example.com',
            'locale': 'en-CA',
            'currency': 'CAD',
        },
        'metadata': {
            'keyword_limit': 50,
            'default_license': 'proprietary',
            'creator': 'Storefront Studio',
            'dpi': 96,
            'bit_depth': 8,
            'color_space': 'sRGB',
            'quality_defaults': {
                'sharpness': 0.85,
                'contrast': 0.78,
                'color_accuracy': 0.92,
            },
        },
        'compliance': {
            'weights': {
                'dimension': 40,
                'alt_text': 30,
                'format': 15,
                'file_size': 15,
            },
            'platforms': {},
        },
        'analytics': {
            'engagement': {
                'weights': {
                    'duration': 0.25,
                    'position': 0.15,
                    'interaction': 0.35,
                    'device': 0.25,
                },
                'reference_duration_ms': 5000,
            },
            'recorder': {
                'max_events': 1000,
                'max_age_seconds': None,
            },
            'baselines': {
                'lcp_ms': 4000.0,
                'cls': 0.25,
                'inp_ms': 500.0,
            },
            'quality_weights': {
                'format': 0.3,
                'resolution': 0.3,
                'compression': 0.4,
            },
            'resolution_target': [2400, 2400],
            'seo_weights': {
                'metadata': 0.30,
                'technical': 0.25,
                'schema': 0.25,
                'relevance': 0.20,
            },
        },
        'logging': {
            'level': 'INFO',
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        },
    }

def save_config(config: Dict[str, Any], config_path: Union[str, Path]) -> bool:
    """
    Write a configuration dictionary as YAML.

    Returns:
        True when the file was written
    """
    try:
        with open(config_path, 'w') as f:
            yaml.safe_dump(config, f, default_flow_style=False, indent=2, sort_keys=False)
    except OSError as e:
        logger.error(f"Could not write configuration to {config_path}: {e}")
        return False
    logger.info(f"Configuration written to {config_path}")
    return True

def get_config_value(config: Dict[str, Any], key_path: str, default: Any = None) -> Any:
    """
    Look up a nested value by dotted path, e.g. ``'analytics.recorder.max_events'``.

    Returns ``default`` when any segment is missing or not a mapping.
    """
    node: Any = config
    for segment in key_path.split('.'):
        if not isinstance(node, dict) or segment not in node:
            return default
        node = node[segment]
    return node

def update_config_value(config: Dict[str, Any], key_path: str, value: Any) -> None:
    """Set a nested value by dotted path, creating intermediate sections."""
    *parents, leaf = key_path.split('.')
    section = config
    for segment in parents:
        section = section.setdefault(segment, {})
    section[leaf] = value

def config_section(config: Dict[str, Any], key_path: str, target: type) -> Dict[str, Any]:
    """
    Read the section at ``key_path`` as keyword arguments for dataclass ``target``.

    Raises:
        ValidationError: If the section is not a mapping or carries a key
            ``target`` does not define; the field names the full dotted key
    """
    section = get_config_value(config, key_path, {})
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ValidationError(key_path, f"must be a mapping, got {type(section).__name__}")
    known = {f.name for f in dataclasses.fields(target)}
    for key in section:
        if key not in known:
            raise ValidationError(f"{key_path}.{key}", f"unknown {target.__name__} field")
    return dict(section)
