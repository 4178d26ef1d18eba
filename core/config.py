"""
Configuration Management Module

This module provides a centralized way to load and access configuration settings
from the config.yaml file. It uses the Singleton pattern to ensure only one
configuration instance exists throughout the application.

External-service settings can be overridden from the environment (or a .env
file in the project root):

    AWS_REGION           -> aws.region
    BUCKET_NAME          -> aws.bucket_name
    COLLECTION_ID        -> aws.collection_id
    FACE_SEARCH_API_URL  -> api.base_url

Usage:
    from core.config import get_config
    config = get_config()
    bucket = config["aws"]["bucket_name"]
"""

import os
import yaml
from dotenv import load_dotenv
from pathlib import Path
from typing import Any, Dict, Optional


# Store the singleton instance (module-level variable)
_config_instance: Optional[Dict[str, Any]] = None

# (environment variable, section, key)
ENV_OVERRIDES = [
    ("AWS_REGION", "aws", "region"),
    ("BUCKET_NAME", "aws", "bucket_name"),
    ("COLLECTION_ID", "aws", "collection_id"),
    ("FACE_SEARCH_API_URL", "api", "base_url"),
]


def get_project_root() -> Path:
    """
    Find the project root directory.

    The project root is identified by the presence of config.yaml file.
    This function walks up the directory tree from this file's location
    until it finds config.yaml.

    Returns:
        Path: The absolute path to the project root directory.

    Raises:
        FileNotFoundError: If config.yaml cannot be found in any parent directory.
    """
    current_dir = Path(__file__).resolve().parent

    while current_dir != current_dir.parent:
        config_path = current_dir / "config.yaml"
        if config_path.exists():
            return current_dir
        current_dir = current_dir.parent

    raise FileNotFoundError(
        "Could not find config.yaml in any parent directory. "
        "Make sure you're running from within the project directory."
    )


def apply_env_overrides(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Overlay environment variables on top of the file configuration.

    Empty variables are ignored so that an unset value in .env does not
    blank out the file default.
    """
    for env_name, section, key in ENV_OVERRIDES:
        value = os.getenv(env_name)
        if value:
            config.setdefault(section, {})[key] = value
    return config


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from a YAML file and apply environment overrides.

    Args:
        config_path: Optional path to the config file.
                     If not provided, uses the default config.yaml in project root.

    Returns:
        Dict containing all configuration values.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        yaml.YAMLError: If the config file contains invalid YAML.
    """
    if config_path is None:
        project_root = get_project_root()
        config_path = project_root / "config.yaml"
        load_dotenv(project_root / ".env", override=False)
    else:
        config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    return apply_env_overrides(config)


def get_config(reload: bool = False) -> Dict[str, Any]:
    """
    Get the configuration singleton.

    Args:
        reload: If True, forces reloading the configuration from disk.
                Useful for testing or if the config file has changed.

    Returns:
        Dict containing all configuration values.

    Example:
        config = get_config()
        threshold = config["search"]["face_match_threshold"]
    """
    global _config_instance

    if _config_instance is None or reload:
        _config_instance = load_config()

    return _config_instance


def get_section(section_name: str) -> Dict[str, Any]:
    """
    Get a specific section from the configuration.

    Args:
        section_name: Name of the configuration section
                      (e.g., "aws", "search", "api")

    Returns:
        Dict containing the section's configuration values.

    Raises:
        KeyError: If the section doesn't exist in the configuration.
    """
    config = get_config()

    if section_name not in config:
        raise KeyError(
            f"Configuration section '{section_name}' not found. "
            f"Available sections: {list(config.keys())}"
        )

    return config[section_name]


# Convenience functions for commonly used configuration sections
def get_aws_config() -> Dict[str, Any]:
    """Get AWS (S3 bucket / Rekognition collection) configuration."""
    return get_section("aws")


def get_search_config() -> Dict[str, Any]:
    """Get face search configuration."""
    return get_section("search")


def get_api_config() -> Dict[str, Any]:
    """Get API configuration."""
    return get_section("api")


def get_frontend_config() -> Dict[str, Any]:
    """Get frontend configuration."""
    return get_section("frontend")


def get_logging_config() -> Dict[str, Any]:
    """Get logging configuration."""
    return get_config().get("logging", {})


def get_server_config() -> Dict[str, Any]:
    """
    Get server configuration for the API.

    Returns:
        Dict with host and port for the API server.
    """
    api_config = get_api_config()
    base_url = api_config.get("base_url", "http://localhost:3001")

    # Format: http://host:port
    host = "0.0.0.0"
    port = 3001

    try:
        url_part = base_url.split("//")[-1]
        if ":" in url_part:
            host_part, port_str = url_part.rsplit(":", 1)
            port = int(port_str.rstrip("/"))
            if host_part != "localhost":
                host = host_part
    except (ValueError, IndexError):
        pass

    return {"host": host, "port": port}


if __name__ == "__main__":
    print("Testing configuration loader...")

    config = get_config()
    print(f"Successfully loaded config with sections: {list(config.keys())}")

    aws_config = get_aws_config()
    print(f"Bucket: {aws_config['bucket_name']}")
    print(f"Collection: {aws_config['collection_id']}")
