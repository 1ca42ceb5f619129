"""
Config Module - Black Box Interface

Purpose: Application configuration management
Interface: EnvConfigProvider, AuthConfig, StoreConfig, APIConfig
Hidden: Config sources, environment parsing

Can be replaced with different config systems (Consul, etcd, AWS Parameter Store).
"""

from .provider import APIConfig, AuthConfig, ConfigProvider, EnvConfigProvider, StoreConfig

__all__ = ["APIConfig", "AuthConfig", "ConfigProvider", "EnvConfigProvider", "StoreConfig"]
