"""
Configuration management for USPS order tracking.
Handles loading settings from environment variables and config files.
"""

import os
from pathlib import Path
from typing import Optional
from dataclasses import dataclass
from dotenv import load_dotenv


DEFAULT_TRACKING_URL_TEMPLATE = (
    "https://tools.usps.com/go/TrackConfirmAction?qtc_tLabels1={number}"
)


@dataclass
class TrackingConfig:
    """Main configuration class for USPS order tracking."""
    
    # Carrier lookup
    tracking_url_template: str = DEFAULT_TRACKING_URL_TEMPLATE
    
    # Order storage
    order_store_path: str = "data/orders.json"
    
    # Authorization
    staff_capability: str = "manage_woocommerce"
    auth_secret: str = ""
    auth_token_ttl: int = 3600  # seconds
    
    # HTTP transport
    server_host: str = "127.0.0.1"
    server_port: int = 8080
    
    # Logging
    log_level: str = "INFO"
    log_file: str = "logs/usps_tracking.log"
    
    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "TrackingConfig":
        """Load configuration from environment variables."""
        if env_file:
            load_dotenv(env_file)
        else:
            # Try to load from default locations
            for env_path in ["config.env", ".env", "../config.env"]:
                if Path(env_path).exists():
                    load_dotenv(env_path)
                    break
        
        return cls(
            # Carrier lookup
            tracking_url_template=os.getenv(
                "TRACKING_URL_TEMPLATE", DEFAULT_TRACKING_URL_TEMPLATE
            ),
            
            # Order storage
            order_store_path=os.getenv("ORDER_STORE_PATH", "data/orders.json"),
            
            # Authorization
            staff_capability=os.getenv("STAFF_CAPABILITY", "manage_woocommerce"),
            auth_secret=os.getenv("AUTH_SECRET", ""),
            auth_token_ttl=int(os.getenv("AUTH_TOKEN_TTL", "3600")),
            
            # HTTP transport
            server_host=os.getenv("SERVER_HOST", "127.0.0.1"),
            server_port=int(os.getenv("SERVER_PORT", "8080")),
            
            # Logging
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE", "logs/usps_tracking.log"),
        )
    
    def ensure_directories(self):
        """Create necessary directories if they don't exist."""
        Path(self.order_store_path).parent.mkdir(parents=True, exist_ok=True)
        Path(self.log_file).parent.mkdir(parents=True, exist_ok=True)
    
    def validate(self) -> list[str]:
        """Validate configuration and return list of errors."""
        errors = []
        
        if "{number}" not in self.tracking_url_template:
            errors.append("TRACKING_URL_TEMPLATE must contain a {number} placeholder")
        if not self.staff_capability:
            errors.append("STAFF_CAPABILITY is required")
        if self.auth_token_ttl <= 0:
            errors.append("AUTH_TOKEN_TTL must be positive")
        
        # The CLI works without it; the HTTP server does not
        if not self.auth_secret:
            errors.append("Warning: AUTH_SECRET not set - the HTTP server requires it")
        
        return errors


# Global config instance
_config: Optional[TrackingConfig] = None


def get_config() -> TrackingConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = TrackingConfig.from_env()
    return _config


def init_config(env_file: Optional[str] = None) -> TrackingConfig:
    """Initialize configuration from environment."""
    global _config
    _config = TrackingConfig.from_env(env_file)
    _config.ensure_directories()
    return _config
