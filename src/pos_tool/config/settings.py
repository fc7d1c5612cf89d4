"""
Centralized settings and path configuration for the POS tool.
"""
import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    # Walk up from this file to find the project root
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 3 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    # Storage
    data_dir: Path
    products_csv: Path
    members_csv: Path
    sales_csv: Path
    sale_lines_csv: Path

    # Display currency (single currency, no conversion)
    currency: str = 'IDR'

    # Cashier recorded on sales when none is given
    default_kasir_id: int = 1

    log_level: str = 'INFO'

    @classmethod
    def load(cls, data_dir: Optional[Path] = None) -> 'Settings':
        """Load settings from the environment and the project structure."""
        env_dir = os.getenv('POS_TOOL_DATA_DIR')
        root = Path(data_dir or env_dir or get_project_root() / 'data')

        return cls(
            data_dir=root,
            products_csv=root / 'products.csv',
            members_csv=root / 'members.csv',
            sales_csv=root / 'sales.csv',
            sale_lines_csv=root / 'sale_lines.csv',
            currency=os.getenv('POS_TOOL_CURRENCY', 'IDR'),
            default_kasir_id=int(os.getenv('POS_TOOL_KASIR_ID', '1')),
            log_level=os.getenv('POS_TOOL_LOG_LEVEL', 'INFO').upper(),
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reset_settings():
    """Forget the cached settings so the next get_settings() reloads them."""
    global _settings
    _settings = None
