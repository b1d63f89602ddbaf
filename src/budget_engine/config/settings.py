"""
Centralized settings and path configuration for the budget engine.
"""
import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 3 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    # Project paths
    project_root: Path
    data_dir: Path

    # Pricebook exports (loaded into the in-memory catalog)
    pricebooks_csv: Path
    price_items_csv: Path

    # Markup rules persisted by CsvMarkupStore (in memory when unset)
    markup_csv: Optional[Path] = None

    default_currency: str = 'BRL'
    order_number_prefix: str = 'OS-'
    log_level: str = 'INFO'

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> 'Settings':
        """Load settings from the project structure and environment."""
        root = project_root or get_project_root()

        data_dir = Path(os.environ.get('BUDGET_ENGINE_DATA_DIR', root / 'data'))
        markup_csv = os.environ.get('BUDGET_ENGINE_MARKUP_CSV')

        return cls(
            project_root=root,
            data_dir=data_dir,
            pricebooks_csv=data_dir / 'pricebooks.csv',
            price_items_csv=data_dir / 'price_items.csv',
            markup_csv=Path(markup_csv) if markup_csv else None,
            default_currency=os.environ.get('BUDGET_ENGINE_CURRENCY', 'BRL'),
            order_number_prefix=os.environ.get('BUDGET_ENGINE_OS_PREFIX', 'OS-'),
            log_level=os.environ.get('BUDGET_ENGINE_LOG_LEVEL', 'INFO').upper(),
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings
