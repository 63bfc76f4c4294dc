"""
Centralized settings and path configuration for the workshop backend.
"""
import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional


MINIMUM_RATE_POLICIES = ('none', 'note', 'item')


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
    exports_dir: Path

    # Rate cards used to seed customers
    rate_cards_csv: Optional[Path] = None

    # How the customer's minimum rate affects totals: none, note or item
    minimum_rate_policy: str = 'none'

    # Delivery note numbers look like ALB-26-001
    note_number_prefix: str = 'ALB'

    log_level: str = 'INFO'

    # Load rate_cards_csv into the customer store when the API starts
    seed_on_startup: bool = False

    def __post_init__(self):
        if self.minimum_rate_policy not in MINIMUM_RATE_POLICIES:
            raise ValueError(
                f"Unknown minimum rate policy '{self.minimum_rate_policy}'. "
                f"Expected one of: {', '.join(MINIMUM_RATE_POLICIES)}"
            )

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> 'Settings':
        """Load settings from the project structure and EPOXIRON_* environment variables."""
        root = project_root or get_project_root()

        data_dir = Path(os.getenv('EPOXIRON_DATA_DIR', root / 'data'))

        return cls(
            project_root=root,
            data_dir=data_dir,
            exports_dir=data_dir / 'exports',
            rate_cards_csv=data_dir / 'rate_cards.csv',
            minimum_rate_policy=os.getenv('EPOXIRON_MINIMUM_RATE_POLICY', 'none').strip().lower(),
            note_number_prefix=os.getenv('EPOXIRON_NOTE_PREFIX', 'ALB'),
            log_level=os.getenv('EPOXIRON_LOG_LEVEL', 'INFO').upper(),
            seed_on_startup=os.getenv('EPOXIRON_SEED_ON_STARTUP', '').lower() in ('1', 'true', 'yes', 'on'),
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings
