from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from tripvoucher.models.constants import DEPARTMENTS


class Settings(BaseSettings):
    """Application settings loaded from environment with defaults.

    Environment variable mapping follows pydantic's rules (e.g., APP_NAME, DEBUG,
    DATA_DIR, DB_FILENAME, FUEL_RATE, ALLOW_EMPTY_SUBMISSION, JWT_SECRET).
    """

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Basic app metadata
    app_name: str = "Travel Voucher Tracker"
    debug: bool = False
    version: str = "0.1.0"

    # Data & persistence
    data_dir: Path = Path("data")
    db_filename: str = "vouchers.sqlite3"
    db_path: Optional[Path] = None  # derived if not provided
    db_busy_timeout_seconds: float = 5.0

    # Expense rules
    fuel_rate: Decimal = Decimal("3.5")  # currency units per km

    # Voucher lifecycle
    allow_empty_submission: bool = False

    # Profiles provisioned on first login get this department
    default_department: str = "Operations"

    # Identity provider (HS256 access tokens signed with the project secret)
    jwt_secret: str = "change-me"
    jwt_audience: Optional[str] = "authenticated"
    jwt_algorithms: List[str] = ["HS256"]

    def init_post_load(self) -> None:
        """Finalize derived fields and ensure directories exist."""
        if self.db_path is None:
            self.db_path = self.data_dir / self.db_filename
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        if self.fuel_rate <= 0:
            raise ValueError(f"fuel_rate must be positive, got {self.fuel_rate}")
        if self.default_department not in DEPARTMENTS:
            raise ValueError(
                f"Unsupported default_department '{self.default_department}'. Allowed: {sorted(DEPARTMENTS)}"
            )


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    settings.init_post_load()
    return settings
