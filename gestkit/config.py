from pathlib import Path
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Toolkit-wide defaults. Every field can be overridden with a GESTKIT_<FIELD>
    environment variable or a .env file.
    """
    model_config = SettingsConfigDict(env_prefix="GESTKIT_", env_file=".env", extra="ignore")

    random_seed: Optional[int] = None
    log_level: str = "INFO"
    log_format: Literal["json", "plain"] = "plain"
    training_log: bool = False
    data_dir: Optional[Path] = None
    default_null_rejection_coeff: float = 10.0


settings = Settings()
