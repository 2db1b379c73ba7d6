import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    db_path: Path
    storage_key: str = "budget_tracker"
    log_level: str = "INFO"


def get_settings() -> Settings:
    data_dir = Path(os.environ.get("BUDGET_DATA_DIR") or Path.cwd() / ".data")
    return Settings(
        data_dir=data_dir,
        db_path=data_dir / "budget.sqlite",
        storage_key=os.environ.get("BUDGET_STORAGE_KEY", "budget_tracker"),
        log_level=os.environ.get("BUDGET_LOG_LEVEL", "INFO").upper(),
    )
