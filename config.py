import os
from functools import lru_cache
from pathlib import Path


DEMO_USER_ID = "demo-user-123"


class Settings:
    def __init__(
        self,
        data_dir: Path,
        database_url: str,
        timezone: str,
        demo_user_id: str,
        local_owner_ids: frozenset[str],
        remote_watch_secs: float,
    ) -> None:
        self.data_dir = data_dir
        self.database_url = database_url
        self.timezone = timezone
        self.demo_user_id = demo_user_id
        self.local_owner_ids = local_owner_ids
        self.remote_watch_secs = remote_watch_secs


def _ensure_data_dir() -> Path:
    root = Path(os.getenv("EDITIQ_DATA_DIR", "./data")).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


def _split_owner_ids(raw: str) -> frozenset[str]:
    return frozenset(part.strip() for part in raw.split(",") if part.strip())


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    data_dir = _ensure_data_dir()
    default_db = data_dir / "editiq.db"
    database_url = os.getenv("EDITIQ_DATABASE_URL", f"sqlite:///{default_db}")
    timezone = os.getenv("EDITIQ_TIMEZONE", "Asia/Kolkata")
    demo_user_id = os.getenv("EDITIQ_DEMO_USER_ID", DEMO_USER_ID)
    local_owner_ids = _split_owner_ids(os.getenv("EDITIQ_LOCAL_OWNERS", ""))
    remote_watch_secs = float(os.getenv("EDITIQ_REMOTE_WATCH_SECS", "5"))
    return Settings(
        data_dir=data_dir,
        database_url=database_url,
        timezone=timezone,
        demo_user_id=demo_user_id,
        local_owner_ids=local_owner_ids | {demo_user_id},
        remote_watch_secs=remote_watch_secs,
    )
