from typing import Literal, Optional

from pydantic import BaseModel, ValidationError

from models import BestWorkoutMetric


class SettingsSchema(BaseModel):
    local_db_path: str = "fitlog_local.db"
    remote_db_path: str = "fitlog_remote.db"
    provision_remote: bool = True
    default_metric: BestWorkoutMetric = BestWorkoutMetric.VOLUME
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    api_host: str = "127.0.0.1"
    api_port: int = 8000
    api_token: Optional[str] = None


def validate_settings(data: dict) -> SettingsSchema:
    try:
        return SettingsSchema(**data)
    except ValidationError as e:
        raise ValueError(str(e))
