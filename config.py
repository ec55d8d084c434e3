import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_CASES_PATH = "cases.json"
DEFAULT_WORKSHEET = "Responses"
DEFAULT_LOG_TIMEOUT_SEC = 10.0

CALIBRATION_TEXT = """AI imaging systems can be confidently wrong.
Confidence reflects the model's internal certainty, not ground truth.
Treat confidence as one signal among many."""


@dataclass(frozen=True)
class StudySettings:
    log_endpoint: Optional[str] = None
    log_timeout_sec: float = DEFAULT_LOG_TIMEOUT_SEC
    sheet_url: Optional[str] = None
    sheet_worksheet: str = DEFAULT_WORKSHEET
    cases_path: str = DEFAULT_CASES_PATH
    calibration_text: str = CALIBRATION_TEXT


def _blank_to_none(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def load_settings(secrets: Optional[Mapping] = None, environ: Optional[Mapping] = None) -> StudySettings:
    """Build settings from a secrets mapping (``st.secrets``) and the environment.

    Environment variables win over secrets so a deployment can redirect
    logging without editing ``secrets.toml``.
    """
    secrets = secrets or {}
    environ = os.environ if environ is None else environ

    log_cfg = secrets.get("logging", {})
    sheet_cfg = secrets.get("gsheet", {})
    study_cfg = secrets.get("study", {})

    endpoint = _blank_to_none(environ.get("RADAI_LOG_ENDPOINT", log_cfg.get("endpoint")))
    sheet_url = _blank_to_none(environ.get("RADAI_SHEET_URL", sheet_cfg.get("url")))
    cases_path = _blank_to_none(environ.get("RADAI_CASES_PATH", study_cfg.get("cases_path")))

    timeout = environ.get("RADAI_LOG_TIMEOUT", log_cfg.get("timeout_sec", DEFAULT_LOG_TIMEOUT_SEC))
    try:
        timeout = float(timeout)
    except (TypeError, ValueError):
        raise ValueError(f"Logging timeout must be a number, got {timeout!r}") from None
    if timeout <= 0:
        raise ValueError(f"Logging timeout must be positive, got {timeout}")

    return StudySettings(
        log_endpoint=endpoint,
        log_timeout_sec=timeout,
        sheet_url=sheet_url,
        sheet_worksheet=_blank_to_none(sheet_cfg.get("worksheet")) or DEFAULT_WORKSHEET,
        cases_path=cases_path or DEFAULT_CASES_PATH,
        calibration_text=study_cfg.get("calibration_text") or CALIBRATION_TEXT,
    )
