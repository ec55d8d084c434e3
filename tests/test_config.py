import pytest

from config import CALIBRATION_TEXT, DEFAULT_CASES_PATH, load_settings


class TestLoadSettings:
    def test_defaults(self):
        s = load_settings({}, environ={})
        assert s.log_endpoint is None
        assert s.sheet_url is None
        assert s.log_timeout_sec == 10.0
        assert s.cases_path == DEFAULT_CASES_PATH
        assert s.sheet_worksheet == "Responses"
        assert s.calibration_text == CALIBRATION_TEXT

    def test_from_secrets(self):
        secrets = {
            "logging": {"endpoint": "https://hooks.example.org/exec", "timeout_sec": 4},
            "gsheet": {"url": "https://docs.google.com/spreadsheets/d/x", "worksheet": "Trials"},
            "study": {"cases_path": "pilot.json", "calibration_text": "Be careful."},
        }
        s = load_settings(secrets, environ={})
        assert s.log_endpoint == "https://hooks.example.org/exec"
        assert s.log_timeout_sec == 4.0
        assert s.sheet_url == "https://docs.google.com/spreadsheets/d/x"
        assert s.sheet_worksheet == "Trials"
        assert s.cases_path == "pilot.json"
        assert s.calibration_text == "Be careful."

    def test_environment_wins(self):
        secrets = {"logging": {"endpoint": "https://from-secrets"}}
        environ = {"RADAI_LOG_ENDPOINT": "https://from-env", "RADAI_CASES_PATH": "env.json",
                   "RADAI_LOG_TIMEOUT": "2.5"}
        s = load_settings(secrets, environ=environ)
        assert s.log_endpoint == "https://from-env"
        assert s.cases_path == "env.json"
        assert s.log_timeout_sec == 2.5

    def test_blank_endpoint_disables_logging(self):
        s = load_settings({"logging": {"endpoint": "   "}}, environ={})
        assert s.log_endpoint is None

    def test_blank_env_overrides_secret(self):
        s = load_settings({"logging": {"endpoint": "https://x"}}, environ={"RADAI_LOG_ENDPOINT": ""})
        assert s.log_endpoint is None

    @pytest.mark.parametrize("timeout", ["soon", 0, -3])
    def test_bad_timeout(self, timeout):
        with pytest.raises(ValueError):
            load_settings({"logging": {"timeout_sec": timeout}}, environ={})
