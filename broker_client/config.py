import os
from dotenv import load_dotenv

load_dotenv()


class Settings:
    BROKER_TOKEN: str | None = os.getenv("BROKER_TOKEN")
    BROKER_SERVER_URL: str | None = os.getenv("BROKER_SERVER_URL")
    BROKER_HEALTHCHECK_PATH: str = os.getenv("BROKER_HEALTHCHECK_PATH") or "/healthcheck"
    BROKER_SYSTEMCHECK_PATH: str = os.getenv("BROKER_SYSTEMCHECK_PATH") or "/systemcheck"
    BROKER_STATUS_PATH: str = os.getenv("BROKER_STATUS_PATH") or "/status"
    BROKER_CLIENT_VALIDATION_URL: str | None = os.getenv("BROKER_CLIENT_VALIDATION_URL")
    BROKER_CLIENT_VALIDATION_METHOD: str = (
        os.getenv("BROKER_CLIENT_VALIDATION_METHOD") or "GET"
    )
    BROKER_CLIENT_VALIDATION_TIMEOUT_MS: int = int(
        os.getenv("BROKER_CLIENT_VALIDATION_TIMEOUT_MS", "5000")
    )
    BROKER_CLIENT_VALIDATION_AUTHORIZATION_HEADER: str | None = os.getenv(
        "BROKER_CLIENT_VALIDATION_AUTHORIZATION_HEADER"
    )
    BROKER_CLIENT_VALIDATION_BASIC_AUTH: str | None = os.getenv(
        "BROKER_CLIENT_VALIDATION_BASIC_AUTH"
    )
    CA_CERT: str | None = os.getenv("CA_CERT")

    def __init__(self, **overrides) -> None:
        for name, value in overrides.items():
            if not hasattr(type(self), name):
                raise AttributeError(f"Unknown setting: {name}")
            setattr(self, name, value)

    def secrets(self) -> dict[str, str]:
        """Configured secret values keyed by the env var they came from."""
        out: dict[str, str] = {}
        if self.BROKER_TOKEN:
            out["BROKER_TOKEN"] = self.BROKER_TOKEN
        if self.BROKER_CLIENT_VALIDATION_AUTHORIZATION_HEADER:
            out["BROKER_CLIENT_VALIDATION_AUTHORIZATION_HEADER"] = (
                self.BROKER_CLIENT_VALIDATION_AUTHORIZATION_HEADER
            )
        basic_auth = self.BROKER_CLIENT_VALIDATION_BASIC_AUTH
        if basic_auth:
            out["BROKER_CLIENT_VALIDATION_BASIC_AUTH"] = basic_auth
            _, sep, password = basic_auth.partition(":")
            if sep and password:
                out["BROKER_CLIENT_VALIDATION_BASIC_AUTH_PASSWORD"] = password
        return out


settings = Settings()
