"""Application settings and validation."""

import os
from pathlib import Path

BASE = Path(__file__).resolve().parent.parent
PASSWORD_SCHEMES = ("plaintext", "pbkdf2_sha256")


class Settings:
    ENV: str
    DATABASE_URL: str
    LOG_LEVEL: str
    JWT_SECRET: str
    JWT_ALGORITHM: str
    JWT_EXPIRE_MINUTES: int
    PASSWORD_SCHEME: str
    ENFORCE_OWNERSHIP: bool
    ALLOW_INSECURE_JWT: bool
    ALLOW_PLAINTEXT_PASSWORDS: bool
    ALLOW_DEV_CORS: bool

    def __init__(self):
        self.ENV = os.getenv("ENV", "dev").lower()
        self.DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE / 'app.db'}")
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.JWT_SECRET = os.getenv("JWT_SECRET", "change_me_for_prod")
        self.JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
        self.JWT_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", str(24 * 60)))
        # plaintext keeps stored passwords byte-identical to what users submitted
        self.PASSWORD_SCHEME = os.getenv("PASSWORD_SCHEME", "plaintext").lower()
        self.ENFORCE_OWNERSHIP = os.getenv("ENFORCE_OWNERSHIP", "false").lower() == "true"
        self.ALLOW_INSECURE_JWT = os.getenv("ALLOW_INSECURE_JWT", "false").lower() == "true"
        self.ALLOW_PLAINTEXT_PASSWORDS = os.getenv("ALLOW_PLAINTEXT_PASSWORDS", "false").lower() == "true"
        self.ALLOW_DEV_CORS = os.getenv("ALLOW_DEV_CORS", "true").lower() == "true"
        self._validate()

    def _validate(self):
        if self.PASSWORD_SCHEME not in PASSWORD_SCHEMES:
            raise RuntimeError(f"PASSWORD_SCHEME must be one of {', '.join(PASSWORD_SCHEMES)}")
        if self.JWT_EXPIRE_MINUTES <= 0:
            raise RuntimeError("JWT_EXPIRE_MINUTES must be positive")
        if self.ENV == "dev":
            return
        if not self.ALLOW_INSECURE_JWT and self.JWT_SECRET == "change_me_for_prod":
            raise RuntimeError("JWT_SECRET must be set to a non-default value in non-dev environments")
        if not self.ALLOW_PLAINTEXT_PASSWORDS and self.PASSWORD_SCHEME == "plaintext":
            raise RuntimeError("PASSWORD_SCHEME=plaintext requires ALLOW_PLAINTEXT_PASSWORDS=true outside dev")


settings = Settings()
