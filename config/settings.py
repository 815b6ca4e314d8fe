"""
Connector settings loaded from environment variables.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Bitbucket Server OAuth1 ──────────────────────────────────────────
    bitbucket_url: str = ""                  # e.g. https://bitbucket.example.com
    bitbucket_consumer_key: str = ""         # consumer key of the application link
    bitbucket_private_key: str = ""          # PEM, inline
    bitbucket_private_key_file: str = ""     # PEM, on disk (used when inline key is empty)
    bitbucket_callback_url: str = ""         # empty → out-of-band
    bitbucket_disable_status: bool = False

    # ── Platform ─────────────────────────────────────────────────────────
    api_url: str = "http://localhost:8081"
    ui_url: str = "http://localhost:8080"

    # ── OAuth handshake ──────────────────────────────────────────────────
    request_token_ttl_seconds: int = 600
    http_timeout_seconds: float = 30.0

    model_config = {
        "env_file": ".env",
        "case_sensitive": False,
    }

    def load_bitbucket_private_key(self) -> bytes:
        """
        Return the PEM bytes of the consumer private key.

        The inline value wins over the file.  Returns ``b""`` when neither
        is set.
        """
        if self.bitbucket_private_key:
            return self.bitbucket_private_key.encode()
        if self.bitbucket_private_key_file:
            with open(self.bitbucket_private_key_file, "rb") as fh:
                return fh.read()
        return b""


config = Settings()
