"""
Application configuration loaded from environment variables.
Uses pydantic-settings for typed, validated config.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Every tunable of the blog service. Override with BLOG_* env vars."""

    model_config = SettingsConfigDict(
        env_prefix="BLOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── MongoDB ───────────────────────────────────────────────
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_database: str = "mydb"
    mongodb_collection: str = "blog"
    mongodb_connect_timeout_seconds: float = 20.0

    # ── gRPC ──────────────────────────────────────────────────
    grpc_address: str = "0.0.0.0:50051"
    grpc_reflection_enabled: bool = True
    grpc_shutdown_grace_seconds: float | None = None  # None = stop immediately

    # ── HTTPS (static UI + gRPC-Web) ──────────────────────────
    https_host: str = "localhost"
    https_port: int = 8080
    static_dir: str = "ui/build"
    https_timeout_seconds: int = 15  # idle keep-alive timeout

    # ── TLS ───────────────────────────────────────────────────
    tls_enabled: bool = True
    tls_cert_file: str = "ssl/server.crt"
    tls_key_file: str = "ssl/server.key"

    # ── Blog Service ──────────────────────────────────────────
    list_blog_delay_seconds: float = 1.0  # ListBlog throttle, 0 disables it

    # ── App ───────────────────────────────────────────────────
    app_name: str = "grpc-blog"
    log_level: str = "INFO"


# Import this wherever config is needed
settings = Settings()
