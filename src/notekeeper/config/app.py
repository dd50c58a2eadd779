from __future__ import annotations

import datetime
import os
from typing import TYPE_CHECKING, Literal, TypeAlias

from litestar.data_extractors import RequestExtractorField, ResponseExtractorField
from msgspec import field

from notekeeper.lib.config import Struct, get_secret, load_toml

if TYPE_CHECKING:
    from typing import Final

__all__ = ("APP_CONFIG", "Config")

CORSAllowedMethod: TypeAlias = Literal[
    "GET", "POST", "DELETE", "PATCH", "PUT", "HEAD", "TRACE", "OPTIONS", "*"
]


class ServerConfig(Struct):
    host: str = field(
        default_factory=lambda: "0.0.0.0" if os.getenv("IN_DOCKER") else "127.0.0.1"  # noqa: S104
    )
    port: int = field(default=8000)


class LoggingMiddlewareConfig(Struct):
    exclude: str = field(default=r"\A(?!x)x")
    exclude_opt_key: str = field(default="exclude_from_logging_middleware")
    include_compressed_body: bool = field(default=False)
    logger_name: str = field(default="litestar")
    request_headers_to_obfuscate: set[str] = field(
        default_factory=lambda: {"Authorization", "X-Session-ID"}
    )
    response_headers_to_obfuscate: set[str] = field(
        default_factory=lambda: {"Authorization"}
    )
    request_log_message: str = field(default="HTTP Request")
    response_log_message: str = field(default="HTTP Response")
    request_log_fields: list[RequestExtractorField] = field(
        default_factory=lambda: [
            "path",
            "method",
            "query",
            "path_params",
        ]
    )
    response_log_fields: list[ResponseExtractorField] = field(
        default_factory=lambda: ["status_code"]
    )


class LoggingConfig(Struct):
    level: int = field(default=20)
    asgi_access_level: int = field(default=30)
    asgi_error_level: int = field(default=20)
    file_logging: bool = field(default=True)
    middleware: LoggingMiddlewareConfig = field(default_factory=LoggingMiddlewareConfig)


class CORSConfig(Struct):
    allow_origins: list[str] = field(default_factory=lambda: ["*"])
    allow_methods: list[CORSAllowedMethod] = field(default_factory=lambda: ["*"])
    allow_headers: list[str] = field(default_factory=lambda: ["*"])
    allow_credentials: bool = field(default=False)
    allow_origin_regex: str | None = field(default=None)
    expose_headers: list[str] = field(default_factory=list[str])
    max_age: int = field(default=600)


class CompressionConfig(Struct):
    backend: Literal["gzip"] = field(default="gzip")
    minimum_size: int = field(default=500)
    gzip_compress_level: int = field(default=9)
    exclude: list[str] | None = field(default_factory=lambda: ["/docs"])
    exclude_opt_key: str = field(default="exclude_from_compression")


class AllowedHostsConfig(Struct):
    allowed_hosts: list[str] = field(default_factory=lambda: ["*"])
    exclude: list[str] | None = field(default=None)
    exclude_opt_key: str | None = field(default=None)
    www_redirect: bool = field(default=True)


class AccessTokenConfig(Struct):
    iss: str = field(default="notekeeper")
    aud: str = field(default="notekeeper")
    type: str = field(default="Bearer")
    algorithm: str = field(default="HS256")
    expiry_hours: int = field(default=24)

    @property
    def expiry(self) -> datetime.timedelta:
        return datetime.timedelta(hours=self.expiry_hours)

    @property
    def secret(self) -> str:
        return get_secret("access_token_secret.txt")


class SessionsConfig(Struct):
    header: str = field(default="X-Session-ID")
    max_idle_hours: int = field(default=24)
    sweep_interval_seconds: int = field(default=3600)

    @property
    def max_idle(self) -> datetime.timedelta:
        return datetime.timedelta(hours=self.max_idle_hours)

    @property
    def sweep_interval(self) -> datetime.timedelta:
        return datetime.timedelta(seconds=self.sweep_interval_seconds)


class RateLimitPolicyConfig(Struct):
    max_requests: int
    window_seconds: int


class RateLimitsConfig(Struct):
    signup: RateLimitPolicyConfig = field(
        default_factory=lambda: RateLimitPolicyConfig(max_requests=5, window_seconds=300)
    )
    login: RateLimitPolicyConfig = field(
        default_factory=lambda: RateLimitPolicyConfig(max_requests=10, window_seconds=300)
    )


class RateLimitMiddlewareConfig(Struct):
    exclude_opt_key: str | None = field(default="exclude_from_rate_limit")
    exclude_path_pattern: tuple[str, ...] | None = field(default=None)
    route_limits_key: str = field(default="rate_limits")
    limit_header_key: str = field(default="X-RateLimit-Limit")
    remaining_header_key: str = field(default="X-RateLimit-Remaining")
    reset_after_header_key: str = field(default="X-RateLimit-Reset-After")
    retry_after_header_key: str = field(default="Retry-After")
    # Peers (reverse proxies) whose X-Forwarded-For / X-Real-IP headers name the client.
    trusted_proxies: tuple[str, ...] = field(default=())


class CryptConfig(Struct):
    schemes: list[str] = field(default_factory=lambda: ["argon2"])


class Config(Struct):
    access_token: AccessTokenConfig = field(default_factory=AccessTokenConfig)
    sessions: SessionsConfig = field(default_factory=SessionsConfig)
    rate_limits: RateLimitsConfig = field(default_factory=RateLimitsConfig)
    crypt: CryptConfig = field(default_factory=CryptConfig)
    cors: CORSConfig = field(default_factory=CORSConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    compression: CompressionConfig = field(default_factory=CompressionConfig)
    allowed_hosts: AllowedHostsConfig = field(default_factory=AllowedHostsConfig)
    rate_limit_middleware: RateLimitMiddlewareConfig = field(
        default_factory=RateLimitMiddlewareConfig
    )
    loc: str = field(default="notekeeper.asgi:create_app")
    debug: bool = field(default=False)
    name: str = field(default="notekeeper")
    base_url: str = field(default="/api")
    authorization_header_key: str = field(default="Authorization")


APP_CONFIG: Final = load_toml(os.getenv("NOTEKEEPER_CONFIG", "config/app.toml"), Config)
"""The application configuration."""
