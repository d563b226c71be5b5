import logging
import sys
from pathlib import Path

from loguru import logger

from src.lessonhub.api.http.app_data import ApplicationDependencies
from src.lessonhub.core.security import BcryptPasswordHasher
from src.lessonhub.core.services import (
    CredentialVerifier,
    DbSessionService,
    JWKSCacheInMemory,
    JwksService,
    JwtCredentialSigner,
    JwtVerificationService,
)
from src.lessonhub.runtime.context import get_config


def configure_logging() -> None:
    main_config = get_config()
    cfg = main_config.logging
    env = main_config.app.environment

    logger.remove()

    fmt_plain = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
        "<level>{message}</level>"
    )
    is_json_file = cfg.format == "json"
    debug_tracebacks = env != "production"

    logger.add(
        sys.stderr,
        level=cfg.level,
        format=fmt_plain,
        colorize=True,
        backtrace=debug_tracebacks,
        diagnose=debug_tracebacks,
    )

    if cfg.file:
        path = Path(cfg.file)
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(path),
            level=cfg.level,
            format="{message}" if is_json_file else fmt_plain,
            serialize=is_json_file,
            rotation=f"{cfg.max_size_mb} MB",
            retention=cfg.backup_count,
            compression="zip",
            enqueue=True,
            backtrace=debug_tracebacks,
            diagnose=debug_tracebacks,
        )

    class InterceptHandler(logging.Handler):
        """Redirect standard 'logging' records to Loguru."""

        def emit(self, record: logging.LogRecord) -> None:
            try:
                level = logger.level(record.levelname).name
            except ValueError:
                level = record.levelno

            logger.opt(depth=2, exception=record.exc_info).bind(
                logger_name=record.name
            ).log(level, record.getMessage())

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    logger.info(f"Logging configured (level={cfg.level}, environment={env})")


def build_application_dependencies() -> ApplicationDependencies:
    """Create the process-wide services the HTTP dependencies hand out."""
    main_config = get_config()

    database_service = DbSessionService()
    database_service.create_all()

    jwks_cache = JWKSCacheInMemory(ttl=main_config.oidc.jwks_cache_ttl)
    jwks_service = JwksService(jwks_cache)
    jwt_verify_service = JwtVerificationService(jwks_service)
    credential_signer = JwtCredentialSigner()

    return ApplicationDependencies(
        database_service=database_service,
        jwks_cache=jwks_cache,
        jwks_service=jwks_service,
        jwt_verify_service=jwt_verify_service,
        credential_signer=credential_signer,
        credential_verifier=CredentialVerifier.default(
            jwt_verify_service, credential_signer
        ),
        password_hasher=BcryptPasswordHasher(),
    )
