import logging

from config import ENVIRONMENTS, Settings

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _check_port(name, port):
    if not 0 < port < 65536:
        return f"{name} must be between 1 and 65535 (got {port})"
    return None


def validate_env(settings: Settings) -> Settings:
    problems = []

    if settings.environment not in ENVIRONMENTS:
        problems.append(
            f"CMS_ENVIRONMENT must be one of {list(ENVIRONMENTS)} (got {settings.environment!r})"
        )
    if settings.log_level.upper() not in LOG_LEVELS:
        problems.append(f"CMS_LOG_LEVEL must be one of {list(LOG_LEVELS)}")

    problems += [
        p
        for p in (
            _check_port("CMS_ADMIN_PORT", settings.admin_port),
            _check_port("CMS_DEMOSITE_PORT", settings.demosite_port),
        )
        if p
    ]
    if settings.admin_port == settings.demosite_port:
        problems.append("CMS_ADMIN_PORT and CMS_DEMOSITE_PORT must differ")

    if problems:
        raise RuntimeError(f"Invalid environment configuration: {problems}")

    logging.getLogger(__name__).debug(
        "Environment validated", extra={"environment": settings.environment}
    )
    return settings
