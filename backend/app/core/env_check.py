"""Pre-deploy check for the environment variables the service depends on."""

import logging
import os
import sys
from typing import Mapping

from backend.app.core.logging import configure_logging

logger = logging.getLogger(__name__)

REQUIRED_ENV_VARS = (
    "DATABASE_URL",
    "SECRET_KEY",
    "STRIPE_SECRET_KEY",
    "RESEND_API_KEY",
    "APP_URL",
)
OPTIONAL_ENV_VARS = {
    "CRON_API_KEY": "CRON_API_KEY is not set. Scheduled recurring invoice generation will reject every call.",
}


def check_environment(environ: Mapping[str, str] | None = None) -> tuple[list[str], list[str]]:
    env = os.environ if environ is None else environ
    errors = [f"Missing required environment variable: {name}" for name in REQUIRED_ENV_VARS if not env.get(name)]
    warnings = [message for name, message in OPTIONAL_ENV_VARS.items() if not env.get(name)]
    if env.get("SECRET_KEY") == "CHANGE_ME":
        warnings.append("SECRET_KEY is still the development default.")
    return errors, warnings


def main(environ: Mapping[str, str] | None = None) -> int:
    configure_logging()
    errors, warnings = check_environment(environ)
    for warning in warnings:
        logger.warning(warning)
    for error in errors:
        logger.error(error)
    if errors:
        logger.error("Set the required environment variables before starting the service.")
        return 1
    logger.info("Environment variables check passed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
