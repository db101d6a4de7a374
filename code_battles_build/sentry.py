"""Error reporting for build and dev-server runs."""

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_installed_version

import sentry_sdk

from code_battles_build.settings import CodeBattlesSettings

PACKAGE_NAME = "code-battles-build"


def init_sentry(settings: CodeBattlesSettings) -> bool:
    """Start Sentry when a DSN is configured.

    Tool failures and dev-time sync errors are captured with
    `sentry_sdk.capture_exception`, which is a no-op until this has run.

    Returns:
        True if Sentry was initialized
    """
    if not settings.sentry_dsn:
        return False

    try:
        release = f"{PACKAGE_NAME}@{get_installed_version(PACKAGE_NAME)}"
    except PackageNotFoundError:
        release = None

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        release=release,
    )
    return True
