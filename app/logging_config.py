import logging
import sys
from app.config import Settings


def configure_logging(settings: Settings):
    """
    Root logging setup shared by the API server and the setup script.
    Calling it again is a no-op once handlers exist.
    """
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else settings.log_level.upper(),
        format="%(asctime)s  %(levelname)-8s  %(name)s - %(message)s",
        stream=sys.stdout,
    )
