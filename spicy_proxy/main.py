"""Start the proxy server.

Run as a module: `python -m spicy_proxy.main` (or the `spicy-proxy` script).
Settings come from the environment, with a `.env` at the project root loaded first.
"""
import argparse
import logging
import os
import sys

from dotenv import load_dotenv

from .app import create_app
from .config import Settings
from .errors import ConfigError, UpstreamError
from .record_store import RecordStore


logger = logging.getLogger("spicy_proxy")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str = "INFO"):
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Proxy prompts to Groq and an image search API")
    parser.add_argument("--host", default=settings.host, help="Interface to listen on")
    parser.add_argument("--port", type=int, default=settings.port, help="Port to listen on (default 3000)")
    parser.add_argument("--dry-run", dest="dry_run", action="store_true", help="Answer with placeholders, no upstream calls")
    parser.add_argument("--no-dry-run", dest="dry_run", action="store_false", help="Call the real upstream APIs")
    parser.add_argument("--init-db", dest="init_db", action="store_true", help="Create the records table and exit")
    parser.set_defaults(dry_run=settings.dry_run, init_db=False)
    return parser


def run(settings: Settings, init_db_only: bool = False) -> int:
    try:
        if init_db_only:
            RecordStore(settings.database_url).init_db()
            logger.info("Records table ready at %s", settings.database_url)
            return 0
        app = create_app(settings, logger=logging.getLogger("spicy_proxy.app"))
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        return 2
    except UpstreamError as exc:
        logger.error("Startup failed: %s", exc.describe())
        return 1

    if settings.dry_run:
        logger.warning("DRY RUN: upstream APIs will not be called")
    logger.info("Server is running on http://localhost:%s", settings.port)
    app.run(host=settings.host, port=settings.port, threaded=True)
    return 0


def main(argv=None) -> int:
    dotenv_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), ".env")
    load_dotenv(dotenv_path=dotenv_path)

    try:
        settings = Settings.from_env()
    except ConfigError as exc:
        configure_logging()
        logger.error("Configuration error: %s", exc)
        return 2

    configure_logging(settings.log_level)
    args = build_parser(settings).parse_args(argv)
    settings.host = args.host
    settings.port = args.port
    settings.dry_run = args.dry_run
    return run(settings, init_db_only=args.init_db)


if __name__ == "__main__":
    sys.exit(main())
