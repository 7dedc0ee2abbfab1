# ---------------------------------------------------------
# assettrack/main.py
# Asset QR Tracker - per-asset QR codes behind admin + asset secrets
#
# Run: uvicorn assettrack.main:app --reload (from repo root)
#      or: assettrack (console script, binds HOST:PORT)
#
# - FastAPI + Jinja2 + JSON snapshot
# - /generate, /list, /delete, /change-password : admin registry management
# - /qr/...                                     : QR pages and PNG downloads
# - /asset/{name}?scan=true                     : scan landing page (secret challenge)
# - /api/asset/{name}                           : JSON record
#
# The app factory lives in application.py; this module is the
# process entry point and builds the one served instance.
# ---------------------------------------------------------

import logging

import uvicorn

try:
    from assettrack import config
    from assettrack.application import create_app
except ModuleNotFoundError:
    import config
    from application import create_app

logger = logging.getLogger(__name__)


def configure_logging(level: str = config.LOG_LEVEL) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


configure_logging()
config.log_config_summary()
app = create_app()


def run() -> None:
    logger.info(f"[SERVER] Listening on http://{config.HOST}:{config.PORT}")
    logger.info(f"[SERVER] Assets stored in: {config.DATA_FILE}")
    uvicorn.run(app, host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    run()
