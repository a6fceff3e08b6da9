import logging
import logging.config
import os
from datetime import datetime
from app.core.config import settings

def setup_logging():
    """Setup application logging configuration"""

    log_dir = settings.LOG_DIR
    current_date = datetime.now().strftime("%Y-%m-%d")

    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "level": settings.LOG_LEVEL,
            "formatter": "default",
            "stream": "ext://sys.stdout",
        },
    }
    root_handlers = ["console"]
    access_handlers = ["console"]
    audit_handlers = ["console"]

    if settings.LOG_TO_FILE:
        # Create logs directory if it doesn't exist
        for sub_dir in ("app", "access", "error", "audit"):
            os.makedirs(os.path.join(log_dir, sub_dir), exist_ok=True)

        handlers.update({
            "app_file": {
                "class": "logging.handlers.RotatingFileHandler",
                "level": settings.LOG_LEVEL,
                "formatter": "detailed",
                "filename": os.path.join(log_dir, "app", f"app-{current_date}.log"),
                "maxBytes": 10485760,  # 10MB
                "backupCount": 10,
            },
            "error_file": {
                "class": "logging.handlers.RotatingFileHandler",
                "level": "ERROR",
                "formatter": "detailed",
                "filename": os.path.join(log_dir, "error", f"error-{current_date}.log"),
                "maxBytes": 10485760,
                "backupCount": 10,
            },
            "access_file": {
                "class": "logging.handlers.RotatingFileHandler",
                "level": "INFO",
                "formatter": "access",
                "filename": os.path.join(log_dir, "access", f"access-{current_date}.log"),
                "maxBytes": 10485760,
                "backupCount": 10,
            },
            "audit_file": {
                "class": "logging.handlers.RotatingFileHandler",
                "level": "INFO",
                "formatter": "default",
                "filename": os.path.join(log_dir, "audit", f"audit-{current_date}.log"),
                "maxBytes": 10485760,
                "backupCount": 10,
            },
        })
        root_handlers = ["console", "app_file", "error_file"]
        access_handlers = ["access_file"]
        audit_handlers = ["audit_file", "console"]

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "detailed": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(module)s - %(funcName)s:%(lineno)d - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "access": {
                "format": "%(asctime)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": handlers,
        "loggers": {
            "": {  # Root logger
                "level": settings.LOG_LEVEL,
                "handlers": root_handlers,
                "propagate": False,
            },
            "app.audit": {
                "level": "INFO",
                "handlers": audit_handlers,
                "propagate": False,
            },
            "access": {
                "level": "INFO",
                "handlers": access_handlers,
                "propagate": False,
            },
            "uvicorn.access": {
                "level": "INFO",
                "handlers": access_handlers,
                "propagate": False,
            },
            "sqlalchemy.engine": {
                "level": "WARNING",  # Reduce DB query noise
                "handlers": root_handlers,
                "propagate": False,
            },
        },
    }

    logging.config.dictConfig(logging_config)

    logger = logging.getLogger(__name__)
    logger.info("Clinic inventory service - logging configured")
    logger.info(f"Log level: {settings.LOG_LEVEL}")
    if settings.LOG_TO_FILE:
        logger.info(f"Logs directory: {log_dir}")
