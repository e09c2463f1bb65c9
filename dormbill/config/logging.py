"""
Logging configuration for the dormitory billing service.
Provides structured logging with different handlers and formatters.
"""

import logging
import logging.config
import os
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

from dormbill.config.settings import Settings, settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with additional fields"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]):
        super().add_fields(log_record, record, message_dict)

        log_record['timestamp'] = datetime.now(timezone.utc).isoformat()
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['environment'] = settings.ENVIRONMENT.value

        # Request / job context attached through `extra=`
        for key in ('request_id', 'user_id', 'tenant_id', 'bill_id', 'payment_id', 'job_id'):
            if hasattr(record, key):
                log_record[key] = getattr(record, key)


def build_logging_config(config: Settings) -> Dict[str, Any]:
    """Create the dictConfig mapping for the given settings."""
    console_formatter = 'json' if config.LOG_JSON else (
        'colored' if config.is_development() else 'standard'
    )
    handlers: Dict[str, Dict[str, Any]] = {
        'console': {
            'level': 'DEBUG' if config.DEBUG else 'INFO',
            'class': 'logging.StreamHandler',
            'formatter': console_formatter,
        },
    }

    if config.LOG_DIR:
        os.makedirs(config.LOG_DIR, exist_ok=True)
        handlers['file'] = {
            'level': 'INFO',
            'class': 'logging.handlers.RotatingFileHandler',
            'filename': os.path.join(config.LOG_DIR, 'app.log'),
            'maxBytes': 10485760,  # 10MB
            'backupCount': 10,
            'formatter': 'standard',
            'encoding': 'utf8',
        }
        handlers['json_file'] = {
            'level': 'INFO',
            'class': 'logging.handlers.RotatingFileHandler',
            'filename': os.path.join(config.LOG_DIR, 'app.json.log'),
            'maxBytes': 10485760,
            'backupCount': 10,
            'formatter': 'json',
            'encoding': 'utf8',
        }

    handler_names = list(handlers)

    return {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'standard': {
                'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
            },
            'json': {
                '()': CustomJsonFormatter,
                'format': '%(timestamp)s %(level)s %(logger)s %(message)s'
            },
            'colored': {
                '()': 'colorlog.ColoredFormatter',
                'format': '%(log_color)s%(asctime)s [%(levelname)s] %(name)s: %(message)s',
                'log_colors': {
                    'DEBUG': 'cyan',
                    'INFO': 'green',
                    'WARNING': 'yellow',
                    'ERROR': 'red',
                    'CRITICAL': 'red,bg_white',
                }
            }
        },
        'handlers': handlers,
        'loggers': {
            '': {
                'handlers': handler_names,
                'level': config.LOG_LEVEL,
            },
            'dormbill': {
                'handlers': handler_names,
                'level': config.LOG_LEVEL,
                'propagate': False
            },
            'sqlalchemy.engine': {
                'handlers': ['console'],
                'level': 'WARNING',
                'propagate': False
            },
            'celery': {
                'handlers': ['console'],
                'level': 'INFO',
                'propagate': False
            },
            'uvicorn.access': {
                'handlers': ['console'],
                'level': 'INFO',
                'propagate': False
            }
        }
    }


def setup_logging(config: Settings = settings) -> logging.Logger:
    """Configure application logging"""
    logging.config.dictConfig(build_logging_config(config))
    logger = logging.getLogger("dormbill")
    logger.info(f"Logging initialized with level: {config.LOG_LEVEL}")
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get logger with context"""
    return logging.getLogger(name)
