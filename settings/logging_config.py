from __future__ import annotations

import logging
from logging.config import dictConfig

# Client libraries that log every frame or query at INFO
NOISY_LOGGERS = ("surrealdb", "websockets", "httpx", "passlib", "pwdlib")


def configure_logging(level: int | str = logging.INFO) -> None:
	"""Route root, uvicorn and library loggers to one console handler."""
	if isinstance(level, str):
		level = logging.getLevelName(level.upper())
	loggers = {
		"": {"handlers": ["console"], "level": level},
		"uvicorn": {"handlers": ["console"], "level": level, "propagate": False},
		"uvicorn.access": {"handlers": ["access"], "level": level, "propagate": False},
	}
	for name in NOISY_LOGGERS:
		loggers[name] = {"handlers": ["console"], "level": logging.WARNING, "propagate": False}
	dictConfig(
		{
			"version": 1,
			"disable_existing_loggers": False,
			"formatters": {
				"standard": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
				"access": {"format": "%(asctime)s ACCESS %(message)s"},
			},
			"handlers": {
				"console": {"class": "logging.StreamHandler", "formatter": "standard", "level": level},
				"access": {"class": "logging.StreamHandler", "formatter": "access", "level": level},
			},
			"loggers": loggers,
		}
	)
