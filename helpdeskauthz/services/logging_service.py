# -*- coding: utf-8 -*-
"""Location: ./helpdeskauthz/services/logging_service.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Logging Service.
Configures the ``helpdeskauthz`` logger hierarchy once from settings and hands
out named loggers.
"""

# Standard
import logging

# First-Party
from helpdeskauthz.config import settings

ROOT_LOGGER_NAME = "helpdeskauthz"


class LoggingService:
    """Hands out loggers under the package logger.

    Examples:
        >>> service = LoggingService()
        >>> service.get_logger("helpdeskauthz.middleware").name
        'helpdeskauthz.middleware'
    """

    _configured = False

    def configure(self) -> None:
        """Attach a stream handler and level to the package logger, once."""
        if LoggingService._configured:
            return
        root = logging.getLogger(ROOT_LOGGER_NAME)
        if not root.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(settings.log_format))
            root.addHandler(handler)
        root.setLevel(settings.log_level)
        LoggingService._configured = True

    def get_logger(self, name: str) -> logging.Logger:
        """Return a configured logger.

        Args:
            name: Logger name, usually ``__name__``

        Returns:
            logging.Logger: The named logger
        """
        self.configure()
        return logging.getLogger(name)
