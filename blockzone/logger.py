import logging
import os
import sys

LOGGER_NAME = 'blockzone'


def get_logger(name: str = None) -> logging.Logger:
    """Return the service logger, configuring the root handler once"""
    root = logging.getLogger(LOGGER_NAME)

    if not root.handlers:
        level = getattr(logging, os.getenv('LOG_LEVEL', 'INFO').upper(), logging.INFO)
        root.setLevel(level)

        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    if name and name != LOGGER_NAME:
        if not name.startswith(LOGGER_NAME + '.'):
            name = f'{LOGGER_NAME}.{name}'
        return logging.getLogger(name)
    return root
