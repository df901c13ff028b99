"""
Configuration du logging (console colorée)
"""

import logging
from typing import Optional

import colorlog

from config import LOG_LEVEL

def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """Configure le logger racine une seule fois, avec une sortie console colorée"""
    level = getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Évite les handlers en double si appelé plusieurs fois
    if root_logger.handlers:
        root_logger.handlers.clear()

    console_handler = colorlog.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(colorlog.ColoredFormatter(
        '%(log_color)s%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        log_colors={
            'DEBUG':    'cyan',
            'INFO':     'green',
            'WARNING':  'yellow',
            'ERROR':    'red',
            'CRITICAL': 'red,bg_white',
        }
    ))
    root_logger.addHandler(console_handler)

    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    return root_logger
