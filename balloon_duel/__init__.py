"""Arène de duel 1v1 à ballons pour l'entraînement self-play."""

import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"
