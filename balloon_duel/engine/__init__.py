"""Moteur de l'arène : réserves, récompenses, spawn et machine à états du match."""

from . import rules  # re-export for convenience

__all__ = ["rules"]
