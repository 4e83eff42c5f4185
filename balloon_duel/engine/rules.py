"""Valeurs par défaut de l'arène 1v1.

Ce module expose les constantes utilisées par `engine.config` quand aucune
valeur n'est injectée. Les magnitudes de récompense sont des paramètres
réglables, pas des vérités : les variantes d'entraînement les surchargent.
"""

# Épisode
MAX_ENVIRONMENT_STEPS: int = 2000
FIXED_DELTA_TIME: float = 0.02
WIN_FLASH_SECONDS: float = 1.0

# Ballons
TOKEN_CAPACITY: int = 2

# Récompenses terminales (self-play)
WIN_REWARD: float = 1.0
LOSE_REWARD: float = -1.0
ENFORCE_OUTCOME_SIGN: bool = True
MIN_WINNER_FINAL_REWARD: float = 0.1
MAX_LOSER_FINAL_REWARD: float = -0.1

# Récompenses de shaping
TOKEN_POP_REWARD: float = 0.1
TOKEN_POP_PENALTY: float = -0.1
TOKEN_RESTORE_REWARD: float = 0.0
ELIMINATION_PENALTY: float = 0.0
STEP_PENALTY: float = -0.00005
STEP_PENALTY_CAP: float = -0.2
WALL_CONTACT_PENALTY: float = -0.001
WALL_CONTACT_PENALTY_CAP: float = -0.1

# Géométrie de spawn
ARENA_HALF_SIZE: float = 10.0
WALL_PADDING: float = 0.5
AGENT_RADIUS: float = 1.0
AGENT_HALF_HEIGHT: float = 0.5
SEPARATION_MARGIN: float = 1.0
SPAWN_AREA_FRACTION: float = 1.0
SPAWN_TRIES: int = 50
FLOOR_TOP_Y: float = 0.0
SKIN_CLEARANCE: float = 0.02
VERTICAL_RESOLVE_TRIES: int = 5
VERTICAL_RESOLVE_STEP: float = 0.1

# Déplacement et boost
MOVE_SPEED: float = 10.0
TURN_SPEED: float = 200.0
BOOST_MULTIPLIER: float = 2.0
BOOST_DURATION: float = 2.0
BOOST_COOLDOWN: float = 5.0

# Pickup de ballon
HEAL_REWARD: float = 0.075
PICKUP_ZERO_SUM: bool = True
PICKUP_RESPAWN_SECONDS: float = 10.0
PICKUP_AREA_HALF_SIZE: float = 5.0
PICKUP_RADIUS: float = 0.5

__all__ = [
    "MAX_ENVIRONMENT_STEPS",
    "FIXED_DELTA_TIME",
    "WIN_FLASH_SECONDS",
    "TOKEN_CAPACITY",
    "WIN_REWARD",
    "LOSE_REWARD",
    "ENFORCE_OUTCOME_SIGN",
    "MIN_WINNER_FINAL_REWARD",
    "MAX_LOSER_FINAL_REWARD",
    "TOKEN_POP_REWARD",
    "TOKEN_POP_PENALTY",
    "TOKEN_RESTORE_REWARD",
    "ELIMINATION_PENALTY",
    "STEP_PENALTY",
    "STEP_PENALTY_CAP",
    "WALL_CONTACT_PENALTY",
    "WALL_CONTACT_PENALTY_CAP",
    "ARENA_HALF_SIZE",
    "WALL_PADDING",
    "AGENT_RADIUS",
    "AGENT_HALF_HEIGHT",
    "SEPARATION_MARGIN",
    "SPAWN_AREA_FRACTION",
    "SPAWN_TRIES",
    "FLOOR_TOP_Y",
    "SKIN_CLEARANCE",
    "VERTICAL_RESOLVE_TRIES",
    "VERTICAL_RESOLVE_STEP",
    "MOVE_SPEED",
    "TURN_SPEED",
    "BOOST_MULTIPLIER",
    "BOOST_DURATION",
    "BOOST_COOLDOWN",
    "HEAL_REWARD",
    "PICKUP_ZERO_SUM",
    "PICKUP_RESPAWN_SECONDS",
    "PICKUP_AREA_HALF_SIZE",
    "PICKUP_RADIUS",
]
