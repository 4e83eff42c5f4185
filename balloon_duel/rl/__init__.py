"""Module RL du duel à ballons.

- features.py : encodage des observations (vitesse locale, boost, ballons)
  et décodage des actions continues/discrètes.
- policies.py : politiques baselines (immobile, aléatoire, poursuite).
- rating.py : classement ELO lu sur le signe des récompenses finales.

L'encodage est ego-centré : la vitesse est exprimée dans le repère local de
l'agent, ce qui rend les deux sièges du duel symétriques.

`self_play` et `gym_env` s'importent explicitement (ils dépendent de
`balloon_duel.sim`).
"""

from .features import OBSERVATION_SIZE, build_observation, decode_action
from .policies import AgentPolicy, ChaserPolicy, IdlePolicy, RandomPolicy
from .rating import EloTracker

__all__ = [
    "AgentPolicy",
    "ChaserPolicy",
    "IdlePolicy",
    "RandomPolicy",
    "EloTracker",
    "OBSERVATION_SIZE",
    "build_observation",
    "decode_action",
]
