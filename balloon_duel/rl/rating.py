"""Classement ELO alimenté par les signaux de fin d'épisode.

Le résultat d'un épisode est lu sur le *signe* de la récompense cumulée finale
de chaque agent (positif = victoire, négatif = défaite, nul = match nul), comme
le font les trackers ELO des trainers self-play. C'est précisément ce signe que
l'imposition de signe de `engine.rewards` garantit.
"""

from __future__ import annotations

from typing import Dict, Sequence, Tuple

from balloon_duel.engine.outcome import EpisodeOutcome


def score_from_reward(final_reward: float) -> float:
    if final_reward > 0:
        return 1.0
    if final_reward < 0:
        return 0.0
    return 0.5


def expected_score(rating: float, opponent_rating: float) -> float:
    return 1.0 / (1.0 + 10.0 ** ((opponent_rating - rating) / 400.0))


class EloTracker:
    """Maintient un classement ELO par nom de politique."""

    def __init__(self, *, initial_rating: float = 1200.0, k_factor: float = 16.0) -> None:
        if k_factor <= 0:
            raise ValueError("k_factor doit être strictement positif")
        self._initial_rating = initial_rating
        self._k_factor = k_factor
        self._ratings: Dict[str, float] = {}
        self._games: Dict[str, int] = {}

    def rating(self, name: str) -> float:
        return self._ratings.get(name, self._initial_rating)

    def games(self, name: str) -> int:
        return self._games.get(name, 0)

    @property
    def ratings(self) -> Dict[str, float]:
        return dict(self._ratings)

    def update(self, name_a: str, name_b: str, score_a: float) -> Tuple[float, float]:
        """Met à jour les deux classements à partir du score de `name_a` (1, 0.5 ou 0)."""

        if name_a == name_b:
            raise ValueError("Une politique ne peut pas être classée contre elle-même")
        if not 0.0 <= score_a <= 1.0:
            raise ValueError(f"score_a doit être dans [0, 1] (reçu: {score_a})")

        rating_a = self.rating(name_a)
        rating_b = self.rating(name_b)
        delta = self._k_factor * (score_a - expected_score(rating_a, rating_b))

        self._ratings[name_a] = rating_a + delta
        self._ratings[name_b] = rating_b - delta
        self._games[name_a] = self.games(name_a) + 1
        self._games[name_b] = self.games(name_b) + 1
        return self._ratings[name_a], self._ratings[name_b]

    def record_outcome(self, outcome: EpisodeOutcome, policy_names: Sequence[str]) -> Tuple[float, float]:
        """Met à jour le classement à partir des récompenses finales de l'épisode."""

        if len(policy_names) != 2 or len(outcome.final_rewards) != 2:
            raise ValueError("Un duel oppose exactement deux politiques")
        score_a = score_from_reward(outcome.final_rewards[0])
        score_b = score_from_reward(outcome.final_rewards[1])
        # Scores incohérents (ex. deux signes positifs sans imposition) : moyenne.
        score = (score_a + (1.0 - score_b)) / 2.0
        return self.update(policy_names[0], policy_names[1], score)


__all__ = ["EloTracker", "expected_score", "score_from_reward"]
