#!/usr/bin/env python3
"""Lance une série de duels self-play entre politiques baselines.

Le script oppose `ChaserPolicy` à `RandomPolicy` en alternant les sièges,
alimente un classement ELO à partir du signe des récompenses finales et
affiche un résumé (victoires, nuls, durée moyenne des épisodes).
"""

from __future__ import annotations

import logging
import sys
import time

from balloon_duel.rl.policies import ChaserPolicy, RandomPolicy
from balloon_duel.rl.rating import EloTracker
from balloon_duel.rl.self_play import RolloutBuffer, SelfPlayRunner

NUM_EPISODES = 20
BASE_SEED = 2024
MAX_STEPS = 2500


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    rating = EloTracker()
    runner = SelfPlayRunner(
        policy_factory=lambda agent_id: RandomPolicy(seed=agent_id),
        buffer=RolloutBuffer(capacity=NUM_EPISODES),
        rating=rating,
    )

    print(f"Lancement de {NUM_EPISODES} duels self-play...")
    start_time = time.time()
    wins = {"Chaser": 0, "Random": 0}
    draws = 0
    total_steps = 0

    for index in range(NUM_EPISODES):
        chaser, random_policy = ChaserPolicy(), RandomPolicy(seed=BASE_SEED + index)
        # Alterner les sièges pour ne pas favoriser l'agent 0.
        policies = (chaser, random_policy) if index % 2 == 0 else (random_policy, chaser)
        episode = runner.run_episode(seed=BASE_SEED + index, max_steps=MAX_STEPS, policies=policies)
        total_steps += episode.steps

        if episode.winner_id is None:
            draws += 1
        else:
            wins[episode.policy_names[episode.winner_id]] += 1

    elapsed_time = time.time() - start_time

    print("\nRésultats:")
    print(f"  Victoires Chaser: {wins['Chaser']}")
    print(f"  Victoires Random: {wins['Random']}")
    print(f"  Nuls: {draws}")
    print(f"  Pas moyens par épisode: {total_steps / NUM_EPISODES:.1f}")
    print(f"  Temps total: {elapsed_time:.2f}s")
    print("\nClassement ELO:")
    for name, value in sorted(rating.ratings.items(), key=lambda item: -item[1]):
        print(f"  {name}: {value:.1f} ({rating.games(name)} parties)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
