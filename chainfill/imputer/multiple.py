"""Multiple imputation: independent replicas of the iterative imputer."""
from __future__ import annotations

import logging

import pandas as pd
from joblib import Parallel, delayed
from sklearn.base import clone

from chainfill.exceptions import InvalidConfigurationError
from chainfill.imputer.iterative import IterativeImputer
from chainfill.imputer.types import ImputedReplica
from chainfill.shared import spawn_seeds

logger = logging.getLogger(__name__)


def _impute_replica(template: IterativeImputer, X: pd.DataFrame, index: int, seed: int) -> ImputedReplica:
    imputer = clone(template).set_params(random_state=seed)
    replica = imputer.fit(X).impute(X)
    replica.index = index
    replica.seed = seed
    return replica


class MultipleImputer:
    """Runs the iterative imputer ``n_replicas`` times on isolated copies.

    Replica seeds come from ``numpy.random.SeedSequence(random_state).spawn``,
    so the same ``random_state`` always reproduces the same replica set, and
    replicas may be computed in parallel without sharing state. The input
    frame is only read.

    Parameters
    ----------
    n_replicas : int, default=5
        Number of completed datasets (M).
    n_jobs : int | None, default=1
        Replicas computed in parallel (joblib semantics, -1 = all cores).
    random_state : int | None, default=None
        Root seed from which replica seeds are derived.
    sample_posterior : bool, default=True
        Forwarded to :class:`IterativeImputer`. Without it, replicas only
        differ through the model seeds.
    **imputer_params
        Any other :class:`IterativeImputer` parameter.

    Example:
        >>> replicas = MultipleImputer(n_replicas=5, random_state=0, max_iter=5).impute(df)
        >>> pooled = fit_pooled(replicas, target='price')
    """

    def __init__(
        self,
        n_replicas: int = 5,
        n_jobs: int | None = 1,
        random_state: int | None = None,
        sample_posterior: bool = True,
        **imputer_params,
    ):
        if n_replicas < 1:
            raise InvalidConfigurationError(f"n_replicas must be >= 1, got {n_replicas}")

        self.n_replicas = n_replicas
        self.n_jobs = n_jobs
        self.random_state = random_state
        self.template = IterativeImputer(sample_posterior=sample_posterior, **imputer_params)
        self.template._validate_params()

    def replica_seeds(self) -> list[int]:
        return spawn_seeds(self.random_state, self.n_replicas)

    def impute(self, X: pd.DataFrame) -> list[ImputedReplica]:
        """Produce ``n_replicas`` completed copies of ``X``, ordered by index."""
        seeds = self.replica_seeds()
        logger.info("Imputing %d replicas (n_jobs=%s)", self.n_replicas, self.n_jobs)

        replicas = Parallel(n_jobs=self.n_jobs)(
            delayed(_impute_replica)(self.template, X, i, seed)
            for i, seed in enumerate(seeds)
        )
        return list(replicas)
