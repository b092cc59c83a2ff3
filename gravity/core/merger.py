"""Cluster merging — collapses each overlap cluster into one body."""

from __future__ import annotations

import itertools
import math
from enum import Enum
from typing import Callable, Optional

import structlog

from gravity.core.body import Body
from gravity.core.grouping import Cluster

logger = structlog.get_logger()


class MergePolicy(str, Enum):
    """How position and velocity of a merged body are combined.

    MEAN averages members by count. It does not conserve momentum but is
    the default behavior. MASS_WEIGHTED uses the center of mass and the
    momentum-conserving velocity.
    """

    MEAN = "mean"
    MASS_WEIGHTED = "mass_weighted"


class Merger:
    """Replaces every multi-member cluster with a single synthesized body.

    Total mass is conserved (exactly for integer masses). Singletons pass
    through as the same Body object.
    """

    def __init__(
        self,
        policy: MergePolicy = MergePolicy.MEAN,
        id_source: Optional[Callable[[], int]] = None,
    ) -> None:
        """Initialize the merger.

        Args:
            policy: How to combine member positions and velocities.
            id_source: Callable returning a fresh body id for each merged body.
                Defaults to a private counter.
        """
        self.policy = MergePolicy(policy)
        if id_source is None:
            id_source = itertools.count(1).__next__
        self._next_id = id_source

    def combine(self, members: list[Body]) -> Body:
        """Synthesize one body from two or more members.

        Mass is the correctly rounded sum of member masses, so it does not
        depend on member order. Integer-valued masses are conserved exactly;
        for arbitrary floats the total can still differ in the last bit from
        summing the original bodies one by one.
        """
        mass = math.fsum(b.mass for b in members)

        if self.policy is MergePolicy.MASS_WEIGHTED:
            weights = [b.mass / mass for b in members]
        else:
            weights = [1.0 / len(members)] * len(members)

        return Body(
            id=self._next_id(),
            x=sum(w * b.x for w, b in zip(weights, members)),
            y=sum(w * b.y for w, b in zip(weights, members)),
            vx=sum(w * b.vx for w, b in zip(weights, members)),
            vy=sum(w * b.vy for w, b in zip(weights, members)),
            mass=mass,
        )

    def merge(self, bodies: list[Body], clusters: list[Cluster]) -> list[Body]:
        """Build the body list for the next tick.

        Args:
            bodies: Current body collection (not modified).
            clusters: Partition of ``bodies`` indices, as produced by OverlapGrouper.

        Returns:
            Untouched singletons plus one body per multi-member cluster, each
            placed where the cluster's lowest-index member was.
        """
        replacement: dict[int, Body] = {}
        absorbed: set[int] = set()

        for cluster in clusters:
            if len(cluster) < 2:
                continue
            members = [bodies[i] for i in cluster]
            merged = self.combine(members)
            first = min(cluster)
            replacement[first] = merged
            absorbed.update(i for i in cluster if i != first)

            logger.debug(
                "cluster_merged",
                member_ids=[b.id for b in members],
                merged_id=merged.id,
                mass=merged.mass,
                policy=self.policy.value,
            )

        if not replacement:
            return list(bodies)

        result: list[Body] = []
        for index, body in enumerate(bodies):
            if index in absorbed:
                continue
            result.append(replacement.get(index, body))
        return result
