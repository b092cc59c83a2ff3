"""Unit tests for the cluster Merger."""

from __future__ import annotations

import math

import pytest

from gravity.core.body import Body
from gravity.core.merger import MergePolicy, Merger


def make_body(body_id: int, x: float, vx: float = 0.0, mass: float = 1.0) -> Body:
    """Helper to create a body on the x axis."""
    return Body(id=body_id, x=x, y=0.0, vx=vx, vy=0.0, mass=mass)


@pytest.fixture
def merger() -> Merger:
    """Create a merger with predictable ids."""
    ids = iter(range(100, 200))
    return Merger(id_source=lambda: next(ids))


def test_default_policy_is_mean():
    """Test that count averaging is the default."""
    assert Merger().policy is MergePolicy.MEAN


def test_policy_accepts_string():
    """Test that a policy can be given by value."""
    assert Merger("mass_weighted").policy is MergePolicy.MASS_WEIGHTED


def test_combine_mean_averages_by_count(merger: Merger):
    """Test that position and velocity are simple means, ignoring mass."""
    light = make_body(1, x=0.0, vx=0.0, mass=1.0)
    heavy = make_body(2, x=4.0, vx=2.0, mass=3.0)

    merged = merger.combine([light, heavy])

    assert merged.mass == 4.0
    assert merged.position == (2.0, 0.0)
    assert merged.velocity == (1.0, 0.0)
    assert merged.id == 100


def test_combine_mass_weighted_conserves_momentum():
    """Test the center-of-mass alternative."""
    merger = Merger(MergePolicy.MASS_WEIGHTED)
    light = make_body(1, x=0.0, vx=0.0, mass=1.0)
    heavy = make_body(2, x=4.0, vx=2.0, mass=3.0)

    merged = merger.combine([light, heavy])

    assert merged.mass == 4.0
    assert merged.x == pytest.approx(3.0)
    assert merged.vx == pytest.approx(1.5)
    assert merged.mass * merged.vx == pytest.approx(light.mass * light.vx + heavy.mass * heavy.vx)


def test_combine_three_members(merger: Merger):
    """Test averaging over more than two members."""
    bodies = [make_body(i, x=float(3 * i), mass=float(i + 1)) for i in range(3)]

    merged = merger.combine(bodies)

    assert merged.mass == 6.0
    assert merged.x == pytest.approx(3.0)


def test_merged_body_starts_with_clear_accumulator(merger: Merger):
    """Test that synthesized bodies carry no leftover acceleration."""
    a = make_body(1, x=0.0)
    a.add_force(5.0, 5.0)
    b = make_body(2, x=1.0)

    merged = merger.combine([a, b])

    assert merged.accumulated_acceleration == (0.0, 0.0)


def test_merge_passes_singletons_through(merger: Merger):
    """Test that singleton clusters keep the very same body object."""
    bodies = [make_body(1, x=0.0), make_body(2, x=10.0)]

    result = merger.merge(bodies, [[0], [1]])

    assert result[0] is bodies[0]
    assert result[1] is bodies[1]
    assert result is not bodies


def test_merge_places_result_at_first_member(merger: Merger):
    """Test output ordering: merged body takes its first member's slot."""
    a = make_body(1, x=0.0, mass=2.0)
    b = make_body(2, x=50.0, mass=5.0)
    c = make_body(3, x=1.0, mass=3.0)

    result = merger.merge([a, b, c], [[0, 2], [1]])

    assert len(result) == 2
    assert result[0].id == 100
    assert result[0].mass == 5.0
    assert result[1] is b


def test_merge_conserves_total_mass(merger: Merger):
    """Test that the merge step preserves the sum of masses exactly."""
    bodies = [make_body(i, x=float(i), mass=float(i + 1)) for i in range(7)]
    clusters = [[0, 1, 2], [3], [4, 5], [6]]

    result = merger.merge(bodies, clusters)

    assert len(result) == 4
    assert sum(b.mass for b in result) == sum(b.mass for b in bodies)


def test_merge_never_reuses_member_ids(merger: Merger):
    """Test that no identity survives a merge."""
    bodies = [make_body(1, x=0.0), make_body(2, x=1.0)]

    result = merger.merge(bodies, [[0, 1]])

    assert [b.id for b in result] == [100]


def test_merge_leaves_input_untouched(merger: Merger):
    """Test that the input list is not modified."""
    bodies = [make_body(1, x=0.0), make_body(2, x=1.0), make_body(3, x=9.0)]

    merger.merge(bodies, [[0, 1], [2]])

    assert [b.id for b in bodies] == [1, 2, 3]


def test_combine_mass_is_order_independent():
    """Test that fractional masses sum to the same value in any member order."""
    masses = [0.1, 0.2, 0.3]
    forward = Merger().combine([make_body(i, x=0.0, mass=m) for i, m in enumerate(masses)])
    backward = Merger().combine([make_body(i, x=0.0, mass=m) for i, m in enumerate(reversed(masses))])

    assert forward.mass == backward.mass == math.fsum(masses)
