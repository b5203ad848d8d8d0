import numpy as np
import pytest

from population import Population, vehicle_fitness, validate_settings
from config import SPAWN_X, SPAWN_Y, MAX_FUEL, TOURNAMENT_SIZE


def _population(size=10, seed=0, **kw):
    return Population(size=size, rng=np.random.default_rng(seed), **kw)


def _finish(pop, scores, flipped=()):
    """Mark the whole cohort dead with the given scores."""
    for i, (v, s) in enumerate(zip(pop.vehicles, scores)):
        v.score = s
        v.time_alive = 10.0
        v.is_flipped = i in flipped
        v.is_dead = True


@pytest.mark.parametrize("size", [0, -3, 2.5, "10", True, None])
def test_rejects_bad_population_size(size):
    with pytest.raises(ValueError):
        Population(size=size)


@pytest.mark.parametrize("rate, strength", [(-0.1, 0.3), (1.5, 0.3), (0.1, -1)])
def test_rejects_bad_mutation_settings(rate, strength):
    with pytest.raises(ValueError):
        validate_settings(10, rate, strength)


def test_initial_cohort_spawns_at_start_with_own_brains():
    pop = _population(size=12)
    assert len(pop) == 12
    assert pop.generation == 1
    assert pop.best_fitness == 0.0
    assert all(v.position == (SPAWN_X, SPAWN_Y) for v in pop.vehicles)
    brains = [v.brain for v in pop.vehicles]
    assert len({id(b) for b in brains}) == 12
    assert not np.array_equal(brains[0].weights[0], brains[1].weights[0])


def test_fitness_rewards_progress_and_survival():
    pop = _population(size=3)
    a, b, c = pop.vehicles
    a.score, a.time_alive = 10.0, 5.0
    b.score, b.time_alive, b.is_flipped = 10.0, 5.0, True
    c.score, c.time_alive = 0.0, 0.0

    assert vehicle_fitness(a) == pytest.approx(10.5)
    assert vehicle_fitness(b) == pytest.approx(5.25)
    assert vehicle_fitness(c) == pytest.approx(0.1)


@pytest.mark.parametrize("size, elites", [(10, 1), (9, 0), (20, 2), (1, 0), (55, 5)])
def test_elite_count(size, elites):
    assert _population(size=size).elite_count() == elites


def test_evolve_keeps_size_and_advances_generation():
    pop = _population(size=20)
    _finish(pop, range(20))

    new = pop.evolve()

    assert new is pop.vehicles
    assert len(pop) == 20
    assert pop.generation == 2
    assert pop.best_fitness == pytest.approx(19 + 1.0)


def test_elites_survive_unmutated_in_fresh_vehicles():
    pop = _population(size=20)
    _finish(pop, [1.0] * 20)
    pop.vehicles[7].score = 100.0
    pop.vehicles[3].score = 50.0
    champion = pop.vehicles[7].brain
    runner_up = pop.vehicles[3].brain

    pop.evolve()

    for elite, parent in zip(pop.vehicles[:2], (champion, runner_up)):
        assert elite.brain is not parent
        for mine, theirs in zip(elite.brain.parameters(), parent.parameters()):
            np.testing.assert_array_equal(mine, theirs)

    for v in pop.vehicles:
        assert v.position == (SPAWN_X, SPAWN_Y)
        assert (v.score, v.time_alive, v.fitness) == (0, 0, 0)
        assert v.fuel == MAX_FUEL
        assert not v.is_dead


def test_best_fitness_watermark_never_drops():
    pop = _population(size=10, seed=1)
    watermarks = []
    for top in (5.0, 50.0, 2.0, 30.0):
        _finish(pop, [top] + [0.0] * 9)
        pop.evolve()
        watermarks.append(pop.best_fitness)
    assert watermarks == sorted(watermarks)
    assert watermarks[-1] == pytest.approx(51.0)


def test_flipped_vehicle_is_penalised_in_ranking():
    pop = _population(size=10)
    _finish(pop, [10.0] * 10, flipped={0})
    pop.calculate_fitness()
    assert pop.vehicles[0].fitness < pop.vehicles[1].fitness


def test_select_parent_keeps_fittest_of_tournament():
    pop = _population(size=10)
    for i, v in enumerate(pop.vehicles):
        v.fitness = float(i)
    pop.rng = np.random.default_rng(42)
    draws = np.random.default_rng(42)
    expected = max(int(draws.integers(0, 10)) for _ in range(TOURNAMENT_SIZE))

    assert pop.select_parent() is pop.vehicles[expected]


def test_select_parent_ties_keep_first_draw():
    pop = _population(size=10)
    for v in pop.vehicles:
        v.fitness = 1.0
    pop.rng = np.random.default_rng(7)
    first = int(np.random.default_rng(7).integers(0, 10))

    assert pop.select_parent() is pop.vehicles[first]


def test_alive_queries():
    pop = _population(size=5)
    pop.vehicles[1].is_dead = True
    pop.vehicles[2].score = 8.0
    pop.vehicles[3].score = 9.0
    pop.vehicles[3].is_dead = True

    assert pop.alive_count() == 4
    assert len(pop.alive()) == 4
    assert pop.best_alive() is pop.vehicles[2]
    assert pop.species_count() == 0


def test_evolution_is_reproducible_from_seed():
    a, b = _population(size=10, seed=5), _population(size=10, seed=5)
    for pop in (a, b):
        _finish(pop, range(10))
        pop.evolve()
    for va, vb in zip(a.vehicles, b.vehicles):
        for pa, pb in zip(va.brain.parameters(), vb.brain.parameters()):
            np.testing.assert_array_equal(pa, pb)


def test_best_vehicle_is_fittest_after_scoring():
    pop = _population(size=6)
    _finish(pop, [3.0, 9.0, 1.0, 9.0, 0.0, 2.0])
    pop.calculate_fitness()
    assert pop.best_vehicle() is pop.vehicles[1]
