"""
Unit tests for neatnet.pool.species module.

This module contains tests for the Species class,
which represents a cluster of genetically similar genomes in NEAT.
"""

import math
import pytest

from neatnet.genotype import ConnectionKey, Genome
from neatnet.pool     import Species


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def make_genome(config):
    """Factory for minimal genomes with given fitness and uniform weight."""
    def _make(fitness=None, weight=0.0):
        genome = Genome(config)
        for gene in genome.connections.values():
            gene.weight = weight
        genome.fitness = fitness
        return genome
    return _make


@pytest.fixture
def species_of_four(make_genome, config):
    """A species whose members have fitness 1, 2, 3, 4 (in creation order)."""
    genomes = [make_genome(fitness) for fitness in (1.0, 2.0, 3.0, 4.0)]
    species = Species(genomes[0], config)
    for genome in genomes[1:]:
        species.add_member(genome)
    return species, genomes


# ============================================================================
# Test Species Initialization
# ============================================================================

class TestSpeciesInit:
    """Test Species.__init__ method."""

    def test_seed_genome_is_member_and_representative(self, make_genome, config):
        genome  = make_genome()
        species = Species(genome, config)

        assert species.representative is genome
        assert species.members == {genome.ID: genome}
        assert species.age == 0

    def test_ids_are_generated(self, make_genome, config):
        ids = [Species(make_genome(), config).id for _ in range(3)]
        assert ids == [1, 2, 3]

    def test_explicit_id(self, make_genome, config):
        assert Species(make_genome(), config, species_id=17).id == 17

    def test_add_member(self, make_genome, config):
        species = Species(make_genome(), config)
        genome  = make_genome()

        species.add_member(genome)
        species.add_member(genome)

        assert len(species.members) == 2
        assert species.members[genome.ID] is genome


# ============================================================================
# Test Compatibility
# ============================================================================

class TestIsCompatible:
    """Test Species.is_compatible method."""

    def test_identical_genome_is_compatible(self, make_genome, config):
        species = Species(make_genome(), config)
        assert species.is_compatible(make_genome())

    def test_distance_below_threshold(self, make_genome, config):
        config.compatibility_threshold = 0.5
        species = Species(make_genome(weight=0.0), config)

        assert species.is_compatible(make_genome(weight=1.0))        # distance 0.4
        assert not species.is_compatible(make_genome(weight=2.0))    # distance 0.8

    def test_distance_equal_to_threshold_is_not_compatible(self, make_genome, config):
        species = Species(make_genome(weight=0.0), config)
        genome  = make_genome(weight=1.0)
        config.compatibility_threshold = species.representative.distance(genome)

        assert not species.is_compatible(genome)


# ============================================================================
# Test Fitness
# ============================================================================

class TestGetTotalFitness:
    """Test Species.get_total_fitness method."""

    def test_sum_of_member_fitness(self, species_of_four):
        species, _ = species_of_four
        assert species.get_total_fitness() == 10.0

    def test_nan_counts_as_zero(self, species_of_four):
        species, genomes = species_of_four
        genomes[3].fitness = math.nan

        assert species.get_total_fitness() == 6.0

    def test_unevaluated_member_raises(self, species_of_four):
        species, genomes = species_of_four
        genomes[1].fitness = None

        with pytest.raises(ValueError, match="no fitness"):
            species.get_total_fitness()

    def test_negative_fitness_raises(self, species_of_four):
        species, genomes = species_of_four
        genomes[1].fitness = -0.5

        with pytest.raises(ValueError, match="negative fitness"):
            species.get_total_fitness()

    def test_summary(self, species_of_four):
        species, genomes = species_of_four
        assert species.summary() == (species.id, 4, 10.0)

        genomes[0].fitness = None
        assert species.summary() == (species.id, 4, None)


# ============================================================================
# Test Representative, Culling and Reproduction
# ============================================================================

class TestSetRandomRepresentative:
    """Test Species.set_random_representative method."""

    def test_representative_is_a_member(self, species_of_four):
        species, _ = species_of_four
        for _ in range(10):
            species.set_random_representative()
            assert species.representative.ID in species.members

    def test_no_members_keeps_representative(self, species_of_four):
        species, genomes = species_of_four
        species.members = {}

        species.set_random_representative()

        assert species.representative is genomes[0]


class TestCullMembers:
    """Test Species.cull_members method."""

    def test_cull_half(self, species_of_four):
        species, genomes = species_of_four
        species.cull_members(0.5)

        assert set(species.members) == {genomes[2].ID, genomes[3].ID}

    def test_cull_nothing(self, species_of_four):
        species, _ = species_of_four
        species.cull_members(0.0)
        assert len(species.members) == 4

    def test_fittest_always_survives(self, species_of_four):
        species, genomes = species_of_four
        species.cull_members(1.0)

        assert list(species.members) == [genomes[3].ID]

    def test_rounds_down_the_number_removed(self, species_of_four):
        species, _ = species_of_four
        species.cull_members(0.6)        # 2.4 members removed => 2
        assert len(species.members) == 2

    def test_ties_favour_older_genomes(self, make_genome, config):
        genomes = [make_genome(1.0) for _ in range(4)]
        species = Species(genomes[0], config)
        for genome in genomes[1:]:
            species.add_member(genome)

        species.cull_members(0.5)

        assert set(species.members) == {genomes[0].ID, genomes[1].ID}

    def test_invalid_fraction_raises(self, species_of_four):
        species, _ = species_of_four
        with pytest.raises(ValueError):
            species.cull_members(1.5)
        with pytest.raises(ValueError):
            species.cull_members(-0.1)


class TestReproduce:
    """Test Species.reproduce method."""

    def test_produces_exact_number_of_offspring(self, species_of_four):
        species, _ = species_of_four
        species.reproduce(7)

        assert len(species.members) == 7
        assert all(genome.fitness is None for genome in species.members.values())

    def test_offspring_replace_parents(self, species_of_four):
        species, genomes = species_of_four
        species.reproduce(4)

        assert not set(species.members) & {genome.ID for genome in genomes}

    def test_elite_is_cloned_unchanged(self, species_of_four, config):
        species, genomes = species_of_four
        fittest = genomes[3]
        fittest.connections[ConnectionKey(1, 3)].weight = 0.123
        config.elitism = 1

        species.reproduce(3)

        elite = next(iter(species.members.values()))
        assert elite.ID != fittest.ID
        assert elite.to_dict() == fittest.to_dict()

    def test_elitism_capped_by_offspring_number(self, species_of_four, config):
        species, genomes = species_of_four
        config.elitism = 3
        config.weight_perturb_prob = config.weight_replace_prob = 0.0
        for i, genome in enumerate(genomes):
            genome.connections[ConnectionKey(1, 3)].weight = 0.1 * i

        species.reproduce(2)

        weights = [g.connections[ConnectionKey(1, 3)].weight for g in species.members.values()]
        assert weights == [pytest.approx(0.3), pytest.approx(0.2)]

    def test_zero_offspring_empties_the_species(self, species_of_four):
        species, _ = species_of_four
        species.reproduce(0)

        assert species.members == {}

    def test_age_increments(self, species_of_four):
        species, _ = species_of_four
        species.reproduce(4)
        species.reproduce(0)

        assert species.age == 2

    def test_representative_unchanged(self, species_of_four):
        species, genomes = species_of_four
        species.reproduce(5)

        assert species.representative is genomes[0]

    def test_negative_offspring_raises(self, species_of_four):
        species, _ = species_of_four
        with pytest.raises(ValueError):
            species.reproduce(-1)

    def test_empty_species_cannot_reproduce(self, species_of_four):
        species, _ = species_of_four
        species.members = {}

        with pytest.raises(ValueError, match="no members"):
            species.reproduce(2)

    def test_offspring_are_well_formed(self, species_of_four, config):
        species, _ = species_of_four
        config.node_add_probability       = 0.5
        config.connection_add_probability = 0.5

        for _ in range(5):
            species.reproduce(6)
            for genome in species.members.values():
                genome.validate()
                genome.fitness = 1.0


class TestRepr:

    def test_repr(self, species_of_four):
        species, _ = species_of_four
        assert repr(species) == "Species(id=1, members=4, age=0)"
