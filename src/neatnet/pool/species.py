"""
Species: groups of structurally similar genomes.

Classes:
    Species: Members, representative and reproduction of one niche
"""

import math
import random
from itertools import count
from typing    import TYPE_CHECKING

from neatnet.run.config import Config
if TYPE_CHECKING:
    from neatnet.genotype import Genome

class Species:
    """
    Genomes closer than 'compatibility_threshold' to the representative of a
    species belong to it. Offspring are allotted to species rather than to genomes, so
    a newly mutated structure only has to beat its close relatives.

    Every generation the species receives a share of the offspring
    proportional to its total fitness: it culls its weakest members, then replaces
    the survivors with exactly that many offspring.

    Public Attributes:
        id:             Unique species identifier
        representative: Genome used for compatibility testing
        members:        The genomes that are part of this species (genome ID => Genome)
        age:            Number of times this species has reproduced

    Public Methods:
        add_member(genome):          Add a genome to the species
        is_compatible(genome):       Whether a genome belongs to this species
        get_total_fitness():         Sum of the fitness of all members
        set_random_representative(): Pick a new representative among the members
        cull_members(fraction):      Remove the weakest fraction of the members
        reproduce(num_offspring):    Replace the members with their offspring
        summary():                   (id, number of members, total fitness) snapshot

    Life Cycle:
    1. Created, with a single member, when a genome doesn't fit into any existing species
    2. Gains the genomes found compatible with its representative
    3. Each generation: new representative, culling, reproduction
    4. Goes extinct when it is allotted no offspring
    """

    # Generates species IDs
    _id_generator = count(1)

    def __init__(self, seed_genome: 'Genome', config: Config, species_id: int | None = None):
        """
        Parameters:
            seed_genome: the first member, also the species representative
            config:      stores configuration parameters
            species_id:  unique species identifier (generated if not given)
        """
        self._config: Config = config

        self.id: int = next(Species._id_generator) if species_id is None else species_id

        self.representative: 'Genome' = seed_genome

        # Genome ID => Genome; insertion-ordered, so iteration is reproducible
        self.members: dict[int, 'Genome'] = {seed_genome.ID: seed_genome}

        self.age: int = 0

    def add_member(self, genome: 'Genome') -> None:
        """Add a genome to the species (adding it twice has no effect)."""
        self.members[genome.ID] = genome

    def is_compatible(self, genome: 'Genome') -> bool:
        """
        Whether a genome is close enough to the species representative to belong to this species.
        """
        return self.representative.distance(genome) < self._config.compatibility_threshold

    def get_total_fitness(self) -> float:
        """
        Sum of the fitness of all members. NaN fitness (invalid network) counts as 0.

        Raises:
            ValueError: if a member has not been evaluated yet or has negative fitness
        """
        total = 0.0
        for genome in self.members.values():
            if genome.fitness is None:
                raise ValueError(f"Genome {genome.ID} in species {self.id} has no fitness")
            if math.isnan(genome.fitness):
                continue
            if genome.fitness < 0:
                raise ValueError(f"Genome {genome.ID} in species {self.id} "
                                 f"has negative fitness {genome.fitness}")
            total += genome.fitness
        return total

    def set_random_representative(self) -> None:
        """
        Pick a member, uniformly at random, as the new species representative.
        """
        if self.members:
            self.representative = random.choice(list(self.members.values()))

    def _ranked_members(self) -> list['Genome']:
        # Fittest first; on equal fitness the older genome (lower ID) goes first
        def fitness(genome):
            if genome.fitness is None or math.isnan(genome.fitness):
                return 0.0
            return genome.fitness
        return sorted(self.members.values(), key=lambda g: (fitness(g), -g.ID), reverse=True)

    def cull_members(self, fraction: float) -> None:
        """
        Remove the weakest members of the species.

        The number removed is 'fraction' of the current members (rounded down),
        but the fittest member always survives.

        Parameters:
            fraction: fraction of members to remove, in [0, 1]
        """
        if not 0.0 <= fraction <= 1.0:
            raise ValueError(f"Cull fraction must be in [0, 1], got {fraction}")
        if not self.members:
            return

        ranked      = self._ranked_members()
        num_survive = max(1, len(ranked) - int(len(ranked) * fraction))
        self.members = {genome.ID: genome for genome in ranked[:num_survive]}

    def reproduce(self, num_offspring: int) -> None:
        """
        Replace the current members with a new generation of exactly 'num_offspring' genomes.

        The process:
        1. Rank the members by fitness (highest first)
        2. Transfer (clones of) the elite unchanged, to preserve the best solutions
        3. Fill the remaining slots by crossing two random members
           (the fitter one passing on its disjoint & excess genes) and mutating the child

        The representative is left unchanged: it keeps defining the species
        while the offspring are being assigned.

        Configuration parameters used:
            - elitism: Number of top members to carry over unchanged

        Parameters:
            num_offspring: Number of genomes this species should produce (0 empties it)
        """
        if num_offspring < 0:
            raise ValueError(f"Cannot produce a negative number ({num_offspring}) of offspring")

        self.age += 1

        if num_offspring == 0:
            self.members = {}
            return
        if not self.members:
            raise ValueError(f"Species {self.id} has no members to reproduce")

        parents = self._ranked_members()

        elite_number = min(self._config.elitism, num_offspring, len(parents))
        offspring    = [genome.clone() for genome in parents[:elite_number]]

        while len(offspring) < num_offspring:

            # Note that if the parents are not distinct, crossover will produce
            # a genetically identical clone of the parent (but with a different ID).
            parent1 = random.choice(parents)
            parent2 = random.choice(parents)
            fitter  = parent1 if parents.index(parent1) <= parents.index(parent2) else parent2

            child = parent1.crossover(parent2, fitter)
            child.mutate()
            offspring.append(child)

        self.members = {genome.ID: genome for genome in offspring}

    def summary(self) -> tuple[int, int, float | None]:
        """
        Snapshot of the species: (species ID, number of members, total fitness).
        The total fitness is None if it cannot be calculated.
        """
        try:
            total_fitness = self.get_total_fitness()
        except ValueError:
            total_fitness = None
        return self.id, len(self.members), total_fitness

    def __repr__(self):
        return f"Species(id={self.id}, members={len(self.members)}, age={self.age})"
