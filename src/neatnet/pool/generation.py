"""
NEAT Generation Module

This module implements the evolutionary control loop of the NEAT algorithm.
Each call to 'Generation.evolve()' runs one evolutionary cycle:

Generation 0 (bootstrap):
- Clone a minimal, fully connected genome into the initial population
- Give every clone its own random weights
- Split the population into species

Every later generation (steady state):
- Distribute the offspring among species, proportionally to species fitness
- In each species: pick a new representative, cull the weakest members, reproduce
- Drop the species that received no offspring (extinction)

The next generation's population is the union of the members of all species.

Classes:
    GenerationState: The species list and generation counter, as an explicit value
    Generation:      The control loop driving a GenerationState from one generation to the next

Functions:
    calculate_offspring_distribution: Fitness-proportionate apportionment of the offspring
"""

import copy
import logging
import math
from dataclasses import dataclass, field
from typing      import Sequence

from neatnet.errors      import DistributionError, StructuralError
from neatnet.genotype    import Genome, InnovationTracker
from neatnet.pool.species import Species
from neatnet.run.config  import Config

logger = logging.getLogger(__name__)

def _round_half_up(x: float) -> int:
    # Halves are rounded up (away from zero, as x is never negative)
    return math.floor(x + 0.5)

def calculate_offspring_distribution(fitnesses           : Sequence[float],
                                     population_size     : int,
                                     extinction_threshold: int,
                                     zero_fitness_policy : str = 'uniform') -> list[int]:
    """
    Calculate how many offspring each species should produce.

    Each species gets a share of the population proportional to its fitness,
    rounded to the nearest integer (halves rounded up). A species whose share is
    below the extinction threshold gets nothing. The rounding error is then
    corrected by walking the species round-robin, adding (or removing) one offspring
    at a time to (from) each species that still has offspring, until the counts add
    up exactly to the population size. Species with no offspring are skipped, so an
    extinct species is never resurrected; removing from a species with a single
    offspring makes it extinct, counts never go below zero.

    When the total fitness is zero, the offspring are spread evenly over the species
    (the first species receiving the remainder) under the 'uniform' policy, while the
    'error' policy raises DistributionError.

    Parameters:
        fitnesses:            total fitness of each species (non-negative)
        population_size:      number of offspring to distribute
        extinction_threshold: species with a smaller share get no offspring
        zero_fitness_policy:  'uniform' or 'error'

    Returns:
        The number of offspring of each species, in the same order as 'fitnesses'

    Raises:
        DistributionError: if there are no species, a fitness is negative or NaN, the total
                           fitness is zero under the 'error' policy, or every species went
                           extinct before all offspring could be placed
    """
    if not fitnesses:
        raise DistributionError("Cannot distribute offspring: there are no species")
    for fitness in fitnesses:
        if math.isnan(fitness) or fitness < 0:
            raise DistributionError(f"Invalid species fitness {fitness}")

    total_fitness = sum(fitnesses)
    if total_fitness == 0:
        if zero_fitness_policy == 'error':
            raise DistributionError("Cannot distribute offspring: the total population fitness is zero")
        share, remainder = divmod(population_size, len(fitnesses))
        return [share + (1 if i < remainder else 0) for i in range(len(fitnesses))]

    distribution = []
    for fitness in fitnesses:
        num_offspring = _round_half_up(population_size * fitness / total_fitness)
        distribution.append(0 if num_offspring < extinction_threshold else num_offspring)

    error           = population_size - sum(distribution)
    correction      = +1 if error > 0 else -1
    error_magnitude = abs(error)

    i = 0
    while error_magnitude > 0:
        idx = i % len(distribution)
        if idx == 0 and not any(distribution):
            raise DistributionError(f"Cannot distribute offspring: every species went extinct, "
                                    f"{error_magnitude} offspring left over")
        if distribution[idx] != 0:
            distribution[idx] += correction
            error_magnitude   -= 1
        i += 1

    return distribution

@dataclass
class GenerationState:
    """
    The state evolved by the control loop.

    Attributes:
        species:    the current species, in creation order
        gen_number: how many evolutionary steps have been taken (0 before the first one)
    """
    species   : list[Species] = field(default_factory=list)
    gen_number: int           = 0

    @property
    def population(self) -> list[Genome]:
        """All genomes, species by species."""
        return [genome for species in self.species for genome in species.members.values()]

class Generation:
    """
    The NEAT evolutionary control loop.

    A Generation owns a GenerationState and advances it one generation at a time.
    The first step creates and speciates the initial population; every later step
    distributes offspring among species according to their fitness and lets each
    species cull and reproduce. The fitness of every genome must be evaluated (by
    the caller) between two steps.

    Public Attributes:
        state: the current GenerationState

    Public Properties:
        species:    the current species, in creation order
        gen_number: the generation counter
        population: all current genomes

    Public Methods:
        evolve():                           Advance the owned state by one generation
        step(state):                        Return the state following 'state', leaving it untouched
        snapshot():                         Independent copy of the current state
        speciate(genomes):                  Assign genomes to species
        calculate_offspring_distribution(): Offspring count of each current species

    Static Methods:
        make_initial_population(config): The randomized clones forming generation 0
    """

    def __init__(self, config: Config, state: GenerationState | None = None):
        """
        Parameters:
            config: stores configuration parameters
            state:  state to start from (a fresh, empty state if None)
        """
        self._config: Config          = config
        self.state  : GenerationState = state if state is not None else GenerationState()

    @property
    def species(self) -> list[Species]:
        return self.state.species

    @property
    def gen_number(self) -> int:
        return self.state.gen_number

    @property
    def population(self) -> list[Genome]:
        return self.state.population

    @staticmethod
    def make_initial_population(config: Config) -> list[Genome]:
        """
        Create the initial population.

        A single primordial genome (inputs fully connected to outputs, no hidden nodes)
        is cloned 'population_size' times, then every connection of every clone gets
        its own random weight. This is the start of a run: the InnovationTracker is reset.

        Parameters:
            config: stores configuration parameters

        Returns:
            the initial population
        """
        InnovationTracker.initialize(config)

        primordial_genome = Genome(config)
        population = Genome.make_clones(primordial_genome, config.population_size)
        for genome in population:
            for key in genome.connections:
                genome.randomly_assign_weight(key)

        return population

    def _copy_state(self, state: GenerationState) -> GenerationState:
        # Species, genomes and genes keep sharing the configuration
        return copy.deepcopy(state, memo={id(self._config): self._config})

    def snapshot(self) -> GenerationState:
        """Independent copy of the current state."""
        return self._copy_state(self.state)

    def evolve(self) -> None:
        """
        Advance the owned state by one generation.

        Raises:
            DistributionError: if the offspring cannot be distributed
            StructuralError:   if a malformed genome is found
            Both carry the generation number and a snapshot of the species.
        """
        self._advance(self.state)

    def step(self, state: GenerationState) -> GenerationState:
        """
        Return the state following 'state'. The given state is not modified.

        Note that structural innovations are still registered with the
        (global) InnovationTracker.
        """
        next_state = self._copy_state(state)
        self._advance(next_state)
        return next_state

    def speciate(self, genomes: Sequence[Genome]) -> None:
        """
        Assign genomes to the current species.

        Each genome joins the first species (in creation order) it is compatible
        with; a genome compatible with none founds a new species. The assignment is
        greedy and depends on the order of both the genomes and the species.

        Parameters:
            genomes: the genomes to assign
        """
        self._speciate(self.state, genomes)

    def calculate_offspring_distribution(self) -> list[int]:
        """
        Number of offspring of each current species (in species order).
        See 'calculate_offspring_distribution()' at module level.
        """
        return self._offspring_distribution(self.state)

    def _speciate(self, state: GenerationState, genomes: Sequence[Genome]) -> None:
        for genome in genomes:
            for species in state.species:
                if species.is_compatible(genome):
                    species.add_member(genome)
                    break
            else:
                species = Species(genome, self._config)
                state.species.append(species)
                logger.info("Generation %d: genome %d founded species %d",
                            state.gen_number, genome.ID, species.id)

    def _offspring_distribution(self, state: GenerationState) -> list[int]:
        try:
            fitnesses = [species.get_total_fitness() for species in state.species]
        except ValueError as e:
            raise DistributionError(str(e)) from e

        return calculate_offspring_distribution(fitnesses,
                                                self._config.population_size,
                                                self._config.species_extinction_threshold,
                                                self._config.zero_fitness_policy)

    def _advance(self, state: GenerationState) -> None:
        try:
            if state.gen_number == 0:
                self._bootstrap(state)
            else:
                self._reproduce(state)
        except (DistributionError, StructuralError) as e:
            if e.generation is not None:
                raise
            raise e.with_context(state.gen_number, [species.summary() for species in state.species]) from e

        state.gen_number += 1
        logger.debug("Generation %d: %d species, %d genomes",
                     state.gen_number, len(state.species), len(state.population))

    def _bootstrap(self, state: GenerationState) -> None:
        population = self.make_initial_population(self._config)
        for genome in population:
            genome.validate()
        self._speciate(state, population)

    def _reproduce(self, state: GenerationState) -> None:
        distribution = self._offspring_distribution(state)
        logger.debug("Generation %d: offspring distribution %s", state.gen_number, distribution)

        for species, num_offspring in zip(state.species, distribution):
            species.set_random_representative()
            species.cull_members(self._config.species_cull_rate)
            species.reproduce(num_offspring)

        for species in state.species:
            if not species.members:
                logger.info("Generation %d: species %d went extinct", state.gen_number, species.id)
        state.species = [species for species in state.species if species.members]

        if self._config.respeciate_offspring:
            offspring = state.population
            for species in state.species:
                species.members = {}
            self._speciate(state, offspring)
            state.species = [species for species in state.species if species.members]
