"""
NEAT Trial Module

One run of the NEAT algorithm, from the initial population to termination.

The trial alternates two phases: the Generation advances the population by one
generation, then the trial evaluates the fitness of every genome in it (serially
or in parallel processes, using joblib). Problem specific trials derive from
'Trial' and supply the fitness function and the progress reports.

Classes:
    Trial: Abstract base class for a NEAT run
"""

import math
from abc        import ABC, abstractmethod
from joblib     import Parallel, delayed
from statistics import mean
from typing     import TYPE_CHECKING

from neatnet.pool       import Generation
from neatnet.run.config import Config
if TYPE_CHECKING:
    from neatnet.genotype import Genome

class Trial(ABC):
    """
    Drives a Generation until a termination condition is met.

    Derived classes provide:
    - _evaluate_fitness(genome): the (non-negative) fitness of one genome
    - _report_progress():        called after every generation is evaluated
    - _final_report():           called once the run is over

    and may override:
    - _reset():     extra per-run state (call super()._reset() first)
    - _terminate(): a different stopping rule

    Public Attributes:
        failed: whether the last run stopped without reaching the fitness threshold

    Public Properties:
        generation: the Generation driving the evolution
        population: all genomes of the current generation

    Public Methods:
        run(num_jobs):        Evolve until termination
        get_fittest_genome(): The evaluated genome with the highest fitness

    The 'num_jobs' argument of run() selects how fitness is evaluated:
        1:  in this process, one genome after the other
        >1: in that many worker processes
        -1: in one worker process per CPU core
    """

    def __init__(self, config: Config, suppress_output: bool = False):
        """
        Parameters:
            config:          Stores configuration parameters
            suppress_output: If True, neither progress nor final reports are produced
        """
        self._config         : Config     = config
        self._generation     : Generation = Generation(config)
        self._suppress_output: bool       = suppress_output
        self.failed          : bool       = True

    @property
    def generation(self) -> Generation:
        return self._generation

    @property
    def population(self) -> list['Genome']:
        return self._generation.population

    def run(self, num_jobs: int = 1):
        """
        Start a fresh run and evolve until '_terminate()' says to stop.

        Parameters:
            num_jobs: how fitness is evaluated (see the class docstring)
        """
        self._reset()

        # Generation 1: the speciated initial population
        self._generation.evolve()
        self._evaluate_fitness_all(num_jobs)
        if not self._suppress_output:
            self._report_progress()

        while not self._terminate():
            self._generation.evolve()
            self._evaluate_fitness_all(num_jobs)
            if not self._suppress_output:
                self._report_progress()

        if not self._suppress_output:
            self._final_report()

    def _reset(self):
        """
        Forget any previous run: check the configuration and start from an empty Generation.

        Raises:
            ConfigurationError: if the configuration is inconsistent
        """
        self._config.validate()
        self._generation = Generation(self._config)
        self.failed = True

    @abstractmethod
    def _evaluate_fitness(self, genome: 'Genome') -> float:
        """
        Fitness of a genome on the problem at hand, typically obtained by
        activating 'genome.to_network()' on a set of cases.

        The fitness must not be negative: a species' share of the next
        generation is proportional to the total fitness of its members.
        NaN is tolerated and counts as zero.
        """
        pass

    def _evaluate_fitness_all(self, num_jobs: int):
        """
        Set the fitness of every genome of the current generation.
        With 'num_jobs' other than 1, the genomes are evaluated by joblib worker processes
        and the results copied back, in order, into the genomes of this process.
        """
        genomes = self.population

        if num_jobs == 1:
            for genome in genomes:
                genome.fitness = self._evaluate_fitness(genome)
            return

        fitness_all = Parallel(num_jobs)(delayed(self._evaluate_fitness)(g) for g in genomes)
        for genome, fitness in zip(genomes, fitness_all):
            genome.fitness = fitness

    def get_fittest_genome(self) -> 'Genome | None':
        """
        The genome with the highest fitness in the current generation,
        or None if no genome has been (successfully) evaluated yet.
        """
        evaluated = [g for g in self.population if g.fitness is not None and not math.isnan(g.fitness)]
        if not evaluated:
            return None
        return max(evaluated, key=lambda g: g.fitness)

    @abstractmethod
    def _report_progress(self):
        """Report on the generation just evaluated (skipped when output is suppressed)."""
        pass

    @abstractmethod
    def _final_report(self):
        """Report on the whole run (skipped when output is suppressed)."""
        pass

    def _terminate(self) -> bool:
        """
        Default stopping rule.

        The run stops once 'max_number_generations' generations have been evaluated or,
        if 'fitness_termination_check' is set, once the population fitness (the best or
        the mean, per 'fitness_criterion') reaches 'fitness_threshold'. In the latter
        case 'failed' is cleared.
        """
        out_of_time = self._generation.gen_number >= self._config.max_number_generations
        if not self._config.fitness_termination_check:
            return out_of_time

        genome_fitness = [g.fitness for g in self.population]
        if self._config.fitness_criterion == "max":
            overall_fitness = max(genome_fitness)
        else:
            overall_fitness = mean(genome_fitness)

        success = overall_fitness >= self._config.fitness_threshold
        if success or out_of_time:
            self.failed = not success
        return success or out_of_time
