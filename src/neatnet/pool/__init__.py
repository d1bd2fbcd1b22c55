"""
NEAT Pool Package

This package manages the population of genomes: its division into
species and its evolution from one generation to the next.

Modules:
    species:    Species class
    generation: GenerationState, Generation and the offspring distribution

Exported:
    Species:                          A cluster of genetically similar genomes
    GenerationState:                  Species list and generation counter
    Generation:                       The evolutionary control loop
    calculate_offspring_distribution: Fitness-proportionate apportionment of offspring
"""

from neatnet.pool.species    import Species
from neatnet.pool.generation import Generation, GenerationState, calculate_offspring_distribution

__all__ = ['Species',
           'Generation',
           'GenerationState',
           'calculate_offspring_distribution']
