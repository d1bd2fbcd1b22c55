"""
neatnet: NEAT (NeuroEvolution of Augmenting Topologies) in Python.

This package evolves populations of variable-topology neural networks through
mutation, crossover and speciation, selecting topology and weights by
fitness-driven reproduction instead of gradient descent.

Main components:
- genotype:    Genetic encoding (genomes, connection genes, innovation tracking)
- phenotype:   The neural network a genome expresses, evaluated in dependency order
- pool:        Species and the generation-by-generation evolutionary loop
- run:         Configuration and the trial driver
- activations: Activation functions for neural networks

Example:
    >>> from neatnet import Config, Trial
    >>> config = Config("config.ini")
    >>> class MyTrial(Trial):
    ...     def _evaluate_fitness(self, genome):
    ...         network = genome.to_network()
    ...         # Implement fitness evaluation
    ...         pass
    >>> trial = MyTrial(config)
    >>> trial.run()
"""

__version__ = "0.1.0"

# The 'run' package is imported first: every other package depends on its Config
from neatnet.run       import Config, Trial
from neatnet.errors    import NeatError, StructuralError, DistributionError, ConfigurationError
from neatnet.genotype  import ConnectionGene, ConnectionKey, Genome, InnovationTracker, NodeType
from neatnet.phenotype import NeuralNetwork
from neatnet.pool      import Species, Generation, GenerationState, calculate_offspring_distribution

__all__ = [
    "Config",
    "Trial",
    "NeatError",
    "StructuralError",
    "DistributionError",
    "ConfigurationError",
    "ConnectionGene",
    "ConnectionKey",
    "Genome",
    "InnovationTracker",
    "NodeType",
    "NeuralNetwork",
    "Species",
    "Generation",
    "GenerationState",
    "calculate_offspring_distribution",
]
