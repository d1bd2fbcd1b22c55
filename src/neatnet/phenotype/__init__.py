"""
NEAT Phenotype Package

This package implements the phenotype representation for the NEAT (NeuroEvolution
of Augmenting Topologies) algorithm: the executable neural network a genome expresses.

Modules:
    neural_network: Feedforward network evaluated by data-flow propagation

Exported Classes:
    NeuralNetwork: Feedforward neural network over an arbitrary DAG
"""

from neatnet.phenotype.neural_network import NeuralNetwork

__all__ = ['NeuralNetwork']
