"""
Genotype: what is inherited, mutated and recombined.

Modules:
    node_gene:          NodeType enumeration
    connection_gene:    ConnectionKey and ConnectionGene classes
    genome:             Genome class
    innovation_tracker: InnovationTracker class

Exported Classes:
    NodeType:          INPUT, HIDDEN or OUTPUT
    ConnectionKey:     The (source, destination) pair identifying a connection
    ConnectionGene:    A weighted, possibly disabled, connection
    Genome:            Nodes and connections of one network, with the variation operators
    InnovationTracker: Innovation numbers and split-node IDs shared by all genomes
"""

from neatnet.genotype.connection_gene    import ConnectionGene, ConnectionKey
from neatnet.genotype.genome             import Genome
from neatnet.genotype.innovation_tracker import InnovationTracker
from neatnet.genotype.node_gene          import NodeType

__all__ = ['ConnectionGene',
           'ConnectionKey',
           'Genome',
           'InnovationTracker',
           'NodeType']
