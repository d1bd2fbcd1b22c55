"""
Node kinds.

Nodes have no parameters to evolve; a genome only records the kind of each
node ID. The string values are the ones used by 'Genome.from_dict()'.

Classes:
    NodeType: INPUT, HIDDEN or OUTPUT
"""

from enum import Enum

class NodeType(Enum):
    """Role of a node in the network."""
    INPUT  = "input"
    HIDDEN = "hidden"
    OUTPUT = "output"
