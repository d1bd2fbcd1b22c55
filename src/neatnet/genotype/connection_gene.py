"""
Connection genes of a NEAT genome.

A genome describes its network as a list of weighted, directed connections;
the nodes are implied by the connection endpoints. A connection is identified
by its endpoints, so the same pair of nodes can be joined at most once.

Classes:
    ConnectionKey:  The (source node, destination node) pair identifying a connection
    ConnectionGene: One weighted edge of the network, possibly disabled
"""

import numpy as np
import random
from typing import NamedTuple

from neatnet.run.config import Config

class ConnectionKey(NamedTuple):
    """
    Identifies a connection by its endpoints.
    Within one genome no two connections share the same key.
    """
    src: int
    dst: int

    def __str__(self):
        return f"{self.src},{self.dst}"

class ConnectionGene:
    """
    Weighted edge from 'node_in' to 'node_out'.

    A disabled gene stays in the genome (it is still inherited, and still counts
    when ordering nodes for activation) but adds nothing to the weighted sum of
    its destination node. Add-node mutations disable the connection they split.

    Public Attributes:
        node_in:  ID of the source node
        node_out: ID of the destination node
        weight:   Weight of the connection
        enabled:  Whether the connection contributes to activation

    Public Properties:
        key: the ConnectionKey (node_in, node_out) identifying the connection

    Public Methods:
        mutate(): Perturb or replace the weight, at random
    """

    def __init__(self,
                 node_in : int,
                 node_out: int,
                 weight  : float,
                 config  : Config,
                 enabled : bool = True):
        """
        Parameters:
            node_in:  ID of the source node
            node_out: ID of the destination node
            weight:   Weight of the connection
            config:   Weight bounds and mutation probabilities
            enabled:  Whether the connection contributes to activation
        """
        self.node_in : int    = node_in
        self.node_out: int    = node_out
        self.weight  : float  = weight
        self.enabled : bool   = enabled
        self._config : Config = config

    @property
    def key(self) -> ConnectionKey:
        return ConnectionKey(self.node_in, self.node_out)

    def mutate(self) -> None:
        """
        Mutate the weight, or leave it alone.

        A single draw decides between the two weight mutations:
         + with probability 'weight_perturb_prob', add gaussian noise and clip to the weight range
         + with probability 'weight_replace_prob', draw a fresh uniform weight from that range
        otherwise the weight is unchanged.
        """
        p_perturb = self._config.weight_perturb_prob
        p_replace = self._config.weight_replace_prob

        draw = random.random()
        if draw < p_perturb:
            new_weight  = self.weight + random.gauss(0, self._config.weight_perturb_strength)
            self.weight = float(np.clip(new_weight, self._config.min_weight, self._config.max_weight))

        elif draw < p_perturb + p_replace:
            self.weight = random.uniform(self._config.min_weight, self._config.max_weight)

    def __repr__(self):
        return (f"ConnectionGene({self.node_in} -> {self.node_out}, "
                f"weight={self.weight:+.6f}, enabled={self.enabled})")

    def __str__(self):
        return f"[{'E' if self.enabled else 'D'},{self.node_in:02d}=>{self.node_out:02d},{self.weight:+.02f}]"
