"""
NEAT Neural Network Module

This module implements the phenotype representation for the NEAT algorithm:
the executable neural network expressed by a genome.

The network is an arbitrary directed acyclic graph of nodes and weighted connections,
not a stack of layers. It is evaluated by data-flow propagation: each node keeps a
count of the predecessors that have not fired yet and becomes ready once that count
drops to zero, so nodes are only ever activated after all their inputs are resolved.

Classes:
    NeuralNetwork: A feedforward neural network over an arbitrary DAG
"""

import logging
import random
from collections import deque
from typing      import Callable, Mapping, Sequence, TYPE_CHECKING

import graphviz  # type: ignore

from neatnet.activations              import activations
from neatnet.errors                   import StructuralError
from neatnet.genotype.connection_gene import ConnectionGene, ConnectionKey
from neatnet.run.config               import Config

if TYPE_CHECKING:
    from neatnet.genotype import Genome

logger = logging.getLogger(__name__)

class NeuralNetwork:
    """
    Feedforward neural network evaluated in dependency order.

    Each non-input node computes activation(Σ w * x) over its enabled incoming
    connections; input nodes output the value they are given. Disabled connections
    contribute nothing to the weighted sum, but still count as dependencies when
    scheduling: a node waits for every predecessor, enabled or not.

    Public Attributes:
        nodes:       Dictionary with keys 'input', 'hidden', 'output' listing node IDs
        connections: Dictionary mapping ConnectionKey to the connection (weight, enabled)
        input_map:   node ID => set of IDs of the nodes with a connection into it
        output_map:  node ID => set of IDs of the nodes it has a connection into

    Public Properties:
        number_nodes:               Node count, all kinds
        number_nodes_hidden:        Hidden node count
        number_connections:         Connection count, disabled ones included
        number_connections_enabled: Enabled connection count

    Public Methods:
        activate(input_activations): Activation value of every node, given the inputs
        get_output(inputs):          The output node with the highest activation
        visualize(view):             Render the network with Graphviz

    Class Methods:
        from_genome(genome):                                Network expressed by a genome
        make_random_simple_network(num_inputs, num_outputs): Fully connected random network
    """

    def __init__(self,
                 nodes         : Mapping[str, Sequence[int]],
                 connections   : Mapping[ConnectionKey, ConnectionGene],
                 activation    : str = 'sigmoid',
                 missing_source: str = 'sigmoid'):
        """
        Parameters:
            nodes:          mapping with keys 'input', 'hidden', 'output' (each a list of node IDs)
            connections:    mapping (source ID, destination ID) => connection with 'weight' and 'enabled'
            activation:     name of the activation function of non-input nodes
            missing_source: what to do with a source node (no incoming connections) whose
                            value is not supplied: 'sigmoid' activates it on an empty sum,
                            'error' makes activation fail

        Raises:
            StructuralError: if a connection references an unknown node, a node
                             is listed twice, or the connections form a cycle
            ValueError:      if the activation function or policy is unknown
        """
        if activation not in activations:
            raise ValueError(f"Unknown activation function '{activation}'")
        if missing_source not in Config.MISSING_SOURCE_POLICIES:
            raise ValueError(f"Unknown missing source policy '{missing_source}'")

        self.nodes: dict[str, list[int]] = {
            'input' : list(nodes.get('input' , [])),
            'hidden': list(nodes.get('hidden', [])),
            'output': list(nodes.get('output', [])),
        }
        self.connections: dict[ConnectionKey, ConnectionGene] = {
            ConnectionKey(*key): conn for key, conn in connections.items()
        }
        self._activation     : Callable = activations[activation]
        self._missing_source : str      = missing_source

        all_nodes = self.nodes['input'] + self.nodes['hidden'] + self.nodes['output']
        if len(all_nodes) != len(set(all_nodes)):
            raise StructuralError("The input, hidden and output node sets must be disjoint")

        # Derived projections of the connection set
        self.input_map : dict[int, set[int]] = {node: set() for node in all_nodes}
        self.output_map: dict[int, set[int]] = {node: set() for node in all_nodes}
        for key in self.connections:
            for node in key:
                if node not in self.input_map:
                    raise StructuralError(f"Connection {key} references non-existent node {node}")
            self.input_map [key.dst].add(key.src)
            self.output_map[key.src].add(key.dst)

        self._sorted_nodes: list[int] = self._topological_sort()

    @classmethod
    def from_genome(cls, genome: 'Genome') -> 'NeuralNetwork':
        """
        Create the network expressed by a genome, using the activation
        function and missing source policy from the genome configuration.
        """
        config = genome._config
        return cls(genome.nodes, genome.connections,
                   activation=config.activation,
                   missing_source=config.missing_source_policy)

    @classmethod
    def make_random_simple_network(cls, num_inputs: int, num_outputs: int) -> 'NeuralNetwork':
        """
        Create a network without hidden nodes, with every input connected to every output.

        Inputs are numbered [1, num_inputs], outputs [num_inputs + 1, num_inputs + num_outputs].
        The connection weights are drawn uniformly from [-1, 1].
        """
        config = Config()
        inputs  = list(range(1, num_inputs + 1))
        outputs = list(range(num_inputs + 1, num_inputs + num_outputs + 1))

        connections = {}
        for src in inputs:
            for dst in outputs:
                connections[ConnectionKey(src, dst)] = ConnectionGene(src, dst, random.uniform(-1, 1), config)

        return cls({'input': inputs, 'hidden': [], 'output': outputs}, connections)

    def _topological_sort(self) -> list[int]:
        """
        Order the nodes so that every connection points forward (Kahn's algorithm).
        Computed once at construction: a cyclic graph is rejected there, and the order
        fixes how unsupplied source nodes are queued during activation.

        Raises:
            StructuralError: if some nodes are left over, i.e. the graph has a cycle
        """
        in_degree = {node: len(preds) for node, preds in self.input_map.items()}
        queue     = deque(node for node, degree in in_degree.items() if degree == 0)
        result    = []

        while queue:
            node = queue.popleft()
            result.append(node)
            for dst in sorted(self.output_map[node]):
                in_degree[dst] -= 1
                if in_degree[dst] == 0:
                    queue.append(dst)

        if len(result) < len(in_degree):
            cyclic = sorted(node for node, degree in in_degree.items() if degree > 0)
            raise StructuralError(f"Network graph has a cycle through nodes {cyclic}")

        return result

    @property
    def number_nodes(self) -> int:
        return len(self.input_map)

    @property
    def number_nodes_hidden(self) -> int:
        return len(self.nodes['hidden'])

    @property
    def number_connections(self) -> int:
        return len(self.connections)

    @property
    def number_connections_enabled(self) -> int:
        return sum(1 for conn in self.connections.values() if conn.enabled)

    def activate(self, input_activations: Mapping[int, float]) -> dict[int, float]:
        """
        Propagate the given input values through the network.

        A node is activated once every one of its predecessors has been activated.
        Supplied nodes take the supplied value; every other node takes
        activation(Σ over enabled incoming connections of weight * predecessor activation).

        Parameters:
            input_activations: node ID => value, for the nodes whose value is given directly

        Returns:
            node ID => activation value, for every node in the network

        Raises:
            ValueError:      if a supplied node is not part of the network, or a source
                             node is not supplied and the missing source policy is 'error'
            StructuralError: if propagation stalls before every node has been activated
        """
        for node in input_activations:
            if node not in self.input_map:
                raise ValueError(f"Node {node} is not part of the network")

        # Number of predecessors which have not fired yet
        inactive_ingress = {node: len(preds) for node, preds in self.input_map.items()}

        ready = deque(input_activations)
        for node in self._sorted_nodes:
            if inactive_ingress[node] == 0 and node not in input_activations:
                if self._missing_source == 'error':
                    raise ValueError(f"No value supplied for source node {node}")
                ready.append(node)

        activation: dict[int, float] = {}
        while ready:
            node = ready.popleft()
            if node in activation:
                continue

            if node in input_activations:
                activation[node] = input_activations[node]
            else:
                weighted_sum = 0.0
                for src in self.input_map[node]:
                    conn = self.connections[ConnectionKey(src, node)]
                    if conn.enabled:
                        weighted_sum += activation[src] * conn.weight
                activation[node] = self._activation(weighted_sum)

            for dst in self.output_map[node]:
                inactive_ingress[dst] -= 1
                if inactive_ingress[dst] == 0 and dst not in input_activations:
                    ready.append(dst)

        if len(activation) < len(self.input_map):
            stalled = sorted(node for node in self.input_map if node not in activation)
            raise StructuralError(f"Activation stalled, nodes {stalled} were never activated")

        return activation

    def get_output(self, inputs: Mapping[int, float]) -> int:
        """
        Classify the inputs: return the output node with the highest activation.
        On ties, the output node listed first wins.
        """
        activation_level = self.activate(inputs)
        max_node = None
        for node in self.nodes['output']:
            if max_node is None or activation_level[node] > activation_level[max_node]:
                max_node = node
        logger.debug("Classified %s as output node %s", dict(inputs), max_node)
        return max_node

    def visualize(self, view: bool = True) -> graphviz.Digraph:
        """
        Draw the network left to right, one cluster per node kind.
        Disabled connections are drawn in light gray.

        Parameters:
            view: open the rendered drawing in the default viewer

        Returns:
            the graphviz.Digraph, e.g. for dot.source or dot.render()
        """
        dot = graphviz.Digraph()
        dot.attr(rankdir='LR')
        dot.attr('graph', labelloc='t')

        base_attrs = {'color': 'black', 'style': 'filled', 'shape': 'circle', 'penwidth': '0.5',
                      'fontsize': '5', 'width': '0.5', 'height': '0.5', 'fixedsize': 'true'}
        clusters = [('input' , 'Inputs' , 'source', 'lightgrey'),
                    ('hidden', 'Hidden' , 'same'  , 'lightblue'),
                    ('output', 'Outputs', 'sink'  , 'white')]

        for kind, label, rank, fillcolor in clusters:
            if not self.nodes[kind]:
                continue
            with dot.subgraph(name=f'cluster_{kind}') as cluster:
                cluster.attr(rank=rank, label=label, style='invisible')
                for node in sorted(self.nodes[kind]):
                    cluster.node(str(node), label=f"id={node}", fillcolor=fillcolor, **base_attrs)

        # Edges labeled with their weight
        for key, conn in self.connections.items():
            dot.edge(str(key.src), str(key.dst),
                     label=f"w={conn.weight:.2f}",
                     fontsize='5', penwidth='0.5', arrowsize='0.5', labelfloat='false',
                     color='black' if conn.enabled else 'lightgray')

        if view:
            dot.view(cleanup=True)

        return dot

    def __str__(self):
        nodes_str = ", ".join(f"{kind}={ids}" for kind, ids in self.nodes.items())
        conns_str = "\n".join(f"  {conn}" for conn in self.connections.values())
        return f"{nodes_str}\n{conns_str}"
