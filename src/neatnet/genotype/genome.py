"""
Genomes: the heritable description of a feed-forward network.

Classes:
    Genome: Typed nodes plus connection genes, with the NEAT variation operators
"""

import copy
import numpy as np
import random
from collections import deque
from itertools   import count
from typing      import TYPE_CHECKING

from neatnet.errors                      import StructuralError
from neatnet.run.config                  import Config
from neatnet.genotype.connection_gene    import ConnectionGene, ConnectionKey
from neatnet.genotype.innovation_tracker import InnovationTracker
from neatnet.genotype.node_gene          import NodeType

if TYPE_CHECKING:
    from neatnet.phenotype import NeuralNetwork

class Genome:
    """
    A NEAT genome representing a neural network as a set of typed nodes and connection genes.

    A genome encodes the structure and parameters of a neural network at the genotype level:
    - node_types:  which nodes exist and whether they are input, hidden or output nodes
    - connections: weighted connections between nodes, keyed by their (source, destination)
                   pair; disabled connections stay in the genome as structural history

    The minimal genome created by the constructor contains only input and output nodes,
    with every input connected to every output. Via mutation, genomes grow by adding nodes
    and connections, forming increasingly complex topologies while the connection graph
    (enabled and disabled connections alike) stays acyclic.

    Node IDs:
        - Input nodes:  [1, num_inputs]
        - Output nodes: [num_inputs + 1, num_inputs + num_outputs]
        - Hidden nodes: above that, allocated by the InnovationTracker

    Public Attributes:
        ID:          Unique identifier of this genome
        fitness:     Fitness of the genome (None until evaluated)
        node_types:  Dictionary mapping node IDs to their NodeType
        connections: Dictionary mapping ConnectionKey to ConnectionGene objects

    Public Properties:
        input_nodes:  Sorted IDs of all input nodes
        hidden_nodes: Sorted IDs of all hidden nodes
        output_nodes: Sorted IDs of all output nodes
        nodes:        The three node lists above, keyed 'input', 'hidden', 'output'

    Public Methods:
        clone():                         Independent copy of this genome
        randomly_assign_weight(key):     Draw a new random weight for a connection
        distance(other):                 Compatibility distance to another genome
        crossover(other, fitter_parent): Child genome combining the genes of two parents
        mutate():                        Structural and weight mutations, each with its own probability
        validate():                      Check that the connection graph is well formed
        to_dict():                       Plain dictionary description, as accepted by from_dict()
        to_network():                    Express the genome as an executable NeuralNetwork

    Class Methods:
        make_clones(genome, count): Create several independent copies of a genome
        from_dict(genome_dict):     Create a genome from a dictionary description
    """

    # Generates unique genome IDs
    _id_generator = count(0)

    def __init__(self, config: Config):
        """
        The primordial genome: 'num_inputs' input nodes, 'num_outputs' output nodes,
        no hidden nodes, and one connection from each input to each output.
        All weights are 0.0; clones draw their own with randomly_assign_weight().

        Parameters:
            config: Stores configuration parameters
        """
        self._config = config

        self.ID     : int          = next(Genome._id_generator)
        self.fitness: float | None = None

        self.node_types : dict[int, NodeType]                 = {}  # node ID => node type
        self.connections: dict[ConnectionKey, ConnectionGene] = {}  # (src, dst) => connection gene

        input_ids  = range(1, config.num_inputs + 1)
        output_ids = range(config.num_inputs + 1, config.num_inputs + config.num_outputs + 1)
        for node_id in input_ids:
            self.node_types[node_id] = NodeType.INPUT
        for node_id in output_ids:
            self.node_types[node_id] = NodeType.OUTPUT

        # Full bipartite connectivity: inputs => outputs
        for src in input_ids:
            for dst in output_ids:
                key = ConnectionKey(src, dst)
                InnovationTracker.get_innovation_number(key)
                self.connections[key] = ConnectionGene(src, dst, 0.0, config)

    @classmethod
    def make_clones(cls, genome: 'Genome', count: int) -> list['Genome']:
        """
        Create 'count' independent copies of a genome.
        The copies share no mutable state with the original or with each other.
        """
        if count < 0:
            raise ValueError(f"Cannot make a negative number ({count}) of clones")
        return [genome.clone() for _ in range(count)]

    def clone(self) -> 'Genome':
        """
        Create an independent copy of this genome, with a new ID and no fitness.
        """
        other = Genome.__new__(Genome)
        other._config     = self._config
        other.ID          = next(Genome._id_generator)
        other.fitness     = None
        other.node_types  = dict(self.node_types)
        other.connections = {key: copy.copy(gene) for key, gene in self.connections.items()}
        return other

    @classmethod
    def from_dict(cls, genome_dict: dict, config: Config | None = None) -> 'Genome':
        """
        Build a genome from an explicit list of nodes and connections, then validate it.

        Dictionary format:
            {
                "nodes": [
                    {"id": 1, "type": "input"},
                    {"id": 2, "type": "input"},
                    {"id": 3, "type": "output"},
                    {"id": 4, "type": "hidden"}
                ],
                "connections": [
                    {"from": 1, "to": 4, "weight":  0.5, "enabled": true},
                    {"from": 2, "to": 4, "weight": -0.3, "enabled": true},
                    {"from": 4, "to": 3, "weight":  1.5, "enabled": true}
                ]
            }

        Note:
            If the InnovationTracker has not been initialized yet, it is initialized
            using the number of input and output nodes of this genome.

        Parameters:
            genome_dict: 'nodes' and (optionally) 'connections', as shown above
            config:      if None, a default Config sized to the described inputs and outputs

        Raises:
            ValueError:      If a node is described twice, has an unknown type,
                             or is a hidden node numbered within the input/output range
            StructuralError: If a connection is dangling or the graph has a cycle
            KeyError:        If required fields are missing from the dictionary
        """
        genome = cls.__new__(cls)
        genome.ID          = next(Genome._id_generator)
        genome.fitness     = None
        genome.node_types  = {}
        genome.connections = {}

        for node_data in genome_dict["nodes"]:
            node_id = node_data["id"]
            if node_id in genome.node_types:
                raise ValueError(f"Duplicate node ID {node_id}")
            genome.node_types[node_id] = NodeType(node_data["type"])

        if config is None:
            config = Config()
            config.num_inputs  = len(genome.input_nodes)
            config.num_outputs = len(genome.output_nodes)
        genome._config = config

        # Hidden IDs may not collide with the reserved input/output range
        num_reserved = len(genome.input_nodes) + len(genome.output_nodes)
        for node_id in genome.hidden_nodes:
            if node_id <= num_reserved:
                raise ValueError(f"Hidden node ID {node_id} is within the input/output range [1, {num_reserved}]")

        if InnovationTracker._next_innovation_number is None:
            InnovationTracker.initialize(config)
        if genome.node_types:
            InnovationTracker.reserve_node_ids(max(genome.node_types))

        for conn_data in genome_dict.get("connections", []):
            key = ConnectionKey(conn_data["from"], conn_data["to"])
            if key in genome.connections:
                raise ValueError(f"Duplicate connection {key}")
            genome.connections[key] = ConnectionGene(key.src, key.dst, conn_data["weight"], config,
                                                     enabled=conn_data.get("enabled", True))

        genome.validate()

        for key in genome.connections:
            InnovationTracker.get_innovation_number(key)

        return genome

    def to_dict(self) -> dict:
        """
        Describe the genome as plain data (nodes and connections sorted by ID),
        suitable for JSON and for from_dict().
        """
        nodes = [{"id": node_id, "type": node_type.value}
                 for node_id, node_type in sorted(self.node_types.items())]
        connections = [{"from"   : gene.node_in,
                        "to"     : gene.node_out,
                        "weight" : gene.weight,
                        "enabled": gene.enabled}
                       for _, gene in sorted(self.connections.items())]
        return {"nodes": nodes, "connections": connections}

    @property
    def input_nodes(self) -> list[int]:
        return sorted(n for n, t in self.node_types.items() if t == NodeType.INPUT)

    @property
    def hidden_nodes(self) -> list[int]:
        return sorted(n for n, t in self.node_types.items() if t == NodeType.HIDDEN)

    @property
    def output_nodes(self) -> list[int]:
        return sorted(n for n, t in self.node_types.items() if t == NodeType.OUTPUT)

    @property
    def nodes(self) -> dict[str, list[int]]:
        return {"input" : self.input_nodes,
                "hidden": self.hidden_nodes,
                "output": self.output_nodes}

    def randomly_assign_weight(self, key: ConnectionKey) -> None:
        """
        Replace the weight of a connection with a random value,
        drawn uniformly from the configured [min_weight, max_weight] range.

        Raises:
            KeyError: If the genome has no such connection
        """
        key = ConnectionKey(*key)
        if key not in self.connections:
            raise KeyError(f"Connection {key} does not exist in genome {self.ID}")
        self.connections[key].weight = random.uniform(self._config.min_weight, self._config.max_weight)

    def distance(self, other: 'Genome') -> float:
        """
        Compatibility distance, used to decide species membership:

           excess_coeff * E / N  +  disjoint_coeff * D / N  +  weight_coeff * W

        Genes are aligned by innovation number. E counts the unmatched genes numbered
        above the lower of the two highest innovation numbers, D the other unmatched genes,
        W is the mean absolute weight difference over matching genes and N the
        size of the larger genome. Identical genomes are at distance 0.
        """
        innovs1 = {InnovationTracker.get_innovation_number(key): key for key in self.connections}
        innovs2 = {InnovationTracker.get_innovation_number(key): key for key in other.connections}
        if not innovs1 and not innovs2:
            return 0.0

        matching_innovs     =  innovs1.keys() & innovs2.keys()
        non_matching_innovs = (innovs1.keys() | innovs2.keys()) - matching_innovs

        max_innov1 = max(innovs1) if innovs1 else -1
        max_innov2 = max(innovs2) if innovs2 else -1

        # Unmatched genes past the end of the other genome are excess, the rest disjoint
        num_excess   = 0
        num_disjoint = 0
        for innov in non_matching_innovs:
            if innov > min(max_innov1, max_innov2):
                num_excess += 1
            else:
                num_disjoint += 1

        mean_weight_diff = 0.0
        if matching_innovs:
            mean_weight_diff = float(np.mean([abs(self.connections[innovs1[i]].weight -
                                                 other.connections[innovs2[i]].weight)
                                             for i in matching_innovs]))

        N = max(len(self.connections), len(other.connections))
        return (self._config.distance_excess_coeff   * num_excess   / N +
                self._config.distance_disjoint_coeff * num_disjoint / N +
                self._config.distance_weight_coeff   * mean_weight_diff)

    def crossover(self, other: 'Genome', fitter_parent: 'Genome') -> 'Genome':
        """
        Child of this genome and 'other'.

        The child has exactly the connections of 'fitter_parent'. Where both parents
        carry a connection, the gene is copied from either of them with equal chance;
        otherwise it comes from the fitter parent. Since its connection graph is the
        fitter parent's, the child is acyclic whenever that parent is.

        Parameters:
            other:         the second parent
            fitter_parent: 'self' or 'other'; ties are settled by the caller
        """
        if fitter_parent is not self and fitter_parent is not other:
            raise ValueError("'fitter_parent' must be one of the two parents")

        offspring = Genome.__new__(Genome)
        offspring._config     = self._config
        offspring.ID          = next(Genome._id_generator)
        offspring.fitness     = None
        offspring.node_types  = {}
        offspring.connections = {}

        keys_self  = set(self.connections.keys())
        keys_other = set(other.connections.keys())
        matching   = keys_self & keys_other

        # Iterate in the fitter parent's gene order, for reproducibility
        for key in fitter_parent.connections:
            if key in matching:
                gene       = (self.connections if random.random() < 0.5 else other.connections)[key]
                gene       = copy.copy(gene)
                conn_self  = self.connections [key]
                conn_other = other.connections[key]

                # A gene disabled in either parent is likely to stay disabled
                if not (conn_self.enabled and conn_other.enabled):
                    gene.enabled = random.random() >= 0.75
            else:
                gene = copy.copy(fitter_parent.connections[key])
            offspring.connections[key] = gene

        # Nodes: all inputs and outputs, plus the hidden nodes touched by a connection
        node_ids = set(self.input_nodes) | set(self.output_nodes)
        for key in offspring.connections:
            node_ids.update(key)
        for node_id in sorted(node_ids):
            node_type = fitter_parent.node_types.get(node_id)
            if node_type is None:
                node_type = (other if fitter_parent is self else self).node_types[node_id]
            offspring.node_types[node_id] = node_type

        return offspring

    def mutate(self) -> None:
        """
        Mutate in place. Independent draws decide whether a hidden node is
        inserted and whether a connection is added or toggled; then every
        connection gene gets its own chance of a weight mutation.
        """
        if random.random() < self._config.node_add_probability:
            self._mutate_add_node()
        if random.random() < self._config.connection_add_probability:
            self._mutate_add_connection()
        if random.random() < self._config.connection_toggle_probability:
            self._mutate_toggle_connection()

        for gene in self.connections.values():
            gene.mutate()

    def _mutate_add_node(self) -> None:
        """
        Insert a hidden node into a randomly chosen enabled connection.
        The split connection is disabled and replaced by two: into the new node
        with weight 1.0, and out of it with the old weight, so the signal is preserved.
        """
        enabled = [gene for gene in self.connections.values() if gene.enabled]
        if not enabled:
            return
        split_gene = random.choice(enabled)
        new_node_id = InnovationTracker.get_split_node_id(split_gene.key)

        key1 = ConnectionKey(split_gene.node_in, new_node_id)
        key2 = ConnectionKey(new_node_id, split_gene.node_out)

        # This genome has already split the same connection before: re-enable the path
        if new_node_id in self.node_types:
            if key1 not in self.connections or key2 not in self.connections:
                return
            self.connections[key1].enabled = True
            self.connections[key2].enabled = True
            split_gene.enabled = False
            return

        split_gene.enabled = False
        self.node_types[new_node_id] = NodeType.HIDDEN
        self.connections[key1] = ConnectionGene(key1.src, key1.dst, 1.0, self._config)
        self.connections[key2] = ConnectionGene(key2.src, key2.dst, split_gene.weight, self._config)

    def _mutate_add_connection(self) -> None:
        """
        Join two randomly picked nodes with a new, randomly weighted connection.

        A candidate is rejected if it leaves an OUTPUT node, enters an INPUT node,
        duplicates an existing connection or closes a cycle. After NUM_ATTEMPTS
        rejected candidates the genome is left unchanged.
        """
        NUM_ATTEMPTS = 20
        node_ids = list(self.node_types.keys())
        for _ in range(NUM_ATTEMPTS):
            key = ConnectionKey(random.choice(node_ids), random.choice(node_ids))

            # Node types and duplicates first
            if self.node_types[key.src] == NodeType.OUTPUT:
                continue
            if self.node_types[key.dst] == NodeType.INPUT:
                continue
            if key in self.connections:
                continue

            # Graph search last
            if self._would_create_cycle(key.src, key.dst):
                continue

            InnovationTracker.get_innovation_number(key)
            weight = random.uniform(self._config.min_weight, self._config.max_weight)
            self.connections[key] = ConnectionGene(key.src, key.dst, weight, self._config)
            break

    def _mutate_toggle_connection(self) -> None:
        """
        Flip the enabled status of a random connection.
        """
        if self.connections:
            gene = random.choice(list(self.connections.values()))
            gene.enabled = not gene.enabled

    def _would_create_cycle(self, from_node: int, to_node: int) -> bool:
        """
        Whether 'to_node' already reaches 'from_node', so that the connection
        from_node -> to_node would close a cycle. Disabled connections count too.
        """
        if from_node == to_node:
            return True

        successors: dict[int, list[int]] = {}
        for key in self.connections:
            successors.setdefault(key.src, []).append(key.dst)

        visited = set()
        stack   = [to_node]
        while stack:
            current = stack.pop()
            if current == from_node:
                return True
            if current in visited:
                continue
            visited.add(current)
            stack.extend(successors.get(current, []))

        return False

    def validate(self) -> None:
        """
        Check that every connection references existing nodes and
        that the connection graph is acyclic (Kahn's algorithm).

        Raises:
            StructuralError: If the genome graph is malformed
        """
        for key in self.connections:
            for node_id in key:
                if node_id not in self.node_types:
                    raise StructuralError(f"Connection {key} of genome {self.ID} "
                                          f"references non-existent node {node_id}")

        in_degree  = {node_id: 0 for node_id in self.node_types}
        successors = {node_id: [] for node_id in self.node_types}
        for key in self.connections:
            in_degree[key.dst] += 1
            successors[key.src].append(key.dst)

        queue   = deque(node_id for node_id, degree in in_degree.items() if degree == 0)
        visited = 0
        while queue:
            node_id  = queue.popleft()
            visited += 1
            for dst in successors[node_id]:
                in_degree[dst] -= 1
                if in_degree[dst] == 0:
                    queue.append(dst)

        if visited < len(self.node_types):
            cyclic = sorted(node_id for node_id, degree in in_degree.items() if degree > 0)
            raise StructuralError(f"Genome {self.ID} has a cycle through nodes {cyclic}")

    def to_network(self) -> 'NeuralNetwork':
        """
        Express this genome as an executable neural network.
        """
        # phenotype imports genotype
        from neatnet.phenotype import NeuralNetwork
        return NeuralNetwork.from_genome(self)

    def __repr__(self):
        return f"Genome(ID={self.ID}, fitness={self.fitness}, connections={len(self.connections)})"

    def __str__(self):
        node_str = ' '.join(f"{node_id}{node_type.value[0].upper()}"
                            for node_id, node_type in sorted(self.node_types.items()))
        conn_str = ''.join(str(gene) for _, gene in sorted(self.connections.items()))
        return f"Nodes: {node_str}\nConns: {conn_str}"
