"""
Historical markings shared by every genome of a run.

Classes:
    InnovationTracker: Registry of connection innovation numbers and split-node IDs
"""

from itertools import count
from typing    import TYPE_CHECKING

from neatnet.genotype.connection_gene import ConnectionKey
if TYPE_CHECKING:
    from neatnet.run.config import Config

class InnovationTracker:
    """
    Class-level registry: two genomes that make the same structural change,
    in the same generation or not, end up with the same innovation number
    (new connection) or the same node ID (split connection).

    Connections are identified by their endpoints; the innovation number records
    the order in which each (source, destination) pair first appeared anywhere in
    the population, which is what distinguishes excess from disjoint genes when
    measuring the distance between two genomes.

    Every run starts with 'InnovationTracker.initialize(config)'; using the
    tracker before that raises RuntimeError.
    """

    # Counters (initialized via 'initialize()')
    _next_innovation_number = None
    _next_node_id           = None

    # (source, destination) => innovation number, for every connection seen so far
    _innovation_numbers: dict[ConnectionKey, int] = {}

    # split connection => ID of the hidden node inserted into it
    _split_IDs: dict[ConnectionKey, int] = {}

    @classmethod
    def initialize(cls, config: 'Config'):
        """
        Forget all innovations and restart both counters.

        Node IDs [1, num_inputs + num_outputs] are reserved for input and output
        nodes, hidden nodes are numbered from there on.

        Parameters:
            config: supplies the number of input and output nodes
        """
        cls._next_innovation_number = count(0)
        cls._next_node_id           = count(config.num_inputs + config.num_outputs + 1)
        cls._innovation_numbers     = {}
        cls._split_IDs              = {}

    @classmethod
    def _check_initialized(cls):
        if cls._next_innovation_number is None:
            raise RuntimeError("InnovationTracker used before 'InnovationTracker.initialize()' was called")

    @classmethod
    def get_innovation_number(cls, key: ConnectionKey) -> int:
        """
        Innovation number of the connection joining these endpoints, assigned
        on first sight and looked up afterwards.

        Parameters:
            key: the (source node, destination node) pair

        Returns:
            the innovation number of the connection
        """
        cls._check_initialized()
        key = ConnectionKey(*key)
        if key not in cls._innovation_numbers:
            cls._innovation_numbers[key] = next(cls._next_innovation_number)
        return cls._innovation_numbers[key]

    @classmethod
    def get_split_node_id(cls, key: ConnectionKey) -> int:
        """
        Get the ID of the hidden node created by splitting a connection.
        If this exact connection has been split before (in any genome), returns
        the same ID, so that the resulting structures are homologous.

        Parameters:
            key: the connection being split

        Returns:
            the ID of the new hidden node
        """
        cls._check_initialized()
        key = ConnectionKey(*key)
        if key not in cls._split_IDs:
            node_id = next(cls._next_node_id)
            cls.get_innovation_number(ConnectionKey(key.src, node_id))
            cls.get_innovation_number(ConnectionKey(node_id, key.dst))
            cls._split_IDs[key] = node_id
        return cls._split_IDs[key]

    @classmethod
    def reserve_node_ids(cls, highest_id: int) -> None:
        """
        Make sure hidden nodes created from now on get IDs above 'highest_id',
        e.g. after loading a genome whose hidden nodes were numbered elsewhere.
        """
        cls._check_initialized()
        next_id = next(cls._next_node_id)
        cls._next_node_id = count(max(next_id, highest_id + 1))
