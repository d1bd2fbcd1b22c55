"""
Unit tests for the NeuralNetwork module.

Tests cover construction (derived input/output maps and structural validation),
data-flow activation over irregular topologies, classification with get_output,
and the helper constructors.
"""

import math
import pytest
import graphviz
from unittest.mock import Mock

from neatnet.errors    import StructuralError
from neatnet.genotype  import ConnectionGene, ConnectionKey, Genome
from neatnet.phenotype import NeuralNetwork
from neatnet.run       import Config


def _sigmoid(z):
    return 1.0 / (1.0 + math.exp(-z))


# ============================================================================
# Test Fixtures
# ============================================================================

@pytest.fixture
def mock_config():
    return Mock(spec=Config)


@pytest.fixture
def make_conn(mock_config):
    """Factory for connection genes."""
    def _make(src, dst, weight, enabled=True):
        return ConnectionGene(src, dst, weight, mock_config, enabled=enabled)
    return _make


@pytest.fixture
def example_network(make_conn):
    """2 inputs, 1 output: w(1,3) = 1.0, w(2,3) = -1.0."""
    nodes = {'input': [1, 2], 'hidden': [], 'output': [3]}
    connections = {
        ConnectionKey(1, 3): make_conn(1, 3,  1.0),
        ConnectionKey(2, 3): make_conn(2, 3, -1.0),
    }
    return NeuralNetwork(nodes, connections)


@pytest.fixture
def hidden_network(hidden_genome_dict):
    return Genome.from_dict(hidden_genome_dict).to_network()


# ============================================================================
# Test Initialization
# ============================================================================

class TestNeuralNetworkInit:
    """Test NeuralNetwork.__init__."""

    def test_input_and_output_maps_mirror_connections(self, hidden_network):
        """dst in output_map[src] <=> src in input_map[dst] <=> (src, dst) is a connection."""
        net = hidden_network
        for src in net.input_map:
            for dst in net.input_map:
                in_connections = ConnectionKey(src, dst) in net.connections
                assert (dst in net.output_map[src]) == in_connections
                assert (src in net.input_map[dst]) == in_connections

    def test_maps_include_disabled_connections(self, hidden_network):
        assert 5 in hidden_network.input_map[4]
        assert 4 in hidden_network.output_map[5]

    def test_maps_cover_unconnected_nodes(self, make_conn):
        nodes = {'input': [1, 2], 'hidden': [7], 'output': [3]}
        net = NeuralNetwork(nodes, {ConnectionKey(1, 3): make_conn(1, 3, 1.0)})

        assert net.input_map[7]  == set()
        assert net.output_map[7] == set()
        assert net.output_map[2] == set()

    def test_plain_tuple_keys_are_accepted(self, make_conn):
        nodes = {'input': [1], 'hidden': [], 'output': [2]}
        net = NeuralNetwork(nodes, {(1, 2): make_conn(1, 2, 0.5)})

        assert ConnectionKey(1, 2) in net.connections

    def test_dangling_connection_raises(self, make_conn):
        nodes = {'input': [1], 'hidden': [], 'output': [2]}
        with pytest.raises(StructuralError, match="non-existent node 9"):
            NeuralNetwork(nodes, {ConnectionKey(1, 9): make_conn(1, 9, 0.5)})

    def test_overlapping_node_sets_raise(self):
        nodes = {'input': [1, 2], 'hidden': [2], 'output': [3]}
        with pytest.raises(StructuralError, match="disjoint"):
            NeuralNetwork(nodes, {})

    def test_cycle_raises(self, make_conn):
        nodes = {'input': [1], 'hidden': [4, 5], 'output': [2]}
        connections = {
            ConnectionKey(1, 4): make_conn(1, 4, 1.0),
            ConnectionKey(4, 5): make_conn(4, 5, 1.0),
            ConnectionKey(5, 4): make_conn(5, 4, 1.0, enabled=False),
            ConnectionKey(5, 2): make_conn(5, 2, 1.0),
        }
        with pytest.raises(StructuralError, match="cycle"):
            NeuralNetwork(nodes, connections)

    def test_unknown_activation_raises(self):
        with pytest.raises(ValueError, match="Unknown activation"):
            NeuralNetwork({'input': [1], 'output': [2]}, {}, activation='nope')

    def test_unknown_missing_source_policy_raises(self):
        with pytest.raises(ValueError, match="Unknown missing source policy"):
            NeuralNetwork({'input': [1], 'output': [2]}, {}, missing_source='ignore')

    def test_counting_properties(self, hidden_network):
        assert hidden_network.number_nodes               == 6
        assert hidden_network.number_nodes_hidden        == 2
        assert hidden_network.number_connections         == 7
        assert hidden_network.number_connections_enabled == 6


# ============================================================================
# Test activate
# ============================================================================

class TestActivate:
    """Test NeuralNetwork.activate."""

    def test_documented_example(self, example_network):
        activation = example_network.activate({1: 1, 2: 0})

        assert activation[3] == pytest.approx(_sigmoid(1.0))
        assert activation[3] == pytest.approx(0.731, abs=1e-3)

    def test_inputs_pass_through_unchanged(self, example_network):
        activation = example_network.activate({1: 0.25, 2: -3.0})

        assert activation[1] == 0.25
        assert activation[2] == -3.0

    def test_irregular_topology(self, hidden_network):
        """Nodes are evaluated only once all their predecessors have fired."""
        activation = hidden_network.activate({1: 1.0, 2: 2.0})

        n5 = _sigmoid(0.5 * 1.0 - 0.3 * 2.0)
        n6 = _sigmoid(1.2 * n5)
        n3 = _sigmoid(2.0 * n6 - 1.0 * 1.0)
        n4 = _sigmoid(1.5 * 2.0)          # (5, 4) is disabled

        assert activation[5] == pytest.approx(n5)
        assert activation[6] == pytest.approx(n6)
        assert activation[3] == pytest.approx(n3)
        assert activation[4] == pytest.approx(n4)

    def test_every_node_is_activated(self, hidden_network):
        activation = hidden_network.activate({1: 0.3, 2: 0.6})
        assert set(activation) == {1, 2, 3, 4, 5, 6}

    def test_all_connections_disabled(self, hidden_genome_dict):
        for conn in hidden_genome_dict['connections']:
            conn['enabled'] = False
        net = Genome.from_dict(hidden_genome_dict).to_network()

        activation = net.activate({1: 5.0, 2: -7.0})

        for node in (3, 4, 5, 6):
            assert activation[node] == pytest.approx(0.5)

    def test_activation_is_deterministic(self, hidden_network):
        first = hidden_network.activate({1: 0.1, 2: 0.9})
        for _ in range(5):
            assert hidden_network.activate({1: 0.1, 2: 0.9}) == first

    def test_unsupplied_source_defaults_to_empty_sum(self, example_network):
        activation = example_network.activate({1: 1.0})

        assert activation[2] == pytest.approx(0.5)
        assert activation[3] == pytest.approx(_sigmoid(1.0 - 0.5))

    def test_unsupplied_source_raises_with_error_policy(self, make_conn):
        nodes = {'input': [1, 2], 'hidden': [], 'output': [3]}
        connections = {ConnectionKey(1, 3): make_conn(1, 3, 1.0),
                       ConnectionKey(2, 3): make_conn(2, 3, 1.0)}
        net = NeuralNetwork(nodes, connections, missing_source='error')

        with pytest.raises(ValueError, match="source node 2"):
            net.activate({1: 1.0})

    def test_unknown_input_node_raises(self, example_network):
        with pytest.raises(ValueError, match="not part of the network"):
            example_network.activate({1: 1.0, 2: 0.0, 42: 1.0})

    def test_other_activation_function(self, make_conn):
        nodes = {'input': [1], 'hidden': [], 'output': [2]}
        net = NeuralNetwork(nodes, {ConnectionKey(1, 2): make_conn(1, 2, -2.0)}, activation='relu')

        assert net.activate({1: 1.0})[2] == 0.0
        assert net.activate({1: -1.0})[2] == pytest.approx(2.0)

    def test_stalled_propagation_raises(self, hidden_network, make_conn):
        """A cycle slipped in after construction stalls propagation: reported, not swallowed."""
        net = hidden_network
        net.connections[ConnectionKey(3, 5)] = make_conn(3, 5, 1.0)
        net.input_map[5].add(3)
        net.output_map[3].add(5)

        with pytest.raises(StructuralError, match="stalled"):
            net.activate({1: 1.0, 2: 1.0})


# ============================================================================
# Test get_output
# ============================================================================

class TestGetOutput:
    """Test NeuralNetwork.get_output."""

    def test_single_output_is_always_returned(self, example_network):
        for inputs in ({1: 0, 2: 0}, {1: 10, 2: -10}, {1: -10, 2: 10}):
            assert example_network.get_output(inputs) == 3

    def test_highest_activation_wins(self, hidden_network):
        activation = hidden_network.activate({1: 1.0, 2: 2.0})
        expected   = max((3, 4), key=lambda node: activation[node])

        assert hidden_network.get_output({1: 1.0, 2: 2.0}) == expected

    def test_first_output_wins_ties(self, make_conn):
        nodes = {'input': [1], 'hidden': [], 'output': [3, 2]}
        connections = {ConnectionKey(1, 2): make_conn(1, 2, 0.5),
                       ConnectionKey(1, 3): make_conn(1, 3, 0.5)}
        net = NeuralNetwork(nodes, connections)

        assert net.get_output({1: 1.0}) == 3


# ============================================================================
# Test constructors and visualization
# ============================================================================

class TestConstructors:
    """Test make_random_simple_network and from_genome."""

    def test_make_random_simple_network(self):
        net = NeuralNetwork.make_random_simple_network(4, 3)

        assert net.nodes == {'input': [1, 2, 3, 4], 'hidden': [], 'output': [5, 6, 7]}
        assert net.number_connections == 12
        for key, conn in net.connections.items():
            assert key.src in net.nodes['input']
            assert key.dst in net.nodes['output']
            assert -1.0 <= conn.weight <= 1.0
            assert conn.enabled

    def test_from_genome_uses_configured_activation(self, simple_genome_dict):
        config = Config()
        config.activation = 'identity'
        genome = Genome.from_dict(simple_genome_dict, config)

        net = NeuralNetwork.from_genome(genome)

        assert net.activate({1: 2.0, 2: 0.5})[3] == pytest.approx(1.5)

    def test_from_genome_shares_genome_weights(self, simple_genome_dict):
        genome = Genome.from_dict(simple_genome_dict)
        net = genome.to_network()

        assert net.connections[ConnectionKey(1, 3)] is genome.connections[ConnectionKey(1, 3)]


class TestVisualize:
    """Test NeuralNetwork.visualize."""

    def test_visualize_returns_digraph(self, hidden_network):
        dot = hidden_network.visualize(view=False)

        assert isinstance(dot, graphviz.Digraph)
        assert 'cluster_input'  in dot.source
        assert 'cluster_hidden' in dot.source
        assert 'cluster_output' in dot.source
        assert 'lightgray' in dot.source   # the disabled connection

    def test_visualize_skips_empty_hidden_cluster(self, example_network):
        dot = example_network.visualize(view=False)
        assert 'cluster_hidden' not in dot.source
