"""Pytest configuration and shared fixtures."""

import pytest
import random
import sys
from itertools import count
from pathlib   import Path

import numpy as np

# Add the source directory to the Python path
src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))

from neatnet.genotype import Genome, InnovationTracker
from neatnet.pool     import Species
from neatnet.run      import Config


@pytest.fixture(autouse=True)
def reset_global_state():
    """Seed the random generators and reset the global counters before each test."""
    random.seed(42)
    np.random.seed(42)

    config = Config()
    InnovationTracker.initialize(config)
    Genome._id_generator  = count(0)
    Species._id_generator = count(1)

    yield

    random.seed(None)
    np.random.seed(None)


@pytest.fixture
def config():
    """A small default configuration: 2 inputs, 1 output, population of 10."""
    config = Config()
    config.population_size = 10
    config.num_inputs      = 2
    config.num_outputs     = 1
    return config


@pytest.fixture
def simple_genome_dict():
    """Minimal genome: 2 inputs -> 1 output (the example network from the docs)."""
    return {
        'nodes': [
            {'id': 1, 'type': 'input'},
            {'id': 2, 'type': 'input'},
            {'id': 3, 'type': 'output'},
        ],
        'connections': [
            {'from': 1, 'to': 3, 'weight':  1.0, 'enabled': True},
            {'from': 2, 'to': 3, 'weight': -1.0, 'enabled': True},
        ]
    }


@pytest.fixture
def hidden_genome_dict():
    """Irregular topology: input 1 skips the hidden layer, hidden 5 feeds hidden 6."""
    return {
        'nodes': [
            {'id': 1, 'type': 'input'},
            {'id': 2, 'type': 'input'},
            {'id': 3, 'type': 'output'},
            {'id': 4, 'type': 'output'},
            {'id': 5, 'type': 'hidden'},
            {'id': 6, 'type': 'hidden'},
        ],
        'connections': [
            {'from': 1, 'to': 5, 'weight':  0.5, 'enabled': True},
            {'from': 2, 'to': 5, 'weight': -0.3, 'enabled': True},
            {'from': 5, 'to': 6, 'weight':  1.2, 'enabled': True},
            {'from': 6, 'to': 3, 'weight':  2.0, 'enabled': True},
            {'from': 1, 'to': 3, 'weight': -1.0, 'enabled': True},
            {'from': 5, 'to': 4, 'weight':  0.7, 'enabled': False},
            {'from': 2, 'to': 4, 'weight':  1.5, 'enabled': True},
        ]
    }
