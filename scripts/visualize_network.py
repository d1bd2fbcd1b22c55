#!/usr/bin/env python3
"""
Render (or print as DOT source) the network expressed by a genome, and
optionally classify one set of inputs with it.

The genome is read from a JSON file in the format produced by 'Genome.to_dict()':

    {"nodes":       [{"id": 1, "type": "input"}, ...],
     "connections": [{"from": 1, "to": 3, "weight": 0.5, "enabled": true}, ...]}

Usage:
    python scripts/visualize_network.py --genome genome.json
    python scripts/visualize_network.py --genome genome.json --inputs 1=0.0 2=1.0
    python scripts/visualize_network.py --genome genome.json --source-only
"""

import argparse
import json
import logging
import sys

from neatnet import Genome, NeatError


def parse_inputs(pairs):
    """Parse 'node=value' pairs into a node ID => value mapping."""
    inputs = {}
    for pair in pairs:
        node, _, value = pair.partition('=')
        try:
            inputs[int(node)] = float(value)
        except ValueError:
            raise ValueError(f"Bad input '{pair}', expected NODE=VALUE") from None
    return inputs


def load_genome(path):
    with open(path) as f:
        return Genome.from_dict(json.load(f))


def main(argv=None):
    parser = argparse.ArgumentParser(description='Draw the network of a JSON genome')
    parser.add_argument('--genome', type=str, required=True,
                        help='Path to a JSON genome description')
    parser.add_argument('--output', type=str, default='network',
                        help='Rendered file name, extension added from --format')
    parser.add_argument('--format', type=str, default='png',
                        choices=['png', 'pdf', 'svg'],
                        help='Rendered file format')
    parser.add_argument('--inputs', nargs='*', default=[],
                        help='Activate the network with these NODE=VALUE inputs and print the result')
    parser.add_argument('--source-only', action='store_true',
                        help='Print the Graphviz source instead of rendering it')
    parser.add_argument('--no-view', action='store_true',
                        help='Render without opening a viewer')
    parser.add_argument('--verbose', action='store_true',
                        help='Log the classification of the inputs')

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    try:
        genome  = load_genome(args.genome)
        network = genome.to_network()
    except NeatError as e:
        print(f"Invalid genome: {e}", file=sys.stderr)
        return 1

    if args.inputs:
        try:
            inputs = parse_inputs(args.inputs)
        except ValueError as e:
            parser.error(str(e))
        activation = network.activate(inputs)
        for node in network.nodes['output']:
            print(f"output {node}: {activation[node]:.6f}")
        print(f"predicted output node: {network.get_output(inputs)}")

    dot = network.visualize(view=False)
    if args.source_only:
        print(dot.source)
        return 0

    dot.format = args.format
    dot.render(args.output, view=not args.no_view, cleanup=True)
    print(f"Network visualization saved to {args.output}.{args.format}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
