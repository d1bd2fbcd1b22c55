"""
XOR Classification with NEAT

This module evolves networks classifying the XOR (exclusive OR) function, the classic
benchmark for topology-evolving algorithms: it is not linearly separable, so a solution
needs at least one hidden node, which NEAT has to discover.

Network layout (see 'config_xor.ini'):
    Input nodes:  1, 2 (the two XOR operands), 3 (bias, always 1.0)
    Output nodes: 4 (class "0"), 5 (class "1")
The predicted class is the output node with the highest activation ('get_output').

Fitness Function:
    For each of the 4 cases: +1 if the case is classified correctly, plus the
    activation margin of the correct output node over the wrong one (in [-1, 1]),
    shifted so that the fitness is never negative. Maximum fitness is 12.0.

Usage:
    python trial_XOR.py
"""

from pathlib import Path

from neatnet import Config, Genome, StructuralError, Trial

class Trial_XOR(Trial):
    """
    NEAT trial evolving XOR classifiers.

    Implemented Methods:
        _evaluate_fitness(genome): Classify all 4 XOR cases
        _report_progress():        Display generation statistics
        _final_report():           Display the truth table of the best network
    """

    CASES = [((0.0, 0.0), 0),
             ((0.0, 1.0), 1),
             ((1.0, 0.0), 1),
             ((1.0, 1.0), 0)]

    CLASS_NODES = (4, 5)   # output node => predicted class

    def _inputs(self, operands):
        return {1: operands[0], 2: operands[1], 3: 1.0}

    def _evaluate_fitness(self, genome: Genome) -> float:
        try:
            network = genome.to_network()
        except StructuralError:
            return 0.0

        fitness = 0.0
        for operands, target in self.CASES:
            activation = network.activate(self._inputs(operands))
            correct    = self.CLASS_NODES[target]
            wrong      = self.CLASS_NODES[1 - target]
            margin     = float(activation[correct] - activation[wrong])

            fitness += 1.0 + margin
            if network.get_output(self._inputs(operands)) == correct:
                fitness += 1.0
        return fitness

    def _solved(self, genome: Genome) -> bool:
        network = genome.to_network()
        return all(network.get_output(self._inputs(operands)) == self.CLASS_NODES[target]
                   for operands, target in self.CASES)

    def _report_progress(self):
        best = self.get_fittest_genome()
        print(f"Generation {self.generation.gen_number:4d}: "
              f"{len(self.generation.species):3d} species, "
              f"best fitness {best.fitness:.3f} "
              f"({len(best.hidden_nodes)} hidden nodes, {len(best.connections)} connections)")

    def _final_report(self):
        best = self.get_fittest_genome()
        network = best.to_network()
        print(f"\nBest genome ({'solves' if self._solved(best) else 'does not solve'} XOR):")
        print(best)
        for operands, target in self.CASES:
            node = network.get_output(self._inputs(operands))
            print(f"  {operands} => class {self.CLASS_NODES.index(node)} (expected {target})")

if __name__ == "__main__":
    config = Config(str(Path(__file__).parent / "config_xor.ini"))
    trial  = Trial_XOR(config)
    trial.run(num_jobs=1)
