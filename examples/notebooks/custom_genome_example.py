"""
Hand-written genomes.

Builds genomes node by node with Genome.from_dict(), activates the networks
they express, and shows a cyclic description being rejected.
"""

from neatnet import Genome, StructuralError

# Example 1: the two-input network used throughout the documentation
# from_dict() initializes the InnovationTracker if no run has done so yet
print("="*60)
print("Example 1: weighted sum of two inputs")
print("="*60)

two_inputs = {
    "nodes": [
        # Input nodes: numbered [1, num_inputs]
        {"id": 1, "type": "input"},
        {"id": 2, "type": "input"},

        # Output nodes: numbered [num_inputs + 1, num_inputs + num_outputs]
        {"id": 3, "type": "output"}
    ],
    "connections": [
        {"from": 1, "to": 3, "weight":  1.0, "enabled": True},
        {"from": 2, "to": 3, "weight": -1.0, "enabled": True}
    ]
}

genome1  = Genome.from_dict(two_inputs)
network1 = genome1.to_network()
print(f"\n{genome1}\n")
print(f"activate({{1: 1, 2: 0}})[3] = {network1.activate({1: 1, 2: 0})[3]:.3f}   (sigmoid(1.0))\n")

# Example 2: irregular topology, a connection skipping the hidden layer
print("="*60)
print("Example 2: irregular topology")
print("="*60)

irregular = {
    "nodes": [
        {"id": 1, "type": "input"},
        {"id": 2, "type": "input"},
        {"id": 3, "type": "output"},
        {"id": 4, "type": "output"},

        # Hidden nodes: numbered above the output nodes
        {"id": 5, "type": "hidden"},
        {"id": 6, "type": "hidden"}
    ],
    "connections": [
        {"from": 1, "to": 5, "weight":  0.5, "enabled": True},
        {"from": 2, "to": 5, "weight": -0.3, "enabled": True},
        {"from": 5, "to": 6, "weight":  1.2, "enabled": True},
        {"from": 6, "to": 3, "weight":  2.0, "enabled": True},
        {"from": 1, "to": 3, "weight": -1.0, "enabled": True},
        {"from": 5, "to": 4, "weight":  0.7, "enabled": False},  # Disabled connection
        {"from": 2, "to": 4, "weight":  1.5, "enabled": True}
    ]
}

genome2  = Genome.from_dict(irregular)
network2 = genome2.to_network()
print(f"inputs {genome2.input_nodes}, outputs {genome2.output_nodes}, hidden {genome2.hidden_nodes}")
print(f"{network2.number_connections} connections, {network2.number_connections_enabled} enabled")

activation = network2.activate({1: 1.0, 2: 2.0})
for node in sorted(activation):
    print(f"  node {node}: {activation[node]:.4f}")
print(f"Predicted output node: {network2.get_output({1: 1.0, 2: 2.0})}\n")

# Example 3: a cycle is rejected
print("="*60)
print("Example 3: cyclic description")
print("="*60)

irregular["connections"].append({"from": 6, "to": 5, "weight": 1.0, "enabled": False})
try:
    Genome.from_dict(irregular)
except StructuralError as e:
    print(f"Rejected: {e}\n")

print("="*60)
print("Genome.from_dict() in short:")
print("="*60)
print("+ Automatically initializes InnovationTracker (no manual setup needed)")
print("+ Infers num_inputs and num_outputs from node types")
print("+ Validates that every connection references a declared node")
print("+ Validates network is acyclic (disabled connections included)")
print("+ Requires exact node type strings: 'input', 'output', 'hidden'")
print("+ Allows enabling/disabling connections")
