import configparser
import os

from neatnet.activations import activations
from neatnet.errors      import ConfigurationError

class Config:

    # Allowed values for the policy parameters
    MISSING_SOURCE_POLICIES = ("sigmoid", "error")
    ZERO_FITNESS_POLICIES   = ("uniform", "error")
    FITNESS_CRITERIA        = ("max", "mean")

    def __init__(self, config_file: str | None = None):
        """
        Load the run parameters from an INI file. Parameters missing from the file
        keep their defaults, and the result is validated.

        Parameters:
            config_file: Path to the INI file; with None the defaults are used as is
                         (attributes may then be set directly, followed by validate())
        """
        self._set_defaults()

        if config_file is None:
            return

        if not os.path.exists(config_file):
            raise FileNotFoundError(f"Configuration file '{config_file}' not found")

        parser = configparser.ConfigParser()
        parser.read(config_file)

        # Reads one typed value; "none" stands for None, a missing key for its default
        def get_value(section, key, value_type, default):
            try:
                raw_value = parser.get(section, key)
                if raw_value.lower() == 'none':
                    return None
                if value_type == int:
                    return parser.getint(section, key)
                elif value_type == float:
                    return parser.getfloat(section, key)
                elif value_type == bool:
                    return parser.getboolean(section, key)
                elif value_type == str:
                    return raw_value
            except (configparser.NoSectionError, configparser.NoOptionError):
                return default
            except ValueError as e:
                raise ConfigurationError(f"Bad value for '{key}' in section [{section}]: {e}") from e

        # [POPULATION INIT]

        # Genomes per generation, kept constant throughout the run.
        self.population_size = get_value('POPULATION_INIT', 'population_size', int, self.population_size)

        # Input nodes, numbered 1..num_inputs.
        self.num_inputs = get_value('POPULATION_INIT', 'num_inputs', int, self.num_inputs)

        # Output nodes, numbered num_inputs+1..num_inputs+num_outputs.
        self.num_outputs = get_value('POPULATION_INIT', 'num_outputs', int, self.num_outputs)

        # [NETWORK]

        # The activation function applied to the weighted sum of each non-input node.
        # For the list of all available choices, see the 'activations' package.
        self.activation = get_value('NETWORK', 'activation', str, self.activation)

        # What happens to a node without incoming connections whose value is not supplied.
        # Allowed values:
        #   "sigmoid" - it activates on an empty weighted sum (sigmoid(0) = 0.5)
        #   "error"   - activation fails
        self.missing_source_policy = get_value('NETWORK', 'missing_source_policy', str, self.missing_source_policy)

        # [CONNECTION]

        # The minimum and maximum allowed 'weight' values. Random weights
        # are drawn uniformly from this range, perturbed weights are clipped to it.
        self.min_weight = get_value('CONNECTION', 'min_weight', float, self.min_weight)
        self.max_weight = get_value('CONNECTION', 'max_weight', float, self.max_weight)

        # Chance that a connection weight is nudged by gaussian noise.
        self.weight_perturb_prob = get_value('CONNECTION', 'weight_perturb_prob', float, self.weight_perturb_prob)

        # Chance that a connection weight is redrawn from [min_weight, max_weight].
        self.weight_replace_prob = get_value('CONNECTION', 'weight_replace_prob', float, self.weight_replace_prob)

        # Standard deviation of the noise added when a weight is nudged.
        self.weight_perturb_strength = get_value('CONNECTION', 'weight_perturb_strength', float, self.weight_perturb_strength)

        # [STRUCTURAL MUTATIONS]

        # Chance that an enabled connection is split by a new hidden node
        # (the split connection is disabled, two new ones take its place).
        self.node_add_probability = get_value('STRUCTURAL_MUTATIONS', 'node_add_probability', float, self.node_add_probability)

        # Chance that two unconnected nodes get joined, as long as no cycle results.
        self.connection_add_probability = get_value('STRUCTURAL_MUTATIONS', 'connection_add_probability', float, self.connection_add_probability)

        # Chance that a random connection is switched on or off.
        self.connection_toggle_probability = get_value('STRUCTURAL_MUTATIONS', 'connection_toggle_probability', float, self.connection_toggle_probability)

        # [SPECIATION]

        # A genome joins a species if its distance to the representative is below this value.
        self.compatibility_threshold = get_value('SPECIATION', 'compatibility_threshold', float, self.compatibility_threshold)

        # Distance = c_excess * E / N + c_disjoint * D / N + c_weight * (mean weight difference).
        self.distance_excess_coeff   = get_value('SPECIATION', 'distance_excess_coeff'  , float, self.distance_excess_coeff)
        self.distance_disjoint_coeff = get_value('SPECIATION', 'distance_disjoint_coeff', float, self.distance_disjoint_coeff)
        self.distance_weight_coeff   = get_value('SPECIATION', 'distance_weight_coeff'  , float, self.distance_weight_coeff)

        # [REPRODUCTION]

        # A species whose fitness-proportional share of offspring rounds to
        # fewer than this many individuals gets no offspring and goes extinct.
        self.species_extinction_threshold = get_value('REPRODUCTION', 'species_extinction_threshold', int, self.species_extinction_threshold)

        # Share of each species (its lowest fitness members) dropped before it reproduces.
        self.species_cull_rate = get_value('REPRODUCTION', 'species_cull_rate', float, self.species_cull_rate)

        # Best members of a species copied unchanged into its offspring.
        self.elitism = get_value('REPRODUCTION', 'elitism', int, self.elitism)

        # How offspring are distributed when the whole population has zero fitness.
        # Allowed values:
        #   "uniform" - every species gets the same share
        #   "error"   - the run is aborted
        self.zero_fitness_policy = get_value('REPRODUCTION', 'zero_fitness_policy', str, self.zero_fitness_policy)

        # Whether offspring are re-assigned to species after reproduction
        # (otherwise they stay in the species of their parents).
        self.respeciate_offspring = get_value('REPRODUCTION', 'respeciate_offspring', bool, self.respeciate_offspring)

        # [TERMINATION]

        # Hard limit on the length of a run.
        self.max_number_generations = get_value('TERMINATION', 'max_number_generations', int, self.max_number_generations)

        # Whether a run may also stop early, once the population is fit enough.
        self.fitness_termination_check = get_value('TERMINATION', 'fitness_termination_check', bool, self.fitness_termination_check)

        # How the population fitness is summarized for the early stop.
        # Allowed values:
        #   "max"  - the best genome
        #   "mean" - the population average
        self.fitness_criterion = get_value('TERMINATION', 'fitness_criterion', str, self.fitness_criterion)

        # Early stop once the summarized fitness reaches this value.
        self.fitness_threshold = get_value('TERMINATION', 'fitness_threshold', float, self.fitness_threshold)

        self.validate()

    def _set_defaults(self):
        self.population_size = 150
        self.num_inputs      = 2
        self.num_outputs     = 1

        self.activation            = 'sigmoid'
        self.missing_source_policy = 'sigmoid'

        self.min_weight              = -1.0
        self.max_weight              =  1.0
        self.weight_perturb_prob     = 0.8
        self.weight_replace_prob     = 0.1
        self.weight_perturb_strength = 0.5

        self.node_add_probability          = 0.03
        self.connection_add_probability    = 0.05
        self.connection_toggle_probability = 0.01

        self.compatibility_threshold = 3.0
        self.distance_excess_coeff   = 1.0
        self.distance_disjoint_coeff = 1.0
        self.distance_weight_coeff   = 0.4

        self.species_extinction_threshold = 2
        self.species_cull_rate            = 0.5
        self.elitism                      = 1
        self.zero_fitness_policy          = 'uniform'
        self.respeciate_offspring         = False

        self.max_number_generations    = 100
        self.fitness_termination_check = False
        self.fitness_criterion         = 'max'
        self.fitness_threshold         = None

    def validate(self) -> None:
        """
        Check that the configuration parameters are consistent with each other.

        Raises:
            ConfigurationError: describing the first inconsistency found
        """
        if self.population_size is None or self.population_size < 1:
            raise ConfigurationError(f"population_size must be at least 1, got {self.population_size}")
        if self.num_inputs is None or self.num_inputs < 1:
            raise ConfigurationError(f"num_inputs must be at least 1, got {self.num_inputs}")
        if self.num_outputs is None or self.num_outputs < 1:
            raise ConfigurationError(f"num_outputs must be at least 1, got {self.num_outputs}")
        if self.activation not in activations:
            raise ConfigurationError(f"Unknown activation function '{self.activation}'")
        if self.missing_source_policy not in self.MISSING_SOURCE_POLICIES:
            raise ConfigurationError(f"Unknown missing_source_policy '{self.missing_source_policy}'")
        if self.min_weight > self.max_weight:
            raise ConfigurationError(f"min_weight ({self.min_weight}) exceeds max_weight ({self.max_weight})")
        if not 0.0 <= self.species_cull_rate < 1.0:
            raise ConfigurationError(f"species_cull_rate must be in [0, 1), got {self.species_cull_rate}")
        if self.species_extinction_threshold < 0:
            raise ConfigurationError("species_extinction_threshold cannot be negative")
        if self.species_extinction_threshold > self.population_size:
            raise ConfigurationError(f"species_extinction_threshold ({self.species_extinction_threshold}) "
                                     f"exceeds population_size ({self.population_size}): every species would go extinct")
        if self.elitism < 0:
            raise ConfigurationError("elitism cannot be negative")
        if self.zero_fitness_policy not in self.ZERO_FITNESS_POLICIES:
            raise ConfigurationError(f"Unknown zero_fitness_policy '{self.zero_fitness_policy}'")
        if self.fitness_criterion not in self.FITNESS_CRITERIA:
            raise ConfigurationError(f"Unknown fitness_criterion '{self.fitness_criterion}'")
        if self.fitness_termination_check and self.fitness_threshold is None:
            raise ConfigurationError("fitness_threshold is required when fitness_termination_check is on")
