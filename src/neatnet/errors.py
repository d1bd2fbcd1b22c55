"""
NEAT Errors Module

This module defines the exceptions raised when the evolutionary state becomes invalid.
None of them is caught or retried by the evolutionary loop: they signal that continuing
would only produce meaningless results, so they abort the run carrying enough context
(generation number, species snapshot) to diagnose what went wrong.

Classes:
    NeatError:          Base class, optionally carrying generation/species context
    StructuralError:    Malformed network graph (dangling reference, cycle, stalled activation)
    DistributionError:  Offspring distribution cannot be computed
    ConfigurationError: Inconsistent configuration parameters
"""

from typing import Sequence

# (species ID, number of members, total fitness or None if not available)
SpeciesSnapshot = tuple[int, int, float | None]

class NeatError(Exception):
    """
    Base class for all errors raised by the NEAT library.

    Public Attributes:
        generation: Generation number at which the error surfaced (None if unknown)
        species:    Snapshot of the species at that time (empty if unknown)
    """

    def __init__(self,
                 message   : str,
                 generation: int | None = None,
                 species   : Sequence[SpeciesSnapshot] = ()):
        super().__init__(message)
        self.message   : str                   = message
        self.generation: int | None            = generation
        self.species   : list[SpeciesSnapshot] = list(species)

    def with_context(self, generation: int, species: Sequence[SpeciesSnapshot]) -> 'NeatError':
        """
        Create a copy of this error (same type and message) carrying generation/species context.
        """
        return type(self)(self.message, generation=generation, species=species)

    def __str__(self):
        s = self.message
        if self.generation is not None:
            s += f" [generation {self.generation}]"
        if self.species:
            snapshot = ", ".join(f"#{spec_id}: {size} members, fitness={fitness}"
                                 for spec_id, size, fitness in self.species)
            s += f" [species: {snapshot}]"
        return s

class StructuralError(NeatError):
    """A network graph is malformed: dangling connection, overlapping node sets or a cycle."""

class DistributionError(NeatError):
    """The offspring distribution across species cannot be computed."""

class ConfigurationError(NeatError):
    """The configuration parameters are inconsistent."""
