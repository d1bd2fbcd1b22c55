"""
NEAT Run Package

Configuration and the driver running the NEAT algorithm.

Exported Classes:
    Config: Configuration parameters, read from an INI file
    Trial:  Abstract base class for one run of the NEAT algorithm
"""

from neatnet.run.config import Config
from neatnet.run.trial  import Trial

__all__ = ['Config', 'Trial']
