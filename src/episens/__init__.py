"""Parameter sensitivity sweeps for deterministic SEIR / SEmIR epidemic models."""
from .version_info import VERSION as __version__
