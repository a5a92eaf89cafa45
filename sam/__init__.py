"""SAM - relationship graph engine.

Builds a typed, weighted relationship graph from people and resolved
relationship facts, and positions it with a force-directed layout.
"""

__version__ = "1.0.0"
