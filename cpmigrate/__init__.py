"""
Checkpoint migration engine.

Moves stream-processing checkpoints between a compacted single-partition
checkpoint topic and a flat tab-separated file.
"""

__version__ = "0.1.0"
