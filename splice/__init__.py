"""
Splice - non-linear editing timeline engine.

Keeps tracks, clips and media references consistent under interactive edits
(place, move, trim, split, remove) and compiles a timeline snapshot into an
ordered render plan: trim+normalize each clip, then concatenate.
"""

__version__ = "0.1.0"
