"""
Triangle engine.

Places funded participants into 15-slot triangles, pays out completed
triangles and cycles them into two successors.
"""

__version__ = "0.1.0"
