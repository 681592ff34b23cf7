"""
motioncore: deterministic animation core for a motion-graphics editor.
"""

__version__ = "0.1.0"
