"""State layer.

Per-vehicle bookkeeping owned by a single engine instance: bounded
reading history windows and the alert cooldown map.
"""
