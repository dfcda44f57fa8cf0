"""
Core linking engine

Scans Steam libraries, resolves and locates the selected games and links them
into the Vortex Wine prefix.
"""
