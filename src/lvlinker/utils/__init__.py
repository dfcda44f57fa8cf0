"""
Utility helpers shared by the lvlinker engine (logging, paths, settings, Steam detection)
"""
