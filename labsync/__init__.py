"""
Lab specimen tracking with periodic result sync from the results portal.
"""
