"""
Rendering of traced streamlines onto raster images.
"""
