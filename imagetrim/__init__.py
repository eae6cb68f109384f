"""
ImageTrim: strip uniform-colour borders from batches of images.
"""

__version__ = "1.0.0"
