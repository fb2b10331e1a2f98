"""
recipeforge — declarative build recipes for one versioned component.
"""

__version__ = "0.1.0"
