"""
Pokedex submission pipeline.

Validates community Pokedex submissions from pull requests against PokeAPI
and merges them into the site's dataset.
"""

__version__ = "1.0.0"
