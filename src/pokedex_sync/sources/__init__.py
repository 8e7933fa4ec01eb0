"""
Remote sources the pipeline reads from.

- GitHub: which submission files a pull request touched
- PokeAPI: the authoritative id and sprite of each Pokemon
"""

from .base_source import BaseSource, SourceConfig
from .github import ChangeSetResolver
from .pokeapi import CatalogClient

__all__ = ['BaseSource', 'SourceConfig', 'ChangeSetResolver', 'CatalogClient']
