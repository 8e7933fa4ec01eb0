"""
Storage for the canonical Pokedex dataset.
"""

from .store_manager import StoreManager

__all__ = ['StoreManager']
