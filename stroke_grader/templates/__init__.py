"""Character templates.

The module exports:
    TemplateRepository: Collection manager for storing and retrieving
        CharacterTemplate objects by character.
"""

from .repository import TemplateRepository

__all__ = ['TemplateRepository']
