"""Template repository for character stroke templates.

This module provides the TemplateRepository class for managing the reference
stroke sets that drawings are validated against. Templates are keyed by the
character they draw.

The repository supports:
    - Registration and lookup by character
    - Enumeration of available characters
    - Factory methods for bulk loading from dictionaries and JSON files

Example usage:
    Basic repository operations::

        from stroke_grader.domain import CharacterTemplate, Point, Stroke
        from stroke_grader.templates import TemplateRepository

        repo = TemplateRepository()
        repo.register(CharacterTemplate(
            id='i', character='i',
            strokes=[Stroke([Point(50, 20), Point(50, 90)])],
        ))
        template = repo.get('i')

    Bulk loading::

        # {"a": [[[0, 0], [0, 100]], ...], ...}
        repo = TemplateRepository.from_dict(definitions)

        # [{"id": "a", "character": "a", "strokes": [...]}, ...]
        repo = TemplateRepository.load_json('templates.json')
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, Iterator, Mapping

from ..domain.geometry import CharacterTemplate, Stroke

logger = logging.getLogger(__name__)


class TemplateRepository:
    """Repository for character templates.

    Example:
        >>> repo = TemplateRepository()
        >>> repo.register(template_a)
        >>> repo.list_characters()
        ['a']
    """

    def __init__(self, templates: Iterable[CharacterTemplate] = ()):
        self._templates: dict[str, CharacterTemplate] = {}
        for template in templates:
            self.register(template)

    def register(self, template: CharacterTemplate) -> None:
        """Register a template under its character.

        A previously registered template for the same character is replaced.
        """
        if template.character in self._templates:
            logger.debug("Replacing template for %r", template.character)
        self._templates[template.character] = template

    def get(self, char: str) -> CharacterTemplate | None:
        """Get the template for a character, or None if not registered."""
        return self._templates.get(char)

    def list_characters(self) -> list[str]:
        """Sorted list of characters that have a template."""
        return sorted(self._templates)

    def __contains__(self, char: str) -> bool:
        return char in self._templates

    def __len__(self) -> int:
        return len(self._templates)

    def __iter__(self) -> Iterator[CharacterTemplate]:
        return iter(self._templates.values())

    def to_list(self) -> list[dict]:
        return [self._templates[c].to_dict() for c in self.list_characters()]

    @classmethod
    def from_dict(cls, definitions: Mapping[str, list] | list) -> TemplateRepository:
        """Create a repository from template definitions.

        Args:
            definitions: Either a mapping of character -> list of strokes, or
                a list of template dicts (``{id, character, strokes}``).
                Strokes take any shape ``Stroke.from_any`` accepts.

        Returns:
            Populated TemplateRepository.

        Raises:
            ValueError: If a stroke or point is malformed.

        Example:
            >>> repo = TemplateRepository.from_dict({'l': [[[0, 0], [0, 100]]]})
            >>> len(repo.get('l').strokes)
            1
        """
        repo = cls()
        if isinstance(definitions, Mapping):
            for char, strokes in definitions.items():
                repo.register(CharacterTemplate(
                    id=char,
                    character=char,
                    strokes=[Stroke.from_any(s) for s in strokes],
                ))
        else:
            for entry in definitions:
                repo.register(CharacterTemplate.from_dict(entry))
        return repo

    @classmethod
    def load_json(cls, path: str | Path) -> TemplateRepository:
        """Load a repository from a JSON file of template definitions.

        Raises:
            OSError: If the file cannot be read.
            ValueError: If the JSON or its template definitions are invalid.
        """
        path = Path(path)
        with path.open(encoding='utf-8') as f:
            definitions = json.load(f)
        repo = cls.from_dict(definitions)
        logger.info("Loaded %d templates from %s", len(repo), path)
        return repo
