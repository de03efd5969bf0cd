"""YAML frontmatter parsing and generation for Markdown notes.

Frontmatter is the metadata store of the vault: it carries the stable
document identity (``UUID``) and the Foundry destination fields
(``VTT_Folder``, ``VTT_Journal``, ``VTT_PageTitle``, ``VTT_PicturePath``,
``VTT_UUID``). Fields this tool does not know are preserved unchanged.
"""

import re
from typing import Any, Dict, Tuple

import yaml

from .errors import FrontmatterError


class FrontmatterHandler:
    """Splits notes into frontmatter and body and joins them back."""

    # Regex pattern to match YAML frontmatter (between --- delimiters)
    FRONTMATTER_PATTERN = re.compile(
        r'^---\s*\n(.*?)\n---\s*(?:\n|$)',
        re.DOTALL
    )

    # Maximum allowed depth for YAML structures to prevent DoS attacks
    MAX_YAML_DEPTH = 10

    @classmethod
    def _validate_yaml_depth(cls, obj, current_depth: int = 0, max_depth: int = MAX_YAML_DEPTH) -> None:
        """Validate that YAML structure depth doesn't exceed maximum.

        Args:
            obj: YAML object (dict, list, or primitive)
            current_depth: Current nesting depth
            max_depth: Maximum allowed depth

        Raises:
            FrontmatterError: If depth exceeds maximum
        """
        if current_depth > max_depth:
            raise FrontmatterError(
                "<yaml>",
                f"YAML structure exceeds maximum depth of {max_depth}"
            )

        if isinstance(obj, dict):
            for value in obj.values():
                cls._validate_yaml_depth(value, current_depth + 1, max_depth)
        elif isinstance(obj, list):
            for item in obj:
                cls._validate_yaml_depth(item, current_depth + 1, max_depth)

    @classmethod
    def split(cls, file_path: str, content: str) -> Tuple[Dict[str, Any], str]:
        """Split a note into its frontmatter dict and Markdown body.

        Notes without frontmatter yield an empty dict and the full content.

        Args:
            file_path: Path of the note (for error messages)
            content: Full note content

        Returns:
            Tuple of (frontmatter, body)

        Raises:
            FrontmatterError: If frontmatter is malformed or too deeply nested
        """
        match = cls.FRONTMATTER_PATTERN.match(content)
        if not match:
            return {}, content

        body = content[match.end():]
        try:
            frontmatter = yaml.safe_load(match.group(1))
        except yaml.YAMLError as e:
            raise FrontmatterError(file_path, f"Invalid YAML syntax: {str(e)}")

        if frontmatter is None:
            return {}, body

        if not isinstance(frontmatter, dict):
            raise FrontmatterError(
                file_path,
                f"Frontmatter must be a YAML dictionary, got {type(frontmatter).__name__}"
            )

        try:
            cls._validate_yaml_depth(frontmatter)
        except FrontmatterError as e:
            raise FrontmatterError(file_path, e.message)

        return frontmatter, body

    @classmethod
    def compose(cls, frontmatter: Dict[str, Any], body: str) -> str:
        """Join frontmatter and body into note content.

        Key order is preserved. An empty frontmatter yields the body alone.
        """
        if not frontmatter:
            return body

        yaml_str = yaml.safe_dump(
            frontmatter,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False
        )
        return f"---\n{yaml_str}---\n{body}"

    @classmethod
    def merge_fields(
        cls,
        frontmatter: Dict[str, Any],
        fields: Dict[str, Any],
        overwrite: bool = False,
    ) -> Dict[str, Any]:
        """Merge fields into frontmatter in place.

        Without overwrite, fields that already hold a truthy value are kept.

        Returns:
            Dict of the fields that were actually written
        """
        written = {}
        for key, value in fields.items():
            if value is None or value == "":
                continue
            if not overwrite and frontmatter.get(key):
                continue
            if frontmatter.get(key) == value:
                continue
            frontmatter[key] = value
            written[key] = value
        return written
