"""
File handling utilities for Solidity contract input.
"""

import logging
import re
from pathlib import Path
from typing import Union

from core.exceptions import ValidationError

logger = logging.getLogger(__name__)


class FileHandler:
    """Read a single Solidity contract file for analysis."""

    SOLIDITY_EXTENSIONS = {'.sol'}
    ENCODINGS = ('utf-8', 'utf-8-sig', 'latin-1', 'cp1252')

    def __init__(self):
        self.solidity_patterns = [
            re.compile(r'pragma\s+solidity\s+[^;]+;', re.IGNORECASE),
            re.compile(r'contract\s+\w+', re.IGNORECASE),
            re.compile(r'interface\s+\w+', re.IGNORECASE),
            re.compile(r'library\s+\w+', re.IGNORECASE),
        ]

    def read_contract(self, path: Union[str, Path]) -> str:
        """
        Read a Solidity contract file.

        Args:
            path: Path to a .sol file

        Returns:
            The file content

        Raises:
            FileNotFoundError: If the path does not exist or is not a file
            ValidationError: If the file does not have a .sol extension
        """
        target_path = Path(path)

        if not target_path.is_file():
            raise FileNotFoundError(f"Contract file does not exist: {path}")

        if not self.is_solidity_file(target_path):
            raise ValidationError("Only .sol files are allowed", field="path", value=str(path))

        content = self._read_file_with_encoding(target_path)
        if not self.looks_like_solidity(content):
            logger.warning(f"{target_path} doesn't appear to be a valid Solidity file")
        return content

    def is_solidity_file(self, file_path: Path) -> bool:
        return file_path.suffix.lower() in self.SOLIDITY_EXTENSIONS

    def _read_file_with_encoding(self, file_path: Path) -> str:
        """Read file with multiple encoding attempts."""
        for encoding in self.ENCODINGS:
            try:
                with open(file_path, 'r', encoding=encoding) as f:
                    return f.read()
            except UnicodeDecodeError:
                continue

        raise UnicodeDecodeError("utf-8", b"", 0, 0, "Unable to decode file with any supported encoding")

    def looks_like_solidity(self, content: str) -> bool:
        """Cheap sniff for a pragma or a contract/interface/library declaration."""
        if not content.strip():
            return False
        return any(pattern.search(content) for pattern in self.solidity_patterns)
