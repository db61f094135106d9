# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

from dataclasses import dataclass, asdict
from typing import Any, Dict

from .constants import (
    DEFAULT_BORDER_COLOR,
    DEFAULT_CELL_COLOR,
    EXPORT_FILENAME,
    MAX_HISTORY_SIZE,
)


@dataclass
class EditorConfig:
    """Per-session settings for a RichTextSession"""
    max_history: int = MAX_HISTORY_SIZE
    border_color: str = DEFAULT_BORDER_COLOR
    cell_color: str = DEFAULT_CELL_COLOR
    export_filename: str = EXPORT_FILENAME

    def __post_init__(self):
        if self.max_history < 1:
            raise ValueError(f"max_history must be at least 1, got {self.max_history}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
