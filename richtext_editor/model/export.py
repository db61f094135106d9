# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
"Download as HTML": wrap the document in a minimal UTF-8 page
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..constants import EXPORT_FILENAME, EXPORT_MIME_TYPE

logger = logging.getLogger(__name__)

EXPORT_TEMPLATE = '<!doctype html><html><head><meta charset="utf-8"></head><body>{body}</body></html>'


@dataclass(frozen=True)
class ExportedFile:
    filename: str
    mime_type: str
    data: bytes

    def save(self, directory: str) -> str:
        """
        Write the file into ``directory``, creating it if needed

        Returns:
            Path of the written file
        """
        os.makedirs(directory, exist_ok=True)
        path = os.path.join(directory, self.filename)
        with open(path, "wb") as f:
            f.write(self.data)
        logger.info(f"Exported {len(self.data)} bytes to {path}")
        return path

    def to_dict(self) -> Dict[str, Any]:
        return {
            "filename": self.filename,
            "mime_type": self.mime_type,
            "content": self.data.decode("utf-8"),
            "size": len(self.data),
        }


def export_as_file(html: Optional[str], filename: str = EXPORT_FILENAME) -> ExportedFile:
    """Wrap ``html`` in an HTML page declaring UTF-8 and encode it"""
    content = EXPORT_TEMPLATE.format(body=html or "")
    return ExportedFile(filename=filename, mime_type=EXPORT_MIME_TYPE, data=content.encode("utf-8"))
