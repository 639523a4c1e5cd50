"""Packaging of report files as TestLink execution attachments."""

import base64
from pathlib import Path
from typing import Optional, Union

from .models import Attachment

JUNIT_CONTENT_TYPE = "text/xml"


def encode_file_content(data: bytes) -> str:
    """Base64 text of raw file bytes."""
    return base64.b64encode(data).decode("ascii")


def build_attachment(version_id: Optional[int], report_file: Union[str, Path]) -> Attachment:
    """Read a JUnit report and wrap it as an Attachment.

    version_id identifies the test case version the attachment is meant for;
    it travels with the upload call, not inside the attachment itself.
    Raises OSError if the file cannot be read.
    """
    report_file = Path(report_file)
    data = report_file.read_bytes()

    return Attachment(
        content=encode_file_content(data),
        description=f"JUnit report file {report_file.name}",
        file_name=report_file.name,
        file_size=len(data),
        title=report_file.name,
        file_type=JUNIT_CONTENT_TYPE,
    )
