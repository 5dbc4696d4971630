from __future__ import annotations

from typing import Iterable


EXPORT_ENCODING = "cp1250"
LINE_TERMINATOR = "\r\n"


class ExportEncodingError(ValueError):
    def __init__(self, line_number: int, character: str, line: str):
        super().__init__(
            f"Export line {line_number} contains {character!r} (U+{ord(character):04X}), "
            f"which cannot be encoded as {EXPORT_ENCODING}."
        )
        self.line_number = line_number
        self.character = character
        self.line = line


def build_export(header_line: str, body_lines: Iterable[str]) -> bytes:
    """
    Compose the export file: A-record header, then one U-record per line.

    Every line is CRLF-terminated and the whole file is Windows-1250 encoded;
    the consuming system accepts nothing else.
    """
    lines = [header_line, *body_lines]
    chunks: list[bytes] = []
    for index, line in enumerate(lines, start=1):
        try:
            chunks.append(f"{line}{LINE_TERMINATOR}".encode(EXPORT_ENCODING))
        except UnicodeEncodeError as exc:
            raise ExportEncodingError(index, exc.object[exc.start], line) from exc
    return b"".join(chunks)
