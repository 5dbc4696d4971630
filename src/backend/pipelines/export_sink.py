from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol


EXPORT_SUFFIX = ".unl"


class ExportSinkError(RuntimeError):
    pass


@dataclass(frozen=True)
class ExportHandle:
    identifier: str
    location: Path


class ExportSink(Protocol):
    def persist(self, identifier: str, encoded: bytes) -> ExportHandle:
        ...


@dataclass(frozen=True)
class LocalExportSink:
    root_dir: Path

    def persist(self, identifier: str, encoded: bytes) -> ExportHandle:
        out_path = self.root_dir / f"{_safe_name(identifier)}{EXPORT_SUFFIX}"
        try:
            self.root_dir.mkdir(parents=True, exist_ok=True)
            out_path.write_bytes(encoded)
        except OSError as exc:
            raise ExportSinkError(f"Writing export file {out_path} failed: {exc}") from exc
        return ExportHandle(identifier=identifier, location=out_path)


def _safe_name(identifier: str) -> str:
    cleaned = "".join(ch if ch not in '/\\:*?"<>|' else "_" for ch in identifier).strip()
    if not cleaned:
        raise ExportSinkError(f"Export identifier {identifier!r} yields an empty file name.")
    return cleaned
