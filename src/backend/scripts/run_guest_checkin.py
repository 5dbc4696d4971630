from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path


LOG_FORMAT = "[%(asctime)s %(levelname)s %(name)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


def _ensure_backend_on_path() -> None:
    backend_dir = Path(__file__).resolve().parents[1]
    if str(backend_dir) not in sys.path:
        sys.path.insert(0, str(backend_dir))


def configure_logging(level: str, log_filepath: str | None) -> None:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_filepath:
        log_path = Path(log_filepath)
        if log_path.parent and not log_path.parent.exists():
            log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=handlers,
        force=True,
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description=(
            "Find guests not yet registered with the authorities, write one export file per listing "
            "and email the unregistered-guest and check-in-issue tables."
        )
    )
    parser.add_argument(
        "--settings",
        default=None,
        help="Path to the settings JSON (defaults to $GUEST_CHECKIN_SETTINGS or config/settings.json).",
    )
    parser.add_argument(
        "--fixtures",
        default=None,
        help="Sheets fixture JSON used instead of Google Sheets when DATA_SOURCE=fixtures.",
    )
    parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory for export files (overrides export_directory from settings).",
    )
    parser.add_argument(
        "--no-email",
        action="store_true",
        help="Build the notification but do not send it.",
    )
    args = parser.parse_args(argv)

    _ensure_backend_on_path()
    from common.guest_checkin.config import SettingsError, load_settings, settings_path
    from pipelines.checkin import run_checkin
    from pipelines.export_sink import LocalExportSink
    from pipelines.notification import SmtpNotificationSink
    from pipelines.tabular_source import get_tabular_source

    try:
        settings = load_settings(settings_path(args.settings))
    except SettingsError as exc:
        raise SystemExit(str(exc)) from exc

    configure_logging(settings.log_level, settings.log_filepath)
    logger = logging.getLogger("guest_checkin")
    logger.info("Starting Guest Checkin...")

    data_source = os.getenv("DATA_SOURCE", "live").strip().lower()
    if data_source == "fixtures":
        if not args.fixtures:
            raise SystemExit("Fixtures mode requires --fixtures.")
        shared = get_tabular_source("fixtures", fixtures_path=Path(args.fixtures).resolve())

        def source_factory(listing_config):
            return shared

    else:

        def source_factory(listing_config):
            return get_tabular_source("live", spreadsheet_id=listing_config.spreadsheet_id)

    output_dir = Path(args.output_dir or settings.export_directory).resolve()
    notification_sink = None
    if not args.no_email:
        try:
            notification_sink = SmtpNotificationSink()
        except ValueError as exc:
            raise SystemExit(f"Mail settings incomplete: {exc}") from exc

    result = run_checkin(
        settings,
        source_factory=source_factory,
        export_sink=LocalExportSink(root_dir=output_dir),
        notification_sink=notification_sink,
    )

    for outcome in result.listings:
        if outcome.error:
            print(f"{outcome.listing}: FAILED ({outcome.error})")
            continue
        written = f"wrote {outcome.export.location}" if outcome.export else "no export"
        print(
            f"{outcome.listing}: {len(outcome.unregistered)} exported, "
            f"{len(outcome.issues)} with issues, {written}"
        )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
