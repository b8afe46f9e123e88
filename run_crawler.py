"""Run a full friend circle crawl and write the report next to the config."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

# Ensure the src directory is on the Python path so the friendcircle package can be imported
SRC_PATH = Path(__file__).resolve().parent / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from friendcircle.config import (  # noqa: E402  (import after path setup)
    CSS_RULES_FILE,
    SETTINGS_FILE,
    CssRules,
    FcSettings,
    default_config_dir,
)
from friendcircle.services.aggregator import run  # noqa: E402
from friendcircle.services.timeparse import now_string  # noqa: E402


def main() -> None:
    """Load rules and settings from ``./config`` and crawl every friend."""

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    logging.info("Starting friend circle crawl at %s", now_string())

    config_dir = default_config_dir()
    css_rules_path = config_dir / CSS_RULES_FILE
    settings_path = config_dir / SETTINGS_FILE
    logging.info("CSS rules path: %s", css_rules_path)
    logging.info("Settings path: %s", settings_path)

    try:
        css_rules = CssRules.from_file(css_rules_path)
        settings = FcSettings.from_file(settings_path)
    except (OSError, ValueError) as exc:
        logging.error("Could not load configuration: %s", exc)
        sys.exit(1)

    report = run(settings, css_rules)

    output_path = Path(settings.output_file)
    try:
        report.dump(output_path)
    except OSError as exc:
        logging.error("Could not write report to %s: %s", output_path, exc)
        sys.exit(1)

    stats = report.statistical_data
    logging.info(
        "Wrote %d articles from %d/%d active friends to %s",
        stats.article_num,
        stats.active_num,
        stats.friends_num,
        output_path,
    )


if __name__ == "__main__":
    main()
