"""
Copy the DfE rebrand logos into each site's wwwroot.

The rebrand logos are not shipped by the dfe-frontend npm package. Canonical
copies live in ``sites/assets/images`` (committed to git); when one is
missing it is downloaded from the DfE design system first.

    python -m scripts.copy_assets [--site admin|demosite|all]
"""

from __future__ import annotations

import argparse
import logging
import shutil
import sys
from dataclasses import dataclass, field
from pathlib import Path

import requests
from tenacity import retry, stop_after_attempt, wait_fixed

from core.logging_config import setup_logging
from sites.site_config import CANONICAL_ASSETS_DIR, SITES

logger = logging.getLogger(__name__)

REBRAND_BASE_URL = "https://design.education.gov.uk/assets/images/rebrand"
REBRAND_LOGOS = (
    "department-for-education_white.png",
    "department-for-education_black.png",
)
DOWNLOAD_TIMEOUT_SECONDS = 10


@dataclass
class CopyReport:
    downloaded: list[str] = field(default_factory=list)
    copied: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


@retry(stop=stop_after_attempt(3), wait=wait_fixed(2), reraise=True)
def download_logo(filename: str) -> bytes:
    response = requests.get(f"{REBRAND_BASE_URL}/{filename}", timeout=DOWNLOAD_TIMEOUT_SECONDS)
    response.raise_for_status()
    return response.content


def copy_assets(
    destinations: list[Path],
    source_dir: Path = CANONICAL_ASSETS_DIR,
) -> CopyReport:
    """Make sure every logo exists in ``source_dir`` and copy it to each destination."""
    report = CopyReport()
    source_dir.mkdir(parents=True, exist_ok=True)
    for destination in destinations:
        destination.mkdir(parents=True, exist_ok=True)

    for filename in REBRAND_LOGOS:
        source = source_dir / filename

        if not source.exists():
            logger.info("Downloading %s from design.education.gov.uk", filename)
            try:
                source.write_bytes(download_logo(filename))
            except requests.RequestException as exc:
                logger.error("Failed to download %s: %s", filename, exc)
                report.failed.append(filename)
                continue
            report.downloaded.append(filename)

        for destination in destinations:
            shutil.copyfile(source, destination / filename)
        report.copied.append(filename)

    logger.info(
        "DfE rebrand logo assets copied",
        extra={"copied": len(report.copied), "failed": len(report.failed)},
    )
    return report


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--site", choices=[*SITES, "all"], default="all")
    args = parser.parse_args(argv)

    setup_logging()
    selected = SITES.values() if args.site == "all" else [SITES[args.site]]
    report = copy_assets([site.static_dir / "assets" / "images" for site in selected])
    return 0 if report.ok else 1


if __name__ == "__main__":
    sys.exit(main())
