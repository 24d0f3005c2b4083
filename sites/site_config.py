from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

SITES_DIR = Path(__file__).resolve().parent
TEMPLATES_DIR = SITES_DIR / "templates"
WWWROOT_DIR = SITES_DIR / "wwwroot"
CANONICAL_ASSETS_DIR = SITES_DIR / "assets" / "images"


@dataclass(frozen=True)
class NavItem:
    text: str
    href: str


@dataclass(frozen=True)
class SiteConfig:
    """Everything that differs between the admin site and the demo site."""

    name: str
    service_name: str
    title: str
    nav: tuple[NavItem, ...] = field(default_factory=tuple)

    @property
    def static_dir(self) -> Path:
        return WWWROOT_DIR / self.name


ADMIN_SITE = SiteConfig(
    name="admin",
    service_name="Content Management System",
    title="DfE CMS Admin",
    nav=(NavItem("Home", "/"), NavItem("Privacy", "/privacy")),
)

DEMO_SITE = SiteConfig(
    name="demosite",
    service_name="Demo Service",
    title="DfE CMS Demo Site",
    nav=(NavItem("Home", "/"), NavItem("Privacy", "/privacy")),
)

SITES: dict[str, SiteConfig] = {site.name: site for site in (ADMIN_SITE, DEMO_SITE)}
