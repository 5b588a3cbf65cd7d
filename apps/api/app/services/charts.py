"""Pie and donut charts drawn from integer counts.

Geometry uses top-down page coordinates: 0 degrees points along +x and
angles grow clockwise, so the first sector starts at -90 degrees (12 o'clock).
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

START_DEGREES = -90.0
LABEL_RADIUS_FACTOR = 0.75

QUALITY_LABEL_THRESHOLD = 8
CATEGORY_LABEL_THRESHOLD = 15

PRIMARY = "#059669"
ACCENT = "#10b981"
LIGHT_ACCENT = "#34d399"
SUCCESS = "#059669"
WARNING = "#ffc107"
DANGER = "#dc3545"
NEUTRAL = "#e9ecef"
WHITE = "#ffffff"
INK = "#333333"

QUALITY_COLORS = (PRIMARY, ACCENT, LIGHT_ACCENT)
CATEGORY_COLORS = (PRIMARY, ACCENT)


class ChartSurface(Protocol):
    def fill_sector(
        self,
        cx: float,
        cy: float,
        radius: float,
        start_degrees: float,
        sweep_degrees: float,
        color: str,
    ) -> None: ...

    def fill_circle(self, cx: float, cy: float, radius: float, color: str) -> None: ...

    def draw_centred_text(
        self,
        x: float,
        y: float,
        text: str,
        *,
        font: str,
        size: float,
        color: str,
    ) -> None: ...


@dataclass(frozen=True)
class Sector:
    index: int
    value: float
    color: str
    start_degrees: float
    sweep_degrees: float
    share: float

    @property
    def end_degrees(self) -> float:
        return self.start_degrees + self.sweep_degrees

    @property
    def mid_degrees(self) -> float:
        return self.start_degrees + self.sweep_degrees / 2

    @property
    def percentage(self) -> int:
        return math.floor(self.share * 100 + 0.5)


@dataclass(frozen=True)
class SectorLabel:
    x: float
    y: float
    text: str


def score_band_color(score: int) -> str:
    if score >= 80:
        return SUCCESS
    if score >= 60:
        return WARNING
    return DANGER


def compute_sectors(values: Sequence[float], colors: Sequence[str]) -> list[Sector]:
    """Sectors for non-zero values in input order; empty when the total is zero."""
    total = sum(values)
    if total <= 0:
        return []

    sectors: list[Sector] = []
    current = START_DEGREES
    for index, (value, color) in enumerate(zip(values, colors, strict=True)):
        if value <= 0:
            continue
        share = value / total
        sweep = 360.0 * share
        sectors.append(
            Sector(
                index=index,
                value=value,
                color=color,
                start_degrees=current,
                sweep_degrees=sweep,
                share=share,
            )
        )
        current += sweep
    return sectors


def label_positions(
    sectors: Sequence[Sector],
    *,
    cx: float,
    cy: float,
    radius: float,
    threshold_percent: int,
) -> list[SectorLabel]:
    labels: list[SectorLabel] = []
    for sector in sectors:
        if sector.percentage <= threshold_percent:
            continue
        angle = math.radians(sector.mid_degrees)
        labels.append(
            SectorLabel(
                x=cx + math.cos(angle) * radius * LABEL_RADIUS_FACTOR,
                y=cy + math.sin(angle) * radius * LABEL_RADIUS_FACTOR,
                text=f"{sector.percentage}%",
            )
        )
    return labels


def _fill_sectors(
    surface: ChartSurface, sectors: Sequence[Sector], *, cx: float, cy: float, radius: float
) -> None:
    for sector in sectors:
        surface.fill_sector(cx, cy, radius, sector.start_degrees, sector.sweep_degrees, sector.color)


def _draw_labels(surface: ChartSurface, labels: Sequence[SectorLabel]) -> None:
    for label in labels:
        surface.draw_centred_text(
            label.x, label.y, label.text, font="Helvetica-Bold", size=9, color=WHITE
        )


def draw_quality_chart(
    surface: ChartSurface,
    *,
    cx: float,
    cy: float,
    radius: float,
    high: int,
    medium: int,
    basic: int,
) -> list[Sector]:
    """Response-quality donut: high/medium/basic answers."""
    sectors = compute_sectors((high, medium, basic), QUALITY_COLORS)
    if not sectors:
        return sectors
    _fill_sectors(surface, sectors, cx=cx, cy=cy, radius=radius)
    surface.fill_circle(cx, cy, radius * 0.3, WHITE)
    _draw_labels(
        surface,
        label_positions(
            sectors, cx=cx, cy=cy, radius=radius, threshold_percent=QUALITY_LABEL_THRESHOLD
        ),
    )
    return sectors


def draw_compliance_chart(
    surface: ChartSurface,
    *,
    cx: float,
    cy: float,
    radius: float,
    achieved: int,
    remaining: int,
) -> list[Sector]:
    """Achieved/remaining donut with the achieved percentage in the hole."""
    sectors = compute_sectors((achieved, remaining), (score_band_color(achieved), NEUTRAL))
    if not sectors:
        return sectors
    _fill_sectors(surface, sectors, cx=cx, cy=cy, radius=radius)
    surface.fill_circle(cx, cy, radius * 0.55, WHITE)
    surface.draw_centred_text(cx, cy, f"{achieved}%", font="Helvetica-Bold", size=12, color=INK)
    return sectors


def draw_categories_chart(
    surface: ChartSurface,
    *,
    cx: float,
    cy: float,
    radius: float,
    general: int,
    industry_specific: int,
) -> list[Sector]:
    sectors = compute_sectors((general, industry_specific), CATEGORY_COLORS)
    if not sectors:
        return sectors
    _fill_sectors(surface, sectors, cx=cx, cy=cy, radius=radius)
    _draw_labels(
        surface,
        label_positions(
            sectors, cx=cx, cy=cy, radius=radius, threshold_percent=CATEGORY_LABEL_THRESHOLD
        ),
    )
    return sectors
