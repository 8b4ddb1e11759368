from __future__ import annotations

from dataclasses import dataclass, replace
import logging
from typing import Any, Mapping, Sequence

from linechart.axis_layout import XAxisLayout, YAxisLayout, layout_x_axis, layout_y_axis
from linechart.domain import DomainYResolution, compute_common_domain, resolve_domain_y
from linechart.formatting import NICE_DATE_FORMAT, ValueFormatter
from linechart.labels import LabelCandidate, LabelStyle, PlotBounds, data_label_formatter, label_style, place_labels
from linechart.responsive import (
    AXIS_PADDING,
    COLLAPSED_AXIS_MARGIN,
    AxisBand,
    FallbackIcon,
    LegendDecision,
    axis_margin,
    ellipsis_width,
    fit_axis_band,
    needs_fallback_icon,
    resolve_legend_position,
    x_axis_fits,
    x_range,
    y_axis_width,
)
from linechart.scales import PointScale, Scale
from linechart.series import ChartModel, Series, Viewport, VisualDomain, coerce_datetime
from linechart.settings import DEFAULT_SETTINGS, ChartSettings, LegendPosition
from linechart.text import PillowTextMetrics, TextMetrics
from linechart.x_axis import AxisKind, ScaleResolver, XAxisResolution, as_categorical, axis_kind_from_settings


LOGGER = logging.getLogger(__name__)

MIN_HOVER_TICK_WIDTH = 1.0


@dataclass(frozen=True)
class HoverValue:
    series_key: str
    series_name: str
    value: float
    text: str
    y: float | None


@dataclass(frozen=True)
class HoverItem:
    """Everything a tooltip needs for one x category."""

    category: Any
    label: str
    x: float
    values: tuple[HoverValue, ...] = ()


@dataclass(frozen=True)
class CellLayout:
    key: str
    viewport: Viewport
    legend: LegendDecision
    band: AxisBand
    x_resolution: XAxisResolution
    x_axis: XAxisLayout | None = None
    y_axis: YAxisLayout | None = None
    domain_y: DomainYResolution | None = None
    y_scale: Scale | None = None
    plot_bounds: PlotBounds | None = None
    labels: tuple[LabelCandidate, ...] = ()
    label_style: LabelStyle | None = None
    hover_items: tuple[HoverItem, ...] = ()
    icon: FallbackIcon | None = None

    @property
    def shows_icon(self) -> bool:
        return self.icon is not None

    @property
    def x_axis_height(self) -> float:
        return self.x_axis.height if self.x_axis is not None else 0.0


def x_formatter_for(model: ChartModel, settings: ChartSettings) -> ValueFormatter:
    if model.category_is_scalar:
        return ValueFormatter(
            pattern=model.category_format,
            display_units=settings.x_axis.display_units,
            precision=settings.x_axis.precision,
        )
    pattern = model.category_format
    if model.category_is_date and not pattern:
        pattern = NICE_DATE_FORMAT
    return ValueFormatter(pattern=pattern)


def y_formatter_for(model: ChartModel, settings: ChartSettings) -> ValueFormatter:
    return ValueFormatter(
        pattern=model.value_format,
        display_units=settings.y_axis.display_units,
        precision=settings.y_axis.precision,
    )


class LineChartLayout:
    """Lays out line chart cells: axes, responsive degradation and data labels.

    One instance holds the read-only inputs of a render pass (model, settings,
    text metrics, shared y domain). Every ``layout_*`` call computes a fresh
    result and keeps nothing between calls.
    """

    def __init__(
        self,
        model: ChartModel,
        settings: ChartSettings = DEFAULT_SETTINGS,
        *,
        metrics: TextMetrics | None = None,
        domain_y: VisualDomain | None = None,
    ) -> None:
        self.model = model
        self.settings = settings
        self.metrics = metrics if metrics is not None else PillowTextMetrics()
        self.domain_y = domain_y
        self.x_formatter = x_formatter_for(model, settings)
        self.y_formatter = y_formatter_for(model, settings)
        self.tooltip_formatter = ValueFormatter(pattern=model.value_format, display_units=0.0)
        self.label_formatter = data_label_formatter(settings.data_labels, settings.y_axis.display_units)
        self.axis_kind: AxisKind = axis_kind_from_settings(model, settings.x_axis)
        self.resolver = ScaleResolver(self.x_formatter)

    def category_text(self, value: Any) -> str:
        if self.model.category_is_date:
            moment = coerce_datetime(value)
            return self.x_formatter.format(moment if moment is not None else value)
        if self.model.category_is_scalar:
            return self.x_formatter.format(value)
        return "" if value is None else str(value)

    def max_x_category_count(self, series: Sequence[Series]) -> int:
        resolution = self.resolver.resolve(as_categorical(self.axis_kind), self.model.categories, series, (0.0, 0.0))
        return len(resolution.points)

    def axis_band(self, series: Sequence[Series], shared: VisualDomain | None = None) -> AxisBand:
        domain = resolve_domain_y(series, self.settings.y_axis, shared if shared is not None else self.domain_y)
        x = self.settings.x_axis
        margin = axis_margin(
            [self.category_text(c) for c in self.model.categories],
            font_family=x.font_family,
            font_size=x.font_size,
            metrics=self.metrics,
        )
        width = y_axis_width(domain.domain, self.settings.y_axis, formatter=self.y_formatter, metrics=self.metrics)
        return AxisBand(padding=AXIS_PADDING, margin=margin, y_axis_width=width)

    def legend_position(
        self,
        series: Sequence[Series],
        viewport: Viewport,
        *,
        requested: LegendPosition | None = None,
        legend_height: float = 0.0,
        shared: VisualDomain | None = None,
    ) -> LegendDecision:
        band = self.axis_band(series, shared)
        return resolve_legend_position(
            requested if requested is not None else self.settings.legend.position,
            width=viewport.width,
            height=viewport.height,
            legend_height=legend_height,
            band=band,
            min_y_axis_width=ellipsis_width(self.settings.y_axis, self.metrics),
            measure_x_axis=lambda b: self._layout_x(series, b, viewport)[1].height,
            responsive=self.settings.general.responsive,
        )

    def layout_cell(
        self,
        key: str,
        series: Sequence[Series],
        viewport: Viewport,
        *,
        legend_height: float = 0.0,
        shared: VisualDomain | None = None,
    ) -> CellLayout:
        settings = self.settings
        responsive = settings.general.responsive
        shared = shared if shared is not None else self.domain_y
        width, height = float(viewport.width), float(viewport.height)

        legend = self.legend_position(series, viewport, legend_height=legend_height, shared=shared)
        used_legend_height = 0.0 if legend.position == "None" else legend_height
        available_height = height - used_legend_height

        band = fit_axis_band(
            width,
            self.axis_band(series, shared),
            min_y_axis_width=ellipsis_width(settings.y_axis, self.metrics),
            responsive=responsive,
        )
        resolution, x_layout = self._layout_x(series, band, viewport)
        x_axis: XAxisLayout | None = x_layout
        x_height = x_layout.height
        if responsive and not x_axis_fits(height, used_legend_height, x_height, band.padding):
            LOGGER.debug("cell %s: no room for the x axis (%.1fpx tall)", key, height)
            x_axis = None
            x_height = 0.0
            band = replace(band, margin=COLLAPSED_AXIS_MARGIN)
            resolution = self.resolver.resolve(
                self.axis_kind,
                self.model.categories,
                series,
                x_range(band, width, settings.y_axis.position),
            )

        if responsive and needs_fallback_icon(width, available_height, band, x_height):
            LOGGER.debug("cell %s: %.1fx%.1f too small; using the fallback icon", key, width, height)
            return CellLayout(
                key=key,
                viewport=viewport,
                legend=legend,
                band=band,
                x_resolution=resolution,
                icon=FallbackIcon(width=width, height=available_height),
            )

        domain = resolve_domain_y(resolution.series, settings.y_axis, shared)
        y_range_max = max(available_height - band.padding - x_height, 0.0)
        y_scale = domain.build_scale((band.padding, y_range_max))

        y_axis: YAxisLayout | None = None
        if settings.y_axis.show and not band.collapsed:
            y_axis = layout_y_axis(
                y_scale,
                domain.domain,
                settings=settings.y_axis,
                formatter=self.y_formatter,
                metrics=self.metrics,
                plot_width=width,
                plot_height=available_height,
                y_axis_width=band.y_axis_width,
                axis_padding=band.padding,
                values_name=self.model.values_name,
            )

        xr = x_range(band, width, settings.y_axis.position)
        x_scale = x_axis.scale if x_axis is not None else resolution.scale
        bounds = PlotBounds(
            min_x=xr[0] - band.margin,
            max_x=xr[1] + band.margin,
            y_range_max=y_range_max + band.padding,
        )
        labels = place_labels(
            resolution.series,
            x_scale=x_scale,
            y_scale=y_scale,
            bounds=bounds,
            settings=settings.data_labels,
            formatter=self.label_formatter,
            metrics=self.metrics,
            categorical=resolution.is_categorical or isinstance(x_scale, PointScale),
        )

        hover: tuple[HoverItem, ...] = ()
        tick_max_width = (xr[1] - xr[0]) / len(resolution.points) if resolution.points else 0.0
        if tick_max_width > MIN_HOVER_TICK_WIDTH:
            hover = self._hover_items(resolution, x_scale, y_scale)

        return CellLayout(
            key=key,
            viewport=viewport,
            legend=legend,
            band=band,
            x_resolution=resolution,
            x_axis=x_axis,
            y_axis=y_axis,
            domain_y=domain,
            y_scale=y_scale,
            plot_bounds=bounds,
            labels=tuple(labels),
            label_style=label_style(settings.data_labels) if settings.data_labels.show else None,
            hover_items=hover,
        )

    def layout_small_multiples(
        self,
        cells: Mapping[str, Sequence[Series]],
        viewport: Viewport,
        *,
        legend_height: float = 0.0,
    ) -> dict[str, CellLayout]:
        """Lay out every cell independently into a new mapping owned by the caller.

        Without an explicit shared domain the cells share one computed from all
        of them, unless the y range policy is ``separate``.
        """
        shared = self.domain_y
        if shared is None and self.settings.y_axis.chart_range_type != "separate":
            shared = compute_common_domain(cells.values(), self.settings.y_axis)
        out: dict[str, CellLayout] = {}
        for key, series in cells.items():
            out[key] = self.layout_cell(key, series, viewport, legend_height=legend_height, shared=shared)
        return out

    def _layout_x(
        self,
        series: Sequence[Series],
        band: AxisBand,
        viewport: Viewport,
    ) -> tuple[XAxisResolution, XAxisLayout]:
        xr = x_range(band, viewport.width, self.settings.y_axis.position)
        resolution = self.resolver.resolve(self.axis_kind, self.model.categories, series, xr)
        layout = layout_x_axis(
            resolution,
            settings=self.settings.x_axis,
            formatter=self.x_formatter,
            metrics=self.metrics,
            x_range=xr,
            plot_width=viewport.width,
            plot_height=viewport.height,
            axis_padding=band.padding,
            category_name=self.model.category_name,
        )
        return resolution, layout

    def _hover_items(self, resolution: XAxisResolution, x_scale: Scale, y_scale: Scale) -> tuple[HoverItem, ...]:
        kind = resolution.kind
        by_series: list[tuple[Series, dict[str, Any]]] = []
        for line in resolution.series:
            index: dict[str, Any] = {}
            for point in line.points:
                index.setdefault(self.resolver.category_label(kind, point.x), point.y)
            by_series.append((line, index))

        items: list[HoverItem] = []
        for category in resolution.points:
            x = x_scale(category)
            if x is None:
                continue
            label = self.resolver.category_label(kind, category)
            values = tuple(
                HoverValue(
                    series_key=line.key,
                    series_name=line.name,
                    value=index[label],
                    text=self.tooltip_formatter.format(index[label]),
                    y=y_scale(index[label]),
                )
                for line, index in by_series
                if label in index
            )
            items.append(HoverItem(category=category, label=self.category_text(category), x=x, values=values))
        return tuple(items)
