"""
Visualization module for the Lightning Strike Mapper
Draws the strikes of a cycle on an interactive folium map
"""

import folium
from branca.element import MacroElement, Template
from pathlib import Path
import logging
from typing import Dict, List, Optional, Sequence, Tuple, Union
from .config import AGE_SETTINGS, DEFAULTS, VIS_SETTINGS
from .models import CycleResult, GeoStrike

logger = logging.getLogger(__name__)


def age_category(age_minutes: int, minutes_per_bucket: int = AGE_SETTINGS['minutes_per_bucket']) -> int:
    return int(age_minutes) // int(minutes_per_bucket)


def age_style(
    age_minutes: int,
    scale: Sequence = VIS_SETTINGS['age_scale'],
    oldest: Sequence = VIS_SETTINGS['oldest'],
    minutes_per_bucket: int = AGE_SETTINGS['minutes_per_bucket']
) -> Tuple[str, str]:
    """
    Color and bracket label for a strike age

    Brackets: 0-5, 5-15, 15-30, 30-45 and 45-60+ minutes.
    """
    category = age_category(age_minutes, minutes_per_bucket)
    for max_category, color, label in scale:
        if category <= max_category:
            return color, label
    return oldest[0], oldest[1]


def age_color(age_minutes: int, **kwargs) -> str:
    return age_style(age_minutes, **kwargs)[0]


LEGEND_TEMPLATE = """
{% macro html(this, kwargs) %}
<div style="
    position: fixed;
    bottom: 30px;
    right: 10px;
    z-index: 9999;
    background-color: rgba(0, 0, 0, 0.7);
    color: white;
    padding: 8px 12px;
    border-radius: 6px;
    font-family: Arial;
    font-size: 12px;">
    <b>Edad del rayo</b><br>
    {% for color, label in this.entries %}
    <span style="color: {{ color }}; font-size: 16px;">&#9889;</span> {{ label }}<br>
    {% endfor %}
</div>
{% endmacro %}
"""


class AgeLegend(MacroElement):
    """Fixed legend of the age color scale"""

    def __init__(self, entries: List[Tuple[str, str]]):
        super().__init__()
        self._name = 'AgeLegend'
        self.entries = entries
        self._template = Template(LEGEND_TEMPLATE)


class StrikeVisualizer:
    def __init__(
        self,
        settings: Optional[Dict] = None,
        output_file: Optional[Union[str, Path]] = None,
        refresh_interval: Optional[int] = None
    ):
        """
        Initialize the visualizer

        Args:
            settings: Settings from config.load_settings(); defaults when omitted
            output_file: HTML file written by render(); defaults to the configured map file
            refresh_interval: Seconds between browser reloads of the page, None to disable
        """
        self.settings = settings or DEFAULTS
        self.vis = self.settings['vis']
        self.minutes_per_bucket = self.settings['age']['minutes_per_bucket']
        self.output_file = Path(output_file or self.settings['output']['map_file'])
        self.refresh_interval = refresh_interval
        self.map = None
        self.last_good: Optional[CycleResult] = None

    def style_for(self, age_minutes: int) -> Tuple[str, str]:
        return age_style(
            age_minutes,
            scale=self.vis['age_scale'],
            oldest=self.vis['oldest'],
            minutes_per_bucket=self.minutes_per_bucket
        )

    def _create_base_map(self) -> folium.Map:
        """Create the base map with the hybrid satellite layer"""
        m = folium.Map(
            location=self.vis['map']['default_center'],
            zoom_start=self.vis['map']['default_zoom'],
            max_zoom=self.vis['map']['max_zoom'],
            tiles=None
        )
        folium.TileLayer(
            tiles=self.vis['tiles']['url'],
            attr=self.vis['tiles']['attribution'],
            name='Satellite',
            max_zoom=self.vis['map']['max_zoom'],
            subdomains=self.vis['tiles']['subdomains']
        ).add_to(m)
        return m

    def _create_marker(self, strike: GeoStrike) -> folium.Marker:
        color, label = self.style_for(strike.age_minutes)
        marker = self.vis['marker']
        icon = folium.DivIcon(
            html=(
                f'<span style="color: {color}; font-size: {marker["font_size"]}px; '
                f'text-shadow: 1px 1px 2px rgba(0,0,0,0.5);">{marker["symbol"]}</span>'
            ),
            icon_size=tuple(marker['icon_size']),
            icon_anchor=tuple(marker['icon_anchor']),
            class_name='lightning-icon'
        )
        popup = (
            f"<strong>⚡ Rayo detectado</strong><br>"
            f"<strong>Edad:</strong> {strike.age_minutes} minutos ({label})<br>"
            f"<strong>Coordenadas:</strong> {strike.lat}, {strike.lng}"
        )
        return folium.Marker(
            [strike.lat, strike.lng],
            icon=icon,
            popup=folium.Popup(popup, max_width=250)
        )

    def _add_strikes(self, strikes: List[GeoStrike]) -> None:
        layer = folium.FeatureGroup(name='Rayos')
        for strike in strikes:
            self._create_marker(strike).add_to(layer)
        layer.add_to(self.map)

    def status_text(self, result: CycleResult) -> str:
        """Status panel content: last update and strike count, or the error"""
        if result.ok:
            updated = (result.finished_at or result.started_at)
            updated = updated.strftime('%H:%M:%S UTC') if updated else '--'
            return (
                f"<strong>Última actualización:</strong> {updated}<br>"
                f"<strong>Rayos en el mapa:</strong> {result.valid_count}"
            )
        shown = self.last_good.valid_count if self.last_good else 0
        return (
            f'<span style="color: red;">Error al cargar datos: {result.error}</span><br>'
            f"<strong>Rayos en el mapa:</strong> {shown}"
        )

    def _add_status_panel(self, result: CycleResult) -> None:
        status_html = f'''
            <div id="status" style="
                position: fixed;
                top: 10px;
                right: 10px;
                z-index: 9999;
                background-color: white;
                padding: 8px 12px;
                border-radius: 6px;
                font-family: Arial;
                font-size: 12px;
                box-shadow: 0 2px 10px rgba(0,0,0,0.2);">
                {self.status_text(result)}
            </div>
        '''
        self.map.get_root().html.add_child(folium.Element(status_html))

    def _add_legend(self) -> None:
        entries = [(color, label) for _, color, label in self.vis['age_scale']]
        entries.append(tuple(self.vis['oldest']))
        self.map.add_child(AgeLegend(entries))

    def _add_auto_refresh(self) -> None:
        """Reload the page on the refresh interval so new cycles show up"""
        self.map.get_root().header.add_child(
            folium.Element(f'<meta http-equiv="refresh" content="{int(self.refresh_interval)}">')
        )

    def build_map(self, result: CycleResult) -> folium.Map:
        """
        Build the map for a cycle result

        A failed cycle keeps showing the strikes of the last successful one.
        """
        if result.ok:
            self.last_good = result
        strikes = self.last_good.strikes if self.last_good else []

        self.map = self._create_base_map()
        self._add_strikes(strikes)
        self._add_status_panel(result)
        self._add_legend()
        if self.refresh_interval:
            self._add_auto_refresh()
        folium.LayerControl().add_to(self.map)
        return self.map

    def render(self, result: CycleResult) -> Path:
        """Update call of the pipeline: rebuild the map and save it"""
        self.build_map(result)
        self.output_file.parent.mkdir(parents=True, exist_ok=True)
        self.map.save(str(self.output_file))
        logger.info(f"Saved map with {len(self.last_good.strikes) if self.last_good else 0} strikes to {self.output_file}")
        return self.output_file
