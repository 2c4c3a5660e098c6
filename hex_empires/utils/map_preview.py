"""
Static map preview for Hex Empires.

Draws the odd-r hex grid with matplotlib for debugging and reports. This is
not a game UI: it renders one snapshot of a GameMap to a figure, a file or
a binary buffer.
"""

import matplotlib
# Non-interactive backend for headless and test environments
matplotlib.use('Agg')

import matplotlib.pyplot as plt
import matplotlib.patches as patches
import numpy as np
from typing import Any, BinaryIO, List, Optional, Tuple, Union, TYPE_CHECKING
import logging
import os

from ..core.enums import TerrainType

if TYPE_CHECKING:
    from ..game.game_map import GameMap

TERRAIN_COLORS = {
    TerrainType.OCEAN: '#2b6cb0',
    TerrainType.GRASSLAND: '#68a94a',
    TerrainType.PLAINS: '#c9b458',
    TerrainType.DESERT: '#e8d9a0',
    TerrainType.TUNDRA: '#b8c4c2',
    TerrainType.FOREST: '#2f6b3a',
    TerrainType.JUNGLE: '#1f5130',
    TerrainType.SWAMP: '#5b6e4c',
    TerrainType.HILLS: '#a0845c',
    TerrainType.MOUNTAINS: '#7a6a60',
}

CIVILIZATION_COLORS = ['#FF3333', '#3366FF', '#00CC99', '#FFCC00', '#CC33FF', '#FF8800', '#FFFFFF', '#333333']
FOG_COLOR = '#1a1a1a'
HEX_RADIUS = 0.5


def hex_center(col: int, row: int, radius: float = HEX_RADIUS) -> Tuple[float, float]:
    """Centre of a pointy-top odd-r hex; row 0 is drawn at the top."""
    x = np.sqrt(3) * radius * (col + 0.5 * (row & 1))
    y = -1.5 * radius * row
    return x, y


def get_hex_vertices(x: float, y: float, radius: float = HEX_RADIUS) -> List[Tuple[float, float]]:
    """Six corners of a pointy-top hex centred at (x, y)."""
    angles = np.radians(np.arange(6) * 60 - 30)
    return list(zip(x + radius * np.cos(angles), y + radius * np.sin(angles)))


def civilization_color(civ_id: int) -> str:
    return CIVILIZATION_COLORS[civ_id % len(CIVILIZATION_COLORS)]


def render_map(game_map: "GameMap", civ_id: Optional[int] = None, figsize: Tuple[float, float] = (12, 8)):
    """Draw the map; with ``civ_id`` only what that civilization has explored is shown."""
    fig, ax = plt.subplots(figsize=figsize)
    ax.set_aspect('equal')
    ax.axis('off')
    fig.patch.set_facecolor('#f8f9fa')
    fig.suptitle(f'Hex Empires - Turn {game_map.turn} ({game_map.format_year()})',
                 fontsize=14, fontweight='bold')

    for tile in game_map.iter_tiles():
        x, y = hex_center(tile.col, tile.row)
        fogged = civ_id is not None and not tile.is_explored_by(civ_id)
        color = FOG_COLOR if fogged else TERRAIN_COLORS[tile.terrain]
        ax.add_patch(patches.Polygon(get_hex_vertices(x, y), edgecolor='#333333', facecolor=color,
                                     linewidth=0.3))
        if not fogged and tile.resource is not None:
            ax.plot(x, y + HEX_RADIUS * 0.45, marker='*', markersize=4, color='gold', zorder=4)

    for city in game_map.get_all_cities():
        if civ_id is not None and not game_map.get_tile(*city.position).is_explored_by(civ_id):
            continue
        x, y = hex_center(city.col, city.row)
        ax.add_patch(patches.Rectangle((x - 0.25, y - 0.25), 0.5, 0.5,
                                       facecolor=civilization_color(city.civilization_id), edgecolor='black', linewidth=0.8, zorder=5))
        ax.text(x, y - 0.45, f'{city.name} ({city.population})', ha='center', va='center',
                fontsize=6, fontweight='bold', zorder=6)

    for unit in game_map.get_all_units():
        if civ_id is not None and unit.civilization_id != civ_id and \
                not game_map.get_tile(*unit.position).is_visible_to(civ_id):
            continue
        x, y = hex_center(unit.col, unit.row)
        ax.add_patch(patches.Circle((x + 0.15, y + 0.15), 0.15,
                                    facecolor=civilization_color(unit.civilization_id), edgecolor='black', linewidth=0.5, zorder=7))
        ax.text(x + 0.15, y + 0.15, unit.name[0], ha='center', va='center', fontsize=5, zorder=8)

    ax.autoscale_view()
    return fig


def save_map_preview(game_map: "GameMap", target: Union[str, os.PathLike, BinaryIO], fmt: str = "png",
                     civ_id: Optional[int] = None, dpi: int = 100) -> Any:
    """Render and write the preview to a path or an open binary buffer."""
    fig = render_map(game_map, civ_id)
    try:
        fig.savefig(target, format=fmt, dpi=dpi, facecolor=fig.get_facecolor())
    finally:
        plt.close(fig)
    logging.debug(f"Saved map preview ({fmt}) for turn {game_map.turn}")
    return target
