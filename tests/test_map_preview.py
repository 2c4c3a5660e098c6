import io

import matplotlib.pyplot as plt

from hex_empires.utils.map_preview import hex_center, get_hex_vertices, render_map, save_map_preview

from conftest import make_started_game


def test_hex_centers_offset_odd_rows():
    x0, y0 = hex_center(0, 0)
    x1, y1 = hex_center(0, 1)
    assert x1 > x0
    assert y1 < y0
    assert len(get_hex_vertices(x0, y0)) == 6


def test_png_preview_to_buffer():
    world = make_started_game()
    world.get_unit_at(5, 5).settle(world)
    buffer = io.BytesIO()
    save_map_preview(world, buffer)
    assert buffer.getvalue().startswith(b"\x89PNG")


def test_fogged_render_for_one_civilization():
    world = make_started_game()
    fig = render_map(world, civ_id=0)
    try:
        assert len(fig.axes[0].patches) >= world.width * world.height
    finally:
        plt.close(fig)


def test_svg_preview_to_file(tmp_path):
    world = make_started_game()
    path = tmp_path / "map.svg"
    save_map_preview(world, str(path), fmt="svg")
    assert path.read_text().lstrip().startswith("<?xml")
