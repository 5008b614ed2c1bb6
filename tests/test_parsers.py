"""Tests for the cut list and board settings CSV parsers."""

import io

import pytest

from data_models import BeamSawConfig, CutOrder, PanelInput
from parsers_csv import load_board_config, load_material_jobs, load_panels


def csv_source(text):
    return io.StringIO(text.strip() + "\n")


def test_load_simple_cutlist():
    panels = load_panels(csv_source("""
ID,WIDTH,HEIGHT,QTY,ROTATABLE
SIDE,560,720,4,no
SHELF,560,300,6,yes
"""))
    assert panels == [
        PanelInput("SIDE", 560, 720, rotatable=False, quantity=4),
        PanelInput("SHELF", 560, 300, rotatable=True, quantity=6),
    ]


def test_workshop_column_names_and_grain_flag():
    panels = load_panels(csv_source("""
PART ID,CUT WIDTH,CUT LENGTH,QTY,GRAINS
DOOR,596,716,2,1
SHELF,560,300,3,0
"""))
    assert [(p.id, p.width, p.height, p.rotatable) for p in panels] == [
        ("DOOR", 596, 716, False),
        ("SHELF", 560, 300, True),
    ]


def test_quantity_defaults_to_one():
    panels = load_panels(csv_source("""
id,width,height
A,100,200
"""))
    assert panels[0].quantity == 1
    assert panels[0].rotatable is False


def test_invalid_rows_are_skipped():
    panels = load_panels(csv_source("""
ID,WIDTH,HEIGHT,QTY
GOOD,100,200,1
ZERO,0,200,1
HALF,100.5,200,1
,100,200,1
"""))
    assert [p.id for p in panels] == ["GOOD"]


def test_duplicate_ids_get_row_suffix():
    panels = load_panels(csv_source("""
ID,WIDTH,HEIGHT
A,100,200
A,300,400
"""))
    assert [p.id for p in panels] == ["A", "A_3"]


def test_missing_columns_raise():
    with pytest.raises(ValueError, match="Missing required columns"):
        load_panels(csv_source("""
ID,WIDTH
A,100
"""))


def test_load_board_config():
    config = load_board_config(csv_source("""
board_width,board_height,kerf,trim_top,trim_left,cut_order,min_strip
2800,2070,3,10,15,VERTICAL_FIRST,40
"""))
    assert config.board_width == 2800
    assert config.kerf == 3
    assert config.trim.top == 10
    assert config.usable_width == 2785
    assert config.cut_order == CutOrder.VERTICAL_FIRST
    assert config.min_strip == 40


def test_material_jobs():
    cutlist = """
ID,WIDTH,HEIGHT,QTY,MATERIAL
A,100,200,1,OAK
B,300,400,2,MDF
C,500,600,1,OAK
"""
    boards = """
material,board_width,board_height,kerf
OAK,2440,1220,4
MDF,2800,2070,3
"""
    jobs = load_material_jobs(csv_source(cutlist), csv_source(boards))

    assert [job.material_id for job in jobs] == ["OAK", "MDF"]
    assert [p.id for p in jobs[0].panels] == ["A", "C"]
    assert jobs[0].config.board_width == 2440
    assert jobs[1].config.kerf == 3
    assert jobs[1].panels[0].quantity == 2


def test_material_without_board_settings():
    cutlist = """
ID,WIDTH,HEIGHT,MATERIAL
A,100,200,WALNUT
"""
    boards = """
material,board_width,board_height
OAK,2440,1220
"""
    with pytest.raises(ValueError, match="WALNUT"):
        load_material_jobs(csv_source(cutlist), csv_source(boards))

    default = BeamSawConfig(2800, 2070)
    jobs = load_material_jobs(csv_source(cutlist), csv_source(boards), default_config=default)
    assert jobs[0].config == default
