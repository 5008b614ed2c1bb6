"""Tests for the text, CSV and Excel reports."""

import csv
import io

import pytest
from openpyxl import load_workbook

from data_models import BeamSawConfig, PanelInput, Trim
from optimization_unified import optimize
from report_generators import create_excel_report
from simple_reports import (
    create_report_package, generate_board_summary_csv, generate_cutting_layout_text,
    generate_optimized_cutlist_csv
)


@pytest.fixture
def report_config():
    return BeamSawConfig(1000, 500, kerf=4, trim=Trim.uniform(5))


@pytest.fixture
def report_result(report_config):
    panels = [PanelInput("A", 600, 400, quantity=2), PanelInput("B", 300, 200, rotatable=True)]
    return optimize(panels, report_config)


def csv_rows(text):
    lines = [line for line in text.splitlines() if not line.startswith("#")]
    return list(csv.reader(lines))


def test_cutting_layout_text(report_result, report_config):
    text = generate_cutting_layout_text(report_result, report_config, "K-001")

    assert text.startswith("CUTTING LAYOUT REPORT - ORDER: K-001")
    assert f"Total Boards: {report_result.boards_used}" in text
    for board_index in range(report_result.boards_used):
        assert f"BOARD {board_index + 1}" in text
    assert "A-1" in text and "A-2" in text and "B-1" in text


def test_cutlist_csv_uses_board_coordinates(report_result, report_config):
    rows = csv_rows(generate_optimized_cutlist_csv(report_result, report_config))

    assert rows[0] == ['Panel ID', 'Instance', 'Board', 'X (mm)', 'Y (mm)',
                       'Width (mm)', 'Height (mm)', 'Rotated']
    assert len(rows) == 1 + len(report_result.placements)

    first = report_result.placements[0]
    assert rows[1][:5] == [first.id, str(first.instance_index), str(first.board_index + 1),
                           str(first.x + 5), str(first.y + 5)]


def test_board_summary_csv(report_result):
    rows = csv_rows(generate_board_summary_csv(report_result))
    assert len(rows) == 1 + report_result.boards_used
    assert rows[1][0] == "1"


def test_report_package_names(report_result, report_config):
    package = create_report_package(report_result, report_config, "K-001")
    assert sorted(package) == ["K-001_board_summary.csv", "K-001_cutting_layout.txt",
                               "K-001_optimized_cutlist.csv"]


def test_excel_report(report_result, report_config):
    content = create_excel_report(report_result, report_config, "K-001")
    workbook = load_workbook(io.BytesIO(content))

    assert workbook.sheetnames == ["Summary", "Optimised Cutlist", "Board Details", "Offcuts"]
    assert workbook["Summary"]["A1"].value == "OptiSaw Optimization Summary - K-001"

    cutlist = workbook["Optimised Cutlist"]
    assert cutlist.max_row == 1 + len(report_result.placements)
    assert cutlist.cell(row=1, column=1).value == "Panel ID"

    details = workbook["Board Details"]
    assert details.max_row == 1 + report_result.boards_used
