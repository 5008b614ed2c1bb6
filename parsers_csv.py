"""
Input parsers for OptiSaw beam saw optimization tool.
Handles reading cut lists and board settings from CSV data files.
"""

import pandas as pd
import logging
from typing import List, Dict, Any, Optional

from data_models import BeamSawConfig, MaterialJob, PanelInput, to_mm
from exceptions import InvalidPanelError

logger = logging.getLogger(__name__)


# Workshop spreadsheets use several spellings for the same column
COLUMN_ALIASES = {
    'ORDER ID / UNIQUE CODE': 'id',
    'PART ID': 'id',
    'PANEL ID': 'id',
    'ID': 'id',
    'CUT WIDTH': 'width',
    'WIDTH (MM)': 'width',
    'WIDTH': 'width',
    'W_MM': 'width',
    'CUT LENGTH': 'height',
    'LENGTH (MM)': 'height',
    'LENGTH': 'height',
    'HEIGHT (MM)': 'height',
    'HEIGHT': 'height',
    'H_MM': 'height',
    'QTY': 'quantity',
    'QUANTITY': 'quantity',
    'ROTATABLE': 'rotatable',
    'GRAINS': 'grains',
    'GRAIN SENSITIVE': 'grains',
    'GRAIN': 'grains',
    'MATERIAL TYPE': 'material',
    'MATERIAL': 'material',
}

REQUIRED_COLUMNS = ['id', 'width', 'height']

TRUE_VALUES = {'yes', 'y', 'true', '1', 'grain sensitive'}


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    renames = {}
    for column in df.columns:
        key = str(column).strip().upper()
        if key in COLUMN_ALIASES and COLUMN_ALIASES[key] not in renames.values():
            renames[column] = COLUMN_ALIASES[key]
    return df.rename(columns=renames)


def _as_flag(value: Any) -> bool:
    if pd.isna(value):
        return False
    if isinstance(value, str):
        return value.strip().lower() in TRUE_VALUES
    return bool(int(value))


def _row_to_panel(row: pd.Series, columns: List[str]) -> PanelInput:
    panel_id = str(row['id']).strip()
    width = to_mm(row['width'], f"width of {panel_id}", InvalidPanelError)
    height = to_mm(row['height'], f"height of {panel_id}", InvalidPanelError)

    quantity = 1
    if 'quantity' in columns and not pd.isna(row['quantity']):
        quantity = to_mm(row['quantity'], f"quantity of {panel_id}", InvalidPanelError)

    # An explicit ROTATABLE column wins; otherwise grain-sensitive parts may not rotate
    if 'rotatable' in columns:
        rotatable = _as_flag(row['rotatable'])
    elif 'grains' in columns:
        rotatable = not _as_flag(row['grains'])
    else:
        rotatable = False

    panel = PanelInput(id=panel_id, width=width, height=height,
                       rotatable=rotatable, quantity=quantity)
    panel.validate()
    return panel


def read_cutlist_frame(source) -> pd.DataFrame:
    """
    Read a cut list into a DataFrame with normalized column names.

    Args:
        source: File path or file-like object

    Raises:
        ValueError: If required columns are missing
    """
    df = pd.read_csv(source)
    logger.info(f"Cut list CSV columns: {list(df.columns)}")
    df = _normalize_columns(df)

    missing_columns = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing_columns:
        logger.error(f"Missing required columns in cut list: {missing_columns}")
        raise ValueError(f"Missing required columns in cut list: {missing_columns}")

    return df.dropna(how='all')


def panels_from_frame(df: pd.DataFrame) -> List[PanelInput]:
    """
    Convert normalized cut-list rows into PanelInput objects.

    Invalid rows are logged and skipped. Repeated ids get a row suffix so
    every panel stays traceable.
    """
    panels = []
    seen_ids = set()
    columns = list(df.columns)

    for index, row in df.iterrows():
        if pd.isna(row['id']) or not str(row['id']).strip():
            logger.warning(f"Skipping row {index + 2}: no panel id")
            continue
        try:
            panel = _row_to_panel(row, columns)
        except InvalidPanelError as e:
            logger.warning(f"Skipping row {index + 2}: {e.message}")
            continue

        if panel.id in seen_ids:
            unique_id = f"{panel.id}_{index + 2}"
            logger.warning(f"Duplicate panel id {panel.id} in row {index + 2}, using {unique_id}")
            panel = PanelInput(id=unique_id, width=panel.width, height=panel.height,
                               rotatable=panel.rotatable, quantity=panel.quantity)
        seen_ids.add(panel.id)
        panels.append(panel)

    return panels


def load_panels(source) -> List[PanelInput]:
    """
    Load panel demand from a cut-list CSV.

    Args:
        source: Path to the cut list CSV, or a file-like object

    Returns:
        List of PanelInput objects

    Expected CSV columns (any listed spelling):
        - ID / PART ID / ORDER ID / UNIQUE CODE: panel identifier
        - WIDTH / CUT WIDTH / w_mm: panel width in mm
        - HEIGHT / LENGTH / CUT LENGTH / h_mm: panel height in mm
        - QTY / QUANTITY: pieces needed (default 1)
        - ROTATABLE: yes/no, or GRAINS: 1 if grain-sensitive (not rotatable)
    """
    panels = panels_from_frame(read_cutlist_frame(source))
    logger.info(f"Loaded {len(panels)} panel rows "
                f"({sum(p.quantity for p in panels)} pieces)")
    return panels


def load_board_config(source) -> BeamSawConfig:
    """
    Load board and saw settings from a one-row CSV.

    Column names follow BeamSawConfig.from_dict, e.g. board_width,
    board_height, kerf, trim_top, trim_right, trim_bottom, trim_left,
    cut_order, min_strip.
    """
    df = pd.read_csv(source)
    if df.empty:
        raise ValueError("Board configuration CSV has no rows")
    return BeamSawConfig.from_dict(_row_dict(df.iloc[0]))


def _row_dict(row: pd.Series) -> Dict[str, Any]:
    return {str(key).strip(): value for key, value in row.items() if not pd.isna(value)}


def load_material_jobs(cutlist_source, boards_source,
                       default_config: Optional[BeamSawConfig] = None) -> List[MaterialJob]:
    """
    Split a multi-material cut list into one job per material.

    Args:
        cutlist_source: Cut list CSV with a MATERIAL column
        boards_source: CSV with a ``material`` column plus board settings per row
        default_config: Used for materials missing from the board CSV

    Returns:
        MaterialJob list in order of first appearance in the cut list

    Raises:
        ValueError: If a material has no board settings and no default is given
    """
    df = read_cutlist_frame(cutlist_source)
    if 'material' not in df.columns:
        raise ValueError("Cut list has no material column")

    boards_df = pd.read_csv(boards_source)
    boards_df.columns = [str(c).strip().lower() for c in boards_df.columns]
    if 'material' not in boards_df.columns:
        raise ValueError("Board settings CSV has no material column")

    configs = {}
    for _, row in boards_df.iterrows():
        data = _row_dict(row)
        material = str(data.pop('material')).strip()
        configs[material] = BeamSawConfig.from_dict(data)

    jobs = []
    materials = df['material'].fillna('').astype(str).str.strip()
    for material in materials.drop_duplicates():
        if not material:
            logger.warning("Skipping cut list rows without material")
            continue
        config = configs.get(material, default_config)
        if config is None:
            raise ValueError(f"No board settings for material {material}")
        panels = panels_from_frame(df[materials == material])
        jobs.append(MaterialJob(material_id=material, panels=panels, config=config))

    logger.info(f"Prepared {len(jobs)} material jobs")
    return jobs
