"""
Data validation functions for the Lightning Strike Mapper
"""

import numpy as np
import pandas as pd
from typing import Dict, Iterable, List, Tuple

from .models import CalibrationBounds, GeoStrike

COLUMNS = ['lat', 'lng', 'age']


def strikes_to_frame(strikes: Iterable[GeoStrike]) -> pd.DataFrame:
    """Tabular view of strikes, one row per strike in order"""
    return pd.DataFrame([s.to_dict() for s in strikes], columns=COLUMNS)


def frame_to_strikes(df: pd.DataFrame) -> List[GeoStrike]:
    return [
        GeoStrike(lat=float(row.lat), lng=float(row.lng), age_minutes=int(row.age))
        for row in df.itertuples(index=False)
    ]


def validate_coordinates(
    df: pd.DataFrame,
    bounds: CalibrationBounds,
    lat_col: str = 'lat',
    lon_col: str = 'lng'
) -> Tuple[pd.DataFrame, Dict[str, int]]:
    """
    Validate geographic coordinates against the calibration bounds

    Args:
        df: Input DataFrame
        bounds: Calibration bounds, inclusive on every edge
        lat_col: Name of latitude column
        lon_col: Name of longitude column

    Returns:
        Tuple of (cleaned DataFrame, validation stats)
    """
    stats = {'original_rows': len(df)}

    # Check for missing coordinates
    valid_coords = df[lat_col].notna() & df[lon_col].notna()
    df = df[valid_coords]
    stats['missing_coordinates'] = stats['original_rows'] - len(df)

    # Check coordinate bounds
    valid_bounds = (
        (df[lat_col] >= bounds.south) &
        (df[lat_col] <= bounds.north) &
        (df[lon_col] >= bounds.west) &
        (df[lon_col] <= bounds.east)
    )
    df = df[valid_bounds]
    stats['out_of_bounds'] = stats['original_rows'] - stats['missing_coordinates'] - len(df)

    return df, stats


def filter_strikes(
    strikes: List[GeoStrike],
    bounds: CalibrationBounds
) -> Tuple[List[GeoStrike], Dict[str, int]]:
    """
    Keep the strikes that fall inside the calibrated region

    Order of the retained strikes is preserved.
    """
    df, stats = validate_coordinates(strikes_to_frame(strikes), bounds)
    return frame_to_strikes(df), stats


def validate_required_columns(df: pd.DataFrame) -> Tuple[bool, List[str]]:
    """
    Check if all snapshot columns are present

    Returns:
        Tuple of (validation result, list of missing columns)
    """
    missing_columns = [col for col in COLUMNS if col not in df.columns]
    return len(missing_columns) == 0, missing_columns


def validate_snapshot_records(records: List[Dict]) -> Tuple[pd.DataFrame, Dict[str, int]]:
    """
    Validate records read back from a published snapshot

    Non-numeric, non-finite, negative-age or fractional-age rows are dropped.

    Args:
        records: Decoded JSON array of {lat, lng, age} objects

    Returns:
        Tuple of (cleaned DataFrame, validation stats)
    """
    df = pd.DataFrame(records)
    stats = {'original_rows': len(df)}
    if df.empty:
        return pd.DataFrame(columns=COLUMNS), stats

    ok, missing = validate_required_columns(df)
    if not ok:
        raise ValueError(f"Snapshot records are missing columns: {missing}")

    df = df[COLUMNS].copy()
    for col in COLUMNS:
        df[col] = pd.to_numeric(df[col], errors='coerce')

    finite = np.isfinite(df[COLUMNS].astype(float)).all(axis=1)
    valid_values = finite & (df['age'] >= 0) & (df['age'] % 1 == 0)
    df = df[valid_values].copy()
    df['age'] = df['age'].astype(int)
    stats['invalid_rows'] = stats['original_rows'] - len(df)

    return df, stats
