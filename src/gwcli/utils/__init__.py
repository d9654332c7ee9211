"""Utility helpers for gwcli."""

from gwcli.utils.datetime_parser import default_end, parse_datetime, to_utc_iso

__all__ = ["default_end", "parse_datetime", "to_utc_iso"]
