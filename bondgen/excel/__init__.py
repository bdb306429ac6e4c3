"""Spreadsheet reading, CSV conversion and header/column detection."""
