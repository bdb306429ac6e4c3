"""Cell-level field parsers and whole-schedule parsers."""
