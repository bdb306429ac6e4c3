"""Bond certificate generator.

Builds one filled certificate per bond from a maturity schedule, a CUSIP
schedule and a tagged Word template, and packages them into a ZIP archive.
"""

__version__ = "0.1.0"
