"""Assembly, numbering, archive packaging and run orchestration."""
