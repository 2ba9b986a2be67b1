"""Loading digit histories from tick files."""
