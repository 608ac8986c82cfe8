"""Studio — site content mutation and versioning engine."""
