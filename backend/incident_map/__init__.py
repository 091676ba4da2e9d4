"""Incident map backend: classification and filtering of police report log incidents."""
