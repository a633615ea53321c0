"""Implied vs realized volatility reference service."""
